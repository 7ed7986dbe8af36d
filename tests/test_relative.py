"""
Tests for relative-to-absolute coordinate mapping.

Every case also checks that the mapped coords have the same length as
the relative coords they came from.
"""

import sys
from pathlib import Path

import pytest

# Add scripts directory to path for imports
scripts_dir = Path(__file__).parent.parent / "scripts"
sys.path.insert(0, str(scripts_dir))

from vcoords.coords import coords_length, parse_coords, serialize_coords
from vcoords.errors import FormatError, RangeError
from vcoords.relative import (
    relative_to_absolute,
    relative_segment_to_absolute,
    protein_relative_to_absolute,
)


def check_mapping(abs_coords, rel_coords, expected):
    result = relative_to_absolute(abs_coords, rel_coords)
    assert serialize_coords(result) == expected
    assert coords_length(result) == coords_length(rel_coords)
    return result


# ============================================================================
# Tests: Relative to Absolute
# ============================================================================

class TestRelativeToAbsolute:
    """Tests for relative_to_absolute."""

    def test_fixture_cases(self, relative_cases):
        """All shared cases map to the expected absolute coords."""
        for abs_coords, rel_coords, expected in relative_cases:
            check_mapping(abs_coords, rel_coords, expected)

    def test_forward_single_segment(self):
        """Offset into a single forward segment."""
        check_mapping("11..100:+", "6..38:+", "16..48:+")

    def test_reverse_single_segment(self):
        """Offset counts from the 5' (high) end on the '-' strand."""
        check_mapping("100..11:-", "4..33:+", "97..68:-")

    def test_crosses_splice(self):
        """A span crossing a segment boundary is split there."""
        check_mapping("11..40:+,42..101:+", "4..33:+", "14..40:+,42..44:+")

    def test_lands_on_boundary_end(self):
        """A span ending exactly at a boundary emits no empty segment."""
        result = check_mapping("11..40:+,42..101:+", "1..30:+", "11..40:+")
        assert len(result) == 1

    def test_lands_on_boundary_start(self):
        """A span starting exactly after a boundary stays in one segment."""
        check_mapping("11..40:+,42..101:+", "31..40:+", "42..51:+")

    def test_full_length(self):
        """Mapping 1..length gives back the absolute coords."""
        check_mapping("11..40:+,42..101:+", "1..90:+", "11..40:+,42..101:+")

    def test_three_segments(self):
        """A span can cross several segments."""
        check_mapping("1..10:+,20..29:+,40..49:+", "5..25:+", "5..10:+,20..29:+,40..44:+")

    def test_spliced_reverse(self):
        """Spliced minus-strand coords walk each segment downwards."""
        check_mapping("101..42:-,40..11:-", "55..65:+", "47..42:-,40..36:-")

    def test_minus_relative(self):
        """A '-' relative span maps to the reverse of its '+' counterpart."""
        check_mapping("11..100:+", "38..6:-", "48..16:-")

    def test_multiple_relative_segments(self):
        """Each relative segment is mapped in turn."""
        check_mapping("11..100:+", "1..5:+,11..15:+", "11..15:+,21..25:+")

    def test_touching_relative_segments_merge(self):
        """Relative segments that continue one another merge."""
        check_mapping("11..100:+", "1..5:+,6..10:+", "11..20:+")

    def test_mixed_strand_absolute(self):
        """Each output segment takes the strand of its covering segment."""
        check_mapping("1..10:+,30..21:-", "8..13:+", "8..10:+,30..28:-")

    def test_accepts_parsed_segments(self):
        """Parsed segments work as well as strings."""
        result = relative_to_absolute(parse_coords("11..100:+"), parse_coords("6..38:+"))
        assert serialize_coords(result) == "16..48:+"

    def test_beyond_length(self):
        """Relative coords past the absolute length raise RangeError."""
        with pytest.raises(RangeError):
            relative_to_absolute("11..40:+,42..101:+", "80..91:+")

    def test_malformed(self):
        """Malformed coords raise FormatError."""
        with pytest.raises(FormatError):
            relative_to_absolute("11..100", "1..5:+")


class TestRelativeSegmentToAbsolute:
    """Tests for relative_segment_to_absolute."""

    def test_one_per_crossing(self):
        """One output segment per absolute segment crossed."""
        abs_segments = parse_coords("1..10:+,20..29:+,40..49:+")
        rel = parse_coords("10..21:+")[0]
        result = relative_segment_to_absolute(abs_segments, rel)
        assert serialize_coords(result) == "10..10:+,20..29:+,40..40:+"
        assert coords_length(result) == rel.length


# ============================================================================
# Tests: Protein Coords
# ============================================================================

class TestProteinRelativeToAbsolute:
    """Tests for protein_relative_to_absolute."""

    def test_forward(self):
        """Amino acids 2..11 of a CDS starting at 11 cover 14..43."""
        result = protein_relative_to_absolute("11..100:+", "2..11:+")
        assert serialize_coords(result) == "14..43:+"
        assert coords_length(result) == 30

    def test_spliced(self):
        """Codons that straddle a splice are split."""
        result = protein_relative_to_absolute("11..40:+,42..101:+", "2..3:+,5..11:+")
        assert serialize_coords(result) == "14..19:+,23..40:+,42..44:+"

    def test_reverse(self):
        """Minus-strand CDS map codons downwards."""
        result = protein_relative_to_absolute("100..11:-", "1..2:+")
        assert serialize_coords(result) == "100..95:-"
