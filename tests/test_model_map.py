"""
Tests for CIGAR-based cross-model position mapping.

Toy alignment used throughout (from = 8 positions, to = 7 positions)::

    from  1 2 3 4 5 6 7 . 8
    to    1 2 3 . . 4 5 6 7
    cigar 3M 2I 2M 1D 1M
"""

import sys
from pathlib import Path

import pytest

# Add scripts directory to path for imports
scripts_dir = Path(__file__).parent.parent / "scripts"
sys.path.insert(0, str(scripts_dir))

from vcoords.coords import serialize_coords
from vcoords.errors import ConsistencyError, FormatError, RangeError
from vcoords.model_map import (
    Aligned,
    CigarOp,
    NearGap,
    cigar_to_position_map,
    map_position,
    parse_cigar,
    parse_model_map,
    project_coords,
    project_coords_endpoints,
    read_model_map,
)

TOY_CIGAR = "3M2I2M1D1M"


@pytest.fixture
def toy_map():
    """Position map for the toy alignment."""
    return cigar_to_position_map(TOY_CIGAR, 8, 7)


# ============================================================================
# Tests: CIGAR Parsing
# ============================================================================

class TestParseCigar:
    """Tests for parse_cigar."""

    def test_runs(self):
        """Runs are parsed in order."""
        assert parse_cigar("10M1I5M") == (
            CigarOp(10, "M"), CigarOp(1, "I"), CigarOp(5, "M")
        )

    @pytest.mark.parametrize("cigar", ["", "M", "10X", "10M5", "0M", "10M0D3M", "5m"])
    def test_malformed(self, cigar):
        """Anything but <count><M|I|D> runs is a FormatError."""
        with pytest.raises(FormatError):
            parse_cigar(cigar)


# ============================================================================
# Tests: Position Map
# ============================================================================

class TestCigarToPositionMap:
    """Tests for cigar_to_position_map."""

    def test_length(self, toy_map):
        """One entry per 'from' position."""
        assert len(toy_map) == 8
        assert toy_map.len_to == 7

    def test_match_runs(self, toy_map):
        """M runs map position to position."""
        assert [toy_map[i] for i in (1, 2, 3)] == [Aligned(1), Aligned(2), Aligned(3)]
        assert [toy_map[i] for i in (6, 7)] == [Aligned(4), Aligned(5)]

    def test_insert_run(self, toy_map):
        """I runs point at the 5' flanking 'to' position."""
        assert toy_map[4] == NearGap(3)
        assert toy_map[5] == NearGap(3)

    def test_delete_run(self, toy_map):
        """D runs skip 'to' positions."""
        assert toy_map[8] == Aligned(7)

    def test_leading_insert(self):
        """An insert at the very start points at 'to' position 1."""
        pmap = cigar_to_position_map("2I3M", 5, 3)
        assert pmap[1] == NearGap(1)
        assert pmap[3] == Aligned(1)

    def test_identity(self):
        """A pure M alignment is the identity map."""
        pmap = cigar_to_position_map("5M", 5, 5)
        assert [entry.pos for entry in pmap] == [1, 2, 3, 4, 5]

    def test_totals_disagree(self):
        """Run totals must match both model lengths."""
        with pytest.raises(ConsistencyError):
            cigar_to_position_map(TOY_CIGAR, 9, 7)
        with pytest.raises(ConsistencyError):
            cigar_to_position_map(TOY_CIGAR, 8, 8)

    def test_out_of_range(self, toy_map):
        """Positions outside 1..len_from raise RangeError."""
        with pytest.raises(RangeError):
            toy_map[0]
        with pytest.raises(RangeError):
            toy_map[9]

    def test_map_position(self, toy_map):
        """map_position gives the nearest 'to' position either way."""
        assert map_position(toy_map, 2) == 2
        assert map_position(toy_map, 5) == 3


# ============================================================================
# Tests: Projection
# ============================================================================

class TestProjectCoords:
    """Tests for project_coords."""

    def test_split_at_gap_and_deletion(self, toy_map):
        """Spans split at gap transitions and 'to' discontinuities."""
        result = project_coords(toy_map, "1..8:+")
        assert serialize_coords(result) == "1..3:+,4..5:+,7..7:+"

    def test_aligned_only(self, toy_map):
        """A span inside an M run maps straight across."""
        assert serialize_coords(project_coords(toy_map, "1..3:+")) == "1..3:+"

    def test_gap_only_dropped(self, toy_map):
        """A span entirely inside an insert has no counterpart."""
        assert project_coords(toy_map, "4..5:+") == ()

    def test_reverse_strand(self, toy_map):
        """'-' spans are walked downwards and keep their strand."""
        result = project_coords(toy_map, "8..6:-")
        assert serialize_coords(result) == "7..7:-,5..4:-"

    def test_endpoints(self, toy_map):
        """Endpoint projection snaps gap endpoints to the nearest position."""
        result = project_coords_endpoints(toy_map, "2..5:+,6..8:+")
        assert serialize_coords(result) == "2..3:+,4..7:+"

    def test_endpoints_inside_gap(self, toy_map):
        """An alert inside an insert still gets a location."""
        result = project_coords_endpoints(toy_map, "4..5:+")
        assert serialize_coords(result) == "3..3:+"


# ============================================================================
# Tests: Model Map Files
# ============================================================================

class TestParseModelMap:
    """Tests for parse_model_map / read_model_map."""

    def test_parse(self, sample_model_map_text):
        """Comments and blank lines are skipped."""
        maps = parse_model_map(sample_model_map_text)
        assert set(maps) == {("MDL_A", "MDL_B"), ("MDL_B", "MDL_A")}
        forward = maps[("MDL_A", "MDL_B")]
        assert forward.len_from == 8
        assert forward.len_to == 7
        assert forward.cigar == TOY_CIGAR

    def test_reverse_map(self, sample_model_map_text):
        """The reverse alignment maps 'to' positions back."""
        reverse = parse_model_map(sample_model_map_text)[("MDL_B", "MDL_A")]
        pmap = reverse.position_map()
        assert pmap[3] == Aligned(3)
        assert pmap[4] == Aligned(6)
        assert pmap[6] == NearGap(7)

    def test_wrong_field_count(self):
        """FormatError names the line."""
        with pytest.raises(FormatError) as excinfo:
            parse_model_map("# header\nMDL_A 8 MDL_B 3M2I2M1D1M\n", source="maps.txt")
        assert excinfo.value.line == 2
        assert excinfo.value.source == "maps.txt"

    def test_bad_cigar(self):
        """CIGAR errors report the file and line they were read from."""
        text = "MDL_A 8 MDL_B 7 3M2I2M1D1M\nMDL_B 7 MDL_A 8 3Q\n"
        with pytest.raises(FormatError) as excinfo:
            parse_model_map(text, source="maps.mmap")
        assert excinfo.value.line == 2
        assert excinfo.value.source == "maps.mmap"
        assert excinfo.value.literal == "MDL_B 7 MDL_A 8 3Q"
        assert "maps.mmap" in str(excinfo.value)

    def test_bad_cigar_in_file(self, temp_dir):
        """Reading from disk names the file in CIGAR errors."""
        path = temp_dir / "bad.mmap"
        path.write_text("# header\nMDL_A 8 MDL_B 7 10X\n")
        with pytest.raises(FormatError) as excinfo:
            read_model_map(path)
        assert excinfo.value.line == 2
        assert excinfo.value.source == str(path)

    @pytest.mark.parametrize("length", ["\u00b2", "\u0668", "8x"])
    def test_bad_length(self, length):
        """Model lengths must be plain ASCII digits."""
        with pytest.raises(FormatError) as excinfo:
            parse_model_map(f"MDL_A {length} MDL_B 7 3M2I2M1D1M\n")
        assert excinfo.value.line == 1

    def test_duplicate_pair(self):
        """A pair listed twice is inconsistent."""
        text = "MDL_A 8 MDL_B 7 3M2I2M1D1M\nMDL_A 8 MDL_B 7 3M2I2M1D1M\n"
        with pytest.raises(ConsistencyError):
            parse_model_map(text)

    def test_read_file(self, temp_dir, sample_model_map_text):
        """Reading from disk gives the same maps."""
        path = temp_dir / "models.mmap"
        path.write_text(sample_model_map_text)
        assert read_model_map(path) == parse_model_map(sample_model_map_text)
