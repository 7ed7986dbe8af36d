"""
Relative-to-Absolute Coordinate Mapping

A feature with absolute coords ``A`` (possibly spliced, either strand)
defines its own relative numbering ``1..length(A)``, counting along the
feature 5' -> 3'. This module projects coords ``R`` written in that relative
numbering back onto the absolute sequence.

Worked example (spliced, forward strand):

    A = 11..40:+,42..101:+      relative 1..30 -> 11..40, 31..90 -> 42..101
    R = 14..35:+
    result = 24..40:+,42..46:+

The mapping preserves length: ``coords_length(result) == coords_length(R)``.
"""

import logging
from typing import List

from .coords import (
    Coords,
    CoordsLike,
    Segment,
    as_segments,
    coords_length,
    merge_adjacent_segments,
    protein_to_nucleotide,
    reverse_complement,
)
from .errors import RangeError

logger = logging.getLogger(__name__)


def relative_segment_to_absolute(abs_coords: Coords, rel_segment: Segment) -> Coords:
    """
    Map one relative segment onto ``abs_coords``.

    The relative span is clipped against each absolute segment it crosses,
    producing one output segment per crossing, each on the strand of the
    absolute segment that covers it.

    Raises:
        RangeError: If the relative segment reaches past ``length(abs_coords)``
    """
    abs_length = coords_length(abs_coords)

    # map a '-' relative span as its '+' counterpart and flip back at the end
    if rel_segment.strand == "+":
        rel_start, rel_stop = rel_segment.start, rel_segment.stop
    else:
        rel_start, rel_stop = rel_segment.stop, rel_segment.start

    if rel_stop > abs_length:
        raise RangeError(
            f"relative segment {rel_segment} has position {rel_stop} beyond "
            f"absolute coords length {abs_length}"
        )

    remaining = rel_stop - rel_start + 1
    offset = rel_start - 1  # positions to skip before the span begins
    converted: List[Segment] = []

    for abs_segment in abs_coords:
        if remaining <= 0:
            break
        if offset >= abs_segment.length:
            offset -= abs_segment.length
            continue

        step = abs_segment.step
        conv_start = abs_segment.start + step * offset
        take = min(remaining, abs_segment.length - offset)
        conv_stop = conv_start + step * (take - 1)

        converted.append(Segment(conv_start, conv_stop, abs_segment.strand))
        remaining -= take
        offset = 0

    result = tuple(converted)
    if rel_segment.strand == "-":
        result = reverse_complement(result)
    return result


def relative_to_absolute(abs_coords: CoordsLike, rel_coords: CoordsLike) -> Coords:
    """
    Return absolute coords corresponding to relative coords ``rel_coords``.

    Args:
        abs_coords: Feature coords in the full sequence
        rel_coords: Coords relative to the flattened ``1..length(abs_coords)``

    Returns:
        Absolute coords; segments that touch end-to-end are merged

    Raises:
        RangeError: If ``rel_coords`` extends past ``length(abs_coords)``
        FormatError: If either coords value is malformed

    Examples:
        >>> from vcoords.coords import serialize_coords
        >>> serialize_coords(relative_to_absolute("11..100:+", "6..38:+"))
        '16..48:+'
        >>> serialize_coords(relative_to_absolute("100..11:-", "4..33:+"))
        '97..68:-'
        >>> serialize_coords(relative_to_absolute("11..40:+,42..101:+", "4..33:+"))
        '14..40:+,42..44:+'
    """
    abs_segments = as_segments(abs_coords)
    rel_segments = as_segments(rel_coords)

    converted: List[Segment] = []
    for rel_segment in rel_segments:
        converted.extend(relative_segment_to_absolute(abs_segments, rel_segment))

    result = merge_adjacent_segments(converted)
    logger.debug(
        f"relative_to_absolute: {len(rel_segments)} relative segment(s) -> "
        f"{len(result)} absolute segment(s)"
    )
    return result


def protein_relative_to_absolute(
    abs_nt_coords: CoordsLike,
    rel_pt_coords: CoordsLike
) -> Coords:
    """
    Absolute nucleotide coords for protein coords relative to a CDS.

    Examples:
        >>> from vcoords.coords import serialize_coords
        >>> serialize_coords(protein_relative_to_absolute("11..100:+", "2..11:+"))
        '14..43:+'
        >>> serialize_coords(protein_relative_to_absolute("11..40:+,42..101:+", "2..3:+,5..11:+"))
        '14..19:+,23..40:+,42..44:+'
    """
    rel_nt_coords = protein_to_nucleotide(rel_pt_coords)
    return relative_to_absolute(abs_nt_coords, rel_nt_coords)
