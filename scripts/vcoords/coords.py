"""
Coordinate Model and Segment Algebra

Features are located with *coords strings*: one or more segments in
biological 5' -> 3' order, each written ``start..stop:strand``::

    1..200:+                      single segment, forward strand
    400..300:-,200..1:-           two segments, reverse strand
    1..200:+,300..400:+           spliced feature

Rules:
------
- Positions are 1-based and never zero or negative.
- On the ``+`` strand start <= stop; on the ``-`` strand start >= stop.
- Segment length is ``|stop - start| + 1``; a coords length is the sum of
  its segment lengths.
- Segment order is biological, not numeric, so a minus-strand feature
  lists its highest positions first.

Every function here is pure. Coords are handled as tuples of immutable
``Segment`` values; functions that take coords accept either that tuple
or the serialized string.
"""

import re
from dataclasses import dataclass
from typing import Iterator, List, Optional, Sequence, Tuple, Union

from .errors import FormatError, RangeError

STRANDS = ("+", "-")

SEGMENT_RE = re.compile(r"^([1-9][0-9]*)\.\.([1-9][0-9]*):([+-])$")
LOCATION_SPAN_RE = re.compile(r"^<?([0-9]+)\.\.>?([0-9]+)$")
LOCATION_POINT_RE = re.compile(r"^[<>]?([0-9]+)$")


@dataclass(frozen=True)
class Segment:
    """One contiguous (start, stop, strand) run of a feature."""
    start: int
    stop: int
    strand: str

    def __post_init__(self):
        if self.strand not in STRANDS:
            raise FormatError("strand must be '+' or '-'", literal=self.strand)
        if self.start < 1 or self.stop < 1:
            raise FormatError(
                "positions must be >= 1", literal=f"{self.start}..{self.stop}"
            )
        if self.strand == "+" and self.start > self.stop:
            raise FormatError("'+' segment has start > stop", literal=str(self))
        if self.strand == "-" and self.start < self.stop:
            raise FormatError("'-' segment has start < stop", literal=str(self))

    def __str__(self) -> str:
        return f"{self.start}..{self.stop}:{self.strand}"

    @property
    def length(self) -> int:
        return abs(self.stop - self.start) + 1

    @property
    def low(self) -> int:
        return min(self.start, self.stop)

    @property
    def high(self) -> int:
        return max(self.start, self.stop)

    @property
    def step(self) -> int:
        """+1 when walking 5' -> 3' increases the position, else -1."""
        return 1 if self.strand == "+" else -1

    def positions(self) -> Iterator[int]:
        """Positions in 5' -> 3' order."""
        return iter(range(self.start, self.stop + self.step, self.step))


Coords = Tuple[Segment, ...]
CoordsLike = Union[str, Sequence[Segment]]


# ============================================================================
# Parsing and serialization
# ============================================================================

def parse_segment(token: str) -> Segment:
    """
    Parse one ``start..stop:strand`` token.

    Raises:
        FormatError: If the token is malformed
    """
    match = SEGMENT_RE.fullmatch(token) if isinstance(token, str) else None
    if match is None:
        raise FormatError("unable to parse coords segment", literal=token)
    return Segment(int(match.group(1)), int(match.group(2)), match.group(3))


def parse_coords(text: str) -> Coords:
    """
    Parse a comma-separated coords string into segments.

    Args:
        text: Coords string such as ``"1..200:+,300..400:+"``

    Returns:
        Tuple of Segment in the order given

    Raises:
        FormatError: If the string is empty or any token is malformed

    Examples:
        >>> parse_coords("11..40:+,42..101:+")
        (Segment(start=11, stop=40, strand='+'), Segment(start=42, stop=101, strand='+'))
    """
    if not isinstance(text, str) or not text.strip():
        raise FormatError("empty coords string", literal=text)
    return tuple(parse_segment(token) for token in text.split(","))


def serialize_coords(segments: Sequence[Segment]) -> str:
    """
    Serialize segments to a coords string.

    Examples:
        >>> serialize_coords(parse_coords("200..1:-"))
        '200..1:-'
    """
    return ",".join(str(segment) for segment in segments)


def as_segments(coords: CoordsLike) -> Coords:
    """Return ``coords`` as a tuple of Segment, parsing strings."""
    if isinstance(coords, str):
        return parse_coords(coords)
    segments = tuple(coords)
    if not segments:
        raise FormatError("empty coords", literal="")
    return segments


def append_segment(coords: Optional[str], segment: Union[str, Segment]) -> str:
    """Append a segment to a possibly empty coords string."""
    if not coords:
        return str(segment)
    return f"{coords},{segment}"


# ============================================================================
# Measurement
# ============================================================================

def coords_length(coords: CoordsLike) -> int:
    """
    Total length of all segments.

    Examples:
        >>> coords_length("1..200:+,300..400:+")
        301
    """
    return sum(segment.length for segment in as_segments(coords))


def coords_min(coords: CoordsLike) -> int:
    """Smallest position covered by ``coords``."""
    return min(segment.low for segment in as_segments(coords))


def coords_max(coords: CoordsLike) -> int:
    """Largest position covered by ``coords``."""
    return max(segment.high for segment in as_segments(coords))


def summary_strand(coords: CoordsLike) -> str:
    """'+' or '-' if every segment shares that strand, else '!'."""
    strands = {segment.strand for segment in as_segments(coords)}
    if len(strands) == 1:
        return strands.pop()
    return "!"


def max_length_segment(coords: CoordsLike) -> Tuple[Segment, int]:
    """
    Return the longest segment and its length.

    Ties go to the first segment of maximum length.

    Examples:
        >>> max_length_segment("1..3:+,4..6:+,20..21:+")
        (Segment(start=1, stop=3, strand='+'), 3)
    """
    segments = as_segments(coords)
    best = segments[0]
    for segment in segments[1:]:
        if segment.length > best.length:
            best = segment
    return best, best.length


# ============================================================================
# Reverse complement
# ============================================================================

def reverse_complement_segment(
    segment: Segment,
    total_length: Optional[int] = None
) -> Segment:
    """
    Reverse complement a single segment.

    With ``total_length`` each position ``p`` becomes ``total_length - p + 1``
    (the same nucleotide addressed from the other strand's 5' end).
    Without it, positions are kept and only orientation flips.

    Raises:
        RangeError: If a position exceeds ``total_length``
    """
    strand = "-" if segment.strand == "+" else "+"
    if total_length is None:
        return Segment(segment.stop, segment.start, strand)

    if segment.high > total_length:
        raise RangeError(
            f"segment {segment} exceeds sequence length {total_length}"
        )
    return Segment(
        total_length - segment.start + 1,
        total_length - segment.stop + 1,
        strand,
    )


def reverse_complement(
    coords: CoordsLike,
    total_length: Optional[int] = None
) -> Coords:
    """
    Reverse complement coords: reverse segment order and flip each segment.

    Args:
        coords: Coords to reverse complement
        total_length: Length of the underlying sequence; when given,
            positions are mirrored onto the opposite strand's numbering

    Returns:
        Reverse-complemented segments; applying twice restores the input

    Examples:
        >>> serialize_coords(reverse_complement("1..200:+,300..400:+"))
        '400..300:-,200..1:-'
        >>> serialize_coords(reverse_complement("1..10:+", 100))
        '100..91:-'
    """
    return tuple(
        reverse_complement_segment(segment, total_length)
        for segment in reversed(as_segments(coords))
    )


# ============================================================================
# Overlap, spanning and coverage
# ============================================================================

def segment_overlap(a: Segment, b: Segment) -> int:
    """Number of positions shared by two segments on the same strand."""
    if a.strand != b.strand:
        return 0
    return max(0, min(a.high, b.high) - max(a.low, b.low) + 1)


def coords_spans(outer: CoordsLike, inner: CoordsLike) -> bool:
    """True if every segment of ``inner`` lies inside one segment of ``outer``."""
    outer_segments = as_segments(outer)
    for segment in as_segments(inner):
        if not any(
            segment_overlap(segment, candidate) == segment.length
            for candidate in outer_segments
        ):
            return False
    return True


def coords_missing(coords: CoordsLike, strand: str, total_length: int) -> Coords:
    """
    Intervals of ``1..total_length`` on ``strand`` not covered by ``coords``.

    Returned segments are in ascending position order and written on
    ``strand`` (so '-' segments have start >= stop).

    Raises:
        RangeError: If any position of ``coords`` exceeds ``total_length``
    """
    if strand not in STRANDS:
        raise FormatError("strand must be '+' or '-'", literal=strand)

    covered = [False] * (total_length + 1)
    for segment in as_segments(coords):
        if segment.high > total_length:
            raise RangeError(
                f"segment {segment} exceeds sequence length {total_length}"
            )
        if segment.strand == strand:
            for pos in range(segment.low, segment.high + 1):
                covered[pos] = True

    missing: List[Segment] = []
    pos = 1
    while pos <= total_length:
        if covered[pos]:
            pos += 1
            continue
        start = pos
        while pos + 1 <= total_length and not covered[pos + 1]:
            pos += 1
        if strand == "+":
            missing.append(Segment(start, pos, strand))
        else:
            missing.append(Segment(pos, start, strand))
        pos += 1

    return tuple(missing)


def merge_adjacent_segments(coords: CoordsLike) -> Coords:
    """
    Merge consecutive segments that continue one another on the same strand.

    Examples:
        >>> serialize_coords(merge_adjacent_segments("1..10:+,11..20:+,30..40:+"))
        '1..20:+,30..40:+'
    """
    segments = as_segments(coords)
    merged = [segments[0]]
    for segment in segments[1:]:
        previous = merged[-1]
        if (
            previous.strand == segment.strand
            and segment.start == previous.stop + previous.step
        ):
            merged[-1] = Segment(previous.start, segment.stop, segment.strand)
        else:
            merged.append(segment)
    return tuple(merged)


# ============================================================================
# Conversions
# ============================================================================

def coords_from_location(location: str) -> Coords:
    """
    Convert a GenBank location string to coords; carets are dropped.

    Examples:
        >>> serialize_coords(coords_from_location("complement(join(1..200,300..400))"))
        '400..300:-,200..1:-'
        >>> serialize_coords(coords_from_location("join(1..200,complement(<300..400))"))
        '1..200:+,400..300:-'
    """
    return tuple(_location_segments(location.strip(), location))


def _location_segments(location: str, original: str) -> List[Segment]:
    if location.startswith("join(") and location.endswith(")"):
        return _location_segments(location[5:-1], original)

    if location.startswith("complement(") and location.endswith(")"):
        inner = _location_segments(location[11:-1], original)
        return list(reverse_complement(inner))

    parts = _split_top_level(location)
    if len(parts) > 1:
        segments: List[Segment] = []
        for part in parts:
            segments.extend(_location_segments(part, original))
        return segments

    span = LOCATION_SPAN_RE.match(location)
    if span:
        return [Segment(int(span.group(1)), int(span.group(2)), "+")]
    point = LOCATION_POINT_RE.match(location)
    if point:
        pos = int(point.group(1))
        return [Segment(pos, pos, "+")]

    raise FormatError("unable to parse location", literal=original)


def _split_top_level(text: str) -> List[str]:
    """Split on commas that are not nested inside parentheses."""
    parts = []
    depth = 0
    current = []
    for char in text:
        if char == "(":
            depth += 1
        elif char == ")":
            depth -= 1
        if char == "," and depth == 0:
            parts.append("".join(current))
            current = []
        else:
            current.append(char)
    parts.append("".join(current))
    return parts


def protein_to_nucleotide(coords: CoordsLike) -> Coords:
    """
    Convert protein (amino acid) coords to relative nucleotide coords.

    A protein start maps to the first nucleotide of its codon and a
    protein stop to the third.

    Raises:
        FormatError: If any segment is not on the '+' strand

    Examples:
        >>> serialize_coords(protein_to_nucleotide("1..10:+,15..30:+"))
        '1..30:+,43..90:+'
    """
    nucleotide = []
    for segment in as_segments(coords):
        if segment.strand != "+":
            raise FormatError(
                "protein coords must be on the '+' strand", literal=str(segment)
            )
        nucleotide.append(Segment(segment.start * 3 - 2, segment.stop * 3, "+"))
    return tuple(nucleotide)
