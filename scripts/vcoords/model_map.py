"""
Cross-Model Position Mapping

Two models of the same virus can be aligned to each other and the
alignment summarized as a CIGAR string. From it we build a dense table
that translates every position of the "from" model into the "to" model,
so that feature spans and alert positions computed against one model can
be reported in the other's frame.

CIGAR operations (counted from the "from" model's point of view):

    M   aligned in both models          from +1, to +1
    I   extra positions in "from"       from +1
    D   extra positions in "to"         to +1

Each map entry is either ``Aligned(pos)`` or ``NearGap(pos)``; a
``NearGap`` entry marks a "from" position with no counterpart and carries
the nearest "to" position flanking the gap (the 5' flank, or the 3' flank
when the gap opens the alignment).

Model map files list one mapping per line::

    # from  from_len  to  to_len  cigar
    NC_001477  10735  NC_001474  10723  95M1I3000M2D...
"""

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple, Union

from .coords import Coords, CoordsLike, Segment, as_segments
from .errors import ConsistencyError, FormatError, RangeError

logger = logging.getLogger(__name__)

CIGAR_RE = re.compile(r"([0-9]+)([MID])")
CIGAR_FULL_RE = re.compile(r"^([0-9]+[MID])+$")
LENGTH_RE = re.compile(r"^[0-9]+$")


@dataclass(frozen=True)
class CigarOp:
    count: int
    op: str


@dataclass(frozen=True)
class Aligned:
    """The "from" position aligns to ``pos`` in the "to" model."""
    pos: int


@dataclass(frozen=True)
class NearGap:
    """The "from" position is in a gap; ``pos`` is the nearest "to" position."""
    pos: int


MapEntry = Union[Aligned, NearGap]


@dataclass(frozen=True)
class ModelMap:
    """One mapping line from a model map file."""
    mdl_from: str
    len_from: int
    mdl_to: str
    len_to: int
    cigar: str

    def position_map(self) -> "PositionMap":
        return cigar_to_position_map(self.cigar, self.len_from, self.len_to)


# ============================================================================
# CIGAR parsing
# ============================================================================

def parse_cigar(cigar: str) -> Tuple[CigarOp, ...]:
    """
    Parse a CIGAR string of M/I/D runs.

    Raises:
        FormatError: On any other syntax, including zero-length runs

    Examples:
        >>> parse_cigar("5M2I3M")
        (CigarOp(count=5, op='M'), CigarOp(count=2, op='I'), CigarOp(count=3, op='M'))
    """
    text = cigar.strip() if isinstance(cigar, str) else ""
    if not CIGAR_FULL_RE.match(text):
        raise FormatError("unable to parse CIGAR string", literal=cigar)

    ops = tuple(CigarOp(int(count), op) for count, op in CIGAR_RE.findall(text))
    if any(op.count == 0 for op in ops):
        raise FormatError("CIGAR string has a zero-length run", literal=cigar)
    return ops


# ============================================================================
# Position map
# ============================================================================

class PositionMap:
    """
    Read-only 1-based table of ``MapEntry`` for positions ``1..len_from``.
    """

    def __init__(self, entries: Sequence[MapEntry], len_to: int):
        self._entries: Tuple[MapEntry, ...] = tuple(entries)
        self.len_to = len_to

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def len_from(self) -> int:
        return len(self._entries)

    def __getitem__(self, pos: int) -> MapEntry:
        if not isinstance(pos, int) or pos < 1 or pos > len(self._entries):
            raise RangeError(f"position {pos} outside 1..{len(self._entries)}")
        return self._entries[pos - 1]

    def __iter__(self):
        return iter(self._entries)

    def __repr__(self) -> str:
        return f"PositionMap(len_from={self.len_from}, len_to={self.len_to})"


def cigar_to_position_map(
    cigar: Union[str, Sequence[CigarOp]],
    len_from: int,
    len_to: int
) -> PositionMap:
    """
    Build the "from" -> "to" position map described by ``cigar``.

    Args:
        cigar: CIGAR string or parsed runs
        len_from: Length of the "from" model
        len_to: Length of the "to" model

    Returns:
        PositionMap with one entry per "from" position

    Raises:
        FormatError: If ``cigar`` cannot be parsed
        ConsistencyError: If the runs do not cover exactly ``len_from`` and
            ``len_to`` positions

    Examples:
        >>> pmap = cigar_to_position_map("3M2I2M1D1M", 8, 7)
        >>> [pmap[i] for i in (3, 4, 5, 6)]
        [Aligned(pos=3), NearGap(pos=3), NearGap(pos=3), Aligned(pos=4)]
    """
    ops = parse_cigar(cigar) if isinstance(cigar, str) else tuple(cigar)

    consumed_from = sum(op.count for op in ops if op.op in "MI")
    consumed_to = sum(op.count for op in ops if op.op in "MD")
    if consumed_from != len_from or consumed_to != len_to:
        raise ConsistencyError(
            f"CIGAR covers {consumed_from} 'from' and {consumed_to} 'to' positions, "
            f"expected {len_from} and {len_to}"
        )

    entries: List[MapEntry] = []
    pos_to = 1
    for op in ops:
        if op.op == "M":
            entries.extend(Aligned(pos_to + i) for i in range(op.count))
            pos_to += op.count
        elif op.op == "I":
            nearest = pos_to - 1 if pos_to > 1 else min(pos_to, len_to)
            entries.extend(NearGap(nearest) for _ in range(op.count))
        elif op.op == "D":
            pos_to += op.count
        else:
            raise FormatError("unknown CIGAR operation", literal=op.op)

    logger.debug(f"built position map {len_from} -> {len_to} from {len(ops)} CIGAR run(s)")
    return PositionMap(entries, len_to)


def map_position(pmap: PositionMap, pos: int) -> int:
    """Nearest "to" position for ``pos``, aligned or not."""
    return pmap[pos].pos


# ============================================================================
# Projection
# ============================================================================

def project_coords(pmap: PositionMap, coords: CoordsLike) -> Coords:
    """
    Re-project coords from the "from" model onto the "to" model.

    Each segment is walked position by position and split wherever an
    aligned run is interrupted: at every aligned/gap transition and at every
    jump in the "to" positions (a deletion). Gap positions have no
    counterpart and contribute nothing.

    Raises:
        RangeError: If a position lies outside the map

    Examples:
        >>> from vcoords.coords import serialize_coords
        >>> pmap = cigar_to_position_map("3M2I2M1D1M", 8, 7)
        >>> serialize_coords(project_coords(pmap, "1..8:+"))
        '1..3:+,4..5:+,7..7:+'
    """
    projected: List[Segment] = []
    for segment in as_segments(coords):
        run_start: Optional[int] = None
        run_stop: Optional[int] = None
        for pos in segment.positions():
            entry = pmap[pos]
            if isinstance(entry, Aligned):
                if run_start is not None and entry.pos == run_stop + segment.step:
                    run_stop = entry.pos
                    continue
                if run_start is not None:
                    projected.append(Segment(run_start, run_stop, segment.strand))
                run_start = run_stop = entry.pos
            elif run_start is not None:
                projected.append(Segment(run_start, run_stop, segment.strand))
                run_start = run_stop = None
        if run_start is not None:
            projected.append(Segment(run_start, run_stop, segment.strand))
    return tuple(projected)


def project_coords_endpoints(pmap: PositionMap, coords: CoordsLike) -> Coords:
    """
    Re-project coords by mapping only each segment's endpoints.

    Endpoints in gaps snap to their nearest "to" position, so every segment
    survives; used for alert positions where a location must always be
    reported.
    """
    projected: List[Segment] = []
    for segment in as_segments(coords):
        start = map_position(pmap, segment.start)
        stop = map_position(pmap, segment.stop)
        if (segment.strand == "+" and start > stop) or (segment.strand == "-" and start < stop):
            start, stop = stop, start
        projected.append(Segment(start, stop, segment.strand))
    return tuple(projected)


# ============================================================================
# Model map files
# ============================================================================

def parse_model_map(text: str, source: str = "<string>") -> Dict[Tuple[str, str], ModelMap]:
    """
    Parse model map text into ``{(mdl_from, mdl_to): ModelMap}``.

    Raises:
        FormatError: If a non-comment line does not have five fields
        ConsistencyError: If a (from, to) pair appears twice
    """
    maps: Dict[Tuple[str, str], ModelMap] = {}
    for line_no, line in enumerate(text.splitlines(), start=1):
        line = line.rstrip("\r")
        if not line.strip() or line.startswith("#"):
            continue
        fields = line.split()
        lengths_ok = len(fields) == 5 and all(LENGTH_RE.fullmatch(fields[i]) for i in (1, 3))
        if not lengths_ok:
            raise FormatError(
                "expected '<from> <from_len> <to> <to_len> <cigar>'",
                literal=line, source=source, line=line_no,
            )
        mdl_from, len_from, mdl_to, len_to, cigar = fields
        try:
            parse_cigar(cigar)
        except FormatError as err:
            raise FormatError(
                "unable to parse CIGAR string", literal=line, source=source, line=line_no,
            ) from err
        key = (mdl_from, mdl_to)
        if key in maps:
            raise ConsistencyError(
                f"two lines map model {mdl_from} to {mdl_to} in {source} (line {line_no})"
            )
        maps[key] = ModelMap(mdl_from, int(len_from), mdl_to, int(len_to), cigar)
    return maps


def read_model_map(path: Union[str, Path]) -> Dict[Tuple[str, str], ModelMap]:
    """Read a model map file (see ``parse_model_map``)."""
    path = Path(path)
    maps = parse_model_map(path.read_text(), source=str(path))
    logger.info(f"Loaded {len(maps)} model map(s) from {path}")
    return maps
