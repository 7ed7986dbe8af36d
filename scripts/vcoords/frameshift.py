"""
Frameshift Detection

For each aligned column of a CDS we record the *implied frame*: which
codon position (1, 2 or 3) the sequence residue would occupy if the
sequence were read in the model's frame from the CDS start. Insertion and
deletion columns carry ``'i'`` and ``'d'`` instead of a frame::

    ref   ATGAAACCCGGG-TTTAAACCCGGG
    seq   ATGAAACCCGGGATTTAAACCCGGG
    frame 111111111111i222222222222

The *dominant frame* is the most frequent numeric value. A *frameshift run*
is a maximal span of columns disagreeing with it:

- indel columns never change state on their own
- indel columns directly before the first shifted column start the run
- indel columns between the last shifted column and the restoring one
  belong to the run
- a run closed by a dominant column is restored ("fixed"); a run still open
  at the CDS end is "not fixed"

Runs shorter than a minimum number of sequence nucleotides are dropped;
runs touching either end of the CDS use a separate (terminal) minimum.
"""

import logging
from collections import Counter
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple, Union

import numpy as np
import pandas as pd

from .coords import Coords, CoordsLike, Segment, as_segments, merge_adjacent_segments
from .errors import ConsistencyError, FormatError

logger = logging.getLogger(__name__)

GAP_CHARS = frozenset("-.~")
PP_DIGITS = frozenset("0123456789")
INSERT_FRAME = "i"
DELETE_FRAME = "d"

FRAMESHIFT_COLUMNS = [
    "seq_coords", "strand", "mdl_coords", "seq_length", "inserted", "deleted",
    "net", "mean_confidence", "dominant_frame", "shifted_frame", "status",
]


@dataclass(frozen=True)
class FrameshiftPolicy:
    """Minimum run lengths, in sequence nucleotides."""
    min_internal_length: int = 6
    min_terminal_length: int = 4

    def __post_init__(self):
        if self.min_internal_length < 1 or self.min_terminal_length < 1:
            raise ValueError(
                f"frameshift minimum lengths must be >= 1, got "
                f"{self.min_internal_length}/{self.min_terminal_length}"
            )


@dataclass(frozen=True)
class FrameColumn:
    """
    One aligned column of a CDS.

    ``frame`` is 1, 2, 3, ``'i'`` or ``'d'``; ``seq_pos`` is None for
    deletion columns and ``mdl_pos`` is None for insertion columns.
    """
    frame: Union[int, str]
    seq_pos: Optional[int]
    mdl_pos: Optional[int]
    confidence: Optional[float] = None

    @property
    def is_indel(self) -> bool:
        return self.frame in (INSERT_FRAME, DELETE_FRAME)


@dataclass(frozen=True)
class FrameshiftRun:
    """A reported frame-inconsistent span."""
    seq_coords: Coords
    strand: str
    mdl_coords: Coords
    inserted: int
    deleted: int
    mean_confidence: Optional[float]
    dominant_frame: int
    shifted_frame: int
    restored: bool

    @property
    def net(self) -> int:
        return self.inserted - self.deleted

    @property
    def seq_length(self) -> int:
        return sum(segment.length for segment in self.seq_coords)

    @property
    def status(self) -> str:
        return "fixed" if self.restored else "not fixed"


# ============================================================================
# Frame track construction
# ============================================================================

def pp_to_confidence(char: str) -> Optional[float]:
    """
    Posterior probability character to a confidence value.

    ``'0'``-``'9'`` give the midpoint of their tenth, ``'*'`` gives 0.975 and
    gap characters give None.

    Examples:
        >>> pp_to_confidence("7")
        0.75
        >>> pp_to_confidence("*")
        0.975
    """
    if char in GAP_CHARS:
        return None
    if char == "*":
        return 0.975
    if char in PP_DIGITS:
        return int(char) / 10 + 0.05
    raise FormatError("unexpected posterior probability character", literal=char)


def _positions(coords: CoordsLike) -> List[int]:
    positions: List[int] = []
    for segment in as_segments(coords):
        positions.extend(segment.positions())
    return positions


def frame_track_from_alignment(
    seq_row: str,
    ref_row: str,
    seq_coords: CoordsLike,
    mdl_coords: CoordsLike,
    pp_row: Optional[str] = None
) -> Tuple[FrameColumn, ...]:
    """
    Build the frame track of a CDS from its aligned rows.

    Args:
        seq_row: Aligned sequence row covering the CDS
        ref_row: Aligned reference (model) row, same length
        seq_coords: Sequence positions the residues of ``seq_row`` occupy
        mdl_coords: Model positions (the CDS) the residues of ``ref_row`` occupy
        pp_row: Optional posterior probability row

    Returns:
        One FrameColumn per column that is not a gap in both rows

    Raises:
        ConsistencyError: If row lengths differ or the residue counts
            disagree with the coords lengths
    """
    if len(seq_row) != len(ref_row):
        raise ConsistencyError(
            f"aligned rows differ in length: seq {len(seq_row)}, ref {len(ref_row)}"
        )
    if pp_row is not None and len(pp_row) != len(seq_row):
        raise ConsistencyError(
            f"PP row length {len(pp_row)} != aligned row length {len(seq_row)}"
        )

    seq_positions = _positions(seq_coords)
    mdl_positions = _positions(mdl_coords)
    seq_residues = sum(1 for c in seq_row if c not in GAP_CHARS)
    ref_residues = sum(1 for c in ref_row if c not in GAP_CHARS)
    if seq_residues != len(seq_positions) or ref_residues != len(mdl_positions):
        raise ConsistencyError(
            f"aligned rows hold {seq_residues} sequence and {ref_residues} model "
            f"residues but coords cover {len(seq_positions)} and {len(mdl_positions)}"
        )

    track: List[FrameColumn] = []
    seq_offset = 0
    mdl_offset = 0
    for idx, (seq_char, ref_char) in enumerate(zip(seq_row, ref_row)):
        seq_gap = seq_char in GAP_CHARS
        ref_gap = ref_char in GAP_CHARS
        if seq_gap and ref_gap:
            continue
        confidence = pp_to_confidence(pp_row[idx]) if pp_row is not None else None

        if ref_gap:
            track.append(FrameColumn(INSERT_FRAME, seq_positions[seq_offset], None, confidence))
            seq_offset += 1
        elif seq_gap:
            track.append(FrameColumn(DELETE_FRAME, None, mdl_positions[mdl_offset], confidence))
            mdl_offset += 1
        else:
            frame = ((seq_offset - mdl_offset) % 3) + 1
            track.append(FrameColumn(
                frame, seq_positions[seq_offset], mdl_positions[mdl_offset], confidence
            ))
            seq_offset += 1
            mdl_offset += 1

    return tuple(track)


# ============================================================================
# Detection
# ============================================================================

def dominant_frame(track: Sequence[FrameColumn]) -> int:
    """
    Most frequent numeric frame; ties go to the frame seen first.

    Raises:
        ConsistencyError: If the track has no numeric column
    """
    counts = Counter(column.frame for column in track if not column.is_indel)
    if not counts:
        raise ConsistencyError("frame track has no aligned (numeric) column")
    return counts.most_common(1)[0][0]


def _span_coords(positions: List[int], strand: str) -> Coords:
    if not positions:
        return ()
    return merge_adjacent_segments([Segment(pos, pos, strand) for pos in positions])


def _model_strand(track: Sequence[FrameColumn]) -> str:
    """Strand of the model positions, read from their order along the track."""
    positions = [c.mdl_pos for c in track if c.mdl_pos is not None]
    if len(positions) > 1 and positions[-1] < positions[0]:
        return "-"
    return "+"


def _build_run(
    track: Sequence[FrameColumn],
    start: int,
    stop: int,
    strand: str,
    mdl_strand: str,
    dominant: int,
    restored: bool
) -> FrameshiftRun:
    columns = track[start:stop + 1]
    seq_positions = [c.seq_pos for c in columns if c.seq_pos is not None]
    mdl_positions = [c.mdl_pos for c in columns if c.mdl_pos is not None]
    confidences = [c.confidence for c in columns if c.confidence is not None]
    shifted = next(c.frame for c in columns if not c.is_indel)

    return FrameshiftRun(
        seq_coords=_span_coords(seq_positions, strand),
        strand=strand,
        mdl_coords=_span_coords(mdl_positions, mdl_strand),
        inserted=sum(1 for c in columns if c.frame == INSERT_FRAME),
        deleted=sum(1 for c in columns if c.frame == DELETE_FRAME),
        mean_confidence=float(np.mean(confidences)) if confidences else None,
        dominant_frame=dominant,
        shifted_frame=shifted,
        restored=restored,
    )


def detect_frameshifts(
    track: Sequence[FrameColumn],
    strand: str = "+",
    policy: FrameshiftPolicy = FrameshiftPolicy(),
    log: Optional[logging.Logger] = None
) -> Tuple[FrameshiftRun, ...]:
    """
    Find runs of columns whose frame disagrees with the dominant frame.

    Args:
        track: Frame track of one CDS in 5' -> 3' order
        strand: Strand of the sequence positions in ``track``
        policy: Minimum run lengths
        log: Logger for per-run diagnostics (module logger by default)

    Returns:
        Runs in track order that meet the policy minimums

    Raises:
        ConsistencyError: If the track has no numeric column
    """
    log = log or logger
    dominant = dominant_frame(track)
    mdl_strand = _model_strand(track)

    spans: List[Tuple[int, int, bool]] = []
    run_start: Optional[int] = None
    pending_indel: Optional[int] = None

    for idx, column in enumerate(track):
        if column.is_indel:
            if run_start is None and pending_indel is None:
                pending_indel = idx
            continue
        if run_start is None:
            if column.frame != dominant:
                run_start = pending_indel if pending_indel is not None else idx
            pending_indel = None
        elif column.frame == dominant:
            spans.append((run_start, idx - 1, True))
            run_start = None

    if run_start is not None:
        spans.append((run_start, len(track) - 1, False))

    last = len(track) - 1
    runs: List[FrameshiftRun] = []
    for start, stop, restored in spans:
        run = _build_run(track, start, stop, strand, mdl_strand, dominant, restored)
        terminal = start == 0 or stop == last
        minimum = policy.min_terminal_length if terminal else policy.min_internal_length
        if run.seq_length < minimum:
            log.debug(
                f"dropping frameshift run at columns {start + 1}..{stop + 1}: "
                f"{run.seq_length} nt < {minimum}"
            )
            continue
        runs.append(run)

    log.debug(
        f"frame track of {len(track)} columns: dominant frame {dominant}, "
        f"{len(runs)} frameshift run(s) reported"
    )
    return tuple(runs)


def frameshift_runs_to_frame(runs: Sequence[FrameshiftRun]) -> pd.DataFrame:
    """Tabulate runs for the feature table / alert report generator."""
    if not runs:
        return pd.DataFrame(columns=FRAMESHIFT_COLUMNS)

    rows = []
    for run in runs:
        rows.append({
            "seq_coords": ",".join(str(s) for s in run.seq_coords),
            "strand": run.strand,
            "mdl_coords": ",".join(str(s) for s in run.mdl_coords),
            "seq_length": run.seq_length,
            "inserted": run.inserted,
            "deleted": run.deleted,
            "net": run.net,
            "mean_confidence": run.mean_confidence if run.mean_confidence is not None else np.nan,
            "dominant_frame": run.dominant_frame,
            "shifted_frame": run.shifted_frame,
            "status": run.status,
        })
    return pd.DataFrame(rows, columns=FRAMESHIFT_COLUMNS)
