"""
Alignment Joining

A sequence is aligned in three pieces: the profile aligner handles the 5'
and 3' ends, while the middle comes from an ungapped seed region. This
module stitches the pieces into one contiguous aligned pair of rows::

    5' fragment   seq  AC-GT     ref  ACAGT     seq 1..4   mdl 1..5
    middle        seq  TTGCA                    seq 5..9   mdl 6..10
    3' fragment   seq  GG.A      ref  GGCA      seq 10..12 mdl 11..14

    joined        seq  AC-GTTTGCAGG.A
                  ref  ACAGTxxxxxGGCA

The fragments must abut exactly in both sequence and model coordinates.
No gap characters are introduced at either join point, so the joined
length is the sum of the three fragment lengths.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from .coords import CoordsLike, Segment, as_segments
from .errors import ConsistencyError, FormatError, RangeError

logger = logging.getLogger(__name__)

MIDDLE_REF_CHAR = "x"
MIDDLE_PP_CHAR = "*"


@dataclass(frozen=True)
class AlignedFragment:
    """A precomputed gapped alignment of one end of the sequence."""
    seq_coords: str
    mdl_coords: str
    seq: str
    ref: str
    pp: Optional[str] = None


@dataclass(frozen=True)
class UngappedRegion:
    """The ungapped middle region: sequence residues only."""
    seq_coords: str
    mdl_coords: str
    seq: str


@dataclass(frozen=True)
class JoinedAlignment:
    """Joined sequence, reference and (optional) posterior probability rows."""
    seq: str
    ref: str
    pp: Optional[str] = None

    def __len__(self) -> int:
        return len(self.seq)


def _span(coords: CoordsLike, label: str) -> Segment:
    segments = as_segments(coords)
    if len(segments) != 1:
        raise FormatError(f"{label} coords must be a single segment", literal=str(coords))
    if segments[0].strand != "+":
        raise ConsistencyError(f"{label} coords {segments[0]} are not on the '+' strand")
    return segments[0]


def _check_fragment(fragment: AlignedFragment, label: str):
    if len(fragment.seq) != len(fragment.ref):
        raise ConsistencyError(
            f"{label} fragment rows differ in length: seq {len(fragment.seq)}, "
            f"ref {len(fragment.ref)}"
        )
    if fragment.pp is not None and len(fragment.pp) != len(fragment.seq):
        raise ConsistencyError(
            f"{label} fragment PP row length {len(fragment.pp)} != {len(fragment.seq)}"
        )


def join_alignments(
    five_prime: Optional[AlignedFragment],
    middle: UngappedRegion,
    three_prime: Optional[AlignedFragment],
    reference: Optional[str] = None,
) -> JoinedAlignment:
    """
    Join a 5' fragment, an ungapped middle and a 3' fragment.

    Args:
        five_prime: Aligned 5' fragment, or None if the middle starts the alignment
        middle: Ungapped middle region
        three_prime: Aligned 3' fragment, or None if the middle ends the alignment
        reference: Model consensus; when given, the middle's reference row is
            the consensus over the middle's model span instead of ``x``

    Returns:
        JoinedAlignment; PP row is present only when every aligned fragment
        carries one

    Raises:
        ConsistencyError: If fragments are not exactly adjacent in sequence
            and model coordinates, or the middle is not ungapped
        RangeError: If the middle's model span lies outside ``reference``
    """
    mid_seq = _span(middle.seq_coords, "middle sequence")
    mid_mdl = _span(middle.mdl_coords, "middle model")
    if not (len(middle.seq) == mid_seq.length == mid_mdl.length):
        raise ConsistencyError(
            f"middle region is not ungapped: {len(middle.seq)} residues, "
            f"sequence span {mid_seq}, model span {mid_mdl}"
        )

    if five_prime is not None:
        _check_fragment(five_prime, "5'")
        seq5 = _span(five_prime.seq_coords, "5' sequence")
        mdl5 = _span(five_prime.mdl_coords, "5' model")
        if seq5.stop + 1 != mid_seq.start or mdl5.stop + 1 != mid_mdl.start:
            raise ConsistencyError(
                f"5' fragment (seq {seq5}, mdl {mdl5}) is not adjacent to "
                f"middle (seq {mid_seq}, mdl {mid_mdl})"
            )

    if three_prime is not None:
        _check_fragment(three_prime, "3'")
        seq3 = _span(three_prime.seq_coords, "3' sequence")
        mdl3 = _span(three_prime.mdl_coords, "3' model")
        if mid_seq.stop + 1 != seq3.start or mid_mdl.stop + 1 != mdl3.start:
            raise ConsistencyError(
                f"middle (seq {mid_seq}, mdl {mid_mdl}) is not adjacent to "
                f"3' fragment (seq {seq3}, mdl {mdl3})"
            )

    if reference is not None:
        if mid_mdl.stop > len(reference):
            raise RangeError(
                f"middle model span {mid_mdl} exceeds reference length {len(reference)}"
            )
        middle_ref = reference[mid_mdl.start - 1:mid_mdl.stop]
    else:
        middle_ref = MIDDLE_REF_CHAR * mid_mdl.length

    flanks = [f for f in (five_prime, three_prime) if f is not None]
    with_pp = all(f.pp is not None for f in flanks)

    seq_parts, ref_parts, pp_parts = [], [], []
    if five_prime is not None:
        seq_parts.append(five_prime.seq)
        ref_parts.append(five_prime.ref)
        pp_parts.append(five_prime.pp)
    seq_parts.append(middle.seq)
    ref_parts.append(middle_ref)
    pp_parts.append(MIDDLE_PP_CHAR * len(middle.seq))
    if three_prime is not None:
        seq_parts.append(three_prime.seq)
        ref_parts.append(three_prime.ref)
        pp_parts.append(three_prime.pp)

    joined = JoinedAlignment(
        seq="".join(seq_parts),
        ref="".join(ref_parts),
        pp="".join(pp_parts) if with_pp else None,
    )
    logger.debug(
        f"joined alignment: 5'={'yes' if five_prime else 'no'} "
        f"middle={mid_seq} 3'={'yes' if three_prime else 'no'} length={len(joined)}"
    )
    return joined
