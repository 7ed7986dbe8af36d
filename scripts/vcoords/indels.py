"""
Indel Token Parsing and Anchor Reconciliation

A heuristic pairwise aligner reports each hit as one ungapped *anchor*
(matching model and sequence spans) plus lists of insertion and deletion
tokens. Tokens come in two syntaxes depending on the producer version:

    Q<seq_pos>:S<mdl_pos>+<len>     insertion of <len> nt in the sequence
    Q<seq_pos>:S<mdl_pos>:+<len>    same, newer syntax
    Q<seq_pos>:S<mdl_pos>-<len>     deletion of <len> nt from the sequence

Both positions name the last aligned position *before* the indel. A
producer with nothing to report writes a sentinel such as ``BLASTNULL``;
here that becomes an empty tuple.

Reconciliation expands the anchor and tokens into parallel lists of
exactly aligned model and sequence segments:

    anchor   mdl 1..100:+   seq 3..102:+
    tokens   Q12:S10+3
    result   mdl 1..10:+,11..100:+
             seq 3..12:+,16..105:+

Invariant: sequence span - model span == net signed indel length.
"""

import logging
import re
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Tuple

from .coords import Coords, CoordsLike, Segment, as_segments
from .errors import ConsistencyError, FormatError, RangeError

logger = logging.getLogger(__name__)

INDEL_TOKEN_RE = re.compile(r"^Q([0-9]+):S([0-9]+):?([+-])([0-9]+)$")

# Literals upstream producers use for "no indels"
NO_INDEL_LITERALS = frozenset({"", "-", "BLASTNULL", "no indels", "NONE"})


@dataclass(frozen=True)
class IndelToken:
    """
    One insertion or deletion relative to an anchor.

    ``length`` is signed: positive for an insertion in the sequence,
    negative for a deletion from it.
    """
    seq_pos: int
    mdl_pos: int
    length: int

    @property
    def is_insert(self) -> bool:
        return self.length > 0

    @property
    def is_delete(self) -> bool:
        return self.length < 0

    def __str__(self) -> str:
        sign = "+" if self.length > 0 else "-"
        return f"Q{self.seq_pos}:S{self.mdl_pos}{sign}{abs(self.length)}"


# ============================================================================
# Ingestion
# ============================================================================

def parse_indel_token(token: str, kind: Optional[str] = None) -> IndelToken:
    """
    Parse one indel token in either upstream syntax.

    Args:
        token: Token such as ``"Q12:S10+3"`` or ``"Q12:S10:+3"``
        kind: ``"insert"`` or ``"delete"`` to require a matching sign

    Returns:
        IndelToken with signed length

    Raises:
        FormatError: If the token is malformed, has zero length, or its
            sign disagrees with ``kind``

    Examples:
        >>> parse_indel_token("Q12:S10+3")
        IndelToken(seq_pos=12, mdl_pos=10, length=3)
        >>> parse_indel_token("Q40:S45:-2", kind="delete")
        IndelToken(seq_pos=40, mdl_pos=45, length=-2)
    """
    if kind not in (None, "insert", "delete"):
        raise ValueError(f"kind must be 'insert' or 'delete', got {kind!r}")

    match = INDEL_TOKEN_RE.match(token.strip())
    if match is None:
        raise FormatError("unable to parse indel token", literal=token)

    seq_pos, mdl_pos, sign, length = match.groups()
    if int(length) == 0:
        raise FormatError("indel token has zero length", literal=token)
    if kind == "insert" and sign != "+":
        raise FormatError("expected '+' in insert token", literal=token)
    if kind == "delete" and sign != "-":
        raise FormatError("expected '-' in delete token", literal=token)

    signed = int(length) if sign == "+" else -int(length)
    return IndelToken(seq_pos=int(seq_pos), mdl_pos=int(mdl_pos), length=signed)


def parse_indel_string(text: Optional[str], kind: Optional[str] = None) -> Tuple[IndelToken, ...]:
    """
    Parse a ``;``-separated token list; "no indels" literals give ``()``.

    Examples:
        >>> parse_indel_string("BLASTNULL")
        ()
        >>> len(parse_indel_string("Q12:S10+3;Q50:S45+1;", kind="insert"))
        2
    """
    if text is None or text.strip() in NO_INDEL_LITERALS:
        return ()
    return tuple(
        parse_indel_token(token, kind)
        for token in text.strip().split(";")
        if token.strip()
    )


def merge_indel_tokens(
    inserts: Iterable[IndelToken],
    deletes: Iterable[IndelToken]
) -> Tuple[IndelToken, ...]:
    """
    Merge insertion and deletion tokens into anchor order.

    Raises:
        ConsistencyError: If two tokens share both positions, or if the
            sequence order and model order of the tokens disagree
    """
    merged = sorted(list(inserts) + list(deletes), key=lambda t: (t.seq_pos, t.mdl_pos))
    for previous, current in zip(merged, merged[1:]):
        if (previous.seq_pos, previous.mdl_pos) == (current.seq_pos, current.mdl_pos):
            raise ConsistencyError(
                f"indel tokens {previous} and {current} have identical positions"
            )
        if current.mdl_pos < previous.mdl_pos:
            raise ConsistencyError(
                f"indel tokens {previous} and {current} imply sequence and "
                f"model positions out of order"
            )
    return tuple(merged)


# ============================================================================
# Reconciliation
# ============================================================================

def _single_plus_segment(coords: CoordsLike, label: str) -> Segment:
    segments = as_segments(coords)
    if len(segments) != 1:
        raise FormatError(f"{label} anchor must be a single segment", literal=str(coords))
    segment = segments[0]
    if segment.strand != "+":
        raise ConsistencyError(f"{label} anchor {segment} is not on the '+' strand")
    return segment


def reconcile_indels(
    mdl_anchor: CoordsLike,
    seq_anchor: CoordsLike,
    tokens: Sequence[IndelToken] = ()
) -> Tuple[Coords, Coords]:
    """
    Expand an ungapped anchor and its indels into exact aligned segments.

    Args:
        mdl_anchor: Model-coords anchor segment (``+`` strand)
        seq_anchor: Sequence-coords anchor segment of equal length
        tokens: Indel tokens in anchor order (see ``merge_indel_tokens``);
            empty means no indels

    Returns:
        Tuple of (model coords, sequence coords) with equal segment counts;
        paired segments have equal lengths

    Raises:
        ConsistencyError: If the anchor lengths differ, tokens are out of
            order, or an aligned block before an indel has unequal model and
            sequence lengths
        RangeError: If a token lies outside the anchor

    Examples:
        >>> from vcoords.coords import serialize_coords
        >>> mdl, seq = reconcile_indels("1..100:+", "3..102:+", [IndelToken(12, 10, 3)])
        >>> serialize_coords(mdl), serialize_coords(seq)
        ('1..10:+,11..100:+', '3..12:+,16..105:+')
    """
    mdl = _single_plus_segment(mdl_anchor, "model")
    seq = _single_plus_segment(seq_anchor, "sequence")
    if mdl.length != seq.length:
        raise ConsistencyError(
            f"anchor lengths differ: model {mdl} ({mdl.length}) vs "
            f"sequence {seq} ({seq.length})"
        )

    if not tokens:
        return (mdl,), (seq,)

    mdl_segments: List[Segment] = []
    seq_segments: List[Segment] = []
    cur_mdl = mdl.start
    cur_seq = seq.start

    for token in tokens:
        if token.mdl_pos > mdl.stop or token.mdl_pos < mdl.start:
            raise RangeError(f"indel token {token} lies outside model anchor {mdl}")
        if token.mdl_pos < cur_mdl or token.seq_pos < cur_seq:
            raise ConsistencyError(
                f"indel token {token} is out of order or leaves no aligned "
                f"block before it (model cursor {cur_mdl}, sequence cursor {cur_seq})"
            )
        if token.mdl_pos - cur_mdl != token.seq_pos - cur_seq:
            raise ConsistencyError(
                f"aligned block before indel {token} has unequal lengths: "
                f"model {cur_mdl}..{token.mdl_pos}, sequence {cur_seq}..{token.seq_pos}"
            )

        mdl_segments.append(Segment(cur_mdl, token.mdl_pos, "+"))
        seq_segments.append(Segment(cur_seq, token.seq_pos, "+"))

        if token.is_insert:
            cur_mdl = token.mdl_pos + 1
            cur_seq = token.seq_pos + token.length + 1
        else:
            cur_mdl = token.mdl_pos - token.length + 1
            cur_seq = token.seq_pos + 1

    if cur_mdl > mdl.stop:
        raise RangeError(
            f"indels leave no final aligned block inside model anchor {mdl} "
            f"(model cursor {cur_mdl})"
        )
    seq_stop = cur_seq + (mdl.stop - cur_mdl)
    mdl_segments.append(Segment(cur_mdl, mdl.stop, "+"))
    seq_segments.append(Segment(cur_seq, seq_stop, "+"))

    logger.debug(
        f"reconciled anchor {mdl}/{seq} with {len(tokens)} indel(s) into "
        f"{len(mdl_segments)} aligned block(s)"
    )
    return tuple(mdl_segments), tuple(seq_segments)


def net_indel_length(tokens: Iterable[IndelToken]) -> int:
    """Sum of signed indel lengths."""
    return sum(token.length for token in tokens)
