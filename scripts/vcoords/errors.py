"""
Exception types shared by the coordinate library.

All errors derive from ValueError so callers that already guard numeric
parsing with ``except ValueError`` keep working.

    FormatError       malformed coords / CIGAR / indel token / ifile syntax
    RangeError        a position outside the bounds of its coordinate space
    ConsistencyError  fragments, segment counts or totals that disagree
"""

from typing import Optional


class VcoordsError(ValueError):
    """Base class for coordinate library errors."""


class FormatError(VcoordsError):
    """Input text could not be parsed."""

    def __init__(
        self,
        message: str,
        literal: Optional[str] = None,
        source: Optional[str] = None,
        line: Optional[int] = None,
    ):
        self.literal = literal
        self.source = source
        self.line = line

        where = ""
        if source is not None and line is not None:
            where = f" ({source}, line {line})"
        elif source is not None:
            where = f" ({source})"
        elif line is not None:
            where = f" (line {line})"

        text = f"{message}{where}"
        if literal is not None:
            text += f": {literal!r}"
        super().__init__(text)


class RangeError(VcoordsError):
    """A coordinate falls outside its target space."""


class ConsistencyError(VcoordsError):
    """Values that must agree with each other do not."""
