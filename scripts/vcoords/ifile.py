"""
Insert-File (ifile) Codec

The profile aligner can write a ledger of the inserts it placed relative
to each model. The format is whitespace separated and line oriented:

    # comment
    NC_039477 7567                                   model header
    JQ911595.1 7511 3 7513  2560 2553 3  2583 2579 3  record

A model header is ``<model> <model_length>``. A record is
``<seqname> <seqlen> <spos> <epos>`` followed by zero or more
``<mpos> <seq_pos> <len>`` triples:

    spos, epos   first and last model positions of the alignment
    mpos         model position after which the insert occurs (0 = before
                 the first model position)
    seq_pos      sequence position of the first inserted residue
    len          length of the insert

Records belong to the most recent model header. Writing groups records
under one header per model, so parse -> write -> parse gives back the same
records.
"""

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, List, Sequence, Tuple, Union

import pandas as pd

from .errors import ConsistencyError, FormatError

logger = logging.getLogger(__name__)

NUMBER_RE = re.compile(r"^[0-9]+$")

IFILE_COLUMNS = [
    "model", "model_length", "sequence", "sequence_length", "spos", "epos",
    "n_inserts", "inserted_length", "inserts",
]


@dataclass(frozen=True)
class Insert:
    model_pos: int
    seq_pos: int
    length: int

    def __str__(self) -> str:
        return f"{self.model_pos}:{self.seq_pos}:{self.length}"


@dataclass(frozen=True)
class InsertRecord:
    """One sequence's alignment span and inserts relative to a model."""
    model: str
    model_length: int
    sequence: str
    sequence_length: int
    spos: int
    epos: int
    inserts: Tuple[Insert, ...] = ()

    @property
    def inserted_length(self) -> int:
        return sum(ins.length for ins in self.inserts)


def insert_string(record: InsertRecord) -> str:
    """
    Summary form of a record's inserts: ``mpos:seq_pos:len;`` per insert.

    Examples:
        >>> rec = InsertRecord("NC_039477", 7567, "JQ911595.1", 7511, 3, 7513,
        ...                    (Insert(2560, 2553, 3), Insert(2583, 2579, 3)))
        >>> insert_string(rec)
        '2560:2553:3;2583:2579:3;'
    """
    return "".join(f"{ins};" for ins in record.inserts)


# ============================================================================
# Parsing
# ============================================================================

def _to_int(token: str, what: str, line: str, source: str, line_no: int) -> int:
    if NUMBER_RE.fullmatch(token) is None:
        raise FormatError(
            f"{what} is not a non-negative integer ({token!r})",
            literal=line, source=source, line=line_no,
        )
    return int(token)


def parse_ifile_text(text: str, source: str = "<string>") -> List[InsertRecord]:
    """
    Parse ifile text.

    Args:
        text: ifile contents
        source: Name reported in errors (file path, usually)

    Returns:
        Records in file order

    Raises:
        FormatError: On a wrong token count, a malformed number, an insert
            outside the model, or a record before any model header
    """
    records: List[InsertRecord] = []
    model = None
    model_length = 0

    for line_no, raw in enumerate(text.split("\n"), start=1):
        line = raw.rstrip("\r")
        if not line.strip() or line.startswith("#"):
            continue
        fields = line.split()

        if len(fields) == 2:
            model = fields[0]
            model_length = _to_int(fields[1], "model length", line, source, line_no)
            continue

        if len(fields) < 4 or (len(fields) - 4) % 3 != 0:
            raise FormatError(
                f"unexpected number of fields ({len(fields)})",
                literal=line, source=source, line=line_no,
            )
        if model is None:
            raise FormatError(
                "record appears before any model header",
                literal=line, source=source, line=line_no,
            )

        seq_len = _to_int(fields[1], "sequence length", line, source, line_no)
        spos = _to_int(fields[2], "model start", line, source, line_no)
        epos = _to_int(fields[3], "model end", line, source, line_no)

        inserts = []
        for idx in range(4, len(fields), 3):
            mpos = _to_int(fields[idx], "insert model position", line, source, line_no)
            ins_spos = _to_int(fields[idx + 1], "insert sequence position", line, source, line_no)
            ins_len = _to_int(fields[idx + 2], "insert length", line, source, line_no)
            if mpos > model_length:
                raise FormatError(
                    f"insert after model position {mpos} but {model} has length {model_length}",
                    literal=line, source=source, line=line_no,
                )
            inserts.append(Insert(mpos, ins_spos, ins_len))

        records.append(InsertRecord(
            model=model,
            model_length=model_length,
            sequence=fields[0],
            sequence_length=seq_len,
            spos=spos,
            epos=epos,
            inserts=tuple(inserts),
        ))

    logger.debug(f"parsed {len(records)} ifile record(s) from {source}")
    return records


def parse_ifile(path: Union[str, Path]) -> List[InsertRecord]:
    """Read an ifile from disk."""
    path = Path(path)
    records = parse_ifile_text(path.read_text(), source=str(path))
    logger.info(f"Loaded {len(records)} insert record(s) from {path}")
    return records


# ============================================================================
# Writing
# ============================================================================

def _group_by_model(records: Iterable[InsertRecord]) -> Dict[Tuple[str, int], List[InsertRecord]]:
    groups: Dict[Tuple[str, int], List[InsertRecord]] = {}
    lengths: Dict[str, int] = {}
    for record in records:
        known = lengths.setdefault(record.model, record.model_length)
        if known != record.model_length:
            raise ConsistencyError(
                f"model {record.model} given lengths {known} and {record.model_length}"
            )
        groups.setdefault((record.model, record.model_length), []).append(record)
    return groups


def write_ifile_text(records: Sequence[InsertRecord]) -> str:
    """
    Serialize records, one header per model in first-seen order.

    Raises:
        ConsistencyError: If one model appears with two different lengths
    """
    lines = []
    for (model, model_length), group in _group_by_model(records).items():
        lines.append(f"{model} {model_length}")
        for record in group:
            line = f"{record.sequence} {record.sequence_length} {record.spos} {record.epos}"
            line += "".join(
                f"  {ins.model_pos} {ins.seq_pos} {ins.length}" for ins in record.inserts
            )
            lines.append(line)
    return "".join(f"{line}\n" for line in lines)


def write_ifile(records: Sequence[InsertRecord], path: Union[str, Path]):
    path = Path(path)
    path.write_text(write_ifile_text(records))
    logger.info(f"Wrote {len(records)} insert record(s) to {path}")


def ifile_records_to_frame(records: Sequence[InsertRecord]) -> pd.DataFrame:
    """One row per record, inserts in summary string form."""
    if not records:
        return pd.DataFrame(columns=IFILE_COLUMNS)

    rows = []
    for record in records:
        rows.append({
            "model": record.model,
            "model_length": record.model_length,
            "sequence": record.sequence,
            "sequence_length": record.sequence_length,
            "spos": record.spos,
            "epos": record.epos,
            "n_inserts": len(record.inserts),
            "inserted_length": record.inserted_length,
            "inserts": insert_string(record),
        })
    return pd.DataFrame(rows, columns=IFILE_COLUMNS)
