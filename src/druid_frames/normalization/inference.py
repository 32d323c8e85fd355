"""Column type inference by sampling.

Druid responses carry no schema for most query types, so each column's type
is decided from a handful of evenly spaced rows rather than a full scan:

1. Sample at most SAMPLE_SIZE rows with stride ``ceil(row_count / SAMPLE_SIZE)``.
2. Turn every sampled cell into a vote:
   - string cells vote int, bool, time or string, tried in that order
   - numeric cells vote time in ``__time``/``*time_*`` columns, float elsewhere
   - boolean cells vote bool
   - null and nested cells do not vote
3. Tally the votes on top of a ``nil`` seed bucket and elect the most voted
   category. A tally holding only the seed (nothing voted) falls back to
   DEFAULT_COLUMN_TYPE.
"""

from __future__ import annotations

import logging
import math
from typing import Any, Dict, List, Optional, Sequence

from druid_frames.core.cells import CellKind, cell_kind
from druid_frames.core.enums import ColumnType
from druid_frames.core.models import Column, ResultTable, UnpackedResult
from druid_frames.core.utils import (
    parse_bool_literal,
    parse_canonical_datetime,
    parse_int_literal,
)
from .config import (
    DEFAULT_COLUMN_TYPE,
    NIL_VOTE,
    SAMPLE_SIZE,
    TIME_COLUMN_MARKER,
    TIME_COLUMN_NAME,
)


logger = logging.getLogger(__name__)


def sample_positions(row_count: int, sample_size: int = SAMPLE_SIZE) -> range:
    """Row positions sampled for inference.

    Examples:
        >>> list(sample_positions(12))
        [0, 3, 6, 9]
        >>> list(sample_positions(4))
        [0, 1, 2, 3]
    """
    if row_count <= 0:
        return range(0)
    stride = math.ceil(row_count / sample_size)
    return range(0, row_count, stride)


def is_time_column(name: str) -> bool:
    """True when numeric cells of the column hold epoch milliseconds."""
    return name == TIME_COLUMN_NAME or TIME_COLUMN_MARKER in name.lower()


def classify_vote(value: Any, column_name: str) -> Optional[ColumnType]:
    """Return the category a single cell votes for, or None for no vote."""
    kind = cell_kind(value)
    if kind == CellKind.STR:
        if parse_int_literal(value) is not None:
            return ColumnType.INT
        if parse_bool_literal(value) is not None:
            return ColumnType.BOOL
        if parse_canonical_datetime(value) is not None:
            return ColumnType.TIME
        return ColumnType.STRING
    if kind == CellKind.NUM:
        return ColumnType.TIME if is_time_column(column_name) else ColumnType.FLOAT
    if kind == CellKind.BOOL:
        return ColumnType.BOOL
    return None


def tally_votes(sampled: Sequence[Any], column_name: str) -> Dict[str, int]:
    """Count votes of already sampled cells, seeded with an empty ``nil`` bucket."""
    tally: Dict[str, int] = {NIL_VOTE: 0}
    for value in sampled:
        vote = classify_vote(value, column_name)
        if vote is None:
            continue
        tally[vote.value] = tally.get(vote.value, 0) + 1
    return tally


def elect(tally: Dict[str, int]) -> ColumnType:
    """Elect the column type from a vote tally.

    The most voted category wins once the tally holds at least two distinct
    categories (the seed plus anything observed); ties go to the category
    observed first.

    Examples:
        >>> elect({"nil": 0, "int": 3, "string": 1})
        <ColumnType.INT: 'int'>
        >>> elect({"nil": 0})
        <ColumnType.STRING: 'string'>
    """
    if len(tally) < 2:
        return DEFAULT_COLUMN_TYPE
    winner = max(tally, key=tally.__getitem__)
    if winner == NIL_VOTE:
        return DEFAULT_COLUMN_TYPE
    return ColumnType(winner)


def infer_column_type(column_name: str, values: Sequence[Any]) -> ColumnType:
    """Infer the semantic type of one column from all of its cells."""
    sampled = [values[p] for p in sample_positions(len(values))]
    return elect(tally_votes(sampled, column_name))


def infer_types(unpacked: UnpackedResult) -> ResultTable:
    """Build a typed ResultTable from an unpacked result.

    Returns:
        ResultTable whose columns carry the inferred types; rows are shared
        with ``unpacked``, not copied.
    """
    sampled_rows = [unpacked.rows[p] for p in sample_positions(unpacked.row_count)]
    columns: List[Column] = []
    for position, name in enumerate(unpacked.column_names):
        sampled = [row[position] for row in sampled_rows]
        column_type = elect(tally_votes(sampled, name))
        columns.append(Column(name=name, type=column_type))
    logger.debug(
        "Inferred column types: %s",
        ", ".join(f"{c.name}={c.type.value}" for c in columns),
    )
    return ResultTable(columns=tuple(columns), rows=unpacked.rows)


__all__ = [
    "sample_positions",
    "is_time_column",
    "classify_vote",
    "tally_votes",
    "elect",
    "infer_column_type",
    "infer_types",
]
