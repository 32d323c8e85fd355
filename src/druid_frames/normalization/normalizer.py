"""Cell coercion into inferred column types.

Every cell of a column is coerced into the column's type. Nulls get a
per-type substitute first, then the value is parsed; parse failures never
raise and fall back to a documented default instead:

    type    null      parse rule                               fallback
    string  ""        passthrough (other values JSON-encoded)  -
    int     "0"       strict decimal literal, numbers truncate 0
    float   0.0       native numbers, numeric strings           0.0
    bool    false     native bool, else boolean literal         false
    time    0.0       canonical timestamp, or epoch millis      now (strings),
                                                              epoch (numbers)
    null    -         always the "nil" marker                  -

Coercers accept values already in their target type unchanged, so
normalizing a normalized column is a no-op.
"""

from __future__ import annotations

import json
import logging
import math
from datetime import datetime
from typing import Any, Callable, Dict, List, Sequence

import numpy as np
import pandas as pd

from druid_frames.core.cells import CellKind, cell_kind, is_empty_cell
from druid_frames.core.enums import ColumnType
from druid_frames.core.models import NormalizedTable, ResultTable
from druid_frames.core.utils import (
    epoch_millis_to_timestamp,
    format_number,
    parse_bool_literal,
    parse_canonical_timestamp,
    parse_int_literal,
    to_nanosecond_timestamp,
    utc_now,
)
from .config import NULL_MARKER


logger = logging.getLogger(__name__)


def coerce_string(value: Any) -> str:
    kind = cell_kind(value)
    if kind == CellKind.NULL:
        return ""
    if kind == CellKind.STR:
        return value
    if kind == CellKind.NUM:
        return format_number(value)
    if kind == CellKind.BOOL:
        return "true" if value else "false"
    return json.dumps(value, default=str)


def coerce_int(value: Any) -> int:
    kind = cell_kind(value)
    if kind == CellKind.NULL:
        value, kind = "0", CellKind.STR
    if kind == CellKind.STR:
        parsed = parse_int_literal(value)
        return 0 if parsed is None else parsed
    if kind == CellKind.NUM:
        if not math.isfinite(value):
            return 0
        # out of int64 range falls back like an unparsable literal
        parsed = parse_int_literal(str(int(value)))
        return 0 if parsed is None else parsed
    if kind == CellKind.BOOL:
        return int(bool(value))
    return 0


def coerce_float(value: Any) -> float:
    kind = cell_kind(value)
    if kind in (CellKind.NUM, CellKind.BOOL):
        return float(value)
    if kind == CellKind.STR:
        try:
            return float(value)
        except ValueError:
            return 0.0
    return 0.0


def coerce_bool(value: Any) -> bool:
    kind = cell_kind(value)
    if kind == CellKind.BOOL:
        return bool(value)
    if kind == CellKind.STR:
        parsed = parse_bool_literal(value)
    elif kind == CellKind.NUM:
        parsed = parse_bool_literal(format_number(value))
    else:
        parsed = None
    return bool(parsed)


def coerce_time(value: Any) -> pd.Timestamp:
    if isinstance(value, datetime):
        ts = to_nanosecond_timestamp(value)
        return utc_now() if ts is None else ts
    kind = cell_kind(value)
    if kind == CellKind.NULL:
        value, kind = 0.0, CellKind.NUM
    if kind == CellKind.NUM:
        return epoch_millis_to_timestamp(value)
    if kind == CellKind.STR:
        parsed = parse_canonical_timestamp(value)
        return utc_now() if parsed is None else parsed
    return utc_now()


def coerce_null(value: Any) -> str:
    return NULL_MARKER


COERCERS: Dict[ColumnType, Callable[[Any], Any]] = {
    ColumnType.STRING: coerce_string,
    ColumnType.INT: coerce_int,
    ColumnType.FLOAT: coerce_float,
    ColumnType.BOOL: coerce_bool,
    ColumnType.TIME: coerce_time,
    ColumnType.NULL: coerce_null,
}


def coerce_values(values: Sequence[Any], column_type: ColumnType) -> List[Any]:
    """Coerce every value of a column into ``column_type``."""
    coerce = COERCERS[column_type]
    return [coerce(v) for v in values]


def to_series(name: str, values: List[Any], column_type: ColumnType) -> pd.Series:
    """Wrap coerced values into a Series with the column type's dtype."""
    if column_type == ColumnType.INT:
        return pd.Series(np.asarray(values, dtype=np.int64), name=name)
    if column_type == ColumnType.FLOAT:
        return pd.Series(np.asarray(values, dtype=np.float64), name=name)
    if column_type == ColumnType.BOOL:
        return pd.Series(np.asarray(values, dtype=bool), name=name)
    if column_type == ColumnType.TIME:
        return pd.Series(values, dtype="datetime64[ns, UTC]", name=name)
    return pd.Series(values, dtype=object, name=name)


def is_empty_column(values: Sequence[Any]) -> bool:
    """True when every cell is null or the empty string."""
    return all(is_empty_cell(v) for v in values)


def normalize_table(table: ResultTable) -> NormalizedTable:
    """Coerce a typed table into a DataFrame.

    Args:
        table: Rows with their inferred columns.

    Returns:
        NormalizedTable with one typed frame column per table column and the
        names of the columns whose raw cells were all empty.
    """
    series: List[pd.Series] = []
    empty: List[str] = []
    for position, column in enumerate(table.columns):
        raw = table.column_values(position)
        if is_empty_column(raw):
            empty.append(column.name)
        series.append(to_series(column.name, coerce_values(raw, column.type), column.type))

    if series:
        frame = pd.concat(series, axis=1)
        frame.columns = [c.name for c in table.columns]
    else:
        frame = pd.DataFrame()
    logger.debug(
        "Normalized %d rows x %d columns (%d empty)",
        len(frame.index),
        len(table.columns),
        len(empty),
    )
    return NormalizedTable(columns=table.columns, frame=frame, empty_columns=tuple(empty))


__all__ = [
    "COERCERS",
    "coerce_string",
    "coerce_int",
    "coerce_float",
    "coerce_bool",
    "coerce_time",
    "coerce_null",
    "coerce_values",
    "to_series",
    "is_empty_column",
    "normalize_table",
]
