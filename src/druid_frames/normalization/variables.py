"""Projection of typed results into template variable values."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Union

from druid_frames.core.cells import CellKind, cell_kind
from druid_frames.core.enums import ColumnType
from druid_frames.core.models import ResultTable
from druid_frames.core.utils import (
    epoch_millis_to_timestamp,
    format_number,
    format_unix_date,
    parse_bool_literal,
    parse_canonical_timestamp,
    parse_int_literal,
    utc_now,
)
from .normalizer import coerce_float, coerce_string


logger = logging.getLogger(__name__)

VariableValue = Union[str, int, float]


@dataclass(frozen=True)
class MetricFindValue:
    """A single template variable option."""

    value: VariableValue
    text: str

    def to_dict(self) -> Dict[str, Any]:
        return {"value": self.value, "text": self.text}


def _string_option(value: Any) -> MetricFindValue:
    text = coerce_string(value)
    return MetricFindValue(value=text, text=text)


def _float_option(value: Any) -> MetricFindValue:
    number = coerce_float(value)
    return MetricFindValue(value=number, text=f"{number:f}")


def _int_option(value: Any) -> MetricFindValue:
    text = value if isinstance(value, str) else format_number(value)
    parsed = parse_int_literal(text)
    return MetricFindValue(value=0 if parsed is None else parsed, text=text)


def _bool_option(value: Any) -> MetricFindValue:
    kind = cell_kind(value)
    if kind == CellKind.BOOL:
        flag = bool(value)
    elif kind == CellKind.STR:
        flag = bool(parse_bool_literal(value))
    else:
        flag = bool(parse_bool_literal(format_number(value)))
    return MetricFindValue(value=int(flag), text="true" if flag else "false")


def _time_option(value: Any) -> MetricFindValue:
    if cell_kind(value) == CellKind.NUM:
        ts = epoch_millis_to_timestamp(value)
    else:
        parsed = parse_canonical_timestamp(value) if isinstance(value, str) else None
        ts = utc_now() if parsed is None else parsed
    # floor division keeps pre-epoch instants on the earlier second
    return MetricFindValue(value=int(ts.value // 1_000_000_000), text=format_unix_date(ts))


_PROJECTORS: Dict[ColumnType, Callable[[Any], MetricFindValue]] = {
    ColumnType.STRING: _string_option,
    ColumnType.FLOAT: _float_option,
    ColumnType.INT: _int_option,
    ColumnType.BOOL: _bool_option,
    ColumnType.TIME: _time_option,
}


def project_variables(table: ResultTable) -> List[MetricFindValue]:
    """Flatten a typed table into variable options.

    Columns are walked one after another and every non-null cell yields one
    option; null-typed columns yield nothing. Values keep the raw cells
    inference saw, so ints are parsed from their string form and times from
    the canonical format or epoch milliseconds.

    Args:
        table: Typed table produced by inference.

    Returns:
        Options in column-major order.

    Examples:
        A bool column holding ``[True, "false", None]`` yields
        ``(1, "true")`` and ``(0, "false")``.
    """
    options: List[MetricFindValue] = []
    for position, column in enumerate(table.columns):
        project: Optional[Callable[[Any], MetricFindValue]] = _PROJECTORS.get(column.type)
        if project is None:
            continue
        for value in table.column_values(position):
            if value is None:
                continue
            options.append(project(value))
    logger.debug("Projected %d variable options", len(options))
    return options


__all__ = ["MetricFindValue", "project_variables"]
