"""Output layouts for normalized tables.

- long: one row per record, columns as normalized (default)
- wide: long-to-wide pivot keyed by the time column, one column per
  metric and dimension combination; falls back to long on any failure
- log: adds a ``____message`` column copied from the ``message`` column
  and tags the frame for log rendering

Columns flagged empty by the normalizer are dropped when
``hide_empty_columns`` is set.
"""

from __future__ import annotations

import logging
from typing import List, Tuple

import pandas as pd

from druid_frames.core.enums import ColumnType, OutputFormat
from druid_frames.core.models import Column, NormalizedTable
from .config import (
    LOG_MESSAGE_COLUMN,
    LOG_MESSAGE_FIELD,
    LOGS_VISUALIZATION,
    PREFERRED_VISUALIZATION_ATTR,
)
from .normalizer import coerce_string


logger = logging.getLogger(__name__)

_VALUE_TYPES = (ColumnType.INT, ColumnType.FLOAT)


class PivotError(ValueError):
    """The table cannot be converted to the wide layout."""


def _visible_columns(table: NormalizedTable, hide_empty_columns: bool) -> List[Column]:
    if not hide_empty_columns:
        return list(table.columns)
    return [c for c in table.columns if c.name not in table.empty_columns]


def _select(frame: pd.DataFrame, positions: List[int]) -> pd.DataFrame:
    return frame.iloc[:, positions].copy()


def _pivot_roles(columns: List[Column]) -> Tuple[str, List[str], List[str]]:
    time_columns = [c.name for c in columns if c.type == ColumnType.TIME]
    if not time_columns:
        raise PivotError("no time column to pivot on")
    time_column = time_columns[0]
    dimensions: List[str] = []
    values: List[str] = []
    for c in columns:
        if c.name == time_column:
            continue
        if c.type == ColumnType.STRING:
            dimensions.append(c.name)
        elif c.type in _VALUE_TYPES:
            values.append(c.name)
        else:
            raise PivotError(f"unsupported {c.type.value} column {c.name!r} in wide layout")
    return time_column, dimensions, values


def _label(value: str, dimensions: List[str], key) -> str:
    key = key if isinstance(key, tuple) else (key,)
    labels = ", ".join(f"{d}={k}" for d, k in zip(dimensions, key))
    return f"{value} {{{labels}}}"


def long_to_wide(frame: pd.DataFrame, columns: List[Column]) -> pd.DataFrame:
    """Pivot a long frame into one column per metric and dimension values.

    The first time column becomes the row key, string columns are dimensions
    and numeric columns are values. Output rows are sorted by time.

    Raises:
        PivotError: If the frame has no time column, holds columns that are
            neither dimensions nor values, or repeats a time/dimension pair.

    Examples:
        A frame ``time | host | cpu`` with hosts ``a`` and ``b`` becomes
        ``time | cpu {host=a} | cpu {host=b}``.
    """
    time_column, dimensions, values = _pivot_roles(columns)
    if frame.columns.duplicated().any():
        raise PivotError("duplicate column names")
    if not dimensions:
        return frame.sort_values(time_column, kind="stable").reset_index(drop=True)
    if frame.duplicated(subset=[time_column] + dimensions).any():
        raise PivotError("duplicate time and dimension combination")

    pieces = []
    for key, group in frame.groupby(dimensions, sort=True, dropna=False):
        renamed = group.set_index(time_column)[values]
        renamed.columns = [_label(v, dimensions, key) for v in values]
        pieces.append(renamed)
    wide = pd.concat(pieces, axis=1).sort_index()
    wide.index.name = time_column
    return wide.reset_index()


def shape_frame(
    table: NormalizedTable,
    output_format: OutputFormat = OutputFormat.LONG,
    hide_empty_columns: bool = False,
) -> pd.DataFrame:
    """Arrange a normalized table into the requested output layout.

    Args:
        table: Normalizer output.
        output_format: long, wide or log.
        hide_empty_columns: Drop columns whose cells were all null or "".

    Returns:
        The output DataFrame. Log frames carry
        ``attrs["preferred_visualization"] == "logs"``.
    """
    visible = _visible_columns(table, hide_empty_columns)
    names = {c.name for c in visible}
    positions = [i for i, c in enumerate(table.columns) if c.name in names]
    frame = _select(table.frame, positions)

    if output_format == OutputFormat.LOG:
        # the message column is looked up before empty columns are hidden
        messages = [i for i, c in enumerate(table.columns)
                    if c.type == ColumnType.STRING and c.name == LOG_MESSAGE_COLUMN]
        if messages:
            source = table.frame.iloc[:, messages[0]]
            frame.insert(
                0,
                LOG_MESSAGE_FIELD,
                pd.Series([coerce_string(v) for v in source], dtype=object, index=frame.index),
                allow_duplicates=True,
            )
        if len(frame.columns) > 0:
            frame.attrs[PREFERRED_VISUALIZATION_ATTR] = LOGS_VISUALIZATION
        return frame

    if output_format == OutputFormat.WIDE and len(frame.columns) > 0:
        try:
            return long_to_wide(frame, visible)
        except (PivotError, ValueError, KeyError, TypeError) as e:
            logger.warning("Wide layout unavailable, keeping long layout: %s", e)
    return frame


__all__ = ["PivotError", "long_to_wide", "shape_frame"]
