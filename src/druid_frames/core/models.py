"""Table data models.

The pipeline builds tables in phases, each producing a new value:

- UnpackedResult: column names plus raw rows, straight from a shape unpacker
- ResultTable: the same rows with an immutable typed column list
- NormalizedTable: a typed pandas DataFrame plus the columns found empty
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List, Tuple

import pandas as pd

from .enums import ColumnType


@dataclass(frozen=True)
class Column:
    """A named result column with its inferred semantic type.

    Examples:
        >>> Column(name="count", type=ColumnType.FLOAT)
        Column(name='count', type=<ColumnType.FLOAT: 'float'>)
    """

    name: str
    type: ColumnType


@dataclass
class UnpackedResult:
    """Untyped table produced by a shape unpacker.

    Attributes:
        column_names: Column names in deterministic (first-seen) order.
        rows: Raw JSON cells, one list per row, aligned with ``column_names``.
    """

    column_names: List[str] = field(default_factory=list)
    rows: List[List[Any]] = field(default_factory=list)

    def __post_init__(self) -> None:
        """Validate that every row is aligned with the column list."""
        width = len(self.column_names)
        for index, row in enumerate(self.rows):
            if len(row) != width:
                raise ValueError(
                    f"Row {index} has {len(row)} cells, expected {width} "
                    f"({', '.join(self.column_names)})"
                )

    @property
    def row_count(self) -> int:
        return len(self.rows)

    def column_values(self, position: int) -> List[Any]:
        """Return every cell of the column at ``position``."""
        return [row[position] for row in self.rows]


@dataclass(frozen=True)
class ResultTable:
    """Rows paired with their inferred, immutable column types."""

    columns: Tuple[Column, ...]
    rows: List[List[Any]]

    @property
    def column_names(self) -> List[str]:
        return [c.name for c in self.columns]

    def column_values(self, position: int) -> List[Any]:
        return [row[position] for row in self.rows]


@dataclass
class NormalizedTable:
    """Normalizer output consumed by the layout shaper.

    Attributes:
        columns: Typed columns, in frame order.
        frame: One typed DataFrame column per entry of ``columns``.
        empty_columns: Names of columns whose cells were all null or "".
    """

    columns: Tuple[Column, ...]
    frame: pd.DataFrame
    empty_columns: Tuple[str, ...] = ()

    def column(self, name: str) -> Column:
        for c in self.columns:
            if c.name == name:
                return c
        raise KeyError(name)


__all__ = ["Column", "UnpackedResult", "ResultTable", "NormalizedTable"]
