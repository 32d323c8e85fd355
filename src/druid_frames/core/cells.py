"""Classification of raw JSON cell values.

Decoded Druid responses hold ``None``, ``str``, ``int``/``float``, ``bool``
and occasionally nested lists or dicts. Every consumer dispatches on the
:class:`CellKind` of a value instead of repeating ``isinstance`` chains.
"""

from __future__ import annotations

import numbers
from enum import Enum, auto
from typing import Any

import numpy as np


class CellKind(Enum):
    """Closed set of raw cell kinds.

    - NULL: JSON null
    - STR: JSON string
    - NUM: JSON number (decoded as int or float, never bool)
    - BOOL: JSON true/false
    - OTHER: nested array or object
    """

    NULL = auto()
    STR = auto()
    NUM = auto()
    BOOL = auto()
    OTHER = auto()


def cell_kind(value: Any) -> CellKind:
    """Return the kind of a decoded JSON value."""
    if value is None:
        return CellKind.NULL
    # bool is a subclass of int, test it first
    if isinstance(value, (bool, np.bool_)):
        return CellKind.BOOL
    if isinstance(value, numbers.Real):
        return CellKind.NUM
    if isinstance(value, str):
        return CellKind.STR
    return CellKind.OTHER


def is_empty_cell(value: Any) -> bool:
    """True for null cells and empty strings."""
    return value is None or (isinstance(value, str) and value == "")


__all__ = ["CellKind", "cell_kind", "is_empty_cell"]
