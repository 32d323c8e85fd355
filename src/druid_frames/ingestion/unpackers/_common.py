"""Shared unpacker helpers and the unpacker interface."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Protocol, Tuple

from druid_frames.core.enums import QueryType, SegmentMetadataView
from druid_frames.core.models import UnpackedResult


logger = logging.getLogger(__name__)

TIMESTAMP_COLUMN = "timestamp"


class ShapeUnpacker(Protocol):
    """Protocol implemented by every result shape unpacker.

    Attributes:
        query_types: Query types whose responses this unpacker understands.
    """

    query_types: Tuple[QueryType, ...]

    def unpack(self, payload: Any, view: SegmentMetadataView) -> UnpackedResult:
        """Flatten a decoded response body into column names and rows.

        Args:
            payload: JSON-decoded response body.
            view: Requested segmentMetadata projection (ignored by other shapes).

        Returns:
            UnpackedResult with untyped cells.

        Raises:
            KeyError, TypeError: If the payload does not have the expected shape.
        """
        ...


def as_entries(payload: Any) -> List[Any]:
    """Return the top-level list of a response, treating null as empty."""
    if payload is None:
        return []
    if not isinstance(payload, list):
        raise TypeError(f"expected a JSON array, got {type(payload).__name__}")
    return payload


def as_mapping(value: Any, what: str) -> Dict[str, Any]:
    """Return ``value`` if it is a JSON object, raising TypeError otherwise."""
    if not isinstance(value, dict):
        raise TypeError(f"expected {what} to be a JSON object, got {type(value).__name__}")
    return value


def first_seen_keys(mapping: Dict[str, Any]) -> List[str]:
    """Keys of a JSON object in document order."""
    return list(mapping.keys())


def project(mapping: Dict[str, Any], names: List[str]) -> List[Any]:
    """Pick ``names`` from ``mapping`` in order; absent keys become null."""
    return [mapping.get(name) for name in names]


def timestamped_rows(
    entries: List[Any], nested_key: str
) -> UnpackedResult:
    """Unpack ``[{timestamp, <nested_key>: {...}}]`` into one row per entry.

    Columns are ``timestamp`` followed by the nested keys of the first entry.
    """
    if not entries:
        return UnpackedResult()
    first = as_mapping(as_mapping(entries[0], "result entry").get(nested_key), nested_key)
    columns = [TIMESTAMP_COLUMN] + first_seen_keys(first)
    rows = []
    for entry in entries:
        entry = as_mapping(entry, "result entry")
        nested = as_mapping(entry.get(nested_key), nested_key)
        rows.append([entry.get(TIMESTAMP_COLUMN)] + project(nested, columns[1:]))
    return UnpackedResult(column_names=columns, rows=rows)


__all__ = [
    "ShapeUnpacker",
    "TIMESTAMP_COLUMN",
    "as_entries",
    "as_mapping",
    "first_seen_keys",
    "project",
    "timestamped_rows",
]
