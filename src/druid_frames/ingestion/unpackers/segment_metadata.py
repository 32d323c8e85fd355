"""SegmentMetadata results, projected through one of four views.

A segmentMetadata entry looks like::

    {
        "id": "wikipedia_2013-08-31T00:00:00.000Z_...",
        "intervals": ["2013-08-31T00:00:00.000Z/2013-09-01T00:00:00.000Z"],
        "columns": {"page": {"type": "STRING", "size": 0, ...}, ...},
        "aggregators": {"count": {"type": "longSum", "name": "count", ...}},
        "timestampSpec": {"column": "ts", "format": "auto", ...},
        "queryGranularity": null,
        "size": 0,
        "numRows": 39244,
        "rollup": null
    }

Views:
 - base: scalar segment fields, with every interval split into a
   ``interval_start_<i>``/``interval_stop_<i>`` column pair
 - aggregators: one row per aggregator definition
 - columns: one row per column description
 - timestampspec: the timestamp spec of each segment
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List

from druid_frames.core.enums import QueryType, SegmentMetadataView
from druid_frames.core.errors import MalformedIntervalReference
from druid_frames.core.models import UnpackedResult
from druid_frames.core.utils import parse_int_literal
from ._common import as_entries, as_mapping, first_seen_keys, project


logger = logging.getLogger(__name__)

INTERVAL_PREFIX = "interval_"
INTERVAL_SEPARATOR = "/"

_NESTED_KEYS = ("aggregators", "columns", "timestampSpec")


def _base_columns(first: Dict[str, Any]) -> List[str]:
    columns: List[str] = []
    for key, value in first.items():
        if key in _NESTED_KEYS:
            continue
        if key == "intervals":
            for i in range(len(value or [])):
                columns.append(f"{INTERVAL_PREFIX}start_{i}")
                columns.append(f"{INTERVAL_PREFIX}stop_{i}")
        else:
            columns.append(key)
    return columns


def interval_value(entry: Dict[str, Any], column: str) -> str:
    """Resolve a synthetic ``interval_<start|stop>_<index>`` column.

    Raises:
        MalformedIntervalReference: If the index cannot be parsed, points past
            the entry's intervals, or the interval has no separator.
    """
    parts = column.split("_")
    if len(parts) < 3:
        raise MalformedIntervalReference(column, "missing interval index")
    side = 1 if parts[1] == "stop" else 0
    index = parse_int_literal(parts[2])
    if index is None:
        raise MalformedIntervalReference(column, f"unparsable index {parts[2]!r}")
    intervals = entry.get("intervals")
    if not isinstance(intervals, list) or not 0 <= index < len(intervals):
        raise MalformedIntervalReference(column, f"index {index} out of range")
    interval = intervals[index]
    if not isinstance(interval, str):
        raise MalformedIntervalReference(column, "interval is not a string")
    bounds = interval.split(INTERVAL_SEPARATOR)
    if side >= len(bounds):
        raise MalformedIntervalReference(column, f"no {INTERVAL_SEPARATOR!r} in {interval!r}")
    return bounds[side]


def _unpack_base(entries: List[Dict[str, Any]]) -> UnpackedResult:
    columns = _base_columns(entries[0])
    rows = []
    for entry in entries:
        row = []
        for column in columns:
            if column.startswith(INTERVAL_PREFIX):
                row.append(interval_value(entry, column))
            else:
                row.append(entry.get(column))
        rows.append(row)
    return UnpackedResult(column_names=columns, rows=rows)


def _unpack_named_definitions(
    entries: List[Dict[str, Any]], key: str, label: str
) -> UnpackedResult:
    """One row per ``name -> definition`` pair found under ``key``."""
    first = as_mapping(entries[0].get(key) or {}, key)
    if not first:
        return UnpackedResult()
    first_definition = as_mapping(next(iter(first.values())), f"{key} definition")
    columns = [label] + first_seen_keys(first_definition)
    rows = []
    for entry in entries:
        for name, definition in as_mapping(entry.get(key) or {}, key).items():
            definition = as_mapping(definition, f"{key} definition")
            rows.append([name] + project(definition, columns[1:]))
    return UnpackedResult(column_names=columns, rows=rows)


def _unpack_timestamp_spec(entries: List[Dict[str, Any]]) -> UnpackedResult:
    first = as_mapping(entries[0].get("timestampSpec") or {}, "timestampSpec")
    columns = first_seen_keys(first)
    if not columns:
        return UnpackedResult()
    rows = [
        project(as_mapping(entry.get("timestampSpec") or {}, "timestampSpec"), columns)
        for entry in entries
    ]
    return UnpackedResult(column_names=columns, rows=rows)


class SegmentMetadataUnpacker:
    query_types = (QueryType.SEGMENT_METADATA,)

    def unpack(self, payload: Any, view: SegmentMetadataView) -> UnpackedResult:
        entries = [as_mapping(e, "segment entry") for e in as_entries(payload)]
        if not entries:
            return UnpackedResult()
        logger.debug("Unpacking %d segments with view %s", len(entries), view.value)
        if view == SegmentMetadataView.BASE:
            return _unpack_base(entries)
        if view == SegmentMetadataView.AGGREGATORS:
            return _unpack_named_definitions(entries, "aggregators", "aggregator")
        if view == SegmentMetadataView.COLUMNS:
            return _unpack_named_definitions(entries, "columns", "column")
        return _unpack_timestamp_spec(entries)
