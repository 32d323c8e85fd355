"""TopN and search results: ``[{timestamp, result: [record, ...]}]``.

Every ranked record becomes its own row and shares the timestamp of the
entry it belongs to.
"""

from __future__ import annotations

from typing import Any, List, Optional

from druid_frames.core.enums import QueryType, SegmentMetadataView
from druid_frames.core.models import UnpackedResult
from ._common import TIMESTAMP_COLUMN, as_entries, as_mapping, first_seen_keys, project


def _records(entry: Any) -> List[Any]:
    records = as_mapping(entry, "result entry").get("result")
    if records is None:
        return []
    if not isinstance(records, list):
        raise TypeError(f"expected result to be a JSON array, got {type(records).__name__}")
    return records


class RankedResultUnpacker:
    query_types = (QueryType.TOP_N, QueryType.SEARCH)

    def unpack(self, payload: Any, view: SegmentMetadataView) -> UnpackedResult:
        entries = as_entries(payload)
        first_record: Optional[dict] = None
        for entry in entries:
            records = _records(entry)
            if records:
                first_record = as_mapping(records[0], "ranked record")
                break
        if first_record is None:
            return UnpackedResult()

        columns = [TIMESTAMP_COLUMN] + first_seen_keys(first_record)
        rows = []
        for entry in entries:
            timestamp = entry.get(TIMESTAMP_COLUMN)
            for record in _records(entry):
                record = as_mapping(record, "ranked record")
                rows.append([timestamp] + project(record, columns[1:]))
        return UnpackedResult(column_names=columns, rows=rows)
