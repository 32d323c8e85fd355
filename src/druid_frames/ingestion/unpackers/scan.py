"""Scan results requested with ``resultFormat=compactedList``.

The response is a list of batches (one per segment), each carrying its own
``columns`` list and ``events`` as value arrays already ordered by those
columns. Column names come from the first batch; later batches with a
different column list are realigned by name.
"""

from __future__ import annotations

from typing import Any, List

from druid_frames.core.enums import QueryType, SegmentMetadataView
from druid_frames.core.models import UnpackedResult
from ._common import as_entries, as_mapping, project


def _column_list(batch: dict) -> List[str]:
    columns = batch.get("columns") or []
    if not isinstance(columns, list):
        raise TypeError("expected scan columns to be a JSON array")
    return [str(c) for c in columns]


class ScanUnpacker:
    query_types = (QueryType.SCAN,)

    def unpack(self, payload: Any, view: SegmentMetadataView) -> UnpackedResult:
        batches = [as_mapping(b, "scan batch") for b in as_entries(payload)]
        if not batches:
            return UnpackedResult()

        names = _column_list(batches[0])
        rows = []
        for batch in batches:
            batch_names = _column_list(batch)
            for event in batch.get("events") or []:
                if isinstance(event, dict):
                    # resultFormat=list
                    rows.append(project(event, names))
                elif batch_names == names:
                    rows.append(list(event))
                else:
                    by_name = dict(zip(batch_names, event))
                    rows.append(project(by_name, names))
        return UnpackedResult(column_names=names, rows=rows)
