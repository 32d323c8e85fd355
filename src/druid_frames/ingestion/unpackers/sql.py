"""Druid SQL results requested with ``resultFormat=array`` and ``header=true``."""

from __future__ import annotations

from typing import Any

from druid_frames.core.enums import QueryType, SegmentMetadataView
from druid_frames.core.models import UnpackedResult
from ._common import as_entries


class SqlUnpacker:
    """First array is the header, the following arrays are data rows."""

    query_types = (QueryType.SQL,)

    def unpack(self, payload: Any, view: SegmentMetadataView) -> UnpackedResult:
        entries = as_entries(payload)
        if not entries:
            return UnpackedResult()
        header, *data = entries
        if not isinstance(header, list):
            raise TypeError("expected the first SQL row to be a header array")
        rows = []
        for row in data:
            if not isinstance(row, list):
                raise TypeError(f"expected SQL rows to be arrays, got {type(row).__name__}")
            rows.append(list(row))
        return UnpackedResult(column_names=[str(name) for name in header], rows=rows)
