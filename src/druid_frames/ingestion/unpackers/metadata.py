"""TimeBoundary and dataSourceMetadata results.

Both return ``[{timestamp, result: {...}}]`` with a single nested map per
entry, e.g. ``{"minTime": ..., "maxTime": ...}`` or
``{"maxIngestedEventTime": ...}``.
"""

from __future__ import annotations

from typing import Any

from druid_frames.core.enums import QueryType, SegmentMetadataView
from druid_frames.core.models import UnpackedResult
from ._common import as_entries, timestamped_rows


class NestedResultUnpacker:
    query_types = (QueryType.TIME_BOUNDARY, QueryType.DATA_SOURCE_METADATA)

    def unpack(self, payload: Any, view: SegmentMetadataView) -> UnpackedResult:
        return timestamped_rows(as_entries(payload), "result")
