"""GroupBy results: ``[{version, timestamp, event: {...}}]``."""

from __future__ import annotations

from typing import Any

from druid_frames.core.enums import QueryType, SegmentMetadataView
from druid_frames.core.models import UnpackedResult
from ._common import as_entries, timestamped_rows


class GroupByUnpacker:
    query_types = (QueryType.GROUP_BY,)

    def unpack(self, payload: Any, view: SegmentMetadataView) -> UnpackedResult:
        return timestamped_rows(as_entries(payload), "event")
