"""Timeseries results: ``[{timestamp, result: {metric: value}}]``."""

from __future__ import annotations

import logging
from typing import Any

from druid_frames.core.enums import QueryType, SegmentMetadataView
from druid_frames.core.models import UnpackedResult
from ._common import TIMESTAMP_COLUMN, as_entries, as_mapping, first_seen_keys, project


logger = logging.getLogger(__name__)


class TimeseriesUnpacker:
    """One row per bucket.

    An entry without a timestamp is the grand total (``grandTotal`` context
    flag). It borrows the timestamp of the previously emitted row, which is
    only right while Druid keeps emitting the grand total last.
    """

    query_types = (QueryType.TIMESERIES,)

    def unpack(self, payload: Any, view: SegmentMetadataView) -> UnpackedResult:
        entries = as_entries(payload)
        if not entries:
            return UnpackedResult()
        first = as_mapping(as_mapping(entries[0], "result entry").get("result"), "result")
        columns = [TIMESTAMP_COLUMN] + first_seen_keys(first)
        rows = []
        for entry in entries:
            entry = as_mapping(entry, "result entry")
            timestamp = entry.get(TIMESTAMP_COLUMN)
            if timestamp is None:
                if rows:
                    timestamp = rows[-1][0]
                else:
                    logger.warning("Grand total row found before any timestamped row")
            metrics = as_mapping(entry.get("result"), "result")
            rows.append([timestamp] + project(metrics, columns[1:]))
        return UnpackedResult(column_names=columns, rows=rows)
