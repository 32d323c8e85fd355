"""Core enumerations used across the package."""

from __future__ import annotations

from enum import Enum


class QueryType(str, Enum):
    """Druid query types, one per result shape.

    Values match the ``queryType`` tag of a query builder document.
    """

    SQL = "sql"
    TIMESERIES = "timeseries"
    TOP_N = "topN"
    GROUP_BY = "groupBy"
    SCAN = "scan"
    SEARCH = "search"
    TIME_BOUNDARY = "timeBoundary"
    DATA_SOURCE_METADATA = "dataSourceMetadata"
    SEGMENT_METADATA = "segmentMetadata"


class ColumnType(str, Enum):
    """Semantic type assigned to a result column by inference."""

    STRING = "string"
    INT = "int"
    FLOAT = "float"
    BOOL = "bool"
    TIME = "time"
    NULL = "null"


class OutputFormat(str, Enum):
    """Output layouts produced by the layout shaper."""

    LONG = "long"
    WIDE = "wide"
    LOG = "log"


class SegmentMetadataView(str, Enum):
    """Projections available for segmentMetadata results."""

    BASE = "base"
    AGGREGATORS = "aggregators"
    COLUMNS = "columns"
    TIMESTAMP_SPEC = "timestampspec"


__all__ = ["QueryType", "ColumnType", "OutputFormat", "SegmentMetadataView"]
