"""Shape unpackers for Druid query results.

Each query type returns its own JSON shape. This package holds one unpacker
per shape and a registry that dispatches on the query type tag:

 - sql: SqlUnpacker
 - timeseries: TimeseriesUnpacker
 - topN, search: RankedResultUnpacker
 - groupBy: GroupByUnpacker
 - scan: ScanUnpacker
 - timeBoundary, dataSourceMetadata: NestedResultUnpacker
 - segmentMetadata: SegmentMetadataUnpacker

Public API:
 - unpack_response: flatten a decoded body into an UnpackedResult
 - resolve_query_type: map a ``queryType`` tag to a QueryType
 - get_unpacker: registry lookup
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List

from druid_frames.core.enums import QueryType, SegmentMetadataView
from druid_frames.core.errors import MalformedResponse, UnsupportedQueryType
from druid_frames.core.models import UnpackedResult
from ._common import ShapeUnpacker
from .group_by import GroupByUnpacker
from .metadata import NestedResultUnpacker
from .ranked import RankedResultUnpacker
from .scan import ScanUnpacker
from .segment_metadata import SegmentMetadataUnpacker
from .sql import SqlUnpacker
from .timeseries import TimeseriesUnpacker


logger = logging.getLogger(__name__)

# Registry of all available unpackers
ALL_UNPACKERS: List[ShapeUnpacker] = [
    SqlUnpacker(),
    TimeseriesUnpacker(),
    RankedResultUnpacker(),
    GroupByUnpacker(),
    ScanUnpacker(),
    NestedResultUnpacker(),
    SegmentMetadataUnpacker(),
]


def _build_registry(unpackers: List[ShapeUnpacker]) -> Dict[QueryType, ShapeUnpacker]:
    registry: Dict[QueryType, ShapeUnpacker] = {}
    for unpacker in unpackers:
        for query_type in unpacker.query_types:
            if query_type in registry:
                raise ValueError(f"Duplicate unpacker for query type {query_type.value}")
            registry[query_type] = unpacker
    return registry


UNPACKERS: Dict[QueryType, ShapeUnpacker] = _build_registry(ALL_UNPACKERS)


def resolve_query_type(tag: Any) -> QueryType:
    """Map a builder ``queryType`` tag to a QueryType.

    Raises:
        UnsupportedQueryType: If the tag names no known result shape.

    Examples:
        >>> resolve_query_type("topN")
        <QueryType.TOP_N: 'topN'>
    """
    try:
        return QueryType(tag)
    except ValueError:
        raise UnsupportedQueryType(tag) from None


def get_unpacker(query_type: QueryType) -> ShapeUnpacker:
    """Return the unpacker registered for ``query_type``."""
    try:
        return UNPACKERS[query_type]
    except KeyError:
        raise UnsupportedQueryType(query_type) from None


def unpack_response(
    payload: Any,
    query_type: QueryType,
    view: SegmentMetadataView = SegmentMetadataView.BASE,
) -> UnpackedResult:
    """Flatten a decoded response body into column names and rows.

    Args:
        payload: JSON-decoded response body.
        query_type: Query type the body was produced by.
        view: segmentMetadata projection.

    Returns:
        UnpackedResult with deterministic column order and source row order.

    Raises:
        UnsupportedQueryType: If no unpacker handles ``query_type``.
        MalformedIntervalReference: On bad segmentMetadata interval addressing.
        MalformedResponse: If the body does not match the query type's shape.
    """
    unpacker = get_unpacker(query_type)
    try:
        result = unpacker.unpack(payload, view)
    except (KeyError, TypeError, AttributeError, IndexError, ValueError) as e:
        raise MalformedResponse(
            f"Unexpected {query_type.value} response shape: {e}"
        ) from e
    logger.debug(
        "Unpacked %s response: %d columns, %d rows",
        query_type.value,
        len(result.column_names),
        result.row_count,
    )
    return result


__all__ = [
    "ALL_UNPACKERS",
    "UNPACKERS",
    "ShapeUnpacker",
    "get_unpacker",
    "resolve_query_type",
    "unpack_response",
]
