"""End-to-end query execution.

Pipeline for one query document:

1. attach the merged execution context to the builder
2. force the result formats the unpackers expect (sql: array with header,
   scan: compactedList)
3. run the query through the database client
4. unpack, infer, normalize and shape the response

Each query runs independently. Batch execution attaches errors to the slot
that raised them, so one failing query never affects its siblings.
"""

from __future__ import annotations

import json
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Protocol, Union

import pandas as pd

from druid_frames.config import InstanceSettings
from druid_frames.core.enums import QueryType
from druid_frames.core.errors import DruidFramesError, MalformedResponse
from druid_frames.core.models import ResultTable
from druid_frames.ingestion.unpackers import unpack_response
from druid_frames.normalization import (
    MetricFindValue,
    infer_types,
    normalize_table,
    project_variables,
    shape_frame,
)
from .context import attach_context
from .document import QueryDocument, QuerySettings, parse_query_document


logger = logging.getLogger(__name__)

RawDocument = Union[bytes, str, Mapping[str, Any], QueryDocument]

# Result format overrides applied per query type
RESULT_FORMAT_OVERRIDES: Dict[QueryType, Dict[str, Any]] = {
    QueryType.SQL: {"resultFormat": "array", "header": True},
    QueryType.SCAN: {"resultFormat": "compactedList"},
}


class QueryClient(Protocol):
    """Database client contract used by the executor."""

    def execute(self, query: Dict[str, Any]) -> bytes:
        """Run a prepared query and return the raw response body."""
        ...


@dataclass
class QueryResponse:
    """Outcome of one query slot: a frame or the error that aborted it."""

    ref_id: str
    frame: Optional[pd.DataFrame] = None
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def _as_document(document: RawDocument) -> QueryDocument:
    if isinstance(document, QueryDocument):
        return document
    return parse_query_document(document)


def prepare_query(
    document: QueryDocument, instance_settings: Optional[InstanceSettings] = None
) -> Dict[str, Any]:
    """Build the query sent to Druid from a parsed document.

    Args:
        document: Parsed query document.
        instance_settings: Source of instance-level context defaults.

    Returns:
        A new builder mapping with ``context`` set and result formats forced.

    Raises:
        UnsupportedQueryType: If the builder names an unknown query type.
        MalformedQueryDocument: If a context parameter is malformed.
    """
    query_type = document.query_type
    defaults = instance_settings.context_parameters if instance_settings else ()
    query = attach_context(document.builder, defaults, document.settings.context_parameters)
    query.update(RESULT_FORMAT_OVERRIDES.get(query_type, {}))
    logger.debug("Prepared %s query: %s", query_type.value, query)
    return query


def _decode_body(raw_body: Union[bytes, str, Any]) -> Any:
    if not isinstance(raw_body, (bytes, str)):
        return raw_body
    if not raw_body:
        return None
    try:
        return json.loads(raw_body)
    except ValueError as e:
        raise MalformedResponse(f"response body is not valid JSON: {e}") from e


def _typed_table(raw_body: Any, query_type: QueryType, settings: QuerySettings) -> ResultTable:
    payload = _decode_body(raw_body)
    return infer_types(unpack_response(payload, query_type, settings.view))


def process_response(
    raw_body: Union[bytes, str, Any],
    query_type: QueryType,
    settings: Optional[QuerySettings] = None,
) -> pd.DataFrame:
    """Turn an already fetched response body into the output frame.

    Args:
        raw_body: JSON body as bytes/str, or an already decoded value.
        query_type: Query type that produced the body.
        settings: Output settings; defaults to the long layout.

    Returns:
        Output DataFrame shaped per ``settings``.

    Raises:
        MalformedResponse: If the body is not JSON or has the wrong shape.
        MalformedIntervalReference: On bad segmentMetadata interval columns.
    """
    settings = settings or QuerySettings()
    normalized = normalize_table(_typed_table(raw_body, query_type, settings))
    return shape_frame(normalized, settings.format, settings.hide_empty_columns)


def execute_query(
    document: RawDocument,
    client: QueryClient,
    instance_settings: Optional[InstanceSettings] = None,
    ref_id: str = "A",
) -> QueryResponse:
    """Run one query document end to end.

    Errors are attached to the returned response instead of raised. Errors
    outside the DruidFramesError hierarchy are logged with their traceback.
    """
    try:
        parsed = _as_document(document)
        query = prepare_query(parsed, instance_settings)
        body = client.execute(query)
        frame = process_response(body, parsed.query_type, parsed.settings)
    except DruidFramesError as e:
        logger.error("Query %s failed: %s", ref_id, e)
        return QueryResponse(ref_id=ref_id, error=e)
    except Exception as e:
        logger.exception("Query %s failed unexpectedly", ref_id)
        return QueryResponse(ref_id=ref_id, error=e)
    logger.debug("Query %s returned %d rows", ref_id, len(frame.index))
    return QueryResponse(ref_id=ref_id, frame=frame)


def execute_batch(
    documents: Mapping[str, RawDocument],
    client: QueryClient,
    instance_settings: Optional[InstanceSettings] = None,
    max_workers: Optional[int] = None,
) -> Dict[str, QueryResponse]:
    """Run a batch of query documents keyed by ref id.

    Args:
        documents: Query documents keyed by ref id.
        client: Shared database client; must be safe across threads.
        instance_settings: Instance-level context defaults.
        max_workers: Run slots in a thread pool of this size; sequential when
            None or 1.

    Returns:
        Responses keyed by ref id, in input order.
    """
    ref_ids = list(documents.keys())
    if not max_workers or max_workers <= 1 or len(ref_ids) <= 1:
        responses = [
            execute_query(documents[r], client, instance_settings, ref_id=r) for r in ref_ids
        ]
    else:
        with ThreadPoolExecutor(max_workers=max_workers) as pool:
            futures = [
                pool.submit(execute_query, documents[r], client, instance_settings, r)
                for r in ref_ids
            ]
            responses = [f.result() for f in futures]
    failed = sum(1 for r in responses if not r.ok)
    if failed:
        logger.warning("%d of %d queries failed", failed, len(responses))
    return {r.ref_id: r for r in responses}


def query_variable(
    document: RawDocument,
    client: QueryClient,
    instance_settings: Optional[InstanceSettings] = None,
) -> List[MetricFindValue]:
    """Run a query and project its result into template variable options.

    Raises:
        DruidFramesError: Any pipeline error, unlike execute_query.
    """
    parsed = _as_document(document)
    query = prepare_query(parsed, instance_settings)
    body = client.execute(query)
    return project_variables(_typed_table(body, parsed.query_type, parsed.settings))


__all__ = [
    "RESULT_FORMAT_OVERRIDES",
    "QueryClient",
    "QueryResponse",
    "prepare_query",
    "process_response",
    "execute_query",
    "execute_batch",
    "query_variable",
]
