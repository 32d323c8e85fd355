"""Query documents, execution context and end-to-end execution."""

from .context import attach_context, merge_query_contexts, prepare_query_context
from .document import QueryDocument, QuerySettings, parse_query_document
from .executor import (
    QueryResponse,
    execute_batch,
    execute_query,
    prepare_query,
    process_response,
    query_variable,
)

__all__ = [
    "prepare_query_context",
    "merge_query_contexts",
    "attach_context",
    "QueryDocument",
    "QuerySettings",
    "parse_query_document",
    "QueryResponse",
    "prepare_query",
    "process_response",
    "execute_query",
    "execute_batch",
    "query_variable",
]
