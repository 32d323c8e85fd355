"""Exception types raised by the normalization pipeline.

Structural problems (a document that cannot be parsed, an unknown query type,
a response that does not match its shape) abort the query and are reported
on that query's slot. Cell-level parse problems never raise; the normalizer
substitutes documented fallback values instead.
"""

from __future__ import annotations


class DruidFramesError(Exception):
    """Base class for all pipeline errors.

    Catching this lets callers (CLI, batch runner) report query failures
    without swallowing unrelated exceptions.
    """


class MalformedQueryDocument(DruidFramesError):
    """The query document cannot be parsed into a builder and settings."""


class UnsupportedQueryType(DruidFramesError):
    """The builder's query type is not one of the known result shapes."""

    def __init__(self, query_type: object):
        self.query_type = query_type
        super().__init__(f"unknown query type: {query_type!r}")


class MalformedIntervalReference(DruidFramesError):
    """A segmentMetadata interval column points outside the intervals list."""

    def __init__(self, column: str, reason: str):
        self.column = column
        self.reason = reason
        super().__init__(f"interval parsing goes wrong for {column!r}: {reason}")


class MalformedResponse(DruidFramesError):
    """The response body is not JSON or does not match its query type's shape."""


class UpstreamExecutionFailure(DruidFramesError):
    """The database call failed. The upstream message is kept verbatim."""

    def __init__(self, message: str, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message)


__all__ = [
    "DruidFramesError",
    "MalformedQueryDocument",
    "UnsupportedQueryType",
    "MalformedIntervalReference",
    "MalformedResponse",
    "UpstreamExecutionFailure",
]
