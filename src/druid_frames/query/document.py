"""Query document parsing.

A query document pairs a Druid query builder with presentation settings::

    {
      "builder": {"queryType": "timeseries", ...},
      "settings": {
        "contextParameters": [{"name": "priority", "value": 10}],
        "format": "wide",
        "hideEmptyColumns": true,
        "view": "base"
      }
    }

Only ``builder`` is required. Unknown settings keys are ignored.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Union

from druid_frames.core.enums import OutputFormat, QueryType, SegmentMetadataView
from druid_frames.core.errors import MalformedQueryDocument
from druid_frames.ingestion.unpackers import resolve_query_type

QUERY_TYPE_KEY = "queryType"


@dataclass(frozen=True)
class QuerySettings:
    """Per-query settings that drive context merging and output shaping."""

    context_parameters: List[Dict[str, Any]] = field(default_factory=list)
    format: OutputFormat = OutputFormat.LONG
    hide_empty_columns: bool = False
    view: SegmentMetadataView = SegmentMetadataView.BASE

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> "QuerySettings":
        """Build settings from the document's ``settings`` object.

        Raises:
            MalformedQueryDocument: On wrongly typed or unknown option values.
        """
        parameters = raw.get("contextParameters") or []
        if not isinstance(parameters, list):
            raise MalformedQueryDocument("settings.contextParameters must be a list")
        hide = raw.get("hideEmptyColumns", False)
        if not isinstance(hide, bool):
            raise MalformedQueryDocument("settings.hideEmptyColumns must be a boolean")
        try:
            output_format = OutputFormat(raw.get("format") or OutputFormat.LONG.value)
        except ValueError:
            raise MalformedQueryDocument(f"unknown format: {raw.get('format')!r}") from None
        try:
            view = SegmentMetadataView(raw.get("view") or SegmentMetadataView.BASE.value)
        except ValueError:
            raise MalformedQueryDocument(f"unknown view: {raw.get('view')!r}") from None
        return cls(
            context_parameters=list(parameters),
            format=output_format,
            hide_empty_columns=hide,
            view=view,
        )


@dataclass(frozen=True)
class QueryDocument:
    """A submitted query: the Druid builder plus its settings. Read-only."""

    builder: Dict[str, Any]
    settings: QuerySettings = field(default_factory=QuerySettings)

    @property
    def query_type(self) -> QueryType:
        """Query type named by the builder.

        Raises:
            UnsupportedQueryType: If the builder's ``queryType`` is unknown.
        """
        return resolve_query_type(self.builder.get(QUERY_TYPE_KEY))


def parse_query_document(raw: Union[bytes, str, Mapping[str, Any]]) -> QueryDocument:
    """Parse a JSON query document.

    Args:
        raw: JSON text (bytes or str) or an already decoded mapping.

    Returns:
        QueryDocument with parsed settings.

    Raises:
        MalformedQueryDocument: If the input is not JSON, is not an object,
            lacks a ``builder`` object or carries invalid settings.
    """
    if isinstance(raw, (bytes, str)):
        try:
            data = json.loads(raw)
        except ValueError as e:
            raise MalformedQueryDocument(f"query document is not valid JSON: {e}") from e
    else:
        data = raw
    if not isinstance(data, Mapping):
        raise MalformedQueryDocument("query document must be a JSON object")
    builder = data.get("builder")
    if not isinstance(builder, Mapping):
        raise MalformedQueryDocument("query document has no builder object")
    settings = data.get("settings") or {}
    if not isinstance(settings, Mapping):
        raise MalformedQueryDocument("settings must be a JSON object")
    return QueryDocument(builder=dict(builder), settings=QuerySettings.from_mapping(settings))


__all__ = ["QUERY_TYPE_KEY", "QuerySettings", "QueryDocument", "parse_query_document"]
