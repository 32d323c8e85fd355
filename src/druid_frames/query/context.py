"""Execution context handling for Druid queries.

Druid reads per-query options (priority, timeouts, cache flags) from the
``context`` object of a native query. Instance-level defaults are merged
under the parameters a query document carries, later sources winning.
"""

from __future__ import annotations

import copy
import logging
from typing import Any, Dict, Iterable, Mapping, Optional

from druid_frames.core.errors import MalformedQueryDocument


logger = logging.getLogger(__name__)

CONTEXT_KEY = "context"


def prepare_query_context(parameters: Optional[Iterable[Mapping[str, Any]]]) -> Dict[str, Any]:
    """Turn a ``[{name, value}]`` list into a context mapping.

    Raises:
        MalformedQueryDocument: If an entry is not an object with a string name.

    Examples:
        >>> prepare_query_context([{"name": "priority", "value": 10}])
        {'priority': 10}
        >>> prepare_query_context(None)
        {}
    """
    context: Dict[str, Any] = {}
    if parameters is None:
        return context
    for parameter in parameters:
        if not isinstance(parameter, Mapping) or not isinstance(parameter.get("name"), str):
            raise MalformedQueryDocument(
                f"context parameter must be an object with a name: {parameter!r}"
            )
        context[parameter["name"]] = parameter.get("value")
    return context


def merge_query_contexts(*contexts: Mapping[str, Any]) -> Dict[str, Any]:
    """Merge contexts left to right; on key collision the later one wins."""
    merged: Dict[str, Any] = {}
    for context in contexts:
        merged.update(context)
    return merged


def attach_context(
    builder: Mapping[str, Any],
    instance_parameters: Optional[Iterable[Mapping[str, Any]]],
    query_parameters: Optional[Iterable[Mapping[str, Any]]] = None,
) -> Dict[str, Any]:
    """Return a copy of ``builder`` carrying the merged execution context.

    Instance defaults are always present; per-query parameters override them.
    The input builder is left untouched.
    """
    prepared = copy.deepcopy(dict(builder))
    prepared[CONTEXT_KEY] = merge_query_contexts(
        prepare_query_context(instance_parameters),
        prepare_query_context(query_parameters),
    )
    logger.debug("Query context: %s", prepared[CONTEXT_KEY])
    return prepared


__all__ = ["CONTEXT_KEY", "prepare_query_context", "merge_query_contexts", "attach_context"]
