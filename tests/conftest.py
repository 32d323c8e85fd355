"""Shared pytest configuration, fixtures, and sample Druid payloads."""

import json
from typing import Any, Dict, List

import pytest

from druid_frames.config import InstanceSettings


# ============================================================================
# SAMPLE RESPONSES
# ============================================================================

TIMESERIES_RESPONSE: List[Dict[str, Any]] = [
    {"timestamp": "2024-01-01T00:00:00.000Z", "result": {"count": 5}},
    {"result": {"count": 12}},
]

TOPN_RESPONSE: List[Dict[str, Any]] = [
    {
        "timestamp": "2024-01-01T00:00:00.000Z",
        "result": [
            {"page": "Main_Page", "edits": 33},
            {"page": "Talk", "edits": 20},
        ],
    },
    {
        "timestamp": "2024-01-02T00:00:00.000Z",
        "result": [{"page": "Main_Page", "edits": 41}],
    },
]

GROUPBY_RESPONSE: List[Dict[str, Any]] = [
    {
        "version": "v1",
        "timestamp": "2024-01-01T00:00:00.000Z",
        "event": {"country": "AM", "count": 3},
    },
    {
        "version": "v1",
        "timestamp": "2024-01-01T00:00:00.000Z",
        "event": {"country": "FR", "count": 7},
    },
]

SCAN_RESPONSE: List[Dict[str, Any]] = [
    {
        "segmentId": "wiki_2024",
        "columns": ["__time", "page", "added"],
        "events": [
            [1704067200000, "Main_Page", 10],
            [1704067260000, "Talk", 4],
        ],
    }
]

SQL_RESPONSE: List[List[Any]] = [
    ["__time", "channel", "cnt"],
    ["2024-01-01T00:00:00.000Z", "#en", 100],
    ["2024-01-01T01:00:00.000Z", "#fr", 42],
]

SEGMENT_METADATA_RESPONSE: List[Dict[str, Any]] = [
    {
        "id": "wiki_2024-01-01",
        "intervals": ["2024-01-01T00:00:00.000Z/2024-01-02T00:00:00.000Z"],
        "columns": {
            "__time": {"type": "LONG", "hasMultipleValues": False, "size": 0},
            "page": {"type": "STRING", "hasMultipleValues": False, "size": 0},
        },
        "aggregators": {
            "count": {"type": "longSum", "name": "count", "fieldName": "count"},
        },
        "timestampSpec": {"column": "ts", "format": "auto", "missingValue": None},
        "size": 0,
        "numRows": 39244,
    }
]


@pytest.fixture
def instance_settings() -> InstanceSettings:
    """Instance settings with one context default."""
    return InstanceSettings(
        url="http://druid.test:8888",
        timeout_sec=5.0,
        context_parameters=({"name": "priority", "value": 10},),
    )


class FakeClient:
    """Database client stub keyed by the builder's dataSource."""

    def __init__(self, bodies: Dict[str, Any]):
        self.bodies = bodies
        self.queries: List[Dict[str, Any]] = []

    def execute(self, query: Dict[str, Any]) -> bytes:
        self.queries.append(query)
        body = self.bodies[query.get("dataSource")]
        if isinstance(body, Exception):
            raise body
        return json.dumps(body).encode("utf-8")


@pytest.fixture
def fake_client_factory():
    """Build FakeClient instances from ``{dataSource: body or exception}``."""
    return FakeClient
