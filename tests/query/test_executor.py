"""Tests for query preparation and end-to-end execution."""

import json
import logging

import pandas as pd
import pytest

from druid_frames.core.enums import QueryType
from druid_frames.core.errors import (
    MalformedResponse,
    UnsupportedQueryType,
    UpstreamExecutionFailure,
)
from druid_frames.query.document import QuerySettings, parse_query_document
from druid_frames.query.executor import (
    execute_batch,
    execute_query,
    prepare_query,
    process_response,
    query_variable,
)

from conftest import GROUPBY_RESPONSE, SQL_RESPONSE, TIMESERIES_RESPONSE

FAR_FUTURE_TIMESERIES = [
    {"timestamp": "3000-01-01T00:00:00.000Z", "result": {"count": 1}},
    {"timestamp": "3000-01-02T00:00:00.000Z", "result": {"count": 2}},
]


def _document(query_type, data_source="wiki", **settings):
    return {"builder": {"queryType": query_type, "dataSource": data_source}, "settings": settings}


class TestPrepareQuery:
    """Tests for prepare_query function."""

    def test_sql_forces_array_with_header(self, instance_settings):
        """Test SQL queries are forced to array results with a header row."""
        query = prepare_query(parse_query_document(_document("sql")), instance_settings)
        assert query["resultFormat"] == "array"
        assert query["header"] is True
        assert query["context"] == {"priority": 10}

    def test_scan_forces_compacted_list(self, instance_settings):
        """Test scan queries are forced to compactedList results."""
        doc = _document("scan", contextParameters=[{"name": "priority", "value": 1}])
        query = prepare_query(parse_query_document(doc), instance_settings)
        assert query["resultFormat"] == "compactedList"
        assert query["context"] == {"priority": 1}

    def test_other_types_untouched(self):
        """Test other query types keep their result format."""
        query = prepare_query(parse_query_document(_document("topN")))
        assert "resultFormat" not in query
        assert query["context"] == {}

    def test_unknown_type(self):
        """Test error when the builder names an unknown query type."""
        with pytest.raises(UnsupportedQueryType):
            prepare_query(parse_query_document(_document("bogus")))


class TestProcessResponse:
    """Tests for process_response function."""

    def test_timeseries_scenario(self):
        """Test timeseries grand total row copies the previous timestamp."""
        body = json.dumps(TIMESERIES_RESPONSE).encode("utf-8")
        frame = process_response(body, QueryType.TIMESERIES)
        assert list(frame.columns) == ["timestamp", "count"]
        assert frame["count"].tolist() == [5.0, 12.0]
        assert frame["timestamp"].tolist() == [pd.Timestamp("2024-01-01T00:00:00Z")] * 2

    def test_sql_with_layout(self):
        """Test SQL results get typed columns."""
        frame = process_response(SQL_RESPONSE, QueryType.SQL, QuerySettings())
        assert str(frame["__time"].dtype) == "datetime64[ns, UTC]"
        assert frame["cnt"].tolist() == [100.0, 42.0]

    def test_invalid_json(self):
        """Test error when the body is not JSON."""
        with pytest.raises(MalformedResponse):
            process_response(b"{nope", QueryType.GROUP_BY)

    def test_empty_body(self):
        """Test an empty body gives an empty frame."""
        assert process_response(b"", QueryType.GROUP_BY).empty

    def test_far_future_timestamps_fall_back_to_now(self):
        """Test timestamps beyond the nanosecond range become the current time."""
        before = pd.Timestamp.now(tz="UTC")
        frame = process_response(FAR_FUTURE_TIMESERIES, QueryType.TIMESERIES)
        assert str(frame["timestamp"].dtype) == "datetime64[ns, UTC]"
        assert (frame["timestamp"] >= before).all()
        assert frame["count"].tolist() == [1.0, 2.0]


class TestExecuteQuery:
    """Tests for execute_query function."""

    def test_success(self, fake_client_factory, instance_settings):
        """Test a successful query returns its frame under the ref id."""
        client = fake_client_factory({"wiki": GROUPBY_RESPONSE})
        response = execute_query(_document("groupBy"), client, instance_settings, ref_id="B")
        assert response.ok
        assert response.ref_id == "B"
        assert response.frame["country"].tolist() == ["AM", "FR"]
        assert client.queries[0]["context"] == {"priority": 10}

    def test_upstream_failure_attached(self, fake_client_factory):
        """Test an upstream failure is attached instead of raised."""
        client = fake_client_factory({"wiki": UpstreamExecutionFailure("broker down", 500)})
        response = execute_query(_document("groupBy"), client)
        assert not response.ok
        assert response.frame is None
        assert str(response.error) == "broker down"

    def test_unexpected_error_attached_and_logged(self, fake_client_factory, caplog):
        """Test an unexpected exception is attached and logged with its traceback."""
        client = fake_client_factory({"wiki": RuntimeError("socket reset")})
        with caplog.at_level(logging.ERROR, logger="druid_frames.query.executor"):
            response = execute_query(_document("groupBy"), client, ref_id="Z")
        assert isinstance(response.error, RuntimeError)
        assert response.frame is None
        record = next(r for r in caplog.records if "Z" in r.getMessage())
        assert record.exc_info is not None


class TestExecuteBatch:
    """Tests for execute_batch function."""

    @pytest.mark.parametrize("max_workers", [None, 4])
    def test_failed_slot_does_not_affect_siblings(self, fake_client_factory, max_workers):
        """Test pipeline errors stay in their own slot."""
        client = fake_client_factory(
            {"good": TIMESERIES_RESPONSE, "bad": {"error": "Query timeout"}}
        )
        responses = execute_batch(
            {
                "A": _document("timeseries", "good"),
                "B": _document("timeseries", "bad"),
                "C": _document("nope", "good"),
            },
            client,
            max_workers=max_workers,
        )
        assert list(responses) == ["A", "B", "C"]
        assert responses["A"].ok and len(responses["A"].frame.index) == 2
        assert isinstance(responses["B"].error, MalformedResponse)
        assert isinstance(responses["C"].error, UnsupportedQueryType)

    @pytest.mark.parametrize("max_workers", [None, 4])
    def test_unexpected_error_does_not_affect_siblings(self, fake_client_factory, max_workers):
        """Test a non-library exception in one slot keeps the other slots."""
        client = fake_client_factory(
            {
                "good": TIMESERIES_RESPONSE,
                "broken": RuntimeError("decoder crashed"),
                "future": FAR_FUTURE_TIMESERIES,
            }
        )
        responses = execute_batch(
            {
                "A": _document("timeseries", "good"),
                "B": _document("timeseries", "broken"),
                "C": _document("timeseries", "future"),
            },
            client,
            max_workers=max_workers,
        )
        assert list(responses) == ["A", "B", "C"]
        assert responses["A"].ok and len(responses["A"].frame.index) == 2
        assert isinstance(responses["B"].error, RuntimeError)
        assert responses["C"].ok and responses["C"].frame["count"].tolist() == [1.0, 2.0]


class TestQueryVariable:
    """Tests for query_variable function."""

    def test_projects_options(self, fake_client_factory):
        """Test results are projected into variable options."""
        client = fake_client_factory({"wiki": GROUPBY_RESPONSE})
        options = query_variable(_document("groupBy"), client)
        texts = [o.text for o in options]
        assert "AM" in texts and "FR" in texts
        assert texts.count("Mon Jan  1 00:00:00 UTC 2024") == 2

    def test_errors_propagate(self, fake_client_factory):
        """Test pipeline errors are raised to the caller."""
        client = fake_client_factory({"wiki": UpstreamExecutionFailure("boom")})
        with pytest.raises(UpstreamExecutionFailure):
            query_variable(_document("groupBy"), client)


def test_frame_dtypes_follow_inferred_types():
    """Test frame dtypes follow the inferred column types."""
    frame = process_response(GROUPBY_RESPONSE, QueryType.GROUP_BY)
    assert frame["count"].dtype == "float64"
    assert frame["country"].dtype == object
