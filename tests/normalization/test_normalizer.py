"""Tests for cell coercion and table normalization."""

from datetime import datetime, timezone

import pandas as pd
import pytest

from druid_frames.core.enums import ColumnType
from druid_frames.core.models import Column, ResultTable
from druid_frames.normalization.normalizer import (
    coerce_bool,
    coerce_float,
    coerce_int,
    coerce_null,
    coerce_string,
    coerce_time,
    coerce_values,
    normalize_table,
)

EPOCH = pd.Timestamp("1970-01-01T00:00:00Z")


class TestCoercers:
    """Tests for the per-type coercers."""

    @pytest.mark.parametrize(
        "value, expected",
        [("a", "a"), (None, ""), (5.0, "5"), (1.5, "1.5"), (True, "true"), ({"k": 1}, '{"k": 1}')],
    )
    def test_string(self, value, expected):
        """Test string coercion of native and encoded values."""
        assert coerce_string(value) == expected

    @pytest.mark.parametrize(
        "value, expected",
        [("42", 42), (None, 0), ("x", 0), ("4.2", 0), (7.9, 7), (float("nan"), 0), (1e30, 0)],
    )
    def test_int(self, value, expected):
        """Test int coercion with truncation and the zero fallback."""
        assert coerce_int(value) == expected

    @pytest.mark.parametrize(
        "value, expected", [(2.5, 2.5), (3, 3.0), (None, 0.0), ("1.25", 1.25), ("x", 0.0)]
    )
    def test_float(self, value, expected):
        """Test float coercion of numbers and numeric strings."""
        assert coerce_float(value) == expected

    @pytest.mark.parametrize(
        "value, expected",
        [(True, True), (False, False), ("true", True), ("0", False), ("maybe", False), (None, False)],
    )
    def test_bool(self, value, expected):
        """Test bool coercion of native bools and literals."""
        assert coerce_bool(value) is expected

    def test_time_from_canonical_string(self):
        """Test canonical timestamp strings are parsed."""
        assert coerce_time("2024-01-01T00:00:00.000Z") == pd.Timestamp("2024-01-01T00:00:00Z")

    def test_time_from_epoch_millis(self):
        """Test epoch milliseconds are converted."""
        assert coerce_time(1704067200000) == pd.Timestamp("2024-01-01T00:00:00Z")

    def test_time_keeps_fractional_millis(self):
        """Test fractional milliseconds survive the conversion."""
        assert coerce_time(1704067200000.25) == pd.Timestamp("2024-01-01T00:00:00.00025Z")

    def test_time_null_is_epoch(self):
        """Test null time cells become the epoch."""
        assert coerce_time(None) == EPOCH

    def test_time_unparsable_falls_back_to_now(self):
        """Test unparsable strings become the current time."""
        before = pd.Timestamp.now(tz="UTC")
        result = coerce_time("yesterday")
        assert before <= result <= pd.Timestamp.now(tz="UTC")

    @pytest.mark.parametrize(
        "value", ["3000-01-01T00:00:00.000Z", "1000-01-01T00:00:00.000Z", datetime(3000, 1, 1)]
    )
    def test_time_out_of_range_falls_back_to_now(self, value):
        """Test instants outside the nanosecond range become the current time."""
        before = pd.Timestamp.now(tz="UTC")
        result = coerce_time(value)
        assert before <= result <= pd.Timestamp.now(tz="UTC")

    @pytest.mark.parametrize("value", [1e20, -1e20, 10**400])
    def test_time_out_of_range_millis_is_epoch(self, value):
        """Test epoch milliseconds outside the nanosecond range become the epoch."""
        assert coerce_time(value) == EPOCH

    def test_time_aware_datetime_converted_to_utc(self):
        """Test aware datetimes are converted to UTC."""
        value = datetime(2024, 1, 1, tzinfo=timezone.utc)
        assert coerce_time(value) == pd.Timestamp("2024-01-01T00:00:00Z")

    def test_null_marker(self):
        """Test null columns always hold the nil marker."""
        assert coerce_null(None) == "nil"
        assert coerce_null("anything") == "nil"


@pytest.mark.parametrize(
    "column_type, values",
    [
        (ColumnType.STRING, ["a", None, 3.0]),
        (ColumnType.INT, ["1", None, "x"]),
        (ColumnType.FLOAT, [1.5, None, "2"]),
        (ColumnType.BOOL, [True, "false", None]),
        (ColumnType.TIME, ["2024-01-01T00:00:00.000Z", 1704067200000, None]),
        (ColumnType.NULL, [None, None]),
    ],
)
def test_normalizing_twice_is_a_no_op(column_type, values):
    """Test coercing an already coerced column changes nothing."""
    once = coerce_values(values, column_type)
    assert coerce_values(once, column_type) == once


class TestNormalizeTable:
    """Tests for normalize_table function."""

    def test_dtypes_follow_column_types(self):
        """Test each column type maps to its pandas dtype."""
        table = ResultTable(
            columns=(
                Column("timestamp", ColumnType.TIME),
                Column("page", ColumnType.STRING),
                Column("edits", ColumnType.FLOAT),
                Column("views", ColumnType.INT),
                Column("bot", ColumnType.BOOL),
                Column("nothing", ColumnType.NULL),
            ),
            rows=[
                ["2024-01-01T00:00:00.000Z", "Main", 3, "10", True, None],
                ["2024-01-02T00:00:00.000Z", None, None, None, "false", None],
            ],
        )
        normalized = normalize_table(table)
        frame = normalized.frame
        assert list(frame.columns) == ["timestamp", "page", "edits", "views", "bot", "nothing"]
        assert str(frame["timestamp"].dtype) == "datetime64[ns, UTC]"
        assert frame["page"].tolist() == ["Main", ""]
        assert frame["edits"].dtype == "float64"
        assert frame["views"].tolist() == [10, 0]
        assert frame["views"].dtype == "int64"
        assert frame["bot"].tolist() == [True, False]
        assert frame["nothing"].tolist() == ["nil", "nil"]

    def test_out_of_range_time_column(self):
        """Test a time column with out-of-range cells still builds a frame."""
        table = ResultTable(
            columns=(Column("__time", ColumnType.TIME), Column("page", ColumnType.STRING)),
            rows=[[1e20, "Main"], ["3000-01-01T00:00:00.000Z", "Talk"], [1704067200000, "Home"]],
        )
        before = pd.Timestamp.now(tz="UTC")
        frame = normalize_table(table).frame
        assert str(frame["__time"].dtype) == "datetime64[ns, UTC]"
        assert frame["__time"].iloc[0] == EPOCH
        assert frame["__time"].iloc[1] >= before
        assert frame["__time"].iloc[2] == pd.Timestamp("2024-01-01T00:00:00Z")
        assert frame["page"].tolist() == ["Main", "Talk", "Home"]

    def test_empty_columns_flagged_before_substitution(self):
        """Test empty flags look at raw cells, not substitutes."""
        table = ResultTable(
            columns=(
                Column("a", ColumnType.STRING),
                Column("b", ColumnType.STRING),
                Column("c", ColumnType.FLOAT),
            ),
            rows=[[None, "x", None], ["", None, 0.0]],
        )
        assert normalize_table(table).empty_columns == ("a",)

    def test_row_count_preserved(self):
        """Test normalization keeps every row."""
        table = ResultTable(columns=(Column("v", ColumnType.FLOAT),), rows=[[1.0]] * 7)
        assert len(normalize_table(table).frame.index) == 7

    def test_empty_table(self):
        """Test an empty table gives an empty frame."""
        normalized = normalize_table(ResultTable(columns=(), rows=[]))
        assert normalized.frame.empty
        assert normalized.empty_columns == ()
