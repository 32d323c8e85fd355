"""Core utility functions for druid-frames.

Literal parsers shared by inference, normalization and variable projection.
They follow the strict textual forms Druid emits: plain decimal integers,
the Go-style boolean literals and the millisecond ISO-8601 timestamp
``YYYY-MM-DDTHH:MM:SS.mmmZ``.
"""

from __future__ import annotations

import math
import re
from datetime import datetime, timezone
from typing import Optional

import pandas as pd
from pandas.errors import OutOfBoundsDatetime

CANONICAL_TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%S.%fZ"

_INT_RE = re.compile(r"^[+-]?[0-9]+$")
_TIMESTAMP_RE = re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{3}Z$")

_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1

_TRUE_LITERALS = frozenset({"1", "t", "T", "TRUE", "true", "True"})
_FALSE_LITERALS = frozenset({"0", "f", "F", "FALSE", "false", "False"})


def parse_int_literal(text: str) -> Optional[int]:
    """Parse a strict decimal integer that fits in 64 bits.

    Returns None when the text is not an integer literal.

    Examples:
        >>> parse_int_literal("-42")
        -42
        >>> parse_int_literal("4.2") is None
        True
        >>> parse_int_literal(" 42") is None
        True
    """
    if not _INT_RE.match(text):
        return None
    value = int(text)
    if value < _INT64_MIN or value > _INT64_MAX:
        return None
    return value


def parse_bool_literal(text: str) -> Optional[bool]:
    """Parse a boolean literal, returning None when the text is not one.

    Examples:
        >>> parse_bool_literal("T")
        True
        >>> parse_bool_literal("0")
        False
        >>> parse_bool_literal("yes") is None
        True
    """
    if text in _TRUE_LITERALS:
        return True
    if text in _FALSE_LITERALS:
        return False
    return None


def parse_canonical_datetime(text: str) -> Optional[datetime]:
    """Parse ``YYYY-MM-DDTHH:MM:SS.mmmZ`` into an aware datetime.

    Exactly three fractional digits are required. Any year the format can
    express is accepted.

    Examples:
        >>> parse_canonical_datetime("3000-01-01T00:00:00.000Z").year
        3000
        >>> parse_canonical_datetime("2024-01-01T00:00:00Z") is None
        True
    """
    if not _TIMESTAMP_RE.match(text):
        return None
    try:
        parsed = datetime.strptime(text, CANONICAL_TIMESTAMP_FORMAT)
    except ValueError:
        return None
    return parsed.replace(tzinfo=timezone.utc)


def to_nanosecond_timestamp(value: datetime) -> Optional[pd.Timestamp]:
    """Convert to a UTC nanosecond timestamp, None outside the representable range.

    Examples:
        >>> to_nanosecond_timestamp(datetime(3000, 1, 1, tzinfo=timezone.utc)) is None
        True
    """
    try:
        ts = pd.Timestamp(value).as_unit("ns")
    except (OutOfBoundsDatetime, OverflowError):
        return None
    return ts.tz_localize("UTC") if ts.tzinfo is None else ts.tz_convert("UTC")


def parse_canonical_timestamp(text: str) -> Optional[pd.Timestamp]:
    """Parse ``YYYY-MM-DDTHH:MM:SS.mmmZ`` into a UTC nanosecond timestamp.

    Returns None for malformed text and for instants outside the nanosecond
    range (about 1677-09-21 to 2262-04-11).

    Examples:
        >>> parse_canonical_timestamp("2024-01-01T00:00:00.000Z")
        Timestamp('2024-01-01 00:00:00+0000', tz='UTC')
        >>> parse_canonical_timestamp("3000-01-01T00:00:00.000Z") is None
        True
    """
    parsed = parse_canonical_datetime(text)
    if parsed is None:
        return None
    return to_nanosecond_timestamp(parsed)


def epoch_millis_to_timestamp(millis: float) -> pd.Timestamp:
    """Convert epoch milliseconds into a UTC timestamp.

    The value is split into whole milliseconds and a nanosecond remainder so
    that fractional milliseconds survive the conversion. Values outside the
    nanosecond range fall back to the epoch, like non-finite ones.

    Examples:
        >>> epoch_millis_to_timestamp(1704067200000.5)
        Timestamp('2024-01-01 00:00:00.000500+0000', tz='UTC')
    """
    try:
        millis = float(millis)
    except OverflowError:
        millis = 0.0
    if not math.isfinite(millis):
        millis = 0.0
    fraction, whole = math.modf(millis)
    nanos = int(whole) * 1_000_000 + int(round(fraction * 1e6))
    if not _INT64_MIN < nanos <= _INT64_MAX:
        nanos = 0
    return pd.to_datetime(nanos, unit="ns", utc=True)


def utc_now() -> pd.Timestamp:
    """Current wall-clock time in UTC."""
    return pd.Timestamp.now(tz="UTC")


def format_unix_date(ts: pd.Timestamp) -> str:
    """Format a timestamp like ``date(1)``: ``Mon Jan  2 15:04:05 UTC 2006``.

    The day of month is space padded to two characters.

    Examples:
        >>> format_unix_date(pd.Timestamp("2024-01-01T00:00:00Z"))
        'Mon Jan  1 00:00:00 UTC 2024'
    """
    ts = ts.tz_convert("UTC") if ts.tzinfo is not None else ts.tz_localize("UTC")
    return f"{ts:%a %b} {ts.day:>2} {ts:%H:%M:%S} UTC {ts.year}"


def format_number(value: float) -> str:
    """Render a JSON number the way it was written on the wire.

    Examples:
        >>> format_number(5.0)
        '5'
        >>> format_number(1.5)
        '1.5'
    """
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)
