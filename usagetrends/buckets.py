"""Canonical time buckets for trend queries.

A period ('daily', 'weekly', 'monthly') plus a reference date resolves to a
half-open local time range and an ordered, gap-free list of bucket keys:

  - daily:   24 hour keys "0:00" .. "23:00"
  - weekly:  the 7 ISO dates Monday .. Sunday of the reference week
  - monthly: one ISO date per calendar day of the reference month

All calendar arithmetic goes through pandas offsets and periods.
"""

from __future__ import annotations
from datetime import date, datetime
from typing import Final, get_args
from zoneinfo import ZoneInfo

import pandas as pd

from . import canon, exceptions
from .types import Granularity, Period

PERIODS: Final[tuple[str, ...]] = get_args(Period)

_EXPECTED_FORMAT: Final[dict[str, str]] = {
    "daily": "YYYY-MM-DD",
    "weekly": "YYYY-MM-DD",
    "monthly": "YYYY-MM",
}


def _check_period(period: str) -> None:
    if period not in PERIODS:
        raise exceptions.InvalidArgument(
            f"Unknown period {period!r}. Expected one of: {', '.join(PERIODS)}."
        )


def hour_key(hour: int) -> str:
    return f"{int(hour)}:00"


def key_hour(key: str) -> int:
    """Inverse of hour_key: '8:00' -> 8."""
    return int(key.split(":", 1)[0])


def granularity_for(period: Period) -> Granularity:
    _check_period(period)
    return "hour" if period == "daily" else "day"


# OutOfBoundsDatetime is a ValueError; datetime overflow surfaces as either
_OUT_OF_BOUNDS = (ValueError, OverflowError)


def _out_of_range(value: object) -> exceptions.InvalidArgument:
    return exceptions.InvalidArgument(
        f"'date' parameter {value!r} is outside the supported calendar range."
    )


def _parse_str(period: Period, value: str) -> pd.Timestamp:
    s = value.strip()
    formats = [canon.DATE_FORMAT]
    if period == "monthly":
        formats = [canon.MONTH_FORMAT, canon.DATE_FORMAT]
    for fmt in formats:
        try:
            return pd.Timestamp(datetime.strptime(s, fmt))
        except ValueError:
            continue
    raise exceptions.InvalidArgument(
        f"Malformed 'date' parameter {value!r}; expected {_EXPECTED_FORMAT[period]}."
    )


def parse_reference(period: Period, value: object) -> pd.Timestamp:
    """
    Parse a query's reference date into a naive midnight Timestamp.

    Monthly references are truncated to the first of the month.
    """
    _check_period(period)
    if value is None or (isinstance(value, str) and not value.strip()):
        raise exceptions.InvalidArgument(
            f"Missing 'date' parameter ({_EXPECTED_FORMAT[period]})."
        )

    if isinstance(value, str):
        ts = _parse_str(period, value)
    elif isinstance(value, (datetime, date)):
        # wall-clock date of the value, whatever its tz
        ts = pd.Timestamp(datetime(value.year, value.month, value.day))
    else:
        raise exceptions.InvalidArgument(
            f"Unsupported 'date' value of type {type(value).__name__}."
        )

    ts = ts.normalize()
    if period == "monthly":
        ts = ts.replace(day=1)
    try:
        # the whole period, end included, must be representable
        _local_end(period, _local_start(period, ts))
    except _OUT_OF_BOUNDS:
        raise _out_of_range(value) from None
    return ts


def week_start(day: pd.Timestamp) -> pd.Timestamp:
    """Monday (00:00) of the ISO week containing day."""
    naive = day.tz_localize(None) if day.tz is not None else day
    monday = naive.to_period("W-SUN").start_time
    if day.tz is not None:
        return monday.tz_localize(day.tz, nonexistent="shift_forward")
    return monday


def _local_start(period: Period, reference: pd.Timestamp) -> pd.Timestamp:
    if period == "daily":
        return reference.normalize()
    if period == "weekly":
        return week_start(reference.normalize())
    return reference.normalize().replace(day=1)


def _local_end(period: Period, start: pd.Timestamp) -> pd.Timestamp:
    if period == "daily":
        return start + pd.DateOffset(days=1)
    if period == "weekly":
        return start + pd.DateOffset(weeks=1)
    return start + pd.offsets.MonthBegin(1)


def localise(ts: pd.Timestamp, tz: str) -> pd.Timestamp:
    return ts.tz_localize(
        ZoneInfo(tz), ambiguous=True, nonexistent="shift_forward"
    )


def resolve_range(
    period: Period, reference: object, tz: str = canon.DEFAULT_TZ
) -> tuple[pd.Timestamp, pd.Timestamp]:
    """Return the half-open [start, end) of the period as tz-aware local midnights."""
    ref = parse_reference(period, reference)
    start = _local_start(period, ref)
    end = _local_end(period, start)
    try:
        return localise(start, tz), localise(end, tz)
    except _OUT_OF_BOUNDS:
        raise _out_of_range(reference) from None


def build_skeleton(period: Period, reference: object) -> list[str]:
    """Ordered, gap-free bucket keys for the period containing reference."""
    ref = parse_reference(period, reference)
    if period == "daily":
        return [hour_key(h) for h in range(canon.HOURS_PER_DAY)]

    start = _local_start(period, ref)
    if period == "weekly":
        periods = canon.DAYS_PER_WEEK
    else:
        periods = int(start.days_in_month)
    days = pd.date_range(start, periods=periods, freq="D")
    return list(days.strftime(canon.DATE_FORMAT))


def bucket_keys(index: pd.DatetimeIndex, granularity: Granularity) -> pd.Index:
    """Map timestamps to canonical bucket keys in their own (local) tz."""
    if granularity == "hour":
        return pd.Index([hour_key(h) for h in index.hour], dtype=object)
    if granularity == "day":
        return pd.Index(index.strftime(canon.DATE_FORMAT), dtype=object)
    raise exceptions.InvalidArgument(f"Unknown granularity {granularity!r}.")
