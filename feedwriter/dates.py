"""Date normalization and the two feed wire formats."""

import math
from datetime import date, datetime, timezone
from email.utils import format_datetime
from typing import Any

from dateutil import parser as dateutil_parser

from feedwriter.exceptions import DateParseError

DateInput = datetime | date | str | int | float | None


def utc_now() -> datetime:
    """Return the current instant as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def _as_utc(dt: datetime) -> datetime:
    # Naive values are taken to be UTC
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def to_datetime(value: DateInput) -> datetime:
    """Normalize a timestamp, date string, date or datetime to an aware UTC datetime.

    ``None`` and the empty string mean "now". Numbers are Unix timestamps in
    seconds, as returned by ``time.time()`` and ``datetime.timestamp()``. Millisecond
    epoch values, as produced by JavaScript's ``Date.now()``, must be divided by
    1000 first; passed as is they land tens of thousands of years ahead and
    raise ``DateParseError``.

    Raises:
        DateParseError: if the value cannot be interpreted as an instant
    """
    if value is None or (isinstance(value, str) and not value.strip()):
        return utc_now()

    if isinstance(value, datetime):
        return _as_utc(value)

    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)

    if isinstance(value, str):
        try:
            return _as_utc(dateutil_parser.parse(value.strip()))
        except (ValueError, OverflowError) as e:
            raise DateParseError(value, f"Invalid date string: {value}") from e

    if isinstance(value, (int, float)) and not isinstance(value, bool):
        if isinstance(value, float) and not math.isfinite(value):
            raise DateParseError(value, f"Invalid date number: {value}")
        try:
            return datetime.fromtimestamp(value, tz=timezone.utc)
        except (ValueError, OverflowError, OSError) as e:
            raise DateParseError(value, f"Invalid date number: {value}") from e

    raise DateParseError(value, f"Unsupported date type: {type(value).__name__}")


def format_date(value: DateInput) -> str:
    """Format a date as ISO 8601 with millisecond precision, e.g. 2023-12-01T10:30:00.000Z."""
    dt = to_datetime(value)
    return dt.strftime("%Y-%m-%dT%H:%M:%S.") + f"{dt.microsecond // 1000:03d}Z"


def format_rss_date(value: DateInput) -> str:
    """Format a date for RSS (RFC 822), e.g. Fri, 01 Dec 2023 10:30:00 GMT."""
    return format_datetime(to_datetime(value), usegmt=True)


def format_atom_date(value: DateInput) -> str:
    """Format a date for Atom (RFC 3339)."""
    return format_date(value)


def is_valid_feed_date(
    value: Any,
    max_years_in_past: int = 50,
    max_years_in_future: int = 1,
) -> bool:
    """Check that a date lies within a plausible window around the current year.

    The window runs from January 1st ``max_years_in_past`` years ago to
    December 31st ``max_years_in_future`` years ahead.
    """
    try:
        dt = to_datetime(value)
    except DateParseError:
        return False

    now = utc_now()
    try:
        min_date = datetime(now.year - max_years_in_past, 1, 1, tzinfo=timezone.utc)
        max_date = datetime(now.year + max_years_in_future, 12, 31, tzinfo=timezone.utc)
    except ValueError:
        return False

    return min_date <= dt <= max_date
