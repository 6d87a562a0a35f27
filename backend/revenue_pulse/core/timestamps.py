"""Timestamp normalization for commerce platform records.

The platform reports instants as epoch seconds, epoch milliseconds or date
strings, sometimes as numbers and sometimes as numeric strings. Every date
comparison in the metrics engine goes through :func:`parse_timestamp`, so
all instants it sees are timezone-aware UTC datetimes or ``None``.
"""

import math
from datetime import UTC, date, datetime, timedelta
from decimal import Decimal
from email.utils import parsedate_to_datetime

EPOCH = datetime(1970, 1, 1, tzinfo=UTC)

# Numeric values with a larger magnitude are epoch milliseconds.
MILLISECONDS_THRESHOLD = 1e12


def _as_utc(dt: datetime) -> datetime | None:
    """Attach UTC to naive datetimes and convert aware ones to UTC."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    try:
        return dt.astimezone(UTC)
    except OverflowError:
        return None


def _to_float(text: str) -> float | None:
    try:
        return float(text)
    except ValueError:
        return None


def _from_epoch(value: float) -> datetime | None:
    """Interpret a number as epoch seconds or epoch milliseconds."""
    if not math.isfinite(value):
        return None
    try:
        if abs(value) > MILLISECONDS_THRESHOLD:
            return EPOCH + timedelta(milliseconds=value)
        return EPOCH + timedelta(seconds=value)
    except OverflowError:
        return None


def _parse_date_string(text: str) -> datetime | None:
    """Parse ISO-8601 first, then RFC 2822 as used in HTTP headers."""
    try:
        return _as_utc(datetime.fromisoformat(text))
    except ValueError:
        pass
    try:
        return _as_utc(parsedate_to_datetime(text))
    except (TypeError, ValueError, IndexError, OverflowError):
        return None


def parse_timestamp(value: object) -> datetime | None:
    """Normalize a raw timestamp to an aware UTC datetime.

    Args:
        value: ``None``, a number, a numeric string, a date string or a
            ``datetime``/``date`` instance.

    Returns:
        The instant in UTC, or ``None`` when the value cannot be read as
        one. Never raises.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return _as_utc(value)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=UTC)
    if isinstance(value, int | float | Decimal):
        try:
            parsed = _from_epoch(float(value))
        except (ValueError, OverflowError):
            parsed = None
        if parsed is not None:
            return parsed
        return _parse_date_string(str(value))
    if not isinstance(value, str):
        return None

    text = value.strip()
    if not text:
        return None

    number = _to_float(text)
    if number is not None:
        parsed = _from_epoch(number)
        if parsed is not None:
            return parsed
    return _parse_date_string(text)
