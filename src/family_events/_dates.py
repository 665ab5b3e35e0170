"""Calendar-date and time-of-day helpers shared by expansion and export."""

from __future__ import annotations

import re
from datetime import date, datetime, time, timedelta

from dateutil.parser import isoparse

from .exceptions import InvalidEventError

_DATE_PREFIX_RE = re.compile(r"^\d{4}-\d{2}-\d{2}(?!\d)")
_TIME_RE = re.compile(r"^\s*(\d{1,2}):(\d{2})(?::(\d{2}))?\s*$")


def parse_date(value: date | str, *, field: str = "date") -> date:
    """Parse a ``YYYY-MM-DD`` value into a ``date``.

    A trailing time part is allowed and dropped. Reduced-precision, week and
    ordinal ISO forms are rejected. ``datetime`` values are truncated to
    their calendar date.

    Raises:
        InvalidEventError: If the value is missing or not an ISO date.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value.strip():
        raise InvalidEventError(f"Missing or invalid {field}: {value!r}")
    if _DATE_PREFIX_RE.match(value.strip()) is None:
        raise InvalidEventError(f"Unparsable {field}: {value!r}")
    try:
        return isoparse(value.strip()).date()
    except (ValueError, OverflowError) as err:
        raise InvalidEventError(f"Unparsable {field}: {value!r}") from err


def parse_optional_date(value: object) -> date | None:
    """Lenient variant of :func:`parse_date` for optional fields."""
    if value is None or value == "":
        return None
    try:
        return parse_date(value, field="optional date")  # type: ignore[arg-type]
    except InvalidEventError:
        return None


def parse_time(value: str | None) -> time | None:
    """Parse ``HH:MM`` (or ``HH:MM:SS``) into a ``time``; ``None`` if malformed."""
    if not value or not isinstance(value, str):
        return None
    m = _TIME_RE.match(value)
    if m is None:
        return None
    hour, minute, second = int(m.group(1)), int(m.group(2)), int(m.group(3) or 0)
    if hour > 23 or minute > 59 or second > 59:
        return None
    return time(hour, minute, second)


def minutes_since_midnight(value: str | None) -> int | None:
    parsed = parse_time(value)
    if parsed is None:
        return None
    return parsed.hour * 60 + parsed.minute


def add_days(day: date, days: int) -> date:
    return day + timedelta(days=days)

