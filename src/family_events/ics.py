"""iCalendar (RFC 5545) export of a single family event.

The document carries its own VTIMEZONE definition for timed events so the
attachment imports at the right wall-clock time in any calendar client.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from datetime import date, datetime, time, timedelta, timezone as dt_timezone
from functools import lru_cache
from typing import Any, NamedTuple, Union
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from icalendar import Alarm, Calendar, Event, Timezone, TimezoneDaylight, TimezoneStandard

from ._dates import add_days, parse_time
from .const import (
    DEFAULT_EVENT_HOURS,
    DEFAULT_TIMEZONE,
    DST_PROBE_SUMMER,
    DST_PROBE_WINTER,
    DST_TRANSITION_HOUR,
    ICS_FALLBACK_FILENAME,
    ICS_PRODID,
    ICS_REMINDER_MINUTES,
    ICS_UID_DOMAIN,
)
from .exceptions import UnknownTimezoneError
from .models import EventRecord, RecurrencePattern

_LOGGER = logging.getLogger(__name__)

EventLike = Union[EventRecord, Mapping[str, Any]]

# pattern -> RRULE parts
_RRULE_PARTS: dict[RecurrencePattern, dict[str, Any]] = {
    RecurrencePattern.WEEKLY: {"freq": "WEEKLY"},
    RecurrencePattern.BIWEEKLY: {"freq": "WEEKLY", "interval": 2},
    RecurrencePattern.MONTHLY: {"freq": "MONTHLY"},
}

_FILENAME_STRIP = re.compile(r"[^a-zA-Z0-9 ]")

_EPOCH = datetime(1970, 1, 1)


class _ZoneProbe(NamedTuple):
    """UTC offsets (minutes) and abbreviations sampled in winter and summer."""

    winter_offset: int
    winter_name: str
    summer_offset: int
    summer_name: str


def generate_ics(
    event: EventLike,
    timezone: str = DEFAULT_TIMEZONE,
    *,
    now: datetime | None = None,
) -> str:
    """Serialize one event into a complete calendar document.

    Args:
        event: The event record (or its stored row).
        timezone: IANA zone name the event's wall-clock times belong to,
            normally the viewer's profile preference.
        now: Generation timestamp for ``DTSTAMP``; defaults to the current
            UTC time. A naive value is taken to be UTC. Passing it makes the
            output fully reproducible.

    Returns:
        The document, CRLF-terminated, ending with a trailing CRLF.

    Raises:
        UnknownTimezoneError: If ``timezone`` is not a known zone.
        InvalidEventError: If a row is passed whose ``event_date`` does not parse.
    """
    if isinstance(event, EventRecord):
        record = event
    else:
        record = EventRecord.from_api_response(dict(event))
    # All-day documents still name the zone, so it is validated up front.
    _resolve_zone(timezone)

    start_time = parse_time(record.start_time)
    if record.start_time and start_time is None:
        _LOGGER.debug(
            "Event %s has unparsable start_time %r, exporting as all-day",
            record.id,
            record.start_time,
        )
    timed_start = None if record.all_day else start_time

    cal = Calendar()
    cal.add("version", "2.0")
    cal.add("prodid", ICS_PRODID)
    cal.add("calscale", "GREGORIAN")
    cal.add("method", "PUBLISH")
    cal.add("x-wr-timezone", timezone)
    if timed_start is not None:
        cal.add_component(_vtimezone(timezone, record.event_date.year))

    vevent = Event()
    vevent.add("uid", f"{record.id}@{ICS_UID_DOMAIN}")
    vevent.add("dtstamp", _utc_stamp(now))
    if timed_start is not None:
        start, end = _timed_bounds(record, timed_start)
        vevent.add("dtstart", start, parameters={"TZID": timezone})
        vevent.add("dtend", end, parameters={"TZID": timezone})
    else:
        vevent.add("dtstart", record.event_date)
        vevent.add("dtend", add_days(record.event_date, record.duration_days))

    rrule = _rrule(record)
    if rrule is not None:
        vevent.add("rrule", rrule)

    summary = f"{record.emoji} {record.title}" if record.emoji else record.title
    vevent.add("summary", summary)
    if record.participants:
        vevent.add("description", f"Participants: {', '.join(record.participants)}")

    alarm = Alarm()
    alarm.add("trigger", timedelta(minutes=-ICS_REMINDER_MINUTES))
    alarm.add("action", "DISPLAY")
    alarm.add("description", "Event reminder")
    vevent.add_component(alarm)
    cal.add_component(vevent)

    # Insertion order is the property order clients expect.
    return cal.to_ical(sorted=False).decode("utf-8")


def ics_filename(title: str) -> str:
    """Build a download filename from an event title.

    Only ASCII letters, digits and spaces survive; an empty result falls
    back to ``event.ics``.
    """
    stem = _FILENAME_STRIP.sub("", title or "").strip()
    return f"{stem or ICS_FALLBACK_FILENAME}.ics"


# --------------------------------------------------------------------------- #
#  Event bounds and recurrence
# --------------------------------------------------------------------------- #


def _utc_stamp(now: datetime | None) -> datetime:
    if now is None:
        return datetime.now(dt_timezone.utc)
    if now.tzinfo is None:
        return now.replace(tzinfo=dt_timezone.utc)
    return now.astimezone(dt_timezone.utc)


def _timed_bounds(record: EventRecord, start_time: time) -> tuple[datetime, datetime]:
    """Floating local start and end; the caller attaches the TZID.

    An explicit end at or before the start belongs to the next day.
    """
    start = datetime.combine(record.event_date, start_time)
    end_time = parse_time(record.end_time)
    if end_time is None:
        return start, start + timedelta(hours=DEFAULT_EVENT_HOURS)
    end = datetime.combine(record.event_date, end_time)
    if end <= start:
        end += timedelta(days=1)
    return start, end


def _rrule(record: EventRecord) -> dict[str, Any] | None:
    recurrence = record.recurrence_data
    if not record.is_recurring or recurrence is None or recurrence.pattern is None:
        return None
    parts = dict(_RRULE_PARTS[recurrence.pattern])
    if recurrence.until_date is not None:
        parts["until"] = _end_of_day_utc(recurrence.until_date)
    return parts


def _end_of_day_utc(day: date) -> datetime:
    return datetime.combine(day, time(23, 59, 59), tzinfo=dt_timezone.utc)


# --------------------------------------------------------------------------- #
#  Timezone definition
# --------------------------------------------------------------------------- #


def _resolve_zone(name: str) -> ZoneInfo:
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError, TypeError) as err:
        raise UnknownTimezoneError(name) from err


@lru_cache(maxsize=256)
def _probe_zone(name: str, year: int) -> _ZoneProbe:
    """Sample a zone's offset in January and July of ``year``.

    Memoised per ``(zone, year)``; the tz database does not change while
    the process runs.
    """
    zone = _resolve_zone(name)
    winter = datetime(year, *DST_PROBE_WINTER, 12, tzinfo=dt_timezone.utc).astimezone(zone)
    summer = datetime(year, *DST_PROBE_SUMMER, 12, tzinfo=dt_timezone.utc).astimezone(zone)
    return _ZoneProbe(
        winter_offset=_offset_minutes(winter),
        winter_name=winter.tzname() or name,
        summer_offset=_offset_minutes(summer),
        summer_name=summer.tzname() or name,
    )


def _vtimezone(name: str, year: int) -> Timezone:
    """Build the VTIMEZONE component for ``name``.

    Zones with one offset all year get a single STANDARD observance. Zones
    with seasonal changes get a STANDARD (lesser offset) and a DAYLIGHT
    (greater offset) observance, both switching at 02:00 local. Exact
    transition rules are not reproduced.
    """
    probe = _probe_zone(name, year)
    vtimezone = Timezone()
    vtimezone.add("tzid", name)

    if probe.winter_offset == probe.summer_offset:
        vtimezone.add_component(
            _observance(
                TimezoneStandard(),
                _EPOCH,
                probe.winter_offset,
                probe.winter_offset,
                probe.winter_name,
            )
        )
        return vtimezone

    # Southern-hemisphere zones observe daylight time in January.
    if probe.winter_offset < probe.summer_offset:
        std, std_name = probe.winter_offset, probe.winter_name
        dst, dst_name = probe.summer_offset, probe.summer_name
    else:
        std, std_name = probe.summer_offset, probe.summer_name
        dst, dst_name = probe.winter_offset, probe.winter_name

    rollover = _EPOCH.replace(hour=DST_TRANSITION_HOUR)
    vtimezone.add_component(_observance(TimezoneStandard(), rollover, dst, std, std_name))
    vtimezone.add_component(_observance(TimezoneDaylight(), rollover, std, dst, dst_name))
    return vtimezone


def _observance(component, start: datetime, offset_from: int, offset_to: int, tzname: str):
    component.add("dtstart", start)
    component.add("tzoffsetfrom", timedelta(minutes=offset_from))
    component.add("tzoffsetto", timedelta(minutes=offset_to))
    component.add("tzname", tzname)
    return component


def _offset_minutes(moment: datetime) -> int:
    offset = moment.utcoffset() or timedelta(0)
    return int(offset.total_seconds() // 60)
