"""Expansion of family events into per-day occurrences.

Multi-day events are spread over the days they cover and recurring events
are stepped from their anchor date; both are clipped to an inclusive query
window. The result is ordered for a day-by-day agenda view.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator, Mapping
from datetime import date, datetime, time
from typing import Any, Union

from dateutil.rrule import MONTHLY, WEEKLY, rrule

from ._dates import add_days, parse_date
from .models import EventRecord, Occurrence, RecurrenceData, RecurrencePattern, ScheduleData

_LOGGER = logging.getLogger(__name__)

EventLike = Union[EventRecord, Mapping[str, Any]]

# pattern -> (rrule frequency, interval)
_RECURRENCE_STEPS: dict[RecurrencePattern, tuple[int, int]] = {
    RecurrencePattern.WEEKLY: (WEEKLY, 1),
    RecurrencePattern.BIWEEKLY: (WEEKLY, 2),
    RecurrencePattern.MONTHLY: (MONTHLY, 1),
}

_RECURRENCE_PHRASES: dict[RecurrencePattern, str] = {
    RecurrencePattern.WEEKLY: "Repeats weekly",
    RecurrencePattern.BIWEEKLY: "Repeats every 2 weeks",
    RecurrencePattern.MONTHLY: "Repeats monthly",
}

# Same-day ordering ranks
_RANK_ALL_DAY = 0
_RANK_TIMED = 1
_RANK_UNTIMED = 2


def expand_events_for_range(
    events: Iterable[EventLike],
    range_start: date | str,
    range_end: date | str,
) -> list[Occurrence]:
    """Expand events into the occurrences visible in ``[range_start, range_end]``.

    Both bounds are inclusive. An inverted range yields an empty list.

    Raises:
        InvalidEventError: If a range bound or an event's ``event_date``
            cannot be parsed.
    """
    start = parse_date(range_start, field="range_start")
    end = parse_date(range_end, field="range_end")
    records = [_as_record(ev) for ev in events]
    if start > end:
        _LOGGER.debug("Empty expansion for inverted range %s..%s", start, end)
        return []

    expanded: list[Occurrence] = []
    for record in records:
        expanded.extend(iter_occurrences(record, start, end))

    expanded.sort(key=_sort_key)
    return expanded


def iter_occurrences(
    event: EventLike,
    range_start: date,
    range_end: date,
) -> Iterator[Occurrence]:
    """Yield the occurrences of a single event inside the inclusive range."""
    record = _as_record(event)

    # Recurrence wins when an event declares both shapes.
    if record.is_recurring:
        yield from _expand_recurring(record, range_start, range_end)
    elif record.is_multi_day:
        yield from _expand_multi_day(record, range_start, range_end)
    elif range_start <= record.event_date <= range_end:
        yield Occurrence(event=record, display_date=record.event_date)


def group_by_date(occurrences: Iterable[Occurrence]) -> dict[date, list[Occurrence]]:
    """Group occurrences by ``display_date``, keeping their order."""
    grouped: dict[date, list[Occurrence]] = {}
    for occ in occurrences:
        grouped.setdefault(occ.display_date, []).append(occ)
    return grouped


def is_multi_day_event(event: EventLike) -> bool:
    """Whether ``schedule_data.duration_days`` is present and greater than 1."""
    if isinstance(event, EventRecord):
        return event.is_multi_day
    schedule = ScheduleData.from_api_response(event.get("schedule_data"))
    return (
        schedule is not None
        and schedule.duration_days is not None
        and schedule.duration_days > 1
    )


def is_recurring_event(event: EventLike) -> bool:
    """Whether ``is_recurring`` is true and a supported pattern is set."""
    if isinstance(event, EventRecord):
        return event.is_recurring
    recurrence = RecurrenceData.from_api_response(event.get("recurrence_data"))
    return (
        recurrence is not None
        and recurrence.is_recurring
        and recurrence.pattern is not None
    )


def describe_recurrence(event: EventLike) -> str:
    """Return a human-readable repeat description, or ``""``."""
    if isinstance(event, EventRecord):
        recurrence = event.recurrence_data
    else:
        recurrence = RecurrenceData.from_api_response(event.get("recurrence_data"))
    if (
        recurrence is None
        or not recurrence.is_recurring
        or recurrence.pattern is None
    ):
        return ""

    desc = _RECURRENCE_PHRASES[recurrence.pattern]
    if recurrence.until_date is not None:
        desc += f" until {_format_until(recurrence.until_date)}"
    return desc


# --------------------------------------------------------------------------- #
#  Expansion helpers
# --------------------------------------------------------------------------- #


def _expand_multi_day(
    event: EventRecord,
    range_start: date,
    range_end: date,
) -> Iterator[Occurrence]:
    total = event.duration_days
    for offset in range(total):
        display_date = add_days(event.event_date, offset)
        if display_date > range_end:
            break
        if display_date < range_start:
            continue
        day_index = offset + 1
        yield Occurrence(
            event=event,
            display_date=display_date,
            display_suffix=f" (Day {day_index} of {total})",
            day_index=day_index,
            total_days=total,
            is_multi_day_instance=True,
        )


def _expand_recurring(
    event: EventRecord,
    range_start: date,
    range_end: date,
) -> Iterator[Occurrence]:
    """Step from the anchor date so the cadence stays phase-locked to it.

    Monthly steps follow RFC 5545: an anchor on the 29th-31st skips months
    that lack that day, matching what calendar clients do with the
    exported ``RRULE:FREQ=MONTHLY``.
    """
    recurrence = event.recurrence_data
    if recurrence is None or recurrence.pattern is None:
        return

    upper = range_end
    if recurrence.until_date is not None and recurrence.until_date < upper:
        upper = recurrence.until_date
    if upper < event.event_date or upper < range_start:
        return

    freq, interval = _RECURRENCE_STEPS[recurrence.pattern]
    rule = rrule(
        freq,
        interval=interval,
        dtstart=datetime.combine(event.event_date, time.min),
        until=datetime.combine(upper, time.min),
    )
    for occ_start in rule:
        display_date = occ_start.date()
        if display_date < range_start:
            continue
        yield Occurrence(
            event=event,
            display_date=display_date,
            is_recurring_instance=True,
        )


def _sort_key(occ: Occurrence) -> tuple[date, int, int]:
    """Order by day, then all-day first, then start time, then untimed."""
    schedule = occ.event.schedule_data
    if schedule is not None and schedule.all_day:
        return (occ.display_date, _RANK_ALL_DAY, 0)
    minutes = schedule.start_minutes if schedule is not None else None
    if minutes is not None:
        return (occ.display_date, _RANK_TIMED, minutes)
    return (occ.display_date, _RANK_UNTIMED, 0)


def _as_record(event: EventLike) -> EventRecord:
    if isinstance(event, EventRecord):
        return event
    return EventRecord.from_api_response(dict(event))


def _format_until(day: date) -> str:
    return f"{day:%b} {day.day}, {day.year}"
