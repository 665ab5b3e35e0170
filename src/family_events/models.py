"""Data models for family event records and their derived occurrences."""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Any

from ._dates import minutes_since_midnight, parse_date, parse_optional_date
from .const import DEFAULT_DURATION_DAYS
from .exceptions import InvalidEventError

_LOGGER = logging.getLogger(__name__)

_KNOWN_KEYS = frozenset(
    {
        "id",
        "title",
        "event_date",
        "schedule_data",
        "recurrence_data",
        "participants",
        "metadata",
    }
)


class RecurrencePattern(str, enum.Enum):
    """Repeat patterns the product offers.

    Stored as lowercase strings in ``recurrence_data.pattern``.
    """

    WEEKLY = "weekly"
    BIWEEKLY = "biweekly"
    MONTHLY = "monthly"


@dataclass(frozen=True)
class ScheduleData:
    """Time-of-day and span information of an event."""

    start_time: str | None = None  # "HH:MM"
    end_time: str | None = None  # "HH:MM"
    all_day: bool = False
    duration_days: int | None = None

    @classmethod
    def from_api_response(cls, data: Any) -> ScheduleData | None:
        """Construct from the stored JSON object; ``None`` if absent or not an object."""
        if data is None:
            return None
        if not isinstance(data, dict):
            _LOGGER.debug("Ignoring non-object schedule_data: %r", data)
            return None
        return cls(
            start_time=_optional_str(data.get("start_time")),
            end_time=_optional_str(data.get("end_time")),
            all_day=data.get("all_day") is True,
            duration_days=_parse_duration(data.get("duration_days")),
        )

    @property
    def start_minutes(self) -> int | None:
        """Minutes since midnight of ``start_time``, if it parses."""
        return minutes_since_midnight(self.start_time)

    def to_api_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {}
        if self.start_time is not None:
            result["start_time"] = self.start_time
        if self.end_time is not None:
            result["end_time"] = self.end_time
        if self.all_day:
            result["all_day"] = True
        if self.duration_days is not None:
            result["duration_days"] = self.duration_days
        return result


@dataclass(frozen=True)
class RecurrenceData:
    """Repeat settings of an event."""

    is_recurring: bool = False
    pattern: RecurrencePattern | None = None
    until_date: date | None = None

    @classmethod
    def from_api_response(cls, data: Any) -> RecurrenceData | None:
        """Construct from the stored JSON object; ``None`` if absent or not an object."""
        if data is None:
            return None
        if not isinstance(data, dict):
            _LOGGER.debug("Ignoring non-object recurrence_data: %r", data)
            return None
        return cls(
            is_recurring=data.get("is_recurring") is True,
            pattern=_parse_pattern(data.get("pattern")),
            until_date=parse_optional_date(data.get("until_date")),
        )

    def to_api_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"is_recurring": self.is_recurring}
        if self.pattern is not None:
            result["pattern"] = self.pattern.value
        if self.until_date is not None:
            result["until_date"] = self.until_date.isoformat()
        return result


@dataclass(frozen=True)
class EventRecord:
    """A family event as stored.

    The record is immutable; expansion and export only read it.
    """

    id: str
    title: str
    event_date: date
    schedule_data: ScheduleData | None = None
    recurrence_data: RecurrenceData | None = None
    participants: tuple[str, ...] = field(default_factory=tuple)
    metadata: dict[str, Any] = field(default_factory=dict)
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_api_response(cls, data: dict[str, Any]) -> EventRecord:
        """Construct from a row of the events table.

        Raises:
            InvalidEventError: If ``id`` is missing or ``event_date`` does not
                parse. Every other field degrades to its default.
        """
        if data.get("id") in (None, ""):
            raise InvalidEventError("Event record has no id")
        metadata = data.get("metadata")
        return cls(
            id=str(data["id"]),
            title=str(data.get("title") or ""),
            event_date=parse_date(data.get("event_date"), field="event_date"),
            schedule_data=ScheduleData.from_api_response(data.get("schedule_data")),
            recurrence_data=RecurrenceData.from_api_response(
                data.get("recurrence_data")
            ),
            participants=tuple(str(p) for p in data.get("participants") or ()),
            metadata=dict(metadata) if isinstance(metadata, dict) else {},
            extra={k: v for k, v in data.items() if k not in _KNOWN_KEYS},
        )

    @property
    def is_multi_day(self) -> bool:
        """Whether the event declares a span of more than one day."""
        return (
            self.schedule_data is not None
            and self.schedule_data.duration_days is not None
            and self.schedule_data.duration_days > 1
        )

    @property
    def is_recurring(self) -> bool:
        """Whether the event repeats with a supported pattern."""
        return (
            self.recurrence_data is not None
            and self.recurrence_data.is_recurring
            and self.recurrence_data.pattern is not None
        )

    @property
    def duration_days(self) -> int:
        if self.is_multi_day:
            return self.schedule_data.duration_days  # type: ignore[union-attr]
        return DEFAULT_DURATION_DAYS

    @property
    def all_day(self) -> bool:
        return self.schedule_data is not None and self.schedule_data.all_day

    @property
    def start_time(self) -> str | None:
        return self.schedule_data.start_time if self.schedule_data else None

    @property
    def end_time(self) -> str | None:
        return self.schedule_data.end_time if self.schedule_data else None

    @property
    def emoji(self) -> str:
        value = self.metadata.get("emoji")
        return value if isinstance(value, str) else ""

    def to_api_dict(self) -> dict[str, Any]:
        """Convert back to a plain row, passthrough columns included."""
        result: dict[str, Any] = dict(self.extra)
        result.update(
            {
                "id": self.id,
                "title": self.title,
                "event_date": self.event_date.isoformat(),
                "participants": list(self.participants),
                "metadata": dict(self.metadata),
            }
        )
        if self.schedule_data is not None:
            result["schedule_data"] = self.schedule_data.to_api_dict()
        if self.recurrence_data is not None:
            result["recurrence_data"] = self.recurrence_data.to_api_dict()
        return result


@dataclass(frozen=True)
class Occurrence:
    """One calendar-day appearance of an event inside a query window.

    Produced fresh per query and never stored. Identity is
    ``(event.id, display_date)``.
    """

    event: EventRecord
    display_date: date
    display_suffix: str | None = None
    day_index: int | None = None
    total_days: int | None = None
    is_recurring_instance: bool = False
    is_multi_day_instance: bool = False

    @property
    def id(self) -> str:
        return self.event.id

    @property
    def title(self) -> str:
        return self.event.title

    @property
    def display_title(self) -> str:
        """Title with the ``" (Day i of N)"`` suffix, if any."""
        return f"{self.event.title}{self.display_suffix or ''}"

    def to_dict(self) -> dict[str, Any]:
        """Flatten into the source row plus the occurrence fields."""
        result = self.event.to_api_dict()
        result["display_date"] = self.display_date.isoformat()
        if self.display_suffix is not None:
            result["display_suffix"] = self.display_suffix
            result["day_index"] = self.day_index
            result["total_days"] = self.total_days
            result["is_multi_day_instance"] = self.is_multi_day_instance
        if self.is_recurring_instance:
            result["is_recurring_instance"] = True
        return result


def _optional_str(value: Any) -> str | None:
    if value is None or value == "":
        return None
    return str(value)


def _parse_duration(value: Any) -> int | None:
    """Parse ``duration_days``; ``None`` for absent or unusable values."""
    if value is None or isinstance(value, bool):
        return None
    try:
        days = int(value)
    except (TypeError, ValueError):
        _LOGGER.debug("Ignoring unparsable duration_days: %r", value)
        return None
    return days if days >= 1 else None


def _parse_pattern(value: Any) -> RecurrencePattern | None:
    """Parse a recurrence pattern, degrading to ``None`` for unknown values."""
    if value is None or value == "":
        return None
    try:
        return RecurrencePattern(value)
    except ValueError:
        _LOGGER.debug("Ignoring unsupported recurrence pattern: %r", value)
        return None
