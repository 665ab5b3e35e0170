"""Occurrence expansion and calendar file export for family events."""

from .const import __version__
from ._client import FamilyEventsClient
from .download import async_calendar_download, build_calendar_response
from .exceptions import (
    ApiConnectionError,
    ApiResponseError,
    AuthenticationError,
    EventNotFoundError,
    FamilyEventsError,
    InvalidEventError,
    RateLimitError,
    SerializationError,
    UnknownTimezoneError,
)
from .expansion import (
    describe_recurrence,
    expand_events_for_range,
    group_by_date,
    is_multi_day_event,
    is_recurring_event,
    iter_occurrences,
)
from .ics import generate_ics, ics_filename
from .models import (
    EventRecord,
    Occurrence,
    RecurrenceData,
    RecurrencePattern,
    ScheduleData,
)

__all__ = [
    "__version__",
    "FamilyEventsClient",
    "async_calendar_download",
    "build_calendar_response",
    "ApiConnectionError",
    "ApiResponseError",
    "AuthenticationError",
    "EventNotFoundError",
    "FamilyEventsError",
    "InvalidEventError",
    "RateLimitError",
    "SerializationError",
    "UnknownTimezoneError",
    "describe_recurrence",
    "expand_events_for_range",
    "group_by_date",
    "is_multi_day_event",
    "is_recurring_event",
    "iter_occurrences",
    "generate_ics",
    "ics_filename",
    "EventRecord",
    "Occurrence",
    "RecurrenceData",
    "RecurrencePattern",
    "ScheduleData",
]
