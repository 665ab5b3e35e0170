"""Exception hierarchy for the family events core and store client."""

from __future__ import annotations


class FamilyEventsError(Exception):
    """Base exception for all family events errors."""


class InvalidEventError(FamilyEventsError, ValueError):
    """A structurally required field could not be parsed.

    Raised for an unparsable ``event_date`` (or a missing ``id``) when an
    event record is built, and for unparsable query range bounds.
    """


class SerializationError(FamilyEventsError):
    """The calendar file for an event could not be produced."""


class UnknownTimezoneError(SerializationError):
    """The requested timezone is not known to the platform's tz database.

    Attributes:
        timezone: The rejected timezone name.
    """

    def __init__(self, timezone: str) -> None:
        super().__init__(f"Unknown timezone: {timezone!r}")
        self.timezone = timezone


class ApiConnectionError(FamilyEventsError):
    """Event store is unreachable (network error, DNS, timeout)."""


class ApiResponseError(FamilyEventsError):
    """Event store returned an unexpected error response.

    Attributes:
        status_code: HTTP status code, if available.
    """

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class AuthenticationError(ApiResponseError):
    """The store rejected the API key (401/403)."""


class RateLimitError(ApiResponseError):
    """Store returned 429 Too Many Requests.

    Attributes:
        retry_after: Seconds to wait before retrying, if provided by the server.
    """

    def __init__(
        self,
        message: str = "Rate limited",
        *,
        status_code: int = 429,
        retry_after: float | None = None,
    ) -> None:
        super().__init__(message, status_code=status_code)
        self.retry_after = retry_after


class EventNotFoundError(ApiResponseError):
    """A single event lookup matched no row for the family."""

    def __init__(self, event_id: str) -> None:
        super().__init__(f"Event not found: {event_id}", status_code=404)
        self.event_id = event_id
