"""Async client for the hosted event store's REST interface."""

from __future__ import annotations

import logging
from datetime import date
from typing import Any

import aiohttp

from ._dates import parse_date
from .const import DEFAULT_TIMEZONE, EVENTS_TABLE, PROFILES_TABLE, REST_PREFIX
from .exceptions import (
    ApiConnectionError,
    ApiResponseError,
    AuthenticationError,
    EventNotFoundError,
    RateLimitError,
)
from .expansion import expand_events_for_range
from .models import EventRecord, Occurrence

_LOGGER = logging.getLogger(__name__)


class FamilyEventsClient:
    """Read-only access to a family's event rows and profile preferences.

    Requests go to the store's REST tables under ``{base_url}/rest/v1``.
    The ``api_key`` is always sent as ``apikey``; the bearer token is the
    signed-in member's ``access_token`` when given, else the key itself.

    A session passed in stays open when the client closes. Without one, the
    client opens a private session that ``async_close()`` (or leaving an
    ``async with`` block) shuts down.
    """

    def __init__(
        self,
        base_url: str,
        api_key: str,
        session: aiohttp.ClientSession | None = None,
        *,
        access_token: str | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/") + REST_PREFIX
        self._api_key = api_key
        self._access_token = access_token
        self._owns_session = session is None
        self._session = session or aiohttp.ClientSession()

    async def __aenter__(self) -> FamilyEventsClient:
        return self

    async def __aexit__(self, *_: Any) -> None:
        await self.async_close()

    async def async_close(self) -> None:
        """Close the HTTP session if the client owns it."""
        if self._owns_session:
            await self._session.close()

    # ------------------------------------------------------------------ #
    #  Events
    # ------------------------------------------------------------------ #

    async def async_get_events(
        self,
        family_id: str,
        *,
        until: date | str | None = None,
    ) -> list[EventRecord]:
        """Fetch a family's events that are not soft-deleted.

        Args:
            family_id: The family whose events to load.
            until: Only load events anchored on or before this date. There is
                no lower bound: multi-day and recurring events anchored before
                a display window can still reach into it.

        Raises:
            InvalidEventError: If a stored row has an unparsable ``event_date``.
        """
        params = {
            "select": "*",
            "family_id": f"eq.{family_id}",
            "is_deleted": "eq.false",
            "order": "event_date.asc",
        }
        if until is not None:
            params["event_date"] = f"lte.{parse_date(until, field='until').isoformat()}"
        rows = await self._request("GET", EVENTS_TABLE, params=params)
        return [EventRecord.from_api_response(row) for row in rows or ()]

    async def async_get_event(self, family_id: str, event_id: str) -> EventRecord:
        """Fetch a single event of a family.

        Raises:
            EventNotFoundError: If no live event with that id belongs to the family.
        """
        params = {
            "select": "*",
            "id": f"eq.{event_id}",
            "family_id": f"eq.{family_id}",
            "is_deleted": "eq.false",
            "limit": "1",
        }
        rows = await self._request("GET", EVENTS_TABLE, params=params)
        if not rows:
            raise EventNotFoundError(event_id)
        return EventRecord.from_api_response(rows[0])

    async def async_get_occurrences(
        self,
        family_id: str,
        range_start: date | str,
        range_end: date | str,
    ) -> list[Occurrence]:
        """Load a family's events and expand them over an inclusive window."""
        events = await self.async_get_events(family_id, until=range_end)
        return expand_events_for_range(events, range_start, range_end)

    # ------------------------------------------------------------------ #
    #  Profiles
    # ------------------------------------------------------------------ #

    async def async_get_profile_timezone(self, profile_id: str) -> str:
        """Return the profile's timezone preference, or ``DEFAULT_TIMEZONE``."""
        params = {
            "select": "preferences",
            "id": f"eq.{profile_id}",
            "limit": "1",
        }
        rows = await self._request("GET", PROFILES_TABLE, params=params)
        if not rows:
            return DEFAULT_TIMEZONE
        prefs = rows[0].get("preferences") or {}
        tz_name = prefs.get("timezone") if isinstance(prefs, dict) else None
        if not isinstance(tz_name, str) or not tz_name:
            return DEFAULT_TIMEZONE
        return tz_name

    # ------------------------------------------------------------------ #
    #  Internal HTTP layer
    # ------------------------------------------------------------------ #

    def _headers(self) -> dict[str, str]:
        return {
            "apikey": self._api_key,
            "Authorization": f"Bearer {self._access_token or self._api_key}",
            "Accept": "application/json",
        }

    async def _request(
        self,
        method: str,
        table: str,
        *,
        params: dict[str, str] | None = None,
    ) -> Any:
        """Execute a REST request against ``table``.

        Raises:
            AuthenticationError: On 401/403 responses.
            RateLimitError: On 429 responses.
            ApiResponseError: On other non-2xx responses.
            ApiConnectionError: On network errors.
        """
        url = f"{self._base_url}/{table}"
        kwargs: dict[str, Any] = {"headers": self._headers()}
        if params:
            kwargs["params"] = params

        try:
            async with self._session.request(method, url, **kwargs) as resp:
                if resp.status in (401, 403):
                    _LOGGER.warning("Event store rejected credentials: HTTP %s", resp.status)
                    raise AuthenticationError(
                        f"Authentication failed: HTTP {resp.status}",
                        status_code=resp.status,
                    )

                if resp.status == 429:
                    retry_after = resp.headers.get("Retry-After")
                    raise RateLimitError(
                        retry_after=float(retry_after) if retry_after else None,
                    )

                if resp.status == 204:
                    return None

                if resp.status >= 400:
                    body = await resp.text()
                    _LOGGER.warning("Event store error on %s: HTTP %s", table, resp.status)
                    raise ApiResponseError(
                        f"API error: HTTP {resp.status} - {body}",
                        status_code=resp.status,
                    )

                return await resp.json()

        except aiohttp.ClientError as err:
            _LOGGER.warning("Event store unreachable: %s", err)
            raise ApiConnectionError(f"Connection error: {err}") from err
