"""HTTP response wrapping for calendar file downloads."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, Union

from aiohttp import hdrs, web

from ._client import FamilyEventsClient
from .const import DEFAULT_TIMEZONE
from .ics import generate_ics, ics_filename
from .models import EventRecord

_LOGGER = logging.getLogger(__name__)


def build_calendar_response(
    event: Union[EventRecord, Mapping[str, Any]],
    timezone: str,
) -> web.Response:
    """Serialize ``event`` and wrap it as a ``.ics`` attachment.

    Raises:
        UnknownTimezoneError: If ``timezone`` is not a known zone.
    """
    if not isinstance(event, EventRecord):
        event = EventRecord.from_api_response(dict(event))
    document = generate_ics(event, timezone)
    return web.Response(
        text=document,
        content_type="text/calendar",
        charset="utf-8",
        headers={
            hdrs.CONTENT_DISPOSITION: f'attachment; filename="{ics_filename(event.title)}"',
        },
    )


async def async_calendar_download(
    client: FamilyEventsClient,
    *,
    family_id: str,
    event_id: str,
    profile_id: str | None = None,
) -> web.Response:
    """Load one event and the viewer's timezone, then build the download.

    Store and serialization errors propagate; the route decides the status.
    """
    event = await client.async_get_event(family_id, event_id)
    if profile_id is not None:
        timezone = await client.async_get_profile_timezone(profile_id)
    else:
        timezone = DEFAULT_TIMEZONE
    _LOGGER.debug("Exporting event %s as calendar file in %s", event.id, timezone)
    return build_calendar_response(event, timezone)
