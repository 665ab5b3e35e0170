"""Constants for the family events core."""

from typing import Final

__version__ = "0.1.0"

# Calendar file envelope
ICS_PRODID: Final = "-//ChoreGami//Events//EN"
ICS_UID_DOMAIN: Final = "choregami.app"
ICS_REMINDER_MINUTES: Final = 60
ICS_FALLBACK_FILENAME: Final = "event"

DEFAULT_TIMEZONE: Final = "UTC"
DEFAULT_DURATION_DAYS: Final = 1
DEFAULT_EVENT_HOURS: Final = 1

# Sample days used to detect seasonal offset changes (month, day)
DST_PROBE_WINTER: Final = (1, 15)
DST_PROBE_SUMMER: Final = (7, 15)
# Local hour at which approximated seasonal offsets switch
DST_TRANSITION_HOUR: Final = 2

# Hosted store (PostgREST) endpoints
REST_PREFIX: Final = "/rest/v1"
EVENTS_TABLE: Final = "family_events"
PROFILES_TABLE: Final = "family_profiles"
