"""Query construction for Nightscout reads and deletes.

Each builder returns an ordered list of ``(name, value)`` pairs. Names may
repeat: the self-exclusion filters emit two ``find[enteredBy][$ne]`` items and
both must reach the server.

The exclusion filters keep the client from re-importing records it uploaded
or entered itself, which would otherwise duplicate carbs and temp targets on
every fetch cycle.
"""

from dataclasses import dataclass
from datetime import datetime

from nightscout_sync.core.endpoint import QueryItems
from nightscout_sync.core.timestamps import format_timestamp

ENTRIES_PATH = "/api/v1/entries/sgv.json"
UPLOAD_ENTRIES_PATH = "/api/v1/entries.json"
TREATMENTS_PATH = "/api/v1/treatments.json"
STATUS_PATH = "/api/v1/devicestatus.json"
PROFILE_PATH = "/api/v1/profile.json"

GLUCOSE_FETCH_COUNT = 1600

TEMP_TARGET_EVENT = "Temporary Target"
ANNOUNCEMENT_EVENT = "Announcement"

# Provenance markers
MANUAL_ENTRY_MARKER = "iAPS"
LOCAL_TREATMENT_MARKER = "freeaps-x"
REMOTE_MARKER = "remote"


@dataclass(frozen=True)
class ProvenanceMarkers:
    """``enteredBy`` values that identify who created a treatment."""

    manual: str = MANUAL_ENTRY_MARKER
    local: str = LOCAL_TREATMENT_MARKER
    remote: str = REMOTE_MARKER


DEFAULT_MARKERS = ProvenanceMarkers()


def _self_exclusions(markers: ProvenanceMarkers) -> QueryItems:
    return [
        ("find[enteredBy][$ne]", markers.manual),
        ("find[enteredBy][$ne]", markers.local),
    ]


def glucose_query(
    since: datetime | None = None, count: int = GLUCOSE_FETCH_COUNT
) -> QueryItems:
    """Latest CGM entries, optionally from ``since`` inclusive."""
    items: QueryItems = [("count", str(count))]
    if since is not None:
        items.append(("find[dateString][$gte]", format_timestamp(since)))
    return items


def carbs_query(
    since: datetime | None = None, markers: ProvenanceMarkers = DEFAULT_MARKERS
) -> QueryItems:
    """Carb treatments not created by this application, after ``since``."""
    items: QueryItems = [("find[carbs][$exists]", "true")]
    items.extend(_self_exclusions(markers))
    if since is not None:
        items.append(("find[created_at][$gt]", format_timestamp(since)))
    return items


def temp_targets_query(
    since: datetime | None = None, markers: ProvenanceMarkers = DEFAULT_MARKERS
) -> QueryItems:
    """Temporary targets with a duration not created by this application."""
    items: QueryItems = [("find[eventType]", TEMP_TARGET_EVENT)]
    items.extend(_self_exclusions(markers))
    items.append(("find[duration][$exists]", "true"))
    if since is not None:
        items.append(("find[created_at][$gt]", format_timestamp(since)))
    return items


def announcements_query(
    since: datetime | None = None, markers: ProvenanceMarkers = DEFAULT_MARKERS
) -> QueryItems:
    """Announcements posted by the remote marker, from ``since`` inclusive.

    Unlike the other treatment fetches this is an inclusion filter: only
    announcements tagged with the remote marker are accepted as commands.
    """
    items: QueryItems = [
        ("find[eventType]", ANNOUNCEMENT_EVENT),
        ("find[enteredBy]", markers.remote),
    ]
    if since is not None:
        items.append(("find[created_at][$gte]", format_timestamp(since)))
    return items


def delete_carbs_query(at: datetime) -> QueryItems:
    return [
        ("find[carbs][$exists]", "true"),
        ("find[created_at][$eq]", format_timestamp(at)),
    ]


def delete_insulin_query(at: datetime) -> QueryItems:
    return [
        ("find[bolus][$exists]", "true"),
        ("find[created_at][$eq]", format_timestamp(at)),
    ]


def profile_query() -> QueryItems:
    return [("count", "1")]
