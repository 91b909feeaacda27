"""Nightscout wire schemas.

Pydantic models for the JSON documents exchanged with the Nightscout v1 REST
API. Field aliases follow Nightscout's keys; records accept unknown keys so
that fields this client does not model survive a fetch unchanged.
"""

from datetime import datetime
from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field, PlainSerializer

from nightscout_sync.core.timestamps import format_timestamp

NightscoutDateTime = Annotated[
    datetime, PlainSerializer(format_timestamp, return_type=str, when_used="json")
]


class NightscoutRecord(BaseModel):
    """Base for records that pass unknown fields through."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")


class BloodGlucose(NightscoutRecord):
    """A CGM entry from ``/api/v1/entries``.

    ``sgv`` is the remote store's value; ``glucose`` is the field the
    application reads and is filled from ``sgv`` on fetch.
    """

    id: str | None = Field(default=None, alias="_id")
    sgv: int | None = None
    direction: str | None = None
    date: float | None = None  # Epoch milliseconds
    date_string: NightscoutDateTime | None = Field(default=None, alias="dateString")
    unfiltered: float | None = None
    filtered: float | None = None
    noise: int | None = None
    glucose: int | None = None
    type: str | None = None


class CarbsEntry(NightscoutRecord):
    id: str | None = Field(default=None, alias="_id")
    created_at: NightscoutDateTime
    carbs: float
    fat: float | None = None
    protein: float | None = None
    note: str | None = Field(default=None, alias="notes")
    entered_by: str | None = Field(default=None, alias="enteredBy")
    is_fpu: bool | None = Field(default=None, alias="isFPU")


class TempTarget(NightscoutRecord):
    id: str | None = Field(default=None, alias="_id")
    name: str | None = None
    created_at: NightscoutDateTime
    target_top: float | None = Field(default=None, alias="targetTop")
    target_bottom: float | None = Field(default=None, alias="targetBottom")
    duration: float
    entered_by: str | None = Field(default=None, alias="enteredBy")
    reason: str | None = None


class Announcement(NightscoutRecord):
    """A remote command posted to the treatments collection."""

    created_at: NightscoutDateTime
    entered_by: str = Field(alias="enteredBy")
    notes: str


class NightscoutTreatment(NightscoutRecord):
    """A treatment event computed locally and uploaded to the remote store."""

    event_type: str = Field(alias="eventType")
    created_at: NightscoutDateTime
    entered_by: str | None = Field(default=None, alias="enteredBy")
    duration: float | None = None
    raw_duration: dict[str, Any] | None = Field(default=None, alias="rawDuration")
    raw_rate: dict[str, Any] | None = Field(default=None, alias="rawRate")
    absolute: float | None = None
    rate: float | None = None
    bolus: dict[str, Any] | None = None
    insulin: float | None = None
    notes: str | None = None
    carbs: float | None = None
    target_top: float | None = Field(default=None, alias="targetTop")
    target_bottom: float | None = Field(default=None, alias="targetBottom")


class ConnectionCheckNote(BaseModel):
    """Marker note posted to verify reachability and credentials."""

    model_config = ConfigDict(populate_by_name=True)

    event_type: str = Field(default="Note", alias="eventType")
    entered_by: str = Field(default="iAPS", alias="enteredBy")
    notes: str = "iAPS connected"


class NightscoutStatus(NightscoutRecord):
    """Device status document (loop, pump and uploader state)."""

    device: str
    openaps: dict[str, Any] | None = None
    pump: dict[str, Any] | None = None
    preferences: dict[str, Any] | None = None
    uploader: dict[str, Any] | None = None


class NightscoutStatistics(NightscoutRecord):
    """Daily statistics report stored in the device status collection."""

    report: str = "statistics"
    dailystats: dict[str, Any] | None = None
    just_version: dict[str, Any] | None = Field(default=None, alias="justVersion")
    created_at: NightscoutDateTime | None = None


class NightscoutPreferences(NightscoutRecord):
    """Loop preferences report stored in the device status collection."""

    report: str = "preferences"
    preferences: dict[str, Any] | None = None
    entered_by: str | None = Field(default=None, alias="enteredBy")
    created_at: NightscoutDateTime | None = None


class NightscoutTimevalue(BaseModel):
    """One entry of a time-of-day schedule.

    Every field is required and ``value`` must be finite; an entry that
    fails either rule rejects the whole profile document.
    """

    model_config = ConfigDict(populate_by_name=True)

    time: str
    value: float = Field(allow_inf_nan=False)
    time_as_seconds: int = Field(alias="timeAsSeconds")


class ScheduledNightscoutProfile(BaseModel):
    """A named therapy profile with its time-of-day schedules."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    dia: float | None = None
    carbs_hr: float | None = None
    delay: float | None = None
    timezone: str | None = None
    target_low: list[NightscoutTimevalue] = Field(default_factory=list)
    target_high: list[NightscoutTimevalue] = Field(default_factory=list)
    sens: list[NightscoutTimevalue] = Field(default_factory=list)
    basal: list[NightscoutTimevalue] = Field(default_factory=list)
    carbratio: list[NightscoutTimevalue] = Field(default_factory=list)
    units: str | None = None


class NightscoutProfileStore(BaseModel):
    """Profile document uploaded to ``/api/v1/profile``."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    default_profile: str = Field(alias="defaultProfile")
    start_date: NightscoutDateTime = Field(alias="startDate")
    mills: int
    units: str
    entered_by: str | None = Field(default=None, alias="enteredBy")
    store: dict[str, ScheduledNightscoutProfile]


class FetchedNightscoutProfileStore(BaseModel):
    """Profile document as returned by ``/api/v1/profile``."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    id: str | None = Field(default=None, alias="_id")
    default_profile: str | None = Field(default=None, alias="defaultProfile")
    start_date: str | None = Field(default=None, alias="startDate")
    mills: int | None = None
    entered_by: str | None = Field(default=None, alias="enteredBy")
    created_at: str | None = None
    store: dict[str, ScheduledNightscoutProfile]
