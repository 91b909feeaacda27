"""Nightscout sync client.

Public operation set used by the control loop to exchange data with a
Nightscout site. Failure handling differs per operation class:

- glucose, carbs and temp-target fetches recover every transport, status
  and decode failure into an empty list plus a warning, so an empty list
  means "nothing to sync or fetch failed";
- announcement fetches, uploads, deletes and the connection check raise
  the classified failure;
- profile import never raises and reports its outcome in a result.
"""

from collections.abc import Awaitable, Callable, Sequence
from datetime import datetime
from typing import Any, TypeVar

from nightscout_sync.config import Settings
from nightscout_sync.core.endpoint import NightscoutEndpoint, QueryItems
from nightscout_sync.core.errors import MissingStorageError, NightscoutError
from nightscout_sync.logging_config import get_logger, operation_context
from nightscout_sync.schemas.nightscout import (
    Announcement,
    BloodGlucose,
    CarbsEntry,
    ConnectionCheckNote,
    NightscoutPreferences,
    NightscoutProfileStore,
    NightscoutStatistics,
    NightscoutStatus,
    NightscoutTreatment,
    TempTarget,
)
from nightscout_sync.services import profile_import
from nightscout_sync.services.codec import JSON_CONTENT_TYPE, decode_list, encode
from nightscout_sync.services.profile_import import ProfileImportResult
from nightscout_sync.services.queries import (
    DEFAULT_MARKERS,
    ENTRIES_PATH,
    GLUCOSE_FETCH_COUNT,
    PROFILE_PATH,
    STATUS_PATH,
    TREATMENTS_PATH,
    UPLOAD_ENTRIES_PATH,
    ProvenanceMarkers,
    announcements_query,
    carbs_query,
    delete_carbs_query,
    delete_insulin_query,
    glucose_query,
    temp_targets_query,
)
from nightscout_sync.services.storage import EntityStorage, FileStorage
from nightscout_sync.services.transport import (
    REQUEST_TIMEOUT,
    RETRY_COUNT,
    HttpxTransport,
    NightscoutRequest,
    Transport,
    TransportResponse,
    execute,
)

logger = get_logger(__name__)

RecordT = TypeVar("RecordT")


class NightscoutAPI:
    """Client for one Nightscout site.

    Holds only immutable configuration, so any number of operations may run
    concurrently on the same instance.
    """

    def __init__(
        self,
        endpoint: NightscoutEndpoint,
        transport: Transport | None = None,
        storage: EntityStorage | None = None,
        *,
        markers: ProvenanceMarkers = DEFAULT_MARKERS,
        timeout: float = REQUEST_TIMEOUT,
        retries: int = RETRY_COUNT,
        glucose_count: int = GLUCOSE_FETCH_COUNT,
    ):
        self.endpoint = endpoint
        self.transport = transport if transport is not None else HttpxTransport()
        self.storage = storage
        self.markers = markers
        self.timeout = timeout
        self.retries = retries
        self.glucose_count = glucose_count

    @classmethod
    def from_url(
        cls,
        url: str,
        secret: str | None = None,
        transport: Transport | None = None,
        storage: EntityStorage | None = None,
    ) -> "NightscoutAPI":
        return cls(NightscoutEndpoint.from_url(url, secret), transport, storage)

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        transport: Transport | None = None,
        storage: EntityStorage | None = None,
    ) -> "NightscoutAPI":
        """Build a client from application settings.

        Without an explicit storage, profile documents are written below
        ``settings.storage_root``.

        Raises:
            MissingEndpointError: If ``nightscout_url`` is empty.
            InvalidEndpointError: If ``nightscout_url`` is malformed.
        """
        endpoint = NightscoutEndpoint.from_url(
            settings.nightscout_url, settings.nightscout_api_secret
        )
        return cls(
            endpoint,
            transport,
            storage if storage is not None else FileStorage(settings.storage_root),
            markers=ProvenanceMarkers(
                manual=settings.nightscout_manual_marker,
                local=settings.nightscout_local_marker,
                remote=settings.nightscout_remote_marker,
            ),
            timeout=settings.nightscout_request_timeout_seconds,
            retries=settings.nightscout_retry_count,
            glucose_count=settings.nightscout_glucose_fetch_count,
        )

    # Request plumbing

    def _request(
        self,
        method: str,
        path: str,
        query: QueryItems | None = None,
        payload: Any = None,
    ) -> NightscoutRequest:
        headers = self.endpoint.headers()
        body = None
        if payload is not None:
            headers["Content-Type"] = JSON_CONTENT_TYPE
            body = encode(payload)
        return NightscoutRequest(
            method=method,
            url=self.endpoint.url_for(path, query),
            headers=headers,
            body=body,
            timeout=self.timeout,
            allow_constrained_network=False,
        )

    async def _send(self, request: NightscoutRequest) -> TransportResponse:
        return await execute(self.transport, request, retries=self.retries)

    async def _fetch_or_empty(
        self,
        name: str,
        fetch: Callable[[], Awaitable[list[RecordT]]],
    ) -> list[RecordT]:
        try:
            records = await fetch()
        except NightscoutError as exc:
            logger.warning(f"{name} fetching error", error=str(exc))
            return []
        logger.info(f"Fetched {name.lower()}", count=len(records))
        return records

    # Connection check

    async def check_connection(self) -> None:
        """Probe reachability and credentials.

        With a secret this posts a marker note to the treatments collection,
        which needs write access; without one it issues a plain GET. The
        response body is discarded. Not retried.

        Raises:
            NightscoutError: If the probe fails.
        """
        with operation_context():
            if self.endpoint.is_authenticated:
                headers = self.endpoint.headers()
                headers["Content-Type"] = JSON_CONTENT_TYPE
                request = NightscoutRequest(
                    method="POST",
                    url=self.endpoint.base_url + TREATMENTS_PATH,
                    headers=headers,
                    body=encode(ConnectionCheckNote()),
                    timeout=None,
                    allow_constrained_network=True,
                )
            else:
                request = NightscoutRequest(
                    method="GET",
                    url=self.endpoint.base_url + TREATMENTS_PATH,
                    timeout=None,
                    allow_constrained_network=True,
                )
            await execute(self.transport, request, retries=0)
            logger.info(
                "Nightscout connection verified",
                authenticated=self.endpoint.is_authenticated,
            )

    # Fetches

    async def fetch_last_glucose(self, since: datetime | None = None) -> list[BloodGlucose]:
        """Fetch recent CGM entries, newest first, from ``since`` inclusive.

        Each reading's ``glucose`` is filled from its ``sgv``. Failures
        yield an empty list.
        """

        async def fetch() -> list[BloodGlucose]:
            request = self._request(
                "GET", ENTRIES_PATH, glucose_query(since, count=self.glucose_count)
            )
            resp = await self._send(request)
            readings = decode_list(BloodGlucose, resp.content)
            return [reading.model_copy(update={"glucose": reading.sgv}) for reading in readings]

        with operation_context():
            return await self._fetch_or_empty("Glucose", fetch)

    async def fetch_carbs(self, since: datetime | None = None) -> list[CarbsEntry]:
        """Fetch carb entries created after ``since`` by anyone but this app.

        Failures yield an empty list.
        """

        async def fetch() -> list[CarbsEntry]:
            resp = await self._send(
                self._request("GET", TREATMENTS_PATH, carbs_query(since, self.markers))
            )
            return decode_list(CarbsEntry, resp.content)

        with operation_context():
            return await self._fetch_or_empty("Carbs", fetch)

    async def fetch_temp_targets(self, since: datetime | None = None) -> list[TempTarget]:
        """Fetch temporary targets created after ``since`` by anyone but this app.

        Failures yield an empty list.
        """

        async def fetch() -> list[TempTarget]:
            resp = await self._send(
                self._request("GET", TREATMENTS_PATH, temp_targets_query(since, self.markers))
            )
            return decode_list(TempTarget, resp.content)

        with operation_context():
            return await self._fetch_or_empty("Temp target", fetch)

    async def fetch_announcements(self, since: datetime | None = None) -> list[Announcement]:
        """Fetch announcements from the remote marker, from ``since`` inclusive.

        Raises:
            NightscoutError: On transport, status or decode failure.
        """
        with operation_context():
            resp = await self._send(
                self._request("GET", TREATMENTS_PATH, announcements_query(since, self.markers))
            )
            announcements = decode_list(Announcement, resp.content)
            logger.info("Fetched announcements", count=len(announcements))
            return announcements

    # Deletes

    async def delete_carbs(self, at: datetime) -> None:
        """Delete the carb treatment created exactly at ``at``."""
        with operation_context():
            await self._send(self._request("DELETE", TREATMENTS_PATH, delete_carbs_query(at)))
            logger.info("Deleted carbs", at=at.isoformat())

    async def delete_insulin(self, at: datetime) -> None:
        """Delete the bolus treatment created exactly at ``at``."""
        with operation_context():
            await self._send(self._request("DELETE", TREATMENTS_PATH, delete_insulin_query(at)))
            logger.info("Deleted insulin", at=at.isoformat())

    # Uploads

    async def _upload(self, name: str, path: str, payload: Any, **extra_fields: Any) -> None:
        with operation_context():
            await self._send(self._request("POST", path, payload=payload))
            logger.info(f"Uploaded {name}", **extra_fields)

    async def upload_treatments(self, treatments: Sequence[NightscoutTreatment]) -> None:
        await self._upload("treatments", TREATMENTS_PATH, list(treatments), count=len(treatments))

    async def upload_glucose(self, glucose: Sequence[BloodGlucose]) -> None:
        await self._upload("glucose", UPLOAD_ENTRIES_PATH, list(glucose), count=len(glucose))

    async def upload_stats(self, stats: NightscoutStatistics) -> None:
        await self._upload("statistics", STATUS_PATH, stats)

    async def upload_status(self, status: NightscoutStatus) -> None:
        await self._upload("device status", STATUS_PATH, status, device=status.device)

    async def upload_preferences(self, preferences: NightscoutPreferences) -> None:
        await self._upload("preferences", STATUS_PATH, preferences)

    async def upload_profile(self, profile: NightscoutProfileStore) -> None:
        await self._upload(
            "profile", PROFILE_PATH, profile, default_profile=profile.default_profile
        )

    # Profile import

    async def import_profile(self) -> ProfileImportResult:
        """Replace the local therapy settings with the site's default profile.

        Never raises for sync failures; see :func:`profile_import.import_profile`.

        Raises:
            MissingStorageError: If the client was built without a storage.
        """
        if self.storage is None:
            raise MissingStorageError("Profile import needs an entity storage")
        with operation_context():
            return await profile_import.import_profile(
                self.endpoint, self.transport, self.storage
            )
