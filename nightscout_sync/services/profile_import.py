"""Therapy profile import from Nightscout.

Fetches the active profile document, maps its ``default`` profile onto the
four internal settings documents and persists them. Import is a best-effort
background refresh: every failure is logged and reported in the returned
result, never raised, and a stale local profile stays in place.
"""

from dataclasses import dataclass, field

from nightscout_sync.core.endpoint import NightscoutEndpoint
from nightscout_sync.core.errors import NightscoutError, PayloadEncodingError
from nightscout_sync.logging_config import get_logger
from nightscout_sync.schemas.nightscout import (
    FetchedNightscoutProfileStore,
    ScheduledNightscoutProfile,
)
from nightscout_sync.schemas.profile import (
    BasalProfileEntry,
    BGTargetEntry,
    BGTargets,
    CarbRatioEntry,
    CarbRatios,
    CarbUnit,
    GlucoseUnits,
    InsulinSensitivities,
    InsulinSensitivityEntry,
)
from nightscout_sync.services.codec import decode_list
from nightscout_sync.services.queries import PROFILE_PATH, profile_query
from nightscout_sync.services.storage import (
    BASAL_PROFILE_KEY,
    BG_TARGETS_KEY,
    CARB_RATIOS_KEY,
    INSULIN_SENSITIVITIES_KEY,
    EntityStorage,
)
from nightscout_sync.services.transport import NightscoutRequest, Transport, execute

logger = get_logger(__name__)

DEFAULT_PROFILE_NAME = "default"


@dataclass
class ProfileImportResult:
    """Outcome of one profile import.

    ``imported`` is True once a profile was fetched and mapped; the saves
    were then all attempted and any that failed are listed in
    ``failed_keys``.
    """

    imported: bool
    units: GlucoseUnits | None = None
    saved_keys: list[str] = field(default_factory=list)
    failed_keys: list[str] = field(default_factory=list)
    reason: str | None = None

    @property
    def complete(self) -> bool:
        return self.imported and not self.failed_keys


@dataclass
class ImportedProfile:
    """The four settings documents derived from one remote profile."""

    units: GlucoseUnits
    carb_ratios: CarbRatios
    basal_profile: list[BasalProfileEntry]
    sensitivities: InsulinSensitivities
    targets: BGTargets


def convert_profile(profile: ScheduledNightscoutProfile) -> ImportedProfile:
    """Map a remote profile onto the internal settings documents.

    Every schedule is mapped entry by entry, keeping ``time`` and
    ``timeAsSeconds`` as given. Targets use only ``target_low``: the
    application works with a single target glucose, so each target entry
    gets ``low == high == target_low.value`` and ``target_high`` is ignored.
    """
    units = GlucoseUnits.from_remote(profile.units)

    carb_ratios = CarbRatios(
        units=CarbUnit.GRAMS,
        schedule=[
            CarbRatioEntry(start=item.time, offset=item.time_as_seconds, ratio=item.value)
            for item in profile.carbratio
        ],
    )

    # The basal document's "minutes" field carries the remote
    # timeAsSeconds value unchanged.
    basal_profile = [
        BasalProfileEntry(start=item.time, minutes=item.time_as_seconds, rate=item.value)
        for item in profile.basal
    ]

    sensitivities = InsulinSensitivities(
        units=units,
        user_preferred_units=units,
        sensitivities=[
            InsulinSensitivityEntry(
                sensitivity=item.value, offset=item.time_as_seconds, start=item.time
            )
            for item in profile.sens
        ],
    )

    targets = BGTargets(
        units=units,
        user_preferred_units=units,
        targets=[
            BGTargetEntry.point(item.value, start=item.time, offset=item.time_as_seconds)
            for item in profile.target_low
        ],
    )

    return ImportedProfile(
        units=units,
        carb_ratios=carb_ratios,
        basal_profile=basal_profile,
        sensitivities=sensitivities,
        targets=targets,
    )


def select_default_profile(
    stores: list[FetchedNightscoutProfileStore],
) -> ScheduledNightscoutProfile | None:
    """Return the ``default`` profile of the most recent store, if any."""
    if not stores:
        return None
    return stores[0].store.get(DEFAULT_PROFILE_NAME)


def save_profile(storage: EntityStorage, imported: ImportedProfile) -> ProfileImportResult:
    """Persist all four documents, attempting every save.

    A failed save does not stop the remaining ones; failures are logged and
    listed in the result.
    """
    documents = [
        (CARB_RATIOS_KEY, imported.carb_ratios),
        (BASAL_PROFILE_KEY, imported.basal_profile),
        (INSULIN_SENSITIVITIES_KEY, imported.sensitivities),
        (BG_TARGETS_KEY, imported.targets),
    ]

    result = ProfileImportResult(imported=True, units=imported.units)
    for key, document in documents:
        try:
            storage.save(document, key)
        except PayloadEncodingError:
            raise
        except Exception as exc:
            logger.error("Failed to save imported settings", key=key, error=str(exc))
            result.failed_keys.append(key)
        else:
            result.saved_keys.append(key)

    return result


def _aborted(reason: str, **extra_fields) -> ProfileImportResult:
    logger.warning(f"Profile import skipped: {reason}", **extra_fields)
    return ProfileImportResult(imported=False, reason=reason)


async def import_profile(
    endpoint: NightscoutEndpoint,
    transport: Transport,
    storage: EntityStorage,
) -> ProfileImportResult:
    """Fetch the remote profile and replace the local settings documents.

    The fetch is not retried, uses the transport's default timeout and may
    use constrained network paths.

    Returns:
        ProfileImportResult; ``imported`` is False when nothing was saved.
    """
    request = NightscoutRequest(
        method="GET",
        url=endpoint.url_for(PROFILE_PATH, profile_query()),
        headers=endpoint.headers(),
        timeout=None,
        allow_constrained_network=True,
    )

    try:
        resp = await execute(transport, request, retries=0)
    except NightscoutError as exc:
        return _aborted("fetch failed", error=str(exc))

    if not resp.is_json:
        return _aborted("response is not JSON", content_type=resp.content_type)

    try:
        stores = decode_list(FetchedNightscoutProfileStore, resp.content)
    except NightscoutError as exc:
        return _aborted("profile document could not be decoded", error=str(exc))

    profile = select_default_profile(stores)
    if profile is None:
        return _aborted("no default profile in store", stores=len(stores))

    imported = convert_profile(profile)
    result = save_profile(storage, imported)

    logger.info(
        "Imported Nightscout profile",
        units=imported.units.value,
        carb_ratios=len(imported.carb_ratios.schedule),
        basal_entries=len(imported.basal_profile),
        sensitivities=len(imported.sensitivities.sensitivities),
        targets=len(imported.targets.targets),
        failed_keys=result.failed_keys,
    )
    return result
