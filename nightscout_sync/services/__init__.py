# Sync services
from nightscout_sync.services.profile_import import (
    ProfileImportResult,
    convert_profile,
    import_profile,
)
from nightscout_sync.services.storage import EntityStorage, FileStorage
from nightscout_sync.services.transport import (
    HttpxTransport,
    NightscoutRequest,
    Transport,
    TransportResponse,
    execute,
)
from nightscout_sync.services.nightscout_api import NightscoutAPI

__all__ = [
    "ProfileImportResult",
    "convert_profile",
    "import_profile",
    "EntityStorage",
    "FileStorage",
    "HttpxTransport",
    "NightscoutRequest",
    "Transport",
    "TransportResponse",
    "execute",
    "NightscoutAPI",
]
