"""Nightscout synchronization client.

Pulls glucose, carbs, temporary targets and announcements from a Nightscout
site, pushes locally computed treatments, device status and profiles, and
imports the site's therapy profile into local settings documents.
"""

from nightscout_sync.core.endpoint import NightscoutEndpoint
from nightscout_sync.core.errors import (
    InvalidEndpointError,
    MissingEndpointError,
    MissingStorageError,
    NightscoutConnectionError,
    NightscoutDecodeError,
    NightscoutError,
    NightscoutStatusError,
    PayloadEncodingError,
)
from nightscout_sync.services import (
    FileStorage,
    HttpxTransport,
    NightscoutAPI,
    ProfileImportResult,
)

__version__ = "0.1.0"

__all__ = [
    "NightscoutAPI",
    "NightscoutEndpoint",
    "FileStorage",
    "HttpxTransport",
    "ProfileImportResult",
    "NightscoutError",
    "NightscoutConnectionError",
    "NightscoutStatusError",
    "NightscoutDecodeError",
    "MissingEndpointError",
    "InvalidEndpointError",
    "MissingStorageError",
    "PayloadEncodingError",
]
