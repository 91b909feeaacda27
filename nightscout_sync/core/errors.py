"""Exceptions raised by the Nightscout sync client."""


class NightscoutError(Exception):
    """Base exception for Nightscout sync errors."""

    pass


class NightscoutConnectionError(NightscoutError):
    """The request never produced an HTTP response (connectivity, timeout)."""

    pass


class NightscoutStatusError(NightscoutError):
    """The remote store answered with a non-2xx status code."""

    def __init__(self, status_code: int, message: str | None = None):
        self.status_code = status_code
        super().__init__(message or f"Nightscout returned HTTP {status_code}")


class NightscoutDecodeError(NightscoutError):
    """A response body did not match the expected wire schema."""

    pass


class MissingEndpointError(NightscoutError):
    """No Nightscout base URL is configured."""

    pass


class InvalidEndpointError(NightscoutError):
    """The configured Nightscout base URL is malformed."""

    pass


class MissingStorageError(NightscoutError):
    """Profile import was requested without an entity storage."""

    pass


class PayloadEncodingError(RuntimeError):
    """An outgoing payload could not be serialised.

    Payload types are fixed internal schemas, so this signals a programming
    error rather than a sync failure and is never recovered.
    """

    pass
