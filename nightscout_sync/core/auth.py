"""API secret authentication for the Nightscout REST API.

Nightscout's v1 API authenticates a client by comparing the ``api-secret``
header against the SHA-1 hex digest of the site's API_SECRET. The digest is
unsalted and reused for every request; the remote protocol requires it
bit-for-bit (lowercase hex, no separators).
"""

import hashlib

API_SECRET_HEADER = "api-secret"


def effective_secret(secret: str | None) -> str | None:
    """Return the secret as given, or None if it is empty or whitespace-only."""
    if secret is None or not secret.strip():
        return None
    return secret


def api_secret_header(secret: str | None) -> str | None:
    """Derive the ``api-secret`` header value for a shared secret.

    The digest covers the secret exactly as configured; surrounding
    whitespace is part of the secret.

    Args:
        secret: The site's API secret, or None for unauthenticated mode.

    Returns:
        The lowercase SHA-1 hex digest of the secret's UTF-8 bytes, or None
        when the secret is absent, empty or whitespace-only.
    """
    secret = effective_secret(secret)
    if secret is None:
        return None
    return hashlib.sha1(secret.encode("utf-8")).hexdigest()


def auth_headers(secret: str | None) -> dict[str, str]:
    """Build the authentication headers for a request."""
    digest = api_secret_header(secret)
    if digest is None:
        return {}
    return {API_SECRET_HEADER: digest}
