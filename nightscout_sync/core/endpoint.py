"""Validated identity of a Nightscout site."""

from dataclasses import dataclass
from urllib.parse import quote_plus, urlencode, urlsplit

from nightscout_sync.core.auth import auth_headers, effective_secret
from nightscout_sync.core.errors import InvalidEndpointError, MissingEndpointError

# Characters left literal in rendered query strings. Nightscout's find[...]
# filters are read back by its query parser in bracket/dollar form.
_QUERY_SAFE = "[]$:"

QueryItems = list[tuple[str, str]]


def render_query(items: QueryItems) -> str:
    """Render ordered query items, keeping duplicate names."""
    return urlencode(items, safe=_QUERY_SAFE, quote_via=quote_plus)


@dataclass(frozen=True)
class NightscoutEndpoint:
    """Base address and optional shared secret of a Nightscout site.

    Build instances with :meth:`from_url` so that malformed configuration is
    rejected before any sync operation runs.
    """

    base_url: str
    scheme: str
    host: str
    port: int | None = None
    secret: str | None = None

    @classmethod
    def from_url(cls, url: str | None, secret: str | None = None) -> "NightscoutEndpoint":
        """Validate a base URL and capture the secret.

        Raises:
            MissingEndpointError: If no URL is given.
            InvalidEndpointError: If the URL is not an absolute http(s) URL.
        """
        if url is None or not url.strip():
            raise MissingEndpointError("Nightscout URL is not configured")

        raw = url.strip()
        parts = urlsplit(raw)
        if parts.scheme not in ("http", "https"):
            raise InvalidEndpointError(
                f"Nightscout URL must use http or https, got {parts.scheme or 'none'!r}"
            )
        if not parts.hostname:
            raise InvalidEndpointError("Nightscout URL has no host")
        try:
            port = parts.port
        except ValueError as exc:
            raise InvalidEndpointError(f"Nightscout URL has an invalid port: {exc}") from exc

        return cls(
            base_url=raw.rstrip("/"),
            scheme=parts.scheme,
            host=parts.hostname,
            port=port,
            secret=effective_secret(secret),
        )

    @property
    def is_authenticated(self) -> bool:
        return self.secret is not None

    @property
    def origin(self) -> str:
        host = f"[{self.host}]" if ":" in self.host else self.host
        if self.port is None:
            return f"{self.scheme}://{host}"
        return f"{self.scheme}://{host}:{self.port}"

    def url_for(self, path: str, query: QueryItems | None = None) -> str:
        """Build an absolute API URL from the site origin.

        Any path component of the configured base URL is discarded; API paths
        are absolute on the remote store.
        """
        url = f"{self.origin}{path}"
        if query:
            url += f"?{render_query(query)}"
        return url

    def headers(self) -> dict[str, str]:
        """Authentication headers for this site (empty when unauthenticated)."""
        return auth_headers(self.secret)

    def __repr__(self) -> str:
        # Keep the secret out of logs and tracebacks
        return (
            f"NightscoutEndpoint(base_url={self.base_url!r}, "
            f"authenticated={self.is_authenticated})"
        )
