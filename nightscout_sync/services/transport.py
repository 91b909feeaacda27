"""HTTP transport and retry policy for Nightscout requests.

A request is issued once plus at most ``retries`` immediate retries. A
connection failure, a timeout and a non-2xx answer all count as a failed
attempt; once the budget is spent the last failure is raised. There is no
backoff between attempts, which is only reasonable because the budget is one.
"""

from dataclasses import dataclass, field
from typing import Protocol

import httpx

from nightscout_sync.core.errors import NightscoutConnectionError, NightscoutStatusError
from nightscout_sync.logging_config import get_logger

logger = get_logger(__name__)

# Timeout for reads, uploads and deletes (seconds)
REQUEST_TIMEOUT = 60.0
# Extra attempts after the first for reads, uploads and deletes
RETRY_COUNT = 1
# Timeout for requests that leave it to the transport (seconds)
DEFAULT_TIMEOUT = 60.0


@dataclass(frozen=True)
class NightscoutRequest:
    """One fully-built request to the remote store.

    ``timeout`` of None leaves the transport's default in place
    (``HttpxTransport`` uses ``DEFAULT_TIMEOUT``).
    ``allow_constrained_network`` tells transports that can distinguish
    metered or low-data network paths whether this request may use them.
    """

    method: str
    url: str
    headers: dict[str, str] = field(default_factory=dict)
    body: bytes | None = None
    timeout: float | None = REQUEST_TIMEOUT
    allow_constrained_network: bool = False


@dataclass(frozen=True)
class TransportResponse:
    status_code: int
    content: bytes
    content_type: str | None = None

    @property
    def is_success(self) -> bool:
        return 200 <= self.status_code < 300

    @property
    def is_json(self) -> bool:
        if not self.content_type:
            return False
        return self.content_type.split(";")[0].strip().lower() == "application/json"


class Transport(Protocol):
    """Executes a single request without any retry of its own."""

    async def send(self, request: NightscoutRequest) -> TransportResponse:
        """Send the request.

        Raises:
            NightscoutConnectionError: If no HTTP response was received.
        """
        ...


class HttpxTransport:
    """Transport backed by ``httpx.AsyncClient``.

    Pass a client to reuse its connection pool across calls; without one a
    short-lived client is opened per request. Requests without a timeout of
    their own use ``default_timeout`` in both cases.
    """

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        default_timeout: float = DEFAULT_TIMEOUT,
    ):
        self._client = client
        self.default_timeout = default_timeout

    async def send(self, request: NightscoutRequest) -> TransportResponse:
        timeout = request.timeout if request.timeout is not None else self.default_timeout
        kwargs = {"headers": request.headers, "content": request.body, "timeout": timeout}

        try:
            if self._client is not None:
                resp = await self._client.request(request.method, request.url, **kwargs)
            else:
                async with httpx.AsyncClient() as client:
                    resp = await client.request(request.method, request.url, **kwargs)
        except httpx.TimeoutException as exc:
            raise NightscoutConnectionError(
                f"{request.method} {_path(request.url)} timed out"
            ) from exc
        except httpx.HTTPError as exc:
            raise NightscoutConnectionError(
                f"{request.method} {_path(request.url)} failed: {exc}"
            ) from exc

        return TransportResponse(
            status_code=resp.status_code,
            content=resp.content,
            content_type=resp.headers.get("content-type"),
        )


def _path(url: str) -> str:
    """URL without its query, for log lines and error messages."""
    return url.split("?", 1)[0]


async def execute(
    transport: Transport,
    request: NightscoutRequest,
    retries: int = RETRY_COUNT,
) -> TransportResponse:
    """Send a request with the retry policy and classify the outcome.

    Args:
        transport: Transport to send through.
        request: The request to send.
        retries: Immediate retries allowed after the first attempt.

    Returns:
        The 2xx response.

    Raises:
        NightscoutConnectionError: If the last attempt got no response.
        NightscoutStatusError: If the last attempt got a non-2xx status.
    """
    attempts = max(retries, 0) + 1
    error: NightscoutConnectionError | NightscoutStatusError

    for attempt in range(1, attempts + 1):
        try:
            resp = await transport.send(request)
        except NightscoutConnectionError as exc:
            error = exc
        else:
            if resp.is_success:
                logger.debug(
                    "Nightscout request succeeded",
                    method=request.method,
                    path=_path(request.url),
                    status_code=resp.status_code,
                    attempt=attempt,
                )
                return resp
            error = NightscoutStatusError(resp.status_code)

        if attempt == attempts:
            raise error

        logger.info(
            "Retrying Nightscout request",
            method=request.method,
            path=_path(request.url),
            attempt=attempt,
            error=str(error),
        )
