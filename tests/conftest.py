"""Pytest configuration and shared fixtures.

Facade and importer tests run against ``FakeTransport``, which records the
built ``NightscoutRequest`` objects so that URLs, headers and bodies can be
asserted exactly as the client produced them. ``HttpxTransport`` itself is
tested against ``httpx.MockTransport``.
"""

import json
from typing import Any

import pytest

from nightscout_sync.core.endpoint import NightscoutEndpoint
from nightscout_sync.services.nightscout_api import NightscoutAPI
from nightscout_sync.services.storage import FileStorage
from nightscout_sync.services.transport import NightscoutRequest, TransportResponse

BASE_URL = "https://example.com"
SECRET = "abc"
SECRET_SHA1 = "a9993e364706816aba3e25717850c26c9cd0d89d"


def json_response(data: Any, status_code: int = 200) -> TransportResponse:
    """Build a JSON transport response."""
    return TransportResponse(
        status_code=status_code,
        content=json.dumps(data).encode("utf-8"),
        content_type="application/json; charset=utf-8",
    )


def raw_response(
    content: bytes, status_code: int = 200, content_type: str | None = "application/json"
) -> TransportResponse:
    return TransportResponse(status_code=status_code, content=content, content_type=content_type)


class FakeTransport:
    """Transport double that replays outcomes in order.

    Each outcome is a ``TransportResponse`` to return or an exception to
    raise. The last outcome repeats once the list is exhausted.
    """

    def __init__(self, *outcomes: TransportResponse | Exception):
        self.outcomes = list(outcomes) or [json_response([])]
        self.requests: list[NightscoutRequest] = []

    async def send(self, request: NightscoutRequest) -> TransportResponse:
        self.requests.append(request)
        outcome = self.outcomes.pop(0) if len(self.outcomes) > 1 else self.outcomes[0]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    @property
    def last(self) -> NightscoutRequest:
        return self.requests[-1]


class MemoryStorage:
    """EntityStorage double keeping saved entities in a dict."""

    def __init__(self, failing_keys: set[str] | None = None):
        self.saved: dict[str, Any] = {}
        self.calls: list[str] = []
        self.failing_keys = failing_keys or set()

    def save(self, entity: Any, key: str) -> None:
        self.calls.append(key)
        if key in self.failing_keys:
            raise OSError(f"disk full while writing {key}")
        self.saved[key] = entity


@pytest.fixture
def endpoint() -> NightscoutEndpoint:
    return NightscoutEndpoint.from_url(BASE_URL)


@pytest.fixture
def secret_endpoint() -> NightscoutEndpoint:
    return NightscoutEndpoint.from_url(BASE_URL, SECRET)


@pytest.fixture
def memory_storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture
def file_storage(tmp_path) -> FileStorage:
    return FileStorage(tmp_path / "storage")


@pytest.fixture
def make_api():
    """Factory building a NightscoutAPI over a FakeTransport."""

    def _make(
        *outcomes: TransportResponse | Exception,
        secret: str | None = None,
        storage: Any = None,
    ) -> tuple[NightscoutAPI, FakeTransport]:
        transport = FakeTransport(*outcomes)
        api = NightscoutAPI(
            NightscoutEndpoint.from_url(BASE_URL, secret),
            transport=transport,
            storage=storage,
        )
        return api, transport

    return _make
