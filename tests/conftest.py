# Shared pytest configuration and fixtures
from datetime import datetime, timezone
from typing import Callable, List

import httpx
import pytest

from steam_gateway.core.config import ClientConfig
from steam_gateway.providers.store.memory_store import MemoryStore

FIXED_NOW = datetime(2024, 3, 15, 12, 0, tzinfo=timezone.utc)
TODAY = "2024-03-15"


class FakeClock:
    """Manually advanced replacement for time.time()."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def memory_store(clock):
    return MemoryStore(clock=clock)


@pytest.fixture
def fixed_now():
    return lambda: FIXED_NOW


@pytest.fixture
def make_config():
    def _make(keys=("key-a-0000000000", "key-b-0000000000"), **overrides):
        return ClientConfig(api_keys=tuple(keys), **overrides)

    return _make


class RecordingTransport(httpx.MockTransport):
    """MockTransport that keeps every request it served."""

    def __init__(self, handler: Callable[[httpx.Request], httpx.Response]):
        self.requests: List[httpx.Request] = []

        def _record(request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            return handler(request)

        super().__init__(_record)

    @property
    def keys_used(self) -> List[str]:
        return [request.url.params.get("key") for request in self.requests]


@pytest.fixture
def make_http_client():
    def _make(handler):
        transport = RecordingTransport(handler)
        return httpx.AsyncClient(transport=transport), transport

    return _make


@pytest.fixture
def today():
    return TODAY
