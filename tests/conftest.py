"""
Pytest configuration.
Provides a fake streaming transport and dialer, deterministic time and proper teardown.
"""

import asyncio
import json
import pytest
from typing import Any, List, Optional

from websockets.exceptions import ConnectionClosedOK

from wealthy_mcp.config import Settings
from wealthy_mcp.observability.metrics import get_registry
from wealthy_mcp.services.price_feed import PriceFeedService
from wealthy_mcp.util.async_tools import shutdown_supervised_tasks

FEED_URL = "wss://feed.test/ws"

_CLOSED = object()


class FakeTransport:
    """In-memory stand-in for a websocket client connection."""

    def __init__(self):
        self.sent: List[dict] = []
        self.inbox: asyncio.Queue = asyncio.Queue()
        self.closed = False
        self.ping_fails = False
        self.pong_hangs = False
        self.fail_send = False
        self.pings = 0

    def push(self, frame: Any):
        """Queue a frame for the reader; dicts are sent as JSON text."""
        self.inbox.put_nowait(json.dumps(frame) if isinstance(frame, dict) else frame)

    def push_tick(self, symbol: str, ltp: float):
        self.push({"feed": {"symbol": symbol, "ltp": ltp}})

    def push_error(self, exc: Exception):
        self.inbox.put_nowait(exc)

    def close_remote(self):
        self.inbox.put_nowait(_CLOSED)

    async def send(self, message: str):
        if self.fail_send:
            raise ConnectionResetError("broken pipe")
        self.sent.append(json.loads(message))

    async def recv(self):
        item = await self.inbox.get()
        if item is _CLOSED:
            raise ConnectionClosedOK(None, None)
        if isinstance(item, Exception):
            raise item
        return item

    async def ping(self):
        self.pings += 1
        if self.ping_fails:
            raise ConnectionResetError("connection lost")
        pong = asyncio.get_running_loop().create_future()
        if not self.pong_hangs:
            pong.set_result(0.0)
        return pong

    async def close(self):
        self.closed = True
        self.inbox.put_nowait(_CLOSED)


class FakeDialer:
    """Counts dials and hands out a fresh FakeTransport per successful dial."""

    def __init__(self):
        self.calls = 0
        self.urls: List[str] = []
        self.failures = 0
        self.hang = False
        self.transports: List[FakeTransport] = []

    @property
    def last(self) -> Optional[FakeTransport]:
        return self.transports[-1] if self.transports else None

    async def __call__(self, url: str) -> FakeTransport:
        self.calls += 1
        self.urls.append(url)
        if self.hang:
            await asyncio.sleep(3600)
        if self.failures > 0:
            self.failures -= 1
            raise ConnectionRefusedError(f"connection refused: {url}")
        transport = FakeTransport()
        self.transports.append(transport)
        return transport


@pytest.fixture
def dialer() -> FakeDialer:
    return FakeDialer()


@pytest.fixture
def make_service(dialer):
    """Factory for a PriceFeedService wired to the fake dialer with short timeouts."""

    def _make(**overrides) -> PriceFeedService:
        kwargs = dict(
            ws_url=FEED_URL,
            dialer=dialer,
            connect_timeout=0.5,
            probe_timeout=0.2,
            write_timeout=0.2,
            retry_delay=0,
        )
        kwargs.update(overrides)
        return PriceFeedService(**kwargs)

    return _make


@pytest.fixture
def eventually():
    """Poll until a condition holds, letting the reader task run in between."""

    async def _wait(predicate, timeout: float = 1.0):
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout
        while not predicate():
            if loop.time() > deadline:
                raise AssertionError("condition not met in time")
            await asyncio.sleep(0.005)

    return _wait


@pytest.fixture
def settings() -> Settings:
    s = Settings()
    s.FALCON_BASE_URL = "https://falcon.test/broking/api"
    s.MIDAS_BASE_URL = "https://falcon.test/midas/api"
    s.SEARCH_URL = "https://search.test/api/v0/search/"
    s.WS_TOKEN_URL = "https://falcon.test/broking/api/v0/auth/oms/token/"
    s.LOGIN_URL = "https://auth.test/login/"
    s.TOKEN_EXCHANGE_URL = "https://auth.test/token-details/"
    s.WEALTHY_AUTH_TOKEN = "test-token"
    s.WEALTHY_WS_URL = FEED_URL
    s.DEBUG_MODE = False
    s.MCP_ADDR = "localhost:8004"
    return s


@pytest.fixture
def deterministic_time():
    """Provide deterministic time for tests."""
    from wealthy_mcp.util.async_tools import get_deterministic_clock

    clock = get_deterministic_clock()
    clock.freeze()

    yield clock

    clock.unfreeze()


@pytest.fixture(autouse=True)
def reset_metrics():
    get_registry().reset()
    yield
    get_registry().reset()


@pytest.fixture(autouse=True)
async def cleanup_supervised_tasks():
    """Cancel reader tasks left running by a test."""
    yield
    await shutdown_supervised_tasks()
