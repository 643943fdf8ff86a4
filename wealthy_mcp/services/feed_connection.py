"""
Streaming price feed connection manager.
Owns the single websocket to the market-data feed: dial, liveness probe, reconnect
and the one background reader that feeds the price cache.
"""

import asyncio
import json
import logging
import uuid
import websockets
from websockets.exceptions import ConnectionClosed
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Optional

from wealthy_mcp.errors import ConnectError, FeedWriteError, FrameDecodeError
from wealthy_mcp.observability.metrics import record_ws_dial, record_ws_reconnect
from wealthy_mcp.protocols.transport import Dialer, FeedTransport
from wealthy_mcp.services.feed_decoder import FrameHandler
from wealthy_mcp.util.async_tools import cancel_and_join, create_supervised_task, timeout

logger = logging.getLogger("price_feed")

CLOSE_TIMEOUT = 10  # seconds


def websocket_dialer(open_timeout: float = 10.0) -> Dialer:
    """Default dialer backed by the websockets client."""

    async def dial(url: str) -> FeedTransport:
        # We probe liveness ourselves, so keepalive pings are off
        return await websockets.connect(
            url,
            ping_interval=None,
            open_timeout=open_timeout,
            close_timeout=CLOSE_TIMEOUT,
        )

    return dial


@dataclass
class FeedConnection:
    """A single logical handle to the streaming endpoint."""
    url: str
    transport: Any
    connection_id: str
    alive: bool = True
    reader_task: Optional[asyncio.Task] = None

    def reader_alive(self) -> bool:
        return self.reader_task is not None and not self.reader_task.done()


class FeedConnectionManager:
    """Keeps at most one live connection and exactly one reader per connection."""

    def __init__(
        self,
        handler: FrameHandler,
        *,
        dialer: Optional[Dialer] = None,
        connect_timeout: float = 10.0,
        probe_timeout: float = 5.0,
        write_timeout: float = 5.0,
        max_consecutive_errors: int = 50,
        on_connect: Optional[Callable[[FeedConnection], Awaitable[None]]] = None,
    ):
        self.handler = handler
        self._dialer = dialer or websocket_dialer(connect_timeout)
        self.connect_timeout = connect_timeout
        self.probe_timeout = probe_timeout
        self.write_timeout = write_timeout
        self.max_consecutive_errors = max_consecutive_errors
        self.on_connect = on_connect

        self._connection: Optional[FeedConnection] = None
        self._lock = asyncio.Lock()

        # Health metrics
        self.dial_count = 0
        self.reconnect_count = 0
        self.read_errors = 0

    @property
    def connection(self) -> Optional[FeedConnection]:
        return self._connection

    async def ensure_connected(self, url: str) -> None:
        """Make sure a healthy connection exists, dialling if needed.

        Repeated calls while the connection is healthy are cheap no-ops.

        Raises:
            ConnectError: dialling the endpoint failed
        """
        async with self._lock:
            conn = self._connection
            if conn is not None:
                if await self._is_healthy(conn):
                    return
                logger.warning(f"[price_feed] Connection {conn.connection_id} is dead, reconnecting")
                await self._teardown(conn)
            await self._dial(url)

    async def send_json(self, payload: Dict[str, Any]) -> None:
        """Write one JSON frame to the live connection.

        Raises:
            FeedWriteError: no live connection, or the write failed or timed out
        """
        conn = self._connection
        if conn is None or not conn.alive:
            raise FeedWriteError("websocket connection not established")
        try:
            await timeout(conn.transport.send(json.dumps(payload)), self.write_timeout)
        except Exception as e:
            # The next ensure_connected will replace it
            conn.alive = False
            raise FeedWriteError(f"failed to write to websocket: {e}", {"connection_id": conn.connection_id}) from e

    async def close(self) -> None:
        """Tear down the current connection and its reader."""
        async with self._lock:
            if self._connection is not None:
                await self._teardown(self._connection)
        logger.info("[price_feed] Connection manager closed")

    def is_connected(self) -> bool:
        conn = self._connection
        return conn is not None and conn.alive and conn.reader_alive()

    def get_health_metrics(self) -> Dict[str, Any]:
        """Get connection health metrics."""
        conn = self._connection
        return {
            "connected": self.is_connected(),
            "connection_id": conn.connection_id if conn else None,
            "url": conn.url if conn else None,
            "reader_alive": conn.reader_alive() if conn else False,
            "dial_count": self.dial_count,
            "reconnect_count": self.reconnect_count,
            "read_errors": self.read_errors,
        }

    async def _is_healthy(self, conn: FeedConnection) -> bool:
        """Non-destructive liveness probe: ping and wait for the pong."""
        if not conn.alive or not conn.reader_alive():
            return False
        try:
            pong_waiter = await timeout(conn.transport.ping(), self.probe_timeout)
            await timeout(pong_waiter, self.probe_timeout)
        except Exception as e:
            logger.info(f"[price_feed] Liveness probe failed for {conn.connection_id}: {e}")
            conn.alive = False
            return False
        return True

    async def _dial(self, url: str) -> None:
        self.dial_count += 1
        try:
            transport = await timeout(self._dialer(url), self.connect_timeout)
        except Exception as e:
            record_ws_dial(False)
            logger.error(f"[price_feed] Failed to connect to {url}: {e}")
            raise ConnectError(f"failed to connect to websocket: {e}", {"url": url}) from e

        record_ws_dial(True)
        conn = FeedConnection(url=url, transport=transport, connection_id=str(uuid.uuid4()))
        conn.reader_task = create_supervised_task(
            self._read_loop(conn),
            name=f"feed_reader:{conn.connection_id}",
        )
        self._connection = conn
        if self.dial_count > 1:
            self.reconnect_count += 1
            record_ws_reconnect()
        logger.info(f"[price_feed] Connected to {url} (connection {conn.connection_id})")

        if self.on_connect is not None:
            try:
                await self.on_connect(conn)
            except Exception as e:
                logger.warning(f"[price_feed] on_connect hook failed for {conn.connection_id}: {e}")

    async def _teardown(self, conn: FeedConnection) -> None:
        """Mark dead, cancel and join the reader, then close the transport."""
        conn.alive = False
        if conn.reader_task is not None:
            await cancel_and_join(conn.reader_task)
        try:
            await conn.transport.close()
        except Exception as e:
            logger.debug(f"[price_feed] Error closing {conn.connection_id}: {e}")
        if self._connection is conn:
            self._connection = None
        logger.info(f"[price_feed] Connection {conn.connection_id} torn down")

    async def _read_loop(self, conn: FeedConnection) -> None:
        """Read frames until the connection ends; the only writer into the cache."""
        consecutive_errors = 0
        while conn.alive:
            try:
                raw = await conn.transport.recv()
            except ConnectionClosed as e:
                logger.info(f"[price_feed] Connection {conn.connection_id} closed: {e}")
                break
            except Exception as e:
                self.read_errors += 1
                consecutive_errors += 1
                if consecutive_errors >= self.max_consecutive_errors:
                    logger.error(f"[price_feed] Giving up after {consecutive_errors} consecutive read errors: {e}")
                    break
                logger.warning(f"[price_feed] Read error: {e}")
                continue

            consecutive_errors = 0
            try:
                self.handler.handle(raw)
            except FrameDecodeError as e:
                logger.warning(f"[price_feed] Dropping malformed frame: {e.message}")

        conn.alive = False
