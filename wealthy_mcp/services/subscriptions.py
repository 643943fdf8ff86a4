"""
Subscription multiplexer for the streaming price feed.
Tracks which symbols are live on the wire and forwards subscribe/unsubscribe frames.
"""

import asyncio
import logging
from typing import List, Set

from wealthy_mcp.errors import (
    ConnectError, FeedWriteError, NoConnectionError, ValidationError, WriteFailedError
)
from wealthy_mcp.observability.metrics import record_subscription
from wealthy_mcp.schemas.market import FeedOperation, SubscriptionFrame, SubscriptionMode, canonical_symbol
from wealthy_mcp.services.feed_connection import FeedConnection, FeedConnectionManager
from wealthy_mcp.util.async_tools import AsyncRetryError, retry_async

logger = logging.getLogger("subscriptions")


def normalize_symbol(symbol: str) -> str:
    """Canonical form of a caller-supplied symbol, the same key ticks are cached under."""
    cleaned = canonical_symbol(symbol)
    if not cleaned:
        raise ValidationError("symbol is required")
    return cleaned


class SubscriptionMultiplexer:
    """Funnels subscription requests from any caller onto the one feed connection."""

    def __init__(
        self,
        manager: FeedConnectionManager,
        *,
        dedupe: bool = True,
        connect_attempts: int = 2,
        retry_delay: float = 0.25,
    ):
        self.manager = manager
        self.dedupe = dedupe
        self.connect_attempts = connect_attempts
        self.retry_delay = retry_delay
        self._active: Set[str] = set()
        # connection id the active set was last written to
        self._active_on: str = ""
        self._lock = asyncio.Lock()
        self.frames_sent = 0
        manager.on_connect = self._replay

    def active_symbols(self) -> List[str]:
        return sorted(self._active)

    async def subscribe(self, url: str, symbol: str, mode: SubscriptionMode = SubscriptionMode.LTP) -> None:
        """Make sure ticks for symbol are streaming.

        Raises:
            NoConnectionError: no connection after the retry
            WriteFailedError: the subscribe frame could not be written
        """
        symbol = normalize_symbol(symbol)
        async with self._lock:
            await self._connect(url)

            if self.dedupe and symbol in self._active and self._active_on == self._current_id():
                logger.debug(f"[subscriptions] {symbol} already subscribed")
                return

            await self._write(FeedOperation.SUBSCRIBE, mode, [symbol])
            self._active.add(symbol)
            self._active_on = self._current_id()
        logger.info(f"[subscriptions] Subscribed {symbol}")

    async def unsubscribe(self, symbol: str, mode: SubscriptionMode = SubscriptionMode.LTP) -> None:
        """Stop streaming symbol; unknown symbols are a no-op."""
        symbol = normalize_symbol(symbol)
        async with self._lock:
            if symbol not in self._active:
                return
            self._active.discard(symbol)
            if not self.manager.is_connected():
                # Nothing on the wire to cancel; it will not be replayed either
                return
            await self._write(FeedOperation.UNSUBSCRIBE, mode, [symbol])
        logger.info(f"[subscriptions] Unsubscribed {symbol}")

    async def _connect(self, url: str) -> None:
        try:
            await retry_async(
                lambda: self.manager.ensure_connected(url),
                max_attempts=self.connect_attempts,
                base_delay=self.retry_delay,
                jitter=False,
                retry_on=(ConnectError,),
            )
        except AsyncRetryError as e:
            cause = e.__cause__
            raise NoConnectionError(
                f"websocket connection not established: {cause}",
                {"url": url, "attempts": self.connect_attempts},
            ) from cause

    async def _write(self, operation: FeedOperation, mode: SubscriptionMode, symbols: List[str]) -> None:
        frame = SubscriptionFrame(operation=operation, mode=mode, symbol=symbols)
        try:
            await self.manager.send_json(frame.to_wire())
        except FeedWriteError as e:
            raise WriteFailedError(e.message, {"symbols": symbols, **e.details}) from e
        self.frames_sent += 1
        record_subscription(operation.name.lower(), len(symbols))

    async def _replay(self, conn: FeedConnection) -> None:
        """Re-send the active set on a freshly dialled connection."""
        if not self._active:
            return
        symbols = sorted(self._active)
        try:
            await self._write(FeedOperation.SUBSCRIBE, SubscriptionMode.LTP, symbols)
        except WriteFailedError as e:
            logger.warning(f"[subscriptions] Replay of {len(symbols)} symbols failed: {e.message}")
            return
        self._active_on = conn.connection_id
        logger.info(f"[subscriptions] Replayed {len(symbols)} subscriptions on {conn.connection_id}")

    def _current_id(self) -> str:
        conn = self.manager.connection
        return conn.connection_id if conn else ""
