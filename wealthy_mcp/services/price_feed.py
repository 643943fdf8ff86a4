"""
Price Feed Service - live LTP subscriptions with a last-price cache.
Wires the connection manager, the subscription multiplexer and the cache together.
"""

import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional

from wealthy_mcp.config import Settings
from wealthy_mcp.errors import ConfigurationError, NoConnectionError, WealthyMCPError
from wealthy_mcp.protocols.transport import Dialer
from wealthy_mcp.schemas.market import FeedHealth
from wealthy_mcp.services.feed_connection import FeedConnectionManager
from wealthy_mcp.services.feed_decoder import FrameHandler
from wealthy_mcp.services.price_cache import PriceCache, PriceEntry
from wealthy_mcp.services.subscriptions import SubscriptionMultiplexer, normalize_symbol

logger = logging.getLogger("price_feed_service")

UrlResolver = Callable[[], Awaitable[str]]


class PriceFeedService:
    """Process-owned context object for the live price feed.

    One instance per server; tool handlers receive it by reference.
    """

    def __init__(
        self,
        *,
        ws_url: Optional[str] = None,
        url_resolver: Optional[UrlResolver] = None,
        dialer: Optional[Dialer] = None,
        cache: Optional[PriceCache] = None,
        dedupe: bool = True,
        connect_timeout: float = 10.0,
        probe_timeout: float = 5.0,
        write_timeout: float = 5.0,
        max_consecutive_errors: int = 50,
        retry_delay: float = 0.25,
    ):
        if not ws_url and url_resolver is None:
            raise ConfigurationError("PriceFeedService needs ws_url or url_resolver")
        self._static_url = ws_url or None
        self._url_resolver = url_resolver
        self._resolved_url: Optional[str] = None

        self.cache = cache or PriceCache()
        self.handler = FrameHandler(self.cache)
        self.manager = FeedConnectionManager(
            self.handler,
            dialer=dialer,
            connect_timeout=connect_timeout,
            probe_timeout=probe_timeout,
            write_timeout=write_timeout,
            max_consecutive_errors=max_consecutive_errors,
        )
        self.multiplexer = SubscriptionMultiplexer(self.manager, dedupe=dedupe, retry_delay=retry_delay)

    @classmethod
    def from_settings(cls, settings: Settings, url_resolver: Optional[UrlResolver] = None,
                      dialer: Optional[Dialer] = None) -> "PriceFeedService":
        return cls(
            ws_url=settings.WEALTHY_WS_URL or None,
            url_resolver=url_resolver,
            dialer=dialer,
            dedupe=settings.FEED_DEDUPE_SUBSCRIPTIONS,
            connect_timeout=settings.FEED_CONNECT_TIMEOUT_S,
            probe_timeout=settings.FEED_PROBE_TIMEOUT_S,
            write_timeout=settings.FEED_WRITE_TIMEOUT_S,
            max_consecutive_errors=settings.FEED_MAX_CONSECUTIVE_ERRORS,
        )

    async def subscribe(self, symbol: str) -> None:
        """Subscribe to LTP ticks for symbol.

        Raises:
            NoConnectionError: the streaming endpoint could not be reached
            WriteFailedError: the subscribe frame could not be written
        """
        url = await self._endpoint_url()
        try:
            await self.multiplexer.subscribe(url, symbol)
        except NoConnectionError:
            # Streaming URLs are per-session; look it up again next time
            self._resolved_url = None
            raise

    async def unsubscribe(self, symbol: str) -> None:
        await self.multiplexer.unsubscribe(symbol)

    def get_last_price(self, symbol: str) -> PriceEntry:
        """Read API: latest cached tick, PriceNotFoundError if none yet."""
        return self.cache.get_last_price(normalize_symbol(symbol))

    def active_symbols(self) -> List[str]:
        return self.multiplexer.active_symbols()

    def health(self) -> Dict[str, Any]:
        metrics = self.manager.get_health_metrics()
        return FeedHealth(
            connected=metrics["connected"],
            connection_id=metrics["connection_id"],
            url=metrics["url"],
            reader_alive=metrics["reader_alive"],
            dial_count=metrics["dial_count"],
            reconnect_count=metrics["reconnect_count"],
            active_symbols=self.active_symbols(),
            cached_symbols=len(self.cache),
            decode_errors=self.handler.decode_errors,
            ticks_applied=self.handler.ticks_applied,
            last_tick_ts=self.cache.get_last_update_ts(),
        ).model_dump()

    async def close(self) -> None:
        await self.manager.close()

    async def _endpoint_url(self) -> str:
        if self._static_url:
            return self._static_url
        if self._resolved_url is None:
            try:
                self._resolved_url = await self._url_resolver()
            except WealthyMCPError as e:
                raise NoConnectionError(f"failed to get websocket URL: {e.message}", e.details) from e
            logger.info(f"[price_feed_service] Resolved streaming endpoint {self._resolved_url}")
        return self._resolved_url
