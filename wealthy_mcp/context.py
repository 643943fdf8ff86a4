"""
Application context shared by every tool handler and HTTP route.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from wealthy_mcp.config import Settings
from wealthy_mcp.protocols import Dialer, PriceFeed, TradingBackend
from wealthy_mcp.services.auth import AuthSession
from wealthy_mcp.services.falcon_client import FalconClient
from wealthy_mcp.services.price_feed import PriceFeedService

logger = logging.getLogger(__name__)


@dataclass
class AppContext:
    settings: Settings
    auth: AuthSession
    falcon: TradingBackend
    price_feed: PriceFeed

    async def aclose(self) -> None:
        """Stop the feed and release HTTP clients."""
        await self.price_feed.close()
        await self.falcon.aclose()
        await self.auth.aclose()
        logger.info("Application context closed")


def build_context(settings: Settings, dialer: Optional[Dialer] = None) -> AppContext:
    """Wire auth, the REST client and the price feed together."""
    auth = AuthSession(settings)

    def reauthenticate() -> None:
        auth.start_browser_login()

    falcon = FalconClient(settings, token_provider=auth.get_token, on_unauthorized=reauthenticate)
    price_feed = PriceFeedService.from_settings(settings, url_resolver=falcon.get_websocket_url, dialer=dialer)
    return AppContext(settings=settings, auth=auth, falcon=falcon, price_feed=price_feed)
