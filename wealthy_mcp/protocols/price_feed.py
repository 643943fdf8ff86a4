"""
Price Feed Protocol
Defines the interface tool handlers use for live prices.
"""

from typing import Protocol, Dict, Any, List
from abc import abstractmethod

from wealthy_mcp.services.price_cache import PriceEntry


class PriceFeed(Protocol):
    """Protocol for live price subscription and lookup."""

    @abstractmethod
    async def subscribe(self, symbol: str) -> None:
        """Start streaming LTP ticks for symbol."""
        ...

    @abstractmethod
    async def unsubscribe(self, symbol: str) -> None:
        """Stop streaming ticks for symbol."""
        ...

    @abstractmethod
    def get_last_price(self, symbol: str) -> PriceEntry:
        """Latest cached entry; raises PriceNotFoundError on a cache miss."""
        ...

    @abstractmethod
    def active_symbols(self) -> List[str]:
        """Symbols currently subscribed on the wire."""
        ...

    @abstractmethod
    def health(self) -> Dict[str, Any]:
        """Connection and cache status."""
        ...

    @abstractmethod
    async def close(self) -> None:
        """Tear down the streaming connection."""
        ...
