"""
Trading Backend Protocol
Pass-through operations of the broker REST API.
"""

from typing import Protocol, Any, List, Optional
from abc import abstractmethod


class TradingBackend(Protocol):
    """Protocol for the remote trading backend."""

    @abstractmethod
    async def place_order(self, orders: List[Any]) -> Any: ...

    @abstractmethod
    async def modify_order(self, req: Any) -> Any: ...

    @abstractmethod
    async def cancel_order(self, req: Any) -> Any: ...

    @abstractmethod
    async def get_holdings(self) -> Any: ...

    @abstractmethod
    async def get_positions(self) -> Any: ...

    @abstractmethod
    async def get_order_book(self) -> Any: ...

    @abstractmethod
    async def get_price(self, symbols: List[str]) -> Any: ...

    @abstractmethod
    async def get_trade_ideas(self) -> Any: ...

    @abstractmethod
    async def search_security(self, query: str) -> Any: ...

    @abstractmethod
    async def get_websocket_url(self) -> str: ...

    @abstractmethod
    async def add_to_watchlist(self, req: Any) -> Any: ...

    @abstractmethod
    async def get_watchlists(self, name: Optional[str] = None) -> Any: ...

    @abstractmethod
    async def create_watchlist(self, name: str) -> Any: ...

    @abstractmethod
    async def get_user_margin(self) -> Any: ...

    @abstractmethod
    async def aclose(self) -> None: ...
