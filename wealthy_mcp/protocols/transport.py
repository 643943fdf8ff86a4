"""
Streaming transport protocol.
The subset of a websocket client connection the price feed relies on.
"""

from typing import Awaitable, Callable, Protocol, Union
from abc import abstractmethod


class FeedTransport(Protocol):
    """One open message-oriented connection to the streaming endpoint."""

    @abstractmethod
    async def send(self, message: str) -> None:
        """Write one frame."""
        ...

    @abstractmethod
    async def recv(self) -> Union[str, bytes]:
        """Read the next frame; raises ConnectionClosed once the connection ends."""
        ...

    @abstractmethod
    async def ping(self) -> Awaitable[float]:
        """Send a control ping; the returned awaitable resolves on pong."""
        ...

    @abstractmethod
    async def close(self) -> None:
        """Close the connection."""
        ...


Dialer = Callable[[str], Awaitable[FeedTransport]]
