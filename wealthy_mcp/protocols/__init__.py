"""
Protocols
Lightweight Protocols for interface clarity and decoupling.
"""

from .price_feed import PriceFeed
from .trading_backend import TradingBackend
from .transport import Dialer, FeedTransport

__all__ = [
    "PriceFeed",
    "TradingBackend",
    "Dialer",
    "FeedTransport",
]
