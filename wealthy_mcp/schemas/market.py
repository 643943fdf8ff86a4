"""
Price feed schemas using Pydantic for validation and serialization.
"""

from enum import IntEnum
from pydantic import AliasChoices, BaseModel, Field, field_validator
from typing import Any, List, Optional


def canonical_symbol(symbol: str) -> str:
    """Strip whitespace and lower-case the exchange prefix (``NSE:X`` -> ``nse:X``)."""
    cleaned = (symbol or "").strip()
    exchange, sep, trading_symbol = cleaned.partition(":")
    if sep and exchange and trading_symbol:
        return f"{exchange.lower()}:{trading_symbol}"
    return cleaned


class FeedOperation(IntEnum):
    """Operation codes understood by the streaming endpoint."""
    SUBSCRIBE = 1
    UNSUBSCRIBE = 2


class SubscriptionMode(IntEnum):
    """Streaming modes; only LTP is consumed by the cache."""
    LTP = 1
    QUOTE = 2
    FULL = 3


class SubscriptionFrame(BaseModel):
    """Outbound subscribe/unsubscribe frame."""
    operation: FeedOperation
    mode: SubscriptionMode = SubscriptionMode.LTP
    symbol: List[str]  # exchange-qualified ids, e.g. nse:RELIANCE-EQ

    def to_wire(self) -> dict:
        return {"operation": int(self.operation), "mode": int(self.mode), "symbol": list(self.symbol)}


class FeedTick(BaseModel):
    """Decoded `feed` variant of an inbound frame."""
    symbol: str
    ltp: float = Field(validation_alias=AliasChoices("ltp", "price"))
    timestamp: Optional[float] = None  # exchange time if the feed sends one

    @field_validator("symbol")
    @classmethod
    def validate_symbol(cls, v):
        symbol = canonical_symbol(v)
        if not symbol:
            raise ValueError("symbol cannot be empty")
        return symbol


class OtherFrame(BaseModel):
    """Any inbound variant the price cache does not consume (ack, pong, error...)."""
    kind: str
    payload: Any = None


class FeedHealth(BaseModel):
    """Price feed connection status."""
    connected: bool
    connection_id: Optional[str] = None
    url: Optional[str] = None
    reader_alive: bool = False
    dial_count: int = 0
    reconnect_count: int = 0
    active_symbols: List[str] = Field(default_factory=list)
    cached_symbols: int = 0
    decode_errors: int = 0
    ticks_applied: int = 0
    last_tick_ts: float = 0.0  # receipt time of the newest tick, 0 if none yet
