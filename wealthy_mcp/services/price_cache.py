"""
Last-price cache with non-blocking access.
Provides the tick→cache bridge for the streaming price feed.
"""

import time
import logging
from typing import Callable, Dict, Optional
from dataclasses import dataclass
from threading import RLock

from wealthy_mcp.errors import PriceNotFoundError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PriceEntry:
    """Last known tick for a symbol."""
    symbol: str
    value: float
    timestamp: float  # receipt time, epoch seconds

    def age(self, now: Optional[float] = None) -> float:
        """Seconds since the tick was received."""
        return (time.time() if now is None else now) - self.timestamp

    def to_dict(self) -> Dict[str, object]:
        return {"symbol": self.symbol, "value": self.value, "timestamp": self.timestamp}


class PriceCache:
    """Thread-safe last-price store keyed by symbol.

    Entries are replaced whole on every update so readers never observe a
    half-written tick. Entries are never evicted.
    """

    def __init__(self, clock: Callable[[], float] = time.time):
        self._cache: Dict[str, PriceEntry] = {}
        self._lock = RLock()
        self._clock = clock
        self._last_update_ts = 0.0

    def update(self, symbol: str, value: float) -> PriceEntry:
        """Record a tick for a symbol, stamped with the receipt time."""
        with self._lock:
            now = self._clock()
            entry = PriceEntry(symbol=symbol, value=float(value), timestamp=now)
            self._cache[symbol] = entry
            self._last_update_ts = now

        logger.debug(f"Updated cache for {symbol}: value={value}")
        return entry

    def get(self, symbol: str) -> Optional[PriceEntry]:
        """Get cached entry for symbol, None if never ticked (non-blocking)."""
        with self._lock:
            return self._cache.get(symbol)

    def get_last_price(self, symbol: str) -> PriceEntry:
        """Read API: latest entry for symbol.

        Raises:
            PriceNotFoundError: no tick has been received for the symbol
        """
        entry = self.get(symbol)
        if entry is None:
            raise PriceNotFoundError(symbol)
        return entry

    def snapshot(self) -> Dict[str, PriceEntry]:
        """Get all cached entries (non-blocking)."""
        with self._lock:
            return self._cache.copy()

    def get_last_update_ts(self) -> float:
        """Get timestamp of last update."""
        with self._lock:
            return self._last_update_ts

    def clear(self) -> None:
        with self._lock:
            self._cache.clear()
            self._last_update_ts = 0.0

    def __len__(self) -> int:
        with self._lock:
            return len(self._cache)

    def __contains__(self, symbol: str) -> bool:
        with self._lock:
            return symbol in self._cache
