"""
Operations monitoring endpoints for the live price feed.
"""

import time
import logging
from fastapi import APIRouter, Request

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/ops/feed")
def get_feed_status(request: Request):
    """Connection health, active subscriptions and cache size."""
    price_feed = request.app.state.ctx.price_feed
    status = price_feed.health()
    status["timestamp"] = int(time.time() * 1000)
    return status


@router.get("/ops/price/{symbol}")
def get_cached_price(symbol: str, request: Request):
    """Last cached tick for symbol.

    PriceNotFoundError (404) and ValidationError (422) are rendered by the
    registered exception handlers.
    """
    entry = request.app.state.ctx.price_feed.get_last_price(symbol)
    result = entry.to_dict()
    result["age_s"] = round(entry.age(), 3)
    return result
