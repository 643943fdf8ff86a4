"""
Price tools: REST quotes plus the live LTP feed (subscribe, read, status).
"""

import time
from typing import Any, Dict, List

from mcp.server.fastmcp import FastMCP

from wealthy_mcp.context import AppContext
from wealthy_mcp.errors import PriceNotFoundError, ValidationError
from wealthy_mcp.services.subscriptions import normalize_symbol
from wealthy_mcp.tools.shared import run_tool

SYMBOL_HELP = (
    "Symbol of the stock, add -EQ in the end for trading symbol if already not present, "
    "correct format: exchange:trading_symbol, nse:RELIANCE-EQ, bse:RELIANCE-EQ, nse:INFY-EQ, "
    "bse:INFY, nfo:RELIANCE29MAY25F"
)


async def get_price(ctx: AppContext, symbols: List[str]) -> Any:
    if not symbols:
        raise ValidationError("at least one symbol is required")
    return await ctx.falcon.get_price([normalize_symbol(s) for s in symbols])


async def subscribe_price(ctx: AppContext, symbol: str) -> Dict[str, Any]:
    await ctx.price_feed.subscribe(symbol)
    return {"subscribed": normalize_symbol(symbol), "active_symbols": ctx.price_feed.active_symbols()}


async def unsubscribe_price(ctx: AppContext, symbol: str) -> Dict[str, Any]:
    await ctx.price_feed.unsubscribe(symbol)
    return {"unsubscribed": normalize_symbol(symbol), "active_symbols": ctx.price_feed.active_symbols()}


async def get_ltp(ctx: AppContext, symbol: str) -> Dict[str, Any]:
    """Latest streamed price; a miss is a normal answer, not an error."""
    try:
        entry = ctx.price_feed.get_last_price(symbol)
    except PriceNotFoundError as e:
        return {
            "symbol": e.symbol,
            "found": False,
            "message": "no tick received yet, subscribe_price first or retry shortly",
        }
    result = entry.to_dict()
    result["found"] = True
    result["age_s"] = round(entry.age(time.time()), 3)
    return result


def register_price_tools(mcp: FastMCP, ctx: AppContext) -> None:
    @mcp.tool(name="get_price", description=f"Get the quote of one or more stocks. {SYMBOL_HELP}")
    async def _get_price(symbols: List[str]):
        return await run_tool("get_price", get_price(ctx, symbols))

    @mcp.tool(name="subscribe_price", description=f"Start streaming the last traded price of a stock. {SYMBOL_HELP}")
    async def _subscribe_price(symbol: str):
        return await run_tool("subscribe_price", subscribe_price(ctx, symbol))

    @mcp.tool(name="unsubscribe_price", description="Stop streaming the last traded price of a stock")
    async def _unsubscribe_price(symbol: str):
        return await run_tool("unsubscribe_price", unsubscribe_price(ctx, symbol))

    @mcp.tool(name="get_ltp", description="Get the latest streamed last traded price of a subscribed stock")
    async def _get_ltp(symbol: str):
        return await run_tool("get_ltp", get_ltp(ctx, symbol))

    @mcp.tool(name="feed_status", description="Show the live price feed connection status")
    async def _feed_status():
        return ctx.price_feed.health()
