"""
Watchlist tools.
"""

from typing import Optional

from mcp.server.fastmcp import FastMCP

from wealthy_mcp.context import AppContext
from wealthy_mcp.errors import ValidationError
from wealthy_mcp.schemas.orders import WatchlistRequest
from wealthy_mcp.tools.shared import run_tool


async def add_to_watchlist(ctx: AppContext, req: WatchlistRequest) -> str:
    if not req.name.strip():
        raise ValidationError("watchlist name is required")
    if not req.token or not req.trading_symbol:
        raise ValidationError("token and trading_symbol are required, use the search tool to find them")
    return await ctx.falcon.add_to_watchlist(req)


def register_watchlist_tools(mcp: FastMCP, ctx: AppContext) -> None:
    @mcp.tool(name="create_watchlist", description="Tool for adding a scrip to a watchlist")
    async def _add_to_watchlist(watchlist: WatchlistRequest):
        return await run_tool("create_watchlist", add_to_watchlist(ctx, watchlist))

    @mcp.tool(name="new_watchlist", description="Tool for creating an empty watchlist")
    async def _new_watchlist(name: str):
        return await run_tool("new_watchlist", ctx.falcon.create_watchlist(name))

    @mcp.tool(name="get_watchlist", description="Tool for getting watchlists, all of them when no name is given")
    async def _get_watchlist(name: Optional[str] = None):
        return await run_tool("get_watchlist", ctx.falcon.get_watchlists(name))
