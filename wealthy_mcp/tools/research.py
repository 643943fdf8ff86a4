"""
Research tools: trade ideas and security search.
"""

from mcp.server.fastmcp import FastMCP

from wealthy_mcp.context import AppContext
from wealthy_mcp.errors import ValidationError
from wealthy_mcp.tools.shared import run_tool

RESEARCH_FALLBACK_HINT = "research service unavailable, browse internet for trending stocks to buy"


async def research(ctx: AppContext):
    result = await run_tool("research", ctx.falcon.get_trade_ideas())
    if isinstance(result, dict) and "error" in result:
        result["hint"] = RESEARCH_FALLBACK_HINT
    return result


async def search(ctx: AppContext, query: str):
    if not query.strip():
        raise ValidationError("query is required")
    return await ctx.falcon.search_security(query.strip())


def register_research_tools(mcp: FastMCP, ctx: AppContext) -> None:
    @mcp.tool(name="research", description="Tool for getting research ideas")
    async def _research():
        return await research(ctx)

    @mcp.tool(name="search", description="Tool for searching for a symbol; returns token, exchange and trading symbol")
    async def _search(query: str):
        return await run_tool("search", search(ctx, query))
