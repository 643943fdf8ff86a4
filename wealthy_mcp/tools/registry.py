"""
Builds the FastMCP server with every tool and prompt registered.
"""

import logging

from mcp.server.fastmcp import FastMCP

from wealthy_mcp.context import AppContext
from wealthy_mcp.tools.orders import register_order_tools
from wealthy_mcp.tools.price import register_price_tools
from wealthy_mcp.tools.prompts import register_prompts
from wealthy_mcp.tools.reports import register_report_tools
from wealthy_mcp.tools.research import register_research_tools
from wealthy_mcp.tools.watchlist import register_watchlist_tools

logger = logging.getLogger("tools")

SERVER_NAME = "wealthy-mcp"


def build_mcp_server(ctx: AppContext) -> FastMCP:
    mcp = FastMCP(SERVER_NAME)

    register_research_tools(mcp, ctx)
    register_report_tools(mcp, ctx)
    register_order_tools(mcp, ctx)
    register_watchlist_tools(mcp, ctx)
    register_price_tools(mcp, ctx)
    register_prompts(mcp)

    logger.info(f"[tools] {SERVER_NAME} server built")
    return mcp
