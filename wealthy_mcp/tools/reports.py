"""
Report tools: holdings, positions, order book and margin.
"""

from typing import Any

from mcp.server.fastmcp import FastMCP

from wealthy_mcp.context import AppContext
from wealthy_mcp.errors import ValidationError
from wealthy_mcp.schemas.orders import ReportType
from wealthy_mcp.tools.shared import run_tool


async def get_report(ctx: AppContext, report: str) -> Any:
    try:
        kind = ReportType(report)
    except ValueError:
        raise ValidationError(f"unsupported report type: {report}", {"allowed": [r.value for r in ReportType]})

    if kind is ReportType.HOLDINGS:
        return await ctx.falcon.get_holdings()
    if kind is ReportType.POSITIONS:
        return await ctx.falcon.get_positions()
    return await ctx.falcon.get_order_book()


def register_report_tools(mcp: FastMCP, ctx: AppContext) -> None:
    @mcp.tool(
        name="reports_tool",
        description="Tool for generating reports, report type one of holdings, positions, order_book",
    )
    async def _reports(report: str):
        return await run_tool("reports_tool", get_report(ctx, report))

    @mcp.tool(name="get_user_margin", description="Tool for getting user margin")
    async def _user_margin():
        return await run_tool("get_user_margin", ctx.falcon.get_user_margin())
