"""
Order tools: place, modify and cancel.
"""

from mcp.server.fastmcp import FastMCP

from wealthy_mcp.context import AppContext
from wealthy_mcp.schemas.orders import CancelOrderRequest, ModifyOrderRequest, OrderRequest
from wealthy_mcp.tools.shared import run_tool


def register_order_tools(mcp: FastMCP, ctx: AppContext) -> None:
    @mcp.tool(name="place_order", description="Tool for placing buy/sell order")
    async def _place_order(order: OrderRequest):
        return await run_tool("place_order", ctx.falcon.place_order([order]))

    @mcp.tool(name="modify_order", description="Tool for modifying an order")
    async def _modify_order(order: ModifyOrderRequest):
        return await run_tool("modify_order", ctx.falcon.modify_order(order))

    @mcp.tool(name="cancel_order", description="Tool for cancelling an order")
    async def _cancel_order(order: CancelOrderRequest):
        return await run_tool("cancel_order", ctx.falcon.cancel_order(order))
