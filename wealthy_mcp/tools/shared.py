"""
Helpers shared by the tool modules.
"""

import logging
from typing import Any, Awaitable

from wealthy_mcp.errors import WealthyMCPError, create_structured_error_response
from wealthy_mcp.observability.metrics import record_tool_call

logger = logging.getLogger("tools")


async def run_tool(tool: str, call: Awaitable[Any]) -> Any:
    """Await a handler and turn known errors into a structured result for the agent."""
    try:
        result = await call
    except WealthyMCPError as e:
        record_tool_call(tool, ok=False)
        logger.warning(f"[tools] {tool} failed: {e.error_code} - {e.message}")
        return {"error": create_structured_error_response(e)}
    record_tool_call(tool, ok=True)
    return result
