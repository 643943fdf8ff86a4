"""
FastAPI side server: health, login callback and ops endpoints.
In SSE mode the MCP server is mounted under /mcp.
"""

import logging
from typing import Optional

from fastapi import FastAPI
from mcp.server.fastmcp import FastMCP

from wealthy_mcp import __version__
from wealthy_mcp.context import AppContext
from wealthy_mcp.middleware.error_handler import register_exception_handlers
from wealthy_mcp.observability.metrics import create_metrics_router
from wealthy_mcp.routes_auth import router as auth_router
from wealthy_mcp.routes_ops import router as ops_router

logger = logging.getLogger(__name__)

MCP_MOUNT_PATH = "/mcp"


def create_http_app(ctx: AppContext, mcp: Optional[FastMCP] = None) -> FastAPI:
    app = FastAPI(title="Wealthy MCP", version=__version__)
    app.state.ctx = ctx

    register_exception_handlers(app)

    app.include_router(auth_router)
    app.include_router(ops_router)
    app.include_router(create_metrics_router())

    if mcp is not None:
        app.mount(MCP_MOUNT_PATH, mcp.sse_app())
        logger.info(f"MCP SSE app mounted at {MCP_MOUNT_PATH}")

    return app
