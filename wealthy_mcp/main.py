"""
Wealthy MCP - entry point.

Runs the MCP server over stdio (with the auth side server in the background)
or over SSE mounted on the FastAPI side server.
"""

import argparse
import asyncio
import logging
import sys
from typing import List, Optional

import uvicorn

from wealthy_mcp import __version__
from wealthy_mcp.config import Settings, settings as default_settings, split_addr
from wealthy_mcp.context import AppContext, build_context
from wealthy_mcp.errors import AuthError
from wealthy_mcp.http_app import create_http_app
from wealthy_mcp.observability.logs import setup_logging
from wealthy_mcp.tools.registry import build_mcp_server
from wealthy_mcp.util.async_tools import cancel_and_join, create_supervised_task, shutdown_supervised_tasks

logger = logging.getLogger("wealthy_mcp")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="wealthy-mcp", description="Wealthy MCP server")
    parser.add_argument("-t", "--transport", choices=["stdio", "sse"], default=None,
                        help="Transport type (stdio or sse)")
    parser.add_argument("--addr", default=None, help="The host and port to start the sse server on")
    parser.add_argument("--log-level", default=None, help="Log level (debug, info, warn, error)")
    parser.add_argument("--log-file", default=None, help="Also write logs to this file, rotated daily")
    parser.add_argument("--debug", action="store_true", help="Enable debug mode to save auth token to file")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def apply_args(settings: Settings, args: argparse.Namespace) -> Settings:
    """CLI flags win over environment values."""
    if args.transport:
        settings.MCP_TRANSPORT = args.transport
    if args.addr:
        split_addr(args.addr)
        settings.MCP_ADDR = args.addr
    if args.log_level:
        settings.LOG_LEVEL = args.log_level
    if args.log_file:
        settings.LOG_FILE = args.log_file
    if args.debug:
        settings.DEBUG_MODE = True
    return settings


def _uvicorn_server(app, addr: str, log_level: str) -> uvicorn.Server:
    host, port = split_addr(addr)
    config = uvicorn.Config(
        app,
        host=host,
        port=port,
        log_level=log_level if log_level in ("debug", "info", "warning", "error") else "info",
        log_config=None,
        access_log=False,
    )
    return uvicorn.Server(config)


def _force_login(ctx: AppContext) -> None:
    if not ctx.auth.auth_required():
        return
    try:
        ctx.auth.start_browser_login()
    except AuthError as e:
        logger.warning(f"Browser login could not be started: {e.message}; open {ctx.auth.login_url()} manually")


async def run_stdio(ctx: AppContext) -> None:
    mcp = build_mcp_server(ctx)
    server = _uvicorn_server(create_http_app(ctx), ctx.settings.MCP_ADDR, ctx.settings.LOG_LEVEL)
    http_task = create_supervised_task(server.serve(), name="auth_http_server")

    _force_login(ctx)

    logger.info("Starting Wealthy MCP server using stdio transport")
    try:
        await mcp.run_stdio_async()
    finally:
        server.should_exit = True
        await cancel_and_join(http_task)


async def run_sse(ctx: AppContext) -> None:
    mcp = build_mcp_server(ctx)
    server = _uvicorn_server(create_http_app(ctx, mcp), ctx.settings.MCP_ADDR, ctx.settings.LOG_LEVEL)

    _force_login(ctx)

    logger.info(f"Starting Wealthy MCP server using SSE transport on {ctx.settings.MCP_ADDR}")
    await server.serve()


async def run(settings: Settings) -> None:
    ctx = build_context(settings)
    try:
        if settings.MCP_TRANSPORT == "sse":
            await run_sse(ctx)
        else:
            await run_stdio(ctx)
    finally:
        await ctx.aclose()
        await shutdown_supervised_tasks()


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        settings = apply_args(default_settings, args)
    except ValueError as e:
        parser.error(str(e))
    setup_logging(settings.LOG_LEVEL, settings.LOG_FILE or None)

    try:
        asyncio.run(run(settings))
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down")
    return 0


if __name__ == "__main__":
    sys.exit(main())
