"""
Exception handlers for the side server's JSON routes.
Feed and lookup errors raised by /ops handlers become a status code plus an error body.
"""

import logging
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from wealthy_mcp.errors import WealthyMCPError, create_structured_error_response, http_status_for

logger = logging.getLogger(__name__)


def _error_body(request: Request, error: Exception) -> dict:
    body = create_structured_error_response(error)
    body["path"] = request.url.path
    return body


async def wealthy_mcp_exception_handler(request: Request, exc: WealthyMCPError) -> JSONResponse:
    status_code = http_status_for(exc)
    if status_code >= 500:
        logger.error(f"[http] {request.method} {request.url.path} failed: {exc.error_code} {exc.message}")
    else:
        logger.info(f"[http] {request.method} {request.url.path} -> {status_code} {exc.error_code}")
    return JSONResponse(status_code=status_code, content=_error_body(request, exc))


async def unexpected_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"[http] {request.method} {request.url.path} crashed: {exc}")
    body = _error_body(request, exc)
    # Never echo internals of an unknown failure
    body["message"] = "An unexpected error occurred"
    return JSONResponse(status_code=500, content=body)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(WealthyMCPError, wealthy_mcp_exception_handler)
    app.add_exception_handler(Exception, unexpected_exception_handler)
