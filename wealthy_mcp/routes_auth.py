"""
Health and browser-login callback routes.
"""

import logging
from fastapi import APIRouter, Query, Request
from fastapi.responses import HTMLResponse, PlainTextResponse

from wealthy_mcp.errors import AuthError

logger = logging.getLogger(__name__)
router = APIRouter()

SUCCESS_PAGE = """<!DOCTYPE html>
<html>
<head><title>Wealthy MCP</title></head>
<body style="font-family: sans-serif; text-align: center; margin-top: 15%;">
<h2>Authentication successful</h2>
<p>You can close this window and return to your assistant.</p>
</body>
</html>
"""

FAILURE_PAGE = """<!DOCTYPE html>
<html>
<head><title>Wealthy MCP</title></head>
<body style="font-family: sans-serif; text-align: center; margin-top: 15%;">
<h2>Authentication failed</h2>
<p>{message}</p>
</body>
</html>
"""


@router.get("/health", response_class=PlainTextResponse)
def health():
    return "OK"


@router.get("/auth/callback/", response_class=HTMLResponse)
async def auth_callback(request: Request, authorization_token: str = Query("")):
    """Complete the browser login by exchanging the authorization token."""
    auth = request.app.state.ctx.auth
    if not authorization_token:
        logger.warning("[auth] Callback without authorization token")
        return HTMLResponse(FAILURE_PAGE.format(message="missing authorization token"), status_code=400)

    try:
        await auth.exchange_code(authorization_token)
    except AuthError as e:
        return HTMLResponse(FAILURE_PAGE.format(message=e.message), status_code=401)

    return HTMLResponse(SUCCESS_PAGE)
