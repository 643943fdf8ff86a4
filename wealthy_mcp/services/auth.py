"""
Browser login session for the broker API.
Holds the bearer token, drives the login redirect and exchanges the callback code.
"""

import logging
import os
import webbrowser
from enum import Enum
from typing import Optional
from urllib.parse import quote

import httpx

from wealthy_mcp.config import Settings
from wealthy_mcp.errors import AuthError

logger = logging.getLogger("auth")


class AuthStage(Enum):
    NOT_STARTED = 0
    STARTED = 1
    SUCCESS = 2
    FAILED = 3


class AuthSession:
    """Bearer credential plus the browser login flow that refreshes it."""

    def __init__(self, settings: Settings, client: Optional[httpx.AsyncClient] = None, open_browser=webbrowser.open):
        self.login_base_url = settings.LOGIN_URL
        self.token_exchange_url = settings.TOKEN_EXCHANGE_URL
        self.callback_url = settings.callback_url
        self.debug_mode = settings.DEBUG_MODE
        self.token_file = settings.AUTH_TOKEN_FILE
        self.client = client or httpx.AsyncClient(timeout=30.0)
        self._open_browser = open_browser

        self.token = ""
        self.stage = AuthStage.NOT_STARTED
        if settings.WEALTHY_AUTH_TOKEN:
            self._set_token(settings.WEALTHY_AUTH_TOKEN)
        elif self.debug_mode:
            self._load_token_file()

    def auth_required(self) -> bool:
        return self.stage in (AuthStage.NOT_STARTED, AuthStage.FAILED)

    def get_token(self) -> str:
        """Token provider for the REST client."""
        if not self.token:
            raise AuthError("not logged in, complete the browser login first")
        return self.token

    def login_url(self, callback_url: Optional[str] = None) -> str:
        return f"{self.login_base_url}?redirect_url={quote(callback_url or self.callback_url, safe='')}"

    def start_browser_login(self, callback_url: Optional[str] = None) -> str:
        """Open the login page; the callback route completes the flow."""
        url = self.login_url(callback_url)
        logger.info(f"[auth] Opening browser for login: {url}")
        self.stage = AuthStage.STARTED
        if not self._open_browser(url):
            self.stage = AuthStage.FAILED
            raise AuthError("could not open a browser for login", {"login_url": url})
        return url

    async def exchange_code(self, authorization_token: str) -> str:
        """Trade the callback authorization token for an access token."""
        try:
            response = await self.client.post(
                self.token_exchange_url, json={"authorization_token": authorization_token}
            )
            response.raise_for_status()
            token = response.json()["access_token"]
        except (httpx.HTTPError, ValueError, KeyError, TypeError) as e:
            self.stage = AuthStage.FAILED
            logger.error(f"[auth] Token exchange failed: {e}")
            raise AuthError(f"authentication failed: {e}") from e

        self._set_token(token)
        if self.debug_mode:
            self._save_token_file()
        logger.info("[auth] Authentication successful")
        return token

    async def aclose(self) -> None:
        await self.client.aclose()

    def _set_token(self, token: str) -> None:
        self.token = token.strip()
        self.stage = AuthStage.SUCCESS

    def _load_token_file(self) -> None:
        if not os.path.exists(self.token_file):
            return
        with open(self.token_file, "r") as f:
            token = f.read().strip()
        if token:
            self._set_token(token)
            logger.info("[auth] Loaded auth token from file in debug mode, skipping browser login")

    def _save_token_file(self) -> None:
        try:
            with open(self.token_file, "w") as f:
                f.write(self.token)
        except OSError as e:
            logger.warning(f"[auth] Failed to write auth token to file: {e}")
