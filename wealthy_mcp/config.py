# wealthy_mcp/config.py
from dotenv import load_dotenv, find_dotenv
import os
import logging

# Load nearest .env from project tree, don't override existing process env
load_dotenv(find_dotenv(usecwd=True), override=False)

logger = logging.getLogger(__name__)


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


class Settings:
    """Unified configuration for the MCP server, the REST backend and the price feed."""

    # Broker REST endpoints
    FALCON_BASE_URL = (os.getenv("FALCON_BASE_URL") or "https://api.wealthy.in/broking/api").strip().rstrip("/")
    MIDAS_BASE_URL = (os.getenv("MIDAS_BASE_URL") or "https://api.wealthy.in/midas/api").strip().rstrip("/")
    SEARCH_URL = (os.getenv("SEARCH_URL") or "http://scout.wealthy.in/api/v0/search/").strip()
    WS_TOKEN_URL = (os.getenv("WS_TOKEN_URL") or "https://api.wealthy.in/broking/api/v0/auth/oms/token/").strip()
    HTTP_TIMEOUT_S = float(os.getenv("HTTP_TIMEOUT_S", "60"))

    # Auth
    LOGIN_URL = (os.getenv("LOGIN_URL") or "https://api.wealthy.in/wealthyauth/dashboard/login/").strip()
    TOKEN_EXCHANGE_URL = (
        os.getenv("TOKEN_EXCHANGE_URL")
        or "https://api.wealthy.in/wealthyauth/dashboard/fetch-internal-token-details/"
    ).strip()
    WEALTHY_AUTH_TOKEN = (os.getenv("WEALTHY_AUTH_TOKEN") or "").strip()
    AUTH_TOKEN_FILE = (os.getenv("AUTH_TOKEN_FILE") or "auth_token.txt").strip()
    DEBUG_MODE = _env_bool("DEBUG_MODE", "false")

    # Price feed
    WEALTHY_WS_URL = (os.getenv("WEALTHY_WS_URL") or "").strip()
    FEED_CONNECT_TIMEOUT_S = float(os.getenv("FEED_CONNECT_TIMEOUT_S", "10"))
    FEED_PROBE_TIMEOUT_S = float(os.getenv("FEED_PROBE_TIMEOUT_S", "5"))
    FEED_WRITE_TIMEOUT_S = float(os.getenv("FEED_WRITE_TIMEOUT_S", "5"))
    FEED_DEDUPE_SUBSCRIPTIONS = _env_bool("FEED_DEDUPE_SUBSCRIPTIONS", "true")
    FEED_MAX_CONSECUTIVE_ERRORS = int(os.getenv("FEED_MAX_CONSECUTIVE_ERRORS", "50"))

    # Server
    MCP_TRANSPORT = (os.getenv("MCP_TRANSPORT") or "stdio").strip().lower()
    MCP_ADDR = (os.getenv("MCP_ADDR") or "localhost:8004").strip()
    LOG_LEVEL = (os.getenv("LOG_LEVEL") or "info").strip().lower()
    LOG_FILE = (os.getenv("LOG_FILE") or "").strip()

    def __init__(self):
        if self.MCP_TRANSPORT not in ("stdio", "sse"):
            logger.warning(f"Unknown MCP_TRANSPORT {self.MCP_TRANSPORT}, defaulting to stdio")
            self.MCP_TRANSPORT = "stdio"

    @property
    def callback_url(self) -> str:
        """Browser login redirect target served by the side HTTP app."""
        return f"http://{self.MCP_ADDR}/auth/callback"


settings = Settings()


def split_addr(addr: str):
    """Split ``host:port`` into a (host, port) tuple."""
    host, _, port = addr.rpartition(":")
    if not host or not port.isdigit():
        raise ValueError(f"Invalid address {addr!r}, expected host:port")
    return host, int(port)
