"""
Centralized Exceptions
Error taxonomy for the price feed, the broker REST client and the tool surface.
"""

from typing import Dict, Any, Optional
from fastapi import status


class WealthyMCPError(Exception):
    """Base exception for the wealthy-mcp server."""

    def __init__(self, message: str, error_code: str = "UNKNOWN", details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)


class ConnectError(WealthyMCPError):
    """Dial to the streaming endpoint failed."""

    def __init__(self, message: str = "Failed to connect to price feed", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, "CONNECT_ERROR", details)


class FeedWriteError(WealthyMCPError):
    """Writing a frame to the streaming connection failed."""

    def __init__(self, message: str = "Failed to write to price feed", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, "FEED_WRITE_ERROR", details)


class SubscribeError(WealthyMCPError):
    """Subscribe-time failure."""

    def __init__(self, message: str = "Subscription failed", error_code: str = "SUBSCRIBE_ERROR",
                 details: Optional[Dict[str, Any]] = None):
        super().__init__(message, error_code, details)


class NoConnectionError(SubscribeError):
    """No live streaming connection could be obtained for a subscribe."""

    def __init__(self, message: str = "Price feed connection not established", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, "NO_CONNECTION", details)


class WriteFailedError(SubscribeError):
    """Subscribe frame could not be written."""

    def __init__(self, message: str = "Failed to write subscription", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, "WRITE_FAILED", details)


class FrameDecodeError(WealthyMCPError):
    """Inbound frame could not be decoded."""

    def __init__(self, message: str = "Malformed frame", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, "DECODE_ERROR", details)


class PriceNotFoundError(WealthyMCPError):
    """No tick has been received for the symbol yet."""

    def __init__(self, symbol: str):
        super().__init__(f"Price not found for {symbol}", "PRICE_NOT_FOUND", {"symbol": symbol})
        self.symbol = symbol


class AuthError(WealthyMCPError):
    """Authentication or authorization error."""

    def __init__(self, message: str = "Authentication failed", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, "AUTH_ERROR", details)


class UpstreamError(WealthyMCPError):
    """Broker API answered with a non-success status."""

    def __init__(self, message: str = "Upstream request failed", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, "UPSTREAM_ERROR", details)


class NetworkError(WealthyMCPError):
    """Network connectivity error."""

    def __init__(self, message: str = "Network error", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, "NETWORK_ERROR", details)


class ValidationError(WealthyMCPError):
    """Tool input validation error."""

    def __init__(self, message: str = "Validation failed", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, "VALIDATION_ERROR", details)


class ConfigurationError(WealthyMCPError):
    """Configuration error."""

    def __init__(self, message: str = "Configuration error", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, "CONFIG_ERROR", details)


# Error mapping to HTTP responses
ERROR_TO_HTTP_STATUS = {
    ConnectError: status.HTTP_503_SERVICE_UNAVAILABLE,
    FeedWriteError: status.HTTP_503_SERVICE_UNAVAILABLE,
    NoConnectionError: status.HTTP_503_SERVICE_UNAVAILABLE,
    WriteFailedError: status.HTTP_503_SERVICE_UNAVAILABLE,
    PriceNotFoundError: status.HTTP_404_NOT_FOUND,
    AuthError: status.HTTP_401_UNAUTHORIZED,
    UpstreamError: status.HTTP_502_BAD_GATEWAY,
    NetworkError: status.HTTP_503_SERVICE_UNAVAILABLE,
    ValidationError: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ConfigurationError: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def http_status_for(error: WealthyMCPError) -> int:
    """HTTP status for an error, resolved through its class hierarchy."""
    for cls in type(error).__mro__:
        if cls in ERROR_TO_HTTP_STATUS:
            return ERROR_TO_HTTP_STATUS[cls]
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def sanitize_error_message(message: str) -> str:
    """Sanitize error messages to prevent information leakage."""
    sensitive_patterns = [
        "password", "secret", "api_key", "access_token", "refresh_token",
        "authorization", "bearer"
    ]

    sanitized = message
    for pattern in sensitive_patterns:
        if pattern.lower() in sanitized.lower():
            sanitized = sanitized.replace(pattern, "***")

    return sanitized


def create_structured_error_response(error: Exception) -> Dict[str, Any]:
    """Create structured error response for logging and tool results."""
    if isinstance(error, WealthyMCPError):
        return {
            "error_type": error.error_code,
            "message": sanitize_error_message(error.message),
            "details": error.details,
        }
    else:
        return {
            "error_type": "UNKNOWN_ERROR",
            "message": sanitize_error_message(str(error)),
            "details": {},
        }
