"""
Error Taxonomy Tests
"""

import pytest

from wealthy_mcp.errors import (
    AuthError, ConfigurationError, ConnectError, FeedWriteError, NoConnectionError, PriceNotFoundError, SubscribeError,
    UpstreamError, ValidationError, WealthyMCPError, WriteFailedError, http_status_for,
    create_structured_error_response, sanitize_error_message
)


class TestErrors:

    def test_subscribe_error_variants(self):
        assert issubclass(NoConnectionError, SubscribeError)
        assert issubclass(WriteFailedError, SubscribeError)
        assert NoConnectionError().error_code == "NO_CONNECTION"
        assert WriteFailedError().error_code == "WRITE_FAILED"

    def test_price_not_found_carries_symbol(self):
        error = PriceNotFoundError("nse:TCS-EQ")

        assert error.symbol == "nse:TCS-EQ"
        assert "nse:TCS-EQ" in error.message
        assert error.details == {"symbol": "nse:TCS-EQ"}

    @pytest.mark.parametrize("error,status", [
        (PriceNotFoundError("x"), 404),
        (AuthError(), 401),
        (UpstreamError(), 502),
        (ConnectError(), 503),
        (FeedWriteError(), 503),
        (NoConnectionError(), 503),
        (ValidationError(), 422),
        (WealthyMCPError("plain"), 500),
        (ConfigurationError(), 500),
    ])
    def test_http_status_mapping(self, error, status):
        assert http_status_for(error) == status

    def test_structured_response(self):
        response = create_structured_error_response(UpstreamError("bad gateway", {"status_code": 502}))

        assert response == {
            "error_type": "UPSTREAM_ERROR",
            "message": "bad gateway",
            "details": {"status_code": 502},
        }

    def test_structured_response_for_unknown_error(self):
        response = create_structured_error_response(RuntimeError("boom"))

        assert response["error_type"] == "UNKNOWN_ERROR"

    def test_sanitize(self):
        assert "password" not in sanitize_error_message("bad password supplied")
        assert sanitize_error_message("plain message") == "plain message"

    def test_subclass_inherits_parent_status(self):
        class StaleQuoteError(PriceNotFoundError):
            pass

        assert http_status_for(StaleQuoteError("nse:A-EQ")) == 404
