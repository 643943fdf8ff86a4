"""
Price Feed Service Tests
Subscribe, stream and read back the last traded price end to end.
"""

import pytest
from unittest.mock import AsyncMock

from wealthy_mcp.errors import ConfigurationError, NoConnectionError, PriceNotFoundError, UpstreamError
from wealthy_mcp.services.price_feed import PriceFeedService


class TestPriceFeedService:

    async def test_subscribe_then_read_last_price(self, make_service, dialer, eventually):
        service = make_service()
        await service.subscribe("nse:RELIANCE-EQ")

        dialer.last.push_tick("nse:RELIANCE-EQ", 1234.5)
        await eventually(lambda: "nse:RELIANCE-EQ" in service.cache)

        assert service.get_last_price("nse:RELIANCE-EQ").value == 1234.5
        with pytest.raises(PriceNotFoundError):
            service.get_last_price("nse:TCS-EQ")

    async def test_zero_price_is_found(self, make_service, dialer, eventually):
        service = make_service()
        await service.subscribe("nse:PENNY-EQ")

        dialer.last.push_tick("nse:PENNY-EQ", 0)
        await eventually(lambda: "nse:PENNY-EQ" in service.cache)

        assert service.get_last_price("nse:PENNY-EQ").value == 0.0

    async def test_interleaved_ticks_keep_latest_per_symbol(self, make_service, dialer, eventually):
        service = make_service()
        await service.subscribe("nse:A-EQ")
        await service.subscribe("nse:B-EQ")

        transport = dialer.last
        transport.push_tick("nse:A-EQ", 1.0)
        transport.push_tick("nse:B-EQ", 5.0)
        transport.push_tick("nse:A-EQ", 2.0)
        await eventually(lambda: service.handler.ticks_applied == 3)

        assert service.get_last_price("nse:A-EQ").value == 2.0
        assert service.get_last_price("nse:B-EQ").value == 5.0

    async def test_read_normalizes_symbol(self, make_service, dialer, eventually):
        service = make_service()
        await service.subscribe("NSE:INFY-EQ")

        dialer.last.push_tick("nse:INFY-EQ", 1500.0)
        await eventually(lambda: "nse:INFY-EQ" in service.cache)

        assert service.get_last_price("NSE:INFY-EQ").value == 1500.0

    async def test_upper_case_exchange_tick_reaches_readers(self, make_service, dialer, eventually):
        service = make_service()
        await service.subscribe("nse:RELIANCE-EQ")

        dialer.last.push_tick("NSE:RELIANCE-EQ", 1234.5)
        await eventually(lambda: service.handler.ticks_applied == 1)

        assert service.get_last_price("NSE:RELIANCE-EQ").value == 1234.5
        assert service.get_last_price("nse:RELIANCE-EQ").value == 1234.5

    async def test_padded_tick_symbol_overwrites_canonical_entry(self, make_service, dialer, eventually):
        service = make_service()
        await service.subscribe("nse:TCS-EQ")

        dialer.last.push_tick("nse:TCS-EQ", 3500.0)
        dialer.last.push_tick(" NSE:TCS-EQ ", 3510.0)
        await eventually(lambda: service.handler.ticks_applied == 2)

        assert service.get_last_price("nse:TCS-EQ").value == 3510.0
        assert len(service.cache) == 1

    async def test_ticks_for_unsubscribed_symbols_still_cached(self, make_service, dialer, eventually):
        service = make_service()
        await service.subscribe("nse:A-EQ")

        dialer.last.push_tick("nse:OTHER-EQ", 9.0)
        await eventually(lambda: "nse:OTHER-EQ" in service.cache)

        assert service.get_last_price("nse:OTHER-EQ").value == 9.0

    async def test_url_resolver_called_once(self, make_service, dialer):
        resolver = AsyncMock(return_value="wss://resolved.test/ws")
        service = make_service(ws_url=None, url_resolver=resolver)

        await service.subscribe("nse:A-EQ")
        await service.subscribe("nse:B-EQ")

        resolver.assert_awaited_once()
        assert dialer.urls == ["wss://resolved.test/ws"]

    async def test_url_resolver_failure_is_no_connection(self, make_service, dialer):
        resolver = AsyncMock(side_effect=UpstreamError("boom"))
        service = make_service(ws_url=None, url_resolver=resolver)

        with pytest.raises(NoConnectionError):
            await service.subscribe("nse:A-EQ")

        assert dialer.calls == 0

    async def test_resolved_url_dropped_after_connect_failure(self, make_service, dialer):
        resolver = AsyncMock(side_effect=["wss://stale.test/ws", "wss://fresh.test/ws"])
        service = make_service(ws_url=None, url_resolver=resolver)
        dialer.failures = 2

        with pytest.raises(NoConnectionError):
            await service.subscribe("nse:A-EQ")
        await service.subscribe("nse:A-EQ")

        assert dialer.urls == ["wss://stale.test/ws", "wss://stale.test/ws", "wss://fresh.test/ws"]

    async def test_health(self, make_service, dialer, eventually):
        service = make_service()
        await service.subscribe("nse:A-EQ")
        dialer.last.push_tick("nse:A-EQ", 1.0)
        await eventually(lambda: service.handler.ticks_applied == 1)

        health = service.health()

        assert health["connected"] is True
        assert health["active_symbols"] == ["nse:A-EQ"]
        assert health["cached_symbols"] == 1
        assert health["ticks_applied"] == 1
        assert health["dial_count"] == 1

    async def test_close(self, make_service, dialer):
        service = make_service()
        await service.subscribe("nse:A-EQ")

        await service.close()

        assert service.health()["connected"] is False
        assert dialer.last.closed

    def test_requires_url_or_resolver(self):
        with pytest.raises(ConfigurationError) as exc_info:
            PriceFeedService()

        assert exc_info.value.error_code == "CONFIG_ERROR"

    def test_from_settings(self, settings, dialer):
        settings.FEED_DEDUPE_SUBSCRIPTIONS = False
        service = PriceFeedService.from_settings(settings, dialer=dialer)

        assert service.multiplexer.dedupe is False
        assert service.manager.connect_timeout == settings.FEED_CONNECT_TIMEOUT_S
