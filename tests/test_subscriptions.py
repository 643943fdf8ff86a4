"""
Subscription Multiplexer Tests
Wire frames, de-duplication, replay after reconnect and connect retry.
"""

import asyncio
import pytest

from wealthy_mcp.errors import NoConnectionError, SubscribeError, ValidationError, WriteFailedError
from wealthy_mcp.observability.metrics import get_registry
from wealthy_mcp.services.subscriptions import normalize_symbol
from wealthy_mcp.util.async_tools import get_supervised_tasks


def _subscribe_frame(*symbols):
    return {"operation": 1, "mode": 1, "symbol": list(symbols)}


class TestNormalizeSymbol:

    @pytest.mark.parametrize("raw,expected", [
        ("nse:RELIANCE-EQ", "nse:RELIANCE-EQ"),
        ("NSE:RELIANCE-EQ", "nse:RELIANCE-EQ"),
        ("  bse:INFY ", "bse:INFY"),
        ("RELIANCE-EQ", "RELIANCE-EQ"),
    ])
    def test_normalize(self, raw, expected):
        assert normalize_symbol(raw) == expected

    @pytest.mark.parametrize("raw", ["", "   ", None])
    def test_empty_symbol_rejected(self, raw):
        with pytest.raises(ValidationError):
            normalize_symbol(raw)


class TestSubscribe:

    async def test_first_subscribe_dials_and_writes_frame(self, make_service, dialer):
        service = make_service()

        await service.subscribe("nse:RELIANCE-EQ")

        assert dialer.calls == 1
        assert dialer.last.sent == [_subscribe_frame("nse:RELIANCE-EQ")]
        assert service.active_symbols() == ["nse:RELIANCE-EQ"]
        assert get_registry().get_counter("ws_subscriptions", {"operation": "subscribe"}) == 1

    async def test_duplicate_subscribe_is_suppressed(self, make_service, dialer):
        service = make_service()

        await service.subscribe("nse:RELIANCE-EQ")
        await service.subscribe("NSE:RELIANCE-EQ")

        assert dialer.last.sent == [_subscribe_frame("nse:RELIANCE-EQ")]

    async def test_duplicate_subscribe_resent_without_dedupe(self, make_service, dialer):
        service = make_service(dedupe=False)

        await service.subscribe("nse:RELIANCE-EQ")
        await service.subscribe("nse:RELIANCE-EQ")

        assert dialer.last.sent == [_subscribe_frame("nse:RELIANCE-EQ")] * 2
        assert dialer.calls == 1

    async def test_active_set_replayed_after_reconnect(self, make_service, dialer):
        service = make_service()
        await service.subscribe("nse:TCS-EQ")
        await service.subscribe("nse:INFY-EQ")
        dialer.last.ping_fails = True

        await service.subscribe("nse:WIPRO-EQ")

        assert dialer.calls == 2
        assert dialer.last.sent == [
            _subscribe_frame("nse:INFY-EQ", "nse:TCS-EQ"),
            _subscribe_frame("nse:WIPRO-EQ"),
        ]
        assert service.active_symbols() == ["nse:INFY-EQ", "nse:TCS-EQ", "nse:WIPRO-EQ"]

    async def test_resubscribe_after_reconnect_not_duplicated(self, make_service, dialer):
        service = make_service()
        await service.subscribe("nse:TCS-EQ")
        dialer.last.ping_fails = True

        await service.subscribe("nse:TCS-EQ")

        assert dialer.last.sent == [_subscribe_frame("nse:TCS-EQ")]

    async def test_connect_retried_once_then_no_connection(self, make_service, dialer):
        service = make_service()
        dialer.failures = 5

        with pytest.raises(NoConnectionError) as exc_info:
            await service.subscribe("nse:RELIANCE-EQ")

        assert isinstance(exc_info.value, SubscribeError)
        assert dialer.calls == 2
        assert service.active_symbols() == []

    async def test_connect_succeeds_on_retry(self, make_service, dialer):
        service = make_service()
        dialer.failures = 1

        await service.subscribe("nse:RELIANCE-EQ")

        assert dialer.calls == 2
        assert dialer.last.sent == [_subscribe_frame("nse:RELIANCE-EQ")]

    async def test_write_failure(self, make_service, dialer):
        service = make_service()
        await service.subscribe("nse:TCS-EQ")
        dialer.last.fail_send = True

        with pytest.raises(WriteFailedError):
            await service.subscribe("nse:INFY-EQ")

        assert service.active_symbols() == ["nse:TCS-EQ"]

    async def test_concurrent_subscribes_share_one_connection(self, make_service, dialer):
        service = make_service()
        symbols = [f"nse:S{i}-EQ" for i in range(10)]

        await asyncio.gather(*(service.subscribe(s) for s in symbols))

        readers = [n for n, t in get_supervised_tasks().items() if n.startswith("feed_reader:") and not t.done()]
        assert dialer.calls == 1
        assert len(readers) == 1
        assert sorted(f["symbol"][0] for f in dialer.last.sent) == sorted(symbols)

    async def test_concurrent_duplicate_subscribes_write_once(self, make_service, dialer):
        service = make_service()

        await asyncio.gather(*(service.subscribe("nse:TCS-EQ") for _ in range(5)))

        assert dialer.last.sent == [_subscribe_frame("nse:TCS-EQ")]


class TestUnsubscribe:

    async def test_unsubscribe_writes_frame(self, make_service, dialer):
        service = make_service()
        await service.subscribe("nse:TCS-EQ")

        await service.unsubscribe("nse:TCS-EQ")

        assert dialer.last.sent[-1] == {"operation": 2, "mode": 1, "symbol": ["nse:TCS-EQ"]}
        assert service.active_symbols() == []

    async def test_unknown_symbol_is_noop(self, make_service, dialer):
        service = make_service()
        await service.subscribe("nse:TCS-EQ")

        await service.unsubscribe("nse:INFY-EQ")

        assert dialer.last.sent == [_subscribe_frame("nse:TCS-EQ")]

    async def test_unsubscribed_symbol_not_replayed(self, make_service, dialer):
        service = make_service()
        await service.subscribe("nse:TCS-EQ")
        await service.subscribe("nse:INFY-EQ")
        await service.unsubscribe("nse:TCS-EQ")
        dialer.last.ping_fails = True

        await service.subscribe("nse:WIPRO-EQ")

        assert dialer.last.sent[0] == _subscribe_frame("nse:INFY-EQ")
