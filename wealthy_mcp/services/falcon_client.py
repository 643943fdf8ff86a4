"""
Falcon REST client - pass-through calls to the broker API.
Orders, reports, quotes, research, search, watchlists and the streaming URL.
"""

import asyncio
import logging
import time
import httpx
from typing import Any, Callable, Dict, List, Optional

from wealthy_mcp.config import Settings
from wealthy_mcp.errors import AuthError, NetworkError, UpstreamError
from wealthy_mcp.observability.metrics import record_api_request
from wealthy_mcp.schemas.orders import (
    CancelOrderRequest, ModifyOrderRequest, OrderRequest, PriceRequest, WatchlistRequest
)

logger = logging.getLogger("falcon_client")

ORDER_SOURCE = 5
ADD_TO_WATCHLIST_SUCCESS = "Successfully updated to watchlist"


class FalconClient:
    """Async client for the Falcon (broking), Midas (research) and search APIs."""

    def __init__(
        self,
        settings: Settings,
        token_provider: Callable[[], str],
        on_unauthorized: Optional[Callable[[], Any]] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.base_url = settings.FALCON_BASE_URL
        self.midas_base_url = settings.MIDAS_BASE_URL
        self.search_url = settings.SEARCH_URL
        self.ws_token_url = settings.WS_TOKEN_URL
        self.token_provider = token_provider
        self.on_unauthorized = on_unauthorized
        self.client = client or httpx.AsyncClient(timeout=settings.HTTP_TIMEOUT_S)

    async def aclose(self) -> None:
        await self.client.aclose()

    # orders

    async def place_order(self, orders: List[OrderRequest]) -> Any:
        payload = []
        for order in orders:
            body = order.model_dump(exclude_none=True)
            body["order_source"] = ORDER_SOURCE
            payload.append(body)
        return await self._request("POST", f"{self.base_url}/v0/order/basket/", json=payload, endpoint="place_order")

    async def modify_order(self, req: ModifyOrderRequest) -> Any:
        body = req.model_dump(exclude_none=True)
        body["order_source"] = ORDER_SOURCE
        return await self._request("PUT", f"{self.base_url}/v0/order/", json=body, endpoint="modify_order")

    async def cancel_order(self, req: CancelOrderRequest) -> Any:
        return await self._request("DELETE", f"{self.base_url}/v0/order/", json=req.model_dump(), endpoint="cancel_order")

    # reports

    async def get_holdings(self) -> Any:
        return await self._request("GET", f"{self.base_url}/v1/report/holdings/", endpoint="holdings")

    async def get_positions(self) -> Any:
        return await self._request("GET", f"{self.base_url}/v0/report/positions/", endpoint="positions")

    async def get_order_book(self) -> Any:
        return await self._request("GET", f"{self.base_url}/v0/report/orders/", endpoint="order_book")

    async def get_price(self, symbols: List[str]) -> Any:
        req = PriceRequest(symbols=symbols)
        return await self._request("POST", f"{self.base_url}/v1/stock/quotes/", json=req.model_dump(), endpoint="quotes")

    async def get_user_margin(self) -> Any:
        return await self._request("GET", f"{self.base_url}/v0/user/margin/", endpoint="margin")

    # research and search (public)

    async def get_trade_ideas(self) -> Any:
        return await self._request(
            "GET", f"{self.midas_base_url}/v0/idea/", params={"status": 2}, auth=False, endpoint="trade_ideas"
        )

    async def search_security(self, query: str) -> Any:
        return await self._request(
            "GET", self.search_url, params={"q": query, "pt": "stocks"}, auth=False, endpoint="search"
        )

    # streaming

    async def get_websocket_url(self) -> str:
        resp = await self._request("GET", self.ws_token_url, endpoint="ws_token")
        url = (resp or {}).get("base_url") if isinstance(resp, dict) else None
        if not url:
            raise UpstreamError("websocket URL missing from response", {"endpoint": "ws_token"})
        return url

    # watchlists

    async def add_to_watchlist(self, req: WatchlistRequest) -> str:
        await self._request(
            "PUT", f"{self.base_url}/v0/watchlist/script/", json=req.model_dump(exclude_none=True),
            endpoint="watchlist_add",
        )
        return ADD_TO_WATCHLIST_SUCCESS

    async def create_watchlist(self, name: str) -> Any:
        return await self._request(
            "PUT", f"{self.base_url}/v0/watchlist/", json={"name": name}, endpoint="watchlist_create"
        )

    async def get_watchlists(self, name: Optional[str] = None) -> List[Dict[str, Any]]:
        """Fetch every watchlist (or just ``name``) concurrently.

        A watchlist whose fetch fails is reported as ``{name: None}``.
        """
        names = await self._request("GET", f"{self.base_url}/v0/watchlist/", endpoint="watchlist_names") or []
        if name:
            names = [n for n in names if n == name]

        async def fetch(n: str) -> Dict[str, Any]:
            try:
                resp = await self._request(
                    "POST", f"{self.base_url}/v0/watchlist/", json={"name": n}, endpoint="watchlist_get"
                )
            except (UpstreamError, NetworkError) as e:
                logger.warning(f"[falcon_client] Failed to fetch watchlist {n}: {e.message}")
                return {n: None}
            return {n: resp}

        return list(await asyncio.gather(*(fetch(n) for n in names)))

    async def _request(
        self,
        method: str,
        url: str,
        *,
        json: Any = None,
        params: Optional[Dict[str, Any]] = None,
        auth: bool = True,
        endpoint: str,
    ) -> Any:
        headers = {}
        if auth:
            headers["Authorization"] = self.token_provider()

        start = time.time()
        try:
            response = await self.client.request(method, url, json=json, params=params, headers=headers)
        except httpx.HTTPError as e:
            logger.error(f"[falcon_client] failed to call wealthy api {endpoint}: {e}")
            raise NetworkError(f"network error: {e}", {"endpoint": endpoint}) from e
        finally:
            duration_ms = (time.time() - start) * 1000

        record_api_request(endpoint, response.status_code, duration_ms)

        if response.status_code == 401:
            logger.warning(f"[falcon_client] {endpoint} unauthorized, starting re-authentication")
            await self._reauthenticate()
            raise AuthError("unauthorized, login again in the browser", {"endpoint": endpoint})
        if response.status_code < 200 or response.status_code >= 300:
            raise UpstreamError(
                f"response status code: {response.status_code}",
                {"endpoint": endpoint, "status_code": response.status_code},
            )
        if response.status_code in (201, 204):
            return None

        try:
            return response.json()
        except ValueError as e:
            raise UpstreamError(
                f"failed to decode response: {e}",
                {"endpoint": endpoint, "status_code": response.status_code},
            ) from e

    async def _reauthenticate(self) -> None:
        if self.on_unauthorized is None:
            return
        if asyncio.iscoroutinefunction(self.on_unauthorized):
            await self.on_unauthorized()
        else:
            self.on_unauthorized()
