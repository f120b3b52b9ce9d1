from __future__ import annotations

import json
import logging
import urllib.parse
from collections.abc import Callable
from typing import Any

import aiohttp

from atomex_playground.core.errors import AtomexApiError
from atomex_playground.core.types import AuthenticationRequest, AuthenticationResponse

logger = logging.getLogger(__name__)


def _require_id(value: Any, name: str) -> str:
    clean = str(value or "").strip()
    if not clean:
        raise ValueError(f"{name} is required")
    return urllib.parse.quote(clean, safe="")


class AtomexAdapter:
    """Async REST adapter for the Atomex exchange API."""

    def __init__(
        self,
        base_url: str,
        *,
        timeout_seconds: int = 30,
        session_factory: Callable[[], Any] | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout_seconds = max(1, int(timeout_seconds))
        self._session_factory = session_factory

    async def get_auth_token(self, request: AuthenticationRequest) -> AuthenticationResponse:
        payload = await self._request("POST", "/v1/token", payload=request.to_payload())
        return AuthenticationResponse.from_payload(payload)

    async def get_symbols(self) -> list[dict[str, Any]]:
        payload = await self._request("GET", "/v1/Symbols")
        return _rows(payload)

    async def get_order_book(self, symbol: str) -> dict[str, Any]:
        clean_symbol = str(symbol or "").strip()
        if not clean_symbol:
            raise ValueError("symbol is required")
        payload = await self._request("GET", "/v1/MarketData/book", params={"symbol": clean_symbol})
        if not isinstance(payload, dict):
            raise ValueError("atomex order book response must be a mapping")
        return payload

    async def get_orders(self, *, auth_token: str) -> list[dict[str, Any]]:
        payload = await self._request("GET", "/v1/Orders", auth_token=auth_token)
        return _rows(payload)

    async def get_order(self, order_id: str, *, auth_token: str) -> dict[str, Any]:
        path = f"/v1/Orders/{_require_id(order_id, 'order_id')}"
        payload = await self._request("GET", path, auth_token=auth_token)
        if not isinstance(payload, dict):
            raise ValueError(f"order {order_id} was not found")
        return payload

    async def add_order(self, order: dict[str, Any], *, auth_token: str) -> str:
        payload = await self._request("POST", "/v1/Orders", auth_token=auth_token, payload=order)
        order_id = payload.get("orderId") if isinstance(payload, dict) else None
        if order_id is None:
            raise ValueError("atomex add order response is missing orderId")
        return str(order_id)

    async def cancel_order(self, order_id: str, symbol: str, side: str, *, auth_token: str) -> bool:
        path = f"/v1/Orders/{_require_id(order_id, 'order_id')}"
        payload = await self._request(
            "DELETE",
            path,
            auth_token=auth_token,
            params={"symbol": symbol, "side": side},
        )
        if isinstance(payload, dict):
            return bool(payload.get("result", False))
        return bool(payload)

    async def get_swaps(self, *, auth_token: str) -> list[dict[str, Any]]:
        payload = await self._request("GET", "/v1/Swaps", auth_token=auth_token)
        return _rows(payload)

    async def get_swap(self, swap_id: str, *, auth_token: str) -> dict[str, Any]:
        path = f"/v1/Swaps/{_require_id(swap_id, 'swap_id')}"
        payload = await self._request("GET", path, auth_token=auth_token)
        if not isinstance(payload, dict):
            raise ValueError(f"swap {swap_id} was not found")
        return payload

    async def _request(
        self,
        method: str,
        path: str,
        *,
        auth_token: str | None = None,
        params: dict[str, Any] | None = None,
        payload: Any = None,
    ) -> Any:
        url = f"{self.base_url}{path}"
        headers = {"Accept": "application/json"}
        if auth_token:
            headers["Authorization"] = f"Bearer {auth_token}"
        request_kwargs: dict[str, Any] = {"headers": headers}
        if params:
            request_kwargs["params"] = {k: str(v) for k, v in params.items() if v is not None}
        if payload is not None:
            request_kwargs["json"] = payload

        if self._session_factory is None:
            timeout = aiohttp.ClientTimeout(total=self.timeout_seconds)
            session_cm = aiohttp.ClientSession(timeout=timeout)
        else:
            session_cm = self._session_factory()

        logger.debug("atomex_request method=%s path=%s authenticated=%s", method, path, bool(auth_token))
        async with session_cm as session:
            async with session.request(method, url, **request_kwargs) as response:
                status = int(response.status)
                body = await response.text()

        if status >= 400:
            logger.warning("atomex_request_failed method=%s path=%s status=%s", method, path, status)
            raise AtomexApiError(status, body)
        if not body.strip():
            return None
        try:
            return json.loads(body)
        except json.JSONDecodeError as exc:
            raise ValueError(f"atomex returned invalid JSON for {path}: {body[:200]}") from exc


def _rows(payload: Any) -> list[dict[str, Any]]:
    if isinstance(payload, list):
        return [row for row in payload if isinstance(row, dict)]
    return []
