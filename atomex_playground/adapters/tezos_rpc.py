from __future__ import annotations

import json
import urllib.parse
from collections.abc import Callable
from typing import Any

import aiohttp

_HEAD = "/chains/main/blocks/head"


class TezosRpcAdapter:
    def __init__(
        self,
        rpc_url: str,
        *,
        timeout_seconds: int = 30,
        session_factory: Callable[[], Any] | None = None,
    ) -> None:
        self.rpc_url = rpc_url.rstrip("/")
        self.timeout_seconds = max(1, int(timeout_seconds))
        self._session_factory = session_factory

    async def get_head_hash(self) -> str:
        return str(await self._request("GET", f"{_HEAD}/hash"))

    async def get_counter(self, address: str) -> int:
        path = f"{_HEAD}/context/contracts/{urllib.parse.quote(address)}/counter"
        return int(await self._request("GET", path))

    async def get_manager_key(self, address: str) -> str | None:
        path = f"{_HEAD}/context/contracts/{urllib.parse.quote(address)}/manager_key"
        value = await self._request("GET", path)
        return str(value) if value else None

    async def get_entrypoints(self, contract_address: str) -> dict[str, Any]:
        path = f"{_HEAD}/context/contracts/{urllib.parse.quote(contract_address)}/entrypoints"
        payload = await self._request("GET", path)
        if not isinstance(payload, dict):
            return {}
        entrypoints = payload.get("entrypoints")
        return entrypoints if isinstance(entrypoints, dict) else {}

    async def forge_operations(self, *, branch: str, contents: list[dict[str, Any]]) -> str:
        payload = {"branch": branch, "contents": contents}
        forged = await self._request("POST", f"{_HEAD}/helpers/forge/operations", payload=payload)
        if not isinstance(forged, str) or not forged:
            raise RuntimeError("tezos_rpc_forge_returned_no_bytes")
        return forged

    async def inject_operation(self, signed_operation_hex: str) -> str:
        op_hash = await self._request("POST", "/injection/operation", payload=signed_operation_hex)
        if not isinstance(op_hash, str) or not op_hash:
            raise RuntimeError("tezos_rpc_injection_returned_no_hash")
        return op_hash

    async def _request(self, method: str, path: str, *, payload: Any = None) -> Any:
        url = f"{self.rpc_url}{path}"
        request_kwargs: dict[str, Any] = {"headers": {"Content-Type": "application/json"}}
        if payload is not None:
            request_kwargs["json"] = payload
        if self._session_factory is None:
            session_cm = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout_seconds)
            )
        else:
            session_cm = self._session_factory()
        async with session_cm as session:
            async with session.request(method, url, **request_kwargs) as response:
                status = int(response.status)
                body = await response.text()
        if status >= 400:
            snippet = body.strip()[:500]
            error = f"tezos_rpc_error:{status}"
            if snippet:
                error = f"{error}:{snippet}"
            raise RuntimeError(error)
        if not body.strip():
            return None
        return json.loads(body)
