"""
Minimal async JSON-RPC client for read-only eth_call.

Only what the holdings engine needs: no signing, no subscriptions, no
batching at the JSON-RPC level (batching happens inside the call data).
"""

from __future__ import annotations

import itertools
from typing import Any, Optional

import httpx

from venues.errors import MalformedResponse, ProviderUnavailable


class JsonRpcClient:
    """
    Thin wrapper around one HTTP JSON-RPC endpoint.

    Accepts an injected httpx.AsyncClient so tests can mount a MockTransport
    and the service can share one connection pool across clients.
    """

    def __init__(self, url: str, *, http: Optional[httpx.AsyncClient] = None, timeout: float = 10.0):
        self.url = url
        self.http = http or httpx.AsyncClient(timeout=timeout)
        self._owns_http = http is None
        self._ids = itertools.count(1)

    # -------------------------
    # Low-level request helper
    # -------------------------
    async def _request(self, method: str, params: list) -> Any:
        body = {"jsonrpc": "2.0", "id": next(self._ids), "method": method, "params": params}
        try:
            resp = await self.http.post(self.url, json=body, headers={"Content-Type": "application/json"})
            resp.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise ProviderUnavailable(
                f"RPC request failed [{exc.response.status_code}] for URL: {self.url}"
            ) from exc
        except httpx.HTTPError as exc:
            raise ProviderUnavailable(
                f"RPC transport error for URL: {self.url}: {type(exc).__name__}: {exc}"
            ) from exc

        try:
            payload = resp.json()
        except ValueError as exc:
            raise MalformedResponse(f"RPC returned non-JSON body for URL: {self.url}") from exc

        if not isinstance(payload, dict):
            raise MalformedResponse(f"RPC returned {type(payload).__name__}, expected object")
        if payload.get("error"):
            err = payload["error"]
            msg = err.get("message") if isinstance(err, dict) else err
            raise ProviderUnavailable(f"RPC error for {method}: {msg}")
        if "result" not in payload:
            raise MalformedResponse(f"RPC response for {method} has no result")
        return payload["result"]

    # -------------------------
    # eth_call
    # -------------------------
    async def eth_call(self, to: str, data: str, block: str = "latest") -> str:
        """Execute a read-only call and return the raw 0x-hex output."""
        result = await self._request("eth_call", [{"to": to, "data": data}, block])
        if not isinstance(result, str):
            raise MalformedResponse(f"eth_call result is {type(result).__name__}, expected hex string")
        return result

    # -------------------------
    # Cleanup
    # -------------------------
    async def aclose(self) -> None:
        if self._owns_http:
            await self.http.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.aclose()
