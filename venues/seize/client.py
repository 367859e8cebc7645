"""
Seize REST API client.
Provides paged NFT listing and collection-level stats for one contract.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import httpx

from venues.errors import MalformedResponse, ProviderUnavailable


@dataclass(frozen=True)
class NftPage:
    """
    One page of raw NFT records.

    has_more is None when the endpoint gave no paging hint; the paginator
    then relies on its own stopping rules.
    """
    page: int
    records: List[Dict[str, Any]]
    has_more: Optional[bool] = None


class SeizeClient:
    """
    Lightweight async wrapper around the Seize API.
    Focused on:
    - Listing the collection's NFTs page by page
    - Fetching collection stats
    """

    venue = "seize"

    def __init__(
        self,
        base_url: str,
        contract_address: str,
        *,
        http: Optional[httpx.AsyncClient] = None,
        timeout: float = 10.0,
    ):
        self.base_url = base_url.rstrip("/")
        self.contract_address = contract_address
        self.http = http or httpx.AsyncClient(timeout=timeout)
        self._owns_http = http is None
        self._headers = {"accept": "application/json"}

    # -------------------------
    # Low-level request helper
    # -------------------------
    async def _get(self, path: str, params: dict | None = None) -> Any:
        url = f"{self.base_url}/{path.lstrip('/')}"
        try:
            resp = await self.http.get(url, headers=self._headers, params=params)
            resp.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise ProviderUnavailable(
                f"Seize API request failed [{exc.response.status_code}] for URL: {url}"
            ) from exc
        except httpx.HTTPError as exc:
            raise ProviderUnavailable(
                f"Seize API transport error for URL: {url}: {type(exc).__name__}: {exc}"
            ) from exc

        try:
            return resp.json()
        except ValueError as exc:
            raise MalformedResponse(f"Seize API returned non-JSON body for URL: {url}") from exc

    # -------------------------
    # NFT listing
    # -------------------------
    async def list_nfts(self, page: int, page_size: int) -> NftPage:
        """
        Fetch one page of NFTs for the configured contract.

        Expected shape: {"count": int, "page": int, "next": str|bool|null, "data": [...]}
        A missing or non-list "data" is treated as an empty page, not an error.
        """
        payload = await self._get(
            "nfts",
            params={
                "contract_address": self.contract_address,
                "page": page,
                "page_size": page_size,
            },
        )
        if not isinstance(payload, dict):
            raise MalformedResponse(f"Seize nfts page={page} returned {type(payload).__name__}")

        data = payload.get("data")
        records = [r for r in data if isinstance(r, dict)] if isinstance(data, list) else []

        has_more = None
        if "next" in payload:
            has_more = bool(payload.get("next"))

        return NftPage(page=page, records=records, has_more=has_more)

    # -------------------------
    # Collection stats
    # -------------------------
    async def collection_stats(self) -> Dict[str, Any]:
        payload = await self._get(
            "collection/stats",
            params={"contract_address": self.contract_address},
        )
        if not isinstance(payload, dict):
            raise MalformedResponse(f"Seize stats returned {type(payload).__name__}")
        return payload

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
