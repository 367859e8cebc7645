"""
Indexer-style wallet holdings providers and the ensideas name lookup.

Each holdings client answers one question: which token ids of one contract
does one wallet hold. They are keyed, rate-limited, and used only as
fallbacks behind the on-chain scan.

All clients raise ProviderUnavailable / MalformedResponse on failure and
never return partial garbage: ids that do not parse or fall outside 1..N
are dropped.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional

import httpx

from readers.collection.utils import parse_token_id, to_int
from venues.errors import MalformedResponse, ProviderUnavailable

MAX_CURSOR_PAGES = 10


class _HttpProvider:
    venue = "http"

    def __init__(self, base_url: str, *, http: Optional[httpx.AsyncClient] = None, timeout: float = 10.0):
        self.base_url = base_url.rstrip("/")
        self.http = http or httpx.AsyncClient(timeout=timeout)
        self._owns_http = http is None
        self._headers: Dict[str, str] = {"accept": "application/json"}

    async def _get(self, path: str, params: Any = None) -> Any:
        url = f"{self.base_url}/{path.lstrip('/')}"
        try:
            resp = await self.http.get(url, headers=self._headers, params=params)
            resp.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise ProviderUnavailable(
                f"{self.venue} request failed [{exc.response.status_code}] for URL: {url}"
            ) from exc
        except httpx.HTTPError as exc:
            raise ProviderUnavailable(
                f"{self.venue} transport error for URL: {url}: {type(exc).__name__}: {exc}"
            ) from exc
        try:
            payload = resp.json()
        except ValueError as exc:
            raise MalformedResponse(f"{self.venue} returned non-JSON body for URL: {url}") from exc
        if not isinstance(payload, dict):
            raise MalformedResponse(f"{self.venue} returned {type(payload).__name__}, expected object")
        return payload

    async def aclose(self) -> None:
        if self._owns_http:
            await self.http.aclose()


def _clean_ids(raw_ids: Iterable[Any], collection_size: int) -> List[int]:
    out = set()
    for v in raw_ids:
        tid = parse_token_id(v)
        if tid is not None and 1 <= tid <= collection_size:
            out.add(tid)
    return sorted(out)


class SimpleHashClient(_HttpProvider):
    venue = "simplehash"

    def __init__(self, base_url: str, api_key: str = "", **kwargs):
        super().__init__(base_url, **kwargs)
        if api_key:
            self._headers["X-API-KEY"] = api_key

    async def owned_token_ids(self, address: str, contract_address: str, collection_size: int) -> List[int]:
        raw_ids: List[Any] = []
        cursor = None
        for _ in range(MAX_CURSOR_PAGES):
            params = {
                "chains": "ethereum",
                "wallet_addresses": address,
                "contract_addresses": contract_address,
                "limit": 50,
            }
            if cursor:
                params["cursor"] = cursor
            payload = await self._get("nfts/owners", params=params)
            nfts = payload.get("nfts")
            if not isinstance(nfts, list):
                raise MalformedResponse("simplehash response has no nfts list")
            raw_ids.extend(n.get("token_id") or n.get("nft_id") for n in nfts if isinstance(n, dict))
            cursor = payload.get("next_cursor")
            if not cursor:
                break
        return _clean_ids(raw_ids, collection_size)


class AlchemyClient(_HttpProvider):
    """
    Alchemy NFT API v3. The API key is part of the URL path, so the client is
    only constructed when a key is configured.
    """

    venue = "alchemy"

    def __init__(self, base_url: str, api_key: str, **kwargs):
        if not api_key:
            raise ValueError("AlchemyClient requires an API key")
        super().__init__(f"{base_url.rstrip('/')}/{api_key}", **kwargs)

    async def owned_token_ids(self, address: str, contract_address: str, collection_size: int) -> List[int]:
        raw_ids: List[Any] = []
        page_key = None
        for _ in range(MAX_CURSOR_PAGES):
            params = [
                ("owner", address),
                ("contractAddresses[]", contract_address),
                ("withMetadata", "false"),
            ]
            if page_key:
                params.append(("pageKey", page_key))
            payload = await self._get("getNFTsForOwner", params=params)
            owned = payload.get("ownedNfts")
            if not isinstance(owned, list):
                raise MalformedResponse("alchemy response has no ownedNfts list")
            for n in owned:
                if not isinstance(n, dict):
                    continue
                # balance is omitted by some API versions; absence means held
                if "balance" in n and to_int(n.get("balance")) <= 0:
                    continue
                raw_ids.append(n.get("tokenId"))
            page_key = payload.get("pageKey")
            if not page_key:
                break
        return _clean_ids(raw_ids, collection_size)


class OpenSeaClient(_HttpProvider):
    venue = "opensea"

    def __init__(self, base_url: str, api_key: str, collection_slug: str, **kwargs):
        if not api_key:
            raise ValueError("OpenSeaClient requires an API key")
        super().__init__(base_url, **kwargs)
        self.collection_slug = collection_slug
        self._headers["X-API-KEY"] = api_key

    async def owned_token_ids(self, address: str, contract_address: str, collection_size: int) -> List[int]:
        raw_ids: List[Any] = []
        cursor = None
        for _ in range(MAX_CURSOR_PAGES):
            params = {"collection": self.collection_slug, "limit": 200}
            if cursor:
                params["next"] = cursor
            payload = await self._get(f"chain/ethereum/account/{address}/nfts", params=params)
            nfts = payload.get("nfts")
            if not isinstance(nfts, list):
                raise MalformedResponse("opensea response has no nfts list")
            for n in nfts:
                if not isinstance(n, dict):
                    continue
                contract = (n.get("contract") or "").lower()
                if contract and contract != contract_address.lower():
                    continue
                raw_ids.append(n.get("identifier"))
            cursor = payload.get("next")
            if not cursor:
                break
        return _clean_ids(raw_ids, collection_size)


class EnsIdeasClient(_HttpProvider):
    venue = "ensideas"

    async def resolve_name(self, address: str) -> Optional[str]:
        payload = await self._get(f"ens/resolve/{address}")
        name = payload.get("name")
        return name if isinstance(name, str) and name else None
