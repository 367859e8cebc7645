"""
Reconciliation service: the one object callers talk to.

Holds its configuration and provider clients explicitly (no module-level
singleton) so tests and other processes can construct as many independent
instances as they like, each with injected fakes.

Exposed operations:
- fetch_collection(force_refresh)   -> CollectionSnapshot
- fetch_collection_stats()          -> CollectionStats
- resolve_wallet(address)           -> WalletHoldings   (InvalidAddress)
- resolve_wallets(addresses)        -> list[WalletHoldings]
- aggregate_holdings(wallets, snap) -> AggregateHoldings
"""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, Iterable, List, Optional, Sequence

import httpx

from collectors.collection_paginator import CollectionPaginator
from collectors.holdings_resolver import HoldingsAnswer, HoldingsResolver
from config.field_rules import DEFAULT_COLLECTION_STATS, SEIZE_STATS_RULES
from config.settings import AppSettings
from readers.collection.holdings import aggregate
from readers.collection.merge import merge_with_cache, project_identity
from readers.collection.models import AggregateHoldings, CollectionSnapshot, CollectionStats, WalletHoldings
from readers.collection.utils import now_ms
from storage.metadata_cache import MetadataCache
from venues.errors import ProviderUnavailable
from venues.ethereum.balances import BatchBalanceClient
from venues.ethereum.rpc import JsonRpcClient
from venues.indexers.clients import AlchemyClient, EnsIdeasClient, OpenSeaClient, SimpleHashClient
from venues.seize.client import SeizeClient
from venues.seize.normalizer import normalize_stats

log = logging.getLogger(__name__)


class ReconciliationService:
    def __init__(
        self,
        cfg: AppSettings,
        *,
        http: Optional[httpx.AsyncClient] = None,
        cache: Optional[MetadataCache] = None,
        clock: Callable[[], int] = now_ms,
    ):
        self.cfg = cfg
        self.clock = clock
        self.http = http or httpx.AsyncClient(timeout=cfg.HTTP_TIMEOUT)
        self._owns_http = http is None

        self.seize = SeizeClient(cfg.SEIZE_API_BASE, cfg.CONTRACT_ADDRESS, http=self.http)
        self.paginator = CollectionPaginator.from_settings(self.seize, cfg)
        self.cache = cache or MetadataCache(cfg.CACHE_PATH)
        self._cache_lock = asyncio.Lock()

        self.rpc = JsonRpcClient(cfg.RPC_URL, http=self.http)
        self.onchain = BatchBalanceClient(
            self.rpc,
            cfg.CONTRACT_ADDRESS,
            collection_size=cfg.COLLECTION_SIZE,
            batch_size=cfg.ONCHAIN_BATCH_SIZE,
            concurrency=cfg.ONCHAIN_CONCURRENCY,
            ens_registry=cfg.ENS_REGISTRY_ADDRESS or None,
        )
        self.ensideas = EnsIdeasClient(cfg.ENSIDEAS_API_BASE, http=self.http)

        self._indexers = {
            "simplehash": SimpleHashClient(cfg.SIMPLEHASH_API_BASE, cfg.SIMPLEHASH_API_KEY, http=self.http),
        }
        if cfg.ALCHEMY_API_KEY:
            self._indexers["alchemy"] = AlchemyClient(cfg.ALCHEMY_API_BASE, cfg.ALCHEMY_API_KEY, http=self.http)
        if cfg.OPENSEA_API_KEY:
            self._indexers["opensea"] = OpenSeaClient(
                cfg.OPENSEA_API_BASE, cfg.OPENSEA_API_KEY, cfg.OPENSEA_COLLECTION_SLUG, http=self.http
            )

        self.resolver = HoldingsResolver(
            self._holdings_sources(cfg.HOLDINGS_PROVIDERS),
            [("onchain", self.onchain.reverse_name), ("ensideas", self.ensideas.resolve_name)],
            attempt_timeout=cfg.ATTEMPT_TIMEOUT,
        )

    # -------------------------
    # Source wiring
    # -------------------------
    def _holdings_sources(self, order: Sequence[str]):
        sources = []
        for name in order:
            if name == "onchain":
                sources.append(("onchain", self._onchain_holdings))
            elif name in self._indexers:
                sources.append((name, self._indexer_holdings(self._indexers[name])))
            elif name in ("alchemy", "opensea"):
                log.info("[SERVICE] holdings provider %s disabled (no API key)", name)
            else:
                log.warning("[SERVICE][WARN] unknown holdings provider %r ignored", name)
        return sources

    async def _onchain_holdings(self, address: str) -> HoldingsAnswer:
        res = await self.onchain.owned_token_ids(address)
        return HoldingsAnswer(token_ids=res.owned_ids, complete=res.complete)

    def _indexer_holdings(self, client):
        async def fetch(address: str) -> HoldingsAnswer:
            ids = await client.owned_token_ids(address, self.cfg.CONTRACT_ADDRESS, self.cfg.COLLECTION_SIZE)
            return HoldingsAnswer(token_ids=tuple(ids))
        return fetch

    # -------------------------
    # Collection
    # -------------------------
    async def fetch_collection(self, force_refresh: bool = False) -> CollectionSnapshot:
        """
        Walk the listing, merge with the identity cache (unless force_refresh),
        and replace the cache slot after a complete, non-empty fetch.
        """
        fresh = await self.paginator.walk()

        async with self._cache_lock:
            merged = fresh
            if not force_refresh:
                merged = merge_with_cache(
                    fresh,
                    self.cache.load(),
                    now_ms=self.clock(),
                    ttl_seconds=self.cfg.METADATA_TTL_SECONDS,
                )

            if fresh.complete and len(fresh):
                self.cache.save(project_identity(fresh, captured_at_ms=fresh.fetched_at_ms))
            else:
                log.warning(
                    "[SERVICE][WARN] cache not updated tokens=%d complete=%s",
                    len(fresh), fresh.complete,
                )

        return merged

    async def fetch_collection_stats(self) -> CollectionStats:
        try:
            raw = await self.seize.collection_stats()
            stats = normalize_stats(raw, SEIZE_STATS_RULES, DEFAULT_COLLECTION_STATS)
        except ProviderUnavailable as exc:
            log.warning("[SERVICE][WARN] collection stats unavailable, using defaults: %s", exc)
            stats = dict(DEFAULT_COLLECTION_STATS)
        return CollectionStats(**stats)

    # -------------------------
    # Wallets
    # -------------------------
    async def resolve_wallet(self, address: str) -> WalletHoldings:
        return await self.resolver.resolve(address)

    async def resolve_wallets(self, addresses: Sequence[str]) -> List[WalletHoldings]:
        return await self.resolver.resolve_many(addresses)

    def aggregate_holdings(self, wallets: Iterable[WalletHoldings], snapshot: CollectionSnapshot) -> AggregateHoldings:
        return aggregate(wallets, snapshot)

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
