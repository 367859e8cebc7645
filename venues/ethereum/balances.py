"""
On-chain ownership scan for one wallet over the whole token id range.

One eth_call per batch of ids (balanceOfBatch), never one per token. A batch
that fails or decodes badly is logged and dropped; the remaining batches
still count. Only a scan where *every* batch failed is treated as a provider
failure.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from venues.errors import ProviderUnavailable
from venues.ethereum.codec import (
    decode_address,
    decode_string,
    decode_uint256_array,
    encode_addr,
    encode_balance_of_batch,
    encode_registry_resolver,
    encode_resolver_name,
    namehash,
    normalize_address,
    reverse_node,
)
from venues.ethereum.rpc import JsonRpcClient

log = logging.getLogger(__name__)


def partition_ids(first: int, last: int, batch_size: int) -> List[Tuple[int, ...]]:
    """Consecutive batches covering first..last inclusive."""
    if batch_size < 1:
        raise ValueError(f"batch_size must be >= 1, got {batch_size}")
    return [
        tuple(range(start, min(start + batch_size, last + 1)))
        for start in range(first, last + 1, batch_size)
    ]


@dataclass(frozen=True)
class OnchainHoldings:
    owned_ids: Tuple[int, ...]          # ascending
    batches_total: int
    batches_failed: int

    @property
    def complete(self) -> bool:
        return self.batches_failed == 0


class BatchBalanceClient:
    """
    ERC-1155 balanceOfBatch scanner.

    Batches are independent (disjoint id ranges) and may run concurrently;
    `concurrency=1` gives a strictly sequential scan with the same result.
    """

    venue = "onchain"

    def __init__(
        self,
        rpc: JsonRpcClient,
        contract_address: str,
        *,
        collection_size: int,
        batch_size: int = 50,
        concurrency: int = 4,
        ens_registry: Optional[str] = None,
    ):
        self.rpc = rpc
        self.contract_address = normalize_address(contract_address)
        self.collection_size = collection_size
        self.batch_size = batch_size
        self.concurrency = max(1, concurrency)
        self.ens_registry = normalize_address(ens_registry) if ens_registry else None

    # -------------------------
    # Balances
    # -------------------------
    async def _scan_batch(self, owner: str, ids: Sequence[int], sem: asyncio.Semaphore) -> Optional[List[int]]:
        """Returns owned ids in this batch, or None if the batch failed."""
        data = encode_balance_of_batch([owner] * len(ids), ids)
        async with sem:
            try:
                out = await self.rpc.eth_call(self.contract_address, data)
                balances = decode_uint256_array(out, expected_len=len(ids))
            except ProviderUnavailable as exc:
                log.warning(
                    "[ONCHAIN][WARN] batch failed owner=%s ids=%d..%d err=%s: %s",
                    owner, ids[0], ids[-1], type(exc).__name__, exc,
                )
                return None

        # position k in the output belongs to the id placed at position k
        return [tid for tid, bal in zip(ids, balances) if bal > 0]

    async def owned_token_ids(self, address: str) -> OnchainHoldings:
        """
        Scan every id in 1..collection_size for a nonzero balance.

        Raises InvalidAddress before any call is made, and ProviderUnavailable
        only when no batch at all succeeded.
        """
        owner = normalize_address(address)
        batches = partition_ids(1, self.collection_size, self.batch_size)
        sem = asyncio.Semaphore(self.concurrency)

        results = await asyncio.gather(*(self._scan_batch(owner, b, sem) for b in batches))

        failed = sum(1 for r in results if r is None)
        if batches and failed == len(batches):
            raise ProviderUnavailable(f"all {failed} balanceOfBatch calls failed for {owner}")

        owned = sorted(tid for r in results if r for tid in r)
        log.info(
            "[ONCHAIN] owner=%s owned=%d batches=%d failed=%d",
            owner, len(owned), len(batches), failed,
        )
        return OnchainHoldings(
            owned_ids=tuple(owned),
            batches_total=len(batches),
            batches_failed=failed,
        )

    # -------------------------
    # Reverse name
    # -------------------------
    async def _resolver_of(self, node: bytes) -> Optional[str]:
        out = await self.rpc.eth_call(self.ens_registry, encode_registry_resolver(node))
        return decode_address(out)

    async def reverse_name(self, address: str) -> Optional[str]:
        """
        Best-effort primary-name lookup through the ENS registry.

        The reverse record's resolver is looked up on the registry, asked for
        name(node), and the name is only returned when its forward addr()
        points back at the same address. Any failure yields None.
        """
        if not self.ens_registry:
            return None
        owner = normalize_address(address)
        node = reverse_node(owner)
        try:
            resolver = await self._resolver_of(node)
            if resolver is None:
                return None
            name = decode_string(await self.rpc.eth_call(resolver, encode_resolver_name(node)))
            if name is None:
                return None

            forward = namehash(name.lower())
            forward_resolver = await self._resolver_of(forward)
            if forward_resolver is None:
                resolved = None
            else:
                resolved = decode_address(await self.rpc.eth_call(forward_resolver, encode_addr(forward)))
        except ProviderUnavailable as exc:
            log.info("[ONCHAIN] reverse name unavailable address=%s err=%s", owner, exc)
            return None

        if resolved != owner:
            log.info(
                "[ONCHAIN] reverse name not confirmed address=%s name=%s forward=%s",
                owner, name, resolved,
            )
            return None
        return name
