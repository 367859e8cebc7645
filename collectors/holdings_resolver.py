"""
Wallet holdings resolution.

For one wallet: validate the address, then run two fallback chains side by
side, one for owned token ids (on-chain scan first, indexers after) and one
for a display name. Whatever happens downstream, the caller gets a
well-formed WalletHoldings; only a malformed address raises.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from functools import partial
from typing import Awaitable, Callable, List, Optional, Sequence, Tuple

from collectors.fallback import first_success
from readers.collection.models import WalletHoldings
from readers.collection.utils import now_ms
from venues.ethereum.codec import normalize_address

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class HoldingsAnswer:
    token_ids: Tuple[int, ...]
    complete: bool = True


HoldingsSource = Tuple[str, Callable[[str], Awaitable[Optional[HoldingsAnswer]]]]
NameSource = Tuple[str, Callable[[str], Awaitable[Optional[str]]]]


class HoldingsResolver:
    """
    Sources are (name, fn(checksummed_address)) pairs, tried in list order.
    """

    def __init__(
        self,
        holdings_sources: Sequence[HoldingsSource],
        name_sources: Sequence[NameSource] = (),
        *,
        attempt_timeout: float = 15.0,
    ):
        self.holdings_sources = list(holdings_sources)
        self.name_sources = list(name_sources)
        self.attempt_timeout = attempt_timeout

    async def resolve(self, address: str) -> WalletHoldings:
        owner = normalize_address(address)

        holdings_res, name_res = await asyncio.gather(
            first_success(
                [(src, partial(fn, owner)) for src, fn in self.holdings_sources],
                timeout=self.attempt_timeout,
                label=f"holdings {owner}",
            ),
            first_success(
                [(src, partial(fn, owner)) for src, fn in self.name_sources],
                timeout=self.attempt_timeout,
                label=f"name {owner}",
            ),
        )

        answer: Optional[HoldingsAnswer] = holdings_res.value
        holding = WalletHoldings(
            address=owner,
            owned_token_ids=frozenset(answer.token_ids) if answer else frozenset(),
            last_checked_ms=now_ms(),
            display_name=name_res.value,
            source=holdings_res.source,
            complete=bool(answer and answer.complete),
        )

        log.info(
            "[HOLDINGS] address=%s owned=%d source=%s complete=%s name=%s",
            owner, holding.total_owned, holding.source, holding.complete, holding.display_name,
        )
        return holding

    async def resolve_many(self, addresses: Sequence[str]) -> List[WalletHoldings]:
        """
        Resolve wallets concurrently and join before returning.
        All addresses are validated before any provider is contacted.
        """
        for a in addresses:
            normalize_address(a)
        return list(await asyncio.gather(*(self.resolve(a) for a in addresses)))
