# readers/collection/holdings.py
"""
Ownership statistics over a set of wallets and one collection snapshot.

Everything here is a pure function of its inputs: no I/O, no clock, and the
result does not depend on the order wallets are given in.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from venues.errors import InvalidTokenId

from .models import AggregateHoldings, CollectionSnapshot, Token, WalletHoldings

TOP_N = 5

# Cost basis assumed for potential-profit estimates (fraction of floor)
COST_BASIS_FRACTION = 0.8


def _dedupe_wallets(wallets: Iterable[WalletHoldings]) -> List[WalletHoldings]:
    """
    One holdings record per address (case-insensitive); the most recently
    checked record wins. The same wallet listed twice is not duplicate
    ownership.
    """
    latest: Dict[str, WalletHoldings] = {}
    for w in wallets:
        key = w.address.lower()
        prev = latest.get(key)
        # on equal timestamps the id list decides, so input order never picks the winner
        if prev is None or (w.last_checked_ms, sorted(w.owned_token_ids)) > (prev.last_checked_ms, sorted(prev.owned_token_ids)):
            latest[key] = w
    return [latest[k] for k in sorted(latest)]


def completion_pct(owned: int, total: int) -> float:
    if total <= 0:
        return 0.0
    return round(owned / total * 100, 1)


def _top(tokens: Sequence[Token], key) -> Tuple[Token, ...]:
    return tuple(sorted(tokens, key=lambda t: (-key(t), t.id))[:TOP_N])


def aggregate(wallets: Iterable[WalletHoldings], snapshot: CollectionSnapshot) -> AggregateHoldings:
    """
    Union ownership, duplicate counts, owned/missing partitions, valuation
    roll-ups and per-season missing counts.

    An empty wallet set yields zero owned and everything missing.
    """
    counts: Counter = Counter()
    for w in _dedupe_wallets(wallets):
        counts.update(w.owned_token_ids)

    all_owned = frozenset(counts)

    owned = tuple(t for t in snapshot.tokens if t.id in all_owned)
    missing = tuple(t for t in snapshot.tokens if t.id not in all_owned)

    seasons: Counter = Counter(t.season for t in missing)

    return AggregateHoldings(
        all_owned=all_owned,
        ownership_counts=dict(sorted(counts.items())),
        owned_tokens=owned,
        missing_tokens=missing,
        owned_floor_value=sum(t.floor_price for t in owned),
        owned_offer_value=sum(t.highest_offer for t in owned),
        missing_floor_cost=sum(t.floor_price for t in missing),
        missing_offer_cost=sum(t.highest_offer for t in missing),
        season_breakdown=dict(sorted(seasons.items())),
        completion_pct=completion_pct(len(all_owned), len(snapshot)),
        top_by_floor=_top(owned, lambda t: t.floor_price),
        top_by_offer=_top([t for t in owned if t.highest_offer > 0], lambda t: t.highest_offer),
    )


# ---------------------------------------------------------------------------
# Per-wallet and selection helpers
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class WalletStats:
    address: str
    label: str
    owned_count: int
    completion_pct: float
    floor_value: float
    offer_value: float


def wallet_stats(holding: WalletHoldings, snapshot: CollectionSnapshot) -> WalletStats:
    owned = [t for t in snapshot.tokens if t.id in holding.owned_token_ids]
    return WalletStats(
        address=holding.address,
        label=holding.label,
        owned_count=holding.total_owned,
        completion_pct=completion_pct(holding.total_owned, len(snapshot)),
        floor_value=sum(t.floor_price for t in owned),
        offer_value=sum(t.highest_offer for t in owned),
    )


def selection_cost(
    agg: AggregateHoldings,
    token_ids: Iterable[int],
    *,
    collection_size: Optional[int] = None,
) -> Tuple[float, float]:
    """
    (floor, offer) totals for the chosen subset of missing tokens.
    Owned ids in the selection are ignored; ids that cannot exist raise.
    """
    wanted = set()
    for tid in token_ids:
        if isinstance(tid, bool) or not isinstance(tid, int) or tid < 1:
            raise InvalidTokenId(tid, collection_size or 0)
        if collection_size is not None and tid > collection_size:
            raise InvalidTokenId(tid, collection_size)
        wanted.add(tid)
    chosen = [t for t in agg.missing_tokens if t.id in wanted]
    return (sum(t.floor_price for t in chosen), sum(t.highest_offer for t in chosen))


@dataclass(frozen=True)
class SaleOpportunity:
    wallet: str
    wallet_address: str
    token_id: int
    name: str
    current_floor: float
    highest_offer: float
    potential_profit: float


def sales_opportunities(wallets: Iterable[WalletHoldings], snapshot: CollectionSnapshot) -> List[SaleOpportunity]:
    """
    Every held token with a floor price, ranked by offer minus an assumed
    cost basis of 80% of floor. Tokens without an offer score 0.
    """
    by_id = {t.id: t for t in snapshot.tokens}
    out: List[SaleOpportunity] = []

    for w in _dedupe_wallets(wallets):
        for tid in sorted(w.owned_token_ids):
            t = by_id.get(tid)
            if t is None or not t.floor_price:
                continue
            profit = t.highest_offer - t.floor_price * COST_BASIS_FRACTION if t.highest_offer else 0.0
            out.append(
                SaleOpportunity(
                    wallet=w.label,
                    wallet_address=w.address,
                    token_id=t.id,
                    name=t.name,
                    current_floor=t.floor_price,
                    highest_offer=t.highest_offer,
                    potential_profit=profit,
                )
            )

    out.sort(key=lambda s: (-s.potential_profit, s.token_id, s.wallet_address.lower()))
    return out
