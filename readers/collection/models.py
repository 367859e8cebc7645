# readers/collection/models.py
"""
Core *data shapes* for the collection / holdings pipeline.

Key idea:
- Providers disagree on field names, ids and completeness; everything is
  normalized into these shapes before any merging or aggregation happens.
- All shapes are frozen. Transformations (cache merge, refresh, aggregate)
  build new values instead of mutating old ones.

Field tiers on Token:
- identity fields (name, artist, image urls) change rarely and may be served
  from the long-lived metadata cache;
- volatile fields (prices, supply, owners, volumes, sales) must always come
  from the freshest fetch.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Dict, Iterator, Mapping, Optional, Tuple

from .utils import season_of, shorten_address


IDENTITY_FIELDS = ("name", "artist", "image_url", "thumbnail_url")

VOLATILE_FIELDS = (
    "floor_price",
    "highest_offer",
    "total_supply",
    "unique_owners",
    "volume_24h",
    "volume_7d",
    "listed_count",
    "recent_sales",
)


@dataclass(frozen=True)
class IdentityFields:
    """The cacheable projection of one Token."""
    name: str
    artist: str
    image_url: str
    thumbnail_url: str

    def to_dict(self) -> Dict[str, str]:
        return {
            "name": self.name,
            "artist": self.artist,
            "image_url": self.image_url,
            "thumbnail_url": self.thumbnail_url,
        }

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> "IdentityFields":
        return cls(
            name=str(d.get("name") or ""),
            artist=str(d.get("artist") or ""),
            image_url=str(d.get("image_url") or ""),
            thumbnail_url=str(d.get("thumbnail_url") or ""),
        )


@dataclass(frozen=True)
class Token:
    """
    One collectible in the fixed-size collection.

    `season` is derived from `id`; season_size travels with the token only so
    the derivation does not depend on global state.
    """

    # ---- Identity ----
    id: int
    name: str = ""
    artist: str = "Unknown"
    image_url: str = ""
    thumbnail_url: str = ""

    # ---- Market data (never served from cache) ----
    floor_price: float = 0.0
    highest_offer: float = 0.0
    total_supply: int = 0
    unique_owners: int = 0
    volume_24h: float = 0.0
    volume_7d: float = 0.0
    listed_count: int = 0
    recent_sales: Tuple[Any, ...] = ()   # most recent first

    season_size: int = field(default=100, repr=False, compare=False)

    @property
    def season(self) -> int:
        return season_of(self.id, self.season_size)

    @property
    def card_number(self) -> int:
        return self.id

    def identity(self) -> IdentityFields:
        return IdentityFields(
            name=self.name,
            artist=self.artist,
            image_url=self.image_url,
            thumbnail_url=self.thumbnail_url,
        )

    def with_identity(self, ident: IdentityFields) -> "Token":
        return replace(
            self,
            name=ident.name,
            artist=ident.artist,
            image_url=ident.image_url,
            thumbnail_url=ident.thumbnail_url,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "season": self.season,
            "card_number": self.card_number,
            "name": self.name,
            "artist": self.artist,
            "image": self.image_url,
            "thumbnail": self.thumbnail_url,
            "floor_price": self.floor_price,
            "highest_offer": self.highest_offer,
            "total_supply": self.total_supply,
            "unique_owners": self.unique_owners,
            "volume_24h": self.volume_24h,
            "volume_7d": self.volume_7d,
            "listed_count": self.listed_count,
            "last_sales": list(self.recent_sales),
        }


@dataclass(frozen=True)
class CollectionSnapshot:
    """
    Deduplicated set of Tokens at one point in time, sorted by id.

    `complete` is informational: False means the walk stopped early
    (provider error) and some ids may be missing.
    """
    tokens: Tuple[Token, ...]
    fetched_at_ms: int
    complete: bool = True
    pages_walked: int = 0

    @classmethod
    def from_tokens(cls, tokens, *, fetched_at_ms: int, complete: bool = True, pages_walked: int = 0) -> "CollectionSnapshot":
        by_id: Dict[int, Token] = {}
        for t in tokens:
            by_id[t.id] = t
        return cls(
            tokens=tuple(by_id[i] for i in sorted(by_id)),
            fetched_at_ms=fetched_at_ms,
            complete=complete,
            pages_walked=pages_walked,
        )

    def __len__(self) -> int:
        return len(self.tokens)

    def __iter__(self) -> Iterator[Token]:
        return iter(self.tokens)

    @property
    def ids(self) -> Tuple[int, ...]:
        return tuple(t.id for t in self.tokens)

    def get(self, token_id: int) -> Optional[Token]:
        for t in self.tokens:
            if t.id == token_id:
                return t
        return None


@dataclass(frozen=True)
class CacheEntry:
    """Identity-only projection of a snapshot plus its capture time."""
    identities: Mapping[int, IdentityFields]
    captured_at_ms: int

    def is_valid(self, now_ms: int, ttl_seconds: int) -> bool:
        return now_ms - self.captured_at_ms < ttl_seconds * 1000

    def to_json(self) -> Dict[str, Any]:
        return {
            "captured_at_ms": self.captured_at_ms,
            "tokens": [
                {"id": tid, **ident.to_dict()}
                for tid, ident in sorted(self.identities.items())
            ],
        }

    @classmethod
    def from_json(cls, payload: Mapping[str, Any]) -> "CacheEntry":
        rows = payload.get("tokens")
        if not isinstance(rows, list):
            raise ValueError("cache payload has no tokens list")
        return cls(
            identities={int(r["id"]): IdentityFields.from_dict(r) for r in rows},
            captured_at_ms=int(payload["captured_at_ms"]),
        )


@dataclass(frozen=True)
class WalletHoldings:
    """
    One wallet's resolved ownership. Replaced as a whole on refresh.

    `source` names the provider that answered (None when every provider
    failed); `complete` is False when the answer is known to be partial.
    """
    address: str
    owned_token_ids: frozenset
    last_checked_ms: int
    display_name: Optional[str] = None
    source: Optional[str] = None
    complete: bool = True

    @property
    def total_owned(self) -> int:
        return len(self.owned_token_ids)

    @property
    def label(self) -> str:
        if self.display_name:
            return self.display_name
        return shorten_address(self.address)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "address": self.address,
            "ens": self.display_name,
            "ownedMemes": sorted(self.owned_token_ids),
            "totalOwned": self.total_owned,
            "lastChecked": self.last_checked_ms,
            "source": self.source,
            "complete": self.complete,
        }


@dataclass(frozen=True)
class AggregateHoldings:
    """
    Ownership statistics for a set of wallets against one snapshot.
    Pure value; recomputed whenever wallets or snapshot change.
    """
    all_owned: frozenset
    ownership_counts: Mapping[int, int]
    owned_tokens: Tuple[Token, ...]
    missing_tokens: Tuple[Token, ...]

    owned_floor_value: float
    owned_offer_value: float
    missing_floor_cost: float
    missing_offer_cost: float

    season_breakdown: Mapping[int, int]   # season -> missing count
    completion_pct: float

    top_by_floor: Tuple[Token, ...] = ()
    top_by_offer: Tuple[Token, ...] = ()

    @property
    def duplicate_ids(self) -> Tuple[int, ...]:
        return tuple(sorted(i for i, c in self.ownership_counts.items() if c > 1))

    @property
    def duplicate_count(self) -> int:
        return len(self.duplicate_ids)

    @property
    def owned_count(self) -> int:
        return len(self.all_owned)

    @property
    def missing_count(self) -> int:
        return len(self.missing_tokens)


@dataclass(frozen=True)
class CollectionStats:
    total_memes: int
    total_collectors: int
    total_volume: float
    floor_price: float
    market_cap: float
