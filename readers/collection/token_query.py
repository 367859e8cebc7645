# readers/collection/token_query.py

from __future__ import annotations

import pandas as pd
from dataclasses import dataclass
from typing import Callable, Iterable, Literal, Optional, Tuple

from .models import CollectionSnapshot, Token

SortKey = Literal["number", "name", "floor", "offer"]

_SORT_KEYS = {
    "number": lambda t: t.card_number,
    "name": lambda t: t.name.lower(),
    "floor": lambda t: t.floor_price,
    "offer": lambda t: t.highest_offer,
}


@dataclass(frozen=True)
class TokenQuery:
    """
    Thin, notebook-friendly query/view over a CollectionSnapshot.

    - No persistence
    - No network
    - Every filter returns a new query; the snapshot is never touched
    """
    _items: Tuple[Token, ...]

    @classmethod
    def from_snapshot(cls, snap: CollectionSnapshot) -> "TokenQuery":
        return cls(tuple(snap.tokens))

    # -----------------
    # Filters (chainable)
    # -----------------

    def season(self, *seasons: int) -> "TokenQuery":
        sset = {int(s) for s in seasons}
        if not sset:
            return self
        return TokenQuery(tuple(t for t in self._items if t.season in sset))

    def search(self, text: Optional[str]) -> "TokenQuery":
        """
        Case-insensitive match on name or artist, or substring match on the
        card number. Blank text matches everything.
        """
        q = (text or "").strip().lower()
        if not q:
            return self

        def ok(t: Token) -> bool:
            return q in t.name.lower() or q in t.artist.lower() or q in str(t.card_number)

        return self.filter(ok)

    def owned_by(self, token_ids: Iterable[int]) -> "TokenQuery":
        ids = set(token_ids)
        return self.filter(lambda t: t.id in ids)

    def missing_from(self, token_ids: Iterable[int]) -> "TokenQuery":
        ids = set(token_ids)
        return self.filter(lambda t: t.id not in ids)

    def filter(self, fn: Callable[[Token], bool]) -> "TokenQuery":
        return TokenQuery(tuple(t for t in self._items if fn(t)))

    # -----------------
    # Ordering / paging
    # -----------------

    def sort_by(self, key: SortKey = "number", *, descending: bool = False) -> "TokenQuery":
        if key not in _SORT_KEYS:
            raise ValueError(f"unknown sort key {key!r}; expected one of {sorted(_SORT_KEYS)}")
        fn = _SORT_KEYS[key]
        # id as tiebreaker keeps equal prices in a stable, predictable order
        items = sorted(self._items, key=lambda t: t.id)
        items = sorted(items, key=fn, reverse=descending)
        return TokenQuery(tuple(items))

    def page(self, number: int, size: int = 20) -> "TokenQuery":
        """1-based page of the current ordering (sort first, then page)."""
        if number < 1 or size < 1:
            raise ValueError("page number and size must be >= 1")
        start = (number - 1) * size
        return TokenQuery(self._items[start:start + size])

    # -----------------
    # Materialization
    # -----------------

    def items(self) -> Tuple[Token, ...]:
        return self._items

    def ids(self) -> Tuple[int, ...]:
        return tuple(t.id for t in self._items)

    def __len__(self) -> int:
        return len(self._items)

    def df(self) -> pd.DataFrame:
        """
        Notebook helper: returns a DataFrame view of the current selection,
        one row per token in query order.
        """
        rows = [
            {
                "id": t.id,
                "season": t.season,
                "name": t.name,
                "artist": t.artist,
                "floor_price": t.floor_price,
                "highest_offer": t.highest_offer,
                "total_supply": t.total_supply,
                "unique_owners": t.unique_owners,
                "volume_24h": t.volume_24h,
                "volume_7d": t.volume_7d,
                "listed_count": t.listed_count,
            }
            for t in self._items
        ]
        df = pd.DataFrame(rows)
        if df.empty:
            return df
        return df.set_index("id")
