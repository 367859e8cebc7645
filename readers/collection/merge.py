# readers/collection/merge.py
"""
Two-tier merge between a fresh snapshot and the long-lived identity cache.

Rules:
- The fresh snapshot decides which ids exist. Ids only present in the cache
  are never resurrected.
- Volatile fields always come from the fresh snapshot.
- Identity fields come from the cache only when the entry is unexpired and
  has that id; otherwise the fresh values stand.
- An expired entry behaves exactly like no entry.

Both functions are pure; persistence lives in storage/metadata_cache.py.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Optional

from .models import CacheEntry, CollectionSnapshot


def merge_with_cache(
    fresh: CollectionSnapshot,
    entry: Optional[CacheEntry],
    *,
    now_ms: int,
    ttl_seconds: int,
) -> CollectionSnapshot:
    if entry is None or not entry.is_valid(now_ms, ttl_seconds):
        return fresh

    merged = []
    for token in fresh.tokens:
        ident = entry.identities.get(token.id)
        merged.append(token.with_identity(ident) if ident is not None else token)

    return replace(fresh, tokens=tuple(merged))


def project_identity(snapshot: CollectionSnapshot, captured_at_ms: int) -> CacheEntry:
    """Identity-only projection used as the next cache entry."""
    return CacheEntry(
        identities={t.id: t.identity() for t in snapshot.tokens},
        captured_at_ms=captured_at_ms,
    )
