"""
Single-slot, file-backed store for the collection identity cache.

There is exactly one CacheEntry per collection. It is replaced wholesale,
never patched. Writes go to a temp file that is fsynced and renamed over the
target, so a reader never sees a torn file.
"""

import json
import logging
import os
from pathlib import Path
from typing import Optional

from readers.collection.models import CacheEntry

log = logging.getLogger(__name__)


def _atomic_write_json(path: Path, payload: dict) -> None:
    """
    Atomic-ish JSON write (POSIX): write temp file then rename.
    Ensures readers never see a partially written cache.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    tmp_path = path.with_suffix(path.suffix + ".tmp")
    data = json.dumps(payload, ensure_ascii=False)

    with tmp_path.open("w", encoding="utf-8") as f:
        f.write(data)
        f.flush()
        os.fsync(f.fileno())

    tmp_path.replace(path)


class MetadataCache:
    """
    Persistence for the identity cache slot.

    A write carrying an older captured_at_ms than the stored entry is
    refused, so a slow refresh finishing late cannot clobber a newer one.
    """

    def __init__(self, path: Path):
        self.path = Path(path)

    def load(self) -> Optional[CacheEntry]:
        """Return the stored entry, or None if missing or unreadable."""
        if not self.path.exists():
            return None
        try:
            payload = json.loads(self.path.read_text(encoding="utf-8"))
            return CacheEntry.from_json(payload)
        except (OSError, ValueError, KeyError, TypeError) as exc:
            # A corrupt cache is equivalent to no cache; the next fetch rewrites it
            log.warning("[CACHE][WARN] unreadable cache path=%s err=%s: %s", self.path, type(exc).__name__, exc)
            return None

    def save(self, entry: CacheEntry) -> bool:
        """Replace the slot. Returns False when a newer entry is already stored."""
        current = self.load()
        if current is not None and current.captured_at_ms > entry.captured_at_ms:
            log.info(
                "[CACHE] skip stale write captured_at=%d stored=%d",
                entry.captured_at_ms, current.captured_at_ms,
            )
            return False

        _atomic_write_json(self.path, entry.to_json())
        log.info("[CACHE] saved tokens=%d path=%s", len(entry.identities), self.path)
        return True

    def clear(self) -> bool:
        if not self.path.exists():
            return False
        self.path.unlink()
        return True
