"""
Seize record normalization.

Responsibilities:
- Map one raw NFT record into a Token using ordered extraction rules
  (config/field_rules.py), first present value wins per field
- Drop records whose id is outside 1..N
- Drop records whose image/thumbnail URL carries a known bad-source marker

Non-responsibilities:
- Deduplication across pages (the paginator owns that)
- Merging with cached identity fields

Note on the bad-source marker: some listing pages contain records whose
images point at a different contract deployment. They duplicate real ids
with the wrong data. Filtering on the marker is a heuristic; it is not known
whether every such record carries it.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from readers.collection.models import Token
from readers.collection.utils import parse_token_id, to_float, to_int

log = logging.getLogger(__name__)

Path = Tuple[str, ...]


def _absent(v: Any) -> bool:
    return v is None or v == ""


def _lookup(raw: Any, path: Path) -> Any:
    """Follow one path; "@Trait" keys search an attribute list."""
    cur = raw
    for key in path:
        if key.startswith("@"):
            if not isinstance(cur, list):
                return None
            trait = key[1:].lower()
            cur = next(
                (
                    a.get("value")
                    for a in cur
                    if isinstance(a, dict) and str(a.get("trait_type", "")).lower() == trait
                ),
                None,
            )
        elif isinstance(cur, dict):
            cur = cur.get(key)
        else:
            return None
        if cur is None:
            return None
    return cur


def extract(raw: Mapping[str, Any], paths: Sequence[Path]) -> Any:
    """Evaluate extraction rules in order; first present value wins."""
    for path in paths:
        v = _lookup(raw, path)
        if not _absent(v):
            return v
    return None


def has_bad_marker(urls: Iterable[str], markers: Sequence[str]) -> bool:
    for url in urls:
        if not url:
            continue
        low = url.lower()
        if any(m.lower() in low for m in markers):
            return True
    return False


def normalize_nft(
    raw: Mapping[str, Any],
    *,
    rules: Mapping[str, Sequence[Path]],
    collection_size: int,
    season_size: int,
    bad_markers: Sequence[str] = (),
    sales_limit: int = 10,
) -> Optional[Token]:
    """
    Convert one raw listing record into a Token.

    Returns None for records that must not enter the snapshot:
    missing/out-of-range id, or cross-contaminated image data.
    """
    token_id = parse_token_id(extract(raw, rules["id"]))
    if token_id is None or not (1 <= token_id <= collection_size):
        return None

    image_url = str(extract(raw, rules["image_url"]) or "")
    thumbnail_url = str(extract(raw, rules["thumbnail_url"]) or "")
    if has_bad_marker((image_url, thumbnail_url), bad_markers):
        return None

    sales = extract(raw, rules["recent_sales"])
    recent_sales = tuple(sales[:sales_limit]) if isinstance(sales, list) else ()

    return Token(
        id=token_id,
        name=str(extract(raw, rules["name"]) or f"Meme #{token_id}"),
        artist=str(extract(raw, rules["artist"]) or "Unknown"),
        image_url=image_url,
        thumbnail_url=thumbnail_url,
        floor_price=to_float(extract(raw, rules["floor_price"])),
        highest_offer=to_float(extract(raw, rules["highest_offer"])),
        total_supply=to_int(extract(raw, rules["total_supply"])),
        unique_owners=to_int(extract(raw, rules["unique_owners"])),
        volume_24h=to_float(extract(raw, rules["volume_24h"])),
        volume_7d=to_float(extract(raw, rules["volume_7d"])),
        listed_count=to_int(extract(raw, rules["listed_count"])),
        recent_sales=recent_sales,
        season_size=season_size,
    )


def normalize_stats(raw: Mapping[str, Any], rules: Mapping[str, Sequence[Path]], defaults: Dict[str, Any]) -> Dict[str, Any]:
    """Collection stats with per-field defaults when a field is absent."""
    out = dict(defaults)
    for key, paths in rules.items():
        v = extract(raw, paths)
        if v is None:
            continue
        out[key] = to_int(v) if isinstance(defaults.get(key), int) else to_float(v)
    return out


def normalize_page(records: Iterable[Mapping[str, Any]], **kwargs) -> List[Token]:
    """One bad record is dropped and logged; the rest of the page is kept."""
    out: List[Token] = []
    for raw in records:
        try:
            token = normalize_nft(raw, **kwargs)
        except (TypeError, ValueError, OverflowError, AttributeError) as exc:
            log.warning(
                "[NORMALIZE][WARN] dropped record id=%r err=%s: %s",
                raw.get("id") if isinstance(raw, Mapping) else None, type(exc).__name__, exc,
            )
            continue
        if token is not None:
            out.append(token)
    return out
