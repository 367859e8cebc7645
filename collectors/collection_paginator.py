"""
Collection paginator / deduplicator.

Walks the Seize listing endpoint page by page, normalizes each record into a
Token, and deduplicates by id (a later page overwrites an earlier one).

The walk ends on the first of:
- unique ids reach max_items (collection size plus slack)
- max_empty_pages consecutive pages with zero usable records
- the endpoint says there is no next page (a short page alone is not that)
- the max_pages hard ceiling
- a failed page request (what was gathered so far is still returned)
"""

from __future__ import annotations

import logging
from typing import Dict, Mapping, Optional, Sequence

from config.field_rules import SEIZE_FIELD_RULES
from readers.collection.models import CollectionSnapshot, Token
from readers.collection.utils import now_ms
from venues.errors import ProviderUnavailable
from venues.seize.normalizer import normalize_page

log = logging.getLogger(__name__)


class CollectionPaginator:
    """
    Non-responsibilities:
    - Identity cache merge (readers/collection/merge.py)
    - Retrying failed pages (an incomplete snapshot beats none)
    """

    def __init__(
        self,
        client,
        *,
        collection_size: int,
        season_size: int,
        page_size: int = 50,
        max_items: int = 500,
        max_empty_pages: int = 3,
        max_pages: int = 20,
        bad_markers: Sequence[str] = (),
        sales_limit: int = 10,
        rules: Optional[Mapping] = None,
    ):
        self.client = client
        self.collection_size = collection_size
        self.season_size = season_size
        self.page_size = page_size
        self.max_items = max_items
        self.max_empty_pages = max_empty_pages
        self.max_pages = max_pages
        self.bad_markers = tuple(bad_markers)
        self.sales_limit = sales_limit
        self.rules = rules or SEIZE_FIELD_RULES

    @classmethod
    def from_settings(cls, client, s) -> "CollectionPaginator":
        return cls(
            client,
            collection_size=s.COLLECTION_SIZE,
            season_size=s.SEASON_SIZE,
            page_size=s.COLLECTION_PAGE_SIZE,
            max_items=s.COLLECTION_MAX_ITEMS,
            max_empty_pages=s.COLLECTION_MAX_EMPTY_PAGES,
            max_pages=s.COLLECTION_MAX_PAGES,
            bad_markers=s.BAD_IMAGE_MARKERS,
            sales_limit=s.RECENT_SALES_LIMIT,
        )

    async def walk(self) -> CollectionSnapshot:
        tokens: Dict[int, Token] = {}
        page = 1
        walked = 0
        empty_streak = 0
        complete = True
        stop = "cap"

        while len(tokens) < self.max_items:
            if empty_streak >= self.max_empty_pages:
                stop = "empty_pages"
                break
            if page > self.max_pages:
                stop = "max_pages"
                complete = False
                break

            try:
                nft_page = await self.client.list_nfts(page, self.page_size)
            except ProviderUnavailable as exc:
                log.warning(
                    "[PAGINATOR][WARN] page=%d failed, ending walk with unique=%d err=%s: %s",
                    page, len(tokens), type(exc).__name__, exc,
                )
                stop = "error"
                complete = False
                break

            walked += 1
            kept = normalize_page(
                nft_page.records,
                rules=self.rules,
                collection_size=self.collection_size,
                season_size=self.season_size,
                bad_markers=self.bad_markers,
                sales_limit=self.sales_limit,
            )

            if kept:
                empty_streak = 0
                for t in kept:
                    tokens[t.id] = t   # last write wins
            else:
                empty_streak += 1

            log.debug(
                "[PAGINATOR] page=%d raw=%d kept=%d unique=%d",
                page, len(nft_page.records), len(kept), len(tokens),
            )

            if nft_page.has_more is False:
                stop = "end"
                break
            page += 1

        snapshot = CollectionSnapshot.from_tokens(
            tokens.values(),
            fetched_at_ms=now_ms(),
            complete=complete,
            pages_walked=walked,
        )
        log.info(
            "[PAGINATOR] fetched unique=%d pages=%d stop=%s complete=%s",
            len(snapshot), walked, stop, complete,
        )
        return snapshot
