import asyncio
import json
import logging
import sys

from config.settings import settings

from collectors.reconciliation_service import ReconciliationService
from readers.collection.token_query import TokenQuery
from readers.collection.utils import ms_to_utc_str


async def run(force_refresh: bool, as_json: bool):
    async with ReconciliationService(settings) as svc:
        snap, stats = await asyncio.gather(
            svc.fetch_collection(force_refresh=force_refresh),
            svc.fetch_collection_stats(),
        )

    if as_json:
        print(json.dumps([t.to_dict() for t in snap], indent=2))
        return

    print(
        f"[COLLECTION] tokens={len(snap)} complete={snap.complete} "
        f"pages={snap.pages_walked} asof={ms_to_utc_str(snap.fetched_at_ms)}"
    )
    print(
        f"[STATS] total={stats.total_memes} collectors={stats.total_collectors} "
        f"floor={stats.floor_price:.4f} volume={stats.total_volume:.2f}"
    )

    q = TokenQuery.from_snapshot(snap)
    seasons = sorted({t.season for t in snap})
    for s in seasons:
        print(f"  season {s}: {len(q.season(s))} tokens")

    print("\nTop floor prices:")
    for t in q.sort_by("floor", descending=True).page(1, 10).items():
        print(f"  #{t.id:<4} S{t.season}  {t.floor_price:>8.4f} ETH  {t.name} ({t.artist})")


def main():
    logging.basicConfig(level=settings.LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s %(message)s")
    flags = set(sys.argv[1:])
    asyncio.run(run(force_refresh="--force" in flags, as_json="--json" in flags))


if __name__ == "__main__":
    main()
