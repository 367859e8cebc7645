import asyncio
import json
import logging
import sys

from config.settings import settings

from collectors.reconciliation_service import ReconciliationService
from readers.collection.holdings import sales_opportunities, wallet_stats
from venues.errors import InvalidAddress


async def run(addresses: list[str], as_json: bool = False):
    async with ReconciliationService(settings) as svc:
        snap, wallets = await asyncio.gather(
            svc.fetch_collection(),
            svc.resolve_wallets(addresses),
        )
        agg = svc.aggregate_holdings(wallets, snap)

    if as_json:
        print(json.dumps([w.to_dict() for w in wallets], indent=2))
        return

    for w in wallets:
        ws = wallet_stats(w, snap)
        print(
            f"[WALLET] {ws.label:<20} owned={ws.owned_count:>3} "
            f"completion={ws.completion_pct:>5.1f}% floor={ws.floor_value:.3f} ETH "
            f"offer={ws.offer_value:.3f} ETH source={w.source} complete={w.complete}"
        )

    print(
        f"\n[TOTAL] owned={agg.owned_count} missing={agg.missing_count} "
        f"completion={agg.completion_pct}% duplicates={agg.duplicate_count}"
    )
    print(f"  portfolio   floor={agg.owned_floor_value:.3f} ETH offer={agg.owned_offer_value:.3f} ETH")
    print(f"  to complete floor={agg.missing_floor_cost:.3f} ETH offer={agg.missing_offer_cost:.3f} ETH")
    for season, count in agg.season_breakdown.items():
        print(f"  season {season}: missing {count}")

    if agg.duplicate_ids:
        print("  duplicate ids:", ", ".join(str(i) for i in agg.duplicate_ids))

    print("\nTop sale opportunities:")
    for s in sales_opportunities(wallets, snap)[:10]:
        print(
            f"  {s.wallet:<20} #{s.token_id:<4} floor={s.current_floor:.4f} "
            f"offer={s.highest_offer:.4f} profit={s.potential_profit:+.4f}"
        )


def main():
    logging.basicConfig(level=settings.LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s %(message)s")
    args = sys.argv[1:]
    addresses = [a for a in args if not a.startswith("--")] or list(settings.WALLETS)
    if not addresses:
        print("usage: python -m app.run_wallets <address> [<address> ...]  (or set MEMES_WALLETS)")
        sys.exit(2)

    try:
        asyncio.run(run(addresses, as_json="--json" in args))
    except InvalidAddress as exc:
        print(f"[ERROR] {exc}")
        sys.exit(2)


if __name__ == "__main__":
    main()
