# -------------------------
# Seize NFT record extraction rules
# -------------------------
# Each logical Token field maps to an ordered list of paths into the raw
# record. The first path that yields a present value (not None / "") wins.
#
# A path is a tuple of keys. A key starting with "@" matches an attribute
# list entry whose trait_type equals the rest of the key (case-insensitive)
# and yields its "value".
#
# Seize has renamed fields over time (snake_case vs camelCase) and some
# mirrors nest name/artist under metadata, hence the variants.

SEIZE_FIELD_RULES = {
    "id": [("token_id",), ("tokenId",), ("id",)],
    "name": [("name",), ("metadata", "name")],
    "artist": [
        ("artist",),
        ("metadata", "attributes", "@Artist"),
        ("attributes", "@Artist"),
    ],
    # thumbnail first for the grid, full image for detail views
    "image_url": [("image",), ("thumbnail",)],
    "thumbnail_url": [("thumbnail",), ("image",)],
    "floor_price": [("floor_price",), ("floorPrice",)],
    "highest_offer": [("highest_offer",), ("bestOffer",)],
    "total_supply": [("supply",), ("total_supply",), ("totalSupply",)],
    "unique_owners": [("unique_owners",), ("uniqueOwners",)],
    "volume_24h": [("volume_24h",), ("volume24h",)],
    "volume_7d": [("volume_7d",), ("volume7d",)],
    "listed_count": [("listed_count",), ("listedCount",)],
    "recent_sales": [("last_sales",), ("lastSales",)],
}

# Collection-level stats endpoint
SEIZE_STATS_RULES = {
    "total_memes": [("total_supply",), ("totalSupply",)],
    "total_collectors": [("num_owners",), ("unique_owners",)],
    "total_volume": [("total_volume",), ("volume_all_time",)],
    "floor_price": [("floor_price",)],
    "market_cap": [("market_cap",)],
}

# Used when the stats endpoint is unavailable
DEFAULT_COLLECTION_STATS = {
    "total_memes": 403,
    "total_collectors": 12000,
    "total_volume": 50000.0,
    "floor_price": 0.08,
    "market_cap": 100000.0,
}
