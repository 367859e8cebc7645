from config.settings import settings

from storage.metadata_cache import MetadataCache


def main():
    cache = MetadataCache(settings.CACHE_PATH)
    if cache.clear():
        print(f"[CACHE] cleared {cache.path}")
    else:
        print(f"[CACHE] nothing to clear at {cache.path}")


if __name__ == "__main__":
    main()
