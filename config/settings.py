"""
Application configuration for the Memes collection tracker.
Reads settings from environment variables and provides defaults.
"""

import os
from pathlib import Path
from dataclasses import dataclass, field
from dotenv import load_dotenv

# Load .env file if present (explicit path avoids python-dotenv auto-discovery issues on newer Python)
ENV_PATH = Path(__file__).resolve().parents[1] / ".env"  # repo_root/.env if config/ is one level down
load_dotenv(dotenv_path=ENV_PATH, override=False)


def _env_list(name: str, default: str) -> tuple[str, ...]:
    raw = os.getenv(name, default)
    return tuple(p.strip() for p in raw.split(",") if p.strip())


@dataclass
class AppSettings:
    """
    Settings for the reconciliation engine: collection shape, provider
    endpoints, batching and cache lifetimes.

    Every field may be overridden at construction time; the defaults come
    from the environment so the app/ entry points need no arguments.
    """

    # Collection shape
    CONTRACT_ADDRESS: str = os.getenv(
        "MEMES_CONTRACT_ADDRESS", "0x33fd426905f149f8376e227d0c9d3340aad17af1"
    )
    COLLECTION_SIZE: int = int(os.getenv("MEMES_COLLECTION_SIZE", "404"))
    SEASON_SIZE: int = int(os.getenv("MEMES_SEASON_SIZE", "100"))

    # Seize listing API
    SEIZE_API_BASE: str = os.getenv("MEMES_SEIZE_API_BASE", "https://api.seize.io/api")
    COLLECTION_PAGE_SIZE: int = int(os.getenv("MEMES_PAGE_SIZE", "50"))  # Seize caps at 50
    COLLECTION_MAX_ITEMS: int = int(os.getenv("MEMES_MAX_ITEMS", "500"))
    COLLECTION_MAX_EMPTY_PAGES: int = int(os.getenv("MEMES_MAX_EMPTY_PAGES", "3"))
    COLLECTION_MAX_PAGES: int = int(os.getenv("MEMES_MAX_PAGES", "20"))
    RECENT_SALES_LIMIT: int = int(os.getenv("MEMES_RECENT_SALES_LIMIT", "10"))

    # Image URLs containing any of these belong to another deployment's records
    BAD_IMAGE_MARKERS: tuple[str, ...] = _env_list(
        "MEMES_BAD_IMAGE_MARKERS", "0x0c58ef43ff3032005e472cb5"
    )

    # On-chain reads
    RPC_URL: str = os.getenv("MEMES_RPC_URL", "https://eth.llamarpc.com")
    ONCHAIN_BATCH_SIZE: int = int(os.getenv("MEMES_ONCHAIN_BATCH_SIZE", "50"))
    ONCHAIN_CONCURRENCY: int = int(os.getenv("MEMES_ONCHAIN_CONCURRENCY", "4"))
    # Primary names are read through the ENS registry and forward-checked
    ENS_REGISTRY_ADDRESS: str = os.getenv(
        "MEMES_ENS_REGISTRY", "0x00000000000c2e074ec69a0bfb2997ba6c7d2e1e"
    )

    # Indexer providers (keyed ones are skipped when the key is empty)
    SIMPLEHASH_API_BASE: str = os.getenv("MEMES_SIMPLEHASH_API_BASE", "https://api.simplehash.com/api/v0")
    SIMPLEHASH_API_KEY: str = os.getenv("SIMPLEHASH_API_KEY", "")
    ALCHEMY_API_BASE: str = os.getenv("MEMES_ALCHEMY_API_BASE", "https://eth-mainnet.g.alchemy.com/nft/v3")
    ALCHEMY_API_KEY: str = os.getenv("ALCHEMY_API_KEY", "")
    OPENSEA_API_BASE: str = os.getenv("MEMES_OPENSEA_API_BASE", "https://api.opensea.io/api/v2")
    OPENSEA_API_KEY: str = os.getenv("OPENSEA_API_KEY", "")
    OPENSEA_COLLECTION_SLUG: str = os.getenv("MEMES_OPENSEA_COLLECTION", "the-memes-by-6529")
    ENSIDEAS_API_BASE: str = os.getenv("MEMES_ENSIDEAS_API_BASE", "https://api.ensideas.com")

    # Fallback order for wallet holdings
    HOLDINGS_PROVIDERS: tuple[str, ...] = _env_list(
        "MEMES_HOLDINGS_PROVIDERS", "onchain,simplehash,alchemy,opensea"
    )

    # Timeouts (seconds)
    HTTP_TIMEOUT: float = float(os.getenv("MEMES_HTTP_TIMEOUT", "10.0"))
    ATTEMPT_TIMEOUT: float = float(os.getenv("MEMES_ATTEMPT_TIMEOUT", "15.0"))

    # Identity-field cache
    METADATA_TTL_SECONDS: int = int(os.getenv("MEMES_METADATA_TTL_SECONDS", str(7 * 24 * 60 * 60)))
    CACHE_PATH: Path = Path(os.getenv("MEMES_CACHE_PATH", ".outputs/cache/memes_metadata.json"))

    LOG_LEVEL: str = os.getenv("MEMES_LOG_LEVEL", "INFO")

    # Wallet addresses the app/ entry points track by default
    WALLETS: tuple[str, ...] = field(default_factory=lambda: _env_list("MEMES_WALLETS", ""))


# Create a single config instance for the app/ entry points
settings = AppSettings()
