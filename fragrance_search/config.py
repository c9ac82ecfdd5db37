"""Configuration for the fragrance search service."""
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional


# Default catalog database location
DEFAULT_DB_PATH = Path.home() / ".fragrance-search" / "catalog.db"


@dataclass
class SearchConfig:
    """Configuration for the search pipeline (paging, caching, snapshot)."""
    results_limit: int = 50

    # Result cache
    cache_ttl_seconds: int = 300
    cache_check_period: int = 60  # Seconds between expired-entry sweeps
    cache_max_entries: int = 1000

    # Catalog snapshot is refetched at most once per window
    freshness_window: float = 300.0

    slow_operation_ms: float = 1000.0

    @classmethod
    def from_env(cls) -> "SearchConfig":
        """Create config from environment variables."""
        return cls(
            results_limit=int(os.environ.get("FRAGRANCE_SEARCH_LIMIT", "50")),
            cache_ttl_seconds=int(os.environ.get("FRAGRANCE_CACHE_TTL", "300")),
            cache_check_period=int(os.environ.get("FRAGRANCE_CACHE_CHECK_PERIOD", "60")),
            cache_max_entries=int(os.environ.get("FRAGRANCE_CACHE_MAX_ENTRIES", "1000")),
            freshness_window=float(os.environ.get("FRAGRANCE_SNAPSHOT_WINDOW", "300")),
            slow_operation_ms=float(os.environ.get("FRAGRANCE_SLOW_OPERATION_MS", "1000")),
        )


@dataclass
class MeiliSearchConfig:
    """Configuration for the optional remote search engine."""
    url: Optional[str] = None  # None = remote engine disabled
    api_key: Optional[str] = None
    index_name: str = "fragrances"
    timeout: float = 10.0  # Seconds

    @property
    def enabled(self) -> bool:
        return bool(self.url)

    @classmethod
    def from_env(cls) -> "MeiliSearchConfig":
        """Create config from environment variables."""
        return cls(
            url=os.environ.get("FRAGRANCE_MEILISEARCH_URL") or None,
            api_key=os.environ.get("FRAGRANCE_MEILISEARCH_KEY") or None,
            index_name=os.environ.get("FRAGRANCE_MEILISEARCH_INDEX", "fragrances"),
            timeout=float(os.environ.get("FRAGRANCE_SEARCH_TIMEOUT", "10.0")),
        )


@dataclass
class Config:
    """Main configuration for the fragrance search service."""
    search: SearchConfig = field(default_factory=SearchConfig.from_env)
    meilisearch: MeiliSearchConfig = field(default_factory=MeiliSearchConfig)
    catalog_db_path: Optional[Path] = None  # None = use default
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Config":
        """Create config from environment variables."""
        db_path_str = os.environ.get("FRAGRANCE_CATALOG_DB")
        db_path = Path(db_path_str) if db_path_str else None

        return cls(
            search=SearchConfig.from_env(),
            meilisearch=MeiliSearchConfig.from_env(),
            catalog_db_path=db_path,
            log_level=os.environ.get("FRAGRANCE_LOG_LEVEL", "INFO").upper(),
        )


# Global config instance
_config: Optional[Config] = None


def get_config() -> Config:
    """Get the global config instance.

    Returns:
        Config loaded from environment
    """
    global _config

    if _config is None:
        _config = Config.from_env()

    return _config
