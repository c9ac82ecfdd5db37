"""Time-bounded cache for search and autocomplete responses."""
import asyncio
import json
import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Optional

from cachetools import TLRUCache

from fragrance_search.models import CacheStats, SearchOptions

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _Entry:
    value: Any
    ttl: float


def normalize_query(query: str) -> str:
    """Lowercase the query and collapse its whitespace."""
    return " ".join(query.lower().split())


def search_cache_key(query: str, options: SearchOptions) -> str:
    """Key for a full search; force_refresh does not change the key."""
    payload = json.dumps(options.cache_payload(), sort_keys=True)
    return f"search:{normalize_query(query)}:{payload}"


def autocomplete_cache_key(query: str, limit: int) -> str:
    return f"autocomplete:{normalize_query(query)}:{limit}"


class ResultCache:
    """TTL cache with per-entry lifetimes and hit/miss counters.

    Values are stored as-is and must be treated as read-only by callers.
    Expired entries are dropped on access and by a periodic sweep.
    """

    def __init__(
        self,
        default_ttl: float = 300.0,
        check_period: float = 60.0,
        maxsize: int = 1000,
        timer: Callable[[], float] = time.monotonic,
    ):
        self.default_ttl = default_ttl
        self.check_period = check_period
        self._entries: TLRUCache = TLRUCache(
            maxsize=maxsize,
            ttu=lambda _key, entry, now: now + entry.ttl,
            timer=timer,
        )
        self._hits = 0
        self._misses = 0
        self._sweeper: Optional[asyncio.Task] = None

    def get(self, key: str) -> Optional[Any]:
        """Return the cached value, or None on a miss."""
        entry = self._entries.get(key)
        if entry is None:
            self._misses += 1
            return None
        self._hits += 1
        return entry.value

    def set(self, key: str, value: Any, ttl: Optional[float] = None) -> None:
        self._entries[key] = _Entry(value=value, ttl=self.default_ttl if ttl is None else ttl)

    def flush(self) -> None:
        """Drop every entry; counters are kept."""
        self._entries.clear()

    def sweep(self) -> int:
        """Remove expired entries.

        Returns:
            Number of entries removed
        """
        return len(self._entries.expire())

    def stats(self) -> CacheStats:
        self.sweep()
        return CacheStats(hits=self._hits, misses=self._misses, keys=len(self._entries))

    def start_sweeper(self) -> None:
        """Start the background sweep task on the running loop (idempotent)."""
        if self._sweeper is None or self._sweeper.done():
            self._sweeper = asyncio.get_running_loop().create_task(self._sweep_forever())

    async def stop_sweeper(self) -> None:
        if self._sweeper is None:
            return
        self._sweeper.cancel()
        try:
            await self._sweeper
        except asyncio.CancelledError:
            pass
        self._sweeper = None

    async def _sweep_forever(self) -> None:
        while True:
            await asyncio.sleep(self.check_period)
            removed = self.sweep()
            if removed:
                logger.debug("Swept %d expired cache entries", removed)
