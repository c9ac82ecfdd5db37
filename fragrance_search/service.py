"""Search service: cache, remote engine and local fuzzy matcher composed as one pipeline."""
import logging
import time
from dataclasses import replace
from typing import Callable, List, Optional, Sequence

from fragrance_search.cache import ResultCache, autocomplete_cache_key, normalize_query, search_cache_key
from fragrance_search.config import Config, SearchConfig, get_config
from fragrance_search.errors import RemoteEngineError
from fragrance_search.local_matcher import LocalFuzzyMatcher
from fragrance_search.models import CacheStats, CatalogRecord, SearchOptions, SearchResponse
from fragrance_search.remote import MeiliSearchAdapter, RemoteSearchEngine
from fragrance_search.snapshot import CatalogSource, SnapshotRefresher
from fragrance_search.timing import PerformanceMonitor
from fragrance_search.tuning import DEFAULT_TUNING, SearchTuning
from fragrance_search.vocabulary import DEFAULT_VOCABULARY, Vocabulary

logger = logging.getLogger(__name__)


class SearchService:
    """Entry point of the search core.

    Construct once at startup, call initialize(), serve, then shutdown().
    The snapshot and the cache are owned by the service and replaced
    wholesale, never patched.
    """

    def __init__(
        self,
        catalog: CatalogSource,
        remote: Optional[RemoteSearchEngine] = None,
        config: Optional[SearchConfig] = None,
        vocabulary: Vocabulary = DEFAULT_VOCABULARY,
        tuning: SearchTuning = DEFAULT_TUNING,
        cache: Optional[ResultCache] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initialize the service.

        Args:
            catalog: Storage collaborator the snapshot is loaded from
            remote: Optional remote engine tried before the local matcher
            config: Search settings (defaults when omitted)
            vocabulary: Lookup tables
            tuning: Ranking parameters
            cache: Result cache (built from config when omitted)
            clock: Monotonic clock in seconds, shared by snapshot and cache
        """
        self.config = config or SearchConfig()
        self.refresher = SnapshotRefresher(catalog, self.config.freshness_window, clock)
        self.matcher = LocalFuzzyMatcher(self.refresher, vocabulary, tuning, self.config.results_limit)
        self.cache = cache or ResultCache(
            default_ttl=self.config.cache_ttl_seconds,
            check_period=self.config.cache_check_period,
            maxsize=self.config.cache_max_entries,
            timer=clock,
        )
        self._remote = remote

    @property
    def remote_enabled(self) -> bool:
        return self._remote is not None

    async def initialize(self) -> None:
        """Connect the remote engine, load the first snapshot and start the cache sweeper.

        A remote engine that fails to connect is dropped for the lifetime
        of the service; search then runs locally only.
        """
        if self._remote is not None:
            try:
                await self._remote.connect()
            except RemoteEngineError as e:
                logger.warning("Remote search engine unavailable, using local search only: %s", e)
                await self._remote.close()
                self._remote = None

        await self.refresher.ensure_fresh()
        self.cache.start_sweeper()

    async def shutdown(self) -> None:
        await self.cache.stop_sweeper()
        if self._remote is not None:
            await self._remote.close()

    def _monitor(self, operation: str) -> PerformanceMonitor:
        return PerformanceMonitor(operation, self.config.slow_operation_ms)

    async def search(self, query: str, options: Optional[SearchOptions] = None) -> SearchResponse:
        """Search the catalog.

        Tries the cache, then the remote engine, then the local matcher. The
        query is normalized once and that form feeds both the cache key and
        the engines. The fresh response is cached even when force_refresh
        skipped the read.

        Args:
            query: Free-text query; blank queries return no results
            options: Paging, threshold, metadata and cache options

        Returns:
            Search response

        Raises:
            SnapshotUnavailableError: If the local path runs before any snapshot loaded
        """
        options = options or SearchOptions()
        monitor = self._monitor(f"search:{query}")
        normalized = normalize_query(query)
        cache_key = search_cache_key(normalized, options)

        if not options.force_refresh:
            cached = self.cache.get(cache_key)
            if cached is not None:
                logger.debug("Cache hit for %r", query)
                return self._from_cache(cached, query, monitor.end())

        logger.debug("Cache miss for %r", query)

        response = None
        if self._remote is not None and normalized:
            response = await self._search_remote(normalized, options)

        if response is None:
            response = await self.matcher.search_local(normalized, options)

        response = replace(response, query=query, duration=monitor.end())
        self.cache.set(cache_key, response)

        logger.info(
            "Search %r: %d results from %s in %.0f ms",
            query, len(response.results), response.source, response.duration,
        )
        return response

    async def _search_remote(self, query: str, options: SearchOptions) -> Optional[SearchResponse]:
        """Remote response, or None when it failed or found nothing."""
        try:
            response = await self._remote.search_remote(query, options)
        except Exception as e:
            logger.warning("Remote search failed for %r, falling back to local: %s", query, e)
            return None

        return response if response.results else None

    @staticmethod
    def _from_cache(cached: SearchResponse, query: str, duration: float) -> SearchResponse:
        metadata = cached.metadata
        if metadata is not None:
            metadata = replace(metadata, cache_hit=True)
        return replace(cached, query=query, duration=duration, metadata=metadata)

    async def autocomplete(self, query: str, limit: int = 10) -> List[str]:
        """Names containing the query, formatted "<name> by <brand>".

        Args:
            query: At least two characters, else no suggestions
            limit: Maximum suggestions

        Returns:
            Up to limit suggestions in snapshot order
        """
        normalized = normalize_query(query)
        if len(normalized) < 2:
            return []

        cache_key = autocomplete_cache_key(normalized, limit)
        cached = self.cache.get(cache_key)
        if cached is not None:
            return list(cached)

        monitor = self._monitor(f"autocomplete:{normalized}")
        suggestions = await self.matcher.autocomplete(normalized, limit)
        monitor.end()

        self.cache.set(cache_key, tuple(suggestions))
        return suggestions

    async def index_fragrances(self, records: Optional[Sequence[CatalogRecord]] = None) -> int:
        """Push records (the current snapshot by default) into the remote engine.

        Args:
            records: Records to index; empty or None means the snapshot

        Returns:
            Number of documents sent, 0 when no remote engine is configured
        """
        if self._remote is None:
            return 0

        monitor = self._monitor("index_fragrances")
        try:
            data = list(records or ())
            if not data:
                await self.refresher.ensure_fresh()
                data = list(self.refresher.snapshot.records)
            return await self._remote.index_documents(data)
        except RemoteEngineError as e:
            logger.error("Failed to index fragrances: %s", e)
            return 0
        finally:
            monitor.end()

    def clear_cache(self) -> None:
        self.cache.flush()
        logger.info("Search cache cleared")

    def get_cache_stats(self) -> CacheStats:
        return self.cache.stats()


def create_search_service(catalog: CatalogSource, config: Optional[Config] = None) -> SearchService:
    """Build a service from configuration.

    Args:
        catalog: Storage collaborator (already initialized)
        config: Configuration, defaults to the global config

    Returns:
        Service ready for initialize()
    """
    config = config or get_config()

    remote = None
    if config.meilisearch.enabled:
        remote = MeiliSearchAdapter(config.meilisearch, default_limit=config.search.results_limit)

    return SearchService(catalog, remote=remote, config=config.search)
