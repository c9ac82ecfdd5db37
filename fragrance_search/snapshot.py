"""In-memory catalog snapshot, refreshed lazily from the storage collaborator."""
import asyncio
import logging
import time
from typing import Callable, List, Protocol, Sequence

from fragrance_search.models import CatalogRecord, Snapshot

logger = logging.getLogger(__name__)

DEFAULT_FRESHNESS_WINDOW = 300.0  # Seconds


class CatalogSource(Protocol):
    """Storage collaborator the snapshot is read from."""

    async def fetch_all_catalog_records(self) -> Sequence[CatalogRecord]:
        """Return every catalog record, ordered by popularity then rating (desc)."""
        ...


def _unique_records(records: Sequence[CatalogRecord]) -> List[CatalogRecord]:
    """Drop records without an id and repeated ids, keeping the first."""
    seen = set()
    unique = []
    for record in records:
        if not record.id or record.id in seen:
            logger.warning("Skipping catalog record with missing or duplicate id %r", record.id)
            continue
        seen.add(record.id)
        unique.append(record)
    return unique


class SnapshotRefresher:
    """Holds the current snapshot and replaces it at most once per window.

    A failed fetch keeps the previous snapshot: stale results beat no results.
    """

    def __init__(
        self,
        source: CatalogSource,
        freshness_window: float = DEFAULT_FRESHNESS_WINDOW,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._source = source
        self.freshness_window = freshness_window
        self._clock = clock
        self._snapshot = Snapshot()
        self._lock = asyncio.Lock()

    @property
    def snapshot(self) -> Snapshot:
        return self._snapshot

    def is_fresh(self) -> bool:
        refreshed_at = self._snapshot.refreshed_at
        return refreshed_at is not None and self._clock() - refreshed_at < self.freshness_window

    async def ensure_fresh(self) -> None:
        """Refresh the snapshot if it is older than the freshness window."""
        if self.is_fresh():
            return

        async with self._lock:
            # Another caller may have refreshed while we waited
            if self.is_fresh():
                return
            await self._refresh()

    async def _refresh(self) -> None:
        started = time.perf_counter()
        try:
            records = await self._source.fetch_all_catalog_records()
        except Exception:
            logger.exception("Failed to refresh catalog snapshot; keeping previous one")
            return

        self._snapshot = Snapshot(records=tuple(_unique_records(records)), refreshed_at=self._clock())
        logger.info(
            "Catalog snapshot refreshed: %d records in %.0f ms",
            len(self._snapshot.records),
            (time.perf_counter() - started) * 1000,
        )

    @property
    def has_loaded(self) -> bool:
        """True once any refresh has succeeded."""
        return self._snapshot.loaded
