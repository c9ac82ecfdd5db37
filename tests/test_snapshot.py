"""Tests for the snapshot refresher."""
import asyncio

import pytest

from fragrance_search.models import CatalogRecord
from fragrance_search.snapshot import SnapshotRefresher


@pytest.mark.asyncio
class TestSnapshotRefresher:
    async def test_starts_empty(self, catalog_source, fake_clock):
        refresher = SnapshotRefresher(catalog_source, 300, fake_clock)
        assert not refresher.has_loaded
        assert refresher.snapshot.records == ()
        assert catalog_source.calls == 0

    async def test_first_call_loads(self, catalog_source, fake_clock, sample_records):
        refresher = SnapshotRefresher(catalog_source, 300, fake_clock)
        await refresher.ensure_fresh()
        assert refresher.has_loaded
        assert list(refresher.snapshot.records) == sample_records

    async def test_no_refetch_within_window(self, catalog_source, fake_clock):
        refresher = SnapshotRefresher(catalog_source, 300, fake_clock)
        await refresher.ensure_fresh()
        fake_clock.advance(299)
        await refresher.ensure_fresh()
        assert catalog_source.calls == 1

    async def test_refetch_after_window(self, catalog_source, fake_clock):
        refresher = SnapshotRefresher(catalog_source, 300, fake_clock)
        await refresher.ensure_fresh()
        fake_clock.advance(301)
        await refresher.ensure_fresh()
        assert catalog_source.calls == 2

    async def test_snapshot_replaced_wholesale(self, catalog_source, fake_clock):
        refresher = SnapshotRefresher(catalog_source, 300, fake_clock)
        await refresher.ensure_fresh()
        first = refresher.snapshot

        catalog_source.records = catalog_source.records[:2]
        fake_clock.advance(301)
        await refresher.ensure_fresh()

        assert refresher.snapshot is not first
        assert len(first.records) == 8
        assert len(refresher.snapshot.records) == 2

    async def test_failed_refresh_keeps_previous_snapshot(self, catalog_source, fake_clock):
        refresher = SnapshotRefresher(catalog_source, 300, fake_clock)
        await refresher.ensure_fresh()
        previous = refresher.snapshot

        catalog_source.fail = True
        fake_clock.advance(301)
        await refresher.ensure_fresh()

        assert refresher.snapshot is previous
        assert catalog_source.calls == 2

    async def test_failed_first_load(self, catalog_source, fake_clock):
        catalog_source.fail = True
        refresher = SnapshotRefresher(catalog_source, 300, fake_clock)
        await refresher.ensure_fresh()
        assert not refresher.has_loaded

    async def test_concurrent_callers_share_one_fetch(self, catalog_source, fake_clock):
        refresher = SnapshotRefresher(catalog_source, 300, fake_clock)
        await asyncio.gather(*(refresher.ensure_fresh() for _ in range(5)))
        assert catalog_source.calls == 1

    async def test_drops_missing_and_duplicate_ids(self, make_catalog_source, fake_clock):
        source = make_catalog_source([
            CatalogRecord(id="1", name="Sauvage", brand="Dior"),
            CatalogRecord(id="", name="Nameless", brand="Nobody"),
            CatalogRecord(id="1", name="Sauvage Elixir", brand="Dior"),
        ])
        refresher = SnapshotRefresher(source, 300, fake_clock)
        await refresher.ensure_fresh()
        assert [record.name for record in refresher.snapshot.records] == ["Sauvage"]

    async def test_brand_names(self, catalog_source, fake_clock):
        refresher = SnapshotRefresher(catalog_source, 300, fake_clock)
        await refresher.ensure_fresh()
        assert refresher.snapshot.brand_names()[:3] == ["Dior", "Creed", "Chanel"]
        assert refresher.snapshot.brand_names().count("Versace") == 1
