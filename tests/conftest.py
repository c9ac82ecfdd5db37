"""Shared fixtures for tests."""
import pytest

from fragrance_search.models import CatalogRecord


SAMPLE_FRAGRANCES = [
    {"id": "1", "name": "Sauvage", "brand": "Dior", "year": 2015, "concentration": "Eau de Toilette",
     "rating": 4.3, "popularity": 9.5, "verified": True},
    {"id": "5", "name": "Aventus", "brand": "Creed", "year": 2010, "concentration": "Eau de Parfum",
     "rating": 4.6, "popularity": 9.2, "verified": True},
    {"id": "4", "name": "Bleu de Chanel", "brand": "Chanel", "year": 2010, "concentration": "Eau de Parfum",
     "rating": 4.4, "popularity": 9.0, "verified": True},
    {"id": "2", "name": "Eros", "brand": "Versace", "year": 2012, "concentration": "Eau de Toilette",
     "rating": 4.2, "popularity": 8.8, "verified": True},
    {"id": "7", "name": "Acqua di Gio", "brand": "Giorgio Armani", "year": 1996, "concentration": "Eau de Toilette",
     "rating": 4.0, "popularity": 8.0, "verified": True},
    {"id": "8", "name": "Y", "brand": "Yves Saint Laurent", "year": 2017, "concentration": "Eau de Parfum",
     "rating": 4.2, "popularity": 7.8, "verified": False},
    {"id": "3", "name": "Eros Flame", "brand": "Versace", "year": 2018, "concentration": "Eau de Parfum",
     "rating": 4.1, "popularity": 7.5, "verified": True},
    {"id": "9", "name": "Dylan Blue", "brand": "Versace", "year": 2016, "concentration": "Eau de Toilette",
     "rating": 4.0, "popularity": 6.5, "verified": False},
]


class FakeCatalogSource:
    """In-memory catalog source that counts fetches and can be told to fail."""

    def __init__(self, records):
        self.records = list(records)
        self.calls = 0
        self.fail = False

    async def fetch_all_catalog_records(self):
        self.calls += 1
        if self.fail:
            raise ConnectionError("catalog database unavailable")
        return list(self.records)


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def sample_records():
    """Return the sample catalog as CatalogRecord values."""
    return [CatalogRecord.from_mapping(data) for data in SAMPLE_FRAGRANCES]


@pytest.fixture
def records_by_name(sample_records):
    return {record.name: record for record in sample_records}


@pytest.fixture
def catalog_source(sample_records):
    """Fake storage collaborator serving the sample catalog."""
    return FakeCatalogSource(sample_records)


@pytest.fixture
def make_catalog_source():
    """Factory for fake storage collaborators over arbitrary records."""
    return FakeCatalogSource


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def catalog_db_path(tmp_path):
    """Return path for a temporary catalog database."""
    return tmp_path / "test_catalog.db"
