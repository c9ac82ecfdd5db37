"""Tests for the Meilisearch adapter, using httpx.MockTransport."""
import json

import httpx
import pytest
import pytest_asyncio

from fragrance_search.config import MeiliSearchConfig
from fragrance_search.errors import RemoteEngineError
from fragrance_search.models import SearchOptions
from fragrance_search.remote import RANKING_RULES, SEARCHABLE_ATTRIBUTES, MeiliSearchAdapter

CONFIG = MeiliSearchConfig(url="http://meili.test:7700/", api_key="secret", index_name="fragrances", timeout=2.0)

SAUVAGE_HIT = {
    "id": "1",
    "name": "Sauvage",
    "brand": "Dior",
    "year": 2015,
    "concentration": "Eau de Toilette",
    "rating": 4.3,
    "popularity": 9.5,
    "verified": True,
    "_rankingScore": 0.93,
}


class MeiliStub:
    """Records requests and answers like a Meilisearch server."""

    def __init__(self, search_payload=None, status_code=200, error=None):
        self.requests = []
        self.search_payload = search_payload if search_payload is not None else {
            "hits": [SAUVAGE_HIT],
            "estimatedTotalHits": 1,
        }
        self.status_code = status_code
        self.error = error

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        if self.status_code != 200:
            return httpx.Response(self.status_code, json={"message": "boom"})
        if request.url.path == "/health":
            return httpx.Response(200, json={"status": "available"})
        if request.url.path.endswith("/search"):
            return httpx.Response(200, json=self.search_payload)
        return httpx.Response(202, json={"taskUid": 1, "status": "enqueued"})


def make_adapter(stub: MeiliStub) -> MeiliSearchAdapter:
    return MeiliSearchAdapter(CONFIG, default_limit=50, transport=httpx.MockTransport(stub))


@pytest_asyncio.fixture
async def stub_and_adapter():
    stub = MeiliStub()
    adapter = make_adapter(stub)
    yield stub, adapter
    await adapter.close()


class TestAdapterSetup:
    def test_requires_url(self):
        with pytest.raises(ValueError):
            MeiliSearchAdapter(MeiliSearchConfig())

    def test_settings_payload(self):
        adapter = MeiliSearchAdapter(CONFIG)
        settings = adapter.settings_payload()
        assert settings["searchableAttributes"] == SEARCHABLE_ATTRIBUTES
        assert settings["rankingRules"] == RANKING_RULES
        assert settings["synonyms"]["ysl"] == ["yves saint laurent", "saint laurent"]
        assert settings["synonyms"]["adg"] == ["acqua di gio"]


@pytest.mark.asyncio
class TestMeiliSearchAdapter:
    async def test_connect_checks_health_then_configures(self, stub_and_adapter):
        stub, adapter = stub_and_adapter
        await adapter.connect()

        assert [(r.method, r.url.path) for r in stub.requests] == [
            ("GET", "/health"),
            ("PATCH", "/indexes/fragrances/settings"),
        ]
        assert stub.requests[0].headers["Authorization"] == "Bearer secret"
        assert json.loads(stub.requests[1].content)["rankingRules"] == RANKING_RULES

    async def test_search_maps_hits(self, stub_and_adapter):
        stub, adapter = stub_and_adapter
        response = await adapter.search_remote("sauvage", SearchOptions(limit=5, offset=10))

        body = json.loads(stub.requests[0].content)
        assert body == {"q": "sauvage", "limit": 5, "offset": 10, "showRankingScore": True}

        assert response.source == "meilisearch"
        assert response.total == 1
        assert response.suggestions == []
        assert response.metadata is None

        result = response.results[0]
        assert result.id == "1"
        assert result.score == pytest.approx(0.93)
        assert result.match_type == "exact"
        assert result.source == "meilisearch"
        assert result.rating == 4.3

    async def test_search_uses_default_limit(self, stub_and_adapter):
        stub, adapter = stub_and_adapter
        await adapter.search_remote("dior", SearchOptions())
        assert json.loads(stub.requests[0].content)["limit"] == 50

    async def test_match_type_has_no_brand_tier(self, stub_and_adapter):
        _, adapter = stub_and_adapter
        response = await adapter.search_remote("dior homme", SearchOptions())
        assert response.results[0].match_type == "fuzzy"

    async def test_metadata_on_request(self, stub_and_adapter):
        _, adapter = stub_and_adapter
        response = await adapter.search_remote("sauvage", SearchOptions(include_metadata=True))
        assert response.metadata.strategy == "meilisearch"
        assert response.metadata.search_engines == ["meilisearch"]

    async def test_score_is_clamped(self):
        stub = MeiliStub(search_payload={"hits": [dict(SAUVAGE_HIT, _rankingScore=1.7)]})
        adapter = make_adapter(stub)
        response = await adapter.search_remote("sauvage", SearchOptions())
        await adapter.close()
        assert response.results[0].score == 1.0
        assert response.total == 1

    async def test_http_error_status(self):
        adapter = make_adapter(MeiliStub(status_code=500))
        with pytest.raises(RemoteEngineError):
            await adapter.search_remote("sauvage", SearchOptions())
        await adapter.close()

    async def test_transport_error(self):
        adapter = make_adapter(MeiliStub(error=httpx.ConnectError("connection refused")))
        with pytest.raises(RemoteEngineError):
            await adapter.connect()
        await adapter.close()

    async def test_malformed_payload(self):
        adapter = make_adapter(MeiliStub(search_payload={"results": []}))
        with pytest.raises(RemoteEngineError):
            await adapter.search_remote("sauvage", SearchOptions())
        await adapter.close()

    async def test_index_documents(self, stub_and_adapter, sample_records):
        stub, adapter = stub_and_adapter
        sent = await adapter.index_documents(sample_records)

        request = stub.requests[0]
        assert sent == len(sample_records)
        assert request.method == "POST"
        assert request.url.path == "/indexes/fragrances/documents"
        assert request.url.params["primaryKey"] == "id"
        documents = json.loads(request.content)
        assert documents[0]["name"] == "Sauvage"
        assert len(documents) == len(sample_records)

    async def test_index_nothing(self, stub_and_adapter):
        stub, adapter = stub_and_adapter
        assert await adapter.index_documents([]) == 0
        assert stub.requests == []
