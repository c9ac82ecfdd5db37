"""Client for the optional remote full-text engine (Meilisearch REST API)."""
import logging
import time
from typing import Any, Dict, List, Optional, Protocol, Sequence

import httpx

from fragrance_search.config import MeiliSearchConfig
from fragrance_search.errors import RemoteEngineError
from fragrance_search.models import (
    CatalogRecord,
    RemoteHit,
    SearchMetadata,
    SearchOptions,
    SearchResponse,
    SearchResult,
)
from fragrance_search.relevance import classify_match
from fragrance_search.timing import elapsed_ms
from fragrance_search.vocabulary import DEFAULT_VOCABULARY, Vocabulary

logger = logging.getLogger(__name__)

SEARCHABLE_ATTRIBUTES = ["name", "brand", "concentration", "year"]

RANKING_RULES = [
    "words",
    "typo",
    "exactness",
    "attribute",
    "sort",
    "popularity:desc",
    "rating:desc",
]


class RemoteSearchEngine(Protocol):
    """Protocol for remote engines the service can try before the local path."""

    async def connect(self) -> None:
        ...

    async def search_remote(self, query: str, options: SearchOptions) -> SearchResponse:
        """Run one query remotely.

        Raises:
            RemoteEngineError: If the engine is unreachable or answers badly
        """
        ...

    async def index_documents(self, records: Sequence[CatalogRecord]) -> int:
        ...

    async def close(self) -> None:
        ...


class MeiliSearchAdapter:
    """Meilisearch over httpx.

    Hits are mapped to typed RemoteHit values as soon as they arrive; every
    transport or payload problem surfaces as RemoteEngineError.
    """

    def __init__(
        self,
        config: MeiliSearchConfig,
        default_limit: int = 50,
        vocabulary: Vocabulary = DEFAULT_VOCABULARY,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize the adapter.

        Args:
            config: Remote engine settings; config.url must be set
            default_limit: Page size when the caller gives none
            vocabulary: Source of the synonym table and typo corrections
            transport: Optional httpx transport (tests use httpx.MockTransport)
        """
        if not config.url:
            raise ValueError("Meilisearch URL is not configured")

        self.config = config
        self.default_limit = default_limit
        self.vocabulary = vocabulary

        headers = {"Content-Type": "application/json"}
        if config.api_key:
            headers["Authorization"] = f"Bearer {config.api_key}"

        self._client = httpx.AsyncClient(
            base_url=config.url.rstrip("/"),
            headers=headers,
            timeout=config.timeout,
            transport=transport,
        )

    @property
    def _index_path(self) -> str:
        return f"/indexes/{self.config.index_name}"

    def settings_payload(self) -> Dict[str, Any]:
        return {
            "searchableAttributes": SEARCHABLE_ATTRIBUTES,
            "rankingRules": RANKING_RULES,
            "synonyms": {term: list(synonyms) for term, synonyms in self.vocabulary.remote_synonyms.items()},
        }

    async def _request(self, method: str, path: str, **kwargs) -> Any:
        try:
            response = await self._client.request(method, path, **kwargs)
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as e:
            raise RemoteEngineError(
                f"Meilisearch {method} {path} failed with status {e.response.status_code}"
            ) from e
        except httpx.HTTPError as e:
            raise RemoteEngineError(f"Meilisearch {method} {path} failed: {e}") from e
        except ValueError as e:
            raise RemoteEngineError(f"Meilisearch {method} {path} returned invalid JSON") from e

    async def connect(self) -> None:
        """Check the engine is healthy and apply the index settings.

        Re-applying the settings is idempotent.

        Raises:
            RemoteEngineError: If the health check or settings update fails
        """
        await self._request("GET", "/health")
        logger.info("Meilisearch connected at %s", self.config.url)

        await self._request("PATCH", f"{self._index_path}/settings", json=self.settings_payload())
        logger.info("Meilisearch index %r configured", self.config.index_name)

    async def search_remote(self, query: str, options: SearchOptions) -> SearchResponse:
        """Run one query against the remote index.

        Args:
            query: Raw query, sent as-is (synonyms are applied server-side)
            options: Paging and metadata options

        Returns:
            Response with source "meilisearch" and no suggestions

        Raises:
            RemoteEngineError: On transport errors or malformed payloads
        """
        started = time.perf_counter()
        payload = await self._request(
            "POST",
            f"{self._index_path}/search",
            json={
                "q": query,
                "limit": options.limit or self.default_limit,
                "offset": options.offset,
                "showRankingScore": True,
            },
        )

        hits = self._parse_hits(payload)
        results = [
            SearchResult.from_record(
                hit.record,
                score=hit.ranking_score,
                match_type=classify_match(
                    query, hit.record.name, hit.record.brand, self.vocabulary, include_brand=False
                ),
                source="meilisearch",
            )
            for hit in hits
        ]

        metadata = None
        if options.include_metadata:
            metadata = SearchMetadata(strategy="meilisearch", cache_hit=False, search_engines=["meilisearch"])

        return SearchResponse(
            results=results,
            total=payload.get("estimatedTotalHits") or payload.get("totalHits") or len(results),
            query=query,
            duration=elapsed_ms(started),
            source="meilisearch",
            suggestions=[],
            metadata=metadata,
        )

    def _parse_hits(self, payload: Any) -> List[RemoteHit]:
        try:
            return [RemoteHit.from_payload(hit) for hit in payload["hits"]]
        except (KeyError, TypeError, ValueError) as e:
            raise RemoteEngineError(f"Malformed Meilisearch response: {e!r}") from e

    async def index_documents(self, records: Sequence[CatalogRecord]) -> int:
        """Add or replace documents in the remote index.

        Returns:
            Number of documents sent
        """
        if not records:
            return 0

        await self._request(
            "POST",
            f"{self._index_path}/documents",
            params={"primaryKey": "id"},
            json=[record.to_document() for record in records],
        )
        logger.info("Sent %d documents to Meilisearch index %r", len(records), self.config.index_name)
        return len(records)

    async def close(self) -> None:
        await self._client.aclose()
