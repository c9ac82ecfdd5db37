"""Multi-strategy fuzzy search over the in-memory catalog snapshot."""
import logging
import time
from dataclasses import replace
from typing import Dict, List, Optional

from fragrance_search.errors import InvalidQueryError, SnapshotUnavailableError
from fragrance_search.fuzzy_index import FuzzyIndex
from fragrance_search.models import (
    MatchCandidate,
    SearchMetadata,
    SearchOptions,
    SearchResponse,
    SearchResult,
    Snapshot,
)
from fragrance_search.relevance import classify_match, extract_key_terms, is_relevant_match
from fragrance_search.scoring import QueryFeatures, calculate_intelligent_score
from fragrance_search.similarity import string_similarity
from fragrance_search.snapshot import SnapshotRefresher
from fragrance_search.strategies import build_strategies
from fragrance_search.timing import elapsed_ms
from fragrance_search.tuning import DEFAULT_TUNING, SearchTuning
from fragrance_search.vocabulary import DEFAULT_VOCABULARY, Vocabulary

logger = logging.getLogger(__name__)


class LocalFuzzyMatcher:
    """Runs the query-rewrite strategies against the snapshot and re-ranks the hits.

    Strategies are tried from most to least literal. Hits from all of them
    are merged (first accepted hit per record id wins), filtered by the
    relevance gate and sorted by the final score, lowest first.
    """

    def __init__(
        self,
        refresher: SnapshotRefresher,
        vocabulary: Vocabulary = DEFAULT_VOCABULARY,
        tuning: SearchTuning = DEFAULT_TUNING,
        default_limit: int = 50,
    ):
        self._refresher = refresher
        self.vocabulary = vocabulary
        self.tuning = tuning
        self.default_limit = default_limit
        self._index: Optional[FuzzyIndex] = None
        self._indexed_snapshot: Optional[Snapshot] = None

    def _current_index(self) -> FuzzyIndex:
        # The snapshot is replaced wholesale, so identity tells us when to rebuild
        snapshot = self._refresher.snapshot
        if self._index is None or self._indexed_snapshot is not snapshot:
            self._index = FuzzyIndex(snapshot.records, self.tuning.index)
            self._indexed_snapshot = snapshot
            logger.debug("Fuzzy index built over %d records", len(snapshot.records))
        return self._index

    def rank(self, query: str, limit: int, threshold: Optional[float] = None) -> List[MatchCandidate]:
        """Collect, gate and score candidates for a query.

        Args:
            query: Raw query
            limit: Requested page size, used to cap hits per sub-query
            threshold: Optional fuzzy index threshold override

        Returns:
            Candidates with final scores, best first
        """
        index = self._current_index()
        weights = self.tuning.strategies
        key_terms = extract_key_terms(query, self.vocabulary)
        features = QueryFeatures.from_query(query, self.vocabulary)
        strategies = build_strategies(
            query,
            key_terms,
            self._refresher.snapshot.brand_names(),
            self.vocabulary,
            weights,
        )
        hits_per_query = min(weights.max_hits_per_query, weights.hits_per_query_multiplier * limit)

        candidates: Dict[str, MatchCandidate] = {}
        for strategy in strategies:
            for sub_query in strategy.queries:
                if len(sub_query) < 2:
                    continue

                try:
                    hits = index.search(sub_query, hits_per_query, threshold)
                except InvalidQueryError as e:
                    logger.debug("Skipping invalid sub-query %r: %s", sub_query, e)
                    continue

                for hit in hits:
                    if hit.record.id in candidates:
                        continue
                    if not is_relevant_match(
                        query,
                        hit.record,
                        hit.distance,
                        key_terms,
                        self.tuning.relevance,
                        self.vocabulary,
                    ):
                        continue
                    candidates[hit.record.id] = MatchCandidate(
                        record=hit.record,
                        raw_distance=hit.distance,
                        strategy=strategy.type,
                        adjusted_score=hit.distance / strategy.weight,
                    )

        ranked = [
            replace(
                candidate,
                final_score=calculate_intelligent_score(
                    features, candidate.record, candidate.adjusted_score, self.tuning.scoring
                ),
            )
            for candidate in candidates.values()
        ]
        ranked.sort(key=lambda candidate: candidate.final_score)
        return ranked

    def suggest(self, query: str) -> List[str]:
        """Spelling suggestions for a query, independent of its results."""
        lower_query = query.lower()
        suggestions = []

        correction = self.vocabulary.suggestion_for(lower_query)
        if correction:
            suggestions.append(correction)

        for term in self.vocabulary.common_terms:
            if string_similarity(lower_query, term) > self.tuning.suggestion_similarity:
                suggestions.append(term)

        return list(dict.fromkeys(suggestions))

    async def search_local(self, query: str, options: SearchOptions) -> SearchResponse:
        """Search the snapshot.

        Args:
            query: Raw query; blank queries return an empty response
            options: Paging, threshold and metadata options

        Returns:
            Response with source "local"

        Raises:
            SnapshotUnavailableError: If a non-blank query runs before any snapshot loaded
        """
        started = time.perf_counter()
        limit = options.limit or self.default_limit
        strategies_used = []
        candidates: List[MatchCandidate] = []
        suggestions: List[str] = []

        if query.strip():
            await self._refresher.ensure_fresh()
            if not self._refresher.has_loaded:
                raise SnapshotUnavailableError("Catalog snapshot has never been loaded")

            candidates = self.rank(query, limit, options.threshold)
            suggestions = self.suggest(query)
            strategies_used = list(dict.fromkeys(candidate.strategy for candidate in candidates))

        page = candidates[options.offset:options.offset + limit]
        results = [
            SearchResult.from_record(
                candidate.record,
                score=1.0 - candidate.adjusted_score,
                match_type=classify_match(query, candidate.record.name, candidate.record.brand, self.vocabulary),
                source="local",
            )
            for candidate in page
        ]

        metadata = None
        if options.include_metadata:
            metadata = SearchMetadata(
                strategy="progressive-search",
                cache_hit=False,
                search_engines=["local"],
                strategies_used=strategies_used,
            )

        return SearchResponse(
            results=results,
            total=len(candidates),
            query=query,
            duration=elapsed_ms(started),
            source="local",
            suggestions=suggestions,
            metadata=metadata,
        )

    async def autocomplete(self, query: str, limit: int = 10) -> List[str]:
        """Names containing the query, formatted "<name> by <brand>"."""
        if len(query) < 2 or limit <= 0:
            return []

        await self._refresher.ensure_fresh()
        lower_query = query.lower()
        matches = []
        for record in self._refresher.snapshot.records:
            if lower_query in record.name.lower() or lower_query in record.brand.lower():
                matches.append(f"{record.name} by {record.brand}")
                if len(matches) >= limit:
                    break
        return matches
