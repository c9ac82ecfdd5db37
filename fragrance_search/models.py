"""Data types shared by the search pipeline."""
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Literal, Mapping, Optional, Tuple

MatchType = Literal["exact", "fuzzy", "partial", "brand", "ai"]
ResultSource = Literal["local", "meilisearch", "ai-fallback"]
StrategyType = Literal["exact", "partial", "brand", "fuzzy", "words", "expanded"]


def _optional_int(value: Any) -> Optional[int]:
    if value is None or value == "":
        return None
    return int(value)


def _optional_float(value: Any) -> Optional[float]:
    if value is None or value == "":
        return None
    return float(value)


@dataclass(frozen=True)
class CatalogRecord:
    """Read-only projection of a persisted fragrance.

    Attributes:
        id: Identifier, unique within a snapshot
        name: Display name
        brand: Brand name
        year: Release year, if known
        concentration: Concentration label (e.g. "Eau de Parfum")
        rating: Community rating on a 0-5 scale
        popularity: Popularity score
        verified: Whether the record has been verified
    """
    id: str
    name: str
    brand: str
    year: Optional[int] = None
    concentration: Optional[str] = None
    rating: Optional[float] = None
    popularity: Optional[float] = None
    verified: bool = False

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "CatalogRecord":
        """Build a record from a database row or document dict."""
        return cls(
            id=str(data["id"]),
            name=data.get("name") or "",
            brand=data.get("brand") or "",
            year=_optional_int(data.get("year")),
            concentration=data.get("concentration") or None,
            rating=_optional_float(data.get("rating")),
            popularity=_optional_float(data.get("popularity")),
            verified=bool(data.get("verified")),
        )

    def to_document(self) -> Dict[str, Any]:
        """Serialize for the remote engine (and JSON output)."""
        return asdict(self)


@dataclass(frozen=True)
class Snapshot:
    """An ordered, wholesale-replaced copy of the catalog."""
    records: Tuple[CatalogRecord, ...] = ()
    refreshed_at: Optional[float] = None

    @property
    def loaded(self) -> bool:
        return self.refreshed_at is not None

    def brand_names(self) -> List[str]:
        """Distinct brand names in snapshot order."""
        seen: Dict[str, None] = {}
        for record in self.records:
            if record.brand:
                seen.setdefault(record.brand, None)
        return list(seen)


@dataclass(frozen=True)
class SearchStrategy:
    """One query-rewrite approach tried by the local matcher."""
    type: StrategyType
    weight: float
    queries: Tuple[str, ...]
    description: str


@dataclass(frozen=True)
class IndexHit:
    """A record returned by the fuzzy index with its match distance (0 = exact)."""
    record: CatalogRecord
    distance: float


@dataclass(frozen=True)
class MatchCandidate:
    """A hit that passed the relevance gate, tagged with the strategy that found it."""
    record: CatalogRecord
    raw_distance: float
    strategy: StrategyType
    adjusted_score: float
    final_score: Optional[float] = None


@dataclass(frozen=True)
class RemoteHit:
    """A typed hit from the remote search engine."""
    record: CatalogRecord
    ranking_score: float

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "RemoteHit":
        """Map a raw engine hit.

        Raises:
            KeyError: If the hit has no id
        """
        return cls(
            record=CatalogRecord.from_mapping(payload),
            ranking_score=float(payload.get("_rankingScore") or 0.0),
        )


@dataclass(frozen=True)
class SearchResult:
    """A single entry of a search response; score 1.0 is a perfect match."""
    id: str
    name: str
    brand: str
    year: Optional[int]
    concentration: Optional[str]
    rating: float
    popularity: float
    verified: bool
    score: float
    match_type: MatchType
    source: ResultSource

    @classmethod
    def from_record(
        cls,
        record: CatalogRecord,
        score: float,
        match_type: MatchType,
        source: ResultSource,
    ) -> "SearchResult":
        return cls(
            id=record.id,
            name=record.name,
            brand=record.brand,
            year=record.year,
            concentration=record.concentration,
            rating=record.rating or 0.0,
            popularity=record.popularity or 0.0,
            verified=record.verified,
            score=max(0.0, min(1.0, score)),
            match_type=match_type,
            source=source,
        )


@dataclass(frozen=True)
class SearchOptions:
    """Caller options for a search.

    Attributes:
        limit: Page size (defaults to the configured results limit)
        offset: Page start
        threshold: Override for the fuzzy index match threshold
        include_metadata: Attach pipeline metadata to the response
        force_refresh: Skip the cache on read (the result is still cached)
    """
    limit: Optional[int] = None
    offset: int = 0
    threshold: Optional[float] = None
    include_metadata: bool = False
    force_refresh: bool = False

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "SearchOptions":
        return cls(
            limit=_optional_int(data.get("limit")),
            offset=int(data.get("offset") or 0),
            threshold=_optional_float(data.get("threshold")),
            include_metadata=bool(data.get("include_metadata", False)),
            force_refresh=bool(data.get("force_refresh", False)),
        )

    def cache_payload(self) -> Dict[str, Any]:
        """Options that influence the result (force_refresh does not)."""
        return {
            "limit": self.limit,
            "offset": self.offset,
            "threshold": self.threshold,
            "include_metadata": self.include_metadata,
        }


@dataclass(frozen=True)
class SearchMetadata:
    strategy: str
    cache_hit: bool
    search_engines: List[str]
    strategies_used: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class SearchResponse:
    """Full response returned by search()."""
    results: List[SearchResult]
    total: int
    query: str
    duration: float
    source: str
    suggestions: List[str] = field(default_factory=list)
    metadata: Optional[SearchMetadata] = None

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        if self.metadata is None:
            data.pop("metadata")
        return data


@dataclass(frozen=True)
class CacheStats:
    hits: int
    misses: int
    keys: int
