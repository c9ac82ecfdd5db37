"""Tunable parameters of the local matcher.

The values are empirically tuned and interact non-linearly. Change them
only against a labelled query set.
"""
from dataclasses import dataclass, field
from typing import Tuple


@dataclass(frozen=True)
class IndexKey:
    name: str
    weight: float


@dataclass(frozen=True)
class IndexTuning:
    """Fuzzy index parameters."""
    keys: Tuple[IndexKey, ...] = (
        IndexKey("name", 0.7),
        IndexKey("brand", 0.3),
        IndexKey("concentration", 0.1),
    )
    threshold: float = 0.4  # Max fuzzy token distance accepted as a match
    min_match_char_length: int = 3
    mid_word_distance: float = 0.5  # Include match that lands inside a word


@dataclass(frozen=True)
class StrategyWeights:
    exact: float = 1.0
    partial: float = 0.9
    brand: float = 0.8
    fuzzy: float = 0.7
    words: float = 0.6
    expanded: float = 0.5
    max_hits_per_query: int = 100
    hits_per_query_multiplier: int = 2  # Per sub-query cap = multiplier x limit


@dataclass(frozen=True)
class RelevanceThresholds:
    """Relevance gate applied to every index hit before ranking."""
    poor_match: float = 0.7
    min_char_overlap: float = 0.5
    weak_match: float = 0.5
    word_similarity: float = 0.7
    min_word_length: int = 3
    short_term_max_length: int = 4
    short_term_similarity: float = 0.8
    short_term_distance: float = 0.3


@dataclass(frozen=True)
class ScoringFactors:
    """Multipliers of the final re-ranking cascade (lower score = better)."""
    floor: float = 0.001
    substring: float = 0.01
    term_prefix: float = 0.05
    key_term_base: float = 0.02
    key_term_span: float = 0.08
    partial_base: float = 0.5
    partial_step: float = 0.1
    partial_floor: float = 0.15
    brand_family: float = 0.2
    fragrance_line: float = 0.1
    # (threshold, multiplier), first threshold exceeded wins
    popularity_tiers: Tuple[Tuple[float, float], ...] = ((7.0, 0.85), (5.0, 0.9))
    rating_tiers: Tuple[Tuple[float, float], ...] = ((4.5, 0.9), (4.0, 0.95))
    verified: float = 0.95
    recency_year: int = 2020
    recency: float = 0.98


@dataclass(frozen=True)
class SearchTuning:
    index: IndexTuning = field(default_factory=IndexTuning)
    strategies: StrategyWeights = field(default_factory=StrategyWeights)
    relevance: RelevanceThresholds = field(default_factory=RelevanceThresholds)
    scoring: ScoringFactors = field(default_factory=ScoringFactors)
    suggestion_similarity: float = 0.6


DEFAULT_TUNING = SearchTuning()
