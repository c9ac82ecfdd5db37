"""Final re-ranking score for local matches.

The score starts from the strategy-adjusted index distance and is
multiplied by a fixed cascade of factors. Lower is better. Each factor is
a pure function so it can be tested on its own.
"""
from dataclasses import dataclass
from typing import Tuple

from fragrance_search.models import CatalogRecord
from fragrance_search.relevance import extract_key_terms
from fragrance_search.tuning import ScoringFactors
from fragrance_search.vocabulary import DEFAULT_VOCABULARY, Vocabulary


@dataclass(frozen=True)
class QueryFeatures:
    """Query-side inputs of the cascade, computed once per search."""
    lower_query: str
    corrected_query: str
    key_terms: Tuple[str, ...]

    @classmethod
    def from_query(cls, query: str, vocabulary: Vocabulary = DEFAULT_VOCABULARY) -> "QueryFeatures":
        lower_query = query.lower().strip()
        return cls(
            lower_query=lower_query,
            corrected_query=vocabulary.correct_typos(lower_query),
            key_terms=tuple(extract_key_terms(query, vocabulary)),
        )


def is_exact_match(features: QueryFeatures, name: str, brand: str) -> bool:
    return features.corrected_query in (name, brand)


def substring_factor(features: QueryFeatures, name: str, factors: ScoringFactors) -> float:
    return factors.substring if features.corrected_query in name else 1.0


def key_term_factor(features: QueryFeatures, name: str, brand: str, factors: ScoringFactors) -> float:
    """Boost per key term found, extra per term that starts the name or brand."""
    multiplier = 1.0
    matches = 0
    for term in features.key_terms:
        if term in name or term in brand:
            matches += 1
            if name.startswith(term) or brand.startswith(term):
                multiplier *= factors.term_prefix

    if matches:
        match_ratio = matches / len(features.key_terms)
        multiplier *= factors.key_term_base + match_ratio * factors.key_term_span
    return multiplier


def partial_word_factor(features: QueryFeatures, name: str, brand: str, factors: ScoringFactors) -> float:
    """Boost for terms that occur inside a longer word."""
    words = name.split() + brand.split()
    partial_matches = sum(
        1
        for term in features.key_terms
        for word in words
        if term in word and word != term
    )
    if not partial_matches:
        return 1.0
    return max(factors.partial_floor, factors.partial_base - partial_matches * factors.partial_step)


def brand_family_factor(features: QueryFeatures, brand: str, factors: ScoringFactors) -> float:
    if features.key_terms and features.key_terms[0] in brand:
        return factors.brand_family
    return 1.0


def fragrance_line_factor(features: QueryFeatures, name: str, factors: ScoringFactors) -> float:
    """Multi-term queries also lift every variant of the first term's line."""
    if len(features.key_terms) > 1 and features.key_terms[0] in name:
        return factors.fragrance_line
    return 1.0


def _tier_factor(value, tiers: Tuple[Tuple[float, float], ...]) -> float:
    value = value or 0.0
    for threshold, multiplier in tiers:
        if value > threshold:
            return multiplier
    return 1.0


def popularity_factor(record: CatalogRecord, factors: ScoringFactors) -> float:
    return _tier_factor(record.popularity, factors.popularity_tiers)


def rating_factor(record: CatalogRecord, factors: ScoringFactors) -> float:
    return _tier_factor(record.rating, factors.rating_tiers)


def verified_factor(record: CatalogRecord, factors: ScoringFactors) -> float:
    return factors.verified if record.verified else 1.0


def recency_factor(record: CatalogRecord, factors: ScoringFactors) -> float:
    if record.year and record.year > factors.recency_year:
        return factors.recency
    return 1.0


def calculate_intelligent_score(
    features: QueryFeatures,
    record: CatalogRecord,
    adjusted_score: float,
    factors: ScoringFactors = ScoringFactors(),
) -> float:
    """Compute the final ranking score of a candidate.

    Args:
        features: Query features
        record: Candidate record
        adjusted_score: Index distance divided by the strategy weight
        factors: Cascade multipliers

    Returns:
        Score >= factors.floor; lower ranks first
    """
    name = record.name.lower()
    brand = record.brand.lower()

    if is_exact_match(features, name, brand):
        return factors.floor

    cascade = (
        substring_factor(features, name, factors),
        key_term_factor(features, name, brand, factors),
        partial_word_factor(features, name, brand, factors),
        brand_family_factor(features, brand, factors),
        fragrance_line_factor(features, name, factors),
        popularity_factor(record, factors),
        rating_factor(record, factors),
        verified_factor(record, factors),
        recency_factor(record, factors),
    )

    score = adjusted_score
    for multiplier in cascade:
        score *= multiplier
    return max(score, factors.floor)
