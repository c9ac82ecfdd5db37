"""Key term extraction, the relevance gate for index hits and match classification."""
from typing import List, Optional

from fragrance_search.models import CatalogRecord, MatchType
from fragrance_search.similarity import (
    char_overlap_ratio,
    edit_similarity,
    find_at_word_start,
)
from fragrance_search.tuning import RelevanceThresholds
from fragrance_search.vocabulary import DEFAULT_VOCABULARY, Vocabulary


def extract_key_terms(query: str, vocabulary: Vocabulary = DEFAULT_VOCABULARY) -> List[str]:
    """Extract the meaningful terms of a query.

    Lowercases and splits on whitespace, drops single characters and stop
    words. Falls back to the less filtered list rather than returning no
    terms for a non-empty query.

    Args:
        query: Raw query
        vocabulary: Source of stop words

    Returns:
        Key terms in query order
    """
    tokens = query.lower().strip().split()
    terms = [token for token in tokens if len(token) > 1]
    key_terms = [term for term in terms if not vocabulary.is_stop_word(term)]
    return key_terms or terms or tokens


def _has_word_overlap(query_words: List[str], item_words: List[str], similarity: float) -> bool:
    return any(
        query_word in item_word
        or item_word in query_word
        or edit_similarity(query_word, item_word) > similarity
        for query_word in query_words
        for item_word in item_words
    )


def is_relevant_match(
    query: str,
    record: CatalogRecord,
    distance: float,
    key_terms: Optional[List[str]] = None,
    thresholds: Optional[RelevanceThresholds] = None,
    vocabulary: Vocabulary = DEFAULT_VOCABULARY,
) -> bool:
    """Decide whether an index hit is plausible enough to keep.

    Args:
        query: Raw query
        record: Candidate record
        distance: Raw index distance (0 = exact)
        key_terms: Precomputed key terms of the query
        thresholds: Gate thresholds

    Returns:
        False if the hit should be discarded as noise
    """
    thresholds = thresholds or RelevanceThresholds()
    if key_terms is None:
        key_terms = extract_key_terms(query, vocabulary)

    lower_query = query.lower().strip()
    lower_name = record.name.lower()
    lower_brand = record.brand.lower()
    combined = f"{lower_name} {lower_brand}"

    # Poor matches need a key term literally present
    if distance > thresholds.poor_match:
        if not any(term in lower_name or term in lower_brand for term in key_terms):
            return False

    if char_overlap_ratio(lower_query, combined) < thresholds.min_char_overlap and distance > thresholds.weak_match:
        return False

    min_length = thresholds.min_word_length
    query_words = [word for word in lower_query.split() if len(word) >= min_length]
    item_words = [word for word in combined.split() if len(word) >= min_length]

    if distance > thresholds.weak_match and not _has_word_overlap(query_words, item_words, thresholds.word_similarity):
        return False

    # A single short term must match at a word boundary or resemble a whole
    # word, so "eros" does not pull in "kerosene"
    if len(key_terms) == 1 and len(key_terms[0]) <= thresholds.short_term_max_length:
        term = key_terms[0]
        has_direct_match = find_at_word_start(term, lower_name) or find_at_word_start(term, lower_brand)
        has_similar_word = any(
            word.startswith(term)
            or term.startswith(word)
            or edit_similarity(term, word) > thresholds.short_term_similarity
            for word in item_words
        )
        if not has_direct_match and not has_similar_word and distance > thresholds.short_term_distance:
            return False

    return True


def classify_match(
    query: str,
    name: str,
    brand: str,
    vocabulary: Vocabulary = DEFAULT_VOCABULARY,
    include_brand: bool = True,
) -> MatchType:
    """Classify a result by direct string containment.

    The raw query is tried first, then its typo-corrected form, so a
    misspelled query can still classify as an exact match.

    Args:
        query: Raw query
        name: Result name
        brand: Result brand
        vocabulary: Source of typo corrections
        include_brand: Whether to report brand-only matches as "brand"

    Returns:
        "exact", "partial", "brand" or "fuzzy"
    """
    lower_query = query.lower().strip()
    lower_name = name.lower()
    lower_brand = brand.lower()
    forms = [form for form in dict.fromkeys((lower_query, vocabulary.correct_typos(lower_query))) if form]

    if any(form in (lower_name, lower_brand) for form in forms):
        return "exact"

    if any(form in lower_name or form in lower_brand for form in forms):
        return "partial"

    if include_brand and any(form.split()[0] in lower_brand for form in forms):
        return "brand"

    return "fuzzy"
