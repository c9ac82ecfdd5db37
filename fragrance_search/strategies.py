"""Query-rewrite strategies tried by the local matcher, in priority order."""
from typing import Iterable, List

from fragrance_search.models import SearchStrategy
from fragrance_search.normalization import generate_search_variations
from fragrance_search.tuning import StrategyWeights
from fragrance_search.vocabulary import DEFAULT_VOCABULARY, Vocabulary, include_query


def generate_expanded_queries(
    query: str,
    brands: Iterable[str] = (),
    vocabulary: Vocabulary = DEFAULT_VOCABULARY,
) -> List[str]:
    """Nickname, abbreviation, spelling and typo expansions of a query.

    Args:
        query: Raw query
        brands: Brand names known to the catalog, for abbreviation expansion
        vocabulary: Lookup tables

    Returns:
        Deduplicated sub-queries
    """
    lower_query = query.lower().strip()
    expanded = vocabulary.nickname_expansions(lower_query)

    # Parts of compound queries
    if " " in lower_query:
        for part in lower_query.split():
            if len(part) > 2:
                expanded.append(include_query(part))

    for variation in generate_search_variations(lower_query, brands):
        if variation.lower() != lower_query and len(variation) > 2:
            expanded.append(include_query(variation.lower()))

    corrected = vocabulary.correct_typos(lower_query)
    if corrected != lower_query:
        expanded.append(corrected)

    return list(dict.fromkeys(expanded))


def build_strategies(
    query: str,
    key_terms: List[str],
    brands: Iterable[str] = (),
    vocabulary: Vocabulary = DEFAULT_VOCABULARY,
    weights: StrategyWeights = StrategyWeights(),
) -> List[SearchStrategy]:
    """Build the strategies for one search call.

    Args:
        query: Raw query
        key_terms: Key terms extracted from the query
        brands: Brand names known to the catalog
        vocabulary: Lookup tables
        weights: Strategy weights

    Returns:
        Strategies from most to least literal
    """
    lower_query = query.lower().strip()
    return [
        SearchStrategy(
            type="exact",
            weight=weights.exact,
            queries=(f'="{lower_query}"',),
            description="Exact match",
        ),
        SearchStrategy(
            type="partial",
            weight=weights.partial,
            queries=tuple(f"'{term}" for term in key_terms),
            description="Partial match on key terms",
        ),
        SearchStrategy(
            type="brand",
            weight=weights.brand,
            queries=tuple(vocabulary.brand_queries(key_terms)),
            description="Brand-based search",
        ),
        SearchStrategy(
            type="fuzzy",
            weight=weights.fuzzy,
            queries=(lower_query,),
            description="Fuzzy search",
        ),
        SearchStrategy(
            type="words",
            weight=weights.words,
            queries=(" | ".join(key_terms),),
            description="Individual word search",
        ),
        SearchStrategy(
            type="expanded",
            weight=weights.expanded,
            queries=tuple(generate_expanded_queries(query, brands, vocabulary)),
            description="Expanded search with abbreviations",
        ),
    ]
