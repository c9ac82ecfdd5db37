"""Search-term normalization and spelling variations for fragrance names."""
import re
from typing import Dict, Iterable, List


# Common fragrance naming patterns and their alternate spellings
FRAGRANCE_PATTERNS: Dict[str, Dict[str, List[str]]] = {
    "apostrophe": {
        "j'adore": ["jadore", "j adore", "j-adore"],
        "l'eau": ["leau", "l eau", "l-eau"],
        "l'homme": ["lhomme", "l homme", "l-homme"],
        "d'amour": ["damour", "d amour", "d-amour"],
        "l'instant": ["linstant", "l instant", "l-instant"],
        "l'imperatrice": ["limperatrice", "l imperatrice", "l-imperatrice"],
    },
    "numbers": {
        "no 5": ["no5", "no. 5", "number 5", "n5"],
        "no 1": ["no1", "no. 1", "number 1", "n1"],
        "ck one": ["ck 1", "calvin klein one", "calvin klein 1"],
        "212": ["two twelve", "two one two"],
    },
    "concentrations": {
        "eau de parfum": ["edp", "parfum"],
        "eau de toilette": ["edt", "toilette"],
        "eau de cologne": ["edc", "cologne"],
        "parfum": ["extrait", "pure parfum"],
        "eau fraiche": ["fresh", "fraiche"],
    },
}

# Words skipped when building a brand abbreviation
_ABBREVIATION_SKIP = {"and", "de", "la", "le", "du", "des"}


def normalize_search_term(term: str) -> str:
    """Normalize a search term for comparison.

    Lowercases, drops apostrophes, spells out ampersands and turns dots,
    hyphens and underscores into spaces.

    Args:
        term: Raw search term

    Returns:
        Normalized term with single spaces
    """
    normalized = term.lower().strip()
    normalized = re.sub(r"['‘’`]", "", normalized)
    normalized = normalized.replace("&", " and ")
    normalized = re.sub(r"[.\-_]", " ", normalized)
    return re.sub(r"\s+", " ", normalized).strip()


def brand_abbreviations(brand_name: str) -> List[str]:
    """Initialisms for a multi-word brand ("yves-saint-laurent" -> "ysl", "y.s.l").

    Args:
        brand_name: Brand name, words separated by spaces or hyphens

    Returns:
        Abbreviations, empty for single-word brands
    """
    words = [
        word
        for word in re.split(r"[-\s]+", brand_name.lower().replace("&", " "))
        if word and word not in _ABBREVIATION_SKIP
    ]
    if len(words) < 2:
        return []

    initials = [word[0] for word in words]
    abbreviations = ["".join(initials)]
    if len(words) <= 4:
        abbreviations.append(".".join(initials))
    return abbreviations


def expand_abbreviation(abbreviation: str, brands: Iterable[str]) -> List[str]:
    """Known brands whose initialism equals the abbreviation."""
    expansions = []
    for brand in brands:
        if abbreviation.lower() in brand_abbreviations(brand):
            expansions.append(brand)
            expansions.append(brand.replace("-", " ").title())
    return expansions


def generate_search_variations(search_term: str, brands: Iterable[str] = ()) -> List[str]:
    """Alternate spellings a user may mean by a search term.

    Args:
        search_term: Raw search term
        brands: Known brand names for abbreviation expansion

    Returns:
        Variations including the lowercased and normalized term itself
    """
    variations: Dict[str, None] = {}
    lower_term = search_term.lower().strip()
    normalized = normalize_search_term(search_term)

    variations[lower_term] = None
    variations[normalized] = None

    for patterns in FRAGRANCE_PATTERNS.values():
        for pattern, alternates in patterns.items():
            pattern_normalized = normalize_search_term(pattern)
            if normalized in pattern_normalized or pattern_normalized in normalized:
                variations[pattern] = None
                for alternate in alternates:
                    variations[alternate] = None

            for alternate in alternates:
                alternate_normalized = normalize_search_term(alternate)
                if normalized in alternate_normalized or alternate_normalized in normalized:
                    variations[pattern] = None
                    variations[alternate] = None

    words = lower_term.split()
    if len(words) == 1 and 2 <= len(words[0]) <= 4:
        # Short single word may be a brand abbreviation
        for expansion in expand_abbreviation(words[0], brands):
            variations[expansion] = None
    elif len(words) >= 2:
        for abbreviation in brand_abbreviations(lower_term):
            variations[abbreviation] = None

    if " and " in normalized:
        variations[normalized.replace(" and ", " & ")] = None
        variations[normalized.replace(" and ", "")] = None
    if "&" in search_term:
        variations[search_term.replace("&", " and ")] = None
        variations[re.sub(r"\s*&\s*", "", search_term)] = None

    return [variation for variation in variations if variation]
