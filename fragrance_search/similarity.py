"""String similarity primitives built on rapidfuzz."""
import re
from typing import List

from rapidfuzz import fuzz
from rapidfuzz.distance import Levenshtein

_WORD_RE = re.compile(r"[\w']+")


def words_of(text: str) -> List[str]:
    """Split lowercased text into words, dropping punctuation."""
    return _WORD_RE.findall(text)


def edit_similarity(first: str, second: str) -> float:
    """Levenshtein similarity normalized by the longer string (1.0 = identical)."""
    if not first and not second:
        return 1.0
    return Levenshtein.normalized_similarity(first, second)


def edit_distance_ratio(first: str, second: str) -> float:
    """Levenshtein distance normalized by the longer string (0.0 = identical)."""
    return 1.0 - edit_similarity(first, second)


def string_similarity(first: str, second: str) -> float:
    """Overall string similarity in [0, 1], used for spelling suggestions."""
    return fuzz.ratio(first, second) / 100.0


def partial_distance(pattern: str, text: str) -> float:
    """Distance of the best-aligned substring of text to pattern, in [0, 1]."""
    return 1.0 - fuzz.partial_ratio(pattern, text) / 100.0


def is_word_start(text: str, position: int) -> bool:
    return position == 0 or not text[position - 1].isalnum()


def find_at_word_start(term: str, text: str) -> bool:
    """True if term occurs in text starting at a word boundary."""
    position = text.find(term)
    while position >= 0:
        if is_word_start(text, position):
            return True
        position = text.find(term, position + 1)
    return False


def char_overlap_ratio(query: str, text: str) -> float:
    """Share of the query's distinct non-space characters that also occur in text."""
    query_chars = set(re.sub(r"\s", "", query))
    if not query_chars:
        return 1.0
    text_chars = set(re.sub(r"\s", "", text))
    return len(query_chars & text_chars) / len(query_chars)
