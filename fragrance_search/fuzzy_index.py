"""Approximate string-matching index over catalog records."""
import re
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

from fragrance_search.errors import InvalidQueryError
from fragrance_search.models import CatalogRecord, IndexHit
from fragrance_search.similarity import (
    edit_distance_ratio,
    find_at_word_start,
    is_word_start,
    partial_distance,
    words_of,
)
from fragrance_search.tuning import IndexTuning

# Quoted phrase with optional operator, or a bare token
_TOKEN_RE = re.compile(r"([='^]?)\"([^\"]*)\"|(\S+)")

_OPERATORS = {
    "=": "exact",
    "'": "include",
    "^": "prefix",
}


@dataclass(frozen=True)
class QueryToken:
    operator: str  # exact | include | prefix | fuzzy
    text: str


def parse_extended_query(query: str) -> List[List[QueryToken]]:
    """Parse an extended query into OR-ed groups of AND-ed tokens.

    Syntax: ``="phrase"`` exact field match, ``'term`` substring match,
    ``^term`` prefix match, bare terms are fuzzy, ``a | b`` is OR.

    Args:
        query: Query string

    Returns:
        List of alternatives, each a list of tokens that must all match

    Raises:
        InvalidQueryError: On empty alternatives, empty patterns or unbalanced quotes
    """
    groups = []
    for alternative in query.split("|"):
        if not alternative.strip():
            raise InvalidQueryError(f"Empty alternative in query {query!r}")

        tokens = []
        for match in _TOKEN_RE.finditer(alternative):
            prefix, quoted, bare = match.groups()
            if quoted is not None:
                operator, text = _OPERATORS.get(prefix, "fuzzy"), quoted
            elif bare[0] in _OPERATORS:
                operator, text = _OPERATORS[bare[0]], bare[1:]
            else:
                operator, text = "fuzzy", bare

            text = text.strip().lower()
            if not text:
                raise InvalidQueryError(f"Empty pattern in query {query!r}")
            if '"' in text:
                raise InvalidQueryError(f"Unbalanced quote in query {query!r}")
            tokens.append(QueryToken(operator, text))

        groups.append(tokens)
    return groups


@dataclass(frozen=True)
class _IndexedRecord:
    record: CatalogRecord
    values: Dict[str, str]
    words: Dict[str, List[str]]


class FuzzyIndex:
    """Weighted-field fuzzy index.

    Every key that matches contributes ``distance ** normalized_weight``
    to a product, so a record matching on several fields ranks above one
    matching on a single field, and any exact field match yields 0.
    """

    def __init__(self, records: Sequence[CatalogRecord], tuning: Optional[IndexTuning] = None):
        self._tuning = tuning or IndexTuning()
        self._weight_total = sum(key.weight for key in self._tuning.keys) or 1.0
        self._entries = [self._index_record(record) for record in records]

    def __len__(self) -> int:
        return len(self._entries)

    def _index_record(self, record: CatalogRecord) -> _IndexedRecord:
        values = {}
        words = {}
        for key in self._tuning.keys:
            value = getattr(record, key.name, None)
            if value:
                lowered = str(value).lower().strip()
                values[key.name] = lowered
                words[key.name] = words_of(lowered)
        return _IndexedRecord(record=record, values=values, words=words)

    def search(self, query: str, limit: int, threshold: Optional[float] = None) -> List[IndexHit]:
        """Search the index.

        Args:
            query: Extended query string
            limit: Maximum number of hits
            threshold: Optional override of the fuzzy match threshold

        Returns:
            Hits sorted by distance (stable with respect to record order)

        Raises:
            InvalidQueryError: If the query cannot be parsed
        """
        groups = parse_extended_query(query)
        if threshold is None:
            threshold = self._tuning.threshold

        hits = []
        for entry in self._entries:
            distance = self._score_entry(groups, entry, threshold)
            if distance is not None:
                hits.append(IndexHit(record=entry.record, distance=distance))

        hits.sort(key=lambda hit: hit.distance)
        return hits[:limit]

    def _score_entry(
        self,
        groups: List[List[QueryToken]],
        entry: _IndexedRecord,
        threshold: float,
    ) -> Optional[float]:
        total = 1.0
        matched = False

        for key in self._tuning.keys:
            value = entry.values.get(key.name)
            if not value:
                continue

            key_distance = None
            for group in groups:
                group_distance = self._match_group(group, value, entry.words[key.name], threshold)
                if group_distance is not None and (key_distance is None or group_distance < key_distance):
                    key_distance = group_distance

            if key_distance is None:
                continue

            matched = True
            total *= key_distance ** (key.weight / self._weight_total)

        return total if matched else None

    def _match_group(
        self,
        group: List[QueryToken],
        value: str,
        words: List[str],
        threshold: float,
    ) -> Optional[float]:
        distances = []
        for token in group:
            distance = self._match_token(token, value, words, threshold)
            if distance is None:
                return None
            distances.append(distance)
        return sum(distances) / len(distances)

    def _match_token(
        self,
        token: QueryToken,
        value: str,
        words: List[str],
        threshold: float,
    ) -> Optional[float]:
        if token.operator == "exact":
            return 0.0 if value == token.text else None

        if token.operator == "prefix":
            return 0.0 if value.startswith(token.text) else None

        if token.operator == "include":
            position = value.find(token.text)
            if position < 0:
                return None
            if is_word_start(value, position) or find_at_word_start(token.text, value):
                return 0.0
            return self._tuning.mid_word_distance

        return self._fuzzy_distance(token.text, value, words, threshold)

    def _fuzzy_distance(
        self,
        text: str,
        value: str,
        words: List[str],
        threshold: float,
    ) -> Optional[float]:
        if len(text) < self._tuning.min_match_char_length:
            return None

        if find_at_word_start(text, value):
            return 0.0

        if " " in text:
            distance = partial_distance(text, value)
        else:
            # Whole word or same-length word prefix, whichever is closer
            distance = min(
                (
                    min(edit_distance_ratio(text, word), edit_distance_ratio(text, word[:len(text)]))
                    for word in words
                ),
                default=1.0,
            )

        return distance if distance <= threshold else None
