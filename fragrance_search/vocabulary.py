"""Static lookup tables used by query rewriting, scoring and suggestions."""
import re
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import FrozenSet, List, Mapping, Optional, Tuple


STOP_WORDS = frozenset({
    "de", "du", "la", "le", "by", "for",
    "men", "women", "unisex", "eau", "parfum", "toilette",
})

# Applied per word before scoring
TYPO_CORRECTIONS = {
    "eors": "eros",
    "sagave": "sauvage",
    "savage": "sauvage",
    "aventis": "aventus",
    "chanell": "chanel",
    "versachi": "versace",
    "farenheit": "fahrenheit",
    "blu": "blue",
    "bleu": "blue",
}

# Whole-query lookups offered as suggestions
SUGGESTION_TYPOS = {
    "sagave": "sauvage",
    "savage": "sauvage",
    "aventis": "aventus",
    "chanell": "chanel",
    "versachi": "versace",
    "farenheit": "fahrenheit",
    "aqua": "acqua",
    "erose": "eros",
    "flam": "flame",
    "blu": "blue",
    "bleu": "blue",
}

COMMON_TERMS = (
    "chanel", "dior", "versace", "creed", "sauvage",
    "aventus", "bleu", "eros", "flame", "acqua",
)

BRAND_ALIASES = {
    "ysl": "yves saint laurent",
    "tf": "tom ford",
    "jpg": "jean paul gaultier",
    "ck": "calvin klein",
    "dg": "dolce gabbana",
    "adg": "acqua di gio",
    "versace": "versace",
    "chanel": "chanel",
    "dior": "dior",
    "creed": "creed",
}

FRAGRANCE_NICKNAMES = {
    "adg": "acqua di gio",
    "blu": "bleu de chanel",
    "blue chanel": "bleu de chanel",
    "sauvage": "dior sauvage",
    "aventus": "creed aventus",
    "one million": "1 million",
    "la nuit": "la nuit de lhomme",
    "eros": "versace eros",
    "flame": "eros flame",
}

# Pushed to the remote engine, which applies them server-side
REMOTE_SYNONYMS = {
    "ysl": ["yves saint laurent", "saint laurent"],
    "tf": ["tom ford"],
    "jpg": ["jean paul gaultier", "gaultier"],
    "ck": ["calvin klein"],
    "dg": ["dolce gabbana", "dolce & gabbana"],
    "chanel blue": ["bleu de chanel"],
    "blue chanel": ["bleu de chanel"],
    "sauvage": ["dior sauvage"],
    "aventus": ["creed aventus"],
    "adg": ["acqua di gio"],
    "one million": ["1 million"],
    "la nuit": ["la nuit de lhomme"],
}


def _frozen(mapping) -> Mapping:
    return MappingProxyType(dict(mapping))


def _dedupe(items) -> List[str]:
    return list(dict.fromkeys(items))


def include_query(term: str) -> str:
    """Include-match query for a term, quoted when it spans words."""
    return f"'\"{term}\"" if " " in term else f"'{term}"


@dataclass(frozen=True)
class Vocabulary:
    """Lookup interface over the static tables.

    Swap or extend the tables by constructing a new Vocabulary; the
    matcher and scorer only go through these methods.
    """
    stop_words: FrozenSet[str] = STOP_WORDS
    typo_corrections: Mapping[str, str] = field(default_factory=lambda: _frozen(TYPO_CORRECTIONS))
    suggestion_typos: Mapping[str, str] = field(default_factory=lambda: _frozen(SUGGESTION_TYPOS))
    common_terms: Tuple[str, ...] = COMMON_TERMS
    brand_aliases: Mapping[str, str] = field(default_factory=lambda: _frozen(BRAND_ALIASES))
    nicknames: Mapping[str, str] = field(default_factory=lambda: _frozen(FRAGRANCE_NICKNAMES))
    remote_synonyms: Mapping[str, List[str]] = field(default_factory=lambda: _frozen(REMOTE_SYNONYMS))

    def is_stop_word(self, term: str) -> bool:
        return term in self.stop_words

    def correct_typos(self, text: str) -> str:
        """Replace known misspellings word by word.

        Args:
            text: Lowercased text

        Returns:
            Text with each misspelled word replaced by its correction
        """
        return re.sub(
            r"[\w']+",
            lambda match: self.typo_corrections.get(match.group(0), match.group(0)),
            text,
        )

    def suggestion_for(self, query: str) -> Optional[str]:
        return self.suggestion_typos.get(query.lower().strip())

    def brand_queries(self, terms: List[str]) -> List[str]:
        """Include-match queries that surface whole brand catalogs.

        Args:
            terms: Key terms of the query

        Returns:
            Deduplicated sub-queries, aliases first, then the terms themselves
        """
        queries = []
        brand_names = _dedupe(self.brand_aliases.values())

        for term in terms:
            if term in self.brand_aliases:
                queries.append(include_query(self.brand_aliases[term]))

            # Term could be part of a brand name
            if len(term) > 2:
                for brand_name in brand_names:
                    if term in brand_name:
                        queries.append(include_query(brand_name))

        for term in terms:
            if len(term) > 2:
                queries.append(include_query(term))

        return _dedupe(queries)

    def nickname_expansions(self, query: str) -> List[str]:
        """Full names for nicknames contained in the query, as fuzzy and include queries."""
        lower_query = query.lower()
        expanded = []
        for nickname, full_name in self.nicknames.items():
            if nickname in lower_query:
                expanded.append(full_name)
                expanded.append(include_query(full_name))
        return _dedupe(expanded)


DEFAULT_VOCABULARY = Vocabulary()
