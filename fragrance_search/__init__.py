"""Fuzzy search and relevance ranking for the fragrance catalog."""
from fragrance_search.models import (
    CatalogRecord,
    SearchOptions,
    SearchResponse,
    SearchResult,
)
from fragrance_search.service import SearchService, create_search_service

__all__ = [
    "CatalogRecord",
    "SearchOptions",
    "SearchResponse",
    "SearchResult",
    "SearchService",
    "create_search_service",
]
