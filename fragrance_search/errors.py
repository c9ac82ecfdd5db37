"""Exceptions raised by the search core."""


class SearchError(Exception):
    """Base class for search core failures."""


class InvalidQueryError(SearchError):
    """A query the fuzzy index cannot parse (empty pattern, unbalanced quote)."""


class RemoteEngineError(SearchError):
    """The remote search engine failed, timed out or returned garbage."""


class SnapshotUnavailableError(SearchError):
    """No catalog snapshot has ever been loaded, so local search cannot run."""
