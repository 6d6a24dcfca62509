"""Typesense schema, client and corpus indexing."""

from .client import ImportResult, SearchEngineError, SearchEngineUnavailableError, TypesenseClient
from .config import TypesenseSettings
from .indexer import IndexBuilder, IndexStats

__all__ = [
    "ImportResult",
    "IndexBuilder",
    "IndexStats",
    "SearchEngineError",
    "SearchEngineUnavailableError",
    "TypesenseClient",
    "TypesenseSettings",
]
