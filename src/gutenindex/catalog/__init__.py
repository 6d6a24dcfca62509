"""Catalog acquisition from the remote books API."""

from .fetcher import CatalogFetcher, CatalogFetchError, CatalogFetchResult, CatalogFetchStats

__all__ = ["CatalogFetcher", "CatalogFetchError", "CatalogFetchResult", "CatalogFetchStats"]
