"""Corpus records, artifact storage and read access."""

from .models import Author, Book, BookMeta, CatalogEntry, Chapter, FailedDownload, FormatLink
from .store import CorpusError, CorpusPaths

__all__ = [
    "Author",
    "Book",
    "BookMeta",
    "CatalogEntry",
    "Chapter",
    "CorpusError",
    "CorpusPaths",
    "FailedDownload",
    "FormatLink",
]
