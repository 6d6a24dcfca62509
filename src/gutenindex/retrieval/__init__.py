"""Raw text retrieval for catalog entries."""

from .downloader import DownloadOutcome, RetrievalStats, TextRetriever, build_client

__all__ = ["DownloadOutcome", "RetrievalStats", "TextRetriever", "build_client"]
