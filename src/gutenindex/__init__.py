"""Ingestion and indexing pipeline for public-domain book corpora."""

__version__ = "0.1.0"
