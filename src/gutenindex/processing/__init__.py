"""Boilerplate stripping, chapter segmentation and slug assignment."""

from .processor import DocumentProcessor, ProcessingStats, build_book, prepare_text

__all__ = ["DocumentProcessor", "ProcessingStats", "build_book", "prepare_text"]
