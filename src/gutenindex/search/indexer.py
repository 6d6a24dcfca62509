"""Wipe-and-rebuild indexing of the processed corpus into Typesense."""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
import time
from typing import Any, Protocol, Sequence

from gutenindex.corpus.models import BookMeta
from gutenindex.corpus.store import CorpusPaths, load_book, load_book_index
from gutenindex.search.client import ImportResult, SearchEngineError, SearchEngineUnavailableError
from gutenindex.search.documents import book_document, chapter_document
from gutenindex.search.schema import BOOKS_COLLECTION, CHAPTERS_COLLECTION, collection_schemas


LOGGER = logging.getLogger(__name__)

BOOK_BATCH_SIZE = 100
CHAPTER_BATCH_SIZE = 200
_CHAPTER_PROGRESS_EVERY = 5000


class _SearchEngine(Protocol):
    def health(self) -> None:
        ...

    def delete_collection(self, name: str) -> bool:
        ...

    def create_collection(self, schema: dict[str, Any]) -> dict[str, Any]:
        ...

    def import_documents(self, name: str, documents: Sequence[dict[str, Any]]) -> list[ImportResult]:
        ...


@dataclass(slots=True)
class IndexStats:
    books_total: int = 0
    books_indexed: int = 0
    books_failed: int = 0
    books_missing: int = 0
    chapters_indexed: int = 0
    chapters_failed: int = 0
    book_batches: int = 0
    chapter_batches: int = 0
    duration_ms: int = 0
    error_details: list[dict[str, str]] = field(default_factory=list)

    def to_dict(self) -> dict[str, int | list[dict[str, str]]]:
        return {
            "books_total": self.books_total,
            "books_indexed": self.books_indexed,
            "books_failed": self.books_failed,
            "books_missing": self.books_missing,
            "chapters_indexed": self.chapters_indexed,
            "chapters_failed": self.chapters_failed,
            "book_batches": self.book_batches,
            "chapter_batches": self.chapter_batches,
            "duration_ms": self.duration_ms,
            "error_details": self.error_details,
        }


class IndexBuilder:
    """Recreates the books and chapters collections and bulk-imports documents.

    A failing document, or a whole failing batch, is counted and logged; the
    remaining batches are still attempted.
    """

    def __init__(
        self,
        engine: _SearchEngine,
        paths: CorpusPaths,
        *,
        book_batch_size: int = BOOK_BATCH_SIZE,
        chapter_batch_size: int = CHAPTER_BATCH_SIZE,
    ) -> None:
        if book_batch_size <= 0 or chapter_batch_size <= 0:
            raise ValueError("batch sizes must be positive")

        self._engine = engine
        self._paths = paths
        self._book_batch_size = book_batch_size
        self._chapter_batch_size = chapter_batch_size

    def build(self) -> IndexStats:
        started = time.perf_counter()
        stats = IndexStats()

        books = load_book_index(self._paths)
        self._engine.health()
        self.prepare_collections()

        stats.books_total = len(books)
        LOGGER.info("Found %d books", len(books))

        self.index_books(books, stats)
        LOGGER.info("Done: %d books indexed", stats.books_indexed)

        self.index_chapters(books, stats)
        LOGGER.info("Done: %d chapters indexed", stats.chapters_indexed)

        stats.duration_ms = int((time.perf_counter() - started) * 1000)
        return stats

    def prepare_collections(self) -> None:
        for name in (CHAPTERS_COLLECTION, BOOKS_COLLECTION):
            if self._engine.delete_collection(name):
                LOGGER.info("Deleted existing '%s' collection", name)
        for schema in collection_schemas():
            self._engine.create_collection(schema)
            LOGGER.info("Created '%s' collection", schema["name"])

    def index_books(self, books: list[BookMeta], stats: IndexStats) -> None:
        for start in range(0, len(books), self._book_batch_size):
            batch = [book_document(book) for book in books[start : start + self._book_batch_size]]
            indexed, failed = self._import_batch(BOOKS_COLLECTION, batch, stats)
            stats.book_batches += 1
            stats.books_indexed += indexed
            stats.books_failed += failed
            LOGGER.info("Progress: %d/%d books", min(start + len(batch), len(books)), len(books))

        if stats.books_failed:
            LOGGER.warning("%d book(s) failed to index", stats.books_failed)

    def index_chapters(self, books: list[BookMeta], stats: IndexStats) -> None:
        buffer: list[dict[str, Any]] = []
        seen = 0

        for meta in books:
            book = load_book(self._paths, meta.slug)
            if book is None:
                LOGGER.warning("Could not load book '%s', skipping its chapters", meta.slug)
                stats.books_missing += 1
                continue

            for chapter in book.chapters:
                buffer.append(chapter_document(meta, chapter))
                seen += 1
                if len(buffer) >= self._chapter_batch_size:
                    self._flush_chapters(buffer, stats)
                    buffer = []
                if seen % _CHAPTER_PROGRESS_EVERY == 0:
                    LOGGER.info("Progress: %d chapters processed", seen)

        if buffer:
            self._flush_chapters(buffer, stats)

        if stats.chapters_failed:
            LOGGER.warning("%d chapter(s) failed to index", stats.chapters_failed)

    def _flush_chapters(self, buffer: list[dict[str, Any]], stats: IndexStats) -> None:
        indexed, failed = self._import_batch(CHAPTERS_COLLECTION, buffer, stats)
        stats.chapter_batches += 1
        stats.chapters_indexed += indexed
        stats.chapters_failed += failed

    def _import_batch(self, collection: str, batch: list[dict[str, Any]], stats: IndexStats) -> tuple[int, int]:
        try:
            results = self._engine.import_documents(collection, batch)
        except (SearchEngineError, SearchEngineUnavailableError) as exc:
            LOGGER.error("Batch import into '%s' failed: %s", collection, exc)
            stats.error_details.append(
                {
                    "collection": collection,
                    "ids": ",".join(str(document["id"]) for document in batch),
                    "error": str(exc),
                }
            )
            return 0, len(batch)

        indexed = 0
        failed = 0
        for document, result in zip(batch, results):
            if result.success:
                indexed += 1
                continue
            failed += 1
            LOGGER.error("Failed to index %s document '%s': %s", collection, document["id"], result.error)
            stats.error_details.append(
                {"collection": collection, "ids": str(document["id"]), "error": str(result.error)}
            )
        failed += max(0, len(batch) - len(results))
        return indexed, failed
