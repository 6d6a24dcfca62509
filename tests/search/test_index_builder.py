from __future__ import annotations

from pathlib import Path
from typing import Any, Sequence

import pytest

from gutenindex.corpus.models import Author, Book, BookMeta, Chapter
from gutenindex.corpus.store import CorpusError, CorpusPaths, save_book, save_book_index
from gutenindex.search.client import ImportResult, SearchEngineError, SearchEngineUnavailableError
from gutenindex.search.indexer import IndexBuilder


class _FakeEngine:
    def __init__(
        self,
        *,
        healthy: bool = True,
        existing: tuple[str, ...] = ("books", "chapters"),
        failing_ids: frozenset[str] = frozenset(),
        failing_batches: int = 0,
    ) -> None:
        self.healthy = healthy
        self.existing = set(existing)
        self.failing_ids = failing_ids
        self.failing_batches = failing_batches
        self.calls: list[tuple[str, str]] = []
        self.imports: list[tuple[str, list[dict[str, Any]]]] = []

    def health(self) -> None:
        self.calls.append(("health", ""))
        if not self.healthy:
            raise SearchEngineUnavailableError(url="http://search.test/health", message="down")

    def delete_collection(self, name: str) -> bool:
        self.calls.append(("delete", name))
        if name in self.existing:
            self.existing.remove(name)
            return True
        return False

    def create_collection(self, schema: dict[str, Any]) -> dict[str, Any]:
        self.calls.append(("create", schema["name"]))
        self.existing.add(schema["name"])
        return {"name": schema["name"]}

    def import_documents(self, name: str, documents: Sequence[dict[str, Any]]) -> list[ImportResult]:
        self.imports.append((name, list(documents)))
        if self.failing_batches:
            self.failing_batches -= 1
            raise SearchEngineError(status_code=500, message="import exploded")
        return [
            ImportResult(success=False, error="rejected") if document["id"] in self.failing_ids else ImportResult(success=True)
            for document in documents
        ]


def _meta(index: int, *, chapters: int = 0, birth_year: int | None = 1850) -> BookMeta:
    return BookMeta(
        id=index,
        slug=f"book-{index}",
        title=f"Book {index}",
        author=Author(name="Author", birth_year=birth_year),
        subjects=["Fiction"],
        bookshelves=[],
        total_chapters=chapters,
        total_word_count=chapters * 10,
        language="en",
    )


def _write_book(paths: CorpusPaths, meta: BookMeta) -> None:
    chapters = [
        Chapter(number=number, title=f"Chapter {number}", content="ten words " * 5, word_count=10)
        for number in range(1, meta.total_chapters + 1)
    ]
    save_book(
        paths,
        Book(
            id=meta.id,
            slug=meta.slug,
            title=meta.title,
            author=meta.author,
            subjects=meta.subjects,
            bookshelves=meta.bookshelves,
            total_chapters=meta.total_chapters,
            total_word_count=meta.total_word_count,
            language=meta.language,
            chapters=chapters,
        ),
    )


def test_build_recreates_collections_and_batches_books(tmp_path: Path) -> None:
    paths = CorpusPaths(tmp_path)
    save_book_index(paths, [_meta(index) for index in range(250)])
    engine = _FakeEngine()

    stats = IndexBuilder(engine, paths).build()

    assert engine.calls[:5] == [
        ("health", ""),
        ("delete", "chapters"),
        ("delete", "books"),
        ("create", "books"),
        ("create", "chapters"),
    ]
    book_batches = [len(documents) for name, documents in engine.imports if name == "books"]
    assert book_batches == [100, 100, 50]
    assert stats.books_total == 250
    assert stats.books_indexed == 250
    assert stats.book_batches == 3
    assert stats.books_missing == 250


def test_chapters_are_flushed_in_batches_with_composite_ids(tmp_path: Path) -> None:
    paths = CorpusPaths(tmp_path)
    metas = [_meta(index, chapters=150) for index in range(3)]
    save_book_index(paths, metas)
    for meta in metas:
        _write_book(paths, meta)
    engine = _FakeEngine(existing=())

    stats = IndexBuilder(engine, paths).build()

    chapter_imports = [documents for name, documents in engine.imports if name == "chapters"]
    assert [len(documents) for documents in chapter_imports] == [200, 200, 50]
    assert chapter_imports[0][0]["id"] == "book-0:1"
    assert chapter_imports[-1][-1]["id"] == "book-2:150"
    assert stats.chapters_indexed == 450
    assert stats.chapter_batches == 3


def test_failed_documents_are_counted_and_other_batches_continue(tmp_path: Path) -> None:
    paths = CorpusPaths(tmp_path)
    save_book_index(paths, [_meta(index) for index in range(5)])
    engine = _FakeEngine(failing_ids=frozenset({"book-3"}))

    stats = IndexBuilder(engine, paths, book_batch_size=2).build()

    assert stats.book_batches == 3
    assert stats.books_indexed == 4
    assert stats.books_failed == 1
    assert stats.error_details == [{"collection": "books", "ids": "book-3", "error": "rejected"}]


def test_rejected_batch_counts_every_document_as_failed(tmp_path: Path) -> None:
    paths = CorpusPaths(tmp_path)
    save_book_index(paths, [_meta(index) for index in range(4)])
    engine = _FakeEngine(failing_batches=1)

    stats = IndexBuilder(engine, paths, book_batch_size=2).build()

    assert stats.books_failed == 2
    assert stats.books_indexed == 2
    assert stats.error_details[0]["ids"] == "book-0,book-1"


def test_missing_book_artifact_skips_only_its_chapters(tmp_path: Path) -> None:
    paths = CorpusPaths(tmp_path)
    metas = [_meta(1, chapters=2), _meta(2, chapters=3)]
    save_book_index(paths, metas)
    _write_book(paths, metas[1])
    engine = _FakeEngine()

    stats = IndexBuilder(engine, paths).build()

    assert stats.books_indexed == 2
    assert stats.books_missing == 1
    assert stats.chapters_indexed == 3


def test_unhealthy_engine_aborts_before_touching_collections(tmp_path: Path) -> None:
    paths = CorpusPaths(tmp_path)
    save_book_index(paths, [_meta(1)])
    engine = _FakeEngine(healthy=False)

    with pytest.raises(SearchEngineUnavailableError):
        IndexBuilder(engine, paths).build()

    assert engine.calls == [("health", "")]
    assert engine.existing == {"books", "chapters"}


def test_missing_book_index_is_fatal(tmp_path: Path) -> None:
    engine = _FakeEngine()

    with pytest.raises(CorpusError):
        IndexBuilder(engine, CorpusPaths(tmp_path)).build()

    assert engine.calls == []


def test_batch_sizes_must_be_positive(tmp_path: Path) -> None:
    with pytest.raises(ValueError):
        IndexBuilder(_FakeEngine(), CorpusPaths(tmp_path), book_batch_size=0)
