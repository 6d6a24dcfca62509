"""Read-only access to the processed corpus for the site's query layer."""

from __future__ import annotations

from typing import Any, Callable, TypeVar

from gutenindex.corpus.models import Book, BookMeta, Chapter
from gutenindex.corpus.store import CorpusPaths, load_book, load_book_index

_T = TypeVar("_T")


class CorpusReader:
    """Serves book summaries, full books and chapters from processed artifacts.

    Results are memoized per reader instance; build a new reader (or call
    ``clear_cache``) after the processor rewrites the corpus.
    """

    def __init__(self, paths: CorpusPaths) -> None:
        self._paths = paths
        self._cache: dict[tuple[str, Any], Any] = {}

    def clear_cache(self) -> None:
        self._cache.clear()

    def _cached(self, kind: str, key: Any, loader: Callable[[], _T]) -> _T:
        cache_key = (kind, key)
        if cache_key not in self._cache:
            self._cache[cache_key] = loader()
        return self._cache[cache_key]

    def all_books(self) -> list[BookMeta]:
        return self._cached("all-books", None, lambda: load_book_index(self._paths))

    def book_by_slug(self, slug: str) -> Book | None:
        return self._cached("book", slug, lambda: load_book(self._paths, slug))

    def chapter(self, slug: str, number: int) -> Chapter | None:
        book = self.book_by_slug(slug)
        if book is None:
            return None
        return next((chapter for chapter in book.chapters if chapter.number == number), None)

    def books_by_subject(self, subject: str) -> list[BookMeta]:
        needle = subject.casefold()
        return [
            book
            for book in self.all_books()
            if any(needle in candidate.casefold() for candidate in book.subjects)
        ]

    def books_by_author(self, name: str) -> list[BookMeta]:
        needle = name.casefold()
        return [book for book in self.all_books() if needle in book.author.name.casefold()]

    def subjects(self) -> list[str]:
        def _load() -> list[str]:
            return sorted({subject for book in self.all_books() for subject in book.subjects})

        return self._cached("subjects", None, _load)

    def authors(self) -> list[str]:
        return self._cached("authors", None, lambda: sorted({book.author.name for book in self.all_books()}))
