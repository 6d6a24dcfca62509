from __future__ import annotations

from pathlib import Path

from gutenindex.corpus.models import Author, Book, BookMeta, CatalogEntry, Chapter
from gutenindex.corpus.reader import CorpusReader
from gutenindex.corpus.store import CorpusPaths, save_book, save_book_index


def _book(book_id: int, slug: str, author: str, subjects: list[str]) -> Book:
    entry = CatalogEntry(
        id=book_id,
        title=slug.replace("-", " ").title(),
        author=Author(name=author),
        subjects=subjects,
        bookshelves=[],
        download_url=f"https://files.test/{book_id}.txt",
        languages=["en"],
    )
    chapters = [
        Chapter(number=1, title="CHAPTER I", content="CHAPTER I\nOne two.", word_count=2),
        Chapter(number=2, title="CHAPTER II", content="CHAPTER II\nThree.", word_count=1),
    ]
    return Book.assemble(entry, slug=slug, chapters=chapters, language="en")


def _corpus(tmp_path: Path) -> CorpusPaths:
    paths = CorpusPaths(tmp_path)
    books = [
        _book(1, "emma", "Austen, Jane", ["England -- Fiction", "Love stories"]),
        _book(2, "persuasion", "Austen, Jane", ["Love stories"]),
        _book(3, "dracula", "Stoker, Bram", ["Horror tales"]),
    ]
    for book in books:
        save_book(paths, book)
    save_book_index(paths, [book.meta() for book in books])
    return paths


def test_reader_serves_books_and_chapters(tmp_path: Path) -> None:
    reader = CorpusReader(_corpus(tmp_path))

    assert [meta.slug for meta in reader.all_books()] == ["emma", "persuasion", "dracula"]
    book = reader.book_by_slug("dracula")
    assert book is not None
    assert book.total_word_count == 3
    chapter = reader.chapter("dracula", 2)
    assert chapter is not None and chapter.title == "CHAPTER II"
    assert reader.chapter("dracula", 9) is None
    assert reader.book_by_slug("nope") is None


def test_reader_filters_and_lists_facets(tmp_path: Path) -> None:
    reader = CorpusReader(_corpus(tmp_path))

    assert [meta.slug for meta in reader.books_by_subject("love")] == ["emma", "persuasion"]
    assert [meta.slug for meta in reader.books_by_author("stoker")] == ["dracula"]
    assert reader.subjects() == ["England -- Fiction", "Horror tales", "Love stories"]
    assert reader.authors() == ["Austen, Jane", "Stoker, Bram"]


def test_reader_caches_until_cleared(tmp_path: Path) -> None:
    paths = _corpus(tmp_path)
    reader = CorpusReader(paths)
    assert len(reader.all_books()) == 3

    save_book_index(paths, [])

    assert len(reader.all_books()) == 3
    reader.clear_cache()
    assert reader.all_books() == []


def test_book_meta_round_trips_camel_case_keys() -> None:
    meta = BookMeta(
        id=1,
        slug="emma",
        title="Emma",
        author=Author(name="Austen, Jane", birth_year=1775, death_year=1817),
        subjects=["Love stories"],
        bookshelves=[],
        total_chapters=55,
        total_word_count=160000,
        language="en",
    )

    payload = meta.to_dict()

    assert payload["totalChapters"] == 55
    assert payload["author"]["birthYear"] == 1775
    assert BookMeta.from_dict(payload) == meta
