"""Flattening of corpus records into search documents."""

from __future__ import annotations

from typing import Any

from gutenindex.corpus.models import BookMeta, Chapter


def chapter_document_id(book_slug: str, chapter_number: int) -> str:
    return f"{book_slug}:{chapter_number}"


def book_document(book: BookMeta) -> dict[str, Any]:
    """Books collection document; unknown author years are left out."""

    document: dict[str, Any] = {
        "id": book.slug,
        "title": book.title,
        "author_name": book.author.name,
        "subjects": list(book.subjects),
        "bookshelves": list(book.bookshelves),
        "total_chapters": book.total_chapters,
        "total_word_count": book.total_word_count,
        "slug": book.slug,
    }
    if book.author.birth_year is not None:
        document["author_birth_year"] = book.author.birth_year
    if book.author.death_year is not None:
        document["author_death_year"] = book.author.death_year
    return document


def chapter_document(book: BookMeta, chapter: Chapter) -> dict[str, Any]:
    return {
        "id": chapter_document_id(book.slug, chapter.number),
        "book_slug": book.slug,
        "book_title": book.title,
        "author_name": book.author.name,
        "chapter_number": chapter.number,
        "chapter_title": chapter.title,
        "content": chapter.content,
        "word_count": chapter.word_count,
    }
