"""Canonical records shared by every pipeline stage.

Persisted JSON keeps camelCase keys (``downloadUrl``, ``totalWordCount``, ...)
because the processed corpus is read as-is by the site's query layer.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping


def _unique(values: Iterable[Any]) -> list[str]:
    return list(dict.fromkeys(str(value) for value in values if value is not None))


def _optional_int(value: Any) -> int | None:
    if value is None:
        return None
    return int(value)


@dataclass(frozen=True, slots=True)
class Author:
    name: str
    birth_year: int | None = None
    death_year: int | None = None

    @classmethod
    def unknown(cls) -> "Author":
        return cls(name="Unknown")

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "birthYear": self.birth_year, "deathYear": self.death_year}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Author":
        return cls(
            name=str(data.get("name") or "Unknown"),
            birth_year=_optional_int(data.get("birthYear")),
            death_year=_optional_int(data.get("deathYear")),
        )


@dataclass(frozen=True, slots=True)
class FormatLink:
    """One downloadable rendition of a book, e.g. ``text/plain; charset=utf-8``."""

    mime_type: str
    url: str


@dataclass(frozen=True, slots=True)
class CatalogEntry:
    """One discoverable book before its text is retrieved."""

    id: int
    title: str
    author: Author
    subjects: list[str]
    bookshelves: list[str]
    download_url: str
    languages: list[str]

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "author": self.author.to_dict(),
            "subjects": list(self.subjects),
            "bookshelves": list(self.bookshelves),
            "downloadUrl": self.download_url,
            "languages": list(self.languages),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "CatalogEntry":
        return cls(
            id=int(data["id"]),
            title=str(data["title"]),
            author=Author.from_dict(data.get("author") or {}),
            subjects=_unique(data.get("subjects") or []),
            bookshelves=_unique(data.get("bookshelves") or []),
            download_url=str(data["downloadUrl"]),
            languages=_unique(data.get("languages") or []),
        )


@dataclass(frozen=True, slots=True)
class FailedDownload:
    id: int
    url: str
    error: str
    timestamp: str

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "url": self.url, "error": self.error, "timestamp": self.timestamp}


@dataclass(frozen=True, slots=True)
class Chapter:
    number: int
    title: str
    content: str
    word_count: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "number": self.number,
            "title": self.title,
            "content": self.content,
            "wordCount": self.word_count,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Chapter":
        return cls(
            number=int(data["number"]),
            title=str(data["title"]),
            content=str(data["content"]),
            word_count=int(data["wordCount"]),
        )


@dataclass(frozen=True, slots=True)
class BookMeta:
    """Catalog-browsing projection of a Book, without chapter bodies."""

    id: int
    slug: str
    title: str
    author: Author
    subjects: list[str]
    bookshelves: list[str]
    total_chapters: int
    total_word_count: int
    language: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "slug": self.slug,
            "title": self.title,
            "author": self.author.to_dict(),
            "subjects": list(self.subjects),
            "bookshelves": list(self.bookshelves),
            "totalChapters": self.total_chapters,
            "totalWordCount": self.total_word_count,
            "language": self.language,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "BookMeta":
        return cls(
            id=int(data["id"]),
            slug=str(data["slug"]),
            title=str(data["title"]),
            author=Author.from_dict(data.get("author") or {}),
            subjects=_unique(data.get("subjects") or []),
            bookshelves=_unique(data.get("bookshelves") or []),
            total_chapters=int(data["totalChapters"]),
            total_word_count=int(data["totalWordCount"]),
            language=str(data.get("language") or "en"),
        )


@dataclass(frozen=True, slots=True)
class Book:
    """Fully processed book: metadata plus ordered chapters."""

    id: int
    slug: str
    title: str
    author: Author
    subjects: list[str]
    bookshelves: list[str]
    total_chapters: int
    total_word_count: int
    language: str
    chapters: list[Chapter] = field(default_factory=list)

    @classmethod
    def assemble(cls, entry: CatalogEntry, *, slug: str, chapters: list[Chapter], language: str) -> "Book":
        """Build a Book whose totals are derived from ``chapters``."""

        return cls(
            id=entry.id,
            slug=slug,
            title=entry.title,
            author=entry.author,
            subjects=list(entry.subjects),
            bookshelves=list(entry.bookshelves),
            total_chapters=len(chapters),
            total_word_count=sum(chapter.word_count for chapter in chapters),
            language=language,
            chapters=list(chapters),
        )

    def meta(self) -> BookMeta:
        return BookMeta(
            id=self.id,
            slug=self.slug,
            title=self.title,
            author=self.author,
            subjects=list(self.subjects),
            bookshelves=list(self.bookshelves),
            total_chapters=self.total_chapters,
            total_word_count=self.total_word_count,
            language=self.language,
        )

    def to_dict(self) -> dict[str, Any]:
        payload = self.meta().to_dict()
        payload["chapters"] = [chapter.to_dict() for chapter in self.chapters]
        return payload

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Book":
        meta = BookMeta.from_dict(data)
        return cls(
            id=meta.id,
            slug=meta.slug,
            title=meta.title,
            author=meta.author,
            subjects=meta.subjects,
            bookshelves=meta.bookshelves,
            total_chapters=meta.total_chapters,
            total_word_count=meta.total_word_count,
            language=meta.language,
            chapters=[Chapter.from_dict(item) for item in data.get("chapters") or []],
        )
