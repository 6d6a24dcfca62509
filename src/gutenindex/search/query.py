"""Text search over the books and chapters collections."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Generic, TypeVar

from gutenindex.search.client import TypesenseClient
from gutenindex.search.schema import BOOKS_COLLECTION, CHAPTERS_COLLECTION

HIGHLIGHT_START_TAG = "<mark>"
HIGHLIGHT_END_TAG = "</mark>"
_SNIPPET_FALLBACK_CHARS = 200

_HitT = TypeVar("_HitT")


@dataclass(slots=True)
class BookHit:
    slug: str
    title: str
    author_name: str
    subjects: list[str]
    total_chapters: int
    total_word_count: int
    highlights: dict[str, str] = field(default_factory=dict)


@dataclass(slots=True)
class ChapterHit:
    book_slug: str
    book_title: str
    author_name: str
    chapter_number: int
    chapter_title: str
    word_count: int
    snippet: str


@dataclass(slots=True)
class SearchPage(Generic[_HitT]):
    hits: list[_HitT]
    total_found: int
    search_time_ms: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_found": self.total_found,
            "search_time_ms": self.search_time_ms,
            "hits": [asdict(hit) for hit in self.hits],
        }


def _validate_paging(page: int, per_page: int) -> None:
    if page < 1:
        raise ValueError("page must be >= 1")
    if not 1 <= per_page <= 250:
        raise ValueError("per_page must be between 1 and 250")


def _snippets(hit: dict[str, Any]) -> dict[str, str]:
    snippets: dict[str, str] = {}
    for item in hit.get("highlights") or []:
        field_name = item.get("field")
        snippet = item.get("snippet")
        if field_name and snippet:
            snippets[str(field_name)] = str(snippet)
        elif field_name and item.get("snippets"):
            snippets[str(field_name)] = " | ".join(str(value) for value in item["snippets"])
    return snippets


def search_books(
    client: TypesenseClient,
    query: str,
    *,
    page: int = 1,
    per_page: int = 20,
    filter_by: str | None = None,
) -> SearchPage[BookHit]:
    """Search titles, authors and subjects, weighting titles highest."""

    _validate_paging(page, per_page)
    params: dict[str, Any] = {
        "q": query,
        "query_by": "title,author_name,subjects",
        "query_by_weights": "3,2,1",
        "page": page,
        "per_page": per_page,
        "highlight_full_fields": "title,author_name",
        "highlight_start_tag": HIGHLIGHT_START_TAG,
        "highlight_end_tag": HIGHLIGHT_END_TAG,
    }
    if filter_by:
        params["filter_by"] = filter_by

    result = client.search(BOOKS_COLLECTION, params)
    hits = [
        BookHit(
            slug=str(hit["document"]["slug"]),
            title=str(hit["document"]["title"]),
            author_name=str(hit["document"]["author_name"]),
            subjects=list(hit["document"].get("subjects") or []),
            total_chapters=int(hit["document"].get("total_chapters") or 0),
            total_word_count=int(hit["document"].get("total_word_count") or 0),
            highlights=_snippets(hit),
        )
        for hit in result.get("hits") or []
    ]
    return SearchPage(
        hits=hits,
        total_found=int(result.get("found") or 0),
        search_time_ms=int(result.get("search_time_ms") or 0),
    )


def search_chapters(
    client: TypesenseClient,
    query: str,
    *,
    page: int = 1,
    per_page: int = 20,
    book_slug: str | None = None,
) -> SearchPage[ChapterHit]:
    """Search chapter bodies and titles, optionally within one book."""

    _validate_paging(page, per_page)
    params: dict[str, Any] = {
        "q": query,
        "query_by": "content,chapter_title",
        "query_by_weights": "2,1",
        "page": page,
        "per_page": per_page,
        "highlight_start_tag": HIGHLIGHT_START_TAG,
        "highlight_end_tag": HIGHLIGHT_END_TAG,
        "highlight_affix_num_tokens": 30,
        "snippet_threshold": 30,
    }
    if book_slug:
        params["filter_by"] = f"book_slug:={book_slug}"

    result = client.search(CHAPTERS_COLLECTION, params)
    hits: list[ChapterHit] = []
    for hit in result.get("hits") or []:
        document = hit["document"]
        content = str(document.get("content") or "")
        snippet = _snippets(hit).get("content") or f"{content[:_SNIPPET_FALLBACK_CHARS]}..."
        hits.append(
            ChapterHit(
                book_slug=str(document["book_slug"]),
                book_title=str(document["book_title"]),
                author_name=str(document["author_name"]),
                chapter_number=int(document["chapter_number"]),
                chapter_title=str(document["chapter_title"]),
                word_count=int(document.get("word_count") or 0),
                snippet=snippet,
            )
        )
    return SearchPage(
        hits=hits,
        total_found=int(result.get("found") or 0),
        search_time_ms=int(result.get("search_time_ms") or 0),
    )
