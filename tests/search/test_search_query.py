from __future__ import annotations

import httpx
import pytest

from gutenindex.search.client import TypesenseClient
from gutenindex.search.config import TypesenseSettings
from gutenindex.search.query import search_books, search_chapters


def _client(handler) -> TypesenseClient:
    return TypesenseClient(TypesenseSettings(api_key="k", host="search.test"), transport=httpx.MockTransport(handler))


def test_search_books_weights_title_highest() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(
            200,
            json={
                "found": 1,
                "search_time_ms": 3,
                "hits": [
                    {
                        "document": {
                            "slug": "moby-dick",
                            "title": "Moby Dick",
                            "author_name": "Melville, Herman",
                            "subjects": ["Whaling"],
                            "total_chapters": 135,
                            "total_word_count": 210000,
                        },
                        "highlights": [{"field": "title", "snippet": "<mark>Moby</mark> Dick"}],
                    }
                ],
            },
        )

    with _client(handler) as client:
        page = search_books(client, "moby", per_page=5)

    params = seen[0].url.params
    assert seen[0].url.path == "/collections/books/documents/search"
    assert params["query_by"] == "title,author_name,subjects"
    assert params["query_by_weights"] == "3,2,1"
    assert params["per_page"] == "5"
    assert page.total_found == 1
    assert page.hits[0].slug == "moby-dick"
    assert page.hits[0].highlights == {"title": "<mark>Moby</mark> Dick"}
    assert page.to_dict()["hits"][0]["total_chapters"] == 135


def test_search_chapters_filters_by_book_and_falls_back_to_content_snippet() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(
            200,
            json={
                "found": 1,
                "search_time_ms": 1,
                "hits": [
                    {
                        "document": {
                            "book_slug": "moby-dick",
                            "book_title": "Moby Dick",
                            "author_name": "Melville, Herman",
                            "chapter_number": 1,
                            "chapter_title": "CHAPTER 1. Loomings.",
                            "content": "Call me Ishmael.",
                            "word_count": 3,
                        },
                        "highlights": [],
                    }
                ],
            },
        )

    with _client(handler) as client:
        page = search_chapters(client, "ishmael", book_slug="moby-dick")

    params = seen[0].url.params
    assert params["query_by"] == "content,chapter_title"
    assert params["query_by_weights"] == "2,1"
    assert params["filter_by"] == "book_slug:=moby-dick"
    assert page.hits[0].snippet == "Call me Ishmael...."


def test_paging_is_validated_before_any_request() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("no request expected")

    with _client(handler) as client:
        with pytest.raises(ValueError):
            search_books(client, "x", page=0)
        with pytest.raises(ValueError):
            search_chapters(client, "x", per_page=251)
