from __future__ import annotations

import httpx
import pytest

from gutenindex.catalog.fetcher import (
    CatalogFetcher,
    CatalogFetchError,
    parse_formats,
    resolve_plain_text_url,
    to_catalog_entry,
)
from gutenindex.corpus.models import Author, FormatLink

BASE_URL = "https://catalog.test/books/"


def _record(
    book_id: int,
    *,
    title: str | None = None,
    languages: tuple[str, ...] = ("en",),
    formats: dict[str, str] | None = None,
    authors: list[dict[str, object]] | None = None,
) -> dict[str, object]:
    return {
        "id": book_id,
        "title": title or f"Book {book_id}",
        "authors": authors if authors is not None else [{"name": "Doe, Jane", "birth_year": 1800, "death_year": 1870}],
        "subjects": ["Fiction", "Fiction"],
        "bookshelves": ["Classics"],
        "languages": list(languages),
        "formats": formats
        if formats is not None
        else {"text/plain; charset=utf-8": f"https://files.test/{book_id}.txt"},
    }


def _page(results: list[dict[str, object]], next_url: str | None = None) -> dict[str, object]:
    return {"count": len(results), "next": next_url, "previous": None, "results": results}


def _fetcher(handler, *, delays: list[float], **kwargs: object) -> CatalogFetcher:
    client = httpx.Client(transport=httpx.MockTransport(handler))
    options: dict[str, object] = {
        "base_url": BASE_URL,
        "target_count": 10,
        "client": client,
        "sleep": delays.append,
    }
    options.update(kwargs)
    return CatalogFetcher(**options)  # type: ignore[arg-type]


def test_resolve_plain_text_url_prefers_utf8_regardless_of_order() -> None:
    formats = (
        FormatLink("text/plain", "https://files.test/plain.txt"),
        FormatLink("text/html", "https://files.test/book.html"),
        FormatLink("text/plain; charset=utf-8", "https://files.test/utf8.txt"),
    )

    assert resolve_plain_text_url(formats) == "https://files.test/utf8.txt"
    assert resolve_plain_text_url(tuple(reversed(formats))) == "https://files.test/utf8.txt"


def test_resolve_plain_text_url_falls_back_to_any_plain_text() -> None:
    formats = parse_formats(
        {
            "application/epub+zip": "https://files.test/book.epub",
            "text/plain; charset=iso-8859-1": "https://files.test/latin1.txt",
        }
    )

    assert resolve_plain_text_url(formats) == "https://files.test/latin1.txt"
    assert resolve_plain_text_url(parse_formats({"text/html": "https://files.test/x.html"})) is None
    assert resolve_plain_text_url(parse_formats(None)) is None


def test_to_catalog_entry_uses_unknown_author_and_dedupes_sets() -> None:
    entry = to_catalog_entry(_record(5, authors=[]), language="en")

    assert entry is not None
    assert entry.author == Author.unknown()
    assert entry.author.birth_year is None
    assert entry.subjects == ["Fiction"]
    assert entry.download_url == "https://files.test/5.txt"


def test_to_catalog_entry_discards_wrong_language_and_missing_text() -> None:
    assert to_catalog_entry(_record(1, languages=("fr",)), language="en") is None
    assert to_catalog_entry(_record(2, formats={"text/html": "https://files.test/2.html"}), language="en") is None


def test_first_page_filters_language_and_mime_type() -> None:
    delays: list[float] = []
    fetcher = _fetcher(lambda request: httpx.Response(200, json=_page([])), delays=delays, language="en")

    url = httpx.URL(fetcher.first_page_url())

    assert url.params["languages"] == "en"
    assert url.params["mime_type"] == "text/plain"


def test_fetch_paginates_until_target_and_waits_between_pages() -> None:
    requested: list[str] = []
    page_two = "https://catalog.test/books/?page=2"
    page_three = "https://catalog.test/books/?page=3"

    def handler(request: httpx.Request) -> httpx.Response:
        requested.append(str(request.url))
        if request.url.params.get("page") == "2":
            return httpx.Response(200, json=_page([_record(3), _record(4), _record(5)], page_three))
        return httpx.Response(
            200,
            json=_page(
                [
                    _record(1),
                    _record(2, languages=("de",)),
                    _record(6, formats={"application/pdf": "https://files.test/6.pdf"}),
                ],
                page_two,
            ),
        )

    delays: list[float] = []
    with _fetcher(handler, delays=delays, target_count=3, request_delay_seconds=1.0) as fetcher:
        result = fetcher.fetch()

    assert [entry.id for entry in result.entries] == [1, 3, 4]
    assert len(requested) == 2
    assert delays == [1.0]
    assert result.stats.pages == 2
    assert result.stats.rejected_language == 1
    assert result.stats.rejected_no_text == 1
    assert result.stats.source_exhausted is False


def test_fetch_accepts_partial_catalog_when_source_is_exhausted() -> None:
    delays: list[float] = []
    fetcher = _fetcher(lambda request: httpx.Response(200, json=_page([_record(1)])), delays=delays, target_count=50)

    result = fetcher.fetch()

    assert [entry.id for entry in result.entries] == [1]
    assert result.stats.source_exhausted is True
    assert delays == []


def test_fetch_backs_off_on_rate_limit_then_succeeds() -> None:
    responses = [
        httpx.Response(429),
        httpx.Response(429),
        httpx.Response(200, json=_page([_record(1)])),
    ]

    def handler(request: httpx.Request) -> httpx.Response:
        return responses.pop(0)

    delays: list[float] = []
    fetcher = _fetcher(handler, delays=delays, retry_base_seconds=0.5)

    result = fetcher.fetch()

    assert [entry.id for entry in result.entries] == [1]
    assert delays == [1.0, 2.0]


def test_fetch_raises_after_retry_ceiling() -> None:
    calls: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        if len(calls) == 2:
            raise httpx.ConnectError("connection refused", request=request)
        return httpx.Response(500)

    delays: list[float] = []
    fetcher = _fetcher(handler, delays=delays, max_retries=3, retry_base_seconds=1.0)

    with pytest.raises(CatalogFetchError, match="attempts=3"):
        fetcher.fetch()

    assert len(calls) == 3
    assert delays == [2.0, 4.0]


def test_fetch_retries_malformed_payload() -> None:
    responses = [
        httpx.Response(200, text="<html>maintenance</html>"),
        httpx.Response(200, json={"unexpected": True}),
        httpx.Response(200, json=_page([_record(9)])),
    ]
    delays: list[float] = []
    fetcher = _fetcher(lambda request: responses.pop(0), delays=delays, retry_base_seconds=1.0)

    result = fetcher.fetch()

    assert [entry.id for entry in result.entries] == [9]
    assert delays == [2.0, 4.0]
