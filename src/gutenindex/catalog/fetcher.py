"""Paginated catalog acquisition from a Gutendex-compatible books API."""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
import time
from typing import Any, Callable, Iterable, Mapping

import httpx

from gutenindex.corpus.models import Author, CatalogEntry, FormatLink


LOGGER = logging.getLogger(__name__)

PLAIN_TEXT_MIME = "text/plain"
_PLAIN_TEXT_PREFERENCE = (
    "text/plain;charset=utf-8",
    "text/plain;charset=us-ascii",
    "text/plain",
)
_PROGRESS_EVERY = 100


@dataclass(slots=True)
class CatalogFetchError(RuntimeError):
    """Raised when a catalog page cannot be fetched within the retry ceiling."""

    url: str
    attempts: int
    message: str

    def __str__(self) -> str:
        return f"{self.message} (url={self.url}, attempts={self.attempts})"


@dataclass(slots=True)
class CatalogFetchStats:
    pages: int = 0
    records_seen: int = 0
    accepted: int = 0
    rejected_no_text: int = 0
    rejected_language: int = 0
    rejected_malformed: int = 0
    source_exhausted: bool = False
    duration_ms: int = 0

    def to_dict(self) -> dict[str, int | bool]:
        return {
            "pages": self.pages,
            "records_seen": self.records_seen,
            "accepted": self.accepted,
            "rejected_no_text": self.rejected_no_text,
            "rejected_language": self.rejected_language,
            "rejected_malformed": self.rejected_malformed,
            "source_exhausted": self.source_exhausted,
            "duration_ms": self.duration_ms,
        }


@dataclass(slots=True)
class CatalogFetchResult:
    entries: list[CatalogEntry] = field(default_factory=list)
    stats: CatalogFetchStats = field(default_factory=CatalogFetchStats)


def _mime_key(mime_type: str) -> str:
    return "".join(mime_type.split()).casefold()


def parse_formats(raw_formats: Mapping[str, Any] | None) -> tuple[FormatLink, ...]:
    """Turn the API's ``{mime: url}`` map into explicit pairs."""

    if not raw_formats:
        return ()
    return tuple(
        FormatLink(mime_type=str(mime), url=str(url))
        for mime, url in raw_formats.items()
        if mime and url
    )


def resolve_plain_text_url(formats: Iterable[FormatLink]) -> str | None:
    """Pick the best plain-text rendition, preferring UTF-8.

    Preference does not depend on the order the API listed the formats in.
    """

    by_mime = {_mime_key(link.mime_type): link.url for link in formats}
    for preferred in _PLAIN_TEXT_PREFERENCE:
        if preferred in by_mime:
            return by_mime[preferred]

    fallbacks = sorted(mime for mime in by_mime if mime.startswith(PLAIN_TEXT_MIME))
    if fallbacks:
        return by_mime[fallbacks[0]]
    return None


def _parse_author(raw_authors: Any) -> Author:
    if not isinstance(raw_authors, list) or not raw_authors or not isinstance(raw_authors[0], dict):
        return Author.unknown()
    first = raw_authors[0]
    name = str(first.get("name") or "").strip()
    if not name:
        return Author.unknown()
    return Author(
        name=name,
        birth_year=first.get("birth_year") if isinstance(first.get("birth_year"), int) else None,
        death_year=first.get("death_year") if isinstance(first.get("death_year"), int) else None,
    )


def to_catalog_entry(record: Mapping[str, Any], *, language: str) -> CatalogEntry | None:
    """Map one raw API record, or return None when it must be discarded."""

    download_url = resolve_plain_text_url(parse_formats(record.get("formats")))
    if download_url is None:
        return None

    languages = [str(value) for value in record.get("languages") or []]
    if language not in languages:
        return None

    return CatalogEntry.from_dict(
        {
            "id": record["id"],
            "title": str(record.get("title") or "").strip(),
            "author": _parse_author(record.get("authors")).to_dict(),
            "subjects": record.get("subjects") or [],
            "bookshelves": record.get("bookshelves") or [],
            "downloadUrl": download_url,
            "languages": languages,
        }
    )


class CatalogFetcher:
    """Walks the catalog API page by page until the target count is reached."""

    def __init__(
        self,
        *,
        base_url: str,
        target_count: int,
        language: str = "en",
        client: httpx.Client | None = None,
        max_retries: int = 5,
        retry_base_seconds: float = 1.0,
        request_delay_seconds: float = 1.0,
        timeout_seconds: float = 30.0,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if target_count <= 0:
            raise ValueError("target_count must be positive")
        if max_retries < 1:
            raise ValueError("max_retries must be >= 1")
        if retry_base_seconds < 0 or request_delay_seconds < 0:
            raise ValueError("delays cannot be negative")

        self._base_url = base_url
        self._target_count = target_count
        self._language = language
        self._owns_client = client is None
        self._client = client or httpx.Client(follow_redirects=True)
        self._max_retries = max_retries
        self._retry_base_seconds = retry_base_seconds
        self._request_delay_seconds = request_delay_seconds
        self._timeout_seconds = timeout_seconds
        self._sleep = sleep

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> "CatalogFetcher":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def first_page_url(self) -> str:
        url = httpx.URL(self._base_url, params={"languages": self._language, "mime_type": PLAIN_TEXT_MIME})
        return str(url)

    def fetch(self) -> CatalogFetchResult:
        started = time.perf_counter()
        result = CatalogFetchResult()
        stats = result.stats
        url: str | None = self.first_page_url()

        while url and len(result.entries) < self._target_count:
            LOGGER.info("Fetching page %d (%d books so far)", stats.pages + 1, len(result.entries))
            payload = self._fetch_page(url)
            stats.pages += 1

            for record in payload["results"]:
                stats.records_seen += 1
                entry = self._accept(record, stats)
                if entry is None:
                    continue
                result.entries.append(entry)
                if len(result.entries) % _PROGRESS_EVERY == 0:
                    LOGGER.info("Progress: %d books collected", len(result.entries))
                if len(result.entries) >= self._target_count:
                    break

            next_url = payload.get("next")
            url = str(next_url) if next_url else None
            if url is None:
                stats.source_exhausted = True
            elif len(result.entries) < self._target_count:
                self._sleep(self._request_delay_seconds)

        stats.accepted = len(result.entries)
        stats.duration_ms = int((time.perf_counter() - started) * 1000)
        return result

    def _accept(self, record: Any, stats: CatalogFetchStats) -> CatalogEntry | None:
        if not isinstance(record, dict):
            stats.rejected_malformed += 1
            return None
        try:
            entry = to_catalog_entry(record, language=self._language)
        except (KeyError, TypeError, ValueError) as exc:
            stats.rejected_malformed += 1
            LOGGER.debug("Discarding malformed record %r: %s", record.get("id"), exc)
            return None

        if entry is not None:
            return entry
        if resolve_plain_text_url(parse_formats(record.get("formats"))) is None:
            stats.rejected_no_text += 1
        else:
            stats.rejected_language += 1
        return None

    def _fetch_page(self, url: str) -> dict[str, Any]:
        last_error: Exception | None = None

        for attempt in range(1, self._max_retries + 1):
            try:
                response = self._client.get(url, timeout=self._timeout_seconds)
                response.raise_for_status()
                payload = response.json()
                if not isinstance(payload, dict) or not isinstance(payload.get("results"), list):
                    raise ValueError("Catalog page is missing a 'results' list")
                return payload
            except (httpx.HTTPError, ValueError) as exc:
                last_error = exc
                if attempt == self._max_retries:
                    break
                delay = self._retry_base_seconds * (2**attempt)
                if isinstance(exc, httpx.HTTPStatusError) and exc.response.status_code == 429:
                    LOGGER.warning(
                        "Rate limited. Waiting %.1fs before retry (attempt %d/%d)",
                        delay,
                        attempt,
                        self._max_retries,
                    )
                else:
                    LOGGER.warning(
                        "Request failed: %s. Retrying in %.1fs (attempt %d/%d)",
                        exc,
                        delay,
                        attempt,
                        self._max_retries,
                    )
                self._sleep(delay)

        detail = str(last_error) if last_error is not None else "unknown error"
        raise CatalogFetchError(
            url=url,
            attempts=self._max_retries,
            message=f"Catalog page fetch failed: {detail}",
        ) from last_error
