"""Concurrent raw-text retrieval with per-item retry and resumable storage."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from datetime import datetime, timezone
import logging
import time
from typing import Awaitable, Callable

import httpx

from gutenindex.corpus.models import CatalogEntry, FailedDownload
from gutenindex.corpus.store import CorpusPaths, write_bytes_atomic


LOGGER = logging.getLogger(__name__)

_PROGRESS_EVERY = 50


@dataclass(slots=True)
class RetrievalStats:
    total: int = 0
    already_present: int = 0
    downloaded: int = 0
    failed: int = 0
    duration_ms: int = 0
    failures: list[FailedDownload] = field(default_factory=list)

    def to_dict(self) -> dict[str, int | list[dict[str, object]]]:
        return {
            "total": self.total,
            "already_present": self.already_present,
            "downloaded": self.downloaded,
            "failed": self.failed,
            "duration_ms": self.duration_ms,
            "failures": [failure.to_dict() for failure in self.failures],
        }


@dataclass(frozen=True, slots=True)
class DownloadOutcome:
    status: str
    failure: FailedDownload | None = None


_SKIPPED = DownloadOutcome(status="already_present")
_DOWNLOADED = DownloadOutcome(status="downloaded")


def _utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


class TextRetriever:
    """Downloads raw texts for catalog entries through a fixed pool of workers.

    Entries whose raw text already exists on disk are skipped without any
    network call, so re-running after a crash only fetches what is missing.
    An entry that exhausts its retries is recorded as a ``FailedDownload``;
    sibling workers keep going.
    """

    def __init__(
        self,
        paths: CorpusPaths,
        *,
        client: httpx.AsyncClient,
        concurrency: int = 5,
        max_retries: int = 3,
        retry_base_seconds: float = 1.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        if concurrency < 1:
            raise ValueError("concurrency must be >= 1")
        if max_retries < 1:
            raise ValueError("max_retries must be >= 1")
        if retry_base_seconds < 0:
            raise ValueError("retry_base_seconds cannot be negative")

        self._paths = paths
        self._client = client
        self._concurrency = concurrency
        self._max_retries = max_retries
        self._retry_base_seconds = retry_base_seconds
        self._sleep = sleep
        self._completed = 0

    async def retrieve_all(self, entries: list[CatalogEntry]) -> RetrievalStats:
        started = time.perf_counter()
        stats = RetrievalStats(total=len(entries))
        self._paths.raw_dir.mkdir(parents=True, exist_ok=True)
        self._completed = 0

        existing = sum(1 for entry in entries if self._paths.raw_text(entry.id).exists())
        LOGGER.info("%d already downloaded, %d remaining", existing, len(entries) - existing)

        queue: asyncio.Queue[tuple[int, CatalogEntry]] = asyncio.Queue(maxsize=len(entries) or 1)
        for position, entry in enumerate(entries):
            queue.put_nowait((position, entry))

        results: list[DownloadOutcome | None] = [None] * len(entries)
        workers = [
            asyncio.create_task(self._worker(queue, results, len(entries)))
            for _ in range(min(self._concurrency, len(entries)))
        ]
        await asyncio.gather(*workers)

        for outcome in results:
            if outcome is None:
                continue
            if outcome.status == _SKIPPED.status:
                stats.already_present += 1
            elif outcome.status == _DOWNLOADED.status:
                stats.downloaded += 1
            elif outcome.failure is not None:
                stats.failed += 1
                stats.failures.append(outcome.failure)

        stats.duration_ms = int((time.perf_counter() - started) * 1000)
        return stats

    async def _worker(
        self,
        queue: asyncio.Queue[tuple[int, CatalogEntry]],
        results: list[DownloadOutcome | None],
        total: int,
    ) -> None:
        while True:
            try:
                position, entry = queue.get_nowait()
            except asyncio.QueueEmpty:
                return
            try:
                results[position] = await self.retrieve_one(entry)
            finally:
                queue.task_done()
                self._completed += 1
                if self._completed % _PROGRESS_EVERY == 0:
                    LOGGER.info("Progress: %d/%d processed", self._completed, total)

    async def retrieve_one(self, entry: CatalogEntry) -> DownloadOutcome:
        target = self._paths.raw_text(entry.id)
        if await asyncio.to_thread(target.exists):
            return _SKIPPED

        last_error: Exception | None = None
        for attempt in range(1, self._max_retries + 1):
            try:
                response = await self._client.get(entry.download_url)
                response.raise_for_status()
                await asyncio.to_thread(write_bytes_atomic, target, response.content)
                return _DOWNLOADED
            except httpx.InvalidURL as exc:
                last_error = exc
                break
            except (httpx.HTTPError, OSError) as exc:
                last_error = exc
                if attempt == self._max_retries:
                    break
                delay = self._retry_base_seconds * (2**attempt)
                LOGGER.debug(
                    "Download of %s failed: %s. Retrying in %.1fs (attempt %d/%d)",
                    entry.id,
                    exc,
                    delay,
                    attempt,
                    self._max_retries,
                )
                await self._sleep(delay)

        error = str(last_error) if last_error is not None else "unknown error"
        LOGGER.warning("Giving up on book %d (%s): %s", entry.id, entry.download_url, error)
        return DownloadOutcome(
            status="failed",
            failure=FailedDownload(id=entry.id, url=entry.download_url, error=error, timestamp=_utc_timestamp()),
        )


def build_client(*, timeout_seconds: float, concurrency: int) -> httpx.AsyncClient:
    limits = httpx.Limits(max_connections=concurrency, max_keepalive_connections=concurrency)
    return httpx.AsyncClient(timeout=httpx.Timeout(timeout_seconds), limits=limits, follow_redirects=True)
