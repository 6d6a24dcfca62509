"""On-disk layout of pipeline artifacts and atomic writers."""

from __future__ import annotations

from dataclasses import dataclass
import json
import os
from pathlib import Path
import tempfile
from typing import Any

from gutenindex.corpus.models import Book, BookMeta, CatalogEntry, FailedDownload


@dataclass(slots=True)
class CorpusError(Exception):
    """A mandatory input artifact is missing or unreadable."""

    path: Path
    message: str

    def __str__(self) -> str:
        return f"{self.message} (path={self.path})"


@dataclass(frozen=True, slots=True)
class CorpusPaths:
    data_dir: Path

    @property
    def catalog(self) -> Path:
        return self.data_dir / "catalog.json"

    @property
    def raw_dir(self) -> Path:
        return self.data_dir / "raw-texts"

    @property
    def failed_downloads(self) -> Path:
        return self.data_dir / "failed-downloads.json"

    @property
    def processed_dir(self) -> Path:
        return self.data_dir / "processed"

    @property
    def book_index(self) -> Path:
        return self.data_dir / "book-index.json"

    def raw_text(self, book_id: int) -> Path:
        return self.raw_dir / f"{book_id}.txt"

    def book(self, slug: str) -> Path:
        return self.processed_dir / f"{slug}.json"


def write_bytes_atomic(path: Path, payload: bytes) -> None:
    """Write ``payload`` next to ``path`` and rename it into place."""

    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, "wb") as handle:
            handle.write(payload)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


def write_json_atomic(path: Path, payload: Any) -> None:
    text = json.dumps(payload, ensure_ascii=False, indent=2)
    write_bytes_atomic(path, text.encode("utf-8"))


def read_json(path: Path) -> Any:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError as exc:
        raise CorpusError(path, "Artifact not found") from exc
    except (OSError, json.JSONDecodeError) as exc:
        raise CorpusError(path, f"Artifact unreadable: {exc}") from exc


def save_catalog(paths: CorpusPaths, entries: list[CatalogEntry]) -> None:
    write_json_atomic(paths.catalog, [entry.to_dict() for entry in entries])


def load_catalog(paths: CorpusPaths) -> list[CatalogEntry]:
    data = read_json(paths.catalog)
    if not isinstance(data, list):
        raise CorpusError(paths.catalog, "Catalog must be a JSON list")
    try:
        return [CatalogEntry.from_dict(item) for item in data]
    except (KeyError, TypeError, ValueError) as exc:
        raise CorpusError(paths.catalog, f"Malformed catalog entry: {exc}") from exc


def save_failed_downloads(paths: CorpusPaths, failures: list[FailedDownload]) -> None:
    write_json_atomic(paths.failed_downloads, [failure.to_dict() for failure in failures])


def save_book(paths: CorpusPaths, book: Book) -> Path:
    target = paths.book(book.slug)
    write_json_atomic(target, book.to_dict())
    return target


def load_book(paths: CorpusPaths, slug: str) -> Book | None:
    """Return the full book artifact, or None when it was never written."""

    target = paths.book(slug)
    if not target.exists():
        return None
    data = read_json(target)
    try:
        return Book.from_dict(data)
    except (KeyError, TypeError, ValueError) as exc:
        raise CorpusError(target, f"Malformed book artifact: {exc}") from exc


def save_book_index(paths: CorpusPaths, books: list[BookMeta]) -> None:
    write_json_atomic(paths.book_index, [book.to_dict() for book in books])


def load_book_index(paths: CorpusPaths) -> list[BookMeta]:
    data = read_json(paths.book_index)
    if not isinstance(data, list):
        raise CorpusError(paths.book_index, "Book index must be a JSON list")
    try:
        return [BookMeta.from_dict(item) for item in data]
    except (KeyError, TypeError, ValueError) as exc:
        raise CorpusError(paths.book_index, f"Malformed book index entry: {exc}") from exc
