"""Runtime configuration for the ingestion pipeline stages."""

from __future__ import annotations

from dataclasses import dataclass
import os
from pathlib import Path
from typing import Mapping


DEFAULT_DATA_DIR = "data"
DEFAULT_CATALOG_URL = "https://gutendex.com/books/"
DEFAULT_TARGET_BOOKS = 3000
DEFAULT_LANGUAGE = "en"
DEFAULT_REQUEST_DELAY_SECONDS = 1.0
DEFAULT_CATALOG_MAX_RETRIES = 5
DEFAULT_DOWNLOAD_CONCURRENCY = 5
DEFAULT_DOWNLOAD_MAX_RETRIES = 3
DEFAULT_RETRY_BASE_SECONDS = 1.0
DEFAULT_REQUEST_TIMEOUT_SECONDS = 30.0


def _parse_int(*, name: str, raw_value: str, minimum: int = 1) -> int:
    try:
        value = int(raw_value)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {raw_value!r}") from exc
    if value < minimum:
        raise ValueError(f"{name} must be >= {minimum}")
    return value


def _parse_float(*, name: str, raw_value: str, minimum: float = 0.0) -> float:
    try:
        value = float(raw_value)
    except ValueError as exc:
        raise ValueError(f"{name} must be a number, got {raw_value!r}") from exc
    if value < minimum:
        raise ValueError(f"{name} must be >= {minimum}")
    return value


@dataclass(frozen=True, slots=True)
class PipelineSettings:
    """Validated settings shared by the catalog, retrieval and processing stages."""

    data_dir: Path = Path(DEFAULT_DATA_DIR)
    catalog_url: str = DEFAULT_CATALOG_URL
    target_books: int = DEFAULT_TARGET_BOOKS
    language: str = DEFAULT_LANGUAGE
    request_delay_seconds: float = DEFAULT_REQUEST_DELAY_SECONDS
    catalog_max_retries: int = DEFAULT_CATALOG_MAX_RETRIES
    download_concurrency: int = DEFAULT_DOWNLOAD_CONCURRENCY
    download_max_retries: int = DEFAULT_DOWNLOAD_MAX_RETRIES
    retry_base_seconds: float = DEFAULT_RETRY_BASE_SECONDS
    request_timeout_seconds: float = DEFAULT_REQUEST_TIMEOUT_SECONDS

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "PipelineSettings":
        source: Mapping[str, str] = os.environ if environ is None else environ

        data_dir_raw = source.get("GUTENINDEX_DATA_DIR", DEFAULT_DATA_DIR).strip()
        if not data_dir_raw:
            raise ValueError("GUTENINDEX_DATA_DIR cannot be empty")

        catalog_url = source.get("GUTENINDEX_CATALOG_URL", DEFAULT_CATALOG_URL).strip()
        if not (catalog_url.startswith("http://") or catalog_url.startswith("https://")):
            raise ValueError("GUTENINDEX_CATALOG_URL must start with http:// or https://")

        language = source.get("GUTENINDEX_LANGUAGE", DEFAULT_LANGUAGE).strip().lower()
        if not language:
            raise ValueError("GUTENINDEX_LANGUAGE cannot be empty")

        return cls(
            data_dir=Path(data_dir_raw),
            catalog_url=catalog_url,
            target_books=_parse_int(
                name="GUTENINDEX_TARGET_BOOKS",
                raw_value=source.get("GUTENINDEX_TARGET_BOOKS", str(DEFAULT_TARGET_BOOKS)).strip(),
            ),
            language=language,
            request_delay_seconds=_parse_float(
                name="GUTENINDEX_REQUEST_DELAY_SECONDS",
                raw_value=source.get("GUTENINDEX_REQUEST_DELAY_SECONDS", str(DEFAULT_REQUEST_DELAY_SECONDS)).strip(),
            ),
            catalog_max_retries=_parse_int(
                name="GUTENINDEX_CATALOG_MAX_RETRIES",
                raw_value=source.get("GUTENINDEX_CATALOG_MAX_RETRIES", str(DEFAULT_CATALOG_MAX_RETRIES)).strip(),
            ),
            download_concurrency=_parse_int(
                name="GUTENINDEX_DOWNLOAD_CONCURRENCY",
                raw_value=source.get("GUTENINDEX_DOWNLOAD_CONCURRENCY", str(DEFAULT_DOWNLOAD_CONCURRENCY)).strip(),
            ),
            download_max_retries=_parse_int(
                name="GUTENINDEX_DOWNLOAD_MAX_RETRIES",
                raw_value=source.get("GUTENINDEX_DOWNLOAD_MAX_RETRIES", str(DEFAULT_DOWNLOAD_MAX_RETRIES)).strip(),
            ),
            retry_base_seconds=_parse_float(
                name="GUTENINDEX_RETRY_BASE_SECONDS",
                raw_value=source.get("GUTENINDEX_RETRY_BASE_SECONDS", str(DEFAULT_RETRY_BASE_SECONDS)).strip(),
            ),
            request_timeout_seconds=_parse_float(
                name="GUTENINDEX_REQUEST_TIMEOUT_SECONDS",
                raw_value=source.get("GUTENINDEX_REQUEST_TIMEOUT_SECONDS", str(DEFAULT_REQUEST_TIMEOUT_SECONDS)).strip(),
                minimum=0.1,
            ),
        )
