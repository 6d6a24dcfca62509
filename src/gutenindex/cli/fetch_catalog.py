"""CLI entrypoint for stage 1: build catalog.json from the books API."""

from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

from gutenindex.catalog.fetcher import CatalogFetcher, CatalogFetchError
from gutenindex.cli._logging import configure_logging
from gutenindex.config import PipelineSettings
from gutenindex.corpus.store import CorpusPaths, save_catalog


LOGGER = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    try:
        settings = PipelineSettings.from_env()
    except ValueError as exc:
        configure_logging()
        LOGGER.error("Configuration error: %s", exc)
        return 1

    parser = argparse.ArgumentParser(description="Fetch the book catalog into data/catalog.json")
    parser.add_argument("--data-dir", default=str(settings.data_dir), help="Pipeline data directory")
    parser.add_argument("--target", type=int, default=settings.target_books, help="Number of books to collect")
    parser.add_argument("--catalog-url", default=settings.catalog_url, help="Catalog API base URL")
    parser.add_argument("--language", default=settings.language, help="Language code to keep")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    args = parser.parse_args(argv)
    configure_logging(args.verbose)

    paths = CorpusPaths(Path(args.data_dir))
    LOGGER.info("Fetching catalog from %s (target: %d books)", args.catalog_url, args.target)

    try:
        with CatalogFetcher(
            base_url=args.catalog_url,
            target_count=args.target,
            language=args.language,
            max_retries=settings.catalog_max_retries,
            retry_base_seconds=settings.retry_base_seconds,
            request_delay_seconds=settings.request_delay_seconds,
            timeout_seconds=settings.request_timeout_seconds,
        ) as fetcher:
            result = fetcher.fetch()
    except CatalogFetchError as exc:
        LOGGER.error("Fatal error: %s", exc)
        return 1

    save_catalog(paths, result.entries)
    LOGGER.info("Saved %d books to %s", len(result.entries), paths.catalog)
    print(json.dumps(result.stats.to_dict(), ensure_ascii=True, indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
