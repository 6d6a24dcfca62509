"""CLI entrypoint for stage 2: download raw texts for the catalog."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

from gutenindex.cli._logging import configure_logging
from gutenindex.config import PipelineSettings
from gutenindex.corpus.store import CorpusError, CorpusPaths, load_catalog, save_failed_downloads
from gutenindex.retrieval.downloader import RetrievalStats, TextRetriever, build_client


LOGGER = logging.getLogger(__name__)


async def _run(paths: CorpusPaths, settings: PipelineSettings, concurrency: int) -> RetrievalStats:
    catalog = load_catalog(paths)
    LOGGER.info("Downloading texts for %d books...", len(catalog))

    async with build_client(timeout_seconds=settings.request_timeout_seconds, concurrency=concurrency) as client:
        retriever = TextRetriever(
            paths,
            client=client,
            concurrency=concurrency,
            max_retries=settings.download_max_retries,
            retry_base_seconds=settings.retry_base_seconds,
        )
        return await retriever.retrieve_all(catalog)


def main(argv: list[str] | None = None) -> int:
    try:
        settings = PipelineSettings.from_env()
    except ValueError as exc:
        configure_logging()
        LOGGER.error("Configuration error: %s", exc)
        return 1

    parser = argparse.ArgumentParser(description="Download raw book texts listed in catalog.json")
    parser.add_argument("--data-dir", default=str(settings.data_dir), help="Pipeline data directory")
    parser.add_argument(
        "--concurrency",
        type=int,
        default=settings.download_concurrency,
        help="Number of concurrent download workers",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    args = parser.parse_args(argv)
    configure_logging(args.verbose)

    if args.concurrency < 1:
        parser.error("--concurrency must be >= 1")

    paths = CorpusPaths(Path(args.data_dir))
    try:
        stats = asyncio.run(_run(paths, settings, args.concurrency))
    except CorpusError as exc:
        LOGGER.error("%s. Run fetch-catalog first.", exc)
        return 2

    save_failed_downloads(paths, stats.failures)
    if stats.failures:
        LOGGER.warning("%d downloads failed. See %s", stats.failed, paths.failed_downloads)
    LOGGER.info("Done! %d books available locally", stats.downloaded + stats.already_present)

    print(json.dumps(stats.to_dict(), ensure_ascii=True, indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
