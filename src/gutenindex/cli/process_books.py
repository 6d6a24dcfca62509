"""CLI entrypoint for stage 3: segment raw texts into processed books."""

from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

from gutenindex.cli._logging import configure_logging
from gutenindex.config import PipelineSettings
from gutenindex.corpus.store import CorpusError, CorpusPaths, load_catalog
from gutenindex.processing.processor import DocumentProcessor


LOGGER = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    try:
        settings = PipelineSettings.from_env()
    except ValueError as exc:
        configure_logging()
        LOGGER.error("Configuration error: %s", exc)
        return 1

    parser = argparse.ArgumentParser(description="Process raw texts into chapter-level book artifacts")
    parser.add_argument("--data-dir", default=str(settings.data_dir), help="Pipeline data directory")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    args = parser.parse_args(argv)
    configure_logging(args.verbose)

    paths = CorpusPaths(Path(args.data_dir))
    try:
        catalog = load_catalog(paths)
    except CorpusError as exc:
        LOGGER.error("%s. Run fetch-catalog first.", exc)
        return 2

    LOGGER.info("Processing %d books...", len(catalog))
    processor = DocumentProcessor(paths, language=settings.language)
    stats = processor.process_catalog(catalog)
    LOGGER.info("Processed: %d, skipped: %d, index saved to %s", stats.processed, stats.skipped, paths.book_index)

    print(json.dumps(stats.to_dict(), ensure_ascii=True, indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
