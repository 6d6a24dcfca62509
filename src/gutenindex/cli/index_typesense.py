"""CLI entrypoint for stage 4: rebuild the Typesense collections."""

from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

from gutenindex.cli._logging import configure_logging
from gutenindex.config import PipelineSettings
from gutenindex.corpus.store import CorpusError, CorpusPaths
from gutenindex.search.client import SearchEngineError, SearchEngineUnavailableError, TypesenseClient
from gutenindex.search.config import TypesenseSettings
from gutenindex.search.indexer import IndexBuilder


LOGGER = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    try:
        pipeline_settings = PipelineSettings.from_env()
    except ValueError as exc:
        configure_logging()
        LOGGER.error("Configuration error: %s", exc)
        return 1

    parser = argparse.ArgumentParser(description="Index processed books and chapters into Typesense")
    parser.add_argument("--data-dir", default=str(pipeline_settings.data_dir), help="Pipeline data directory")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    args = parser.parse_args(argv)
    configure_logging(args.verbose)

    try:
        settings = TypesenseSettings.from_env()
    except ValueError as exc:
        LOGGER.error("Configuration error: %s", exc)
        return 1

    paths = CorpusPaths(Path(args.data_dir))
    LOGGER.info("Indexing %s into Typesense at %s", paths.data_dir, settings.base_url)

    try:
        with TypesenseClient(settings) as client:
            stats = IndexBuilder(client, paths).build()
    except CorpusError as exc:
        LOGGER.error("%s. Run process-books first.", exc)
        return 2
    except SearchEngineUnavailableError as exc:
        LOGGER.error("Could not connect to Typesense. Is the server running? %s", exc)
        return 1
    except SearchEngineError as exc:
        LOGGER.error("Fatal error: %s", exc)
        return 1

    LOGGER.info("Books indexed: %d, chapters indexed: %d", stats.books_indexed, stats.chapters_indexed)
    print(json.dumps(stats.to_dict(), ensure_ascii=True, indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
