"""CLI entrypoint for ad-hoc searches against the built index."""

from __future__ import annotations

import argparse
import json
import sys

from dotenv import load_dotenv

load_dotenv()

from gutenindex.search.client import SearchEngineError, SearchEngineUnavailableError, TypesenseClient
from gutenindex.search.config import TypesenseSettings
from gutenindex.search.query import search_books, search_chapters


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Search indexed books or chapters")
    parser.add_argument("--query", required=True, help="Search text")
    parser.add_argument("--scope", choices=("books", "chapters"), default="books", help="Collection to search")
    parser.add_argument("--book-slug", default=None, help="Restrict chapter search to one book")
    parser.add_argument("--page", type=int, default=1, help="Result page (1-based)")
    parser.add_argument("--per-page", type=int, default=20, help="Results per page")
    args = parser.parse_args(argv)

    try:
        settings = TypesenseSettings.from_env()
    except ValueError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return 1

    try:
        with TypesenseClient(settings) as client:
            if args.scope == "books":
                page = search_books(client, args.query, page=args.page, per_page=args.per_page)
            else:
                page = search_chapters(
                    client,
                    args.query,
                    page=args.page,
                    per_page=args.per_page,
                    book_slug=args.book_slug,
                )
    except (SearchEngineError, SearchEngineUnavailableError) as exc:
        print(f"Search is temporarily unavailable: {exc}", file=sys.stderr)
        return 1
    except ValueError as exc:
        parser.error(str(exc))

    print(json.dumps(page.to_dict(), ensure_ascii=False, indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
