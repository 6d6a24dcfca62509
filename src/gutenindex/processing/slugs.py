"""URL slug derivation and per-run uniqueness registry."""

from __future__ import annotations

import re

MAX_SLUG_LENGTH = 80

_APOSTROPHES_RE = re.compile(r"['‘’]")
_NON_ALNUM_RE = re.compile(r"[^a-z0-9]+")


def to_slug(title: str) -> str:
    """Lower-case, drop apostrophes and hyphenate everything non-alphanumeric."""

    slug = _APOSTROPHES_RE.sub("", title.lower())
    slug = _NON_ALNUM_RE.sub("-", slug).strip("-")
    return slug[:MAX_SLUG_LENGTH].rstrip("-")


class SlugRegistry:
    """Hands out corpus-unique slugs in processing order.

    The first book to claim a base slug keeps it; later claimants get
    ``<base>-<book id>``. Issued slugs are remembered too, so a suffixed slug
    never shadows another title that happens to end in digits.
    """

    def __init__(self) -> None:
        self._claims: dict[str, int] = {}
        self._issued: set[str] = set()

    def __len__(self) -> int:
        return len(self._issued)

    def __contains__(self, slug: object) -> bool:
        return slug in self._issued

    def claim(self, title: str, book_id: int) -> str:
        base = to_slug(title) or f"book-{book_id}"
        previous_claims = self._claims.get(base, 0)
        self._claims[base] = previous_claims + 1

        slug = base
        if previous_claims > 0 or slug in self._issued:
            slug = f"{base}-{book_id}"
            suffix = 2
            while slug in self._issued:
                slug = f"{base}-{book_id}-{suffix}"
                suffix += 1

        self._issued.add(slug)
        return slug
