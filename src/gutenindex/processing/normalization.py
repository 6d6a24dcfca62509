"""Whitespace helpers and the single word tokenizer used for all counts."""

from __future__ import annotations

import re

_WHITESPACE_RE = re.compile(r"\s+")


def normalize_whitespace(text: str) -> str:
    """Collapse repeated whitespace and trim boundaries."""

    return _WHITESPACE_RE.sub(" ", text).strip()


def tokenize_words(text: str) -> list[str]:
    """Split on whitespace runs, dropping empty tokens."""

    return [token for token in _WHITESPACE_RE.split(text) if token]


def count_words(text: str) -> int:
    return len(tokenize_words(text))
