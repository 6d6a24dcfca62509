"""Typesense collection schemas for books and chapters."""

from __future__ import annotations

import copy
from typing import Any

BOOKS_COLLECTION = "books"
CHAPTERS_COLLECTION = "chapters"

BOOKS_SCHEMA: dict[str, Any] = {
    "name": BOOKS_COLLECTION,
    "fields": [
        {"name": "id", "type": "string"},
        {"name": "title", "type": "string"},
        {"name": "author_name", "type": "string"},
        {"name": "author_birth_year", "type": "int32", "optional": True},
        {"name": "author_death_year", "type": "int32", "optional": True},
        {"name": "subjects", "type": "string[]", "facet": True},
        {"name": "bookshelves", "type": "string[]", "facet": True},
        {"name": "total_chapters", "type": "int32"},
        {"name": "total_word_count", "type": "int32", "sort": True},
        {"name": "slug", "type": "string"},
    ],
    "default_sorting_field": "total_word_count",
}

CHAPTERS_SCHEMA: dict[str, Any] = {
    "name": CHAPTERS_COLLECTION,
    "fields": [
        {"name": "id", "type": "string"},
        {"name": "book_slug", "type": "string", "facet": True},
        {"name": "book_title", "type": "string"},
        {"name": "author_name", "type": "string"},
        {"name": "chapter_number", "type": "int32", "sort": True},
        {"name": "chapter_title", "type": "string"},
        {"name": "content", "type": "string"},
        {"name": "word_count", "type": "int32", "sort": True},
    ],
    "default_sorting_field": "word_count",
}


def collection_schemas() -> list[dict[str, Any]]:
    """Fresh copies of both schemas, books first."""

    return [copy.deepcopy(BOOKS_SCHEMA), copy.deepcopy(CHAPTERS_SCHEMA)]


def field_names(schema: dict[str, Any]) -> set[str]:
    return {str(item["name"]) for item in schema["fields"]}
