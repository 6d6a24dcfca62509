"""Heuristic chapter segmentation for unstructured book text.

Strategies are tried in order and the first one that applies wins:

1. heading lines such as ``CHAPTER IV. The Storm`` or ``Act 2`` (at least 2);
   the keyword matches in any case, a Roman numeral only in upper case;
2. lines holding nothing but a Roman numeral, e.g. ``XII.`` (at least 3);
3. fixed-size word chunks, which always succeeds for non-empty text.

Headings inside quoted dialogue can produce spurious chapters; that is an
accepted limitation of the line-based heuristics.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
import re

from gutenindex.corpus.models import Chapter
from gutenindex.processing.normalization import count_words, normalize_whitespace, tokenize_words

WORDS_PER_SECTION = 2000
MIN_HEADING_MATCHES = 2
MIN_ROMAN_LINES = 3

_HEADING_RE = re.compile(
    r"^[ \t]*(?i:CHAPTER|PART|BOOK|ACT|SCENE)[ \t]+(?:\d+|[IVXLCDM]+)\b[^\n]*",
    re.MULTILINE,
)
_ROMAN_LINE_RE = re.compile(r"^[ \t]*([IVXLCDM]+)\.?[ \t]*\r?$", re.MULTILINE)


class SegmentationStrategy(str, Enum):
    HEADINGS = "headings"
    ROMAN_NUMERALS = "roman_numerals"
    FIXED_CHUNKS = "fixed_chunks"


@dataclass(slots=True)
class SegmentationResult:
    strategy: SegmentationStrategy
    chapters: list[Chapter] = field(default_factory=list)


def _body_below_heading(content: str) -> str:
    return content.partition("\n")[2]


def _chapters_from_marks(text: str, marks: list[tuple[int, str]]) -> list[Chapter]:
    """Cut ``text`` at each mark offset; a chapter runs to the next mark."""

    chapters: list[Chapter] = []
    for index, (start, title) in enumerate(marks):
        end = marks[index + 1][0] if index + 1 < len(marks) else len(text)
        content = text[start:end].strip()
        chapters.append(
            Chapter(
                number=index + 1,
                title=title,
                content=content,
                word_count=count_words(_body_below_heading(content)),
            )
        )
    return chapters


def find_heading_marks(text: str) -> list[tuple[int, str]]:
    return [(match.start(), normalize_whitespace(match.group(0))) for match in _HEADING_RE.finditer(text)]


def find_roman_marks(text: str) -> list[tuple[int, str]]:
    return [(match.start(), f"Section {match.group(1)}") for match in _ROMAN_LINE_RE.finditer(text)]


def chunk_by_words(text: str, *, words_per_section: int = WORDS_PER_SECTION) -> list[Chapter]:
    if words_per_section <= 0:
        raise ValueError("words_per_section must be positive")

    words = tokenize_words(text)
    chapters: list[Chapter] = []
    for start in range(0, len(words), words_per_section):
        chunk = words[start : start + words_per_section]
        number = len(chapters) + 1
        chapters.append(
            Chapter(number=number, title=f"Section {number}", content=" ".join(chunk), word_count=len(chunk))
        )
    return chapters


def split_into_chapters(text: str, *, words_per_section: int = WORDS_PER_SECTION) -> SegmentationResult:
    headings = find_heading_marks(text)
    if len(headings) >= MIN_HEADING_MATCHES:
        return SegmentationResult(SegmentationStrategy.HEADINGS, _chapters_from_marks(text, headings))

    numerals = find_roman_marks(text)
    if len(numerals) >= MIN_ROMAN_LINES:
        return SegmentationResult(SegmentationStrategy.ROMAN_NUMERALS, _chapters_from_marks(text, numerals))

    return SegmentationResult(
        SegmentationStrategy.FIXED_CHUNKS,
        chunk_by_words(text, words_per_section=words_per_section),
    )
