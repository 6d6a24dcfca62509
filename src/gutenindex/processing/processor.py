"""Turns downloaded raw texts into chapter-segmented Book artifacts."""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
import time

from charset_normalizer import from_bytes

from gutenindex.corpus.models import Book, BookMeta, CatalogEntry
from gutenindex.corpus.store import CorpusPaths, save_book, save_book_index
from gutenindex.processing.boilerplate import strip_boilerplate
from gutenindex.processing.segmentation import WORDS_PER_SECTION, SegmentationStrategy, split_into_chapters
from gutenindex.processing.slugs import SlugRegistry


LOGGER = logging.getLogger(__name__)

MIN_TEXT_LENGTH = 100
_PROGRESS_EVERY = 50


@dataclass(slots=True)
class ProcessingStats:
    total: int = 0
    processed: int = 0
    skipped_missing: int = 0
    skipped_short: int = 0
    duration_ms: int = 0
    strategies: dict[str, int] = field(default_factory=lambda: {strategy.value: 0 for strategy in SegmentationStrategy})
    skipped_details: list[dict[str, str | int]] = field(default_factory=list)

    @property
    def skipped(self) -> int:
        return self.skipped_missing + self.skipped_short

    def to_dict(self) -> dict[str, object]:
        return {
            "total": self.total,
            "processed": self.processed,
            "skipped": self.skipped,
            "skipped_missing": self.skipped_missing,
            "skipped_short": self.skipped_short,
            "strategies": dict(self.strategies),
            "duration_ms": self.duration_ms,
            "skipped_details": self.skipped_details,
        }


def decode_raw_text(raw: bytes) -> str:
    """Decode downloaded bytes, guessing the charset when it is not UTF-8."""

    best = from_bytes(raw).best()
    if best is not None and best.encoding:
        return str(best)

    for fallback in ("utf-8", "cp1252"):
        try:
            return raw.decode(fallback)
        except UnicodeDecodeError:
            continue
    return raw.decode("utf-8", errors="replace")


def prepare_text(raw_text: str, *, min_length: int = MIN_TEXT_LENGTH) -> str | None:
    """Strip boilerplate; None means the remaining text is too short to keep."""

    clean = strip_boilerplate(raw_text)
    if len(clean) < min_length:
        return None
    return clean


def build_book(
    entry: CatalogEntry,
    clean_text: str,
    registry: SlugRegistry,
    *,
    language: str = "en",
    words_per_section: int = WORDS_PER_SECTION,
) -> tuple[Book, SegmentationStrategy]:
    segmentation = split_into_chapters(clean_text, words_per_section=words_per_section)
    slug = registry.claim(entry.title, entry.id)
    book = Book.assemble(entry, slug=slug, chapters=segmentation.chapters, language=language)
    return book, segmentation.strategy


class DocumentProcessor:
    """Processes catalog entries one by one, in catalog order.

    Slug assignment depends on every earlier decision in the run, so this
    stage is strictly sequential.
    """

    def __init__(
        self,
        paths: CorpusPaths,
        *,
        language: str = "en",
        min_text_length: int = MIN_TEXT_LENGTH,
        words_per_section: int = WORDS_PER_SECTION,
        registry: SlugRegistry | None = None,
    ) -> None:
        self._paths = paths
        self._language = language
        self._min_text_length = min_text_length
        self._words_per_section = words_per_section
        self._registry = registry or SlugRegistry()

    @property
    def registry(self) -> SlugRegistry:
        return self._registry

    def process_catalog(self, entries: list[CatalogEntry]) -> ProcessingStats:
        started = time.perf_counter()
        stats = ProcessingStats(total=len(entries))
        index: list[BookMeta] = []
        self._paths.processed_dir.mkdir(parents=True, exist_ok=True)

        for entry in entries:
            book = self._process_entry(entry, stats)
            if book is None:
                continue

            save_book(self._paths, book)
            index.append(book.meta())
            stats.processed += 1
            if stats.processed % _PROGRESS_EVERY == 0:
                LOGGER.info("Progress: %d books processed", stats.processed)

        save_book_index(self._paths, index)
        stats.duration_ms = int((time.perf_counter() - started) * 1000)
        return stats

    def _process_entry(self, entry: CatalogEntry, stats: ProcessingStats) -> Book | None:
        raw_path = self._paths.raw_text(entry.id)
        if not raw_path.exists():
            stats.skipped_missing += 1
            stats.skipped_details.append({"id": entry.id, "reason": "missing_raw_text"})
            return None

        clean_text = prepare_text(decode_raw_text(raw_path.read_bytes()), min_length=self._min_text_length)
        if clean_text is None:
            LOGGER.info("Skipping book %d (%s): too short after stripping", entry.id, entry.title)
            stats.skipped_short += 1
            stats.skipped_details.append({"id": entry.id, "reason": "too_short"})
            return None

        book, strategy = build_book(
            entry,
            clean_text,
            self._registry,
            language=self._language,
            words_per_section=self._words_per_section,
        )
        stats.strategies[strategy.value] += 1
        return book
