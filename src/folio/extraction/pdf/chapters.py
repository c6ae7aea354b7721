"""Chapter boundaries for PDFs: outline, then heading scan, then fixed page runs."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
import logging
import math

from folio.extraction.normalization import CHAPTER_PATTERN

logger = logging.getLogger(__name__)

MIN_BOUNDARIES = 2
PAGE_RANGE_DASH = "\u2013"

# Outline rows as returned by ``Document.get_toc(simple=True)``: [level, title, page].
OutlineRow = Sequence


@dataclass(frozen=True, slots=True)
class PdfChapterCandidate:
    """Inclusive 1-based page range of one chapter."""

    start_page: int
    end_page: int
    title: str | None = None

    @property
    def pages(self) -> range:
        return range(self.start_page, self.end_page + 1)


def split_by_pages(page_count: int, pages_per_chapter: int = 15) -> list[PdfChapterCandidate]:
    """``ceil(page_count / pages_per_chapter)`` contiguous runs titled ``Pages a–b``."""

    if page_count <= 0:
        return []
    if pages_per_chapter <= 0:
        raise ValueError("pages_per_chapter must be > 0")

    candidates: list[PdfChapterCandidate] = []
    for index in range(math.ceil(page_count / pages_per_chapter)):
        start = index * pages_per_chapter + 1
        end = min(start + pages_per_chapter - 1, page_count)
        candidates.append(PdfChapterCandidate(start, end, f"Pages {start}{PAGE_RANGE_DASH}{end}"))
    return candidates


def _from_starts(starts: Sequence[tuple[int, str | None]], page_count: int) -> list[PdfChapterCandidate]:
    candidates: list[PdfChapterCandidate] = []
    for position, (start, title) in enumerate(starts):
        # Front matter before the first boundary belongs to the first chapter.
        first_page = 1 if position == 0 else start
        last_page = starts[position + 1][0] - 1 if position + 1 < len(starts) else page_count
        candidates.append(PdfChapterCandidate(first_page, last_page, title))
    return candidates


def _unique_starts(rows: Iterable[tuple[int, str | None]], page_count: int) -> list[tuple[int, str | None]]:
    seen: dict[int, str | None] = {}
    for page, title in rows:
        if 1 <= page <= page_count and page not in seen:
            seen[page] = title
    return sorted(seen.items())


def chapters_from_outline(outline: Sequence[OutlineRow] | None, page_count: int) -> list[PdfChapterCandidate]:
    """Top-level bookmarks, or every bookmark when the top level names one page only."""

    if not outline or page_count <= 0:
        return []

    rows: list[tuple[int, int, str | None]] = []
    for row in outline:
        try:
            level, title, page = int(row[0]), row[1], int(row[2])
        except (IndexError, TypeError, ValueError):
            continue
        cleaned = " ".join(str(title or "").split()) or None
        rows.append((level, page, cleaned))
    if not rows:
        return []

    top_level = min(level for level, _, _ in rows)
    starts = _unique_starts(((page, title) for level, page, title in rows if level == top_level), page_count)
    if len(starts) < MIN_BOUNDARIES:
        starts = _unique_starts(((page, title) for _, page, title in rows), page_count)
    if len(starts) < MIN_BOUNDARIES:
        return []
    return _from_starts(starts, page_count)


def chapters_from_headings(hits: Iterable[tuple[int, str]], page_count: int) -> list[PdfChapterCandidate]:
    starts = _unique_starts(hits, page_count)
    if len(starts) < MIN_BOUNDARIES:
        return []
    return _from_starts(starts, page_count)


def detect_chapters(
    page_count: int,
    *,
    outline: Sequence[OutlineRow] | None = None,
    heading_hits: Iterable[tuple[int, str]] = (),
    pages_per_chapter: int = 15,
) -> list[PdfChapterCandidate]:
    """Return chapter ranges covering ``[1, page_count]``.

    ``heading_hits`` is only consumed when the outline yields nothing, so a
    lazy generator keeps the page scan off the common bookmarked path.
    """

    candidates = chapters_from_outline(outline, page_count)
    if candidates:
        logger.debug("Using %d outline chapters", len(candidates))
        return candidates

    candidates = chapters_from_headings(heading_hits, page_count)
    if candidates:
        logger.debug("Using %d heading chapters", len(candidates))
        return candidates

    return split_by_pages(page_count, pages_per_chapter)
