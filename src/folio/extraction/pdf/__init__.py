"""Chapter and page structure recovery for PDF documents."""

from .chapters import (
    CHAPTER_PATTERN,
    PdfChapterCandidate,
    chapters_from_headings,
    chapters_from_outline,
    detect_chapters,
    split_by_pages,
)
from .html import elements_to_html, runs_to_html
from .page_text import (
    ElementType,
    PageContent,
    PageElement,
    TextRun,
    classify_runs,
    extract_page,
    leading_heading,
    page_images,
    page_runs,
)

__all__ = [
    "CHAPTER_PATTERN",
    "ElementType",
    "PageContent",
    "PageElement",
    "PdfChapterCandidate",
    "TextRun",
    "chapters_from_headings",
    "chapters_from_outline",
    "classify_runs",
    "detect_chapters",
    "elements_to_html",
    "extract_page",
    "leading_heading",
    "page_images",
    "page_runs",
    "runs_to_html",
    "split_by_pages",
]
