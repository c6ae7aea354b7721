"""Per-page text runs and images, classified into headings and paragraphs.

``classify_runs`` only sees ``TextRun`` tuples, so the heuristics are
independent of pymupdf; ``page_runs`` and ``page_images`` are the adapters
that read a live page.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field, replace
from enum import Enum
import logging
import re

import pymupdf

from folio.extraction.images import detect_mime_type, is_recognized_image
from folio.extraction.models import ExtractedImage
from folio.extraction.normalization import count_words, normalize_whitespace
from folio.extraction.pdf.chapters import CHAPTER_PATTERN

logger = logging.getLogger(__name__)

BOLD_FLAG = 16
ITALIC_FLAG = 2
HEADING_SIZE_RATIO = 1.2
MAX_HEADING_CHARS = 200
MAX_SHORT_HEADING_CHARS = 80
PARAGRAPH_GAP_RATIO = 1.5

_PAGE_NUMBER_RE = re.compile(r"^\d{1,4}$")
_BROKEN_WORD_RE = re.compile(r"(?<=[^\W\d_])-\s*$")


@dataclass(frozen=True, slots=True)
class TextRun:
    text: str
    bold: bool
    italic: bool
    font_size: float
    y: float


class ElementType(str, Enum):
    HEADING = "heading"
    PARAGRAPH = "paragraph"
    IMAGE = "image"


@dataclass(slots=True)
class PageElement:
    type: ElementType
    y: float
    runs: list[TextRun] = field(default_factory=list)
    image_path: str | None = None

    @property
    def text(self) -> str:
        return normalize_whitespace("".join(run.text for run in self.runs))


@dataclass(slots=True)
class PageContent:
    page_number: int
    elements: list[PageElement]
    images: list[ExtractedImage]

    @property
    def word_count(self) -> int:
        return sum(count_words(element.text) for element in self.elements if element.type is not ElementType.IMAGE)


@dataclass(slots=True)
class _Line:
    runs: list[TextRun]

    @property
    def y(self) -> float:
        return self.runs[0].y

    @property
    def text(self) -> str:
        return normalize_whitespace("".join(run.text for run in self.runs))

    @property
    def size(self) -> float:
        return max(run.font_size for run in self.runs)

    @property
    def bold(self) -> bool:
        visible = [run for run in self.runs if run.text.strip()]
        return bool(visible) and all(run.bold for run in visible)


def _group_lines(runs: Sequence[TextRun]) -> list[_Line]:
    lines: list[_Line] = []
    for run in runs:
        if lines and lines[-1].y == run.y:
            lines[-1].runs.append(run)
        else:
            lines.append(_Line([run]))
    return [line for line in lines if line.text]


def _median_size(lines: Sequence[_Line]) -> float:
    """Character-weighted median font size of the page body."""

    weighted = sorted((run.font_size, len(run.text.strip())) for line in lines for run in line.runs)
    total = sum(weight for _, weight in weighted)
    if not total:
        return 0.0
    seen = 0
    for size, weight in weighted:
        seen += weight
        if seen * 2 >= total:
            return size
    return weighted[-1][0]


def _is_heading(line: _Line, body_size: float, *, first: bool) -> bool:
    text = line.text
    if body_size and line.size >= body_size * HEADING_SIZE_RATIO and len(text) < MAX_HEADING_CHARS:
        return True
    return first and line.bold and len(text) <= MAX_SHORT_HEADING_CHARS


def _starts_paragraph(previous: _Line, line: _Line) -> bool:
    gap = line.y - previous.y
    return gap < 0 or gap > max(previous.size, line.size) * PARAGRAPH_GAP_RATIO


def _continue_runs(runs: list[TextRun], line: _Line) -> None:
    last = runs[-1]
    next_text = line.text
    if _BROKEN_WORD_RE.search(last.text) and next_text[:1].islower():
        runs[-1] = replace(last, text=_BROKEN_WORD_RE.sub("", last.text))
    else:
        runs[-1] = replace(last, text=last.text.rstrip() + " ")
    runs.extend(line.runs)


def classify_runs(runs: Sequence[TextRun], *, body_size: float | None = None) -> list[PageElement]:
    """Group runs into lines, lines into headings and paragraphs.

    A line is a heading when its font is at least 1.2 times the body size,
    or when it is the first line of the page, fully bold and short.  Page
    numbers alone on the first or last line are dropped.
    """

    lines = _group_lines(runs)
    if lines and _PAGE_NUMBER_RE.match(lines[-1].text):
        lines.pop()
    if lines and _PAGE_NUMBER_RE.match(lines[0].text):
        lines.pop(0)
    if not lines:
        return []

    body = body_size if body_size is not None else _median_size(lines)
    elements: list[PageElement] = []
    previous: _Line | None = None
    for position, line in enumerate(lines):
        kind = ElementType.HEADING if _is_heading(line, body, first=position == 0) else ElementType.PARAGRAPH
        current = elements[-1] if elements else None
        if current is not None and previous is not None and current.type is kind and not _starts_paragraph(previous, line):
            _continue_runs(current.runs, line)
        else:
            elements.append(PageElement(type=kind, y=line.y, runs=list(line.runs)))
        previous = line
    return elements


def leading_heading(elements: Sequence[PageElement]) -> str | None:
    """Title of the chapter starting on this page, if the page opens with one."""

    first = next((element for element in elements if element.type is not ElementType.IMAGE), None)
    if first is None:
        return None
    text = first.text
    match = CHAPTER_PATTERN.match(text)
    if match:
        return text if len(text) <= MAX_SHORT_HEADING_CHARS else match.group(0).strip()
    if first.type is ElementType.HEADING and len(text) <= MAX_SHORT_HEADING_CHARS:
        return text
    return None


def page_runs(page: pymupdf.Page) -> list[TextRun]:
    runs: list[TextRun] = []
    data = page.get_text("dict", flags=pymupdf.TEXTFLAGS_TEXT)
    for block in data.get("blocks", []):
        if block.get("type") != 0:
            continue
        for line in block.get("lines", []):
            y = round(float(line["bbox"][1]), 1)
            for span in line.get("spans", []):
                text = span.get("text", "")
                if not text:
                    continue
                flags = int(span.get("flags", 0))
                font = str(span.get("font", "")).lower()
                runs.append(
                    TextRun(
                        text=text,
                        bold=bool(flags & BOLD_FLAG) or "bold" in font,
                        italic=bool(flags & ITALIC_FLAG) or "italic" in font or "oblique" in font,
                        font_size=round(float(span.get("size", 0.0)), 1),
                        y=y,
                    )
                )
    runs.sort(key=lambda run: run.y)
    return runs


def page_images(doc: pymupdf.Document, page: pymupdf.Page, page_number: int) -> list[tuple[ExtractedImage, float]]:
    """Every raster image on *page* with the top coordinate of its first placement."""

    images: list[tuple[ExtractedImage, float]] = []
    for index, info in enumerate(page.get_images(full=True), start=1):
        xref = info[0]
        extracted = doc.extract_image(xref)
        data = extracted.get("image") if extracted else None
        if not data:
            continue
        extension = extracted.get("ext") or "jpg"
        mime_type = detect_mime_type(data) if is_recognized_image(data) else f"image/{extension}"
        rects = page.get_image_rects(xref)
        y = float(rects[0].y0) if rects else float(page.rect.height)
        images.append((ExtractedImage(f"page-{page_number}-img-{index}.{extension}", data, mime_type), y))
    return images


def extract_page(
    doc: pymupdf.Document,
    page: pymupdf.Page,
    page_number: int,
    *,
    inline_image_min_bytes: int = 2048,
) -> PageContent:
    """Text elements and inline images of one page, top of page first.

    Images below ``inline_image_min_bytes`` are treated as decoration and
    dropped.
    """

    elements = classify_runs(page_runs(page))
    inline: list[ExtractedImage] = []
    for image, y in page_images(doc, page, page_number):
        if len(image.data) < inline_image_min_bytes:
            logger.debug("Skipping decorative image %s (%d bytes)", image.original_path, len(image.data))
            continue
        inline.append(image)
        elements.append(PageElement(type=ElementType.IMAGE, y=y, image_path=image.original_path))
    elements.sort(key=lambda element: element.y)
    return PageContent(page_number=page_number, elements=elements, images=inline)
