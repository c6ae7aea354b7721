"""PDF extractor: chapter recovery over positioned page text and images."""

from __future__ import annotations

from collections.abc import Iterator
import logging

import pymupdf

from folio.config import ExtractionSettings
from folio.extraction.extractors.base import CancellationSignal, is_cancelled
from folio.extraction.extractors.common import finalize_result
from folio.extraction.models import (
    ContentUnit,
    ExtractedImage,
    ExtractionDiagnostics,
    ExtractionError,
    ExtractionMetadata,
    ExtractionRequest,
    ExtractionResult,
    ExtractionWarning,
    SourceFormat,
    TextSource,
    WarningCode,
)
from folio.extraction.normalization import (
    count_words,
    looks_like_file_name,
    normalize_plain_text,
    normalize_whitespace,
    paragraph_to_html,
    title_from_file_name,
)
from folio.extraction.ocr import OcrStatus, ocr_page
from folio.extraction.pdf.chapters import PdfChapterCandidate, detect_chapters, split_by_pages
from folio.extraction.pdf.html import elements_to_html
from folio.extraction.pdf.page_text import PageContent, PageElement, extract_page, leading_heading, page_images
from folio.markup import html_to_plain_text
from folio.processing.watermark import is_piracy_watermark

logger = logging.getLogger(__name__)

_PDF_MAGIC = b"%PDF-"


def _first_non_empty(value: str | None) -> str | None:
    if value is None:
        return None
    cleaned = normalize_whitespace(value)
    return cleaned or None


def sample_page_indexes(page_count: int, sample_size: int) -> list[int]:
    """About ``sample_size`` 0-based page indexes spread evenly over the document."""

    if page_count <= 0 or sample_size <= 0:
        return []
    if page_count <= sample_size:
        return list(range(page_count))
    step = page_count / sample_size
    return sorted({min(page_count - 1, int(position * step + step / 2)) for position in range(sample_size)})


class PdfExtractor:
    """Extract chapters from PDFs, bounding work on image-only documents."""

    supported_format = SourceFormat.PDF

    def __init__(self, settings: ExtractionSettings | None = None) -> None:
        self._settings = settings or ExtractionSettings()

    def extract(self, request: ExtractionRequest, cancel: CancellationSignal | None = None) -> ExtractionResult:
        try:
            doc = self._open(request)
        except ExtractionError as exc:
            logger.warning("PDF parse failed: %s", exc)
            return ExtractionResult.parse_failure(SourceFormat.PDF, str(exc))

        try:
            with doc:
                return self._extract_document(doc, request, cancel)
        except Exception as exc:
            logger.warning("PDF extraction failed for %s: %s", request.file_name, exc)
            return ExtractionResult.parse_failure(SourceFormat.PDF, f"Unreadable PDF document: {exc}")

    def _open(self, request: ExtractionRequest) -> pymupdf.Document:
        if _PDF_MAGIC not in request.content[:1024]:
            raise ExtractionError(request.file_name, "Missing %PDF- header")
        try:
            doc = pymupdf.open(stream=request.content, filetype="pdf")
        except Exception as exc:
            raise ExtractionError(request.file_name, f"Unreadable PDF document: {exc}") from exc
        if doc.needs_pass:
            doc.close()
            raise ExtractionError(request.file_name, "PDF is password protected")
        return doc

    def _extract_document(
        self,
        doc: pymupdf.Document,
        request: ExtractionRequest,
        cancel: CancellationSignal | None,
    ) -> ExtractionResult:
        result = ExtractionResult(source_format=SourceFormat.PDF, metadata=self._extract_metadata(doc, request))
        warnings = result.diagnostics.warnings

        page_count = doc.page_count
        if page_count == 0:
            warnings.append(ExtractionWarning(WarningCode.EMPTY_CONTENT, "PDF has no pages"))
            return result
        if page_count > self._settings.max_pdf_pages:
            warnings.append(
                ExtractionWarning(
                    WarningCode.PARTIAL_EXTRACTION,
                    f"PDF has {page_count} pages; only the first {self._settings.max_pdf_pages} were read",
                )
            )
            page_count = self._settings.max_pdf_pages

        # Taken before the text-layer check; discarded again if the sample finds no text.
        early_cover = self._page_one_cover(doc, warnings)

        if self._sampled_word_count(doc, page_count) == 0:
            if self._settings.enable_ocr_fallback and page_count <= self._settings.max_pages_for_ocr:
                return self._extract_with_ocr(doc, page_count, result, cancel)
            return self._no_text_layer(result, early_cover)

        cache: dict[int, PageContent] = {}
        outline = self._outline(doc)
        candidates = detect_chapters(
            page_count,
            outline=outline,
            heading_hits=self._heading_hits(doc, page_count, cache, cancel),
            pages_per_chapter=self._settings.pages_per_chapter,
        )
        logger.debug("PDF %s: %d pages in %d chapters", request.file_name, page_count, len(candidates))

        for number, candidate in enumerate(candidates, start=1):
            if is_cancelled(cancel):
                logger.info("PDF extraction cancelled after %d units", len(result.units))
                break
            unit = self._build_chapter(doc, candidate, number, len(result.units), cache, result, cancel)
            if unit is not None:
                result.units.append(unit)

        self._select_cover(result, early_cover)
        result.diagnostics.text_source = TextSource.NATIVE_TEXT
        return finalize_result(result, self._settings)

    def _extract_metadata(self, doc: pymupdf.Document, request: ExtractionRequest) -> ExtractionMetadata:
        doc_metadata = doc.metadata or {}
        title = _first_non_empty(doc_metadata.get("title"))
        if looks_like_file_name(title):
            title = title_from_file_name(request.file_name)
        return ExtractionMetadata(
            title=title,
            authors=_first_non_empty(doc_metadata.get("author")),
            description=_first_non_empty(doc_metadata.get("subject")),
        )

    def _outline(self, doc: pymupdf.Document) -> list[list] | None:
        try:
            return doc.get_toc(simple=True)
        except Exception as exc:
            logger.warning("Unreadable PDF outline: %s", exc)
            return None

    def _sampled_word_count(self, doc: pymupdf.Document, page_count: int) -> int:
        words = 0
        for index in sample_page_indexes(page_count, self._settings.pdf_sample_pages):
            try:
                words += count_words(doc[index].get_text("text"))
            except Exception as exc:
                logger.debug("Sample page %d unreadable: %s", index + 1, exc)
        return words

    def _no_text_layer(self, result: ExtractionResult, early_cover: ExtractedImage | None) -> ExtractionResult:
        if early_cover is not None:
            logger.debug("Dropping page-1 cover of image-only PDF")
        result.diagnostics.text_source = TextSource.NONE
        result.diagnostics.warnings.append(
            ExtractionWarning(
                WarningCode.NO_TEXT_LAYER,
                "No extractable text in sampled pages; the PDF looks image-only",
            )
        )
        return result

    def _page_one_cover(self, doc: pymupdf.Document, warnings: list[ExtractionWarning]) -> ExtractedImage | None:
        try:
            images = page_images(doc, doc[0], 1)
        except Exception as exc:
            warnings.append(ExtractionWarning(WarningCode.COVER_EXTRACTION_FAILED, f"Page 1 images unreadable: {exc}"))
            return None
        if not images:
            return None
        return max((image for image, _y in images), key=lambda image: len(image.data))

    def _select_cover(self, result: ExtractionResult, early_cover: ExtractedImage | None) -> None:
        page_one = [image for image in result.images if image.original_path.startswith("page-1-")]
        cover = max(page_one, key=lambda image: len(image.data), default=None)
        if early_cover is not None and (cover is None or len(early_cover.data) > len(cover.data)):
            cover = next((image for image in result.images if image.original_path == early_cover.original_path), None)
            if cover is None:
                cover = early_cover
                result.images.append(cover)
        if cover is None:
            return
        cover.is_cover = True
        result.metadata.cover_image = cover.data
        result.metadata.cover_mime_type = cover.mime_type

    def _page(self, doc: pymupdf.Document, page_number: int, cache: dict[int, PageContent]) -> PageContent:
        content = cache.get(page_number)
        if content is None:
            content = extract_page(
                doc,
                doc[page_number - 1],
                page_number,
                inline_image_min_bytes=self._settings.inline_image_min_bytes,
            )
            cache[page_number] = content
        return content

    def _heading_hits(
        self,
        doc: pymupdf.Document,
        page_count: int,
        cache: dict[int, PageContent],
        cancel: CancellationSignal | None,
    ) -> Iterator[tuple[int, str]]:
        previous: str | None = None
        for page_number in range(1, min(self._settings.heading_scan_pages, page_count) + 1):
            if is_cancelled(cancel):
                return
            try:
                content = self._page(doc, page_number, cache)
            except Exception as exc:
                # Reported as PAGE_PARSE_ERROR when the chapter pass reaches it.
                logger.debug("Heading scan skipped page %d: %s", page_number, exc)
                continue
            title = leading_heading(content.elements)
            if title is None:
                continue
            if title != previous:
                yield page_number, title
            previous = title

    def _build_chapter(
        self,
        doc: pymupdf.Document,
        candidate: PdfChapterCandidate,
        number: int,
        order_index: int,
        cache: dict[int, PageContent],
        result: ExtractionResult,
        cancel: CancellationSignal | None,
    ) -> ContentUnit | None:
        elements: list[PageElement] = []
        images: list[ExtractedImage] = []
        for page_number in candidate.pages:
            if is_cancelled(cancel):
                break
            try:
                content = self._page(doc, page_number, cache)
            except Exception as exc:
                logger.warning("Skipping PDF page %d: %s", page_number, exc)
                result.diagnostics.warnings.append(
                    ExtractionWarning(WarningCode.PAGE_PARSE_ERROR, f"Failed to parse page {page_number}: {exc}")
                )
                continue
            elements.extend(content.elements)
            images.extend(content.images)
            # Pages are not revisited once their chapter is built.
            cache.pop(page_number, None)

        try:
            html = elements_to_html(elements)
            plain_text = html_to_plain_text(html)
            watermark = is_piracy_watermark(html)
        except Exception as exc:
            logger.warning("Skipping PDF chapter %d: %s", number, exc)
            result.diagnostics.warnings.append(
                ExtractionWarning(WarningCode.CHAPTER_PARSE_ERROR, f"Failed to build chapter {number}: {exc}")
            )
            return None
        if not plain_text and not images:
            return None
        if watermark:
            logger.info("Dropping watermark chapter %d", number)
            result.diagnostics.warnings.append(
                ExtractionWarning(WarningCode.CONTENT_FILTERED, f"Dropped watermark chapter {number}")
            )
            return None

        result.images.extend(images)
        title = candidate.title or leading_heading(elements) or f"Section {number}"
        return ContentUnit(title=title, html=html, plain_text=plain_text, order_index=order_index)

    def _extract_with_ocr(
        self,
        doc: pymupdf.Document,
        page_count: int,
        result: ExtractionResult,
        cancel: CancellationSignal | None,
    ) -> ExtractionResult:
        page_texts: dict[int, str] = {}
        confidences: list[float] = []
        for page_number in range(1, page_count + 1):
            if is_cancelled(cancel):
                break
            outcome = ocr_page(doc[page_number - 1], page_number, language=self._settings.ocr_language)
            if outcome.status is OcrStatus.SKIPPED:
                return self._no_text_layer(result, None)
            if outcome.status is OcrStatus.FAILED:
                result.diagnostics.warnings.append(
                    ExtractionWarning(WarningCode.PAGE_PARSE_ERROR, f"OCR failed on page {page_number}: {outcome.reason}")
                )
                continue
            if outcome.confidence is not None:
                confidences.append(outcome.confidence)
            if outcome.text:
                page_texts[page_number] = outcome.text

        if not page_texts:
            return self._no_text_layer(result, None)

        for candidate in split_by_pages(page_count, self._settings.pages_per_chapter):
            paragraphs: list[str] = []
            for page_number in candidate.pages:
                text = normalize_plain_text(page_texts.get(page_number, ""))
                paragraphs.extend(block for block in text.split("\n\n") if block.strip())
            if not paragraphs:
                continue
            html = "\n".join(paragraph_to_html(paragraph) for paragraph in paragraphs)
            result.units.append(
                ContentUnit(
                    title=candidate.title or f"Section {len(result.units) + 1}",
                    html=html,
                    plain_text=html_to_plain_text(html),
                    order_index=len(result.units),
                )
            )

        result.diagnostics = ExtractionDiagnostics(
            text_source=TextSource.OCR,
            ocr_confidence=sum(confidences) / len(confidences) if confidences else None,
            warnings=result.diagnostics.warnings,
        )
        return finalize_result(result, self._settings)
