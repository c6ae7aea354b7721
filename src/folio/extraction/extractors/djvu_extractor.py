"""DjVu extractor backed by the DjVuLibre command-line tools.

``djvutxt`` prints the hidden text layer with pages separated by form feeds,
``ddjvu`` renders pages (the cover and OCR input) and ``djvused`` reports the
page count.  None of them is required: a missing or failing tool becomes a
warning on the result.
"""

from __future__ import annotations

import logging
from pathlib import Path
import subprocess
import tempfile

import pymupdf

from folio.config import ExtractionSettings
from folio.extraction.extractors.base import CancellationSignal, is_cancelled
from folio.extraction.extractors.common import finalize_result
from folio.extraction.models import (
    ContentUnit,
    ExtractedImage,
    ExtractionMetadata,
    ExtractionRequest,
    ExtractionResult,
    ExtractionWarning,
    SourceFormat,
    TextSource,
    WarningCode,
)
from folio.extraction.normalization import normalize_plain_text, paragraph_to_html, title_from_file_name
from folio.extraction.ocr import OcrStatus, ocr_image
from folio.markup import html_to_plain_text

logger = logging.getLogger(__name__)

DJVU_MAGIC = b"AT&TFORM"
PAGE_BREAK = "\f"
COVER_SIZE = "800x1200"
OCR_RENDER_SIZE = "2000x3000"


class DjvuToolError(RuntimeError):
    """A DjVuLibre tool is missing, timed out or exited with an error."""


class DjvuExtractor:
    """One content unit per non-empty page of the text layer."""

    supported_format = SourceFormat.DJVU

    def __init__(
        self,
        settings: ExtractionSettings | None = None,
        *,
        djvutxt: str = "djvutxt",
        ddjvu: str = "ddjvu",
        djvused: str = "djvused",
    ) -> None:
        self._settings = settings or ExtractionSettings()
        self._djvutxt = djvutxt
        self._ddjvu = ddjvu
        self._djvused = djvused

    def extract(self, request: ExtractionRequest, cancel: CancellationSignal | None = None) -> ExtractionResult:
        if not request.content.startswith(DJVU_MAGIC):
            logger.warning("DjVu parse failed for %s: missing AT&TFORM header", request.file_name)
            return ExtractionResult.parse_failure(SourceFormat.DJVU, "Missing AT&TFORM header")

        try:
            # The tools only read from the filesystem.
            with tempfile.TemporaryDirectory(prefix="folio-djvu-") as workdir:
                source = Path(workdir) / "book.djvu"
                source.write_bytes(request.content)
                return self._extract_file(source, request, cancel)
        except Exception as exc:
            logger.warning("DjVu extraction failed for %s: %s", request.file_name, exc)
            return ExtractionResult.parse_failure(SourceFormat.DJVU, f"Unreadable DjVu document: {exc}")

    def _extract_file(
        self,
        source: Path,
        request: ExtractionRequest,
        cancel: CancellationSignal | None,
    ) -> ExtractionResult:
        result = ExtractionResult(
            source_format=SourceFormat.DJVU,
            metadata=ExtractionMetadata(title=title_from_file_name(request.file_name)),
        )
        self._attach_cover(source, result)

        pages = self._native_pages(source, result)
        numbered = [(number, text) for number, text in enumerate(pages, start=1) if text]
        for page_number, text in numbered:
            if is_cancelled(cancel):
                logger.info("DjVu extraction cancelled after %d units", len(result.units))
                break
            title = f"Page {page_number}" if len(numbered) > 1 else (result.metadata.title or "Page 1")
            self._append_page(result, title, text)

        if result.units:
            result.diagnostics.text_source = TextSource.NATIVE_TEXT
            return finalize_result(result, self._settings)
        if self._settings.enable_ocr_fallback:
            return self._extract_with_ocr(source, result, cancel)
        return self._no_text_layer(result)

    def _run(self, command: list[str]) -> subprocess.CompletedProcess[bytes]:
        tool = command[0]
        try:
            completed = subprocess.run(
                command,
                capture_output=True,
                timeout=self._settings.djvu_tool_timeout,
                check=False,
            )
        except subprocess.TimeoutExpired as exc:
            raise DjvuToolError(f"{tool} timed out after {exc.timeout} seconds") from exc
        except OSError as exc:
            raise DjvuToolError(f"{tool} not available: {exc}") from exc
        if completed.returncode != 0:
            stderr = completed.stderr.decode("utf-8", errors="replace").strip()
            detail = f": {stderr}" if stderr else ""
            raise DjvuToolError(f"{tool} exited with status {completed.returncode}{detail}")
        return completed

    def _native_pages(self, source: Path, result: ExtractionResult) -> list[str]:
        try:
            completed = self._run([self._djvutxt, str(source)])
        except DjvuToolError as exc:
            logger.warning("DjVu text layer unreadable: %s", exc)
            result.diagnostics.warnings.append(ExtractionWarning(WarningCode.PARTIAL_EXTRACTION, str(exc)))
            return []
        text = completed.stdout.decode("utf-8", errors="replace")
        return [normalize_plain_text(page) for page in text.split(PAGE_BREAK)]

    def _append_page(self, result: ExtractionResult, title: str, text: str) -> None:
        html = "\n".join(paragraph_to_html(block) for block in text.split("\n\n") if block.strip())
        plain_text = html_to_plain_text(html)
        if not plain_text:
            return
        result.units.append(ContentUnit(title=title, html=html, plain_text=plain_text, order_index=len(result.units)))

    def _render(self, source: Path, page_number: int, size: str, target: Path) -> bytes:
        self._run([self._ddjvu, "-format=pnm", f"-page={page_number}", f"-size={size}", str(source), str(target)])
        try:
            return target.read_bytes()
        finally:
            target.unlink(missing_ok=True)

    def _attach_cover(self, source: Path, result: ExtractionResult) -> None:
        try:
            rendered = self._render(source, 1, COVER_SIZE, source.with_name("cover.pnm"))
            data = pymupdf.Pixmap(rendered).tobytes("png")
        except Exception as exc:
            logger.warning("DjVu cover rendering failed: %s", exc)
            result.diagnostics.warnings.append(
                ExtractionWarning(WarningCode.COVER_EXTRACTION_FAILED, f"Failed to render the first page: {exc}")
            )
            return
        cover = ExtractedImage(original_path="page-1.png", data=data, mime_type="image/png", is_cover=True)
        result.images.append(cover)
        result.metadata.cover_image = cover.data
        result.metadata.cover_mime_type = cover.mime_type

    def _page_count(self, source: Path) -> int:
        completed = self._run([self._djvused, "-e", "n", str(source)])
        try:
            return int(completed.stdout.decode("ascii", errors="replace").strip())
        except ValueError as exc:
            raise DjvuToolError(f"{self._djvused} printed no page count") from exc

    def _extract_with_ocr(
        self,
        source: Path,
        result: ExtractionResult,
        cancel: CancellationSignal | None,
    ) -> ExtractionResult:
        warnings = result.diagnostics.warnings
        try:
            page_count = self._page_count(source)
        except DjvuToolError as exc:
            logger.warning("DjVu page count unavailable: %s", exc)
            warnings.append(ExtractionWarning(WarningCode.PARSE_ERROR, f"Could not determine page count: {exc}"))
            return self._no_text_layer(result)
        if page_count > self._settings.max_pages_for_ocr:
            warnings.append(
                ExtractionWarning(
                    WarningCode.PARTIAL_EXTRACTION,
                    f"DjVu has {page_count} pages, exceeding the OCR limit of {self._settings.max_pages_for_ocr}",
                )
            )
            return self._no_text_layer(result)

        confidences: list[float] = []
        for page_number in range(1, page_count + 1):
            if is_cancelled(cancel):
                break
            try:
                image = self._render(source, page_number, OCR_RENDER_SIZE, source.with_name(f"page-{page_number}.pnm"))
            except (DjvuToolError, OSError) as exc:
                warnings.append(
                    ExtractionWarning(WarningCode.PAGE_PARSE_ERROR, f"Failed to render page {page_number}: {exc}")
                )
                continue
            outcome = ocr_image(image, page_number, language=self._settings.ocr_language)
            if outcome.status is OcrStatus.SKIPPED:
                return self._no_text_layer(result)
            if outcome.status is OcrStatus.FAILED:
                warnings.append(
                    ExtractionWarning(WarningCode.PAGE_PARSE_ERROR, f"OCR failed on page {page_number}: {outcome.reason}")
                )
                continue
            if outcome.confidence is not None:
                confidences.append(outcome.confidence)
            if outcome.text:
                self._append_page(result, f"Page {page_number}", normalize_plain_text(outcome.text))

        if not result.units:
            return self._no_text_layer(result)
        result.diagnostics.text_source = TextSource.OCR
        result.diagnostics.ocr_confidence = sum(confidences) / len(confidences) if confidences else None
        return finalize_result(result, self._settings)

    def _no_text_layer(self, result: ExtractionResult) -> ExtractionResult:
        result.diagnostics.text_source = TextSource.NONE
        result.diagnostics.warnings.append(
            ExtractionWarning(WarningCode.NO_TEXT_LAYER, "DjVu contains no extractable text layer")
        )
        return result
