"""Tesseract OCR for PDF pages and rendered DjVu pages without a text layer.

pytesseract and Pillow are soft dependencies: they are imported only inside
``_recognize_image()``.  If Tesseract is not installed the first page logs a single
warning and every later page returns ``OcrStatus.SKIPPED`` straight away.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
import io
import logging

import pymupdf

logger = logging.getLogger(__name__)

OCR_DPI = 300

# Tesseract availability for this process: None until probed.
_tesseract_available: bool | None = None


class OcrStatus(Enum):
    SUCCESS = "success"
    EMPTY = "empty"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass(slots=True)
class OcrPageResult:
    page_number: int
    status: OcrStatus
    text: str = ""
    confidence: float | None = None
    reason: str | None = None


def _is_tesseract_not_found(exc: Exception) -> bool:
    # Matched by name so pytesseract is never imported at module level.
    if "TesseractNotFoundError" in type(exc).__name__:
        return True
    message = str(exc).lower()
    return "tesseract is not installed" in message or "tesseract is not in your path" in message


def _recognize(page: pymupdf.Page, language: str) -> tuple[str, float | None]:
    """Render *page* and return ``(text, mean word confidence)``."""
    zoom = OCR_DPI / 72
    pixmap = page.get_pixmap(matrix=pymupdf.Matrix(zoom, zoom), colorspace=pymupdf.csRGB)
    return _recognize_image(pixmap.tobytes("png"), language)


def _recognize_image(image_bytes: bytes, language: str) -> tuple[str, float | None]:
    import pytesseract
    from PIL import Image

    image = Image.open(io.BytesIO(image_bytes))

    text = pytesseract.image_to_string(image, lang=language, config="--oem 3 --psm 6")
    data = pytesseract.image_to_data(image, lang=language, output_type=pytesseract.Output.DICT)
    scores = [float(value) for value in data.get("conf", []) if float(value) >= 0]
    confidence = sum(scores) / len(scores) / 100 if scores else None
    return text, confidence


def tesseract_unavailable() -> bool:
    return _tesseract_available is False


def ocr_page(page: pymupdf.Page, page_number: int, *, language: str = "eng") -> OcrPageResult:
    return _run_ocr(page_number, lambda: _recognize(page, language))


def ocr_image(image_bytes: bytes, page_number: int, *, language: str = "eng") -> OcrPageResult:
    """OCR an already rendered page image (PNG, PNM or anything Pillow opens)."""
    return _run_ocr(page_number, lambda: _recognize_image(image_bytes, language))


def _run_ocr(page_number: int, recognize: Callable[[], tuple[str, float | None]]) -> OcrPageResult:
    global _tesseract_available

    if _tesseract_available is False:
        return OcrPageResult(page_number=page_number, status=OcrStatus.SKIPPED)

    try:
        text, confidence = recognize()
    except ImportError:
        _tesseract_available = False
        logger.warning("OCR unavailable: install 'pytesseract' and 'Pillow'")
        return OcrPageResult(page_number=page_number, status=OcrStatus.SKIPPED)
    except Exception as exc:
        if _is_tesseract_not_found(exc):
            _tesseract_available = False
            logger.warning("Tesseract is not installed or not in PATH; OCR disabled for this run")
            return OcrPageResult(page_number=page_number, status=OcrStatus.SKIPPED)
        return OcrPageResult(page_number=page_number, status=OcrStatus.FAILED, reason=str(exc))

    _tesseract_available = True
    text = text.strip()
    if not text:
        return OcrPageResult(
            page_number=page_number,
            status=OcrStatus.EMPTY,
            confidence=confidence,
            reason="Tesseract returned empty output",
        )
    return OcrPageResult(page_number=page_number, status=OcrStatus.SUCCESS, text=text, confidence=confidence)
