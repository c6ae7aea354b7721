"""OCR degradation and the image-only PDF fallback path."""

from __future__ import annotations

import logging

import pymupdf
import pytest

import folio.extraction.ocr as ocr
from folio.config import ExtractionSettings
from folio.extraction.extractors import pdf_extractor
from folio.extraction.extractors.pdf_extractor import PdfExtractor
from folio.extraction.models import ExtractionRequest, TextSource, WarningCode
from folio.extraction.ocr import OcrPageResult, OcrStatus


def _blank_pdf(pages: int = 3) -> bytes:
    doc = pymupdf.open()
    for _ in range(pages):
        doc.new_page()
    data = doc.tobytes()
    doc.close()
    return data


@pytest.fixture(autouse=True)
def _fresh_tesseract_flag(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(ocr, "_tesseract_available", None)


def test_is_tesseract_not_found_by_class_name_and_message() -> None:
    class TesseractNotFoundError(Exception):
        pass

    assert ocr._is_tesseract_not_found(TesseractNotFoundError("anything"))
    assert ocr._is_tesseract_not_found(Exception("tesseract is not installed or it's not in your PATH"))
    assert not ocr._is_tesseract_not_found(Exception("some other failure"))


def test_missing_tesseract_warns_once_and_skips_later_pages(
    monkeypatch: pytest.MonkeyPatch,
    caplog: pytest.LogCaptureFixture,
) -> None:
    calls: list[int] = []

    class TesseractNotFoundError(Exception):
        pass

    def _missing(_page, _language):
        calls.append(1)
        raise TesseractNotFoundError("tesseract is not installed or it's not in your PATH")

    monkeypatch.setattr(ocr, "_recognize", _missing)
    doc = pymupdf.open()
    page = doc.new_page()

    with caplog.at_level(logging.WARNING, logger="folio.extraction.ocr"):
        first = ocr.ocr_page(page, 1)
        second = ocr.ocr_page(page, 2)
    doc.close()

    assert first.status is OcrStatus.SKIPPED
    assert second.status is OcrStatus.SKIPPED
    assert len(calls) == 1
    assert ocr.tesseract_unavailable()
    warnings = [record for record in caplog.records if record.levelno == logging.WARNING]
    assert len(warnings) == 1


def test_missing_python_packages_are_reported_as_skipped(monkeypatch: pytest.MonkeyPatch) -> None:
    def _no_packages(_page, _language):
        raise ImportError("No module named 'pytesseract'")

    monkeypatch.setattr(ocr, "_recognize", _no_packages)
    doc = pymupdf.open()
    result = ocr.ocr_page(doc.new_page(), 1)
    doc.close()

    assert result.status is OcrStatus.SKIPPED
    assert ocr._tesseract_available is False


def test_recognition_outcomes(monkeypatch: pytest.MonkeyPatch) -> None:
    doc = pymupdf.open()
    page = doc.new_page()

    monkeypatch.setattr(ocr, "_recognize", lambda _page, _language: ("  \n", 0.4))
    empty = ocr.ocr_page(page, 1)

    monkeypatch.setattr(ocr, "_recognize", lambda _page, _language: (" Some text \n", 0.8))
    success = ocr.ocr_page(page, 2)

    def _broken(_page, _language):
        raise RuntimeError("bad image")

    monkeypatch.setattr(ocr, "_recognize", _broken)
    failed = ocr.ocr_page(page, 3)
    doc.close()

    assert empty.status is OcrStatus.EMPTY
    assert success == OcrPageResult(page_number=2, status=OcrStatus.SUCCESS, text="Some text", confidence=0.8)
    assert failed.status is OcrStatus.FAILED
    assert failed.reason == "bad image"
    assert ocr._tesseract_available is True


def test_rendered_images_share_the_tesseract_state(monkeypatch: pytest.MonkeyPatch) -> None:
    seen: list[bytes] = []

    def _read(image_bytes, language):
        seen.append(image_bytes)
        return (f" text in {language} ", 0.5)

    monkeypatch.setattr(ocr, "_recognize_image", _read)
    success = ocr.ocr_image(b"P6 image", 4, language="rus")

    monkeypatch.setattr(ocr, "_tesseract_available", False)
    skipped = ocr.ocr_image(b"P6 image", 5)

    assert success == OcrPageResult(page_number=4, status=OcrStatus.SUCCESS, text="text in rus", confidence=0.5)
    assert skipped.status is OcrStatus.SKIPPED
    assert seen == [b"P6 image"]


def test_image_only_pdf_uses_ocr_text_when_enabled(monkeypatch: pytest.MonkeyPatch) -> None:
    def _fake_ocr(_page, page_number: int, *, language: str = "eng") -> OcrPageResult:
        return OcrPageResult(
            page_number=page_number,
            status=OcrStatus.SUCCESS,
            text=f"Recognized words from scanned page number {page_number}.",
            confidence=0.9,
        )

    monkeypatch.setattr(pdf_extractor, "ocr_page", _fake_ocr)
    extractor = PdfExtractor(ExtractionSettings(enable_ocr_fallback=True))

    result = extractor.extract(ExtractionRequest(content=_blank_pdf(3), file_name="scan.pdf"))

    assert result.diagnostics.text_source is TextSource.OCR
    assert result.diagnostics.ocr_confidence == pytest.approx(0.9)
    assert WarningCode.NO_TEXT_LAYER not in result.diagnostics.codes()
    assert len(result.units) == 1
    assert result.units[0].title == "Pages 1\u20133"
    assert "scanned page number 3" in result.units[0].plain_text
    assert result.units[0].html.count("<p>") == 3


def test_image_only_pdf_without_tesseract_reports_no_text_layer(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(
        pdf_extractor,
        "ocr_page",
        lambda _page, page_number, *, language="eng": OcrPageResult(page_number, OcrStatus.SKIPPED),
    )
    extractor = PdfExtractor(ExtractionSettings(enable_ocr_fallback=True))

    result = extractor.extract(ExtractionRequest(content=_blank_pdf(2), file_name="scan.pdf"))

    assert result.units == []
    assert result.diagnostics.text_source is TextSource.NONE
    assert WarningCode.NO_TEXT_LAYER in result.diagnostics.codes()


def test_ocr_is_not_attempted_when_disabled(monkeypatch: pytest.MonkeyPatch) -> None:
    def _unexpected(*_args, **_kwargs):
        raise AssertionError("OCR must not run")

    monkeypatch.setattr(pdf_extractor, "ocr_page", _unexpected)

    result = PdfExtractor().extract(ExtractionRequest(content=_blank_pdf(2), file_name="scan.pdf"))

    assert WarningCode.NO_TEXT_LAYER in result.diagnostics.codes()
