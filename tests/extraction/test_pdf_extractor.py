from __future__ import annotations

from pathlib import Path
import time

import pymupdf
import pytest

from folio.config import ExtractionSettings
from folio.extraction.extractors import pdf_extractor
from folio.extraction.extractors.pdf_extractor import PdfExtractor, sample_page_indexes
from folio.extraction.models import ExtractionRequest, SourceFormat, TextSource, WarningCode


def _build_pdf(path: Path, *, title: str | None, author: str | None) -> None:
    doc = pymupdf.open()
    page_one = doc.new_page()
    page_one.insert_text((72, 72), "First paragraph on page one.")
    page_one.insert_text((72, 120), "Second paragraph on page one.")

    page_two = doc.new_page()
    page_two.insert_text((72, 72), "Opening paragraph on page two.")

    metadata = {}
    if title:
        metadata["title"] = title
    if author:
        metadata["author"] = author
    if metadata:
        doc.set_metadata(metadata)

    doc.save(str(path))
    doc.close()


def _png(size: int = 64) -> bytes:
    pixmap = pymupdf.Pixmap(pymupdf.csRGB, pymupdf.IRect(0, 0, size, size), False)
    pixmap.set_rect(pixmap.irect, (200, 40, 40))
    return pixmap.tobytes("png")


def _extract(path: Path, settings: ExtractionSettings | None = None):
    return PdfExtractor(settings).extract(ExtractionRequest.from_path(path))


def test_pdf_extractor_reads_metadata_and_text(tmp_path: Path) -> None:
    pdf_path = tmp_path / "sample.pdf"
    _build_pdf(pdf_path, title="Collected Works", author="Jane Doe")

    result = _extract(pdf_path)

    assert result.source_format is SourceFormat.PDF
    assert result.metadata.title == "Collected Works"
    assert result.metadata.authors == "Jane Doe"
    assert result.diagnostics.text_source is TextSource.NATIVE_TEXT
    assert len(result.units) == 1
    unit = result.units[0]
    assert unit.title == "Pages 1\u20132"
    assert unit.plain_text.index("First paragraph") < unit.plain_text.index("Opening paragraph")
    assert unit.html.count("<p>") == 3


def test_pdf_extractor_falls_back_to_filename_for_missing_title(tmp_path: Path) -> None:
    pdf_path = tmp_path / "my-awesome_book.pdf"
    _build_pdf(pdf_path, title=None, author=None)

    result = _extract(pdf_path)

    assert result.metadata.title == "My Awesome Book"
    assert result.metadata.authors is None


def test_pdf_without_structure_splits_into_fifteen_page_chapters(tmp_path: Path) -> None:
    doc = pymupdf.open()
    for number in range(1, 31):
        page = doc.new_page()
        page.insert_text((72, 72), f"This is page {number} of a plain document without headings.")
    pdf_path = tmp_path / "plain.pdf"
    doc.save(str(pdf_path))
    doc.close()

    result = _extract(pdf_path)

    assert [unit.title for unit in result.units] == ["Pages 1\u201315", "Pages 16\u201330"]
    first, second = result.units
    assert "page 1 of" in first.plain_text
    assert "page 15 of" in first.plain_text
    assert "page 16 of" not in first.plain_text
    assert "page 16 of" in second.plain_text
    assert "page 30 of" in second.plain_text


def test_pdf_outline_defines_chapters(tmp_path: Path) -> None:
    doc = pymupdf.open()
    for number in range(1, 5):
        page = doc.new_page()
        page.insert_text((72, 72), f"Body text for page {number} with enough words to count.")
    doc.set_toc([[1, "Opening", 1], [2, "Detail", 2], [1, "Closing", 3]])
    pdf_path = tmp_path / "outlined.pdf"
    doc.save(str(pdf_path))
    doc.close()

    result = _extract(pdf_path)

    assert [unit.title for unit in result.units] == ["Opening", "Closing"]
    assert "page 2 with" in result.units[0].plain_text
    assert "page 3 with" in result.units[1].plain_text


def test_pdf_chapter_that_fails_to_render_is_skipped(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    doc = pymupdf.open()
    for number in range(1, 5):
        page = doc.new_page()
        page.insert_text((72, 72), f"Body text for page {number} with enough words to count.")
    doc.set_toc([[1, "Opening", 1], [1, "Closing", 3]])
    pdf_path = tmp_path / "outlined.pdf"
    doc.save(str(pdf_path))
    doc.close()

    real_elements_to_html = pdf_extractor.elements_to_html

    def _fail_on_first_page(elements):
        if any("page 1 with" in element.text for element in elements):
            raise RuntimeError("broken layout")
        return real_elements_to_html(elements)

    monkeypatch.setattr(pdf_extractor, "elements_to_html", _fail_on_first_page)

    result = _extract(pdf_path)

    assert [unit.title for unit in result.units] == ["Closing"]
    assert result.units[0].order_index == 0
    assert WarningCode.CHAPTER_PARSE_ERROR in result.diagnostics.codes()
    assert WarningCode.PARSE_ERROR not in result.diagnostics.codes()


def test_pdf_heading_scan_finds_chapter_starts(tmp_path: Path) -> None:
    doc = pymupdf.open()
    for number in range(1, 5):
        page = doc.new_page()
        if number in (1, 3):
            page.insert_text((72, 72), f"Chapter {(number + 1) // 2}", fontsize=22)
        page.insert_text((72, 130), f"Narrative text on page {number} continues at some length.", fontsize=11)
    pdf_path = tmp_path / "headed.pdf"
    doc.save(str(pdf_path))
    doc.close()

    result = _extract(pdf_path)

    assert [unit.title for unit in result.units] == ["Chapter 1", "Chapter 2"]
    assert "<h2" in result.units[0].html
    assert "page 2 continues" in result.units[0].plain_text
    assert "page 4 continues" in result.units[1].plain_text


def test_image_only_pdf_bails_out_without_units_or_cover(tmp_path: Path) -> None:
    doc = pymupdf.open()
    image = _png(128)
    for _ in range(60):
        page = doc.new_page()
        page.insert_image(pymupdf.Rect(72, 72, 400, 400), stream=image)
    pdf_path = tmp_path / "scanned.pdf"
    doc.save(str(pdf_path))
    doc.close()

    started = time.perf_counter()
    result = _extract(pdf_path)
    elapsed = time.perf_counter() - started

    assert result.units == []
    assert result.diagnostics.text_source is TextSource.NONE
    assert result.diagnostics.codes().count(WarningCode.NO_TEXT_LAYER) == 1
    assert result.cover is None
    assert result.metadata.cover_image is None
    assert elapsed < 10


def test_pdf_page_cap_records_partial_extraction(tmp_path: Path) -> None:
    doc = pymupdf.open()
    for number in range(1, 6):
        page = doc.new_page()
        page.insert_text((72, 72), f"Short page {number} with a handful of words.")
    pdf_path = tmp_path / "long.pdf"
    doc.save(str(pdf_path))
    doc.close()

    result = _extract(pdf_path, ExtractionSettings(max_pdf_pages=3))

    assert WarningCode.PARTIAL_EXTRACTION in result.diagnostics.codes()
    assert "page 3 with" in result.units[0].plain_text
    assert "page 4 with" not in " ".join(unit.plain_text for unit in result.units)


def test_pdf_large_page_one_image_becomes_cover(tmp_path: Path) -> None:
    doc = pymupdf.open()
    page = doc.new_page()
    page.insert_image(pymupdf.Rect(72, 72, 300, 300), stream=_png(256))
    page.insert_text((72, 400), "The cover page has a caption with several words.")
    doc.new_page().insert_text((72, 72), "Second page of text with several more words.")
    pdf_path = tmp_path / "illustrated.pdf"
    doc.save(str(pdf_path))
    doc.close()

    result = _extract(pdf_path)

    assert result.cover is not None
    assert result.cover.original_path.startswith("page-1-img-")
    assert result.metadata.cover_image == result.cover.data
    assert sum(1 for image in result.images if image.is_cover) == 1


def test_pdf_extractor_turns_garbage_into_parse_error() -> None:
    result = PdfExtractor().extract(ExtractionRequest(content=b"\x00\x01 not a pdf", file_name="broken.pdf"))

    assert result.units == []
    assert result.diagnostics.text_source is TextSource.NONE
    assert result.diagnostics.codes() == [WarningCode.PARSE_ERROR]


def test_sample_pages_are_spread_and_bounded() -> None:
    assert sample_page_indexes(4, 10) == [0, 1, 2, 3]
    indexes = sample_page_indexes(1000, 10)
    assert len(indexes) == 10
    assert indexes[0] < 100
    assert indexes[-1] > 900
    assert sample_page_indexes(0, 10) == []
