from __future__ import annotations

from pathlib import Path

from ebooklib import epub

from folio.extraction.extractors.epub_extractor import EpubExtractor, is_skipped_document
from folio.extraction.models import ExtractionRequest, SourceFormat, TextSource, WarningCode

_JPEG = b"\xff\xd8\xff\xe0" + b"\x00" * 256

_CHAPTER_ONE = """
<html><head><title>ignored</title><script>alert('x')</script></head><body>
  <h1>Chapter One</h1>
  <p onclick="steal()">It was a bright cold day in April, and the clocks were striking thirteen.</p>
  <p>Winston Smith slipped quickly through the glass doors of Victory Mansions.</p>
  <p><a href="chapter_2.xhtml#start">Next</a></p>
</body></html>
"""

_CHAPTER_TWO = """
<html><body>
  <h1 id="start">Chapter Two</h1>
  <p>Outside, even through the shut window-pane, the world looked cold and colourless.</p>
</body></html>
"""


def _build_epub(path: Path, *, title: str | None, author: str | None, with_cover: bool = False) -> None:
    book = epub.EpubBook()
    book.set_identifier("book-id")
    if title:
        book.set_title(title)
    if author:
        book.add_author(author)
    book.set_language("en")
    if with_cover:
        book.set_cover("cover.jpg", _JPEG, create_page=False)

    chapter_one = epub.EpubHtml(title="Chapter One", file_name="chapter_1.xhtml", lang="en")
    chapter_one.content = _CHAPTER_ONE
    chapter_two = epub.EpubHtml(title="Chapter Two", file_name="chapter_2.xhtml", lang="en")
    chapter_two.content = _CHAPTER_TWO
    colophon = epub.EpubHtml(title="Colophon", file_name="colophon.xhtml", lang="en")
    colophon.content = "<html><body><p>" + "Typeset in a lovely serif face by nobody at all. " * 3 + "</p></body></html>"
    short = epub.EpubHtml(title="Blank", file_name="blank.xhtml", lang="en")
    short.content = "<html><body><p>Too short.</p></body></html>"

    for item in (chapter_one, chapter_two, colophon, short):
        book.add_item(item)
    book.add_item(epub.EpubNcx())
    book.add_item(epub.EpubNav())

    book.toc = (chapter_one, chapter_two)
    book.spine = ["nav", chapter_one, short, chapter_two, colophon]
    epub.write_epub(str(path), book)


def _extract(path: Path):
    return EpubExtractor().extract(ExtractionRequest.from_path(path))


def test_epub_extractor_reads_metadata_and_chapters_in_order(tmp_path: Path) -> None:
    epub_path = tmp_path / "ordered.epub"
    _build_epub(epub_path, title="Epub Sample", author="John Smith")

    result = _extract(epub_path)

    assert result.source_format is SourceFormat.EPUB
    assert result.metadata.title == "Epub Sample"
    assert result.metadata.authors == "John Smith"
    assert result.metadata.language == "en"
    assert result.diagnostics.text_source is TextSource.NATIVE_TEXT
    assert result.diagnostics.warnings == []

    assert [unit.title for unit in result.units] == ["Chapter One", "Chapter Two"]
    assert [unit.order_index for unit in result.units] == [0, 1]
    assert "bright cold day" in result.units[0].plain_text
    assert result.units[0].word_count == len(result.units[0].plain_text.split())


def test_epub_extractor_sanitizes_chapter_html(tmp_path: Path) -> None:
    epub_path = tmp_path / "sanitized.epub"
    _build_epub(epub_path, title="Epub Sample", author="John Smith")

    first = _extract(epub_path).units[0]

    assert "<script" not in first.html
    assert "onclick" not in first.html
    assert "ignored" not in first.plain_text
    assert 'href="#start"' in first.html
    assert 'id="ch1-chapter-one"' in first.html


def test_epub_extractor_builds_toc_from_headings(tmp_path: Path) -> None:
    epub_path = tmp_path / "toc.epub"
    _build_epub(epub_path, title="Epub Sample", author="John Smith")

    result = _extract(epub_path)

    assert result.toc is not None
    assert [(entry.title, entry.chapter_number) for entry in result.toc] == [("Chapter One", 1), ("Chapter Two", 2)]
    assert result.toc[0].anchor == "#ch1-chapter-one"
    # Existing ids are kept as anchors.
    assert result.toc[1].anchor == "#start"


def test_epub_extractor_falls_back_to_filename_for_missing_metadata(tmp_path: Path) -> None:
    epub_path = tmp_path / "mystic_collection.epub"
    _build_epub(epub_path, title=None, author=None)

    result = _extract(epub_path)

    assert result.metadata.title == "Mystic Collection"
    assert result.metadata.authors is None


def test_epub_extractor_marks_cover_image(tmp_path: Path) -> None:
    epub_path = tmp_path / "covered.epub"
    _build_epub(epub_path, title="Covered", author="Jane Doe", with_cover=True)

    result = _extract(epub_path)

    cover = result.cover
    assert cover is not None
    assert cover.data == _JPEG
    assert cover.mime_type == "image/jpeg"
    assert sum(1 for image in result.images if image.is_cover) == 1
    assert result.metadata.cover_image == _JPEG
    assert result.metadata.cover_mime_type == "image/jpeg"


def test_epub_extractor_reports_parse_error_for_corrupt_container() -> None:
    result = EpubExtractor().extract(ExtractionRequest(content=b"PK\x03\x04not really a zip", file_name="broken.epub"))

    assert result.source_format is SourceFormat.EPUB
    assert result.units == []
    assert result.diagnostics.text_source is TextSource.NONE
    assert result.diagnostics.codes() == [WarningCode.PARSE_ERROR]


def test_epub_skip_list_matches_front_and_back_matter() -> None:
    assert is_skipped_document("text/colophon.xhtml")
    assert is_skipped_document("Text/titlepage.xhtml")
    assert is_skipped_document("OEBPS/08-afterword.html")
    assert not is_skipped_document("chapter_1.xhtml")
    assert not is_skipped_document("exploits.xhtml")
