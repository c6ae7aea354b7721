from __future__ import annotations

from pathlib import Path

from folio.extraction.extractors.txt_extractor import TxtExtractor, decode_text
from folio.extraction.models import ExtractionRequest, SourceFormat, TextSource, WarningCode


def _extract(path: Path, source_format: SourceFormat = SourceFormat.TXT):
    return TxtExtractor(source_format).extract(ExtractionRequest.from_path(path))


def test_txt_extractor_decodes_utf8_and_reads_header_fields(tmp_path: Path) -> None:
    sample = tmp_path / "book_utf8.txt"
    sample.write_text("Title: Луна\nAuthor: Александр\n\nПервая строка\nВторая строка\n", encoding="utf-8")

    result = _extract(sample)

    assert result.source_format is SourceFormat.TXT
    assert result.metadata.title == "Луна"
    assert result.metadata.authors == "Александр"
    assert len(result.units) == 1
    assert result.units[0].title == "Луна"
    assert "Первая строка<br/>Вторая строка" in result.units[0].html


def test_txt_extractor_decodes_cp1251(tmp_path: Path) -> None:
    sample = tmp_path / "book_cp1251.txt"
    raw = (
        "Название: Путь\nАвтор: Ирина\n\n"
        "Привет мир. Тихий лес шумит за окном, и ветер гонит облака над рекой.\n"
    ).encode("cp1251")
    sample.write_bytes(raw)

    result = _extract(sample)

    assert result.metadata.title == "Путь"
    assert result.metadata.authors == "Ирина"
    assert "Тихий лес" in result.units[0].plain_text


def test_txt_extractor_splits_on_chapter_lines(tmp_path: Path) -> None:
    sample = tmp_path / "novel.txt"
    sample.write_text(
        "Chapter 1\n\nIt was a bright cold day in April.\n\n"
        "The clocks were striking thirteen.\n\n"
        "Chapter 2\n\nWinston went home.\n",
        encoding="utf-8",
    )

    result = _extract(sample)

    assert [unit.title for unit in result.units] == ["Chapter 1", "Chapter 2"]
    assert [unit.order_index for unit in result.units] == [0, 1]
    assert result.units[0].html.startswith('<h2 id="ch1-chapter-1">Chapter 1</h2>')
    assert result.units[0].html.count("<p>") == 2
    assert result.diagnostics.text_source is TextSource.NATIVE_TEXT


def test_md_extractor_renders_headings_and_emphasis(tmp_path: Path) -> None:
    sample = tmp_path / "notes.md"
    sample.write_text(
        "# Introduction\n\nSome **bold** claims and *quiet* asides.\n\n"
        "## Details\n\nMore text\nwrapped over lines.\n",
        encoding="utf-8",
    )

    result = _extract(sample, SourceFormat.MD)

    assert result.source_format is SourceFormat.MD
    assert [unit.title for unit in result.units] == ["Introduction", "Details"]
    assert "<strong>bold</strong>" in result.units[0].html
    assert "<em>quiet</em>" in result.units[0].html
    assert "<p>More text wrapped over lines.</p>" in result.units[1].html
    assert result.toc is not None
    assert [entry.title for entry in result.toc] == ["Introduction"]
    assert [child.title for child in result.toc[0].children] == ["Details"]


def test_empty_text_file_reports_empty_content(tmp_path: Path) -> None:
    sample = tmp_path / "empty.txt"
    sample.write_bytes(b"")

    result = _extract(sample)

    assert result.units == []
    assert result.diagnostics.text_source is TextSource.NONE
    assert result.diagnostics.codes() == [WarningCode.EMPTY_CONTENT]
    assert result.metadata.title == "Empty"


def test_decode_text_prefers_utf8_for_plain_ascii() -> None:
    assert decode_text(b"plain ascii text") == "plain ascii text"
