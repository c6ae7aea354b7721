from __future__ import annotations

import base64
import json
from pathlib import Path

import pytest

from folio.extraction.ingestor import BookIngestor, ImageStore
from folio.extraction.models import ExtractionError, ExtractionRequest, SourceFormat

_TEXT = (
    "Chapter 1\n\n"
    "I don't think the the cat minds at all, said the old sailor.\n\n"
    "Chapter 2\n\n"
    'He said "Hello" to Mr. Smith and went home quietly that evening.\n'
)

_PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32

_FB2 = """<?xml version="1.0" encoding="utf-8"?>
<FictionBook xmlns="http://www.gribuser.ru/xml/fictionbook/2.0" xmlns:l="http://www.w3.org/1999/xlink">
  <description>
    <title-info>
      <author><first-name>Jane</first-name><last-name>Doe</last-name></author>
      <book-title>Harbor Lights</book-title>
      <lang>en</lang>
      <coverpage><image l:href="#cover.png"/></coverpage>
    </title-info>
  </description>
  <body>
    <section>
      <title><p>Arrival</p></title>
      <p>The ferry came into the harbor just before the evening lights were lit.</p>
    </section>
  </body>
  <binary id="cover.png" content-type="image/png">{cover}</binary>
</FictionBook>
"""


class _MemoryImageStore:
    def __init__(self) -> None:
        self.saved: dict[tuple[str, str], bytes] = {}

    def save(self, owner_id: str, relative_path: str, content: bytes) -> str:
        self.saved[(owner_id, relative_path)] = content
        return f"memory://{owner_id}/{relative_path}"


def _write_book(tmp_path: Path) -> Path:
    path = tmp_path / "sailor.txt"
    path.write_text(_TEXT, encoding="utf-8")
    return path


def test_ingest_processes_chapters_in_order(tmp_path: Path) -> None:
    report = BookIngestor().ingest(_write_book(tmp_path), language="en")

    assert report.extraction.source_format is SourceFormat.TXT
    assert [chapter.number for chapter in report.chapters] == [1, 2]
    assert [chapter.title for chapter in report.chapters] == ["Chapter 1", "Chapter 2"]
    first, second = report.chapters
    assert "don’t" in first.html
    assert "don’t" in first.plain_text
    assert "“Hello”" in second.html
    assert 'epub:type="z3998:name-title"' in second.html
    assert report.word_count == first.word_count + second.word_count


def test_ingest_reports_lint_issues_per_chapter(tmp_path: Path) -> None:
    report = BookIngestor().ingest(_write_book(tmp_path), language="en")

    doubled = [issue for issue in report.lint_issues if issue.code == "C003"]
    assert len(doubled) == 1
    assert doubled[0].chapter_number == 1

    unlinted = BookIngestor().ingest(_write_book(tmp_path), language="en", lint=False)
    assert unlinted.lint_issues == []


def test_ingest_stores_images_through_image_store() -> None:
    store = _MemoryImageStore()
    assert isinstance(store, ImageStore)
    content = _FB2.format(cover=base64.b64encode(_PNG).decode("ascii")).encode("utf-8")

    report = BookIngestor(image_store=store).ingest_request(
        ExtractionRequest(content=content, file_name="harbor.fb2"),
        owner_id="book-42",
    )

    assert store.saved == {("book-42", "images/cover.png"): _PNG}
    assert report.stored_images == {"cover.png": "memory://book-42/images/cover.png"}
    assert report.extraction.metadata.language == "en"
    assert report.chapters[0].title == "Arrival"


def test_ingest_image_owner_defaults_to_file_stem() -> None:
    store = _MemoryImageStore()
    content = _FB2.format(cover=base64.b64encode(_PNG).decode("ascii")).encode("utf-8")

    BookIngestor(image_store=store).ingest_request(ExtractionRequest(content=content, file_name="harbor.fb2"))

    assert list(store.saved) == [("harbor", "images/cover.png")]


def test_report_to_dict_is_json_serializable(tmp_path: Path) -> None:
    report = BookIngestor().ingest(_write_book(tmp_path), language="en")

    payload = json.loads(json.dumps(report.to_dict()))

    assert payload["format"] == "txt"
    assert payload["title"] == "Sailor"
    assert payload["chapter_count"] == 2
    assert payload["text_source"] == "native_text"
    assert [entry["title"] for entry in payload["toc"]] == ["Chapter 1", "Chapter 2"]
    assert payload["toc"][0]["anchor"] == "#ch1-chapter-1"
    assert any(issue["code"] == "C003" for issue in payload["lint_issues"])


def test_ingest_unsupported_file_yields_empty_report(tmp_path: Path) -> None:
    path = tmp_path / "archive.rar"
    path.write_bytes(b"Rar!\x1a\x07\x00")

    report = BookIngestor().ingest(path)

    assert report.extraction.source_format is SourceFormat.UNKNOWN
    assert report.chapters == []
    assert report.lint_issues == []


def test_ingest_missing_path_raises_extraction_error(tmp_path: Path) -> None:
    with pytest.raises(ExtractionError, match="Failed to read source file"):
        BookIngestor().ingest(tmp_path / "missing.epub")
