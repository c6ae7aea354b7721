from __future__ import annotations

import base64
from io import BytesIO
from pathlib import Path
from zipfile import ZipFile

from folio.extraction.extractors.fb2_extractor import Fb2Extractor
from folio.extraction.models import ExtractionRequest, SourceFormat, TextSource, WarningCode
from folio.extraction.registry import build_default_registry

_PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64

_FB2_TEMPLATE = """<?xml version="1.0" encoding="utf-8"?>
<FictionBook xmlns="http://www.gribuser.ru/xml/fictionbook/2.0" xmlns:l="http://www.w3.org/1999/xlink">
  <description>
    <title-info>
      <author><first-name>Лев</first-name><last-name>Толстой</last-name></author>
      <author><nickname>Аноним</nickname></author>
      <book-title>Детство</book-title>
      <annotation><p>Повесть о детстве Николеньки Иртеньева.</p></annotation>
      <lang>ru</lang>
      <coverpage><image l:href="#cover.png"/></coverpage>
    </title-info>
  </description>
  <body>
    <section>
      <title><p>Глава первая</p></title>
      <epigraph><p>Счастливая пора детства.</p></epigraph>
      <p>Двенадцатого августа, ровно в третий день после дня моего рождения.</p>
      <p>Карл Иванович разбудил меня <emphasis>в семь часов утра</emphasis>.</p>
      <empty-line/>
      <p><a l:href="#n1">1</a></p>
    </section>
    <section>
      <title><p>Глава вторая</p></title>
      <section>
        <title><p>Утро</p></title>
        <p>Матушка сидела в гостиной и разливала чай.</p>
      </section>
    </section>
  </body>
  <body name="notes">
    <section id="n1"><p>Примечание переводчика.</p></section>
  </body>
  <binary id="cover.png" content-type="image/png">{cover}</binary>
</FictionBook>
"""


def _fb2_bytes() -> bytes:
    return _FB2_TEMPLATE.format(cover=base64.b64encode(_PNG).decode("ascii")).encode("utf-8")


def test_fb2_extractor_reads_title_info() -> None:
    result = Fb2Extractor().extract(ExtractionRequest(content=_fb2_bytes(), file_name="detstvo.fb2"))

    assert result.source_format is SourceFormat.FB2
    assert result.metadata.title == "Детство"
    assert result.metadata.authors == "Лев Толстой, Аноним"
    assert result.metadata.language == "ru"
    assert result.metadata.description == "Повесть о детстве Николеньки Иртеньева."
    assert result.diagnostics.text_source is TextSource.NATIVE_TEXT


def test_fb2_extractor_maps_top_level_sections_to_chapters() -> None:
    result = Fb2Extractor().extract(ExtractionRequest(content=_fb2_bytes(), file_name="detstvo.fb2"))

    assert [unit.title for unit in result.units] == ["Глава первая", "Глава вторая"]
    first, second = result.units
    assert "<em>в семь часов утра</em>" in first.html
    assert "<blockquote" in first.html
    assert "<br/>" in first.html
    assert 'href="#n1"' in first.html
    assert "<h3" in second.html
    assert "Матушка" in second.plain_text
    assert all("Примечание" not in unit.plain_text for unit in result.units)


def test_fb2_extractor_decodes_cover_binary() -> None:
    result = Fb2Extractor().extract(ExtractionRequest(content=_fb2_bytes(), file_name="detstvo.fb2"))

    assert result.cover is not None
    assert result.cover.original_path == "cover.png"
    assert result.cover.data == _PNG
    assert result.metadata.cover_mime_type == "image/png"


def test_fb2_extractor_unpacks_zipped_payload(tmp_path: Path) -> None:
    zipped = tmp_path / "detstvo.fb2.zip"
    with ZipFile(zipped, "w") as archive:
        archive.writestr("book.fb2", _fb2_bytes())

    result = build_default_registry().extract(ExtractionRequest.from_path(zipped))

    assert result.source_format is SourceFormat.FB2
    assert result.metadata.title == "Детство"
    assert len(result.units) == 2


def test_fb2_extractor_reports_missing_cover_binary() -> None:
    payload = _fb2_bytes().replace(b'id="cover.png"', b'id="other.png"')

    result = Fb2Extractor().extract(ExtractionRequest(content=payload, file_name="detstvo.fb2"))

    assert result.cover is None
    assert WarningCode.COVER_EXTRACTION_FAILED in result.diagnostics.codes()
    assert len(result.units) == 2


def test_fb2_extractor_turns_malformed_xml_into_parse_error() -> None:
    result = Fb2Extractor().extract(ExtractionRequest(content=b"<FictionBook><body>", file_name="broken.fb2"))

    assert result.units == []
    assert result.diagnostics.text_source is TextSource.NONE
    assert result.diagnostics.codes() == [WarningCode.PARSE_ERROR]


def test_fb2_extractor_rejects_empty_archive() -> None:
    buffer = BytesIO()
    with ZipFile(buffer, "w"):
        pass

    result = Fb2Extractor().extract(ExtractionRequest(content=buffer.getvalue(), file_name="empty.fbz"))

    assert result.diagnostics.codes() == [WarningCode.PARSE_ERROR]
