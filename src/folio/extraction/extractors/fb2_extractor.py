"""FB2 extractor with raw and zipped container support."""

from __future__ import annotations

import base64
import binascii
from collections.abc import Iterable
import html as html_lib
from io import BytesIO
import logging
from zipfile import BadZipFile, ZipFile

from lxml import etree

from folio.config import ExtractionSettings
from folio.extraction.extractors.base import CancellationSignal, is_cancelled
from folio.extraction.extractors.common import finalize_result, split_description
from folio.extraction.html_cleaner import clean_html
from folio.extraction.images import detect_mime_type, is_recognized_image
from folio.extraction.models import (
    ContentUnit,
    ExtractedImage,
    ExtractionError,
    ExtractionMetadata,
    ExtractionRequest,
    ExtractionResult,
    ExtractionWarning,
    SourceFormat,
    WarningCode,
)
from folio.extraction.normalization import normalize_language_tag, normalize_whitespace, title_from_file_name
from folio.markup import html_to_plain_text
from folio.processing.watermark import is_piracy_watermark

logger = logging.getLogger(__name__)

_ZIP_MAGIC = b"PK\x03\x04"
_XLINK_HREF = "{http://www.w3.org/1999/xlink}href"
SKIPPED_BODIES = frozenset({"notes", "comments", "footnotes"})

# FB2 element -> (HTML tag, class attribute)
_ELEMENT_MAP: dict[str, tuple[str, str | None]] = {
    "p": ("p", None),
    "subtitle": ("h3", None),
    "epigraph": ("blockquote", "epigraph"),
    "cite": ("blockquote", None),
    "poem": ("div", "poem"),
    "stanza": ("div", "stanza"),
    "v": ("p", "verse"),
    "text-author": ("p", "text-author"),
    "emphasis": ("em", None),
    "strong": ("strong", None),
    "strikethrough": ("s", None),
    "sub": ("sub", None),
    "sup": ("sup", None),
    "code": ("code", None),
    "table": ("table", None),
    "tr": ("tr", None),
    "td": ("td", None),
    "th": ("th", None),
}


def _local_name(element: etree._Element) -> str | None:
    if not isinstance(element.tag, str):
        return None
    return etree.QName(element).localname


def _href(element: etree._Element) -> str | None:
    for name, value in element.attrib.items():
        if name == _XLINK_HREF or name.endswith("}href") or name == "href":
            return value
    return None


def _xml_parser() -> etree.XMLParser:
    return etree.XMLParser(resolve_entities=False, no_network=True, load_dtd=False, huge_tree=False)


class Fb2HtmlConverter:
    """Render FictionBook body markup as chapter HTML."""

    def convert(self, element: etree._Element, depth: int = 0) -> str:
        return "".join(self._children(element, depth))

    def _children(self, element: etree._Element, depth: int) -> Iterable[str]:
        if element.text:
            yield html_lib.escape(element.text, quote=False)
        for child in element:
            yield self._element(child, depth)
            if child.tail:
                yield html_lib.escape(child.tail, quote=False)

    def _element(self, element: etree._Element, depth: int) -> str:
        name = _local_name(element)
        if name is None:
            return ""
        if name == "title":
            heading = "h2" if depth <= 1 else "h3"
            text = normalize_whitespace(" ".join(element.itertext()))
            return f"<{heading}>{html_lib.escape(text, quote=False)}</{heading}>" if text else ""
        if name == "section":
            return self.convert(element, depth + 1)
        if name == "empty-line":
            return "<br/>"
        if name == "image":
            source = (_href(element) or "").lstrip("#")
            return f'<img src="{html_lib.escape(source)}" alt="" />' if source else ""
        if name == "a":
            href = _href(element) or "#"
            return f'<a href="{html_lib.escape(href)}">{self.convert(element, depth)}</a>'
        tag, css_class = _ELEMENT_MAP.get(name, ("span", None))
        attributes = f' class="{css_class}"' if css_class else ""
        return f"<{tag}{attributes}>{self.convert(element, depth)}</{tag}>"


class Fb2Extractor:
    """Extract text, metadata and binaries from FictionBook sources."""

    supported_format = SourceFormat.FB2

    def __init__(self, settings: ExtractionSettings | None = None) -> None:
        self._settings = settings or ExtractionSettings()
        self._converter = Fb2HtmlConverter()

    def extract(self, request: ExtractionRequest, cancel: CancellationSignal | None = None) -> ExtractionResult:
        try:
            root = self._parse(request)
            return self._extract_document(root, request, cancel)
        except ExtractionError as exc:
            logger.warning("FB2 parse failed: %s", exc)
            return ExtractionResult.parse_failure(SourceFormat.FB2, str(exc))
        except Exception as exc:
            logger.warning("FB2 parse failed for %s: %s", request.file_name, exc)
            return ExtractionResult.parse_failure(SourceFormat.FB2, f"Unreadable FB2 document: {exc}")

    def _parse(self, request: ExtractionRequest) -> etree._Element:
        payload = self._read_payload(request)
        try:
            root = etree.fromstring(payload, parser=_xml_parser())
        except etree.XMLSyntaxError as exc:
            raise ExtractionError(request.file_name, f"Malformed FB2 XML: {exc}") from exc
        if root is None or _local_name(root) != "FictionBook":
            raise ExtractionError(request.file_name, "Root element is not FictionBook")
        return root

    def _read_payload(self, request: ExtractionRequest) -> bytes:
        raw = request.content
        if not raw:
            raise ExtractionError(request.file_name, "FB2 file is empty")
        if not raw.startswith(_ZIP_MAGIC):
            return raw
        try:
            with ZipFile(BytesIO(raw), "r") as archive:
                candidates = [name for name in archive.namelist() if not name.endswith("/")]
                target = next((name for name in candidates if name.lower().endswith(".fb2")), None)
                target = target or (candidates[0] if candidates else None)
                if not target:
                    raise ExtractionError(request.file_name, "Zipped FB2 container has no readable files")
                return archive.read(target)
        except BadZipFile as exc:
            raise ExtractionError(request.file_name, f"Corrupt FB2 archive: {exc}") from exc

    def _extract_document(
        self,
        root: etree._Element,
        request: ExtractionRequest,
        cancel: CancellationSignal | None,
    ) -> ExtractionResult:
        result = ExtractionResult(source_format=SourceFormat.FB2, metadata=self._extract_metadata(root, request))
        result.images = self._extract_binaries(root)
        self._mark_cover(root, result)

        for section_number, section in enumerate(self._sections(root), start=1):
            if is_cancelled(cancel):
                logger.info("FB2 extraction cancelled after %d units", len(result.units))
                break
            try:
                unit = self._build_unit(section, section_number, len(result.units))
            except Exception as exc:
                logger.warning("Skipping FB2 section %d: %s", section_number, exc)
                result.diagnostics.warnings.append(
                    ExtractionWarning(WarningCode.CHAPTER_PARSE_ERROR, f"Failed to parse section {section_number}: {exc}")
                )
                continue
            if unit is None:
                continue
            if is_piracy_watermark(unit.html):
                result.diagnostics.warnings.append(
                    ExtractionWarning(WarningCode.CONTENT_FILTERED, f"Dropped watermark section {section_number}")
                )
                continue
            result.units.append(unit)

        return finalize_result(result, self._settings)

    def _sections(self, root: etree._Element) -> list[etree._Element]:
        sections: list[etree._Element] = []
        for body in root.xpath("./*[local-name()='body']"):
            if (body.get("name") or "").lower() in SKIPPED_BODIES:
                continue
            children = body.xpath("./*[local-name()='section']")
            sections.extend(children if children else [body])
        return sections

    def _build_unit(self, section: etree._Element, section_number: int, order_index: int) -> ContentUnit | None:
        raw_html = self._converter.convert(section, depth=1)
        html, plain_text = clean_html(raw_html)
        if not plain_text:
            return None
        title = self._first_text(section.xpath("./*[local-name()='title']")) or f"Chapter {section_number}"
        return ContentUnit(title=title, html=html, plain_text=plain_text, order_index=order_index)

    def _extract_metadata(self, root: etree._Element, request: ExtractionRequest) -> ExtractionMetadata:
        title_info = "//*[local-name()='description']/*[local-name()='title-info']"
        title = self._first_text(root.xpath(f"{title_info}/*[local-name()='book-title']"))
        raw_language = self._first_text(root.xpath(f"{title_info}/*[local-name()='lang']"))
        annotation = root.xpath(f"{title_info}/*[local-name()='annotation']")
        description, long_description = split_description(
            html_to_plain_text(self._converter.convert(annotation[0])) if annotation else None
        )
        return ExtractionMetadata(
            title=title or title_from_file_name(request.file_name),
            authors=self._extract_authors(root.xpath(f"{title_info}/*[local-name()='author']")),
            language=normalize_language_tag(raw_language),
            description=description,
            long_description=long_description,
        )

    def _extract_authors(self, authors: list[etree._Element]) -> str | None:
        names: list[str] = []
        for author in authors:
            first = self._first_text(author.xpath("./*[local-name()='first-name']"))
            middle = self._first_text(author.xpath("./*[local-name()='middle-name']"))
            last = self._first_text(author.xpath("./*[local-name()='last-name']"))
            full = normalize_whitespace(" ".join(part for part in [first, middle, last] if part))
            full = full or self._first_text(author.xpath("./*[local-name()='nickname']"))
            if full:
                names.append(full)
        return ", ".join(names) if names else None

    def _extract_binaries(self, root: etree._Element) -> list[ExtractedImage]:
        images: list[ExtractedImage] = []
        for binary in root.xpath("./*[local-name()='binary']"):
            binary_id = binary.get("id")
            if not binary_id:
                continue
            try:
                data = base64.b64decode("".join((binary.text or "").split()), validate=False)
            except (binascii.Error, ValueError) as exc:
                logger.warning("Invalid base64 in FB2 binary %s: %s", binary_id, exc)
                continue
            if not data:
                continue
            content_type = binary.get("content-type")
            if not content_type or not content_type.startswith("image/"):
                if not is_recognized_image(data):
                    continue
                content_type = detect_mime_type(data)
            images.append(ExtractedImage(original_path=binary_id, data=data, mime_type=content_type))
        return images

    def _mark_cover(self, root: etree._Element, result: ExtractionResult) -> None:
        references = root.xpath(
            "//*[local-name()='title-info']/*[local-name()='coverpage']/*[local-name()='image']"
        )
        if not references:
            return
        cover_id = (_href(references[0]) or "").lstrip("#")
        cover = next((image for image in result.images if image.original_path == cover_id), None)
        if cover is None:
            result.diagnostics.warnings.append(
                ExtractionWarning(WarningCode.COVER_EXTRACTION_FAILED, f"Cover binary {cover_id!r} not found")
            )
            return
        cover.is_cover = True
        result.metadata.cover_image = cover.data
        result.metadata.cover_mime_type = cover.mime_type

    def _first_text(self, nodes: list[object]) -> str | None:
        for node in nodes:
            if hasattr(node, "itertext"):
                text = normalize_whitespace(" ".join(node.itertext()))
            else:
                text = normalize_whitespace(str(node))
            if text:
                return text
        return None
