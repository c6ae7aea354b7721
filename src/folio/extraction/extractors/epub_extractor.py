"""EPUB extractor walking the spine in reading order."""

from __future__ import annotations

import logging
import os
from pathlib import PurePosixPath
import re
import tempfile

import ebooklib
from ebooklib import epub

from folio.config import ExtractionSettings
from folio.extraction.extractors.base import CancellationSignal, is_cancelled
from folio.extraction.extractors.common import finalize_result, split_description
from folio.extraction.html_cleaner import clean_html, extract_title
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
from folio.extraction.normalization import (
    count_words,
    looks_like_file_name,
    normalize_language_tag,
    normalize_whitespace,
    title_from_file_name,
)
from folio.markup import html_to_plain_text

logger = logging.getLogger(__name__)

SKIPPED_DOCUMENTS = frozenset(
    {
        "colophon", "titlepage", "imprint", "uncopyright", "dedication", "introduction", "preface",
        "foreword", "afterword", "appendix", "endnotes", "halftitlepage", "frontispiece", "loi",
    }
)  # fmt: skip

_NAME_TOKEN_RE = re.compile(r"[^a-z0-9]+")


def _first_non_empty(values: list[tuple[str, dict[str, str]]] | None) -> str | None:
    if not values:
        return None
    for value, _attrs in values:
        cleaned = normalize_whitespace(value or "")
        if cleaned:
            return cleaned
    return None


def _all_non_empty(values: list[tuple[str, dict[str, str]]] | None) -> list[str]:
    return [cleaned for value, _attrs in values or [] if (cleaned := normalize_whitespace(value or ""))]


def is_skipped_document(file_name: str) -> bool:
    """True for front/back-matter documents such as ``colophon.xhtml``."""

    stem = PurePosixPath(file_name).stem.lower()
    if stem in SKIPPED_DOCUMENTS:
        return True
    return any(token in SKIPPED_DOCUMENTS for token in _NAME_TOKEN_RE.split(stem) if token)


def _nav_titles(toc: list, titles: dict[str, str] | None = None) -> dict[str, str]:
    """Map document file names to the first title the navigation gives them."""

    titles = {} if titles is None else titles
    for entry in toc or []:
        if isinstance(entry, tuple):
            section, children = entry[0], entry[1] if len(entry) > 1 else []
            _add_nav_title(titles, getattr(section, "href", None), getattr(section, "title", None))
            _nav_titles(children, titles)
        else:
            _add_nav_title(titles, getattr(entry, "href", None), getattr(entry, "title", None))
    return titles


def _add_nav_title(titles: dict[str, str], href: str | None, title: str | None) -> None:
    if not href or not title:
        return
    name = href.split("#", 1)[0]
    cleaned = normalize_whitespace(title)
    if name and cleaned and name not in titles:
        titles[name] = cleaned
        # ebooklib reports item names relative to the OPF directory; nav hrefs may not be.
        titles.setdefault(PurePosixPath(name).name, cleaned)


class EpubExtractor:
    """Extract chapters, metadata and images from EPUB 2/3 containers."""

    supported_format = SourceFormat.EPUB

    def __init__(self, settings: ExtractionSettings | None = None) -> None:
        self._settings = settings or ExtractionSettings()

    def extract(self, request: ExtractionRequest, cancel: CancellationSignal | None = None) -> ExtractionResult:
        try:
            book = self._read_book(request)
            return self._extract_book(book, request, cancel)
        except ExtractionError as exc:
            logger.warning("EPUB parse failed: %s", exc)
            return ExtractionResult.parse_failure(SourceFormat.EPUB, str(exc))
        except Exception as exc:
            logger.warning("EPUB parse failed for %s: %s", request.file_name, exc)
            return ExtractionResult.parse_failure(SourceFormat.EPUB, f"Unreadable EPUB container: {exc}")

    def _read_book(self, request: ExtractionRequest) -> epub.EpubBook:
        if not request.content:
            raise ExtractionError(request.file_name, "EPUB file is empty")

        # ebooklib inspects the filesystem path, so the bytes go through a temp file.
        handle, temp_path = tempfile.mkstemp(suffix=".epub")
        try:
            with os.fdopen(handle, "wb") as temp_file:
                temp_file.write(request.content)
            try:
                return epub.read_epub(temp_path, {"ignore_ncx": False})
            except Exception as exc:
                raise ExtractionError(request.file_name, f"Unreadable EPUB container: {exc}") from exc
        finally:
            os.unlink(temp_path)

    def _extract_book(
        self,
        book: epub.EpubBook,
        request: ExtractionRequest,
        cancel: CancellationSignal | None,
    ) -> ExtractionResult:
        result = ExtractionResult(source_format=SourceFormat.EPUB, metadata=self._extract_metadata(book, request))
        result.images = self._extract_images(book, result)
        cover = result.cover
        if cover is not None:
            result.metadata.cover_image = cover.data
            result.metadata.cover_mime_type = cover.mime_type

        nav_titles = _nav_titles(book.toc)
        for spine_entry in book.spine:
            if is_cancelled(cancel):
                logger.info("EPUB extraction cancelled after %d units", len(result.units))
                break

            item_id = spine_entry[0] if isinstance(spine_entry, tuple) else spine_entry
            item = book.get_item_with_id(item_id)
            if item is None or item.get_type() != ebooklib.ITEM_DOCUMENT:
                continue
            if isinstance(item, epub.EpubNav):
                continue

            name = item.get_name()
            if is_skipped_document(name):
                logger.debug("Skipping front/back matter document %s", name)
                continue

            try:
                unit = self._build_unit(item, nav_titles, len(result.units))
            except Exception as exc:
                logger.warning("Skipping EPUB document %s: %s", name, exc)
                result.diagnostics.warnings.append(
                    ExtractionWarning(WarningCode.CHAPTER_PARSE_ERROR, f"Failed to parse {name}: {exc}")
                )
                continue
            if unit is not None:
                result.units.append(unit)

        return finalize_result(result, self._settings)

    def _build_unit(self, item: epub.EpubItem, nav_titles: dict[str, str], order_index: int) -> ContentUnit | None:
        raw = item.get_content().decode("utf-8", errors="replace")
        html, plain_text = clean_html(raw)
        if count_words(plain_text) < self._settings.min_chapter_words:
            return None

        name = item.get_name()
        title = nav_titles.get(name) or nav_titles.get(PurePosixPath(name).name)
        if looks_like_file_name(title):
            title = extract_title(raw)
        if looks_like_file_name(title):
            title = f"Chapter {order_index + 1}"
        return ContentUnit(title=title, html=html, plain_text=plain_text, order_index=order_index)

    def _extract_metadata(self, book: epub.EpubBook, request: ExtractionRequest) -> ExtractionMetadata:
        title = _first_non_empty(book.get_metadata("DC", "title")) or title_from_file_name(request.file_name)
        authors = _all_non_empty(book.get_metadata("DC", "creator"))
        language = normalize_language_tag(_first_non_empty(book.get_metadata("DC", "language")))
        raw_description = _first_non_empty(book.get_metadata("DC", "description"))
        description, long_description = split_description(
            html_to_plain_text(raw_description) if raw_description else None
        )
        return ExtractionMetadata(
            title=title,
            authors=", ".join(authors) if authors else None,
            language=language,
            description=description,
            long_description=long_description,
        )

    def _extract_images(self, book: epub.EpubBook, result: ExtractionResult) -> list[ExtractedImage]:
        images: list[ExtractedImage] = []
        manifest_cover: str | None = None
        for item in book.get_items():
            if item.get_type() not in (ebooklib.ITEM_IMAGE, ebooklib.ITEM_COVER):
                continue
            try:
                data = item.get_content()
            except Exception as exc:
                logger.warning("Unreadable EPUB image %s: %s", item.get_name(), exc)
                continue
            if not data:
                continue
            mime_type = item.media_type or (detect_mime_type(data) if is_recognized_image(data) else None)
            images.append(ExtractedImage(original_path=item.get_name(), data=data, mime_type=mime_type or "image/jpeg"))
            if manifest_cover is None and item.get_type() == ebooklib.ITEM_COVER:
                manifest_cover = item.get_name()

        cover_path = manifest_cover or self._cover_by_name(images) or self._cover_from_opf(book)
        if cover_path is None:
            if images:
                logger.debug("No EPUB cover among %d images", len(images))
            return images

        for image in images:
            if image.original_path == cover_path:
                image.is_cover = True
                break
        else:
            result.diagnostics.warnings.append(
                ExtractionWarning(WarningCode.COVER_EXTRACTION_FAILED, f"Cover image {cover_path} is missing")
            )
        return images

    def _cover_by_name(self, images: list[ExtractedImage]) -> str | None:
        return next((image.original_path for image in images if "cover" in image.original_path.lower()), None)

    def _cover_from_opf(self, book: epub.EpubBook) -> str | None:
        for _value, attributes in book.get_metadata("OPF", "cover") or []:
            cover_id = (attributes or {}).get("content")
            item = book.get_item_with_id(cover_id) if cover_id else None
            if item is not None:
                return item.get_name()
        return None
