"""Plain-text and Markdown extractor with charset detection."""

from __future__ import annotations

import html as html_lib
import logging
import re

from charset_normalizer import from_bytes

from folio.config import ExtractionSettings
from folio.extraction.extractors.base import CancellationSignal, is_cancelled
from folio.extraction.extractors.common import finalize_result
from folio.extraction.models import (
    ContentUnit,
    ExtractionMetadata,
    ExtractionRequest,
    ExtractionResult,
    SourceFormat,
)
from folio.extraction.normalization import (
    CHAPTER_PATTERN,
    normalize_plain_text,
    normalize_whitespace,
    paragraph_to_html,
    title_from_file_name,
)
from folio.markup import html_to_plain_text

logger = logging.getLogger(__name__)

_HEADER_FIELDS = {
    "title": "title",
    "author": "author",
    "название": "title",
    "автор": "author",
}
_MD_HEADING_RE = re.compile(r"^(#{1,6})\s+(.+?)\s*#*\s*$")
_MD_STRONG_RE = re.compile(r"(\*\*|__)(?=\S)(.+?)(?<=\S)\1")
_MD_EMPHASIS_RE = re.compile(r"(?<![*\w])([*_])(?=\S)(.+?)(?<=\S)\1(?![*\w])")
MAX_HEADING_CHARS = 80


def decode_text(raw: bytes) -> str:
    """Decode with the detected charset; UTF-8 with replacement as a last resort."""

    best = from_bytes(raw).best()
    if best and best.encoding:
        name = best.encoding.lower()
        encoding = "cp1251" if name in {"windows-1251", "cp1251"} else best.encoding
        try:
            return raw.decode(encoding)
        except (LookupError, UnicodeDecodeError):
            pass

    for fallback in ("utf-8", "cp1251"):
        try:
            return raw.decode(fallback)
        except UnicodeDecodeError:
            continue
    logger.warning("Could not detect text encoding; decoding as UTF-8 with replacement")
    return raw.decode("utf-8", errors="replace")


def _inline_markdown(text: str) -> str:
    escaped = html_lib.escape(text, quote=False)
    escaped = _MD_STRONG_RE.sub(r"<strong>\2</strong>", escaped)
    return _MD_EMPHASIS_RE.sub(r"<em>\2</em>", escaped)


class TxtExtractor:
    """One reader for TXT and MD; ``source_format`` picks the dialect."""

    def __init__(self, source_format: SourceFormat = SourceFormat.TXT, settings: ExtractionSettings | None = None) -> None:
        if source_format not in (SourceFormat.TXT, SourceFormat.MD):
            raise ValueError(f"TxtExtractor handles txt and md only, got {source_format.value}")
        self.supported_format = source_format
        self._settings = settings or ExtractionSettings()

    @property
    def _markdown(self) -> bool:
        return self.supported_format is SourceFormat.MD

    def extract(self, request: ExtractionRequest, cancel: CancellationSignal | None = None) -> ExtractionResult:
        try:
            return self._extract_text(request, cancel)
        except Exception as exc:
            logger.warning("Text extraction failed for %s: %s", request.file_name, exc)
            return ExtractionResult.parse_failure(self.supported_format, f"Unreadable text file: {exc}")

    def _extract_text(self, request: ExtractionRequest, cancel: CancellationSignal | None) -> ExtractionResult:
        text = normalize_plain_text(decode_text(request.content)) if request.content else ""
        result = ExtractionResult(source_format=self.supported_format, metadata=self._extract_metadata(text, request))

        title: str | None = None
        blocks: list[str] = []
        for paragraph in (block for block in text.split("\n\n") if block.strip()):
            if is_cancelled(cancel):
                logger.info("Text extraction cancelled after %d units", len(result.units))
                break
            heading = self._heading(paragraph)
            if heading is not None:
                self._flush(result, title, blocks)
                title, blocks = heading[1], [paragraph_to_html(heading[1], f"h{heading[0]}")]
                continue
            blocks.append(self._paragraph_html(paragraph))
        self._flush(result, title, blocks)

        return finalize_result(result, self._settings)

    def _heading(self, paragraph: str) -> tuple[int, str] | None:
        stripped = paragraph.strip()
        if "\n" in stripped:
            return None
        if self._markdown:
            match = _MD_HEADING_RE.match(stripped)
            if match:
                return len(match.group(1)), normalize_whitespace(match.group(2))
        if len(stripped) <= MAX_HEADING_CHARS and CHAPTER_PATTERN.match(stripped):
            return 2, normalize_whitespace(stripped)
        return None

    def _paragraph_html(self, paragraph: str) -> str:
        if not self._markdown:
            return paragraph_to_html(paragraph)
        lines = [_inline_markdown(line.strip()) for line in paragraph.split("\n")]
        return f"<p>{' '.join(line for line in lines if line)}</p>"

    def _flush(self, result: ExtractionResult, title: str | None, blocks: list[str]) -> None:
        html = "\n".join(blocks)
        plain_text = html_to_plain_text(html)
        if not plain_text:
            return
        if title is None:
            title = result.metadata.title if not result.units else f"Chapter {len(result.units) + 1}"
        result.units.append(
            ContentUnit(title=title or "Untitled", html=html, plain_text=plain_text, order_index=len(result.units))
        )

    def _extract_metadata(self, text: str, request: ExtractionRequest) -> ExtractionMetadata:
        title: str | None = None
        author: str | None = None
        for line in text.splitlines()[:20]:
            normalized = normalize_whitespace(line)
            if not normalized or ":" not in normalized:
                continue
            key, value = normalized.split(":", 1)
            field = _HEADER_FIELDS.get(key.strip().casefold())
            clean_value = normalize_whitespace(value)
            if not field or not clean_value:
                continue
            if field == "title" and not title:
                title = clean_value
            if field == "author" and not author:
                author = clean_value

        return ExtractionMetadata(title=title or title_from_file_name(request.file_name), authors=author)
