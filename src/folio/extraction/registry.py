"""Format detection and routing to the registered extractors."""

from __future__ import annotations

from io import BytesIO
import logging
from pathlib import PurePosixPath
from zipfile import BadZipFile, ZipFile

from folio.config import ExtractionSettings
from folio.extraction.extractors import build_default_extractors
from folio.extraction.extractors.base import CancellationSignal, Extractor
from folio.extraction.extractors.unsupported import UnsupportedExtractor
from folio.extraction.models import ExtractionRequest, ExtractionResult, SourceFormat

logger = logging.getLogger(__name__)

SNIFF_BYTES = 4096

EXTENSION_FORMATS: dict[str, SourceFormat] = {
    ".txt": SourceFormat.TXT,
    ".text": SourceFormat.TXT,
    ".md": SourceFormat.MD,
    ".markdown": SourceFormat.MD,
    ".epub": SourceFormat.EPUB,
    ".pdf": SourceFormat.PDF,
    ".fb2": SourceFormat.FB2,
    ".fbz": SourceFormat.FB2,
    ".djvu": SourceFormat.DJVU,
    ".djv": SourceFormat.DJVU,
}

_PDF_MAGIC = b"%PDF-"
_ZIP_MAGIC = b"PK\x03\x04"
_EPUB_MIMETYPE = b"mimetypeapplication/epub+zip"
_FB2_ROOT = b"<FictionBook"
_DJVU_MAGIC = b"AT&TFORM"


def format_from_name(file_name: str) -> SourceFormat | None:
    suffixes = [suffix.lower() for suffix in PurePosixPath(file_name.replace("\\", "/")).suffixes]
    if suffixes[-2:] == [".fb2", ".zip"]:
        return SourceFormat.FB2
    if suffixes:
        return EXTENSION_FORMATS.get(suffixes[-1])
    return None


def _zip_format(content: bytes) -> SourceFormat:
    if _EPUB_MIMETYPE in content[:SNIFF_BYTES]:
        return SourceFormat.EPUB
    try:
        with ZipFile(BytesIO(content), "r") as archive:
            names = [name.lower() for name in archive.namelist()]
    except (BadZipFile, OSError, ValueError):
        return SourceFormat.UNKNOWN
    if "meta-inf/container.xml" in names:
        return SourceFormat.EPUB
    if any(name.endswith(".fb2") for name in names):
        return SourceFormat.FB2
    return SourceFormat.UNKNOWN


def format_from_content(content: bytes) -> SourceFormat:
    """Sniff the leading bytes; ``UNKNOWN`` when nothing matches."""

    head = content[:SNIFF_BYTES]
    if head.lstrip().startswith(_PDF_MAGIC):
        return SourceFormat.PDF
    if head.startswith(_ZIP_MAGIC):
        return _zip_format(content)
    if _FB2_ROOT in head:
        return SourceFormat.FB2
    if head.startswith(_DJVU_MAGIC):
        return SourceFormat.DJVU
    return SourceFormat.UNKNOWN


def detect_format(file_name: str, content: bytes) -> SourceFormat:
    """Extension first, then magic bytes."""

    by_name = format_from_name(file_name)
    if by_name is not None:
        return by_name
    return format_from_content(content)


class ExtractorRegistry:
    """Route requests to the extractor registered for their format.

    Unregistered formats go to the unsupported fallback, and an extractor
    that raises despite its contract is turned into a ``PARSE_ERROR`` result,
    so :meth:`extract` never raises.
    """

    def __init__(self, fallback: Extractor | None = None) -> None:
        self._extractors: dict[SourceFormat, Extractor] = {}
        self._fallback = fallback or UnsupportedExtractor()

    @property
    def formats(self) -> list[SourceFormat]:
        return list(self._extractors)

    def register(self, extractor: Extractor, source_format: SourceFormat | None = None) -> None:
        target = source_format or extractor.supported_format
        if target is SourceFormat.UNKNOWN:
            raise ValueError("Cannot register an extractor for the unknown format")
        self._extractors[target] = extractor

    def resolve(self, source_format: SourceFormat) -> Extractor:
        return self._extractors.get(source_format, self._fallback)

    def extract(self, request: ExtractionRequest, cancel: CancellationSignal | None = None) -> ExtractionResult:
        source_format = request.declared_format or detect_format(request.file_name, request.content)
        extractor = self.resolve(source_format)
        logger.debug("Extracting %s as %s", request.file_name, source_format.value)
        try:
            return extractor.extract(request, cancel)
        except Exception as exc:
            logger.exception("Extractor for %s raised on %s", source_format.value, request.file_name)
            return ExtractionResult.parse_failure(source_format, f"Extraction failed: {exc}")


def build_default_registry(settings: ExtractionSettings | None = None) -> ExtractorRegistry:
    registry = ExtractorRegistry()
    for source_format, extractor in build_default_extractors(settings).items():
        registry.register(extractor, source_format)
    return registry
