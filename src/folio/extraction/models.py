"""Canonical data structures shared by all format extractors."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from folio.extraction.normalization import count_words


class SourceFormat(str, Enum):
    UNKNOWN = "unknown"
    TXT = "txt"
    MD = "md"
    EPUB = "epub"
    PDF = "pdf"
    FB2 = "fb2"
    DJVU = "djvu"


class TextSource(str, Enum):
    """Where the text of a result came from."""

    NONE = "none"
    NATIVE_TEXT = "native_text"
    OCR = "ocr"


class WarningCode(str, Enum):
    PARSE_ERROR = "parse_error"
    CHAPTER_PARSE_ERROR = "chapter_parse_error"
    PAGE_PARSE_ERROR = "page_parse_error"
    NO_TEXT_LAYER = "no_text_layer"
    EMPTY_CONTENT = "empty_content"
    PARTIAL_EXTRACTION = "partial_extraction"
    COVER_EXTRACTION_FAILED = "cover_extraction_failed"
    CONTENT_FILTERED = "content_filtered"


class ContentUnitType(str, Enum):
    CHAPTER = "chapter"


@dataclass(frozen=True, slots=True)
class ExtractionRequest:
    """Raw document bytes plus the name they arrived under."""

    content: bytes
    file_name: str
    declared_format: SourceFormat | None = None

    @classmethod
    def from_path(cls, path: str | Path, declared_format: SourceFormat | None = None) -> "ExtractionRequest":
        source = Path(path)
        return cls(content=source.read_bytes(), file_name=source.name, declared_format=declared_format)


@dataclass(slots=True)
class ExtractionMetadata:
    title: str | None = None
    authors: str | None = None
    language: str | None = None
    description: str | None = None
    long_description: str | None = None
    cover_image: bytes | None = None
    cover_mime_type: str | None = None


@dataclass(slots=True)
class ContentUnit:
    """One chapter-equivalent block in reading order."""

    title: str
    html: str
    plain_text: str
    order_index: int
    type: ContentUnitType = ContentUnitType.CHAPTER
    part_number: int | None = None
    total_parts: int | None = None

    @property
    def word_count(self) -> int:
        return count_words(self.plain_text)


@dataclass(slots=True)
class ExtractedImage:
    original_path: str
    data: bytes
    mime_type: str
    is_cover: bool = False


@dataclass(frozen=True, slots=True)
class ExtractionWarning:
    code: WarningCode
    message: str


@dataclass(slots=True)
class ExtractionDiagnostics:
    text_source: TextSource = TextSource.NONE
    ocr_confidence: float | None = None
    warnings: list[ExtractionWarning] = field(default_factory=list)

    def codes(self) -> list[WarningCode]:
        return [warning.code for warning in self.warnings]


@dataclass(slots=True)
class TocEntry:
    title: str
    chapter_number: int
    anchor: str | None
    level: int
    children: list["TocEntry"] = field(default_factory=list)


@dataclass(slots=True)
class ExtractionResult:
    """Everything one extraction call produced; callers branch on ``diagnostics``."""

    source_format: SourceFormat
    metadata: ExtractionMetadata = field(default_factory=ExtractionMetadata)
    units: list[ContentUnit] = field(default_factory=list)
    images: list[ExtractedImage] = field(default_factory=list)
    diagnostics: ExtractionDiagnostics = field(default_factory=ExtractionDiagnostics)
    toc: list[TocEntry] | None = None

    @classmethod
    def parse_failure(cls, source_format: SourceFormat, message: str) -> "ExtractionResult":
        return cls(
            source_format=source_format,
            diagnostics=ExtractionDiagnostics(
                text_source=TextSource.NONE,
                warnings=[ExtractionWarning(WarningCode.PARSE_ERROR, message)],
            ),
        )

    @classmethod
    def unsupported(cls, file_name: str) -> "ExtractionResult":
        return cls(source_format=SourceFormat.UNKNOWN, metadata=ExtractionMetadata(title=file_name))

    @property
    def cover(self) -> ExtractedImage | None:
        return next((image for image in self.images if image.is_cover), None)


@dataclass(slots=True)
class ExtractionError(Exception):
    """Container-level failure raised inside an extractor."""

    file_name: str
    message: str

    def __str__(self) -> str:
        return f"{self.message} (file={self.file_name})"
