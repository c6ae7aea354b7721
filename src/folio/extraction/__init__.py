"""Format extraction: bytes in, chapters, metadata, images and diagnostics out."""

from .ingestor import BookIngestor, ImageStore, IngestedChapter, IngestionReport
from .models import (
    ContentUnit,
    ContentUnitType,
    ExtractedImage,
    ExtractionDiagnostics,
    ExtractionError,
    ExtractionMetadata,
    ExtractionRequest,
    ExtractionResult,
    ExtractionWarning,
    SourceFormat,
    TextSource,
    TocEntry,
    WarningCode,
)
from .registry import ExtractorRegistry, build_default_registry, detect_format

__all__ = [
    "BookIngestor",
    "ContentUnit",
    "ContentUnitType",
    "ExtractedImage",
    "ExtractionDiagnostics",
    "ExtractionError",
    "ExtractionMetadata",
    "ExtractionRequest",
    "ExtractionResult",
    "ExtractionWarning",
    "ExtractorRegistry",
    "ImageStore",
    "IngestedChapter",
    "IngestionReport",
    "SourceFormat",
    "TextSource",
    "TocEntry",
    "WarningCode",
    "build_default_registry",
    "detect_format",
]
