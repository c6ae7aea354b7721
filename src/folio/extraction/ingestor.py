"""End-to-end ingestion: extract, process every unit, lint, store images."""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

from folio.config import ExtractionSettings, ProcessingOptions
from folio.extraction.extractors.base import CancellationSignal
from folio.extraction.models import ExtractionError, ExtractionRequest, ExtractionResult, TocEntry
from folio.extraction.normalization import count_words
from folio.extraction.registry import ExtractorRegistry, build_default_registry
from folio.lint import Linter, LintIssue
from folio.processing import ProcessingContext, ProcessingPipeline, build_default_pipeline

logger = logging.getLogger(__name__)

DEFAULT_LANGUAGE = "en"


@runtime_checkable
class ImageStore(Protocol):
    """Blob storage for extracted images."""

    def save(self, owner_id: str, relative_path: str, content: bytes) -> str:
        """Persist *content* and return its storage path."""


@dataclass(slots=True)
class IngestedChapter:
    number: int
    title: str
    html: str
    plain_text: str
    part_number: int | None = None
    total_parts: int | None = None

    @property
    def word_count(self) -> int:
        return count_words(self.plain_text)


@dataclass(slots=True)
class IngestionReport:
    """Processed chapters plus the extraction diagnostics and lint findings."""

    file_name: str
    extraction: ExtractionResult
    chapters: list[IngestedChapter] = field(default_factory=list)
    lint_issues: list[LintIssue] = field(default_factory=list)
    stored_images: dict[str, str] = field(default_factory=dict)

    @property
    def word_count(self) -> int:
        return sum(chapter.word_count for chapter in self.chapters)

    def to_dict(self) -> dict[str, Any]:
        metadata = self.extraction.metadata
        diagnostics = self.extraction.diagnostics
        return {
            "file_name": self.file_name,
            "format": self.extraction.source_format.value,
            "title": metadata.title,
            "authors": metadata.authors,
            "language": metadata.language,
            "description": metadata.description,
            "has_cover": metadata.cover_image is not None,
            "text_source": diagnostics.text_source.value,
            "ocr_confidence": diagnostics.ocr_confidence,
            "warnings": [{"code": warning.code.value, "message": warning.message} for warning in diagnostics.warnings],
            "chapter_count": len(self.chapters),
            "word_count": self.word_count,
            "chapters": [
                {"number": chapter.number, "title": chapter.title, "word_count": chapter.word_count}
                for chapter in self.chapters
            ],
            "image_count": len(self.extraction.images),
            "stored_images": dict(self.stored_images),
            "toc": [_toc_to_dict(entry) for entry in self.extraction.toc or []],
            "lint_issues": [
                {
                    "code": issue.code,
                    "severity": issue.severity.value,
                    "message": issue.message,
                    "chapter": issue.chapter_number,
                    "line": issue.line_number,
                    "context": issue.context,
                }
                for issue in self.lint_issues
            ],
        }


def _toc_to_dict(entry: TocEntry) -> dict[str, Any]:
    return {
        "title": entry.title,
        "chapter": entry.chapter_number,
        "anchor": entry.anchor,
        "level": entry.level,
        "children": [_toc_to_dict(child) for child in entry.children],
    }


class BookIngestor:
    """Resolve the extractor, run the pipeline on every unit and lint the result."""

    def __init__(
        self,
        registry: ExtractorRegistry | None = None,
        pipeline: ProcessingPipeline | None = None,
        linter: Linter | None = None,
        *,
        settings: ExtractionSettings | None = None,
        options: ProcessingOptions | None = None,
        image_store: ImageStore | None = None,
    ) -> None:
        self._registry = registry or build_default_registry(settings)
        self._pipeline = pipeline or build_default_pipeline()
        self._linter = linter or Linter()
        self._options = options or ProcessingOptions()
        self._image_store = image_store

    def ingest(
        self,
        path: str | Path,
        *,
        owner_id: str | None = None,
        language: str | None = None,
        lint: bool = True,
        cancel: CancellationSignal | None = None,
    ) -> IngestionReport:
        """Ingest a file path; unreadable paths raise :class:`ExtractionError`."""

        source = Path(path)
        try:
            request = ExtractionRequest.from_path(source)
        except OSError as exc:
            raise ExtractionError(source.name, f"Failed to read source file: {exc}") from exc
        return self.ingest_request(request, owner_id=owner_id, language=language, lint=lint, cancel=cancel)

    def ingest_request(
        self,
        request: ExtractionRequest,
        *,
        owner_id: str | None = None,
        language: str | None = None,
        lint: bool = True,
        cancel: CancellationSignal | None = None,
    ) -> IngestionReport:
        extraction = self._registry.extract(request, cancel)
        report = IngestionReport(file_name=request.file_name, extraction=extraction)

        context = ProcessingContext(
            language=language or extraction.metadata.language or DEFAULT_LANGUAGE,
            options=self._options,
        )
        for unit in extraction.units:
            processed = self._pipeline.process(unit.html, context)
            report.chapters.append(
                IngestedChapter(
                    number=unit.order_index + 1,
                    title=unit.title,
                    html=processed.html,
                    plain_text=processed.plain_text,
                    part_number=unit.part_number,
                    total_parts=unit.total_parts,
                )
            )

        if lint:
            report.lint_issues = self._linter.lint_all((chapter.number, chapter.html) for chapter in report.chapters)

        if self._image_store is not None and extraction.images:
            owner = owner_id or Path(request.file_name).stem
            for image in extraction.images:
                report.stored_images[image.original_path] = self._image_store.save(
                    owner, f"images/{image.original_path}", image.data
                )

        logger.info(
            "Ingested %s: %d chapters, %d warnings, %d lint issues",
            request.file_name,
            len(report.chapters),
            len(extraction.diagnostics.warnings),
            len(report.lint_issues),
        )
        return report
