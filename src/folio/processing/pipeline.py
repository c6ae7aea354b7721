"""Ordered text-processing pipeline over chapter HTML."""

from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Protocol, runtime_checkable

from folio.markup import html_to_plain_text
from folio.processing.context import ProcessingContext
from folio.processing.semantic import SemanticProcessor
from folio.processing.soft_hyphen import SoftHyphenProcessor
from folio.processing.spelling import SpellingProcessor
from folio.processing.typography import TypographyProcessor

logger = logging.getLogger(__name__)


@runtime_checkable
class TextProcessor(Protocol):
    """A stateless ``(html, context) -> html`` rewrite."""

    name: str

    def process(self, html: str, context: ProcessingContext) -> str:
        """Return rewritten HTML without mutating shared state."""


@dataclass(slots=True)
class ProcessedText:
    html: str
    plain_text: str


class ProcessingPipeline:
    """Run stages in registration order.

    A stage that raises is logged and skipped; its input is handed to the
    next stage unchanged, so one faulty rewrite never loses a chapter.
    """

    def __init__(self, stages: list[TextProcessor] | None = None) -> None:
        self._stages: list[TextProcessor] = list(stages or [])

    @property
    def stage_names(self) -> list[str]:
        return [stage.name for stage in self._stages]

    def add_stage(self, stage: TextProcessor) -> None:
        if not isinstance(stage, TextProcessor):
            raise TypeError(f"Stage must implement process(html, context): {stage!r}")
        self._stages.append(stage)

    def process(self, html: str, context: ProcessingContext | None = None) -> ProcessedText:
        active_context = context or ProcessingContext()
        current = html or ""
        for stage in self._stages:
            try:
                current = stage.process(current, active_context)
            except Exception:
                logger.exception("Processing stage %s failed; keeping its input", stage.name)
        return ProcessedText(html=current, plain_text=html_to_plain_text(current))


def build_default_pipeline() -> ProcessingPipeline:
    """Spelling -> Typography -> Semantic -> SoftHyphen."""

    return ProcessingPipeline(
        [
            SpellingProcessor(),
            TypographyProcessor(),
            SemanticProcessor(),
            SoftHyphenProcessor(),
        ]
    )
