from __future__ import annotations

from dataclasses import dataclass, field

from folio.config import ProcessingOptions


@dataclass(frozen=True, slots=True)
class ProcessingContext:
    """Read-only inputs shared by every stage of one pipeline run."""

    language: str = "en"
    options: ProcessingOptions = field(default_factory=ProcessingOptions)

    @property
    def is_english(self) -> bool:
        return self.language.lower().startswith("en")
