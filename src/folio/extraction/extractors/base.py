"""Shared extractor contract for per-format parsers."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from folio.extraction.models import ExtractionRequest, ExtractionResult, SourceFormat


@runtime_checkable
class CancellationSignal(Protocol):
    """Anything with ``is_set()``, for example ``threading.Event``."""

    def is_set(self) -> bool:
        """Return True once the caller wants the extraction to stop."""


@runtime_checkable
class Extractor(Protocol):
    """Protocol that every format extractor must implement."""

    supported_format: SourceFormat

    def extract(self, request: ExtractionRequest, cancel: CancellationSignal | None = None) -> ExtractionResult:
        """Turn raw bytes into units, metadata and images without raising."""


def is_cancelled(cancel: CancellationSignal | None) -> bool:
    return cancel is not None and cancel.is_set()
