"""Fallback for files no extractor recognizes."""

from __future__ import annotations

import logging

from folio.extraction.extractors.base import CancellationSignal
from folio.extraction.models import ExtractionRequest, ExtractionResult, SourceFormat

logger = logging.getLogger(__name__)


class UnsupportedExtractor:
    """Returns a stub named after the file, with no units and no warnings."""

    supported_format = SourceFormat.UNKNOWN

    def extract(self, request: ExtractionRequest, cancel: CancellationSignal | None = None) -> ExtractionResult:
        logger.info("Format of %s is not supported", request.file_name)
        return ExtractionResult.unsupported(request.file_name)
