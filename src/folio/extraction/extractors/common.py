"""Finishing steps every extractor applies to its units."""

from __future__ import annotations

from dataclasses import replace
import logging

from folio.config import ExtractionSettings
from folio.extraction.language_detection import detect_language
from folio.extraction.models import ExtractionResult, ExtractionWarning, TextSource, WarningCode
from folio.extraction.normalization import normalize_whitespace
from folio.extraction.splitter import ChapterSplitter
from folio.extraction.toc import generate_toc, inject_anchor_ids

logger = logging.getLogger(__name__)

SHORT_DESCRIPTION_CHARS = 300
LANGUAGE_SAMPLE_UNITS = 5


def split_description(text: str | None) -> tuple[str | None, str | None]:
    """``(description, long_description)``; the long form is kept only when truncated."""

    cleaned = normalize_whitespace(text or "")
    if not cleaned:
        return None, None
    if len(cleaned) <= SHORT_DESCRIPTION_CHARS:
        return cleaned, None
    cut = cleaned.rfind(" ", 0, SHORT_DESCRIPTION_CHARS)
    short = cleaned[: cut if cut > 0 else SHORT_DESCRIPTION_CHARS].rstrip(" ,;:") + "\u2026"
    return short, cleaned


def finalize_result(result: ExtractionResult, settings: ExtractionSettings) -> ExtractionResult:
    """Split long units, anchor headings, build the TOC and fill the language.

    Adds an ``EMPTY_CONTENT`` warning when no unit survived.
    """

    units = ChapterSplitter(settings.max_words_per_part).split_all(result.units)
    units = [
        replace(unit, html=inject_anchor_ids(unit.html, unit.order_index + 1))
        for unit in units
    ]
    result.units = units

    if not units:
        result.diagnostics.text_source = TextSource.NONE
        result.diagnostics.warnings.append(
            ExtractionWarning(WarningCode.EMPTY_CONTENT, "No readable content units were found")
        )
        return result

    if result.diagnostics.text_source is TextSource.NONE:
        result.diagnostics.text_source = TextSource.NATIVE_TEXT

    toc = generate_toc((unit.order_index + 1, unit.html) for unit in units)
    result.toc = toc or None

    if not result.metadata.language:
        sample = " ".join(unit.plain_text for unit in units[:LANGUAGE_SAMPLE_UNITS])
        result.metadata.language = detect_language(sample)
        logger.debug("Detected language %s", result.metadata.language)
    return result
