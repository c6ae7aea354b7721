"""Runtime configuration for extraction and text processing."""

from __future__ import annotations

from dataclasses import dataclass
import os
from typing import Mapping


ENV_PREFIX = "FOLIO_"

DEFAULT_MAX_PDF_PAGES = 2000
DEFAULT_PDF_SAMPLE_PAGES = 10
DEFAULT_PAGES_PER_CHAPTER = 15
DEFAULT_HEADING_SCAN_PAGES = 100
DEFAULT_INLINE_IMAGE_MIN_BYTES = 2048
DEFAULT_MIN_CHAPTER_WORDS = 10
DEFAULT_MAX_PAGES_FOR_OCR = 50
DEFAULT_OCR_LANGUAGE = "eng"
DEFAULT_DJVU_TOOL_TIMEOUT = 120

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


def _parse_positive_int(*, name: str, raw_value: str, minimum: int = 1) -> int:
    try:
        value = int(raw_value)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {raw_value!r}") from exc
    if value < minimum:
        raise ValueError(f"{name} must be >= {minimum}")
    return value


def _parse_bool(*, name: str, raw_value: str) -> bool:
    lowered = raw_value.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ValueError(f"{name} must be a boolean (true/false), got {raw_value!r}")


@dataclass(frozen=True, slots=True)
class ExtractionSettings:
    """Limits and heuristics shared by the format extractors."""

    max_pdf_pages: int = DEFAULT_MAX_PDF_PAGES
    pdf_sample_pages: int = DEFAULT_PDF_SAMPLE_PAGES
    pages_per_chapter: int = DEFAULT_PAGES_PER_CHAPTER
    heading_scan_pages: int = DEFAULT_HEADING_SCAN_PAGES
    inline_image_min_bytes: int = DEFAULT_INLINE_IMAGE_MIN_BYTES
    min_chapter_words: int = DEFAULT_MIN_CHAPTER_WORDS
    max_words_per_part: int = 0
    enable_ocr_fallback: bool = False
    max_pages_for_ocr: int = DEFAULT_MAX_PAGES_FOR_OCR
    ocr_language: str = DEFAULT_OCR_LANGUAGE
    djvu_tool_timeout: int = DEFAULT_DJVU_TOOL_TIMEOUT

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "ExtractionSettings":
        source: Mapping[str, str] = os.environ if environ is None else environ

        def _int(field: str, default: int, minimum: int = 1) -> int:
            name = f"{ENV_PREFIX}{field.upper()}"
            raw_value = source.get(name, "").strip()
            if not raw_value:
                return default
            return _parse_positive_int(name=name, raw_value=raw_value, minimum=minimum)

        ocr_flag_raw = source.get(f"{ENV_PREFIX}ENABLE_OCR_FALLBACK", "").strip()
        enable_ocr_fallback = (
            _parse_bool(name=f"{ENV_PREFIX}ENABLE_OCR_FALLBACK", raw_value=ocr_flag_raw) if ocr_flag_raw else False
        )
        ocr_language = source.get(f"{ENV_PREFIX}OCR_LANGUAGE", DEFAULT_OCR_LANGUAGE).strip()
        if not ocr_language:
            raise ValueError(f"{ENV_PREFIX}OCR_LANGUAGE cannot be empty")

        return cls(
            max_pdf_pages=_int("max_pdf_pages", DEFAULT_MAX_PDF_PAGES),
            pdf_sample_pages=_int("pdf_sample_pages", DEFAULT_PDF_SAMPLE_PAGES),
            pages_per_chapter=_int("pages_per_chapter", DEFAULT_PAGES_PER_CHAPTER),
            heading_scan_pages=_int("heading_scan_pages", DEFAULT_HEADING_SCAN_PAGES),
            inline_image_min_bytes=_int("inline_image_min_bytes", DEFAULT_INLINE_IMAGE_MIN_BYTES, minimum=0),
            min_chapter_words=_int("min_chapter_words", DEFAULT_MIN_CHAPTER_WORDS, minimum=0),
            max_words_per_part=_int("max_words_per_part", 0, minimum=0),
            enable_ocr_fallback=enable_ocr_fallback,
            max_pages_for_ocr=_int("max_pages_for_ocr", DEFAULT_MAX_PAGES_FOR_OCR),
            ocr_language=ocr_language,
            djvu_tool_timeout=_int("djvu_tool_timeout", DEFAULT_DJVU_TOOL_TIMEOUT),
        )


@dataclass(frozen=True, slots=True)
class ProcessingOptions:
    """Feature toggles for the text-processing stages."""

    enable_spelling: bool = True
    enable_typography: bool = True
    enable_semantic: bool = True
    enable_soft_hyphens: bool = True

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "ProcessingOptions":
        source: Mapping[str, str] = os.environ if environ is None else environ

        values: dict[str, bool] = {}
        for field in ("enable_spelling", "enable_typography", "enable_semantic", "enable_soft_hyphens"):
            name = f"{ENV_PREFIX}{field.upper()}"
            raw_value = source.get(name, "").strip()
            values[field] = _parse_bool(name=name, raw_value=raw_value) if raw_value else True
        return cls(**values)
