"""Text normalization helpers shared by the extractors."""

from __future__ import annotations

import html as html_lib
from pathlib import PurePosixPath
import re

_WHITESPACE_RE = re.compile(r"\s+")
_WORD_SPLIT_RE = re.compile(r"[ \t\r\n]+")
_TITLE_SPLIT_RE = re.compile(r"[._\-]+")
_MULTIPLE_NEWLINES_RE = re.compile(r"\n{3,}")
_FILE_NAME_CHARS_RE = re.compile(r"^[A-Za-z0-9_-]+$")
_FILE_NAME_NUMBERING_RE = re.compile(r"[_-]\d+|^\d+[_-]")
CHAPTER_PATTERN = re.compile(
    r"^\s*(chapter|глава|розділ|part|частина|часть)\s+(\d+|[IVXLCDM]+)\b",
    re.IGNORECASE,
)

# Common language tag spellings mapped to ISO 639-1.
_LANGUAGE_ALIASES: dict[str, str] = {
    "eng": "en", "english": "en",
    "rus": "ru", "russian": "ru",
    "ukr": "uk", "ukrainian": "uk",
    "deu": "de", "ger": "de", "german": "de",
    "fra": "fr", "fre": "fr", "french": "fr",
    "spa": "es", "spanish": "es",
    "ita": "it", "italian": "it",
    "pol": "pl", "polish": "pl",
}  # fmt: skip


def normalize_whitespace(text: str) -> str:
    """Collapse repeated whitespace and trim boundaries."""

    return _WHITESPACE_RE.sub(" ", text).strip()


def count_words(text: str | None) -> int:
    """Whitespace-delimited token count, the definition used for ``word_count``."""

    if not text:
        return 0
    return len([token for token in _WORD_SPLIT_RE.split(text) if token])


def normalize_plain_text(text: str) -> str:
    """Unify line endings, strip trailing spaces and cap blank runs at one line."""

    if not text:
        return ""
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    text = "\n".join(line.rstrip() for line in text.split("\n"))
    return _MULTIPLE_NEWLINES_RE.sub("\n\n", text).strip()


def paragraph_to_html(paragraph: str, tag: str = "p") -> str:
    body = html_lib.escape(paragraph, quote=False).replace("\n", "<br/>")
    return f"<{tag}>{body}</{tag}>"


def title_from_file_name(file_name: str) -> str:
    """``my-awesome_book.pdf`` -> ``My Awesome Book``."""

    path = PurePosixPath(file_name.replace("\\", "/"))
    stem = path.name
    for suffix in reversed(path.suffixes):
        if len(suffix) <= 5:
            stem = stem[: -len(suffix)]
        else:
            break
    stem = _TITLE_SPLIT_RE.sub(" ", stem or path.name)
    return normalize_whitespace(stem).title()


def looks_like_file_name(text: str | None) -> bool:
    """True for labels such as ``chapter-01`` or ``SF20_Code-4``."""

    if not text or not text.strip():
        return True
    candidate = text.strip()
    return bool(_FILE_NAME_CHARS_RE.match(candidate) and _FILE_NAME_NUMBERING_RE.search(candidate))


def normalize_language_tag(raw: str | None) -> str | None:
    """Reduce ``en-US``, ``eng`` or ``English`` to an ISO 639-1 code."""

    if not raw:
        return None
    lowered = raw.strip().lower().replace("_", "-")
    if not lowered:
        return None
    primary = lowered.split("-", 1)[0]
    if primary in _LANGUAGE_ALIASES:
        return _LANGUAGE_ALIASES[primary]
    if len(primary) == 2 and primary.isalpha():
        return primary
    return None
