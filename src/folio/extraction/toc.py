"""Heading anchors and the nested table of contents."""

from __future__ import annotations

from collections.abc import Iterable
import html as html_lib
import re

from folio.extraction.models import TocEntry
from folio.extraction.normalization import normalize_whitespace
from folio.markup import strip_tags

MAX_SLUG_LENGTH = 50

_HEADING_RE = re.compile(r"<(h[1-3])\b([^>]*)>(.*?)</\1\s*>", re.IGNORECASE | re.DOTALL)
_ID_ATTRIBUTE_RE = re.compile(r"""\bid\s*=\s*(?:"([^"]*)"|'([^']*)')""", re.IGNORECASE)
_SLUG_STRIP_RE = re.compile(r"[^a-z0-9\-]")
_MULTIPLE_HYPHENS_RE = re.compile(r"-{2,}")


def heading_text(inner_html: str) -> str:
    return normalize_whitespace(html_lib.unescape(strip_tags(inner_html, "")))


def slugify(text: str) -> str:
    """Lower-case ASCII slug of at most ``MAX_SLUG_LENGTH`` characters."""

    slug = html_lib.unescape(text).lower().replace(" ", "-")
    slug = _SLUG_STRIP_RE.sub("", slug)
    slug = _MULTIPLE_HYPHENS_RE.sub("-", slug).strip("-")
    if len(slug) > MAX_SLUG_LENGTH:
        slug = slug[:MAX_SLUG_LENGTH].rstrip("-")
    return slug


def inject_anchor_ids(html: str, chapter_number: int) -> str:
    """Give every ``h1``-``h3`` without an id an ``ch{n}-{slug}`` anchor."""

    if not html:
        return html

    used: set[str] = set()
    fallback_index = 0

    def _anchor(match: re.Match[str]) -> str:
        nonlocal fallback_index
        tag, attributes, inner = match.groups()
        if _ID_ATTRIBUTE_RE.search(attributes):
            return match.group(0)
        slug = slugify(heading_text(inner))
        if not slug:
            slug = f"h{fallback_index}"
            fallback_index += 1
        anchor = f"ch{chapter_number}-{slug}"
        candidate, suffix = anchor, 2
        while candidate in used:
            candidate = f"{anchor}-{suffix}"
            suffix += 1
        used.add(candidate)
        return f'<{tag}{attributes} id="{candidate}">{inner}</{tag}>'

    return _HEADING_RE.sub(_anchor, html)


def _flat_entries(chapter_number: int, html: str) -> list[TocEntry]:
    entries: list[TocEntry] = []
    for match in _HEADING_RE.finditer(html or ""):
        tag, attributes, inner = match.groups()
        title = heading_text(inner)
        if not title:
            continue
        id_match = _ID_ATTRIBUTE_RE.search(attributes)
        anchor = f"#{id_match.group(1) or id_match.group(2)}" if id_match else None
        entries.append(TocEntry(title=title, chapter_number=chapter_number, anchor=anchor, level=int(tag[1])))
    return entries


def generate_toc(chapters: Iterable[tuple[int, str]]) -> list[TocEntry]:
    """Nest headings of all chapters by level; a lower level number is a parent."""

    roots: list[TocEntry] = []
    stack: list[TocEntry] = []
    for chapter_number, html in chapters:
        for entry in _flat_entries(chapter_number, html):
            while stack and stack[-1].level >= entry.level:
                stack.pop()
            if stack:
                stack[-1].children.append(entry)
            else:
                roots.append(entry)
            stack.append(entry)
    return roots
