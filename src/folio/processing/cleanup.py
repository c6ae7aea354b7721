"""Markup hygiene passes applied to extracted HTML before processing."""

from __future__ import annotations

import html as html_lib
import re

PRESERVED_ENTITIES = frozenset(
    {"&amp;", "&lt;", "&gt;", "&quot;", "&apos;", "&#38;", "&#60;", "&#62;", "&#34;", "&#39;"}
)
_UNSAFE_DECODED = frozenset({"<", ">", "&", '"'})
_DOUBLE_ENCODED = (
    ("&amp;amp;", "&amp;"),
    ("&amp;lt;", "&lt;"),
    ("&amp;gt;", "&gt;"),
    ("&amp;quot;", "&quot;"),
    ("&amp;apos;", "&apos;"),
    ("&amp;nbsp;", "&nbsp;"),
    ("&amp;#", "&#"),
)
_ENTITY_RE = re.compile(r"&(?:#[xX]?[0-9a-fA-F]+|[a-zA-Z][a-zA-Z0-9]*);")

REMOVABLE_WHEN_EMPTY = frozenset(
    {"span", "p", "div", "em", "i", "b", "strong", "u", "s", "strike", "a", "font", "center", "blockquote"}
)
MAX_EMPTY_TAG_PASSES = 10
_EMPTY_TAG_RE = re.compile(r"<(\w+)((?:\s+[^>]*)?)>[ \t\r\n]*</\1>", re.IGNORECASE)
_SELF_CLOSING_RE = re.compile(r"<(\w+)((?:\s+[^>]*?)?)\s*/>", re.IGNORECASE)
_ANCHOR_TARGET_RE = re.compile(r"\b(?:id|name)\s*=", re.IGNORECASE)

# Whitespace classes are spelled out so no-break and hair spaces survive.
_TRAILING_WHITESPACE_RE = re.compile(r"[ \t]+\n")
_BLANK_LINES_RE = re.compile(r"\n{3,}")
_MULTIPLE_SPACES_RE = re.compile(r"[ \t]{2,}")
_BLOCK_TAGS = r"(?:p|div|h[1-6]|li|blockquote|td|th|section|article|dd|dt)"
_SPACE_BEFORE_CLOSE_RE = re.compile(rf"[ \t\r\n]+</({_BLOCK_TAGS})>", re.IGNORECASE)
_SPACE_AFTER_OPEN_RE = re.compile(rf"<({_BLOCK_TAGS}\b[^>]*)>[ \t\r\n]+", re.IGNORECASE)
_SPACE_BEFORE_PUNCTUATION_RE = re.compile(r"[ \t\r\n]+([.,;:!?])")
_MULTI_SPACE_RE = re.compile(r"  +")


def _decode_entity(match: re.Match[str]) -> str:
    entity = match.group(0)
    if entity.lower() in PRESERVED_ENTITIES:
        return entity
    decoded = html_lib.unescape(entity)
    if decoded == entity or decoded in _UNSAFE_DECODED:
        return entity
    return decoded


def normalize_entities(html: str) -> str:
    """Repair double-encoded entities and decode the rest to characters.

    Entities that would change markup when decoded (``&amp;``, ``&lt;`` and
    friends) are kept encoded.
    """

    if not html:
        return html
    for _ in range(3):
        previous = html
        for broken, fixed in _DOUBLE_ENCODED:
            html = html.replace(broken, fixed)
        if html == previous:
            break
    return _ENTITY_RE.sub(_decode_entity, html)


def _drop_if_removable(match: re.Match[str]) -> str:
    tag = match.group(1).lower()
    if tag not in REMOVABLE_WHEN_EMPTY:
        return match.group(0)
    # Empty anchors with an id are link targets.
    if tag == "a" and _ANCHOR_TARGET_RE.search(match.group(2) or ""):
        return match.group(0)
    return ""


def remove_empty_tags(html: str) -> str:
    if not html:
        return html
    for _ in range(MAX_EMPTY_TAG_PASSES):
        previous = html
        html = _EMPTY_TAG_RE.sub(_drop_if_removable, html)
        html = _SELF_CLOSING_RE.sub(_drop_if_removable, html)
        if html == previous:
            break
    return _MULTI_SPACE_RE.sub(" ", html)


def normalize_markup_whitespace(html: str) -> str:
    if not html:
        return html
    html = html.replace("\r\n", "\n").replace("\r", "\n")
    html = _TRAILING_WHITESPACE_RE.sub("\n", html)
    html = _BLANK_LINES_RE.sub("\n\n", html)
    html = _MULTIPLE_SPACES_RE.sub(" ", html)
    html = _SPACE_BEFORE_CLOSE_RE.sub(r"</\1>", html)
    html = _SPACE_AFTER_OPEN_RE.sub(r"<\1>", html)
    html = _SPACE_BEFORE_PUNCTUATION_RE.sub(r"\1", html)
    return html.strip()
