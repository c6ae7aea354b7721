"""Sanitize document HTML into chapter markup plus reading text."""

from __future__ import annotations

import re
import unicodedata

from bs4 import BeautifulSoup

from folio.extraction.normalization import normalize_whitespace
from folio.markup import html_to_plain_text
from folio.processing.cleanup import normalize_entities, normalize_markup_whitespace, remove_empty_tags

STRIPPED_ELEMENTS = ("script", "style", "head", "iframe", "object", "embed", "noscript")
_XML_DECLARATION_RE = re.compile(r"^\s*<\?xml[^>]*\?>", re.IGNORECASE)
_DOCTYPE_RE = re.compile(r"<!DOCTYPE[^>]*>", re.IGNORECASE)
_SAFE_LINK_PREFIXES = ("http://", "https://", "mailto:")


def _sanitize_links(content) -> None:
    for tag in content.find_all(True):
        for attribute in [name for name in tag.attrs if name.lower().startswith("on")]:
            del tag[attribute]

        href = tag.get("href")
        if not isinstance(href, str) or not href:
            continue
        lowered = href.strip().lower()
        if lowered.startswith("javascript:"):
            tag["href"] = "#"
        elif lowered.startswith(_SAFE_LINK_PREFIXES) or href.startswith("#"):
            continue
        elif "#" in href:
            # Links into sibling documents keep only their fragment.
            tag["href"] = "#" + href.split("#", 1)[1]
        else:
            tag["href"] = "#"


def _parse(html: str) -> BeautifulSoup:
    html = _XML_DECLARATION_RE.sub("", html, count=1)
    html = _DOCTYPE_RE.sub("", html)
    return BeautifulSoup(html, "lxml")


def clean_html(html: str) -> tuple[str, str]:
    """Return ``(clean_html, plain_text)`` for one document.

    Markup outside the body, scripts, styles and embedded objects are dropped,
    event handlers removed and links rewritten to in-book fragments.  Empty
    inline wrappers are removed and whitespace collapsed.
    """

    if not html or not html.strip():
        return "", ""

    html = unicodedata.normalize("NFC", html)
    html = normalize_entities(html)

    soup = _parse(html)
    for element in soup.find_all(STRIPPED_ELEMENTS):
        element.decompose()
    content = soup.body or soup
    _sanitize_links(content)

    cleaned = content.decode_contents()
    cleaned = remove_empty_tags(cleaned)
    cleaned = normalize_markup_whitespace(cleaned)
    return cleaned, html_to_plain_text(cleaned)


def extract_title(html: str) -> str | None:
    """First ``h1``, else ``h2``, else ``<title>`` text."""

    if not html:
        return None
    soup = _parse(html)
    for name in ("h1", "h2", "title"):
        node = soup.find(name)
        if node is None:
            continue
        title = normalize_whitespace(node.get_text(" ", strip=True))
        if title:
            return title
    return None
