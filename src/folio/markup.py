"""Tag-aware regex helpers shared by the cleaner, the pipeline and the linter.

Every rewrite in this package runs over chapter HTML as one string.  A match
is only rewritten when it starts outside markup, which is decided by comparing
the last ``<`` and the last ``>`` at or before the match position.  Both
lookups are bisections over positions collected once per substitution, so a
single pass stays linear in the size of the chapter.
"""

from __future__ import annotations

from bisect import bisect_right
from collections.abc import Callable
import html as html_lib
import re

Replacement = str | Callable[[re.Match[str]], str]

_TAG_RE = re.compile(r"<[^>]+>")
_BLOCK_TAG_RE = re.compile(
    r"</?(?:p|div|h[1-6]|li|ul|ol|blockquote|section|article|br|hr|tr|td|th|table|pre|dd|dt)\b[^>]*>",
    re.IGNORECASE,
)
_WHITESPACE_RE = re.compile(r"\s+")
_INVISIBLE_RE = re.compile("[\u00ad\u200b\u2060\ufeff]")


def _positions(text: str, needle: str) -> list[int]:
    found: list[int] = []
    start = text.find(needle)
    while start != -1:
        found.append(start)
        start = text.find(needle, start + 1)
    return found


def _last_at_or_before(positions: list[int], index: int) -> int:
    slot = bisect_right(positions, index)
    return positions[slot - 1] if slot else -1


class TagIndex:
    """Positional index answering "is this offset inside a tag / element?"."""

    __slots__ = ("_text", "_opens", "_closes", "_elements")

    def __init__(self, text: str) -> None:
        self._text = text
        self._opens = _positions(text, "<")
        self._closes = _positions(text, ">")
        self._elements: dict[str, tuple[list[int], list[int]]] = {}

    def inside_tag(self, index: int) -> bool:
        """Return True when *index* falls between a ``<`` and its ``>``."""

        return _last_at_or_before(self._opens, index) > _last_at_or_before(self._closes, index)

    def inside_element(self, index: int, name: str) -> bool:
        """Return True when *index* lies within an open ``<name ...>`` element."""

        bounds = self._elements.get(name)
        if bounds is None:
            lowered = self._text.lower()
            opens = [pos for pos in _positions(lowered, f"<{name}") if _is_name_end(lowered, pos + len(name) + 1)]
            bounds = (opens, _positions(lowered, f"</{name}>"))
            self._elements[name] = bounds
        opens, closes = bounds
        return _last_at_or_before(opens, index) > _last_at_or_before(closes, index)


def _is_name_end(text: str, index: int) -> bool:
    return index >= len(text) or not (text[index].isalnum() or text[index] in "-_:")


def is_inside_tag(text: str, index: int) -> bool:
    """One-off variant of :meth:`TagIndex.inside_tag` for single lookups."""

    return text.rfind("<", 0, index + 1) > text.rfind(">", 0, index + 1)


def sub_outside_tags(
    pattern: re.Pattern[str],
    repl: Replacement,
    text: str,
    *,
    skip_elements: tuple[str, ...] = (),
) -> str:
    """Like ``pattern.sub`` but leaves matches that start inside markup intact.

    ``skip_elements`` additionally protects the content of the named elements
    (``("abbr",)`` keeps already-annotated abbreviations from being wrapped a
    second time).
    """

    if not text:
        return text

    index: TagIndex | None = None

    def _replace(match: re.Match[str]) -> str:
        nonlocal index
        if index is None:
            index = TagIndex(text)
        start = match.start()
        if index.inside_tag(start):
            return match.group(0)
        for name in skip_elements:
            if index.inside_element(start, name):
                return match.group(0)
        if isinstance(repl, str):
            return match.expand(repl)
        return repl(match)

    return pattern.sub(_replace, text)


def strip_tags(text: str, replacement: str = " ") -> str:
    return _TAG_RE.sub(replacement, text)


def html_to_plain_text(html: str) -> str:
    """Derive reading text from chapter HTML.

    Block-level boundaries become spaces so adjacent paragraphs do not glue
    words together; inline tags vanish without adding whitespace.
    """

    if not html:
        return ""
    spaced = _BLOCK_TAG_RE.sub(" ", html)
    text = html_lib.unescape(_TAG_RE.sub("", spaced))
    text = _INVISIBLE_RE.sub("", text)
    return _WHITESPACE_RE.sub(" ", text).strip()


def line_number(text: str, index: int) -> int:
    return text.count("\n", 0, index) + 1


def context_snippet(text: str, index: int, *, before: int = 20, after: int = 20) -> str:
    start = max(0, index - before)
    end = min(len(text), index + after)
    return text[start:end].replace("\r", " ").replace("\n", " ")
