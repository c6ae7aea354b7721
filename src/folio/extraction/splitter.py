"""Split oversized chapters into parts at paragraph boundaries."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, replace
import html as html_lib

from bs4 import BeautifulSoup, NavigableString, Tag

from folio.extraction.models import ContentUnit
from folio.extraction.normalization import count_words, normalize_whitespace

BLOCK_TAGS = frozenset(
    {
        "p", "div", "h1", "h2", "h3", "h4", "h5", "h6", "blockquote", "pre", "ul", "ol", "li",
        "table", "tr", "section", "article", "aside", "header", "footer",
    }
)  # fmt: skip


@dataclass(slots=True)
class _Block:
    html: str
    text: str
    words: int


def _blocks(node: Tag) -> list[_Block]:
    blocks: list[_Block] = []
    for child in node.children:
        if isinstance(child, Tag):
            if child.name in BLOCK_TAGS:
                text = normalize_whitespace(child.get_text(" "))
                if count_words(text):
                    blocks.append(_Block(str(child), text, count_words(text)))
            else:
                blocks.extend(_blocks(child))
        elif isinstance(child, NavigableString):
            text = normalize_whitespace(str(child))
            if count_words(text):
                # Loose text between blocks becomes its own paragraph.
                blocks.append(_Block(f"<p>{html_lib.escape(text, quote=False)}</p>", text, count_words(text)))
    return blocks


class ChapterSplitter:
    """Breaks units above ``max_words_per_part`` into ``"Title - Part N"`` units.

    A limit of zero disables splitting.
    """

    def __init__(self, max_words_per_part: int = 0) -> None:
        if max_words_per_part < 0:
            raise ValueError("max_words_per_part must be >= 0")
        self._max_words = max_words_per_part

    def split(self, unit: ContentUnit, base_order_index: int) -> list[ContentUnit]:
        if not self._max_words or unit.word_count <= self._max_words:
            return [replace(unit, order_index=base_order_index)]

        soup = BeautifulSoup(f"<div>{unit.html}</div>", "lxml")
        root = soup.div
        blocks = _blocks(root) if root is not None else []
        if not blocks:
            return [replace(unit, order_index=base_order_index)]

        parts: list[list[_Block]] = [[]]
        words = 0
        for block in blocks:
            if words and words + block.words > self._max_words:
                parts.append([])
                words = 0
            parts[-1].append(block)
            words += block.words

        if len(parts) == 1:
            return [replace(unit, order_index=base_order_index)]

        return [
            replace(
                unit,
                title=f"{unit.title} - Part {number}",
                html="".join(block.html for block in part),
                plain_text=" ".join(block.text for block in part),
                order_index=base_order_index + number - 1,
                part_number=number,
                total_parts=len(parts),
            )
            for number, part in enumerate(parts, start=1)
        ]

    def split_all(self, units: Iterable[ContentUnit]) -> list[ContentUnit]:
        result: list[ContentUnit] = []
        for unit in units:
            result.extend(self.split(unit, len(result)))
        return result
