"""Render classified page elements as chapter HTML."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
import html as html_lib
from itertools import groupby

from folio.extraction.normalization import normalize_whitespace
from folio.extraction.pdf.page_text import ElementType, PageElement, TextRun


def runs_to_html(runs: Sequence[TextRun]) -> str:
    """Inline HTML for *runs*; bold and italic stretches become ``strong``/``em``."""

    parts: list[str] = []
    for (bold, italic), group in groupby(runs, key=lambda run: (run.bold, run.italic)):
        text = html_lib.escape("".join(run.text for run in group), quote=False)
        core = text.strip()
        if core:
            lead = text[: len(text) - len(text.lstrip())]
            trail = text[len(text.rstrip()) :]
            if italic:
                core = f"<em>{core}</em>"
            if bold:
                core = f"<strong>{core}</strong>"
            text = f"{lead}{core}{trail}"
        parts.append(text)
    return normalize_whitespace("".join(parts))


def elements_to_html(elements: Iterable[PageElement], *, heading_tag: str = "h2") -> str:
    parts: list[str] = []
    for element in elements:
        if element.type is ElementType.IMAGE:
            if element.image_path:
                parts.append(f'<img src="{html_lib.escape(element.image_path)}" alt="" />')
        elif element.type is ElementType.HEADING:
            text = html_lib.escape(element.text, quote=False)
            if text:
                parts.append(f"<{heading_tag}>{text}</{heading_tag}>")
        else:
            body = runs_to_html(element.runs)
            if body:
                parts.append(f"<p>{body}</p>")
    return "\n".join(parts)
