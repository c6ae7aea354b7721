"""Straight-to-curly quote conversion."""

from __future__ import annotations

import re

from folio.markup import sub_outside_tags
from folio.typography.characters import (
    HAIR_SPACE,
    LEFT_DOUBLE,
    LEFT_SINGLE,
    LETTER,
    RIGHT_DOUBLE,
    RIGHT_SINGLE,
)

_BACKTICK_RE = re.compile("`")
_OPENING_DOUBLE_RE = re.compile(r'(?:^|(?<=[\s>(\[{]))"')
_CLOSING_DOUBLE_RE = re.compile(r'"(?=[\s<)\]}.,:;!?]|$)')
_ANY_DOUBLE_RE = re.compile('"')
_OPENING_SINGLE_RE = re.compile(rf"(?:^|(?<=[\s>(\[{{]))'(?={LETTER})")
_APOSTROPHE_RE = re.compile(rf"(?<={LETTER})'(?={LETTER})")
_TRAILING_SINGLE_RE = re.compile(rf"(?<={LETTER})'")
_LEADING_SINGLE_RE = re.compile(rf"'(?={LETTER})")

_ADJACENT_QUOTES = (
    (re.compile(rf"{RIGHT_DOUBLE}\s*{RIGHT_SINGLE}"), f"{RIGHT_DOUBLE}{HAIR_SPACE}{RIGHT_SINGLE}"),
    (re.compile(rf"{RIGHT_SINGLE}\s*{RIGHT_DOUBLE}"), f"{RIGHT_SINGLE}{HAIR_SPACE}{RIGHT_DOUBLE}"),
    (re.compile(rf"{LEFT_DOUBLE}\s*{LEFT_SINGLE}"), f"{LEFT_DOUBLE}{HAIR_SPACE}{LEFT_SINGLE}"),
    (re.compile(rf"{LEFT_SINGLE}\s*{LEFT_DOUBLE}"), f"{LEFT_SINGLE}{HAIR_SPACE}{LEFT_DOUBLE}"),
)


def replace_backticks(html: str) -> str:
    """Gutenberg-style texts use a backtick as an opening single quote."""

    return sub_outside_tags(_BACKTICK_RE, "'", html)


def apply_smart_quotes(html: str) -> str:
    """Convert straight quotes in text content into curly ones.

    Double quotes open after whitespace, a tag or an opening bracket and close
    before whitespace, a tag, a closing bracket or punctuation; anything left
    over is treated as closing.  Single quotes between letters are
    apostrophes.  Quotes inside tags (attribute delimiters) are untouched.
    """

    html = sub_outside_tags(_OPENING_DOUBLE_RE, LEFT_DOUBLE, html)
    html = sub_outside_tags(_CLOSING_DOUBLE_RE, RIGHT_DOUBLE, html)
    html = sub_outside_tags(_ANY_DOUBLE_RE, RIGHT_DOUBLE, html)
    html = sub_outside_tags(_OPENING_SINGLE_RE, LEFT_SINGLE, html)
    html = sub_outside_tags(_APOSTROPHE_RE, RIGHT_SINGLE, html)
    html = sub_outside_tags(_TRAILING_SINGLE_RE, RIGHT_SINGLE, html)
    return sub_outside_tags(_LEADING_SINGLE_RE, LEFT_SINGLE, html)


def space_adjacent_quotes(html: str) -> str:
    """Separate nested quote marks (``”’``) with a hair space."""

    for pattern, replacement in _ADJACENT_QUOTES:
        html = sub_outside_tags(pattern, replacement, html)
    return html
