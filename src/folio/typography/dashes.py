"""Dash normalization and word-joiner placement."""

from __future__ import annotations

import re

from folio.markup import sub_outside_tags
from folio.typography.characters import (
    EM_DASH,
    EN_DASH,
    HORIZONTAL_BAR,
    LEFT_DOUBLE,
    LEFT_SINGLE,
    LETTER,
    MINUS_SIGN,
    RIGHT_DOUBLE,
    RIGHT_SINGLE,
    THREE_EM_DASH,
    TWO_EM_DASH,
    WORD_JOINER,
)

_HORIZONTAL_BAR_RE = re.compile(HORIZONTAL_BAR)
_TRIPLE_EM_RE = re.compile(f"{EM_DASH}{{3}}")
_DOUBLE_EM_RE = re.compile(f"{EM_DASH}{{2}}")
_TRIPLE_HYPHEN_RE = re.compile("---")
_DOUBLE_HYPHEN_RE = re.compile("--")
# Em dashes stick to the preceding word; whitespace-led dashes are left alone.
_EM_WITHOUT_JOINER_RE = re.compile(rf"(?<=[^\s{WORD_JOINER}])([{EM_DASH}{THREE_EM_DASH}])")
_EN_DASH_RE = re.compile(f"{WORD_JOINER}?{EN_DASH}{WORD_JOINER}?")
_DASH_BEFORE_CLOSING_DOUBLE_RE = re.compile(rf"{EM_DASH}{RIGHT_DOUBLE}(?={LETTER})")
_DASH_BEFORE_CLOSING_SINGLE_RE = re.compile(rf"{EM_DASH}{RIGHT_SINGLE}(?={LETTER})")
_SPACED_EN_DASH_RE = re.compile(rf"\s{WORD_JOINER}?{EN_DASH}{WORD_JOINER}?\s?")
_PUNCTUATION_HYPHEN_RE = re.compile(rf"([:;])-({LETTER})")
_HYPHEN_BEFORE_QUOTE_RE = re.compile(rf"({LETTER})-{RIGHT_DOUBLE}")
_NUMBER_RANGE_RE = re.compile(r"(?<![\d.,])(\d+)-(\d+)(?![\d.,]*\d)")
_MINUS_RE = re.compile(r"(?<=[\s>])-(?=\d)")


def normalize_em_dashes(html: str) -> str:
    html = sub_outside_tags(_HORIZONTAL_BAR_RE, EM_DASH, html)
    html = sub_outside_tags(_TRIPLE_EM_RE, THREE_EM_DASH, html)
    html = sub_outside_tags(_DOUBLE_EM_RE, TWO_EM_DASH, html)
    html = sub_outside_tags(_TRIPLE_HYPHEN_RE, THREE_EM_DASH, html)
    return sub_outside_tags(_DOUBLE_HYPHEN_RE, EM_DASH, html)


def add_word_joiners(html: str) -> str:
    """Glue em dashes to the preceding word and en dashes to both sides."""

    html = sub_outside_tags(_EM_WITHOUT_JOINER_RE, rf"{WORD_JOINER}\1", html)
    html = sub_outside_tags(_EN_DASH_RE, f"{WORD_JOINER}{EN_DASH}{WORD_JOINER}", html)
    html = sub_outside_tags(_DASH_BEFORE_CLOSING_DOUBLE_RE, f"{EM_DASH}{LEFT_DOUBLE}", html)
    return sub_outside_tags(_DASH_BEFORE_CLOSING_SINGLE_RE, f"{EM_DASH}{LEFT_SINGLE}", html)


def fix_spaced_en_dashes(html: str) -> str:
    """A spaced en dash is an em dash in disguise: ``word – word``."""

    return sub_outside_tags(_SPACED_EN_DASH_RE, f"{WORD_JOINER}{EM_DASH}", html)


def fix_hyphen_dashes(html: str) -> str:
    html = sub_outside_tags(_PUNCTUATION_HYPHEN_RE, rf"\1{EM_DASH}\2", html)
    return sub_outside_tags(_HYPHEN_BEFORE_QUOTE_RE, rf"\1{EM_DASH}{RIGHT_DOUBLE}", html)


def apply_number_ranges(html: str) -> str:
    """``10-20`` becomes an en-dash range joined on both sides."""

    return sub_outside_tags(_NUMBER_RANGE_RE, rf"\1{WORD_JOINER}{EN_DASH}{WORD_JOINER}\2", html)


def apply_minus_signs(html: str) -> str:
    return sub_outside_tags(_MINUS_RE, MINUS_SIGN, html)


def apply_dashes(html: str) -> str:
    html = normalize_em_dashes(html)
    html = add_word_joiners(html)
    html = fix_spaced_en_dashes(html)
    html = fix_hyphen_dashes(html)
    return apply_number_ranges(html)
