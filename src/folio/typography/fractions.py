"""Vulgar fractions: precomposed glyphs when Unicode has one, else synthesized."""

from __future__ import annotations

import re

from folio.markup import sub_outside_tags

FRACTION_SLASH = "⁄"

PRECOMPOSED: dict[tuple[int, int], str] = {
    (1, 4): "¼",
    (1, 2): "½",
    (3, 4): "¾",
    (1, 7): "⅐",
    (1, 9): "⅑",
    (1, 10): "⅒",
    (1, 3): "⅓",
    (2, 3): "⅔",
    (1, 5): "⅕",
    (2, 5): "⅖",
    (3, 5): "⅗",
    (4, 5): "⅘",
    (1, 6): "⅙",
    (5, 6): "⅚",
    (1, 8): "⅛",
    (3, 8): "⅜",
    (5, 8): "⅝",
    (7, 8): "⅞",
    (0, 3): "↉",
}

_SUPERSCRIPTS = str.maketrans("0123456789", "⁰¹²³⁴⁵⁶⁷⁸⁹")
_SUBSCRIPTS = str.maketrans("0123456789", "₀₁₂₃₄₅₆₇₈₉")

_FRACTION_RE = re.compile(r"(?<![\w/.,])(\d{1,6})/(\d{1,6})(?![\w/]|[.,]\d)")
_MIXED_NUMBER_RE = re.compile(r"(\d)[ \t]+([¼½¾⅐-⅞↉]|[⁰¹²³⁴-⁹]+⁄)")


def number_to_fraction(numerator: str, denominator: str) -> str:
    """Render ``numerator/denominator`` as a single fraction.

    >>> number_to_fraction("1", "2")
    '½'
    >>> number_to_fraction("7", "16")
    '⁷⁄₁₆'
    """

    key = (int(numerator), int(denominator))
    glyph = PRECOMPOSED.get(key)
    if glyph is not None:
        return glyph
    return f"{numerator.translate(_SUPERSCRIPTS)}{FRACTION_SLASH}{denominator.translate(_SUBSCRIPTS)}"


def apply_fractions(html: str) -> str:
    html = sub_outside_tags(_FRACTION_RE, lambda m: number_to_fraction(m.group(1), m.group(2)), html)
    return sub_outside_tags(_MIXED_NUMBER_RE, r"\1\2", html)
