"""Apostrophes in elisions that the quote pass gets wrong.

A leading elision (``'tis``, ``'em``, ``'90s``) looks like an opening single
quote, so after smart quoting it must be flipped back to an apostrophe.
"""

from __future__ import annotations

import re

from folio.markup import sub_outside_tags
from folio.typography.characters import LEFT_DOUBLE, LEFT_SINGLE, RIGHT_DOUBLE, RIGHT_SINGLE

_ELIDED_T = r"[Tt]is|[Tt]was|[Tt]were|[Tt]won[’']t|[Tt]would|[Tt]wouldn[’']t|[Tt]will|[Tt]wixt|[Tt]ween"

_MISSING_APOSTROPHE_RE = re.compile(r"(?<=[\s>])([Tt]is|[Tt]was|[Tt]were|[Tt]won[’']t|[Tt]would|[Tt]wouldn[’']t|[Tt]wixt)\b")
_DOUBLE_AS_APOSTROPHE_RE = re.compile(rf"[{LEFT_DOUBLE}{RIGHT_DOUBLE}]({_ELIDED_T})\b")
_OPENING_AS_APOSTROPHE_RE = re.compile(
    rf"{LEFT_SINGLE}({_ELIDED_T}|[Ee]m|[Gg]ainst|[Nn]eath|[Cc]ause|[Rr]ound|[Pp]on|[Cc]ept|[Oo]w|[Aa]ve|[Oo]me|[Ii]m|[Mm]idst|[Uu]ns?|[Aa]ppen|[Ee]re|[Aa]lf|[Cc]os)\b"
)
_STRAIGHT_ELISION_RE = re.compile(
    r"'([Aa]ve|[Oo]me|[Ii]m|[Mm]idst|[Gg]ainst|[Nn]eath|[Ee]m|[Cc]os|[Tt]is|[Tt]was|[Tt]wixt|[Tt]were|[Tt]would|[Tt]ween|[Tt]will|[Rr]ound|[Pp]on|[Uu]ns?|[Cc]ept|[Oo]w|[Aa]ppen|[Ee]re|[Aa]lf)\b"
)
_LONE_A_RE = re.compile(rf"(\s)[’‘']a[’‘'](\s)")
_YEAR_RE = re.compile(rf"[‘'](?=\d{{2}}(?:s\b|[^\w’']|$))")
_OCLOCK_RE = re.compile(rf"\bo[‘'’]?clock\b", re.IGNORECASE)
_FORECASTLE_RE = re.compile(r"\bfo[‘'’]?c[‘'’]?s[‘'’]?le\b", re.IGNORECASE)
_BOATSWAIN_RE = re.compile(r"\bbo[‘'’]?s[‘'’]?n\b", re.IGNORECASE)
_POSSESSIVE_AFTER_TAG_RE = re.compile(
    "(?:" + "|".join(f"(?<=</{tag}>)" for tag in ("i", "em", "b", "strong", "q", "span", "abbr")) + r")[’‘']([sd])\b"
)


def _preserve_case(word: str, template: str) -> str:
    return word[0].upper() + word[1:] if template[:1].isupper() else word


def apply_contractions(html: str) -> str:
    html = sub_outside_tags(_MISSING_APOSTROPHE_RE, rf"{RIGHT_SINGLE}\1", html)
    html = sub_outside_tags(_DOUBLE_AS_APOSTROPHE_RE, rf"{RIGHT_SINGLE}\1", html)
    html = sub_outside_tags(_OPENING_AS_APOSTROPHE_RE, rf"{RIGHT_SINGLE}\1", html)
    html = sub_outside_tags(_STRAIGHT_ELISION_RE, rf"{RIGHT_SINGLE}\1", html)
    html = sub_outside_tags(_LONE_A_RE, rf"\1{RIGHT_SINGLE}a{RIGHT_SINGLE}\2", html)
    html = sub_outside_tags(_YEAR_RE, RIGHT_SINGLE, html)
    html = sub_outside_tags(_OCLOCK_RE, lambda m: _preserve_case(f"o{RIGHT_SINGLE}clock", m.group(0)), html)
    html = sub_outside_tags(
        _FORECASTLE_RE, lambda m: _preserve_case(f"fo{RIGHT_SINGLE}c{RIGHT_SINGLE}s{RIGHT_SINGLE}le", m.group(0)), html
    )
    html = sub_outside_tags(
        _BOATSWAIN_RE, lambda m: _preserve_case(f"bo{RIGHT_SINGLE}s{RIGHT_SINGLE}n", m.group(0)), html
    )
    # Possessives on emphasized words: <i>Titanic</i>'s
    return sub_outside_tags(_POSSESSIVE_AFTER_TAG_RE, rf"{RIGHT_SINGLE}\1", html)
