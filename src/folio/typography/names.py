from __future__ import annotations

import re

from folio.markup import sub_outside_tags
from folio.typography.characters import LEFT_SINGLE, NBSP, RIGHT_SINGLE

# Older typesetting used a turned comma for the Mc prefix: M'Gregor.
_MC_RE = re.compile(r"\bM['‘’]([A-Z][a-z]+)")
_O_RE = re.compile(rf"\bO['{LEFT_SINGLE}]([A-Z][a-z]+)")
_OK_RE = re.compile(r"\bO\.[ \t]?K\.(?!\w)")
_AMPERSAND_RE = re.compile(r" (&amp;|&)(?=[ \t])")
_TITLE_RE = re.compile(
    r"\b(Mr|Mrs?|Drs?|Profs?|Lieut|Fr|Lt|Capt|Pvt|Esq|Mt|St|MM|Mmes?|Mlles?|Hon|Mdlle)\.?(</abbr>)?[ \t\n]+(?=\S)"
)
_NUMERO_RE = re.compile(r"\bNo(s?)\.(</abbr>)?[ \t\n]+(?=\d)")
_CARE_OF_RE = re.compile(r"\bc/o\b", re.IGNORECASE)


def apply_names(html: str) -> str:
    html = sub_outside_tags(_MC_RE, r"Mc\1", html)
    html = sub_outside_tags(_O_RE, rf"O{RIGHT_SINGLE}\1", html)
    html = sub_outside_tags(_OK_RE, "OK", html)
    return sub_outside_tags(_AMPERSAND_RE, rf"{NBSP}\1", html)


def bind_titles(html: str) -> str:
    """Join honorifics and ``No.`` to the following word with a no-break space."""

    html = sub_outside_tags(_TITLE_RE, rf"\1.\2{NBSP}", html)
    html = sub_outside_tags(_NUMERO_RE, rf"No\1.\2{NBSP}", html)
    return sub_outside_tags(_CARE_OF_RE, "℅", html)
