"""Pre-decimal British currency: pounds, shillings, pence and guineas."""

from __future__ import annotations

import re

from folio.markup import sub_outside_tags
from folio.typography.characters import NBSP

_POUND_RE = re.compile(r"\bL([0-9¼½¾⅐-⅞]+)")
# ``5 s. 6 d.``: keep the amount and its unit on one line.
_PSD_RE = re.compile(r"(?<=\d)[ \t]+(?=(?:[sd]\.|guineas?\b))")


def apply_currency(html: str) -> str:
    html = sub_outside_tags(_POUND_RE, r"£\1", html)
    return sub_outside_tags(_PSD_RE, NBSP, html)
