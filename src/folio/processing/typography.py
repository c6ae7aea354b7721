"""Typography stage: composes the primitives in :mod:`folio.typography`."""

from __future__ import annotations

import re

from folio.markup import sub_outside_tags
from folio.processing.context import ProcessingContext
from folio.typography import (
    apply_contractions,
    apply_currency,
    apply_dashes,
    apply_ellipses,
    apply_fractions,
    apply_minus_signs,
    apply_names,
    apply_smart_quotes,
    bind_titles,
    replace_backticks,
    space_adjacent_quotes,
)
from folio.typography.characters import NBSP, WORD_JOINER

_IE_SPACING_RE = re.compile(r"\b([Ii])\.[ \t]+e\.")
_EG_SPACING_RE = re.compile(r"\b([Ee])\.[ \t]+g\.")
_ERA_SPACING_RE = re.compile(r"\b([AB])\.[ \t]+([DC])\.")
_NUMBER_UNIT_RE = re.compile(r"(\d)[ \t]+(oz\.|lbs?\.)", re.IGNORECASE)
_TIME_RE = re.compile(r"(\d)[ \t]+([ap])\.[ \t]?m\.", re.IGNORECASE)
_WORD_JOINER_RE = re.compile(WORD_JOINER)
_ALT_ATTRIBUTE_RE = re.compile(rf'alt="[^"]*?[{NBSP}{WORD_JOINER}][^"]*?"')
_TITLE_ELEMENT_RE = re.compile(rf"<title>[^<]*?[{NBSP}{WORD_JOINER}][^<]*?</title>")


def _strip_joiners(match: re.Match[str]) -> str:
    return match.group(0).replace(NBSP, " ").replace(WORD_JOINER, "")


def typogrify(html: str) -> str:
    """Apply the typography rewrites in their fixed order."""

    if not html:
        return html

    # Stray joiners are re-inserted where they belong below.
    html = sub_outside_tags(_WORD_JOINER_RE, "", html)
    html = replace_backticks(html)
    html = apply_smart_quotes(html)
    html = apply_dashes(html)
    html = bind_titles(html)
    html = apply_contractions(html)

    html = sub_outside_tags(_IE_SPACING_RE, r"\1.e.", html)
    html = sub_outside_tags(_EG_SPACING_RE, r"\1.g.", html)
    html = sub_outside_tags(_ERA_SPACING_RE, r"\1.\2.", html)

    html = space_adjacent_quotes(html)
    html = apply_ellipses(html)

    html = sub_outside_tags(_NUMBER_UNIT_RE, rf"\1{NBSP}\2", html)
    html = sub_outside_tags(_TIME_RE, lambda m: f"{m.group(1)}{NBSP}{m.group(2).lower()}.m.", html)

    html = apply_fractions(html)
    html = apply_minus_signs(html)
    html = apply_currency(html)
    html = apply_names(html)

    # Joiners and no-break spaces are meaningless in alt text and titles.
    html = _ALT_ATTRIBUTE_RE.sub(_strip_joiners, html)
    return _TITLE_ELEMENT_RE.sub(_strip_joiners, html)


class TypographyProcessor:
    name = "typography"

    def process(self, html: str, context: ProcessingContext) -> str:
        if not context.options.enable_typography:
            return html
        return typogrify(html)
