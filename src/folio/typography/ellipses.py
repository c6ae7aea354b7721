from __future__ import annotations

import re

from folio.markup import sub_outside_tags
from folio.typography.characters import ELLIPSIS, HAIR_SPACE, WORD_JOINER

_DOTS_RE = re.compile(r"[ \t]*\.[ \t]*\.[ \t]*\.[ \t]*")
_ELLIPSIS_PERIOD_RE = re.compile(rf"[ \t]?{ELLIPSIS}[ \t]?\.")
_SPACED_ELLIPSIS_RE = re.compile(rf"[ \t{HAIR_SPACE}]?(?:{WORD_JOINER}{HAIR_SPACE}{WORD_JOINER})?{ELLIPSIS}[ \t]?")
_ELLIPSIS_PUNCTUATION_RE = re.compile(rf"{ELLIPSIS}[ \t]?([!?.,;])")
_JOINED_HAIR_SPACE_RE = re.compile(rf"(?<!{WORD_JOINER}){HAIR_SPACE}{ELLIPSIS}")
_NO_SPACE_BEFORE = "<!?.,;:)]}”’"


def _space_ellipsis(match: re.Match[str]) -> str:
    text = match.string
    end = match.end()
    following = text[end] if end < len(text) else ""
    trailing = " " if following and not following.isspace() and following not in _NO_SPACE_BEFORE else ""
    return f"{WORD_JOINER}{HAIR_SPACE}{WORD_JOINER}{ELLIPSIS}{trailing}"


def apply_ellipses(html: str) -> str:
    """Turn ``...`` into a single ellipsis joined to the preceding word.

    The ellipsis is preceded by a hair space wrapped in word joiners so it
    cannot start a line, and followed by a normal space unless it closes an
    element or the text.
    """

    html = sub_outside_tags(_DOTS_RE, ELLIPSIS, html)
    html = sub_outside_tags(_ELLIPSIS_PERIOD_RE, f".{ELLIPSIS}", html)
    html = sub_outside_tags(_SPACED_ELLIPSIS_RE, _space_ellipsis, html)
    html = sub_outside_tags(_ELLIPSIS_PUNCTUATION_RE, rf"{ELLIPSIS}{HAIR_SPACE}\1", html)
    return sub_outside_tags(_JOINED_HAIR_SPACE_RE, f"{WORD_JOINER}{HAIR_SPACE}{WORD_JOINER}{ELLIPSIS}", html)
