"""Semantic markup: abbreviations, eras, measurements and roman numerals.

Every rule is a ``(pattern, replacement)`` pair applied in table order.  All
rules except the end-of-clause ones ignore matches inside tags and inside
existing ``<abbr>`` elements, which makes the stage idempotent.
"""

from __future__ import annotations

import re

from folio.markup import Replacement, sub_outside_tags
from folio.processing.context import ProcessingContext
from folio.typography.characters import NBSP, UPPER

# Not preceded by a period and starting at a word boundary.
_START = r"(?<!\.)\b"
_QUOTES = "“”‘’"

NAME_TITLES = (
    "Capt", "Col", "Dr", "Drs", "Esq", "Fr", "Hon", "Lieut", "Lt",
    "MM", "Mdlle", "Messers", "Messrs", "Mlle", "Mlles", "Mme", "Mmes",
    "Mon", "Mr", "Mrs", "Ms", "Prof", "Pvt", "Rev",
)

ROMAN_FALSE_POSITIVES = frozenset({"MI", "DI", "MIX", "ID", "LI", "MIC", "VIM", "DIV", "DIM"})

_VALID_ROMAN_RE = re.compile(r"^M{0,4}(?:C[MD]|D?C{0,3})(?:X[CL]|L?X{0,3})(?:I[XV]|V?I{0,3})$")
_ROMAN_RE = re.compile(
    r"(?<![<>/\"'])\b(?=[CDILMVX]{2,})(?!(?:MI|DI|MIX)\b)"
    r"(M{0,4}(?:C[MD]|D?C{0,3})(?:X[CL]|L?X{0,3})(?:I[XV]|V?I{0,3}))\b(?![\w'>-])",
    re.IGNORECASE,
)
_SINGLE_I_RE = re.compile(r"(?<=[^<>/\"'])(?<![^\W\d_])i\b(?![’'‑-])")

_EOC_ETC_RE = re.compile(rf"<abbr>etc\.</abbr>(?=[{_QUOTES}]?(?:</p>|\s+[{_QUOTES}]?[{UPPER}]))")
_EOC_GENERAL_RE = re.compile(rf"<abbr( epub:type=\"[^\"]+\")?>([^<]+\.)</abbr>(?=[{_QUOTES}]?</p>)")


def _dotted(letters: str) -> str:
    return ".".join(letters.replace(".", "")) + "."


def _abbr(epub_type: str | None = None) -> str:
    if epub_type is None:
        return "<abbr>"
    return f'<abbr epub:type="{epub_type}">'


def _dotted_abbr(epub_type: str) -> Replacement:
    def _replace(match: re.Match[str]) -> str:
        return f"{_abbr(epub_type)}{_dotted(match.group(1))}</abbr>"

    return _replace


def is_valid_roman_numeral(candidate: str) -> bool:
    """Accept single-case numerals that parse strictly and are not common words."""

    if not candidate or not (candidate.isupper() or candidate.islower()):
        return False
    upper = candidate.upper()
    if upper in ROMAN_FALSE_POSITIVES:
        return False
    return _VALID_ROMAN_RE.match(upper) is not None


def _wrap_roman(match: re.Match[str]) -> str:
    numeral = match.group(1)
    if is_valid_roman_numeral(numeral):
        return f'<span epub:type="z3998:roman">{numeral}</span>'
    return match.group(0)


def _time_of_day(match: re.Match[str]) -> str:
    return f"{match.group(1)}{NBSP}<abbr>{match.group(2).lower()}.m.</abbr>"


def _rule(pattern: str, replacement: Replacement, flags: int = 0) -> tuple[re.Pattern[str], Replacement]:
    return re.compile(pattern, flags), replacement


_NAME_TITLE_ALTERNATION = "|".join(sorted(NAME_TITLES, key=len, reverse=True))

SEMANTIC_RULES: tuple[tuple[re.Pattern[str], Replacement], ...] = (
    _rule(rf"{_START}({_NAME_TITLE_ALTERNATION})\.", rf'{_abbr("z3998:name-title")}\1.</abbr>'),
    _rule(rf"{_START}(M\.?P\.|H\.?M\.?S\.|S\.?S\.|N\.?B\.|W\.?C\.|I\.?O\.?U\.)", _dotted_abbr("z3998:initialism")),
    _rule(rf"{_START}(R\.?A\.|M\.?A\.|M\.?D\.|K\.?C\.|Q\.?C\.)", _dotted_abbr("z3998:initialism z3998:name-title")),
    _rule(rf"{_START}U\.?S\.?A\.", f'{_abbr("z3998:initialism z3998:place")}U.S.A.</abbr>'),
    _rule(rf"{_START}([NESW]\.[NESW]\.)", _dotted_abbr("se:compass")),
    _rule(rf"{_START}Bros\.", "<abbr>Bros.</abbr>"),
    _rule(rf"{_START}Mt\.", "<abbr>Mt.</abbr>"),
    _rule(rf"{_START}([Vv])ol(s?)\.", r"<abbr>\1ol\2.</abbr>"),
    _rule(rf"{_START}([Cc])hap\.(\s)(?=\d)", r"<abbr>\1hap.</abbr>\2"),
    _rule(rf"{_START}(Co\.|Inc\.|Ltd\.|St\.)", r"<abbr>\1</abbr>"),
    _rule(rf"{_START}([Gg])ov\.", r"<abbr>\1ov.</abbr>"),
    _rule(rf"{_START}MS(S?)\.", r"<abbr>MS\1.</abbr>"),
    _rule(rf"{_START}([Vv])iz\.", r"<abbr>\1iz.</abbr>"),
    _rule(rf"{_START}etc\.", "<abbr>etc.</abbr>"),
    _rule(rf"{_START}([Cc])f\.", r"<abbr>\1f.</abbr>"),
    _rule(rf"{_START}ed\.", "<abbr>ed.</abbr>"),
    _rule(rf"{_START}([Vv])s\.", r"<abbr>\1s.</abbr>"),
    _rule(rf"{_START}([Ff])f\.", r"<abbr>\1f.</abbr>"),
    _rule(rf"{_START}([Ll])ib\.", r"<abbr>\1ib.</abbr>"),
    _rule(rf"{_START}([ap])\.\s?m\.", r"<abbr>\1.m.</abbr>"),
    _rule(rf"{_START}(\d{{1,2}})\s?([AaPp])\.?\s?[Mm](?:\.|\b)", _time_of_day),
    _rule(rf"{_START}p(p?)\.(?=[\s\d])", r"<abbr>p\1.</abbr>"),
    _rule(rf"{_START}([Ii])\.[ \t]?e\.", rf'{_abbr("z3998:initialism")}\1.e.</abbr>'),
    _rule(rf"{_START}([Ee])\.[ \t]?g\.", rf'{_abbr("z3998:initialism")}\1.g.</abbr>'),
    _rule(rf"{_START}(Jan\.|Feb\.|Mar\.|Apr\.|Jun\.|Jul\.|Aug\.|Sep\.|Sept\.|Oct\.|Nov\.|Dec\.)", r"<abbr>\1</abbr>"),
    _rule(rf"{_START}No(s?)\.(?=\s*\d)", r"<abbr>No\1.</abbr>"),
    _rule(r"(?<![.\w])(P\.(?:P\.)?S\.(?:S\.)?)\B", rf'{_abbr("z3998:initialism")}\1</abbr>'),
    _rule(rf"{_START}Ph\.?[ \t]?D\.?(?!\w)", f'{_abbr("z3998:name-title")}Ph. D.</abbr>'),
    _rule(
        rf"{_START}A\.?D\.(?=[{_QUOTES}]?</p>|\s+[{_QUOTES}]?[{UPPER}])",
        f'{_abbr("se:era")}AD</abbr>.',
    ),
    _rule(
        rf"{_START}B\.?C\.(?=[{_QUOTES}]?</p>|\s+[{_QUOTES}]?[{UPPER}])",
        f'{_abbr("se:era")}BC</abbr>.',
    ),
    _rule(rf"{_START}(?:AD\b|A\.D\.\B)", f'{_abbr("se:era")}AD</abbr>'),
    _rule(rf"{_START}(?:BC\b|B\.C\.\B)", f'{_abbr("se:era")}BC</abbr>'),
    _rule(r"(\d+)\s*([cmk][mgl])\b", rf"\1{NBSP}<abbr>\2</abbr>"),
    _rule(r"(?<![$£\d,])(\d+)\s*(ft|yds|yd|mi|pt|qt|gal|oz|lbs|lb)\.?(?=\W)", rf"\1{NBSP}<abbr>\2.</abbr>"),
    _rule(r"(?<![$£\d,])(\d+)\s*in\.(?=[\s,:;!?<]|$)", rf"\1{NBSP}<abbr>in.</abbr>"),
    _rule(r"(\d+)\s*m\.?p\.?h\.?(?!\w)", rf"\1{NBSP}<abbr>mph</abbr>", re.IGNORECASE),
    _rule(r"(\d+)\s*h\.?p\.?(?!\w)", rf"\1{NBSP}<abbr>hp</abbr>", re.IGNORECASE),
)

# Latin, scholarly, military, academic, religious, legal and commercial
# abbreviations that the core table leaves alone.
EXTENDED_ABBREVIATIONS: tuple[tuple[re.Pattern[str], Replacement], ...] = (
    _rule(rf"{_START}([JS])r\.", rf'{_abbr("z3998:name-title")}\1r.</abbr>'),
    _rule(rf"{_START}([NS][NS][EW]|[EW][NS][EW])\.?(?!\w)", _dotted_abbr("se:compass")),
    _rule(rf"{_START}et\s+al\.", f'{_abbr("z3998:initialism")}et al.</abbr>'),
    _rule(rf"{_START}[Ii]bid\.", "<abbr>ibid.</abbr>"),
    _rule(rf"{_START}op\.\s*cit\.", "<abbr>op. cit.</abbr>"),
    _rule(rf"{_START}loc\.\s*cit\.", "<abbr>loc. cit.</abbr>"),
    _rule(rf"{_START}([Cc]a?)\.(?=\s*\d)", r"<abbr>\1.</abbr>"),
    _rule(rf"{_START}fl\.(?=\s*\d)", "<abbr>fl.</abbr>"),
    _rule(rf"{_START}sc\.", "<abbr>sc.</abbr>"),
    _rule(r"\[sic\]", "[<abbr>sic</abbr>]"),
    _rule(rf"{_START}q\.v\.", "<abbr>q.v.</abbr>"),
    _rule(rf"{_START}N\.B\.", f'{_abbr("z3998:initialism")}N.B.</abbr>'),
    _rule(rf"{_START}Messrs\.", f'{_abbr("z3998:name-title")}Messrs.</abbr>'),
    _rule(rf"{_START}([Aa])ss(n|oc)\.", r"<abbr>\1ss\2.</abbr>"),
    _rule(rf"{_START}Dept\.", "<abbr>Dept.</abbr>"),
    _rule(rf"{_START}Univ\.", "<abbr>Univ.</abbr>"),
    _rule(rf"{_START}approx\.", "<abbr>approx.</abbr>"),
    _rule(rf"{_START}misc\.", "<abbr>misc.</abbr>"),
    _rule(rf"{_START}(Sgt|Cpl|Maj|Gen|Adm|Cmdr|Col|Brig|Cdre)\.", rf'{_abbr("z3998:name-title")}\1.</abbr>'),
    _rule(rf"{_START}(B\.A\.|B\.S\.|M\.A\.|M\.S\.|D\.D\.|LL\.D\.|M\.D\.)", rf'{_abbr("z3998:initialism")}\1</abbr>'),
    _rule(rf"{_START}Rt\.\s*Rev\.", f'{_abbr("z3998:name-title")}Rt. Rev.</abbr>'),
    _rule(rf"{_START}Very\s+Rev\.", f'{_abbr("z3998:name-title")}Very Rev.</abbr>'),
    _rule(rf"{_START}(Atty\.|J\.P\.)", rf'{_abbr("z3998:name-title")}\1</abbr>'),
    _rule(rf"{_START}B\.?C\.?E\.?(?=[\s,;:.)])", f'{_abbr("z3998:initialism")}BCE</abbr>'),
    _rule(rf"{_START}(?<!B)C\.?E\.?(?=[\s,;:.)])", f'{_abbr("z3998:initialism")}CE</abbr>'),
    _rule(rf"{_START}A\.?H\.?(?=[\s,;:.\d])", f'{_abbr("z3998:initialism")}AH</abbr>'),
    _rule(r"(?<=\d)(\s*)(ft|in|yd|mi|oz|lbs|lb|gal|qt|pt)\.", r"\1<abbr>\2.</abbr>"),
    _rule(rf"{_START}(vs|Inc|Ltd|Corp|Co|Bros|Pl|Ave|Blvd|Rd)\.", r"<abbr>\1.</abbr>"),
)


def semanticate(html: str) -> str:
    """Apply the semantic markup tables to chapter HTML."""

    if not html:
        return html

    for pattern, replacement in SEMANTIC_RULES:
        html = sub_outside_tags(pattern, replacement, html, skip_elements=("abbr",))

    html = sub_outside_tags(_ROMAN_RE, _wrap_roman, html, skip_elements=("abbr",))
    html = sub_outside_tags(
        _SINGLE_I_RE, '<span epub:type="z3998:roman">i</span>', html, skip_elements=("abbr",)
    )

    # End-of-clause markers look across the closing tag, so they run on raw HTML.
    html = _EOC_ETC_RE.sub('<abbr class="eoc">etc.</abbr>', html)
    html = _EOC_GENERAL_RE.sub(r'<abbr class="eoc"\1>\2</abbr>', html)

    for pattern, replacement in EXTENDED_ABBREVIATIONS:
        html = sub_outside_tags(pattern, replacement, html, skip_elements=("abbr",))
    return html


class SemanticProcessor:
    """Pipeline stage wrapping :func:`semanticate`."""

    name = "semantic"

    def process(self, html: str, context: ProcessingContext) -> str:
        if not context.options.enable_semantic:
            return html
        return semanticate(html)
