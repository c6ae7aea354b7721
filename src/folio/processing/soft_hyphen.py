"""Soft hyphen insertion at syllable breaks in long English words."""

from __future__ import annotations

import re

from folio.markup import sub_outside_tags
from folio.processing.context import ProcessingContext
from folio.typography.characters import SOFT_HYPHEN

MIN_WORD_LENGTH = 8
MIN_FRAGMENT_LENGTH = 3

_VOWELS = frozenset("aeiouy")
_WORD_RE = re.compile(rf"\b[a-zA-Z]{{{MIN_WORD_LENGTH},}}\b")

_KNOWN_BREAKS = """
ab-so-lute-ly ac-cord-ing ac-knowl-edge ad-ven-ture af-ter-noon af-ter-ward a-gree-ment al-to-geth-er
am-bas-sa-dor A-mer-i-can ap-par-ent-ly ap-pear-ance ap-pli-ca-tion at-ten-tion beau-ti-ful be-gin-ning
busi-ness char-ac-ter chil-dren cir-cum-stances com-fort-able com-pan-ion com-plete-ly con-di-tion
con-scious-ness con-sid-er-able con-sid-er-a-tion con-tin-ued con-ver-sa-tion coun-te-nance daugh-ter
de-light-ed de-scrip-tion de-ter-mined dif-fer-ent di-rec-tion dis-ap-point-ment dis-cov-ered dis-tance
dis-tin-guished ev-ery-thing ev-i-dent-ly ex-am-i-na-tion ex-cel-lent ex-cite-ment ex-claimed ex-pe-ri-ence
ex-pres-sion ex-tra-or-di-nary ex-treme-ly fa-mil-iar fash-ion-able fol-low-ing for-got-ten for-tu-nate
for-tu-nate-ly friend-ship gen-er-al-ly gen-tle-man gov-ern-ment hap-pi-ness hap-pen-ing im-me-di-ate-ly
im-por-tance im-por-tant im-pos-si-ble im-pres-sion in-de-pen-dence in-de-pen-dent in-for-ma-tion
in-tel-li-gence in-ter-est-ing in-tro-duc-tion knowl-edge lieu-ten-ant mag-nif-i-cent man-age-ment
man-u-fac-ture mis-er-able mys-te-ri-ous nat-u-ral-ly nec-es-sary neigh-bor-hood nev-er-the-less
ob-ser-va-tion op-por-tu-ni-ty oth-er-wise par-tic-u-lar par-tic-u-lar-ly per-fect-ly per-for-mance
per-mis-sion phy-si-cian plea-sure pos-ses-sion pos-si-ble pres-ence pres-i-dent prin-ci-pal prob-a-bly
pro-fes-sor prop-o-si-tion pro-tec-tion ques-tion rea-son-able rec-og-nized re-mark-able re-mem-bered
rep-re-sen-ta-tion res-o-lu-tion re-spon-si-bil-i-ty res-tau-rant sat-is-fac-tion sec-re-tary sen-sa-tion
sen-ti-ment sit-u-a-tion some-thing some-times some-where state-ment stran-ger strength strug-gle
suc-cess-ful suf-fi-cient sug-ges-tion sur-prise sur-prised sur-round-ed ter-ri-ble them-selves
there-fore through-out to-geth-er to-mor-row un-der-stand-ing un-for-tu-nate un-for-tu-nate-ly
u-ni-ver-si-ty what-ev-er when-ev-er wher-ev-er which-ev-er won-der-ful yes-ter-day
"""

KNOWN_BREAKS: dict[str, str] = {
    pattern.replace("-", "").lower(): pattern
    for pattern in _KNOWN_BREAKS.split()
    if len(pattern.replace("-", "")) >= MIN_WORD_LENGTH
}


def _apply_pattern(word: str, pattern: str) -> str:
    pieces: list[str] = []
    offset = 0
    for part in pattern.split("-"):
        pieces.append(word[offset : offset + len(part)])
        offset += len(part)
    return SOFT_HYPHEN.join(pieces)


def _algorithmic_breaks(word: str) -> str:
    pieces: list[str] = []
    last_break = 0
    for index in range(1, len(word) - MIN_FRAGMENT_LENGTH):
        previous = word[index - 1].lower()
        current = word[index].lower()
        if previous in _VOWELS and current not in _VOWELS:
            if index - last_break >= MIN_FRAGMENT_LENGTH and len(word) - index >= MIN_FRAGMENT_LENGTH:
                pieces.append(word[last_break:index])
                last_break = index
    pieces.append(word[last_break:])
    return SOFT_HYPHEN.join(pieces)


def hyphenate_word(word: str) -> str:
    """Insert soft hyphens into one word, preferring known syllable breaks."""

    if len(word) < MIN_WORD_LENGTH:
        return word
    pattern = KNOWN_BREAKS.get(word.lower())
    if pattern is not None:
        return _apply_pattern(word, pattern)
    return _algorithmic_breaks(word)


def insert_soft_hyphens(html: str) -> str:
    return sub_outside_tags(_WORD_RE, lambda match: hyphenate_word(match.group(0)), html)


class SoftHyphenProcessor:
    name = "soft_hyphen"

    def process(self, html: str, context: ProcessingContext) -> str:
        if not context.options.enable_soft_hyphens or not context.is_english:
            return html
        return insert_soft_hyphens(html)
