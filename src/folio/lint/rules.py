"""Quality rules run over processed chapter HTML.

Each rule is stateless; its pattern tables are compiled once at import and
shared by every call.  Matches that start inside markup are ignored.
"""

from __future__ import annotations

from collections.abc import Iterator
import re
import unicodedata

from folio.lint.models import LintIssue, LintRule, LintSeverity
from folio.processing.semantic import is_valid_roman_numeral
from folio.typography.characters import ELLIPSIS, EM_DASH, LETTER, UPPER, WORD_JOINER

REPLACEMENT_CHARACTER = "\ufffd"


class StraightQuotesRule(LintRule):
    code = "T001"
    description = "Straight quotes found (should be curly)"

    _DOUBLE_RE = re.compile(r'"(?![^<]*>)')
    _SINGLE_RE = re.compile(r"'(?![^<]*>)")

    def check(self, html: str, chapter_number: int) -> Iterator[LintIssue]:
        if not html:
            return
        index = self.tag_index(html)
        for pattern, message in (
            (self._DOUBLE_RE, "Straight double quote found"),
            (self._SINGLE_RE, "Straight single quote/apostrophe found"),
        ):
            for match in pattern.finditer(html):
                if index.inside_tag(match.start()):
                    continue
                yield self.issue(html, match.start(), chapter_number, message, LintSeverity.WARNING)


class WrongDashRule(LintRule):
    code = "T002"
    description = "Wrong dash type found"

    _SPACED_HYPHEN_RE = re.compile(r"\w[ \t]+-[ \t]+\w")
    _DOUBLE_HYPHEN_RE = re.compile(r"--")

    def check(self, html: str, chapter_number: int) -> Iterator[LintIssue]:
        if not html:
            return
        index = self.tag_index(html)
        for pattern, message in (
            (self._SPACED_HYPHEN_RE, "Spaced hyphen found (should be em dash)"),
            (self._DOUBLE_HYPHEN_RE, "Double hyphen found (should be em dash)"),
        ):
            for match in pattern.finditer(html):
                # HTML comments legitimately contain "--".
                if index.inside_tag(match.start()):
                    continue
                yield self.issue(html, match.start(), chapter_number, message, LintSeverity.WARNING)


class MultipleSpacesRule(LintRule):
    code = "T003"
    description = "Multiple consecutive spaces found"

    _SPACES_RE = re.compile(r" {2,}")

    def check(self, html: str, chapter_number: int) -> Iterator[LintIssue]:
        if not html:
            return
        index = self.tag_index(html)
        for match in self._SPACES_RE.finditer(html):
            if index.inside_tag(match.start()):
                continue
            yield self.issue(
                html,
                match.start(),
                chapter_number,
                f"Found {len(match.group(0))} consecutive spaces",
                LintSeverity.INFO,
            )


class MissingWordJoinerRule(LintRule):
    code = "T004"
    description = "Missing word joiner before ellipsis or em-dash"

    _ELLIPSIS_RE = re.compile(rf"{LETTER}\s*{ELLIPSIS}")
    _LEADING_DASH_RE = re.compile(rf"(?<=>)\s*{EM_DASH}")

    def check(self, html: str, chapter_number: int) -> Iterator[LintIssue]:
        if not html:
            return
        index = self.tag_index(html)
        for match in self._ELLIPSIS_RE.finditer(html):
            if index.inside_tag(match.start()):
                continue
            yield self.issue(html, match.start(), chapter_number, "Ellipsis without word joiner", LintSeverity.WARNING)
        for match in self._LEADING_DASH_RE.finditer(html):
            if index.inside_tag(match.start()) or WORD_JOINER in match.group(0):
                continue
            yield self.issue(
                html, match.start(), chapter_number, "Em-dash at line start without word joiner", LintSeverity.WARNING
            )


class InconsistentQuotesRule(LintRule):
    """Chapter-wide quote statistics; issues carry no line or context."""

    code = "T005"
    description = "Inconsistent quote style detected"

    MISMATCH_TOLERANCE = 2

    _STRAIGHT_DOUBLE_RE = re.compile(r'"(?![^<]*>)')
    _STRAIGHT_SINGLE_RE = re.compile(r"'(?![^<]*>)")
    _STRAIGHT_APOSTROPHE_RE = re.compile(rf"{LETTER}'{LETTER}")

    def check(self, html: str, chapter_number: int) -> Iterator[LintIssue]:
        if not html:
            return
        left_double = html.count("“")
        right_double = html.count("”")
        curly_double = left_double + right_double
        curly_single = html.count("‘") + html.count("’")
        straight_double = len(self._STRAIGHT_DOUBLE_RE.findall(html))
        straight_single = len(self._STRAIGHT_SINGLE_RE.findall(html))

        if curly_double and straight_double:
            yield self.chapter_issue(
                chapter_number,
                f"Mixed double quote styles: {curly_double} curly, {straight_double} straight",
                LintSeverity.WARNING,
            )
        if curly_single and straight_single and self._STRAIGHT_APOSTROPHE_RE.search(html):
            yield self.chapter_issue(
                chapter_number,
                f"Mixed single quote/apostrophe styles: {curly_single} curly, {straight_single} straight",
                LintSeverity.WARNING,
            )
        if abs(left_double - right_double) > self.MISMATCH_TOLERANCE:
            yield self.chapter_issue(
                chapter_number,
                f"Mismatched curly double quotes: {left_double} opening, {right_double} closing",
                LintSeverity.WARNING,
            )


class DoubleSpaceAfterPeriodRule(LintRule):
    code = "T007"
    description = "Double space after period (typewriter style)"

    _DOUBLE_SPACE_RE = re.compile(rf"[.!?][ \t]{{2,}}(?=[{UPPER}])")

    def check(self, html: str, chapter_number: int) -> Iterator[LintIssue]:
        if not html:
            return
        index = self.tag_index(html)
        for match in self._DOUBLE_SPACE_RE.finditer(html):
            if index.inside_tag(match.start()):
                continue
            yield self.issue(
                html,
                match.start(),
                chapter_number,
                "Double space after sentence-ending punctuation",
                LintSeverity.WARNING,
            )


class EmptyTagRule(LintRule):
    code = "X001"
    description = "Empty HTML tag found"

    ALLOWED_EMPTY = frozenset(
        {
            "br", "hr", "img", "input", "meta", "link", "area", "base", "col", "embed", "param",
            "source", "track", "wbr", "td", "th", "iframe", "video", "audio", "canvas", "svg", "object",
        }
    )  # fmt: skip

    _EMPTY_TAG_RE = re.compile(r"<(\w+)(?:\s+[^>]*)?>\s*</\1>", re.IGNORECASE)

    def check(self, html: str, chapter_number: int) -> Iterator[LintIssue]:
        if not html:
            return
        for match in self._EMPTY_TAG_RE.finditer(html):
            tag = match.group(1).lower()
            if tag in self.ALLOWED_EMPTY:
                continue
            yield self.issue(html, match.start(), chapter_number, f"Empty <{tag}> tag found", LintSeverity.INFO)


class HeadingHierarchyRule(LintRule):
    code = "H002"
    description = "Heading hierarchy skipped (e.g., h1 to h3)"

    _HEADING_RE = re.compile(r"<h([1-6])\b[^>]*>", re.IGNORECASE)

    def check(self, html: str, chapter_number: int) -> Iterator[LintIssue]:
        if not html:
            return
        last_level = 0
        for match in self._HEADING_RE.finditer(html):
            level = int(match.group(1))
            # Only descending skips count; h3 back up to h1 is fine.
            if last_level and level > last_level + 1:
                yield self.issue(
                    html,
                    match.start(),
                    chapter_number,
                    f"Heading hierarchy skipped: h{last_level} to h{level}",
                    LintSeverity.WARNING,
                )
            last_level = level


class EmptyParagraphRule(LintRule):
    code = "H003"
    description = "Empty or whitespace-only paragraph"

    _EMPTY_RE = re.compile(r"<p\b[^>]*>\s*</p>|<p\b[^>]*/\s*>", re.IGNORECASE)
    _WHITESPACE_RE = re.compile(r"<p\b[^>]*>(?:\s|&nbsp;|<br\s*/?>)+</p>", re.IGNORECASE)

    def check(self, html: str, chapter_number: int) -> Iterator[LintIssue]:
        if not html:
            return
        for match in self._EMPTY_RE.finditer(html):
            yield self.issue(html, match.start(), chapter_number, "Empty paragraph element", LintSeverity.WARNING)
        for match in self._WHITESPACE_RE.finditer(html):
            # Bare whitespace is already reported as an empty paragraph.
            if self._EMPTY_RE.fullmatch(match.group(0)):
                continue
            yield self.issue(
                html, match.start(), chapter_number, "Paragraph contains only whitespace", LintSeverity.WARNING
            )


def _as_cp1252(byte: int) -> str:
    try:
        return bytes([byte]).decode("cp1252")
    except UnicodeDecodeError:
        # 0x81, 0x8D, 0x8F, 0x90 and 0x9D pass through as C1 controls.
        return chr(byte)


def _mojibake_of(intended: str) -> str:
    """UTF-8 bytes of *intended* misread as Windows-1252."""

    return "".join(_as_cp1252(byte) for byte in intended.encode("utf-8"))


class MojibakeRule(LintRule):
    code = "M001"
    description = "Possible encoding error (mojibake) detected"

    PATTERNS = tuple(
        (_mojibake_of(intended), meaning)
        for intended, meaning in (
            ("’", "apostrophe/right single quote"),
            ("“", "left double quote"),
            ("”", "right double quote"),
            ("—", "em dash"),
            ("–", "en dash"),
            ("…", "ellipsis"),
            ("é", "e-acute"),
            ("è", "e-grave"),
            ("à", "a-grave"),
            ("â", "a-circumflex"),
            ("î", "i-circumflex"),
            ("ô", "o-circumflex"),
            ("û", "u-circumflex"),
            ("ç", "c-cedilla"),
            ("ñ", "n-tilde"),
            ("ü", "u-umlaut"),
            ("ö", "o-umlaut"),
            ("ä", "a-umlaut"),
            ("£", "pound sign"),
            ("©", "copyright"),
            ("®", "registered"),
            ("°", "degree"),
            ("½", "one half"),
            ("¼", "one quarter"),
            ("¾", "three quarters"),
            ("\ufeff", "BOM (byte order mark)"),
            ("\u00a0", "non-breaking space encoded wrong"),
        )
    )

    def check(self, html: str, chapter_number: int) -> Iterator[LintIssue]:
        if not html:
            return
        index = self.tag_index(html)
        for pattern, meaning in self.PATTERNS:
            position = html.find(pattern)
            while position != -1:
                if not index.inside_tag(position):
                    yield self.issue(
                        html,
                        position,
                        chapter_number,
                        f"Possible mojibake detected (likely {meaning})",
                        LintSeverity.ERROR,
                    )
                position = html.find(pattern, position + len(pattern))

        position = html.find(REPLACEMENT_CHARACTER)
        while position != -1:
            if not index.inside_tag(position):
                yield self.issue(
                    html,
                    position,
                    chapter_number,
                    "Unicode replacement character (U+FFFD) found - indicates encoding error",
                    LintSeverity.ERROR,
                )
            position = html.find(REPLACEMENT_CHARACTER, position + 1)


class UnusualCharacterRule(LintRule):
    """Control characters, stray zero-width marks and exotic spaces.

    Soft hyphens and hair spaces are absent from the table because the
    processing pipeline inserts them on purpose.
    """

    code = "U001"
    description = "Unusual Unicode character detected"

    CHARACTERS: dict[int, tuple[str, str]] = {
        0x0000: ("NULL", "Remove"),
        0x0001: ("SOH", "Remove"),
        0x0002: ("STX", "Remove"),
        0x0003: ("ETX", "Remove"),
        0x0004: ("EOT", "Remove"),
        0x0005: ("ENQ", "Remove"),
        0x0006: ("ACK", "Remove"),
        0x0007: ("BEL", "Remove"),
        0x0008: ("BS", "Remove"),
        0x000B: ("VT", "Remove"),
        0x000C: ("FF", "Remove"),
        0x000E: ("SO", "Remove"),
        0x000F: ("SI", "Remove"),
        0x200B: ("ZERO WIDTH SPACE", "Usually remove"),
        0x200C: ("ZERO WIDTH NON-JOINER", "Usually remove unless needed for language"),
        0x200D: ("ZERO WIDTH JOINER", "Usually remove unless needed for language"),
        0xFEFF: ("BOM/ZERO WIDTH NO-BREAK SPACE", "Remove (usually from file start)"),
        0x2000: ("EN QUAD", "Consider regular space"),
        0x2001: ("EM QUAD", "Consider regular space"),
        0x2002: ("EN SPACE", "Consider regular space"),
        0x2003: ("EM SPACE", "Consider regular space"),
        0x2004: ("THREE-PER-EM SPACE", "Consider regular space"),
        0x2005: ("FOUR-PER-EM SPACE", "Consider regular space"),
        0x2006: ("SIX-PER-EM SPACE", "Consider regular space"),
        0x2007: ("FIGURE SPACE", "Consider regular space"),
        0x2008: ("PUNCTUATION SPACE", "Consider regular space"),
        0x2009: ("THIN SPACE", "Consider regular space or hair space"),
        0x202F: ("NARROW NO-BREAK SPACE", "Consider regular nbsp"),
        0x205F: ("MEDIUM MATHEMATICAL SPACE", "Consider regular space"),
        0xFFFC: ("OBJECT REPLACEMENT CHARACTER", "Remove"),
        0xFFFD: ("REPLACEMENT CHARACTER", "Encoding error - needs fix"),
        0x201A: ("SINGLE LOW-9 QUOTATION MARK", "Consider standard quotes"),
        0x201E: ("DOUBLE LOW-9 QUOTATION MARK", "Consider standard quotes"),
        0x2039: ("SINGLE LEFT-POINTING ANGLE QUOTATION", "Consider standard quotes"),
        0x203A: ("SINGLE RIGHT-POINTING ANGLE QUOTATION", "Consider standard quotes"),
        0x00D7: ("MULTIPLICATION SIGN", "May be intended as 'x'"),
        0x00F7: ("DIVISION SIGN", "Verify intentional"),
    }

    _CHARACTER_RE = re.compile("[" + "".join(re.escape(chr(cp)) for cp in CHARACTERS) + "]")
    _PRIVATE_USE_RE = re.compile("[\ue000-\uf8ff]")

    @staticmethod
    def _is_error(code_point: int) -> bool:
        is_control = unicodedata.category(chr(code_point)) == "Cc" and chr(code_point) not in "\t\n\r"
        return is_control or code_point == 0xFFFD

    def check(self, html: str, chapter_number: int) -> Iterator[LintIssue]:
        if not html:
            return
        index = self.tag_index(html)
        for match in self._CHARACTER_RE.finditer(html):
            if index.inside_tag(match.start()):
                continue
            code_point = ord(match.group(0))
            name, suggestion = self.CHARACTERS[code_point]
            yield self.issue(
                html,
                match.start(),
                chapter_number,
                f"Unusual character U+{code_point:04X} ({name}). {suggestion}",
                LintSeverity.ERROR if self._is_error(code_point) else LintSeverity.WARNING,
            )
        for match in self._PRIVATE_USE_RE.finditer(html):
            if index.inside_tag(match.start()):
                continue
            yield self.issue(
                html,
                match.start(),
                chapter_number,
                f"Private Use Area character U+{ord(match.group(0)):04X}. May need replacement.",
                LintSeverity.WARNING,
            )


class ArchaicSpellingRule(LintRule):
    code = "S001"
    description = "Archaic spelling detected (may need manual review)"

    PATTERNS = tuple(
        (re.compile(pattern), modern, note)
        for pattern, modern, note in (
            (r"\b[Cc]onnexion(s)?\b", "connection", "British archaic; may be intentional in historical context"),
            (r"\b[Rr]eflexion(s)?\b", "reflection", "British archaic; may be intentional in historical context"),
            (r"\b[Ss]hew(n|ed|ing|s)?\b", "show", "Archaic; may be intentional in historical/religious text"),
            (r"\b[Gg]aol(er|s|ed)?\b", "jail", "British archaic; may be intentional in historical context"),
            (r"\b[Dd]espatch(es|ed|ing)?\b", "dispatch", "British archaic; may be intentional"),
            (r"\b[Bb]urthen(s|ed|ing|some)?\b", "burden", "Archaic; may be intentional in poetry"),
            (r"\b[Cc]lew(s|ed)?\b", "clue", "Nautical 'clew' may be intentional"),
            (r"\b[Ww]aggon(s|er|ers)?\b", "wagon", "British archaic"),
            (r"\b[Bb]ehove(s|d)?\b", "behoove", "British spelling"),
            (r"\b[Gg]rey(s|er|est|ish|ly|ness)?\b", "gray", "British spelling; usually acceptable"),
            (r"\b[Ss]torey(s)?\b", "story", "British spelling for building floor; may be correct"),
            (r"\b[Gg]antlet(s)?\b", "gauntlet", "'Gantlet' may be intentional (running the gantlet)"),
            (r"\b[Ee]nquir(e|y|ies|ed|ing|er|ers)\b", "inquire", "British spelling; may be intentional"),
            (r"\b[Ee]ncyclop(a|æ)edia(s)?\b", "encyclopedia", "British spelling"),
            (r"\b[Aa]eon(s)?\b", "eon", "British spelling"),
            (r"\b[Ff](o|œ)etus(es)?\b", "fetus", "British medical spelling"),
            (r"\b[Mm]ould(s|ed|ing|y|er)?\b", "mold", "British spelling"),
            (r"\b[Ss]mould(s|ed|ing|er|ering)?\b", "smolder", "British spelling"),
            (r"\b[Pp]lough(s|ed|ing|man|men)?\b", "plow", "British spelling"),
            (r"\b[Dd]raught(s|y|sman|smen)?\b", "draft", "British spelling; context-dependent"),
        )
    )

    def check(self, html: str, chapter_number: int) -> Iterator[LintIssue]:
        if not html:
            return
        index = self.tag_index(html)
        for pattern, modern, note in self.PATTERNS:
            for match in pattern.finditer(html):
                if index.inside_tag(match.start()):
                    continue
                yield self.issue(
                    html,
                    match.start(),
                    chapter_number,
                    f'Archaic/British spelling "{match.group(0)}" (modern: {modern}). {note}',
                    LintSeverity.INFO,
                )


class UnmarkedRomanNumeralRule(LintRule):
    code = "S002"
    description = "Roman numeral not marked with semantic element"

    # Upper case only: lower-case matches are ordinary words ("mix", "vi").
    _ROMAN_RE = re.compile(r"\b(?=[MDCLXVI])M*(?:C[MD]|D?C{0,3})(?:X[CL]|L?X{0,3})(?:I[XV]|V?I{1,3})\b")

    def check(self, html: str, chapter_number: int) -> Iterator[LintIssue]:
        if not html:
            return
        index = self.tag_index(html)
        for match in self._ROMAN_RE.finditer(html):
            numeral = match.group(0)
            if numeral in ("I", "V") or not is_valid_roman_numeral(numeral):
                continue
            start = match.start()
            if index.inside_tag(start) or index.inside_element(start, "abbr") or index.inside_element(start, "span"):
                continue
            yield self.issue(
                html, start, chapter_number, f"Possible Roman numeral '{numeral}' not marked up", LintSeverity.INFO
            )


class ScannoRule(LintRule):
    code = "C002"
    description = "Possible OCR error (scanno)"

    PATTERNS = tuple(
        (re.compile(pattern, flags), message)
        for pattern, flags, message in (
            (r"\brn\b", 0, "Possible 'm' misread as 'rn'"),
            (r"\bcl\b", 0, "Possible 'd' misread as 'cl'"),
            (r"\bli\b", 0, "Possible 'h' misread as 'li'"),
            (r"\blhe\b", re.IGNORECASE, "Possible 'the' with l/t confusion"),
            (r"\btbe\b", re.IGNORECASE, "Possible 'the' misread as 'tbe'"),
            (r"\bwbo\b", re.IGNORECASE, "Possible 'who' misread as 'wbo'"),
            (r"\bwbich\b", re.IGNORECASE, "Possible 'which' misread as 'wbich'"),
            (r"\bvvas\b", re.IGNORECASE, "Possible 'was' misread as 'vvas'"),
            (r"\bliave\b", re.IGNORECASE, "Possible 'have' misread as 'liave'"),
            (r"\blt\b", 0, "Possible 'it' with i/l confusion"),
            (r"\b(?:could|would|should)n[ \t]+t\b", re.IGNORECASE, "Possible lost apostrophe in contraction"),
            (r"\b0f\b", 0, "Possible 'of' with 0/o confusion"),
            (r"\bt0\b", 0, "Possible 'to' with 0/o confusion"),
            (r"\bn0t\b", 0, "Possible 'not' with 0/o confusion"),
            (r"\b1t\b", 0, "Possible 'it' with 1/i confusion"),
            (r"\b1n\b", 0, "Possible 'in' with 1/i confusion"),
            (r"\b1s\b", 0, "Possible 'is' with 1/i confusion"),
        )
    )

    def check(self, html: str, chapter_number: int) -> Iterator[LintIssue]:
        if not html:
            return
        index = self.tag_index(html)
        for pattern, message in self.PATTERNS:
            for match in pattern.finditer(html):
                if index.inside_tag(match.start()):
                    continue
                yield self.issue(html, match.start(), chapter_number, message, LintSeverity.WARNING)


class DoubleWordRule(LintRule):
    code = "C003"
    description = "Repeated word detected"

    ALLOWED_REPEATS = frozenset(
        {"had", "that", "very", "so", "out", "far", "much", "well", "blah", "ha", "he", "ho", "la", "no", "oh", "on", "um", "uh"}
    )

    _DOUBLE_WORD_RE = re.compile(rf"\b({LETTER}+)\s+\1\b", re.IGNORECASE)

    def check(self, html: str, chapter_number: int) -> Iterator[LintIssue]:
        if not html:
            return
        index = self.tag_index(html)
        for match in self._DOUBLE_WORD_RE.finditer(html):
            if index.inside_tag(match.start()):
                continue
            word = match.group(1)
            if word.lower() in self.ALLOWED_REPEATS:
                continue
            yield self.issue(
                html, match.start(), chapter_number, f'Repeated word: "{word} {word}"', LintSeverity.ERROR
            )
