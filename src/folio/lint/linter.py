"""Runs every registered rule over chapter HTML."""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Sequence

from folio.lint.models import LintIssue, LintRule
from folio.lint.rules import (
    ArchaicSpellingRule,
    DoubleSpaceAfterPeriodRule,
    DoubleWordRule,
    EmptyParagraphRule,
    EmptyTagRule,
    HeadingHierarchyRule,
    InconsistentQuotesRule,
    MissingWordJoinerRule,
    MojibakeRule,
    MultipleSpacesRule,
    ScannoRule,
    StraightQuotesRule,
    UnmarkedRomanNumeralRule,
    UnusualCharacterRule,
    WrongDashRule,
)


def default_rules() -> list[LintRule]:
    return [
        # Typography
        StraightQuotesRule(),
        WrongDashRule(),
        MultipleSpacesRule(),
        MissingWordJoinerRule(),
        InconsistentQuotesRule(),
        DoubleSpaceAfterPeriodRule(),
        # Markup
        EmptyTagRule(),
        HeadingHierarchyRule(),
        EmptyParagraphRule(),
        # Encoding
        MojibakeRule(),
        UnusualCharacterRule(),
        # Spelling and semantics
        ArchaicSpellingRule(),
        UnmarkedRomanNumeralRule(),
        # Content
        ScannoRule(),
        DoubleWordRule(),
    ]


class Linter:
    """Aggregates lint rules; the issue list is advisory and never raises."""

    def __init__(self, rules: Sequence[LintRule] | None = None) -> None:
        self._rules: tuple[LintRule, ...] = tuple(default_rules() if rules is None else rules)

    @property
    def rule_codes(self) -> list[str]:
        return [rule.code for rule in self._rules]

    def lint_chapter(self, html: str, chapter_number: int) -> Iterator[LintIssue]:
        for rule in self._rules:
            yield from rule.check(html, chapter_number)

    def lint_all(self, chapters: Iterable[tuple[int, str]]) -> list[LintIssue]:
        issues: list[LintIssue] = []
        for chapter_number, html in chapters:
            issues.extend(self.lint_chapter(html, chapter_number))
        return issues
