"""Lint issue model and the shared rule base."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from enum import Enum

from folio.markup import TagIndex, context_snippet, line_number


class LintSeverity(str, Enum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True, slots=True)
class LintIssue:
    """One finding; ``line_number`` and ``context`` are absent for chapter-wide issues."""

    code: str
    severity: LintSeverity
    message: str
    chapter_number: int
    line_number: int | None = None
    context: str | None = None


class LintRule:
    """Base class for rules: subclasses set ``code``/``description`` and implement ``check``."""

    code: str = ""
    description: str = ""

    def check(self, html: str, chapter_number: int) -> Iterator[LintIssue]:
        raise NotImplementedError

    def issue(
        self,
        html: str,
        index: int,
        chapter_number: int,
        message: str,
        severity: LintSeverity,
    ) -> LintIssue:
        return LintIssue(
            code=self.code,
            severity=severity,
            message=message,
            chapter_number=chapter_number,
            line_number=line_number(html, index),
            context=context_snippet(html, index),
        )

    def chapter_issue(self, chapter_number: int, message: str, severity: LintSeverity) -> LintIssue:
        return LintIssue(code=self.code, severity=severity, message=message, chapter_number=chapter_number)

    @staticmethod
    def tag_index(html: str) -> TagIndex:
        return TagIndex(html)
