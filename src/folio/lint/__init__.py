"""Rule-based quality checks over processed chapter HTML."""

from .linter import Linter, default_rules
from .models import LintIssue, LintRule, LintSeverity

__all__ = [
    "LintIssue",
    "LintRule",
    "LintSeverity",
    "Linter",
    "default_rules",
]
