"""Lint result dataclasses - What the lint engine reports."""

from dataclasses import dataclass, field
from enum import Enum


class Severity(Enum):
    """Severity levels for lint findings."""

    ERROR = "error"  # Will break or expose the site
    WARNING = "warning"  # Should be fixed
    INFO = "info"  # Advisory, nice to fix

    @property
    def rank(self) -> int:
        """Sort rank, most severe first."""
        return _SEVERITY_RANK[self]


_SEVERITY_RANK = {
    Severity.ERROR: 0,
    Severity.WARNING: 1,
    Severity.INFO: 2,
}


class Category(Enum):
    """Rule categories."""

    SECURITY = "security"
    PERFORMANCE = "performance"
    CORRECTNESS = "correctness"
    BEST_PRACTICE = "best-practice"


@dataclass
class LintResult:
    """A rule that fired against a model.

    Attributes:
        rule_id: Stable slug of the rule, e.g. security-server-tokens.
        severity: How critical this finding is.
        title: Short description of the problem.
        message: What is wrong and what to do about it.
        category: Which area the rule belongs to.
        docs_url: Optional link to the rule documentation.
        fixable: Whether the rule can repair the model itself.
    """

    rule_id: str
    severity: Severity
    title: str
    message: str
    category: Category
    docs_url: str | None = None
    fixable: bool = False

    @property
    def severity_icon(self) -> str:
        """Get label for severity level."""
        icons = {
            Severity.ERROR: "[ERROR]",
            Severity.WARNING: "[WARNING]",
            Severity.INFO: "[INFO]",
        }
        return icons.get(self.severity, "[FINDING]")


@dataclass
class LintReport:
    """Outcome of linting one model. Always produced, even with errors."""

    valid: bool
    score: int
    results: list[LintResult] = field(default_factory=list)
    counts: dict[str, int] = field(default_factory=lambda: {"error": 0, "warning": 0, "info": 0})
    category_penalties: dict[str, int] = field(default_factory=dict)
