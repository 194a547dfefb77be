"""Scoring Engine.

Calculates the deterministic health score of a lint run.
Strict rules:
- Start at 100
- Penalties: Error (-20), Warning (-10), Info (-2)
- Floor at 0
"""

from dataclasses import dataclass, field

from nginx_confgen.model.finding import Category, LintResult, Severity


@dataclass
class CategoryScore:
    penalties: int = 0
    findings: list[str] = field(default_factory=list)


@dataclass
class HealthScore:
    total: int
    counts: dict[str, int]
    categories: dict[str, CategoryScore]


class ScoringEngine:
    """Calculates scores from lint results."""

    MAX_SCORE = 100

    PENALTIES = {
        Severity.ERROR: 20,
        Severity.WARNING: 10,
        Severity.INFO: 2,
    }

    def calculate(self, results: list[LintResult]) -> HealthScore:
        counts = {severity.value: 0 for severity in Severity}
        categories = {category.value: CategoryScore() for category in Category}

        penalty_total = 0
        for result in results:
            penalty = self.PENALTIES[result.severity]
            counts[result.severity.value] += 1
            cat = categories[result.category.value]
            cat.penalties += penalty
            cat.findings.append(result.rule_id)
            penalty_total += penalty

        return HealthScore(
            total=max(0, self.MAX_SCORE - penalty_total),
            counts=counts,
            categories=categories,
        )
