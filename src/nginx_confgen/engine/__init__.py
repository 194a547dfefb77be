"""Engine package - Lint rules, fixes and scoring."""

from nginx_confgen.engine.linter import FixResult, apply_all_fixes, apply_fix, lint
from nginx_confgen.engine.rules import RULES, LintRule, get_rule
from nginx_confgen.engine.scoring import ScoringEngine

__all__ = [
    "FixResult",
    "LintRule",
    "RULES",
    "ScoringEngine",
    "apply_all_fixes",
    "apply_fix",
    "get_rule",
    "lint",
]
