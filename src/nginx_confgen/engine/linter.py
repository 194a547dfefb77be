"""Lint engine - Runs the rule table against a model and applies fixes.

All three operations are folds over the fixed rule table in RULES. A rule
whose test raises is logged and treated as not firing, so one broken rule
never aborts a run.
"""

import logging
from dataclasses import dataclass, field

from nginx_confgen.engine.merge import deep_merge, same_model, signature
from nginx_confgen.engine.rules import RULES, LintRule, get_rule
from nginx_confgen.engine.scoring import ScoringEngine
from nginx_confgen.model.config import NginxConfig
from nginx_confgen.model.finding import LintReport, LintResult

logger = logging.getLogger(__name__)

DEFAULT_MAX_PASSES = 3


@dataclass
class FixResult:
    """Outcome of applying one or more fixes.

    ``applied`` is True only when the model actually changed.
    """

    model: NginxConfig
    applied: bool
    applied_rule_ids: list[str] = field(default_factory=list)


def _fires(rule: LintRule, model: NginxConfig) -> bool:
    try:
        return bool(rule.test(model))
    except Exception as e:
        logger.warning(f"Lint rule {rule.id} failed: {e}")
        return False


def _apply(rule: LintRule, model: NginxConfig) -> NginxConfig | None:
    """Merge the rule's fix into a copy of the model. None if the fix fails."""
    if rule.fix is None:
        return None
    try:
        return deep_merge(model, rule.fix(model))
    except Exception as e:
        logger.warning(f"Fix for lint rule {rule.id} failed: {e}")
        return None


def lint(model: NginxConfig, rules: list[LintRule] | None = None) -> LintReport:
    """Run every rule and score the result. Always returns a report."""
    results: list[LintResult] = []
    for rule in rules if rules is not None else RULES:
        if _fires(rule, model):
            results.append(
                LintResult(
                    rule_id=rule.id,
                    severity=rule.severity,
                    title=rule.title,
                    message=rule.message,
                    category=rule.category,
                    docs_url=rule.docs_url,
                    fixable=rule.fixable,
                )
            )

    results.sort(key=lambda r: (r.severity.rank, r.title))
    score = ScoringEngine().calculate(results)
    return LintReport(
        valid=score.counts["error"] == 0,
        score=score.total,
        results=results,
        counts=score.counts,
        category_penalties={name: cat.penalties for name, cat in score.categories.items()},
    )


def apply_fix(model: NginxConfig, rule_id: str) -> FixResult:
    """Apply one rule's fix if the rule currently fires.

    Fixing a clean model, or asking for an unknown or unfixable rule, is a
    no-op that returns the model unchanged.
    """
    rule = get_rule(rule_id)
    if rule is None:
        logger.warning(f"Unknown lint rule {rule_id}")
        return FixResult(model=model, applied=False)
    if rule.fix is None or not _fires(rule, model):
        return FixResult(model=model, applied=False)

    fixed = _apply(rule, model)
    if fixed is None or same_model(model, fixed):
        return FixResult(model=model, applied=False)
    return FixResult(model=fixed, applied=True, applied_rule_ids=[rule.id])


def apply_all_fixes(model: NginxConfig, max_passes: int = DEFAULT_MAX_PASSES) -> FixResult:
    """Sweep the rule table repeatedly, fixing everything that fires.

    Later rules in a sweep see the edits of earlier ones. Stops after a
    sweep without changes, when a model state repeats, or after
    ``max_passes`` sweeps.
    """
    current = model
    applied_rule_ids: list[str] = []
    seen = {signature(model)}

    for _ in range(max_passes):
        changed = False
        for rule in RULES:
            if rule.fix is None or not _fires(rule, current):
                continue
            fixed = _apply(rule, current)
            if fixed is not None and not same_model(current, fixed):
                current = fixed
                applied_rule_ids.append(rule.id)
                changed = True

        state = signature(current)
        if state in seen or not changed:
            break
        seen.add(state)

    return FixResult(
        model=current,
        applied=not same_model(model, current),
        applied_rule_ids=applied_rule_ids,
    )
