"""JSON Reporter Implementation."""

import json
from dataclasses import asdict
from typing import Any

from nginx_confgen.actions.reporters.base import BaseReporter, exit_code_for
from nginx_confgen.engine.knowledge_base import get_explanation
from nginx_confgen.engine.linter import FixResult
from nginx_confgen.model.finding import LintReport


class JsonReporter(BaseReporter):
    """Generates machine-readable JSON output."""

    def _dump(self, data: Any) -> None:
        self.console.print(json.dumps(data, indent=2), markup=False, highlight=False, soft_wrap=True)

    def report_lint(self, report: LintReport, source: str = "") -> int:
        results = []
        for result in report.results:
            item = asdict(result)
            item["severity"] = result.severity.value
            item["category"] = result.category.value
            if self.show_explain:
                expl = get_explanation(result.rule_id)
                item["explanation"] = asdict(expl) if expl else None
            results.append(item)

        self._dump({
            "source": source,
            "valid": report.valid,
            "score": report.score,
            "counts": report.counts,
            "category_penalties": report.category_penalties,
            "results": results,
        })
        return exit_code_for(report)

    def report_fix(self, result: FixResult) -> None:
        self._dump({"applied": result.applied, "applied_rule_ids": result.applied_rule_ids})

    def report_messages(self, title: str, messages: list[str], style: str = "yellow") -> None:
        if messages:
            self._dump({title.lower(): messages})
