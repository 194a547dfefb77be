"""Plain Text Reporter Implementation."""

from nginx_confgen.actions.reporters.base import BaseReporter, exit_code_for
from nginx_confgen.engine.knowledge_base import get_explanation
from nginx_confgen.engine.linter import FixResult
from nginx_confgen.model.finding import LintReport, LintResult


class PlainReporter(BaseReporter):
    """Generates clean, text-only output."""

    def _line(self, text: str = "") -> None:
        self.console.print(text, markup=False, highlight=False)

    def report_lint(self, report: LintReport, source: str = "") -> int:
        self._line()
        header = f"Health Score: {report.score}/100"
        if source:
            header += f" ({source})"
        self._line(header)
        for category, penalty in report.category_penalties.items():
            self._line(f"{category}: -{penalty}")
        self._line()

        counts = report.counts
        self._line("LINT RESULTS")
        self._line(f"Summary: {counts['error']} error, {counts['warning']} warning, {counts['info']} info")
        self._line()

        for result in report.results:
            self._print_result(result)

        return exit_code_for(report)

    def _print_result(self, result: LintResult) -> None:
        self._line(f"{result.severity_icon}: {result.rule_id}: {result.title}")
        self._line(f"   {result.message}")
        if result.fixable:
            self._line("   Fixable: yes")

        if self.show_explain:
            expl = get_explanation(result.rule_id)
            if expl:
                self._line(f"   Why: {expl.why}")
                self._line(f"   Risk: {expl.risk}")
                self._line(f"   Ignore if: {expl.ignore}")
        self._line()

    def report_fix(self, result: FixResult) -> None:
        if not result.applied:
            self._line("Nothing to fix.")
            return
        self._line("Applied fixes:")
        for rule_id in result.applied_rule_ids:
            self._line(f"   - {rule_id}")

    def report_messages(self, title: str, messages: list[str], style: str = "yellow") -> None:
        if not messages:
            return
        self._line(f"{title}:")
        for message in messages:
            self._line(f"   - {message}")
