"""Report Action - Present lint, fix and import results.

CONTRACT:
- read_only: True
- prerequisites: None
"""

from rich.console import Console

from nginx_confgen.actions.reporters.base import BaseReporter
from nginx_confgen.actions.reporters.json_reporter import JsonReporter
from nginx_confgen.actions.reporters.plain_reporter import PlainReporter
from nginx_confgen.actions.reporters.rich_reporter import RichReporter
from nginx_confgen.engine.linter import FixResult
from nginx_confgen.model.finding import LintReport

REPORTERS: dict[str, type[BaseReporter]] = {
    "rich": RichReporter,
    "plain": PlainReporter,
    "json": JsonReporter,
}


class ReportAction:
    """Formats results for the terminal.

    Delegates to the reporter registered for ``format_mode``.
    """

    def __init__(
        self,
        console: Console | None = None,
        format_mode: str = "rich",
        show_explain: bool = False,
        ignored_rules: list[str] | None = None,
    ) -> None:
        if format_mode not in REPORTERS:
            raise ValueError(f"Unknown output format: {format_mode}")
        self.console = console or Console()
        self.format_mode = format_mode
        self.ignored_rules = set(ignored_rules or [])
        self.reporter = REPORTERS[format_mode](self.console, show_explain=show_explain)

    def report_lint(self, report: LintReport, source: str = "") -> int:
        """Print a lint report and return the exit code.

        Ignored rules are dropped from the output and from the counts that
        drive the exit code. The score is left as computed.
        """
        if self.ignored_rules:
            shown = [r for r in report.results if r.rule_id not in self.ignored_rules]
            counts = {severity: 0 for severity in report.counts}
            for result in shown:
                counts[result.severity.value] += 1
            report = LintReport(
                valid=counts["error"] == 0,
                score=report.score,
                results=shown,
                counts=counts,
                category_penalties=report.category_penalties,
            )
        return self.reporter.report_lint(report, source)

    def report_fix(self, result: FixResult) -> None:
        self.reporter.report_fix(result)

    def report_warnings(self, warnings: list[str]) -> None:
        self.reporter.report_messages("Warnings", warnings, style="yellow")

    def report_errors(self, errors: list[str]) -> None:
        self.reporter.report_messages("Syntax errors", errors, style="red")
