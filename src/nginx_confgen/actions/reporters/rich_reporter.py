"""Rich Reporter Implementation."""

from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from nginx_confgen.actions.reporters.base import BaseReporter, exit_code_for
from nginx_confgen.engine.knowledge_base import get_explanation
from nginx_confgen.engine.linter import FixResult
from nginx_confgen.model.finding import LintReport, LintResult, Severity

_COLORS = {
    Severity.ERROR: "red",
    Severity.WARNING: "yellow",
    Severity.INFO: "blue",
}
_ICONS = {
    Severity.ERROR: "x",
    Severity.WARNING: "!",
    Severity.INFO: "i",
}


class RichReporter(BaseReporter):
    """Generates high-fidelity terminal output using Rich."""

    def report_lint(self, report: LintReport, source: str = "") -> int:
        self.console.print()
        self._print_score(report, source)
        self.console.print()

        counts = report.counts
        self.console.print("Lint Results", style="bold underline")
        self.console.print(
            f"   Summary: {counts['error']} error, {counts['warning']} warning, {counts['info']} info"
        )
        self.console.print()

        if not report.results:
            self.console.print("   [green][bold]PASS:[/] No issues found.[/]")
        for result in report.results:
            self._print_result(result)

        return exit_code_for(report)

    def _print_score(self, report: LintReport, source: str) -> None:
        """Print the 0-100 score card."""
        total_color = "red"
        if report.score >= 80:
            total_color = "green"
        elif report.score >= 60:
            total_color = "yellow"

        grid = Table.grid(expand=True)
        grid.add_column()
        grid.add_column(justify="right")
        for category, penalty in report.category_penalties.items():
            color = "green" if penalty == 0 else "red"
            grid.add_row(category.replace("-", " ").title(), f"[{color}]-{penalty}[/]")

        title = f"[{total_color}]Health Score: {report.score}/100[/]"
        if source:
            title += f" [dim]({escape(source)})[/]"
        self.console.print(Panel(grid, title=title, border_style=total_color))

    def _print_result(self, result: LintResult) -> None:
        color = _COLORS.get(result.severity, "white")
        icon = _ICONS.get(result.severity, "i")

        label = escape(f"[{result.severity.value}] {icon} [{result.rule_id}] {result.title}")
        title = f"[{color}]{label}[/]"
        if result.fixable:
            title += " [dim](fixable)[/]"
        self.console.print(title, highlight=False)
        self.console.print(f"   {escape(result.message)}", highlight=False)
        if result.docs_url:
            self.console.print(f"   [dim]Docs:[/] {result.docs_url}")

        if self.show_explain:
            expl = get_explanation(result.rule_id)
            if expl:
                self.console.print("   [bold cyan]Explanation:[/]")
                self.console.print(f"      [cyan]Why:[/cyan] {expl.why}")
                self.console.print(f"      [cyan]Risk:[/cyan] {expl.risk}")
                self.console.print(f"      [cyan]Ignore if:[/cyan] {expl.ignore}")

        self.console.print()

    def report_fix(self, result: FixResult) -> None:
        if not result.applied:
            self.console.print("[green]Nothing to fix.[/]")
            return
        table = Table(title="Applied Fixes")
        table.add_column("#", justify="right")
        table.add_column("Rule")
        for i, rule_id in enumerate(result.applied_rule_ids, start=1):
            table.add_row(str(i), rule_id)
        self.console.print(table)

    def report_messages(self, title: str, messages: list[str], style: str = "yellow") -> None:
        if not messages:
            return
        self.console.print(f"[bold {style}]{title}:[/]")
        for message in messages:
            self.console.print(f"   - {message}", markup=False, highlight=False)
