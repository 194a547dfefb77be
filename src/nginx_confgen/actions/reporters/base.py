"""Base Reporter Interface."""

from abc import ABC, abstractmethod

from rich.console import Console

from nginx_confgen.engine.linter import FixResult
from nginx_confgen.model.finding import LintReport


def exit_code_for(report: LintReport) -> int:
    """2 when errors fired, 1 when only warnings fired, else 0."""
    if report.counts.get("error", 0):
        return 2
    if report.counts.get("warning", 0):
        return 1
    return 0


class BaseReporter(ABC):
    """Abstract base class for all lint reporters."""

    def __init__(self, console: Console, show_explain: bool = False) -> None:
        self.console = console
        self.show_explain = show_explain

    @abstractmethod
    def report_lint(self, report: LintReport, source: str = "") -> int:
        """Report lint results. Returns the process exit code."""
        pass

    @abstractmethod
    def report_fix(self, result: FixResult) -> None:
        """Report which fixes were applied."""
        pass

    @abstractmethod
    def report_messages(self, title: str, messages: list[str], style: str = "yellow") -> None:
        """Report a list of warnings or errors."""
        pass
