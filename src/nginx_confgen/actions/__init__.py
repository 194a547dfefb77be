"""Actions package - Presentation of results.

Actions never change a model; they only format what the engine produced.
"""

from nginx_confgen.actions.report import REPORTERS, ReportAction

__all__ = ["REPORTERS", "ReportAction"]
