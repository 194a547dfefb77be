"""
Click-based CLI for nginx-confgen.

IMPORTANT: This module only ORCHESTRATES. It never reasons or makes decisions.
- Loads settings and model files
- Invokes parser, generator and engine
- Passes flags
- Formats output
"""

import logging
import sys
from pathlib import Path
from typing import NoReturn

import click
import yaml
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from nginx_confgen import __version__
from nginx_confgen.actions.report import ReportAction
from nginx_confgen.config import OUTPUT_FORMATS, SettingsManager
from nginx_confgen.engine.knowledge_base import get_explanation
from nginx_confgen.engine.linter import apply_all_fixes, apply_fix, lint
from nginx_confgen.engine.rules import RULES, get_rule
from nginx_confgen.generator.renderer import generate
from nginx_confgen.generator.validator import validate
from nginx_confgen.model.config import (
    ModelFileError,
    NginxConfig,
    create_default_config,
    dump_model,
    load_model,
)
from nginx_confgen.model.finding import Severity
from nginx_confgen.parser.nginx_conf import ImportResult, parse_config

console = Console()
# Diagnostics go to stderr so generated text on stdout can be piped
err_console = Console(stderr=True)

MODEL_SUFFIXES = (".yaml", ".yml")


@click.group()
@click.version_option(version=__version__, prog_name="nginx-confgen")
@click.option("--config", "-c", type=click.Path(), help="Path to settings directory")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.pass_context
def main(ctx: click.Context, config: str | None, verbose: bool) -> None:
    """nginx-confgen: Generate, import and lint nginx server configs.

    A YAML model describes one server. Render it to nginx text, import
    existing nginx text back into a model, and audit a model with a scored
    rule set that can repair what it finds.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    ctx.ensure_object(dict)
    config_dir = Path(config) if config else None
    ctx.obj["settings_mgr"] = SettingsManager(config_dir)
    ctx.obj["settings"] = ctx.obj["settings_mgr"].load()


def _fail(message: str) -> NoReturn:
    err_console.print(f"[bold red]Error:[/] {escape(message)}", highlight=False)
    sys.exit(1)


def _read_model(path: str) -> NginxConfig:
    try:
        return load_model(Path(path))
    except ModelFileError as e:
        _fail(e.message)


def _read_target(path: str) -> tuple[NginxConfig, ImportResult | None]:
    """Load a YAML model, or import nginx text for anything else."""
    if Path(path).suffix.lower() in MODEL_SUFFIXES:
        return _read_model(path), None
    try:
        text = Path(path).read_text()
    except OSError as e:
        _fail(f"Cannot read {path}: {e}")
    result = parse_config(text)
    return result.model, result


def _write_or_echo(text: str, output: str | None, what: str) -> None:
    if output:
        try:
            Path(output).write_text(text)
        except OSError as e:
            _fail(f"Cannot write {output}: {e}")
        err_console.print(f"[bold green]✓ Wrote {what}:[/] {output}")
    else:
        click.echo(text, nl=False)


@main.command()
@click.option("--output", "-o", type=click.Path(), help="Output file path")
def init(output: str | None) -> None:
    """Write a model file with the stock defaults."""
    _write_or_echo(dump_model(create_default_config()), output, "model")


@main.command("generate")
@click.argument("model_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--output", "-o", type=click.Path(), help="Output file path")
def generate_cmd(model_file: str, output: str | None) -> None:
    """Render a YAML model into nginx configuration text."""
    model = _read_model(model_file)
    result = generate(model)
    for warning in result.warnings:
        err_console.print(
            f"[yellow]Warning ({warning.section}):[/] {escape(warning.message)}", highlight=False
        )
    _write_or_echo(result.text, output, "config")


@main.command("import")
@click.argument("conf_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--output", "-o", type=click.Path(), help="Output YAML model path")
@click.option("--strict", is_flag=True, help="Exit with code 1 on syntax errors")
def import_cmd(conf_file: str, output: str | None, strict: bool) -> None:
    """Import nginx configuration text into a YAML model."""
    try:
        text = Path(conf_file).read_text()
    except OSError as e:
        _fail(f"Cannot read {conf_file}: {e}")

    result = parse_config(text)
    reporter = ReportAction(err_console)
    reporter.report_errors(result.errors)
    reporter.report_warnings(result.warnings)
    if strict and result.errors:
        sys.exit(1)
    _write_or_echo(dump_model(result.model), output, "model")


@main.command("lint")
@click.argument("target", type=click.Path(exists=True, dir_okay=False))
@click.option("--format", "fmt", type=click.Choice(OUTPUT_FORMATS), default=None, help="Output format")
@click.option("--explain", is_flag=True, help="Show 'why this matters' for findings")
@click.pass_context
def lint_cmd(ctx: click.Context, target: str, fmt: str | None, explain: bool) -> None:
    """Lint a YAML model or an nginx config file.

    Exits with code 2 on errors, 1 on warnings, 0 otherwise.
    """
    settings = ctx.obj["settings"]
    fmt = fmt or settings.output_format
    show_explain = explain or settings.explain

    model, imported = _read_target(target)
    if imported is not None and fmt != "json":
        reporter = ReportAction(err_console, format_mode=fmt)
        reporter.report_errors(imported.errors)
        reporter.report_warnings(imported.warnings)

    report = lint(model)
    action = ReportAction(
        console,
        format_mode=fmt,
        show_explain=show_explain,
        ignored_rules=settings.ignored_rules,
    )
    sys.exit(action.report_lint(report, source=Path(target).name))


@main.command("fix")
@click.argument("model_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--rule", "rule_id", help="Apply only this rule's fix")
@click.option("--max-passes", type=click.IntRange(min=1), default=None, help="Maximum fix sweeps")
@click.option("--output", "-o", type=click.Path(), help="Output YAML model path")
@click.pass_context
def fix_cmd(
    ctx: click.Context, model_file: str, rule_id: str | None, max_passes: int | None, output: str | None
) -> None:
    """Apply lint fixes to a YAML model."""
    settings = ctx.obj["settings"]
    model = _read_model(model_file)

    if rule_id:
        if get_rule(rule_id) is None:
            _fail(f"Unknown rule: {rule_id}")
        result = apply_fix(model, rule_id)
    else:
        result = apply_all_fixes(model, max_passes or settings.max_fix_passes)

    ReportAction(err_console).report_fix(result)
    _write_or_echo(dump_model(result.model), output, "model")


@main.command("validate")
@click.argument("model_file", type=click.Path(exists=True, dir_okay=False))
def validate_cmd(model_file: str) -> None:
    """Run structural checks on a YAML model.

    Exits with code 1 if any check reports an error.
    """
    model = _read_model(model_file)
    warnings = validate(model)
    if not warnings:
        console.print("[green][bold]PASS:[/] No structural problems.[/]")
        return

    table = Table(title="Validation")
    table.add_column("Severity")
    table.add_column("Field")
    table.add_column("Message")
    for warning in warnings:
        color = "red" if warning.severity is Severity.ERROR else "yellow"
        table.add_row(f"[{color}]{warning.severity.value}[/]", escape(warning.field), escape(warning.message))
    console.print(table)
    if any(w.severity is Severity.ERROR for w in warnings):
        sys.exit(1)


@main.command("rules")
def rules_cmd() -> None:
    """List every lint rule."""
    table = Table(title="Lint Rules")
    table.add_column("ID", no_wrap=True)
    table.add_column("Severity")
    table.add_column("Category")
    table.add_column("Fix")
    table.add_column("Title")
    for rule in RULES:
        table.add_row(
            rule.id,
            rule.severity.value,
            rule.category.value,
            "yes" if rule.fixable else "",
            rule.title,
        )
    console.print(table)


@main.command("explain")
@click.argument("rule_id")
def explain_cmd(rule_id: str) -> None:
    """Explain why a lint rule matters."""
    rule = get_rule(rule_id)
    if rule is None:
        _fail(f"Unknown rule: {rule_id}")

    console.print(f"[bold]{rule.id}[/]: {rule.title}", highlight=False)
    console.print(f"   [dim]Severity:[/] {rule.severity.value}   [dim]Category:[/] {rule.category.value}")
    console.print(f"   {rule.message}", highlight=False)
    expl = get_explanation(rule.id)
    if expl:
        console.print(f"   [cyan]Why:[/cyan] {expl.why}", highlight=False)
        console.print(f"   [cyan]Risk:[/cyan] {expl.risk}", highlight=False)
        console.print(f"   [cyan]Ignore if:[/cyan] {expl.ignore}", highlight=False)


@main.group()
def config() -> None:
    """Manage CLI settings."""
    pass


@config.command("show")
@click.pass_context
def config_show(ctx: click.Context) -> None:
    """Show the current settings."""
    settings = ctx.obj["settings"]
    console.print(f"[dim]Settings file:[/] {ctx.obj['settings_mgr'].settings_file}")
    for key, value in vars(settings).items():
        console.print(f"[bold green]{key}[/]: {value}", highlight=False)


@config.command("set")
@click.argument("key")
@click.argument("value")
@click.pass_context
def config_set(ctx: click.Context, key: str, value: str) -> None:
    """Change one setting. VALUE is parsed as YAML (e.g. true, 5, [a, b])."""
    settings_mgr = ctx.obj["settings_mgr"]
    try:
        settings_mgr.set_value(key, yaml.safe_load(value))
    except KeyError:
        _fail(f"Unknown setting: {key}")
    except (ValueError, TypeError, yaml.YAMLError) as e:
        _fail(str(e))
    console.print(f"[bold green]✓ Updated setting:[/] {key}")


if __name__ == "__main__":
    main()
