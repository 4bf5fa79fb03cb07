"""Common utilities for dot-inject CLI commands."""

import logging
from pathlib import Path

import click

from .. import ui
from ..backends import get_adapter
from ..config import DotInjectConfig, Settings
from ..constants import EXIT_INTERRUPTED
from ..exceptions import ConfigurationError, DotInjectError, ErrorDiagnostic
from ..operations import BatchSummary, FileReport, FileStatus, InjectOperations
from ..secrets import TemplateFormat

logger = logging.getLogger(__name__)

FORMAT_CHOICES = [f.value for f in TemplateFormat]


def error(message: str, exit_code: int = 1) -> None:
    """Print error message and exit."""
    ui.error(message, exit_code)


def success(message: str) -> None:
    """Print success message."""
    ui.success(message)


def warn(message: str) -> None:
    """Print warning message."""
    ui.warn(message)


class DotInjectGroup(click.Group):
    """Custom Click Group to provide suggestions for typos."""

    def get_command(self, ctx, cmd_name):
        rv = click.Group.get_command(self, ctx, cmd_name)
        if rv is not None:
            return rv

        matches = [cmd for cmd in self.list_commands(ctx)]
        suggestion = ui.suggest_command(cmd_name, matches)

        ui.error(f"Unknown command '{cmd_name}'", exit_code=0)
        if suggestion:
            ui.warn(f"Did you mean '{suggestion}'?")

        ctx.exit(2)


def handle_exception(exc: BaseException, context: str = "") -> None:
    """Print a diagnostic for an exception and exit with its code."""
    diagnostic = ErrorDiagnostic.from_exception(exc)
    if isinstance(exc, KeyboardInterrupt):
        exit_code = EXIT_INTERRUPTED
    elif isinstance(exc, DotInjectError):
        exit_code = exc.exit_code
    else:
        exit_code = 1
        logger.exception("%s failed", context or "Command")

    prefix = f"{context} failed: " if context else ""
    ui.error_console.print(f"[error]✗ {diagnostic.title}:[/error] {prefix}{diagnostic.details}")
    ui.error_console.print(f"[dim]  → {diagnostic.suggestion}[/dim]")
    raise SystemExit(exit_code)


def load_config(ctx: click.Context) -> DotInjectConfig:
    """Load the config file named by the group's --config option."""
    obj = ctx.find_root().ensure_object(dict)
    config = DotInjectConfig(obj.get("CONFIG_PATH"))
    config.load()
    return config


def get_settings(ctx: click.Context, **overrides) -> Settings:
    """Effective settings: config file, environment, then CLI overrides."""
    try:
        return load_config(ctx).settings().with_overrides(**overrides)
    except ConfigurationError as e:
        error(str(e), e.exit_code)


def make_operations(settings: Settings, **kwargs) -> InjectOperations:
    """Build operations wired to the configured secret store."""
    return InjectOperations(settings, adapter=get_adapter(settings), **kwargs)


def display_path(path) -> str:
    """Shorten a path for display."""
    return str(path).replace(str(Path.home()), "~", 1)


def report_file(report: FileReport, verbose: bool = False) -> None:
    """Print the outcome of one file."""
    source = display_path(report.source)
    target = display_path(report.output) if report.output else "stdout"

    if report.status is FileStatus.FAILED:
        ui.error_console.print(f"[error]✗[/error] {source}: {type(report.error).__name__}: {report.error}")
        if report.diff:
            ui.print_diff(report.diff)
        return

    if report.status is FileStatus.SKIPPED:
        ui.verbose(f"Skipped {source}: {report.message}", verbose)
        if report.message.startswith("No templates"):
            warn(f"No templates found in: {source}")
        return

    for name in report.warnings:
        warn(f"{source}: unresolved secret left in output: {name}")

    if report.status is FileStatus.PREVIEWED:
        ui.info(f"Dry run - {source} -> {target}")
        ui.print_diff(report.diff)
        return

    if report.backup:
        ui.verbose(f"Created backup: {display_path(report.backup)}", verbose)
    resolved = report.render.resolved_count if report.render else 0
    success(f"Processed: {source} -> {target} ({resolved} secrets)")


def print_summary(summary: BatchSummary) -> None:
    """Print batch totals."""
    ui.console.print()
    ui.print_header("Summary")
    ui.console.print(f"[success]✓ Processed:[/success] {summary.processed}")
    if summary.skipped:
        ui.console.print(f"[warning]→ Skipped:[/warning] {summary.skipped}")
    if summary.failed:
        ui.console.print(f"[error]✗ Failed:[/error] {summary.failed}")
    if summary.interrupted:
        warn("Interrupted; remaining files were not processed")
