"""Diff command for dot-inject CLI."""

from pathlib import Path

import click

from .interface import cli as main
from .common import FORMAT_CHOICES, error, get_settings, handle_exception, make_operations, report_file
from .. import ui
from ..exceptions import DotInjectError


@main.command()
@click.argument("files", nargs=-1, required=True, type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--format", "-f", "fmt", type=click.Choice(FORMAT_CHOICES), help="Template format (default: auto)")
@click.option("--best-effort", is_flag=True, help="Do not report unresolved secrets as failures")
@click.pass_context
def diff(ctx, files: tuple[Path, ...], fmt: str | None, best_effort: bool):
    """Show what injecting FILES would change. Never writes."""
    settings = get_settings(ctx, format=fmt, strict=False if best_effort else None)

    failed = 0
    try:
        ops = make_operations(settings, dry_run=True, force=True)
        if not ops.ensure_ready():
            ui.warn("Vault not available; secrets are shown as unresolved")
        for path in files:
            report = ops.process_file(path)
            report_file(report)
            if not report.ok:
                failed += 1
    except DotInjectError as e:
        error(str(e), e.exit_code)
    except KeyboardInterrupt:
        handle_exception(KeyboardInterrupt())
    except Exception as e:
        handle_exception(e, "Diff")

    ctx.exit(1 if failed else 0)
