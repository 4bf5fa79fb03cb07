"""Inject-all command for dot-inject CLI."""

from pathlib import Path

import click

from .interface import cli as main
from .common import (
    display_path,
    error,
    get_settings,
    handle_exception,
    make_operations,
    print_summary,
    report_file,
)
from .. import ui
from ..exceptions import DotInjectError
from ..files import find_template_files


@main.command("inject-all")
@click.option("--dry-run", "-d", is_flag=True, help="Show what would change without writing")
@click.option("--no-backup", is_flag=True, help="Do not keep .backup copies")
@click.option("--warm-cache", is_flag=True, help="Pre-load common secrets before rendering")
@click.option("--verbose", "-v", is_flag=True, help="Verbose output")
@click.pass_context
def inject_all(ctx, dry_run: bool, no_backup: bool, verbose: bool, warm_cache: bool):
    """Render every template in the standard locations.

    Searches the configured locations under your home directory, plus the
    current directory, for *.template, *.tmpl and *.tpl files.
    """
    settings = get_settings(ctx)
    backup = settings.inject_all_backup and not no_backup

    exit_code = 0
    try:
        home = Path.home()
        templates = find_template_files(home, settings.locations, cwd=Path.cwd())
        if not templates:
            ui.warn("No template files found")
            ui.verbose(f"Searched: {', '.join(settings.locations)} under {home}", verbose)
            return

        ui.print_header("Template Injection")
        ui.info(f"Found {len(templates)} template files")
        for path in templates:
            ui.verbose(f"  {display_path(path)}", verbose)

        ops = make_operations(settings, dry_run=dry_run, backup=backup)
        if not ops.ensure_ready():
            ui.warn("Vault not available; secrets are shown as unresolved")
        if warm_cache:
            ops.warm_cache()

        summary = ops.process_paths(templates, on_report=lambda r: report_file(r, verbose))
        print_summary(summary)
        exit_code = summary.exit_code
    except DotInjectError as e:
        error(str(e), e.exit_code)
    except KeyboardInterrupt:
        handle_exception(KeyboardInterrupt())
    except Exception as e:
        handle_exception(e, "Inject-all")

    ctx.exit(exit_code)
