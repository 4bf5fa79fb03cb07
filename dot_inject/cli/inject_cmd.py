"""Inject command for dot-inject CLI."""

import sys
from pathlib import Path

import click

from .interface import cli as main
from .common import (
    FORMAT_CHOICES,
    error,
    get_settings,
    handle_exception,
    make_operations,
    print_summary,
    report_file,
)
from .. import ui
from ..constants import STDIN_SENTINEL, VALID_BACKENDS
from ..exceptions import DotInjectError
from ..operations import BatchSummary, FileStatus


def _validate_inputs(paths: tuple[Path, ...], output: Path | None, recursive: bool) -> None:
    use_stdin = any(str(p) == STDIN_SENTINEL for p in paths)
    if use_stdin and len(paths) > 1:
        error("'-' (stdin) cannot be combined with other inputs")
    for path in paths:
        if str(path) != STDIN_SENTINEL and not path.exists():
            error(f"Input not found: {path}")
        if str(path) != STDIN_SENTINEL and path.is_dir() and not recursive:
            error(f"{path} is a directory (use --recursive)")
    if output is not None and (len(paths) > 1 or any(p.is_dir() for p in paths)):
        error("--output requires a single input file")


@main.command()
@click.argument(
    "paths", nargs=-1, required=True,
    type=click.Path(allow_dash=True, path_type=Path),
)
@click.option("--format", "-f", "fmt", type=click.Choice(FORMAT_CHOICES), help="Template format (default: auto)")
@click.option("--vault", help="Vault for non-go tokens")
@click.option("--field", help="Field for non-go tokens")
@click.option("--output", "-o", type=click.Path(dir_okay=False, path_type=Path), help="Output file")
@click.option("--recursive", "-r", is_flag=True, help="Process directories recursively")
@click.option("--dry-run", "-d", is_flag=True, help="Show what would change without writing")
@click.option("--backup/--no-backup", default=False, help="Keep a .backup copy of existing output")
@click.option("--force", is_flag=True, help="Process files without a template suffix or tokens")
@click.option("--verbose", "-v", is_flag=True, help="Verbose output")
@click.option("--best-effort", is_flag=True, help="Leave unresolved tokens in place instead of failing")
@click.option("--cache-ttl", type=float, help="Cache TTL in seconds")
@click.option("--no-cache", is_flag=True, help="Disable the secret cache")
@click.option("--warm-cache", is_flag=True, help="Pre-load common secrets before rendering")
@click.option("--backend", type=click.Choice(VALID_BACKENDS), help="Secret store backend")
@click.pass_context
def inject(
    ctx,
    paths: tuple[Path, ...],
    fmt: str | None,
    vault: str | None,
    field: str | None,
    output: Path | None,
    recursive: bool,
    dry_run: bool,
    backup: bool,
    force: bool,
    verbose: bool,
    best_effort: bool,
    cache_ttl: float | None,
    no_cache: bool,
    warm_cache: bool,
    backend: str | None,
):
    """Render secrets into template files.

    PATHS are template files, directories (with --recursive), or '-' to
    read a template from stdin. Rendered stdin goes to stdout unless
    --output is given.

    \b
    Examples:
      dot-inject inject ~/.aws/credentials.template
      dot-inject inject -r ~/.config --dry-run
      cat app.env.tpl | dot-inject inject - > app.env
    """
    _validate_inputs(paths, output, recursive)
    settings = get_settings(
        ctx,
        format=fmt,
        vault=vault,
        field=field,
        backend=backend,
        strict=False if best_effort else None,
        cache_ttl=cache_ttl,
        cache_enabled=False if no_cache else None,
    )

    exit_code = 0
    try:
        ops = make_operations(settings, dry_run=dry_run, backup=backup, force=force)
        if not ops.ensure_ready():
            ui.warn("Vault not available; secrets are shown as unresolved")

        if warm_cache:
            warmed = ops.warm_cache()
            ui.verbose(f"Warmed {warmed} secrets", verbose)

        if str(paths[0]) == STDIN_SENTINEL:
            exit_code = _inject_stdin(ops, output, verbose)
        else:
            exit_code = _inject_files(ops, paths, output, recursive, verbose)

        ui.verbose(f"Cache: {ops.cache.hits} hits, {ops.cache.misses} misses", verbose)
    except DotInjectError as e:
        error(str(e), e.exit_code)
    except KeyboardInterrupt:
        handle_exception(KeyboardInterrupt())
    except Exception as e:
        handle_exception(e, "Inject")

    ctx.exit(exit_code)


def _inject_stdin(ops, output: Path | None, verbose: bool) -> int:
    content = click.get_text_stream("stdin").read()
    report = ops.process_stdin(content, output)

    if report.status is FileStatus.FAILED or output is not None or ops.dry_run:
        report_file(report, verbose)
        return 0 if report.ok else 1

    for name in report.warnings:
        ui.error_console.print(f"[warning]⚠[/warning] unresolved secret left in output: {name}")
    sys.stdout.write(report.rendered)
    sys.stdout.flush()
    return 0


def _inject_files(ops, paths, output: Path | None, recursive: bool, verbose: bool) -> int:
    if output is not None:
        report = ops.process_file(paths[0], output)
        report_file(report, verbose)
        return 0 if report.ok else 1

    targets: list[Path] = []
    for path in paths:
        if path.is_dir():
            found = ops.collect_directory(path, recursive)
            ui.verbose(f"Found {len(found)} templates in {path}", verbose)
            targets.extend(found)
        else:
            targets.append(path)

    if not targets:
        ui.warn("No template files found")
        return 0

    summary = ops.process_paths(
        targets, BatchSummary(), on_report=lambda r: report_file(r, verbose)
    )
    if len(summary.reports) > 1 or summary.interrupted:
        print_summary(summary)
    return summary.exit_code
