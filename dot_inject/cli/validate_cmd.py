"""Validate command for dot-inject CLI."""

from pathlib import Path

import click
from rich.table import Table

from .interface import cli as main
from .common import (
    FORMAT_CHOICES,
    display_path,
    error,
    get_settings,
    handle_exception,
    make_operations,
    warn,
)
from .. import ui
from ..exceptions import AmbiguousFormatError, DotInjectError, TemplateReadError
from ..files import iter_directory_files, is_template_file, read_template
from ..secrets import FORMAT_EXAMPLES, TemplateFormat, detect_format, extract_tokens


def _expand(paths: tuple[Path, ...]) -> list[Path]:
    files: list[Path] = []
    for path in paths:
        if path.is_dir():
            files.extend(p for p in iter_directory_files(path) if is_template_file(p))
        else:
            files.append(path)
    return files


@main.command()
@click.argument("paths", nargs=-1, required=True, type=click.Path(exists=True, path_type=Path))
@click.option("--format", "-f", "fmt", type=click.Choice(FORMAT_CHOICES), help="Template format (default: auto)")
@click.option("--check/--no-check", default=False, help="Verify that every secret exists in the vault")
@click.pass_context
def validate(ctx, paths: tuple[Path, ...], fmt: str | None, check: bool):
    """Show the format and secrets each template needs.

    Directories are searched recursively for template files. With --check,
    each secret is looked up (values are never printed).
    """
    settings = get_settings(ctx, format=fmt)

    failed = 0
    empty = 0
    try:
        resolver = None
        if check:
            ops = make_operations(settings)
            ops.ensure_ready()
            resolver = ops.resolver

        files = _expand(paths)
        if not files:
            warn("No template files found")

        for path in files:
            label = display_path(path)
            try:
                content = read_template(path)
                chosen = settings.template_format
                concrete = detect_format(content) if chosen is TemplateFormat.AUTO else chosen
            except (TemplateReadError, AmbiguousFormatError) as e:
                ui.error_console.print(f"[error]✗[/error] {label}: {type(e).__name__}: {e}")
                failed += 1
                continue

            tokens = extract_tokens(content, concrete, settings.vault, settings.field) if concrete else []
            if not tokens:
                warn(f"No templates found in: {label}")
                empty += 1
                continue

            table = Table(title=f"{label} [dim]({concrete})[/dim]", title_justify="left")
            table.add_column("Token", style="key")
            table.add_column("Reference", style="value")
            if check:
                table.add_column("Status")

            missing = 0
            for token in tokens:
                row = [token.raw, token.key.reference]
                if resolver is not None:
                    if resolver.exists(token.key):
                        row.append("[success]✓ found[/success]")
                    else:
                        missing += 1
                        row.append(f"[error]✗ {resolver.failure_kind(token.key)}[/error]")
                table.add_row(*row)

            ui.console.print(table)
            if missing:
                failed += 1

        if empty:
            syntaxes = ", ".join(FORMAT_EXAMPLES[f] for f in TemplateFormat.concrete())
            ui.console.print(f"[dim]Supported syntaxes: {syntaxes}[/dim]")
    except DotInjectError as e:
        error(str(e), e.exit_code)
    except KeyboardInterrupt:
        handle_exception(KeyboardInterrupt())
    except Exception as e:
        handle_exception(e, "Validate")

    ctx.exit(1 if failed else 0)
