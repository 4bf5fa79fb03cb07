"""Config command for dot-inject CLI."""

import dataclasses

import click
from rich.table import Table

from .. import ui
from .interface import cli as main
from .common import display_path, error, get_settings, load_config, success, warn
from ..config import DotInjectConfig


@main.group()
def config():
    """Inspect and create the configuration file."""
    pass


@config.command("show")
@click.pass_context
def config_show(ctx):
    """Show effective settings (file, environment and defaults combined)."""
    settings = get_settings(ctx)
    path = load_config(ctx).path

    table = Table(title="Effective Configuration")
    table.add_column("Key", style="cyan")
    table.add_column("Value")

    for item in dataclasses.fields(settings):
        value = getattr(settings, item.name)
        if isinstance(value, list):
            value = ", ".join(str(v) for v in value) or "-"
        elif isinstance(value, dict):
            value = "; ".join(f"{k}: {', '.join(v)}" for k, v in value.items()) or "-"
        table.add_row(item.name, "-" if value is None else str(value))

    ui.console.print(table)
    if path.exists():
        ui.console.print(f"[dim]Config file: {display_path(path)}[/dim]")
    else:
        ui.console.print(f"[dim]No config file at {display_path(path)} (using defaults)[/dim]")


@config.command("init")
@click.option("--force", is_flag=True, help="Overwrite an existing config file")
@click.pass_context
def config_init(ctx, force: bool):
    """Write a config file with default settings."""
    cfg = DotInjectConfig(ctx.find_root().ensure_object(dict).get("CONFIG_PATH"))

    if cfg.path.exists() and not force:
        warn(f"Config already exists: {display_path(cfg.path)} (use --force to overwrite)")
        return

    try:
        cfg.create_default()
    except OSError as e:
        error(f"Failed to write config: {e}")
    success(f"Wrote {display_path(cfg.path)}")
