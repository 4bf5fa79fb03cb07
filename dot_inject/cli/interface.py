"""CLI Interface definition.

This module defines the main Click group to avoid circular imports
when subcommands need to decorate themselves with @main.command().
"""

import click
import logging
from pathlib import Path

from .. import __version__
from .common import DotInjectGroup
from .. import ui
from ..constants import DOT_INJECT_DIR, ENV_DEBUG, LOG_FILE


@click.group(cls=DotInjectGroup)
@click.version_option(version=__version__, prog_name="dot-inject")
@click.option('--debug', is_flag=True, envvar=ENV_DEBUG, help='Enable debug logging')
@click.option(
    '--config', 'config_path',
    type=click.Path(dir_okay=False, path_type=Path),
    envvar='DOT_INJECT_CONFIG',
    help='Path to config.toml',
)
@click.pass_context
def cli(ctx, debug: bool, config_path: Path | None):
    """dot-inject: render secrets into configuration templates."""
    log_file = LOG_FILE
    if not DOT_INJECT_DIR.exists():
        try:
            DOT_INJECT_DIR.mkdir(parents=True, exist_ok=True)
        except OSError:
            log_file = None

    level = logging.DEBUG if debug else logging.INFO

    # Configure logging
    if log_file is not None:
        logging.basicConfig(
            filename=str(log_file),
            level=level,
            format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            filemode='a'
        )
    if debug:
        logging.getLogger().setLevel(logging.DEBUG)
        ui.error_console.print("[dim]Debug logging enabled[/dim]")

    ctx.ensure_object(dict)
    ctx.obj['DEBUG'] = debug
    ctx.obj['CONFIG_PATH'] = config_path
