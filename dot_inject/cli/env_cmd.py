"""Env command for dot-inject CLI."""

import click

from .interface import cli as main
from .common import error, get_settings, handle_exception, make_operations
from .. import ui
from ..constants import ENV_ACCOUNT_ALIAS
from ..environment import export_lines, load_environment, select_env_secrets
from ..exceptions import DotInjectError


@main.command("env")
@click.option("--vault", help="Vault to read first (fallback vaults are tried after it)")
@click.option(
    "--context", envvar=ENV_ACCOUNT_ALIAS,
    help=f"Account context whose extra secrets are added (default: ${ENV_ACCOUNT_ALIAS})",
)
@click.option("--overwrite", is_flag=True, help="Also export variables that are already set")
@click.pass_context
def env(ctx, vault: str | None, context: str | None, overwrite: bool):
    """Print export statements for commonly used secrets.

    \b
    Load them into the current shell with:
        eval "$(dot-inject env)"
    """
    settings = get_settings(ctx, vault=vault)

    try:
        ops = make_operations(settings)
        ops.ensure_ready()
        secrets = select_env_secrets(settings, context)

        ui.error_console.print(f"[success]Loading secrets from vault '{settings.vault}'...[/success]")
        load = load_environment(
            ops.resolver,
            secrets,
            settings.vault,
            settings.env_fallback_vaults,
            overwrite=overwrite,
        )

        for line in export_lines(load):
            click.echo(line)

        ui.error_console.print(f"[success]✓ Loaded {len(load.exports)} secrets[/success]")
        if load.skipped:
            ui.error_console.print(f"[warning]→ Skipped {len(load.skipped)} (already set)[/warning]")
        if load.missing:
            ui.error_console.print(f"[warning]→ Not found: {', '.join(load.missing)}[/warning]")
    except DotInjectError as e:
        error(str(e), e.exit_code)
    except KeyboardInterrupt:
        handle_exception(KeyboardInterrupt())
    except Exception as e:
        handle_exception(e, "Env")
