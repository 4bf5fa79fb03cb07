"""Vault commands for dot-inject CLI."""

import click
from rich.table import Table

from .interface import cli as main
from .common import error, get_settings, handle_exception, success, warn
from .. import ui
from ..backends import get_adapter
from ..constants import VALID_BACKENDS
from ..exceptions import DotInjectError, SecretNotFoundError
from ..secrets import SecretKey


def _target(ctx, name: str, vault: str | None, field: str | None, backend: str | None):
    settings = get_settings(ctx, vault=vault, field=field, backend=backend)
    key = SecretKey(name=name, field=settings.field, vault=settings.vault)
    return settings, key


@main.group()
def vault():
    """Manage secrets in the configured secret store."""
    pass


@vault.command("set")
@click.argument("name")
@click.argument("value", required=False)
@click.option("--vault", "vault_name", help="Vault name")
@click.option("--field", help="Field name")
@click.option("--backend", type=click.Choice(VALID_BACKENDS), help="Secret store backend")
@click.pass_context
def vault_set(ctx, name: str, value: str | None, vault_name: str | None, field: str | None, backend: str | None):
    """Store a secret. Prompts for VALUE when it is omitted."""
    settings, key = _target(ctx, name, vault_name, field, backend)
    try:
        if value is None:
            value = ui.ask_secret(f"Value for {key.reference}")
        if not value:
            error("Secret value must not be empty")

        get_adapter(settings).store(key, value)
        success(f"Stored {key.reference}")
    except DotInjectError as e:
        error(str(e), e.exit_code)
    except KeyboardInterrupt:
        handle_exception(KeyboardInterrupt())
    except Exception as e:
        handle_exception(e, "Vault set")


@vault.command("get")
@click.argument("name")
@click.option("--vault", "vault_name", help="Vault name")
@click.option("--field", help="Field name")
@click.option("--backend", type=click.Choice(VALID_BACKENDS), help="Secret store backend")
@click.pass_context
def vault_get(ctx, name: str, vault_name: str | None, field: str | None, backend: str | None):
    """Print a secret value to stdout."""
    settings, key = _target(ctx, name, vault_name, field, backend)
    try:
        adapter = get_adapter(settings)
        adapter.ensure_authenticated()
        value = adapter.resolve(key)
        if value is None:
            raise SecretNotFoundError(f"Secret not found: {key.reference}")
        click.echo(value)
    except DotInjectError as e:
        error(str(e), e.exit_code)
    except KeyboardInterrupt:
        handle_exception(KeyboardInterrupt())
    except Exception as e:
        handle_exception(e, "Vault get")


@vault.command("list")
@click.option("--vault", "vault_name", help="Vault name")
@click.option("--backend", type=click.Choice(VALID_BACKENDS), help="Secret store backend")
@click.pass_context
def vault_list(ctx, vault_name: str | None, backend: str | None):
    """List secret names in a vault."""
    settings = get_settings(ctx, vault=vault_name, backend=backend)
    try:
        adapter = get_adapter(settings)
        adapter.ensure_authenticated()
        names = adapter.list_items(settings.vault)
        if not names:
            warn(f"No secrets in vault '{settings.vault}'")
            return

        table = Table(title=f"Vault: {settings.vault} ({settings.backend})", title_justify="left")
        table.add_column("Name", style="key")
        for item in names:
            table.add_row(item)
        ui.console.print(table)
    except DotInjectError as e:
        error(str(e), e.exit_code)
    except KeyboardInterrupt:
        handle_exception(KeyboardInterrupt())
    except Exception as e:
        handle_exception(e, "Vault list")


@vault.command("remove")
@click.argument("name")
@click.option("--vault", "vault_name", help="Vault name")
@click.option("--field", help="Field name")
@click.pass_context
def vault_remove(ctx, name: str, vault_name: str | None, field: str | None):
    """Remove a secret from the local vault."""
    settings, key = _target(ctx, name, vault_name, field, "local")
    try:
        adapter = get_adapter(settings)
        if adapter.vault.remove_secret(key.vault, key.name, key.field):
            success(f"Removed {key.reference}")
        else:
            raise SecretNotFoundError(f"Secret not found: {key.reference}")
    except DotInjectError as e:
        error(str(e), e.exit_code)
    except KeyboardInterrupt:
        handle_exception(KeyboardInterrupt())
    except Exception as e:
        handle_exception(e, "Vault remove")
