"""Export configured secrets as shell environment assignments."""

import logging
import os
import re
import shlex
import time
from dataclasses import dataclass, field
from typing import Iterable, Mapping, Optional

from .config import Settings
from .constants import DEFAULT_FIELD, ENV_LOADED, ENV_LOADED_AT
from .exceptions import ConfigurationError
from .resolver import SecretResolver
from .secrets import SecretKey

logger = logging.getLogger(__name__)

_VAR_NAME = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


@dataclass(frozen=True)
class EnvSecret:
    """An environment variable filled from a secret."""

    var: str
    name: str
    field: str = DEFAULT_FIELD

    @classmethod
    def parse(cls, spec: str, default_field: str = DEFAULT_FIELD) -> "EnvSecret":
        """Parse ``VAR[:secret[:field]]``. The secret name defaults to VAR.

        Raises:
            ConfigurationError: VAR is not a valid shell variable name.
        """
        parts = spec.split(":")
        if len(parts) > 3 or not _VAR_NAME.match(parts[0]):
            raise ConfigurationError(f"Invalid env secret '{spec}' (expected VAR[:secret[:field]])")
        var = parts[0]
        name = parts[1] if len(parts) > 1 and parts[1] else var
        secret_field = parts[2] if len(parts) > 2 and parts[2] else default_field
        return cls(var, name, secret_field)


@dataclass
class EnvLoad:
    """Outcome of loading secrets into variables."""

    exports: dict[str, str] = field(default_factory=dict)
    skipped: list[str] = field(default_factory=list)
    missing: list[str] = field(default_factory=list)


def select_env_secrets(settings: Settings, context: Optional[str] = None) -> list[EnvSecret]:
    """The base secret list plus the extras for an account context."""
    specs = list(settings.env_secrets)
    if context:
        extra = settings.env_context_secrets.get(context)
        if extra is None:
            logger.warning("No extra secrets configured for context '%s'", context)
        else:
            specs.extend(extra)
    return [EnvSecret.parse(spec, settings.field) for spec in specs]


def _vault_order(vault: str, fallback_vaults: Iterable[str]) -> list[str]:
    order = [vault]
    order.extend(v for v in fallback_vaults if v not in order)
    return order


def load_environment(
    resolver: SecretResolver,
    secrets: Iterable[EnvSecret],
    vault: str,
    fallback_vaults: Iterable[str] = (),
    environ: Mapping[str, str] | None = None,
    overwrite: bool = False,
) -> EnvLoad:
    """Resolve each secret, trying the fallback vaults after ``vault``.

    Variables already set to a non-empty value are skipped unless
    ``overwrite`` is given.
    """
    environ = os.environ if environ is None else environ
    vaults = _vault_order(vault, fallback_vaults)
    load = EnvLoad()

    for secret in secrets:
        if environ.get(secret.var) and not overwrite:
            load.skipped.append(secret.var)
            continue

        value = None
        for candidate in vaults:
            value = resolver.resolve(SecretKey(secret.name, secret.field, candidate))
            if value is not None:
                break

        if value is None:
            load.missing.append(secret.var)
        else:
            load.exports[secret.var] = value

    logger.info(
        "Loaded %d secrets into environment (%d skipped, %d missing)",
        len(load.exports), len(load.skipped), len(load.missing),
    )
    return load


def export_lines(load: EnvLoad, now: float | None = None) -> list[str]:
    """Shell ``export`` statements for eval, values quoted with shlex."""
    lines = [f"export {var}={shlex.quote(value)}" for var, value in load.exports.items()]
    loaded_at = int(time.time() if now is None else now)
    lines.append(f"export {ENV_LOADED}=true")
    lines.append(f"export {ENV_LOADED_AT}={loaded_at}")
    return lines
