"""Configuration for dot-inject using TOML format."""

import dataclasses
import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

# Python 3.11+ has tomllib built-in, otherwise use tomli
if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

import tomli_w

from .constants import (
    CONFIG_TOML,
    DEFAULT_BACKEND,
    DEFAULT_CACHE_TTL,
    DEFAULT_FIELD,
    DEFAULT_FORMAT,
    DEFAULT_OP_TIMEOUT,
    DEFAULT_VAULT,
    ENV_ACCOUNT,
    ENV_CACHE_ENABLED,
    ENV_CACHE_TTL,
    ENV_CONTEXT_SECRETS,
    ENV_DEBUG,
    ENV_FALLBACK_VAULTS,
    ENV_SECRETS,
    TEMPLATE_LOCATIONS,
    VALID_BACKENDS,
    WARM_SECRETS,
)
from .exceptions import ConfigurationError
from .secrets import TemplateFormat


@dataclass
class Settings:
    """Effective settings for one invocation."""

    format: str = DEFAULT_FORMAT
    vault: str = DEFAULT_VAULT
    field: str = DEFAULT_FIELD
    backend: str = DEFAULT_BACKEND
    strict: bool = True
    cache_enabled: bool = True
    cache_ttl: float = DEFAULT_CACHE_TTL
    negative_ttl: float | None = None
    op_account: str | None = None
    op_fallback_accounts: list[str] = dataclasses.field(default_factory=list)
    op_timeout: float = DEFAULT_OP_TIMEOUT
    locations: list[str] = dataclasses.field(default_factory=lambda: list(TEMPLATE_LOCATIONS))
    inject_all_backup: bool = True
    warm_secrets: list[str] = dataclasses.field(default_factory=lambda: list(WARM_SECRETS))
    env_secrets: list[str] = dataclasses.field(default_factory=lambda: list(ENV_SECRETS))
    env_context_secrets: dict[str, list[str]] = dataclasses.field(
        default_factory=lambda: {k: list(v) for k, v in ENV_CONTEXT_SECRETS.items()}
    )
    env_fallback_vaults: list[str] = dataclasses.field(default_factory=lambda: list(ENV_FALLBACK_VAULTS))
    debug: bool = False

    def with_overrides(self, **overrides: Any) -> "Settings":
        """Return a copy with every non-None override applied."""
        changes = {k: v for k, v in overrides.items() if v is not None}
        updated = dataclasses.replace(self, **changes)
        validate_settings(updated)
        return updated

    @property
    def template_format(self) -> TemplateFormat:
        return TemplateFormat.parse(self.format)


def parse_bool(value: str, name: str) -> bool:
    """Parse a boolean environment value."""
    lowered = value.strip().lower()
    if lowered in ("1", "true", "yes", "on"):
        return True
    if lowered in ("0", "false", "no", "off", ""):
        return False
    raise ConfigurationError(f"Invalid boolean for {name}: '{value}'")


def parse_seconds(value: Any, name: str) -> float:
    """Parse a non-negative number of seconds."""
    try:
        seconds = float(value)
    except (TypeError, ValueError):
        raise ConfigurationError(f"Invalid number of seconds for {name}: '{value}'")
    if seconds < 0:
        raise ConfigurationError(f"{name} must not be negative: {value}")
    return seconds


def validate_settings(settings: Settings) -> None:
    """Raise ConfigurationError for invalid values."""
    TemplateFormat.parse(settings.format)
    if settings.backend not in VALID_BACKENDS:
        raise ConfigurationError(
            f"Invalid backend '{settings.backend}'. Valid options: {VALID_BACKENDS}"
        )
    if not settings.vault:
        raise ConfigurationError("Vault name must not be empty")
    if not settings.field:
        raise ConfigurationError("Field name must not be empty")
    parse_seconds(settings.cache_ttl, "cache ttl")
    if settings.negative_ttl is not None:
        parse_seconds(settings.negative_ttl, "cache negative_ttl")
    if parse_seconds(settings.op_timeout, "onepassword timeout") == 0:
        raise ConfigurationError("onepassword timeout must be greater than zero")


class DotInjectConfig:
    """Parser for the config.toml configuration file."""

    def __init__(self, path: Path | None = None, environ: Mapping[str, str] | None = None):
        self._data: dict = {}
        self._path = path or CONFIG_TOML
        self._environ = os.environ if environ is None else environ

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> None:
        """Load the configuration file; a missing file means defaults."""
        if not self._path.exists():
            self._data = {}
            return
        try:
            self._data = tomllib.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, tomllib.TOMLDecodeError) as e:
            raise ConfigurationError(f"Failed to parse {self._path}: {e}")

    def save(self) -> None:
        """Save the configuration file."""
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_bytes(tomli_w.dumps(self._data).encode())

    def create_default(self) -> None:
        """Create a default configuration."""
        self._data = {
            "defaults": {
                "format": DEFAULT_FORMAT,
                "vault": DEFAULT_VAULT,
                "field": DEFAULT_FIELD,
                "backend": DEFAULT_BACKEND,
                "strict": True,
            },
            "cache": {
                "enabled": True,
                "ttl": DEFAULT_CACHE_TTL,
            },
            "onepassword": {
                "account": "",
                "fallback_accounts": [],
                "timeout": DEFAULT_OP_TIMEOUT,
            },
            "inject_all": {
                "locations": list(TEMPLATE_LOCATIONS),
                "backup": True,
            },
            "warm": {
                "secrets": list(WARM_SECRETS),
            },
            "env": {
                "secrets": list(ENV_SECRETS),
                "fallback_vaults": list(ENV_FALLBACK_VAULTS),
                "contexts": {k: list(v) for k, v in ENV_CONTEXT_SECRETS.items()},
            },
        }
        self.save()

    def _section(self, name: str) -> dict:
        section = self._data.get(name, {})
        if not isinstance(section, dict):
            raise ConfigurationError(f"[{name}] must be a table in {self._path}")
        return section

    @property
    def cache_enabled(self) -> bool:
        """Cache switch; OP_CACHE_ENABLED wins over the file."""
        env = self._environ.get(ENV_CACHE_ENABLED)
        if env is not None:
            return parse_bool(env, ENV_CACHE_ENABLED)
        return bool(self._section("cache").get("enabled", True))

    @property
    def cache_ttl(self) -> float:
        """Cache TTL in seconds; OP_CACHE_TTL wins over the file."""
        env = self._environ.get(ENV_CACHE_TTL)
        if env is not None:
            return parse_seconds(env, ENV_CACHE_TTL)
        return parse_seconds(self._section("cache").get("ttl", DEFAULT_CACHE_TTL), "cache ttl")

    @property
    def negative_ttl(self) -> float | None:
        value = self._section("cache").get("negative_ttl")
        return None if value is None else parse_seconds(value, "cache negative_ttl")

    @property
    def op_account(self) -> str | None:
        return self._environ.get(ENV_ACCOUNT) or self._section("onepassword").get("account") or None

    @property
    def debug(self) -> bool:
        env = self._environ.get(ENV_DEBUG)
        return parse_bool(env, ENV_DEBUG) if env is not None else False

    def settings(self) -> Settings:
        """Build effective settings: defaults < file < environment."""
        defaults = self._section("defaults")
        onepassword = self._section("onepassword")
        inject_all = self._section("inject_all")
        warm = self._section("warm")
        env_section = self._section("env")
        contexts = env_section.get("contexts", ENV_CONTEXT_SECRETS)
        if not isinstance(contexts, dict):
            raise ConfigurationError(f"[env.contexts] must be a table in {self._path}")

        settings = Settings(
            format=str(defaults.get("format", DEFAULT_FORMAT)),
            vault=str(defaults.get("vault", DEFAULT_VAULT)),
            field=str(defaults.get("field", DEFAULT_FIELD)),
            backend=str(defaults.get("backend", DEFAULT_BACKEND)),
            strict=bool(defaults.get("strict", True)),
            cache_enabled=self.cache_enabled,
            cache_ttl=self.cache_ttl,
            negative_ttl=self.negative_ttl,
            op_account=self.op_account,
            op_fallback_accounts=list(onepassword.get("fallback_accounts", [])),
            op_timeout=parse_seconds(
                onepassword.get("timeout", DEFAULT_OP_TIMEOUT), "onepassword timeout"
            ),
            locations=list(inject_all.get("locations", TEMPLATE_LOCATIONS)),
            inject_all_backup=bool(inject_all.get("backup", True)),
            warm_secrets=list(warm.get("secrets", WARM_SECRETS)),
            env_secrets=list(env_section.get("secrets", ENV_SECRETS)),
            env_context_secrets={str(k): list(v) for k, v in contexts.items()},
            env_fallback_vaults=list(env_section.get("fallback_vaults", ENV_FALLBACK_VAULTS)),
            debug=self.debug,
        )
        validate_settings(settings)
        return settings


def load_settings(path: Path | None = None, environ: Mapping[str, str] | None = None) -> Settings:
    """Load configuration and return effective settings."""
    config = DotInjectConfig(path, environ)
    config.load()
    return config.settings()
