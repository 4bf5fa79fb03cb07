"""Secret store adapters.

Each backend turns a SecretKey into a value: ``resolve`` returns the secret,
``None`` when it does not exist, raises ``AdapterError`` when a single
lookup fails, and ``UnauthenticatedError`` when the store is unusable.
Adapters make exactly one attempt per call; retry policy belongs to callers.
"""

import json
import logging
import subprocess
from abc import ABC, abstractmethod
from typing import Iterable, Optional

from .constants import DEFAULT_OP_TIMEOUT, OP_ITEM_CATEGORY
from .exceptions import AdapterError, ConfigurationError, UnauthenticatedError, VaultError
from .secrets import SecretKey
from .vault import LocalVault

logger = logging.getLogger(__name__)


class SecretStoreAdapter(ABC):
    """Interface to an external credential vault."""

    name = "abstract"

    @abstractmethod
    def resolve(self, key: SecretKey) -> Optional[str]:
        """Look up one secret. Returns None if it does not exist."""

    @abstractmethod
    def ensure_authenticated(self) -> None:
        """Raise UnauthenticatedError if the store cannot be used."""

    @abstractmethod
    def store(self, key: SecretKey, value: str) -> None:
        """Create or update a secret."""

    @abstractmethod
    def list_items(self, vault: str) -> list[str]:
        """List item names in a vault."""


# ============================================================================
# 1Password
# ============================================================================

# Substrings of op's stderr, matched case-insensitively
_AUTH_MARKERS = (
    "not currently signed in",
    "not signed in",
    "session expired",
    "authorization prompt dismissed",
    "no accounts configured",
    "account is not signed in",
)
_NOT_FOUND_MARKERS = (
    "isn't an item",
    "isn't a vault",
    "isn't a field",
    "could not find",
    "not found",
    "no item found",
)


def classify_op_error(stderr: str) -> str:
    """Classify an op failure as 'auth', 'not_found' or 'error'."""
    message = stderr.lower()
    if any(marker in message for marker in _AUTH_MARKERS):
        return "auth"
    if any(marker in message for marker in _NOT_FOUND_MARKERS):
        return "not_found"
    return "error"


class OnePasswordAdapter(SecretStoreAdapter):
    """
    Resolves secrets with the 1Password CLI (``op read``).

    When a secret is not found under the primary account, each fallback
    account is tried in order. Every op invocation is bounded by
    ``timeout`` seconds; a timeout is an AdapterError for that lookup.
    """

    name = "1password"

    def __init__(
        self,
        account: str | None = None,
        fallback_accounts: Iterable[str] = (),
        timeout: float = DEFAULT_OP_TIMEOUT,
        op_path: str = "op",
    ):
        self.account = account or None
        self.fallback_accounts = [a for a in fallback_accounts if a and a != self.account]
        self.timeout = timeout
        self.op_path = op_path

    def _run(self, args: list[str], account: str | None = None) -> subprocess.CompletedProcess:
        cmd = [self.op_path, *args]
        if account:
            cmd += ["--account", account]

        logger.debug("Running: %s %s", self.op_path, args[0])
        try:
            return subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                timeout=self.timeout,
                check=False,
            )
        except FileNotFoundError:
            raise UnauthenticatedError(
                f"1Password CLI '{self.op_path}' not found in PATH"
            )
        except subprocess.TimeoutExpired:
            raise AdapterError(f"'op {args[0]}' timed out after {self.timeout:g}s")
        except OSError as e:
            raise AdapterError(f"Failed to run '{self.op_path}': {e}")

    def ensure_authenticated(self) -> None:
        where = f" account '{self.account}'" if self.account else ""
        try:
            result = self._run(["whoami"], self.account)
        except AdapterError as e:
            raise UnauthenticatedError(f"Could not verify 1Password sign-in{where}: {e}")
        if result.returncode != 0:
            raise UnauthenticatedError(
                f"Not signed in to 1Password{where}: {result.stderr.strip()}"
            )

    def resolve(self, key: SecretKey) -> Optional[str]:
        primary = True
        for account in [self.account, *self.fallback_accounts]:
            result = self._run(["read", "--no-newline", key.reference], account)
            if result.returncode == 0:
                return result.stdout

            kind = classify_op_error(result.stderr)
            if kind == "auth":
                if primary:
                    raise UnauthenticatedError(
                        f"Not signed in to 1Password: {result.stderr.strip()}"
                    )
                logger.debug("Skipping fallback account %s: not signed in", account)
            elif kind == "error":
                raise AdapterError(f"op read failed for {key}: {result.stderr.strip()}")
            primary = False

        return None

    def _item_exists(self, key: SecretKey) -> bool:
        result = self._run(["item", "get", key.name, "--vault", key.vault], self.account)
        if result.returncode == 0:
            return True
        if classify_op_error(result.stderr) == "auth":
            raise UnauthenticatedError(f"Not signed in to 1Password: {result.stderr.strip()}")
        return False

    def store(self, key: SecretKey, value: str) -> None:
        assignment = f"{key.field}={value}"
        if self._item_exists(key):
            args = ["item", "edit", key.name, "--vault", key.vault, assignment]
        else:
            args = [
                "item", "create",
                "--category", OP_ITEM_CATEGORY,
                "--title", key.name,
                "--vault", key.vault,
                assignment,
            ]
        result = self._run(args, self.account)
        if result.returncode != 0:
            raise AdapterError(f"Failed to store {key}: {result.stderr.strip()}")

    def list_items(self, vault: str) -> list[str]:
        result = self._run(["item", "list", "--vault", vault, "--format", "json"], self.account)
        if result.returncode != 0:
            if classify_op_error(result.stderr) == "auth":
                raise UnauthenticatedError(f"Not signed in to 1Password: {result.stderr.strip()}")
            raise AdapterError(f"Failed to list vault '{vault}': {result.stderr.strip()}")
        try:
            items = json.loads(result.stdout or "[]")
        except json.JSONDecodeError as e:
            raise AdapterError(f"Unexpected output from op item list: {e}")
        return sorted(item.get("title", "") for item in items)


# ============================================================================
# Local encrypted vault
# ============================================================================


class LocalVaultAdapter(SecretStoreAdapter):
    """Resolves secrets from the local Fernet-encrypted vault file."""

    name = "local"

    def __init__(self, vault: LocalVault | None = None):
        self.vault = vault or LocalVault()

    def ensure_authenticated(self) -> None:
        if not self.vault.exists():
            raise UnauthenticatedError(
                f"Local vault not found at {self.vault.vault_file}. "
                "Add a secret with 'dot-inject vault set' first."
            )
        if not self.vault.key_file.exists():
            raise UnauthenticatedError(f"Local vault key missing: {self.vault.key_file}")

    def resolve(self, key: SecretKey) -> Optional[str]:
        try:
            return self.vault.get_secret(key.vault, key.name, key.field)
        except VaultError as e:
            raise AdapterError(str(e))

    def store(self, key: SecretKey, value: str) -> None:
        self.vault.set_secret(key.vault, key.name, key.field, value)

    def list_items(self, vault: str) -> list[str]:
        return sorted({e["name"] for e in self.vault.list_secrets(vault)})


def get_adapter(settings) -> SecretStoreAdapter:
    """Build the adapter selected by settings.backend."""
    if settings.backend == "1password":
        return OnePasswordAdapter(
            account=settings.op_account,
            fallback_accounts=settings.op_fallback_accounts,
            timeout=settings.op_timeout,
        )
    if settings.backend == "local":
        return LocalVaultAdapter()
    raise ConfigurationError(f"Unknown secret backend: {settings.backend}")
