"""Local encrypted secret vault."""

import json
import threading
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

from cryptography.fernet import Fernet, InvalidToken

from .constants import VAULT_FILE, VAULT_KEY_FILE, VAULT_LOCK_FILE
from .exceptions import VaultError, WriteError
from .files import atomic_write_text
from .lock import FileLock


class LocalVault:
    """
    Encrypted on-disk store of named secrets.

    Values are encrypted with Fernet (symmetric encryption); the key lives
    next to the vault in a file readable only by the owner. Writers take an
    advisory file lock so concurrent ``dot-inject vault set`` calls do not
    lose updates.

    Structure of vault.json:
    {
        "secrets": {
            "Employee/GITHUB_TOKEN/credential": {
                "vault": "Employee",
                "name": "GITHUB_TOKEN",
                "field": "credential",
                "encrypted_value": "gAAAA...",
                "updated_at": "iso-date"
            }
        }
    }
    """

    def __init__(
        self,
        vault_file: Path | None = None,
        key_file: Path | None = None,
        lock_file: Path | None = None,
    ):
        self.vault_file = vault_file or VAULT_FILE
        self.key_file = key_file or VAULT_KEY_FILE
        self.lock_file_path = lock_file or self.vault_file.parent / VAULT_LOCK_FILE.name
        self._fernet: Optional[Fernet] = None
        self._data: Dict[str, Any] = {"secrets": {}}
        self._lock = threading.RLock()
        self._last_loaded_mtime = 0.0

    @staticmethod
    def _entry_id(vault: str, name: str, field: str) -> str:
        return f"{vault}/{name}/{field}"

    def _get_fernet(self, create: bool = False) -> Optional[Fernet]:
        """Get the encryption suite, generating a key only when writing."""
        with self._lock:
            if self._fernet:
                return self._fernet

            if not self.key_file.exists():
                if not create:
                    return None
                self._generate_key()

            try:
                self._fernet = Fernet(self.key_file.read_bytes())
                return self._fernet
            except (ValueError, OSError) as e:
                raise VaultError(f"Failed to load encryption key: {e}")

    def _generate_key(self) -> None:
        """Generate a new encryption key."""
        key = Fernet.generate_key()
        self.key_file.parent.mkdir(parents=True, exist_ok=True)
        self.key_file.write_bytes(key)
        self.key_file.chmod(0o600)

    def exists(self) -> bool:
        return self.vault_file.exists()

    def load(self) -> None:
        """Load vault data from disk if it changed since the last load."""
        with self._lock:
            if not self.vault_file.exists():
                self._data = {"secrets": {}}
                self._last_loaded_mtime = 0.0
                return

            try:
                current_mtime = self.vault_file.stat().st_mtime
                if current_mtime <= self._last_loaded_mtime:
                    return

                data = json.loads(self.vault_file.read_text(encoding="utf-8"))
            except (OSError, json.JSONDecodeError) as e:
                raise VaultError(f"Failed to read vault {self.vault_file}: {e}")

            if not isinstance(data.get("secrets"), dict):
                raise VaultError(f"Vault file is corrupt: {self.vault_file}")
            self._data = data
            self._last_loaded_mtime = current_mtime

    def save(self) -> None:
        """Save vault data to disk."""
        with self._lock:
            content = json.dumps(self._data, indent=2, sort_keys=True)
            try:
                atomic_write_text(self.vault_file, content)
                self.vault_file.chmod(0o600)
                self._last_loaded_mtime = self.vault_file.stat().st_mtime
            except (OSError, WriteError) as e:
                raise VaultError(f"Failed to save vault: {e}")

    def set_secret(self, vault: str, name: str, field: str, value: str) -> bool:
        """
        Encrypt and store a secret.
        Returns True if an existing entry was replaced.
        """
        with FileLock(self.lock_file_path, timeout=5.0):
            with self._lock:
                # Another process may have written since our last load
                self._last_loaded_mtime = 0.0
                self.load()
                f = self._get_fernet(create=True)

                entry_id = self._entry_id(vault, name, field)
                replaced = entry_id in self._data["secrets"]
                self._data["secrets"][entry_id] = {
                    "vault": vault,
                    "name": name,
                    "field": field,
                    "encrypted_value": f.encrypt(value.encode()).decode("utf-8"),
                    "updated_at": datetime.now().isoformat(),
                }
                self.save()
                return replaced

    def get_secret(self, vault: str, name: str, field: str) -> Optional[str]:
        """Retrieve and decrypt a secret, or None if it is not stored."""
        with self._lock:
            self.load()
            entry = self._data["secrets"].get(self._entry_id(vault, name, field))
            if entry is None:
                return None

            f = self._get_fernet()
            if f is None:
                raise VaultError(f"Encryption key missing: {self.key_file}")
            try:
                return f.decrypt(entry["encrypted_value"].encode()).decode("utf-8")
            except (InvalidToken, KeyError, ValueError) as e:
                raise VaultError(f"Failed to decrypt {vault}/{name}/{field}: {e}")

    def remove_secret(self, vault: str, name: str, field: str) -> bool:
        """Delete a secret. Returns True if it existed."""
        with FileLock(self.lock_file_path, timeout=5.0):
            with self._lock:
                self._last_loaded_mtime = 0.0
                self.load()
                removed = self._data["secrets"].pop(
                    self._entry_id(vault, name, field), None
                )
                if removed is not None:
                    self.save()
                return removed is not None

    def list_secrets(self, vault: str | None = None) -> List[Dict[str, str]]:
        """List stored secrets (without values), optionally for one vault."""
        with self._lock:
            self.load()
            entries = [
                {k: e[k] for k in ("vault", "name", "field", "updated_at")}
                for e in self._data["secrets"].values()
                if vault is None or e["vault"] == vault
            ]
        return sorted(entries, key=lambda e: (e["vault"], e["name"], e["field"]))
