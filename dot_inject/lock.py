"""Advisory file lock guarding writes to the local vault."""

from __future__ import annotations
import fcntl
import random
import time
from pathlib import Path
from typing import IO, Optional

from .exceptions import LockError


class FileLock:
    """
    Context manager for advisory file locking using fcntl.

    Serializes writers of the local vault file across processes. With the
    default ``timeout`` of 0 it fails fast when another process holds the
    lock; a positive timeout retries with a short jittered sleep.
    """

    def __init__(self, lock_file: Path, timeout: float = 0.0) -> None:
        self.lock_file = lock_file
        self.timeout = timeout
        self._fd: Optional[IO] = None

    def _try_acquire(self) -> bool:
        self._fd = open(self.lock_file, "w")
        try:
            fcntl.flock(self._fd, fcntl.LOCK_EX | fcntl.LOCK_NB)
            return True
        except BlockingIOError:
            self._fd.close()
            self._fd = None
            return False

    def __enter__(self) -> "FileLock":
        """Acquire the lock."""
        self.lock_file.parent.mkdir(parents=True, exist_ok=True)
        deadline = time.monotonic() + self.timeout

        try:
            while not self._try_acquire():
                if time.monotonic() >= deadline:
                    raise LockError(
                        f"Could not acquire lock on {self.lock_file}. "
                        "Is another dot-inject process writing the vault?"
                    )
                time.sleep(0.05 + random.random() * 0.1)
        except OSError as e:
            if self._fd:
                self._fd.close()
                self._fd = None
            raise LockError(f"Failed to lock {self.lock_file}: {e}")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Release the lock."""
        if self._fd:
            try:
                fcntl.flock(self._fd, fcntl.LOCK_UN)
            except OSError:
                pass  # closing the descriptor releases it anyway
            finally:
                self._fd.close()
                self._fd = None
