"""Custom exceptions for dot-inject."""

from dataclasses import dataclass
from enum import Enum


class ErrorCategory(Enum):
    """Categorizes errors for user-friendly diagnostics."""
    AUTH = "auth"                 # Vault not signed in / CLI missing
    TEMPLATE = "template"         # Ambiguous or unreadable template
    SECRET = "secret"             # Secret missing or lookup failed
    PERMISSION = "permission"     # File permission denied
    INTERRUPTED = "interrupted"   # KeyboardInterrupt / SIGTERM
    CONFIG = "config"             # Configuration errors
    DISK = "disk"                 # Write / I/O errors
    UNKNOWN = "unknown"           # Fallback


@dataclass
class ErrorDiagnostic:
    """Rich error diagnostic for user display."""
    category: ErrorCategory
    title: str
    details: str
    suggestion: str

    @classmethod
    def from_exception(cls, exc: BaseException) -> "ErrorDiagnostic":
        """Factory to create diagnostics from common exceptions."""
        if isinstance(exc, KeyboardInterrupt):
            return cls(
                ErrorCategory.INTERRUPTED,
                "Operation interrupted",
                "User cancelled the operation",
                "Files already written are intact; run the command again to continue"
            )
        if isinstance(exc, UnauthenticatedError):
            return cls(
                ErrorCategory.AUTH,
                "Vault not available",
                str(exc),
                "Run: eval $(op signin)"
            )
        if isinstance(exc, AmbiguousFormatError):
            return cls(
                ErrorCategory.TEMPLATE,
                "Ambiguous template format",
                str(exc),
                "Pass --format to choose one syntax explicitly"
            )
        if isinstance(exc, (UnresolvedSecretsError, SecretNotFoundError, AdapterError)):
            return cls(
                ErrorCategory.SECRET,
                "Secret lookup failed",
                str(exc),
                "Check the secret name with 'dot-inject vault list', or use --best-effort"
            )
        if isinstance(exc, PermissionError) or "permission denied" in str(exc).lower():
            return cls(
                ErrorCategory.PERMISSION,
                "Permission denied",
                str(exc),
                "Check file permissions of the template and its output"
            )
        if isinstance(exc, ConfigurationError):
            return cls(
                ErrorCategory.CONFIG,
                "Configuration error",
                str(exc),
                "Run 'dot-inject config show' to inspect effective settings"
            )
        if isinstance(exc, (WriteError, OSError)):
            return cls(
                ErrorCategory.DISK,
                "Write failed",
                str(exc),
                "Free up disk space or fix the output directory, then retry"
            )

        # Fallback
        return cls(
            ErrorCategory.UNKNOWN,
            "Unexpected error",
            str(exc),
            "Check logs or run with --debug for details"
        )


class DotInjectError(Exception):
    """Base exception for all dot-inject errors."""

    exit_code = 1

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


# ============================================================================
# Vault Errors (2, 20-25)
# ============================================================================


class UnauthenticatedError(DotInjectError):
    """The secret store cannot be used (not signed in, CLI missing)."""

    exit_code = 2


class AdapterError(DotInjectError):
    """A single lookup against the secret store failed (timeout, process error)."""

    exit_code = 20


class SecretNotFoundError(DotInjectError):
    """A secret does not exist in the store."""

    exit_code = 21


class VaultError(DotInjectError):
    """Local vault operation failed."""

    exit_code = 22


class LockError(DotInjectError):
    """Raised when a lock cannot be acquired."""

    exit_code = 23


# ============================================================================
# Template Errors (1, 10)
# ============================================================================


class AmbiguousFormatError(DotInjectError):
    """Auto-detection found more than one template syntax."""

    exit_code = 1

    def __init__(self, candidates: list, message: str | None = None):
        self.candidates = list(candidates)
        names = ", ".join(str(c) for c in self.candidates)
        super().__init__(message or f"Multiple template formats detected: {names}")


class UnresolvedSecretsError(DotInjectError):
    """Strict render failed because secrets could not be resolved."""

    exit_code = 10

    def __init__(self, missing: list[str], message: str | None = None):
        self.missing = list(missing)
        super().__init__(
            message or f"Failed to retrieve secrets: {', '.join(self.missing)}"
        )


class TemplateReadError(DotInjectError):
    """Template could not be read (missing, binary, undecodable)."""

    exit_code = 1


# ============================================================================
# File / Configuration Errors (6, 7)
# ============================================================================


class WriteError(DotInjectError):
    """Output could not be written."""

    exit_code = 6


class ConfigurationError(DotInjectError):
    """Configuration file is invalid."""

    exit_code = 7
