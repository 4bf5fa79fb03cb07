"""dot-inject CLI package.

This package provides the CLI entry point for dot-inject.
"""

from .main import main
from .interface import cli
from .common import (
    error,
    success,
    warn,
    handle_exception,
    DotInjectGroup,
)

from .inject_cmd import inject
from .inject_all_cmd import inject_all
from .diff_cmd import diff
from .validate_cmd import validate
from .vault_cmd import vault
from .config_cmd import config
from .env_cmd import env

__all__ = [
    'main',
    'cli',
    'error',
    'success',
    'warn',
    'handle_exception',
    'DotInjectGroup',
    # Commands
    'inject',
    'inject_all',
    'diff',
    'validate',
    'vault',
    'config',
    'env',
]
