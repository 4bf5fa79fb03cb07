"""Main entry point for dot-inject CLI.

This module aggregates all subcommands and exposes the main entry point.
"""

# Import the shared CLI group (interface)
from .interface import cli

# Import all subcommands to register them with the CLI group
from . import (
    inject_cmd,
    inject_all_cmd,
    diff_cmd,
    validate_cmd,
    vault_cmd,
    config_cmd,
    env_cmd,
)

def main():
    """Main entry point for the CLI."""
    cli()

if __name__ == "__main__":
    main()
