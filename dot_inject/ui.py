"""Centralized UI module for dot-inject using Rich."""

import sys
from typing import Optional

from rich.console import Console
from rich.prompt import Prompt
from rich.syntax import Syntax
from rich.theme import Theme

# Custom theme for consistent branding
theme = Theme({
    "info": "cyan",
    "success": "green",
    "warning": "yellow",
    "error": "red bold",
    "highlight": "magenta bold",
    "dim": "dim",
    "key": "blue bold",
    "value": "white",
})

console = Console(theme=theme)
error_console = Console(theme=theme, stderr=True)


def print_header(title: str) -> None:
    """Print a section header."""
    console.print(f"[info]=== {title} ===[/info]")


def info(message: str) -> None:
    """Print an info message."""
    console.print(f"[info]ℹ[/info]  {message}")


def success(message: str) -> None:
    """Print a success message."""
    console.print(f"[success]✓[/success] {message}")


def warn(message: str) -> None:
    """Print a warning message."""
    console.print(f"[warning]⚠[/warning] {message}")


def error(message: str, exit_code: int = 1) -> None:
    """Print an error message and optionally exit."""
    error_console.print(f"[error]✗ Error:[/error] {message}")
    if exit_code != 0:
        sys.exit(exit_code)


def verbose(message: str, enabled: bool) -> None:
    """Print a dimmed detail line when verbose output is on."""
    if enabled:
        error_console.print(f"[dim]{message}[/dim]")


def print_diff(diff_text: str) -> None:
    """Print a unified diff with syntax highlighting."""
    if not diff_text:
        console.print("[dim](no changes)[/dim]")
        return
    console.print(Syntax(diff_text, "diff", theme="ansi_dark", background_color="default"))


def ask_secret(question: str) -> str:
    """Ask for a secret value without echoing it."""
    return Prompt.ask(f"[bold]{question}[/bold]", password=True, console=console)


def suggest_command(mistake: str, choices: list[str], cutoff: float = 0.6) -> Optional[str]:
    """Suggest a command based on Levenshtein distance."""
    import difflib
    matches = difflib.get_close_matches(mistake, choices, n=1, cutoff=cutoff)
    return matches[0] if matches else None
