"""Shared utilities for Sprout CLI modules."""
from __future__ import annotations

from pathlib import Path
from typing import List, Optional, Sequence, Tuple

import typer
from rich.console import Console

from sprout.core.config import get_settings

DEFAULT_CONFIG = Path(__file__).parent / "templates" / "default" / "sprout.yml"

# Config search paths (ordered by proximity to current run)
CONFIG_PATHS = [
    "./sprout.yml",
    str(Path.home() / ".sprout" / "sprout.yml"),
]


def find_config(config_path: Optional[str] = None) -> str:
    """Locate the project configuration file.

    Falls back to the bundled default template set when nothing else exists.
    """
    if config_path:
        return config_path

    if env_config := get_settings().config_path:
        return env_config

    for path in CONFIG_PATHS:
        if Path(path).exists():
            return path

    return str(DEFAULT_CONFIG)


def split_create_args(args: Sequence[str]) -> Tuple[List[str], List[str]]:
    """Split leftover command line arguments into flags and positionals.

    Flags (anything starting with '-') are forwarded to the package manager
    init command verbatim.
    """
    flags = [arg for arg in args if arg.startswith("-")]
    positionals = [arg for arg in args if not arg.startswith("-")]
    return flags, positionals


def setup_file_logging(log_file: Optional[str] = None, verbose: bool = False) -> None:
    """Set up file and console logging for CLI commands.

    Args:
        log_file: Path to log file (optional)
        verbose: Enable verbose logging
    """
    from sprout.core.logger import set_console_level
    from sprout.core.logger import setup_file_logging as _setup_file_logging

    _setup_file_logging(log_file=log_file or get_settings().log_file, verbose=verbose)
    set_console_level(verbose)


def handle_cli_error(
    e: Exception,
    console: Console,
    verbose: bool = False,
    exit_code: int = 1,
    label: str = "Error",
) -> None:
    """Handle CLI errors with consistent formatting.

    Args:
        e: Exception to handle
        console: Rich console for output
        verbose: Show exception traceback if True
        exit_code: Exit code to use
        label: Prefix shown before the message
    """
    console.print(f"[red]{label}:[/red] {e}")
    if verbose:
        console.print_exception()
    raise typer.Exit(exit_code)


def print_success(console: Console, message: str, prefix: str = "✓") -> None:
    """Print success message with consistent formatting."""
    console.print(f"[green]{prefix}[/green] {message}")


def print_warning(console: Console, message: str, prefix: str = "⚠") -> None:
    """Print warning message with consistent formatting."""
    console.print(f"[yellow]{prefix}[/yellow] {message}")

