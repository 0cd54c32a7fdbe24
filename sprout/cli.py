#!/usr/bin/env python3
"""Sprout CLI - scaffold new packages from an organization template."""

import typer
from rich.console import Console

from sprout.cli_create_commands import register_create_commands
from sprout.core.logger import get_logger

app = typer.Typer(
    name="sprout",
    help="""Sprout - scaffold new packages from an organization template

Creates package.json, copies templates, sets up git and submodules,
installs dependencies and commits.

Quick start:
  sprout check                 # Show the resolved configuration
  sprout create my-lib --yes   # Scaffold ./my-lib (--yes goes to npm init)
""",
    add_completion=False,
)

console = Console()
logger = get_logger(__name__)

register_create_commands(app, console)

if __name__ == "__main__":
    app()
