"""Scaffolding CLI commands - create, check, version."""
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from sprout import __version__
from sprout.cli_support import (
    find_config,
    handle_cli_error,
    print_success,
    print_warning,
    setup_file_logging,
    split_create_args,
)
from sprout.config.loader import ConfigLoader
from sprout.core.errors import InvalidManifest, ScaffoldError
from sprout.core.orchestrator import RunReport, ScaffoldOrchestrator
from sprout.core.replacements import build_replacements, placeholder

# Module-level console instance (will be set by register function)
console: Console = Console()

CREATE_CONTEXT = {"allow_extra_args": True, "ignore_unknown_options": True}


def create(
    ctx: typer.Context,
    directory: Optional[str] = typer.Argument(None, help="New project directory (default: current directory)"),
    config: Optional[str] = typer.Option(None, "--config", help="Project configuration file (sprout.yml)"),
    verbose: bool = typer.Option(False, "--verbose", help="Show debug output"),
    log_file: Optional[str] = typer.Option(None, "--log-file", help="Write the run log to this file"),
):
    """Scaffold a new package.

    Any other flag is passed to the package manager's init command.

    Examples:
        sprout create my-lib --yes      # npm init --yes inside ./my-lib
        sprout create --config org.yml  # Use the template set in org.yml
    """
    setup_file_logging(log_file=log_file, verbose=verbose)

    # A leading flag can push the directory name into the extra arguments
    init_args, positionals = split_create_args(ctx.args)
    if directory and directory.startswith("-"):
        init_args.insert(0, directory)
        directory = None
    if directory is None and positionals:
        directory = positionals.pop(0)
    if positionals:
        print_warning(console, f"Ignoring extra arguments: {' '.join(positionals)}")

    config_file = find_config(config)
    try:
        configuration = ConfigLoader(config_file).load(
            target_directory=directory,
            init_args=init_args,
        )
        report = ScaffoldOrchestrator().run(configuration)
    except InvalidManifest as e:
        handle_cli_error(e, console, verbose, label="Type error")
    except ScaffoldError as e:
        handle_cli_error(e, console, verbose)

    _print_report(report)
    print_success(console, f"Package created in {report.state.package_directory}")


def check(
    config: Optional[str] = typer.Option(None, "--config", help="Project configuration file (sprout.yml)"),
    directory: Optional[str] = typer.Argument(None, help="Directory name to resolve the project name from"),
):
    """Validate a configuration file and show what create would use."""
    config_file = find_config(config)
    try:
        configuration = ConfigLoader(config_file).load(target_directory=directory)
    except ScaffoldError as e:
        handle_cli_error(e, console)

    table = Table(title=f"Configuration: {config_file}")
    table.add_column("Setting", style="cyan")
    table.add_column("Value")

    table.add_row("Package manager", configuration.preferred_package_manager.value)
    table.add_row("Templates", str(configuration.templates_dir))
    table.add_row("Source dir", configuration.source_dir)
    table.add_row("Build dir", configuration.build_dir)
    table.add_row(
        "Main source",
        f"{configuration.main_source_file_template} → {configuration.main_source_file_name}",
    )
    for item in configuration.files:
        target = configuration.target_path(item)
        table.add_row("File", item if target == item else f"{item} → {target}")
    table.add_row("Packages", ", ".join(configuration.packages) or "-")
    for submodule in configuration.git_submodules:
        table.add_row("Submodule", f"{submodule.path} ({submodule.url} @ {submodule.branch})")
    table.add_row("Commit message", configuration.git_commit_message)
    table.add_row("Branch", configuration.git_branch)
    console.print(table)

    tokens = Table(title="Replacement tokens")
    tokens.add_column("Token", style="cyan")
    tokens.add_column("Value")
    for key, value in build_replacements(configuration).items():
        tokens.add_row(placeholder(key), value)
    console.print(tokens)


def version():
    """Show the Sprout version."""
    console.print(f"sprout {__version__}")


def _print_report(report: RunReport) -> None:
    table = Table(title="Scaffolding steps")
    table.add_column("Step", style="cyan")
    table.add_column("Result")
    table.add_column("Detail", style="dim")

    for result in report.steps:
        if result.skipped:
            status = "[yellow]skipped[/yellow]"
        else:
            status = "[green]done[/green]"
        table.add_row(result.step, status, result.detail)

    console.print(table)


def register_create_commands(app: typer.Typer, shared_console: Console):
    """Register scaffolding commands with the main Typer app.

    Args:
        app: Main Typer application
        shared_console: Shared Rich console instance
    """
    global console
    console = shared_console

    app.command(context_settings=CREATE_CONTEXT)(create)
    app.command()(check)
    app.command()(version)
