"""Common CLI utilities shared across all command modules."""

import logging
from pathlib import Path
from typing import Optional, Tuple

import click
from rich.console import Console
from rich.markup import escape

from ..config.settings import SimctlConfig
from ..config.validation import ValidationResult
from ..core.errors import SimctlError
from ..utils.logging import setup_logging

CONTEXT_SETTINGS = {"help_option_names": ["-h", "--help"]}

console = Console(stderr=True, soft_wrap=True)


def common_options(func):
    """Add common CLI options to a command."""
    func = click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")(func)
    func = click.option("--quiet", "-q", is_flag=True, help="Suppress non-error output")(func)
    func = click.option(
        "--config",
        "config_path",
        type=click.Path(path_type=Path),
        help="Path to simctl.yaml (default: search standard locations)",
    )(func)
    return func


def setup_cli_context(
    ctx: click.Context,
    verbose: bool = False,
    quiet: bool = False,
    config_path: Optional[Path] = None,
) -> Tuple[SimctlConfig, logging.Logger, Console]:
    """Load configuration and set up logging for a command.

    Flags given to the ``simctl`` group are inherited by its subcommands.
    """
    ctx.ensure_object(dict)
    verbose = verbose or ctx.obj.get("verbose", False)
    quiet = quiet or ctx.obj.get("quiet", False)
    config_path = config_path or ctx.obj.get("config_path")
    cli_console = ctx.obj.get("console") or console

    try:
        config = SimctlConfig.load(config_path)
        logger = setup_logging(config.logging, verbose=verbose, quiet=quiet, console=cli_console)
    except SimctlError as e:
        fail(ctx, str(e), cli_console)

    ctx.obj["config"] = config
    ctx.obj["logger"] = logger
    ctx.obj["console"] = cli_console

    return config, logger, cli_console


def fail(ctx: click.Context, message: str, cli_console: Optional[Console] = None) -> None:
    """Report an error and exit with status 1."""
    (cli_console or console).print(f"[red]Error: {escape(message)}[/red]", highlight=False)
    ctx.exit(1)


def report_validation(
    ctx: click.Context, result: ValidationResult, cli_console: Optional[Console] = None
) -> None:
    """Print validation problems; exit with status 1 if there are errors."""
    cli_console = cli_console or console
    for warning in result.warnings:
        cli_console.print(f"[yellow]Warning: {escape(warning.message)}[/yellow]", highlight=False)

    if result.is_valid:
        return

    for error in result.errors:
        cli_console.print(f"[red]Error: {escape(error.message)}[/red]", highlight=False)
        if error.suggestion:
            cli_console.print(f"  → {escape(error.suggestion)}", highlight=False)
    ctx.exit(1)
