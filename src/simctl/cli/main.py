"""Main CLI entry point for simctl."""

from pathlib import Path
from typing import Optional

import click

from .. import __version__
from .common import CONTEXT_SETTINGS
from .config import config_cmd
from .run import run_cmd
from .sync import sync_cmd


@click.group(context_settings=CONTEXT_SETTINGS)
@click.version_option(version=__version__, prog_name="simctl")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-error output")
@click.option(
    "--config",
    "config_path",
    type=click.Path(path_type=Path),
    help="Path to simctl.yaml (default: search standard locations)",
)
@click.pass_context
def cli(ctx: click.Context, verbose: bool, quiet: bool, config_path: Optional[Path]):
    """simctl - run numbered simulations and sync them between hosts."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["config_path"] = config_path


cli.add_command(run_cmd)  # simctl run, same as simrun
cli.add_command(sync_cmd)  # simctl sync, same as simsync
cli.add_command(config_cmd)  # simctl config init/show


def main():
    """Entry point for the CLI."""
    cli()


if __name__ == "__main__":
    main()
