"""Configuration CLI commands."""

import json
from pathlib import Path

import click
import yaml

from ..config.settings import SimctlConfig
from .common import fail, setup_cli_context


@click.group("config")
@click.pass_context
def config_cmd(ctx):
    """Configuration management commands."""
    pass


@config_cmd.command("init")
@click.option(
    "--path",
    "output_path",
    type=click.Path(path_type=Path),
    default=Path("simctl.yaml"),
    show_default=True,
    help="Where to write the configuration",
)
@click.option("--force", "-f", is_flag=True, help="Overwrite existing configuration")
@click.pass_context
def init_cmd(ctx, output_path: Path, force: bool):
    """Write a commented default simctl.yaml."""
    ctx.ensure_object(dict)
    if output_path.exists() and not force:
        fail(
            ctx,
            f"{output_path} already exists (use --force to overwrite)",
            ctx.obj.get("console"),
        )

    SimctlConfig.create_default_config(output_path)
    click.echo(f"Created {output_path}")


@config_cmd.command("show")
@click.option("--format", type=click.Choice(["yaml", "json"]), default="yaml", help="Output format")
@click.pass_context
def show_cmd(ctx, format: str):
    """Show the effective configuration."""
    config, logger, _ = setup_cli_context(ctx)

    if config.source:
        logger.debug(f"Configuration loaded from {config.source}")
    else:
        logger.debug("No configuration file found, showing defaults")

    if format == "json":
        click.echo(json.dumps(config.to_dict(), indent=2))
    else:
        click.echo(
            yaml.dump(config.to_dict(), default_flow_style=False, indent=2, sort_keys=False),
            nl=False,
        )
