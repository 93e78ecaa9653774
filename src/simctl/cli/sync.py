"""simsync: rsync a simulation project to or from a named host."""

from pathlib import Path
from typing import Optional, Tuple

import click

from ..config.hosts import HostTable
from ..config.validation import validate_sync_options
from ..core.errors import SimctlError
from ..core.sync import Direction, SyncMode, SyncRequest, Syncer, filter_list
from .common import CONTEXT_SETTINGS, common_options, fail, report_validation, setup_cli_context


def _load_hosts(ctx, path: Path, console) -> HostTable:
    try:
        return HostTable.load(path)
    except SimctlError as e:
        fail(ctx, str(e), console)


@click.command("sync", context_settings=CONTEXT_SETTINGS)
@click.option("--to", "-t", "to_host", metavar="HOST", help="Push to HOST")
@click.option("--from", "-f", "from_host", metavar="HOST", help="Pull from HOST")
@click.option("--all", "-a", "sync_all", is_flag=True, help="Sync the whole project tree")
@click.option("--root", "-r", is_flag=True, help="Sync bin/ and par/, deleting extra files")
@click.option("--simulations", "-s", is_flag=True, help="Sync the whole simulations tree")
@click.option("--output", "-o", is_flag=True, help="Sync output files matching the filter list")
@click.option("--checkpoints", "-c", is_flag=True, help="Sync checkpoint directories")
@click.option(
    "--directory",
    "-d",
    metavar="PATH",
    help="Restrict simulation syncs to PATH (may be a glob) below the output root",
)
@click.option("--dry-run", "-n", is_flag=True, help="Show what rsync would transfer")
@click.option(
    "--hosts",
    "hosts_file",
    type=click.Path(path_type=Path),
    help="Host table (JSON object of alias -> location)",
)
@click.option("--list-hosts", is_flag=True, help="List known host aliases and exit")
@common_options
@click.argument("patterns", nargs=-1, type=click.UNPROCESSED)
@click.pass_context
def sync_cmd(
    ctx,
    to_host: Optional[str],
    from_host: Optional[str],
    sync_all: bool,
    root: bool,
    simulations: bool,
    output: bool,
    checkpoints: bool,
    directory: Optional[str],
    dry_run: bool,
    hosts_file: Optional[Path],
    list_hosts: bool,
    verbose: bool,
    quiet: bool,
    config_path: Optional[Path],
    patterns: Tuple[str, ...],
):
    """Sync the project to (--to) or from (--from) a host in the host table.

    Each selected mode runs its own transfer. Include patterns for --output
    may follow a trailing "--" and replace the default filter list.
    """
    config, _, console = setup_cli_context(ctx, verbose, quiet, config_path)
    settings = config.sync

    if list_hosts:
        hosts = _load_hosts(ctx, hosts_file or settings.get_hosts_file(), console)
        for alias in hosts.aliases():
            click.echo(f"{alias}\t{hosts.resolve(alias)}")
        return

    flags = {
        SyncMode.ALL: sync_all,
        SyncMode.ROOT: root,
        SyncMode.SIMULATIONS: simulations,
        SyncMode.OUTPUT: output,
        SyncMode.CHECKPOINTS: checkpoints,
    }
    modes = [mode for mode, selected in flags.items() if selected]

    report_validation(ctx, validate_sync_options(to_host, from_host, modes, patterns), console)
    hosts = _load_hosts(ctx, hosts_file or settings.get_hosts_file(), console)

    direction = Direction.TO if to_host else Direction.FROM
    host = to_host or from_host

    try:
        request = SyncRequest(
            direction=direction,
            host=host,
            location=hosts.resolve(host),
            modes=modes,
            local_root=Path.cwd(),
            output_root=settings.output_root,
            directory=directory,
            rsync_options=list(settings.rsync_options),
            dry_run=dry_run,
        )
        with filter_list(patterns, settings.get_filter_file()) as filter_file:
            returncode = Syncer(request, filter_file).run()
    except SimctlError as e:
        fail(ctx, str(e), console)

    ctx.exit(returncode)


def main():
    """Entry point for simsync."""
    sync_cmd(prog_name="simsync")


if __name__ == "__main__":
    main()
