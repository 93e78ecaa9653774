"""simrun: stage a parameter file into a numbered output directory and run it."""

from pathlib import Path
from typing import Optional, Tuple

import click

from ..config.validation import parse_count, validate_run_options
from ..core.errors import SimctlError
from ..core.launcher import Launcher, resolve_parallelism
from ..core.rundir import prepare_continuation, prepare_fresh_run
from .common import CONTEXT_SETTINGS, common_options, fail, report_validation, setup_cli_context


@click.command("run", context_settings=CONTEXT_SETTINGS)
@click.option(
    "--exe", "-e", "executable", type=click.Path(path_type=Path), help="Simulation executable"
)
@click.option("--par", "-p", "parfile", type=click.Path(path_type=Path), help="Parameter file")
@click.option(
    "--output",
    "-o",
    "output_root",
    type=click.Path(path_type=Path),
    help="Directory holding the run directories (default: simulations)",
)
@click.option(
    "--continue",
    "-c",
    "continue_dir",
    type=click.Path(path_type=Path),
    help="Continue the existing run in this directory",
)
@click.option("--overwrite", "-O", is_flag=True, help="Remove an existing run directory first")
@click.option("--append", "-a", is_flag=True, help="Add a new output directory to an existing run")
@click.option("--sbatch", "-s", is_flag=True, help="Submit to Slurm instead of running here")
@click.option("--threads", "-t", metavar="N|all", help="Threads per process")
@click.option("--processes", "-P", metavar="N|all", help="Number of MPI processes")
@click.option("--move", "-m", is_flag=True, help="Move the parameter file instead of copying it")
@click.option("--dry-run", "-n", is_flag=True, help="Prepare the run but do not launch it")
@common_options
@click.argument("extra_args", nargs=-1, type=click.UNPROCESSED)
@click.pass_context
def run_cmd(
    ctx,
    executable: Optional[Path],
    parfile: Optional[Path],
    output_root: Optional[Path],
    continue_dir: Optional[Path],
    overwrite: bool,
    append: bool,
    sbatch: bool,
    threads: Optional[str],
    processes: Optional[str],
    move: bool,
    dry_run: bool,
    verbose: bool,
    quiet: bool,
    config_path: Optional[Path],
    extra_args: Tuple[str, ...],
):
    """Run EXE on a parameter file in <output>/<run>/output-NNNN.

    The run name is the parameter file's IO::out_dir. Arguments after a
    trailing "--" are passed to sbatch unchanged.
    """
    config, _, console = setup_cli_context(ctx, verbose, quiet, config_path)
    settings = config.run

    report_validation(
        ctx,
        validate_run_options(
            executable,
            parfile,
            continue_dir,
            overwrite,
            append,
            move,
            threads,
            processes,
            sbatch=sbatch,
            extra_args=extra_args,
        ),
        console,
    )

    try:
        if continue_dir is not None:
            layout = prepare_continuation(continue_dir)
        else:
            layout = prepare_fresh_run(
                parfile,
                output_root=output_root or Path(settings.output_root),
                overwrite=overwrite,
                append=append,
                move=move,
            )

        launcher = Launcher(settings, layout, executable)
        if sbatch:
            returncode = launcher.submit(
                extra_args,
                processes=parse_count(processes),
                threads=parse_count(threads),
                dry_run=dry_run,
            )
        else:
            parallelism = resolve_parallelism(parse_count(processes), parse_count(threads))
            returncode = launcher.run_direct(parallelism, dry_run=dry_run)
    except SimctlError as e:
        fail(ctx, str(e), console)

    ctx.exit(returncode)


def main():
    """Entry point for simrun."""
    run_cmd(prog_name="simrun")


if __name__ == "__main__":
    main()
