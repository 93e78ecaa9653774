"""Launching a prepared run, either through Slurm or directly under MPI."""

from dataclasses import dataclass
from datetime import datetime
import logging
import os
from pathlib import Path
import subprocess
import time
from typing import Dict, List, Optional, Sequence, Union

import psutil

from ..config.settings import RunSettings
from ..config.validation import ALL_CORES, Count
from ..utils.process import format_command, run_command, run_with_tee
from ..utils.templating import render_template
from .errors import LaunchError
from .rundir import RunLayout

logger = logging.getLogger(__name__)

BATCH_TEMPLATE = "batch.sh.j2"

# Set by the bash process that sources the environment file, not by the file
SHELL_STATE_VARS = frozenset({"PWD", "OLDPWD", "SHLVL", "_"})


@dataclass
class Parallelism:
    """Resolved process and thread counts for a direct launch."""

    processes: int = 1
    threads: int = 1

    def environment(self, start_time: Optional[int] = None) -> Dict[str, str]:
        """Variables exported to the simulation binary."""
        if start_time is None:
            start_time = int(time.time())
        return {
            "CACTUS_STARTTIME": str(start_time),
            "CACTUS_NUM_PROCS": str(self.processes),
            "CACTUS_NUM_THREADS": str(self.threads),
            "OMP_NUM_THREADS": str(self.threads),
        }


def core_count() -> int:
    """Number of logical cores on this machine."""
    return psutil.cpu_count(logical=True) or 1


def resolve_parallelism(
    processes: Optional[Count] = None,
    threads: Optional[Count] = None,
    cores: Optional[int] = None,
) -> Parallelism:
    """Turn ``--processes``/``--threads`` values into concrete counts.

    ``all`` fills the machine: with one side fixed, the other gets the
    remaining share of the cores; with both set to ``all`` every core runs
    its own single-threaded process.
    """
    if cores is None:
        cores = core_count()
    processes = 1 if processes is None else processes
    threads = 1 if threads is None else threads

    if processes == ALL_CORES and threads == ALL_CORES:
        return Parallelism(processes=cores, threads=1)
    if processes == ALL_CORES:
        return Parallelism(processes=max(1, cores // int(threads)), threads=int(threads))
    if threads == ALL_CORES:
        return Parallelism(processes=int(processes), threads=max(1, cores // int(processes)))
    return Parallelism(processes=int(processes), threads=int(threads))


def env_file_from_environment(env_var: str) -> Optional[Path]:
    """Return the environment file named by ``env_var``, if any.

    Raises:
        LaunchError: If the variable names a file that does not exist
    """
    value = os.environ.get(env_var)
    if not value:
        return None
    path = Path(value).expanduser().resolve()
    if not path.is_file():
        raise LaunchError(f"{env_var} points to a missing file: {value}")
    return path


def source_env_file(env_file: Union[str, Path]) -> Dict[str, str]:
    """Source ``env_file`` in bash and return the resulting environment.

    Raises:
        LaunchError: If sourcing exits with a non-zero status
    """
    command = ["bash", "-c", 'source "$1" >&2 && env -0', "simctl-env", str(env_file)]
    result = subprocess.run(command, capture_output=True, check=False)
    if result.returncode != 0:
        stderr = result.stderr.decode(errors="replace").strip()
        raise LaunchError(
            f"sourcing {env_file} failed with exit code {result.returncode}"
            + (f": {stderr}" if stderr else "")
        )

    environment = {}
    for entry in result.stdout.decode(errors="replace").split("\0"):
        if "=" in entry:
            key, value = entry.split("=", 1)
            if key not in SHELL_STATE_VARS:
                environment[key] = value
    logger.debug(f"Sourced {env_file} ({len(environment)} variables)")
    return environment


class Launcher:
    """Runs the simulation binary inside a prepared output directory."""

    def __init__(self, settings: RunSettings, layout: RunLayout, executable: Union[str, Path]):
        self.settings = settings
        self.layout = layout
        # Resolved before any cwd change, the launch happens inside the output directory
        self.executable = Path(executable).expanduser().resolve()

    @property
    def log_path(self) -> Path:
        return self.layout.output_dir / self.settings.log_file

    @property
    def script_path(self) -> Path:
        return self.layout.output_dir / self.settings.script_name

    def direct_command(self, parallelism: Parallelism) -> List[str]:
        return [
            self.settings.launcher,
            "-np",
            str(parallelism.processes),
            *self.settings.launcher_args,
            str(self.executable),
            self.layout.parfile.name,
        ]

    def runner_command(self) -> List[str]:
        return [
            self.settings.batch_runner,
            *self.settings.batch_runner_args,
            str(self.executable),
            self.layout.parfile.name,
        ]

    def submit_command(
        self,
        extra_args: Sequence[str] = (),
        processes: Optional[Count] = None,
        threads: Optional[Count] = None,
    ) -> List[str]:
        """Build the ``sbatch`` call; ``extra_args`` are passed through untouched."""
        command = [
            self.settings.batch_command,
            f"--job-name={self.layout.name}",
            f"--output={self.settings.log_file}",
        ]
        for flag, value in (("--ntasks", processes), ("--cpus-per-task", threads)):
            if value == ALL_CORES:
                logger.warning(f"'{ALL_CORES}' is ignored for batch jobs, {flag} not set")
            elif value is not None:
                command.append(f"{flag}={value}")
        command.extend(extra_args)
        command.append(self.settings.script_name)
        return command

    def write_batch_script(self, env_file: Optional[Path] = None) -> Path:
        """Render the job script into the output directory."""
        content = render_template(
            BATCH_TEMPLATE,
            run_name=self.layout.name,
            generated_at=datetime.now(),
            env_file=str(env_file) if env_file else None,
            runner_command=self.runner_command(),
        )
        self.script_path.write_text(content)
        self.script_path.chmod(0o755)
        logger.debug(f"Wrote batch script {self.script_path}")
        return self.script_path

    def submit(
        self,
        extra_args: Sequence[str] = (),
        processes: Optional[Count] = None,
        threads: Optional[Count] = None,
        dry_run: bool = False,
    ) -> int:
        """Submit the run to the batch scheduler.

        Returns:
            The submission command's exit code
        """
        env_file = env_file_from_environment(self.settings.env_var)
        self.write_batch_script(env_file)
        command = self.submit_command(extra_args, processes, threads)

        if dry_run:
            logger.info(f"Dry run, would submit: {format_command(command)}")
            return 0

        result = run_command(command, cwd=self.layout.output_dir, capture=True)
        if result.returncode != 0:
            logger.error(
                f"{self.settings.batch_command} failed with exit code {result.returncode}: "
                f"{result.stderr.strip()}"
            )
            return result.returncode

        # Output format: "Submitted batch job 12345"
        output = result.stdout.strip()
        job_id = output.split()[-1] if output else "?"
        logger.info(f"Submitted job {job_id} for run '{self.layout.name}'")
        return 0

    def run_direct(self, parallelism: Parallelism, dry_run: bool = False) -> int:
        """Run the binary under the parallel launcher, teeing output to the log file.

        Returns:
            The launcher's exit code
        """
        environment = dict(os.environ)
        env_file = env_file_from_environment(self.settings.env_var)
        if env_file is not None:
            environment.update(source_env_file(env_file))
        environment.update(parallelism.environment())
        environment["PWD"] = str(self.layout.output_dir.resolve())

        command = self.direct_command(parallelism)
        if dry_run:
            logger.info(f"Dry run, would run: {format_command(command)}")
            return 0

        logger.info(
            f"Running '{self.layout.name}' with {parallelism.processes} process(es) x "
            f"{parallelism.threads} thread(s) in {self.layout.output_dir}"
        )
        returncode = run_with_tee(
            command, self.log_path, cwd=self.layout.output_dir, env=environment
        )
        if returncode != 0:
            logger.error(f"{self.settings.launcher} exited with code {returncode}")
        return returncode
