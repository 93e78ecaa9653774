"""Helpers for running external processes."""

import logging
from pathlib import Path
import shlex
import signal
import subprocess
import sys
from typing import IO, Dict, List, Optional, Union

from ..core.errors import LaunchError

logger = logging.getLogger(__name__)


def format_command(command: List[str]) -> str:
    """Render an argument list the way a user would type it."""
    return " ".join(shlex.quote(str(arg)) for arg in command)


def run_command(
    command: List[str],
    cwd: Optional[Union[str, Path]] = None,
    env: Optional[Dict[str, str]] = None,
    capture: bool = False,
) -> subprocess.CompletedProcess:
    """Run a command to completion without raising on a non-zero exit."""
    logger.debug(f"Running: {format_command(command)}")
    try:
        return subprocess.run(
            command,
            cwd=cwd,
            env=env,
            capture_output=capture,
            text=True,
            check=False,
        )
    except FileNotFoundError as e:
        raise LaunchError(f"command not found: {command[0]}") from e


def _pump(process: subprocess.Popen, log: IO[bytes], stream: IO[str]) -> None:
    for line in iter(process.stdout.readline, b""):
        log.write(line)
        log.flush()
        stream.write(line.decode(errors="replace"))
        stream.flush()


def run_with_tee(
    command: List[str],
    log_path: Union[str, Path],
    cwd: Optional[Union[str, Path]] = None,
    env: Optional[Dict[str, str]] = None,
    stream: Optional[IO[str]] = None,
) -> int:
    """Run ``command`` with stdout and stderr merged, copied to ``stream`` and ``log_path``.

    An interrupt while waiting is forwarded to the child as SIGINT; the
    child's remaining output is still collected.

    Returns:
        The child's exit code, or 128 + N when it was killed by signal N
    """
    stream = stream or sys.stdout
    logger.debug(f"Running: {format_command(command)} (log: {log_path})")

    with open(log_path, "ab") as log:
        try:
            process = subprocess.Popen(
                command, cwd=cwd, env=env, stdout=subprocess.PIPE, stderr=subprocess.STDOUT
            )
        except FileNotFoundError as e:
            raise LaunchError(f"command not found: {command[0]}") from e

        try:
            _pump(process, log, stream)
        except KeyboardInterrupt:
            logger.warning("Interrupted, forwarding SIGINT")
            process.send_signal(signal.SIGINT)
            _pump(process, log, stream)

        returncode = process.wait()

    # Report signal deaths the way a shell does
    return 128 - returncode if returncode < 0 else returncode
