"""Numbered output-directory allocation for simulation runs.

A run lives in ``<output-root>/<run-name>/`` and every invocation gets its
own ``output-NNNN`` subdirectory next to a shared ``checkpoints/``
directory::

    simulations/sim1/
        checkpoints/
        output-0000/sim1.par
        output-0001/sim1.par

Indices are allocated by scanning 0000-9999 and taking the first one that
does not exist. The directory is created with an exclusive ``mkdir``; if
another process created it between the scan and the create, the allocator
moves on to the next free index instead of sharing the directory. Nothing
else is locked: callers running several invocations against the same run
name at once must still serialize them if they care about ordering.
"""

from dataclasses import dataclass
import logging
from pathlib import Path
import re
import shutil
from typing import List, Optional, Union

from .errors import RunDirectoryError
from .parfile import rewrite_out_dir, run_name

logger = logging.getLogger(__name__)

OUTPUT_PREFIX = "output-"
CHECKPOINTS_DIR = "checkpoints"
MAX_OUTPUT_INDEX = 9999

_OUTPUT_DIR_RE = re.compile(r"^output-(\d{4})$")


@dataclass
class RunLayout:
    """Where a prepared run lives on disk."""

    name: str
    run_dir: Path
    output_dir: Path
    parfile: Path

    @property
    def index(self) -> int:
        return int(self.output_dir.name[len(OUTPUT_PREFIX) :])

    @property
    def checkpoints_dir(self) -> Path:
        return self.run_dir / CHECKPOINTS_DIR


def output_dir_name(index: int) -> str:
    """Return ``output-NNNN`` for ``index``."""
    return f"{OUTPUT_PREFIX}{index:04d}"


def next_output_index(run_dir: Union[str, Path], start: int = 0) -> int:
    """Return the smallest index >= ``start`` whose directory does not exist.

    Raises:
        RunDirectoryError: If every index up to 9999 is taken
    """
    run_dir = Path(run_dir)
    for index in range(start, MAX_OUTPUT_INDEX + 1):
        if not (run_dir / output_dir_name(index)).exists():
            return index
    raise RunDirectoryError(f"{run_dir}: no free {OUTPUT_PREFIX}NNNN directory left")


def allocate_output_dir(run_dir: Union[str, Path]) -> Path:
    """Create the next free ``output-NNNN`` directory inside ``run_dir``."""
    run_dir = Path(run_dir)
    index = next_output_index(run_dir)
    while True:
        candidate = run_dir / output_dir_name(index)
        try:
            candidate.mkdir(parents=True, exist_ok=False)
        except FileExistsError:
            logger.warning(f"{candidate} appeared during allocation, trying next index")
            index = next_output_index(run_dir, index + 1)
            continue
        logger.debug(f"Allocated {candidate}")
        return candidate


def list_output_dirs(run_dir: Union[str, Path]) -> List[Path]:
    """Return the numbered output directories of ``run_dir``, lowest index first."""
    run_dir = Path(run_dir)
    if not run_dir.is_dir():
        return []
    found = [p for p in run_dir.iterdir() if p.is_dir() and _OUTPUT_DIR_RE.match(p.name)]
    return sorted(found, key=lambda p: p.name)


def latest_output_dir(run_dir: Union[str, Path]) -> Optional[Path]:
    """Return the highest-numbered output directory, or None."""
    output_dirs = list_output_dirs(run_dir)
    return output_dirs[-1] if output_dirs else None


def _stage_parfile(parfile: Path, output_dir: Path, move: bool) -> Path:
    staged = output_dir / parfile.name
    if move:
        shutil.move(str(parfile), str(staged))
        logger.debug(f"Moved {parfile} -> {staged}")
    else:
        shutil.copy2(parfile, staged)
        logger.debug(f"Copied {parfile} -> {staged}")
    return staged


def prepare_fresh_run(
    parfile: Union[str, Path],
    output_root: Union[str, Path] = "simulations",
    overwrite: bool = False,
    append: bool = False,
    move: bool = False,
) -> RunLayout:
    """Create the run directory for a new run and stage its parameter file.

    Args:
        parfile: Parameter file whose ``IO::out_dir`` names the run
        output_root: Directory holding all run directories
        overwrite: Remove an existing run directory first
        append: Add a new numbered output directory to an existing run
        move: Move the parameter file instead of copying it

    Raises:
        ParfileError: If the run name cannot be derived (nothing is created)
        RunDirectoryError: If the run exists and neither overwrite nor append is set
    """
    if overwrite and append:
        raise RunDirectoryError("overwrite and append are mutually exclusive")

    parfile = Path(parfile)
    name = run_name(parfile)
    run_dir = Path(output_root) / name

    if run_dir.exists():
        if overwrite:
            logger.info(f"Removing existing run directory {run_dir}")
            shutil.rmtree(run_dir)
        elif not append:
            raise RunDirectoryError(
                f"run directory {run_dir} already exists (use --overwrite or --append)"
            )

    (run_dir / CHECKPOINTS_DIR).mkdir(parents=True, exist_ok=True)
    output_dir = allocate_output_dir(run_dir)

    staged = _stage_parfile(parfile, output_dir, move)
    rewrite_out_dir(staged, ".")

    logger.info(f"Prepared run '{name}' in {output_dir}")
    return RunLayout(name=name, run_dir=run_dir, output_dir=output_dir, parfile=staged)


def prepare_continuation(run_dir: Union[str, Path]) -> RunLayout:
    """Allocate the next output directory of an existing run.

    The parameter file of the most recent output directory is copied into
    the new one, so the run restarts from its checkpoints with the same
    settings.

    Raises:
        RunDirectoryError: If there is nothing to continue from
    """
    run_dir = Path(run_dir)
    if not run_dir.is_dir():
        raise RunDirectoryError(f"run directory does not exist: {run_dir}")

    previous = latest_output_dir(run_dir)
    if previous is None:
        raise RunDirectoryError(f"{run_dir}: no {OUTPUT_PREFIX}NNNN directory to continue from")

    parfiles = sorted(previous.glob("*.par"))
    if len(parfiles) != 1:
        raise RunDirectoryError(
            f"{previous}: expected exactly one parameter file, found {len(parfiles)}"
        )

    (run_dir / CHECKPOINTS_DIR).mkdir(parents=True, exist_ok=True)
    output_dir = allocate_output_dir(run_dir)
    staged = _stage_parfile(parfiles[0], output_dir, move=False)
    # Already "." when staged by prepare_fresh_run; rewrite anyway for hand-made runs
    rewrite_out_dir(staged, ".")

    name = run_dir.resolve().name
    logger.info(f"Continuing run '{name}' from {previous.name} in {output_dir}")
    return RunLayout(name=name, run_dir=run_dir, output_dir=output_dir, parfile=staged)
