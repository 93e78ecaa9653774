"""rsync-based transfers of a simulation project between hosts.

Each requested mode issues its own rsync call with its own filter rules.
rsync applies filter rules in order and the first match wins, so the order
of the ``--include``/``--exclude`` arguments below is significant.
"""

from contextlib import contextmanager
from dataclasses import dataclass, field
from enum import Enum
import glob
import logging
import os
from pathlib import Path
import tempfile
from typing import Iterator, List, Optional, Sequence

from ..utils.process import run_command
from .errors import ConfigurationError

logger = logging.getLogger(__name__)


class Direction(Enum):
    """Transfer direction relative to the local project."""

    TO = "to"
    FROM = "from"


class SyncMode(Enum):
    """What part of the project tree a transfer covers."""

    ALL = "all"
    ROOT = "root"
    SIMULATIONS = "simulations"
    OUTPUT = "output"
    CHECKPOINTS = "checkpoints"

    @classmethod
    def ordered(cls, modes: Sequence["SyncMode"]) -> List["SyncMode"]:
        """Deduplicate ``modes`` and put them in execution order."""
        return [mode for mode in cls if mode in modes]


ROOT_FILTERS = ["--delete", "--include=bin/***", "--include=par/***", "--exclude=*"]
CHECKPOINT_FILTERS = [
    "--include=*/",
    "--include=checkpoints/**",
    "--exclude=*",
    "--prune-empty-dirs",
]


def output_filters(filter_file: Path) -> List[str]:
    return [
        "--exclude=checkpoints/**",
        "--include=*/",
        f"--include-from={filter_file}",
        "--exclude=*",
        "--prune-empty-dirs",
    ]


@dataclass
class SyncRequest:
    """One invocation of the sync tool, after option parsing."""

    direction: Direction
    host: str
    location: str
    modes: List[SyncMode]
    local_root: Path = field(default_factory=Path.cwd)
    output_root: str = "simulations"
    directory: Optional[str] = None
    rsync_options: List[str] = field(default_factory=lambda: ["-avz"])
    dry_run: bool = False


@contextmanager
def filter_list(
    patterns: Sequence[str], default_file: Optional[Path] = None
) -> Iterator[Optional[Path]]:
    """Yield the include-filter file for this invocation.

    Patterns given on the command line are written to a temporary file,
    one per line, which is removed when the context exits. Without patterns
    the default file is used as is.
    """
    if not patterns:
        yield default_file
        return

    with tempfile.NamedTemporaryFile(
        mode="w", delete=False, prefix="simctl-filter-", suffix=".txt"
    ) as temp_file:
        temp_file.write("\n".join(patterns) + "\n")
        temp_file_path = Path(temp_file.name)

    logger.debug(f"Wrote {len(patterns)} filter pattern(s) to {temp_file_path}")
    try:
        yield temp_file_path
    finally:
        temp_file_path.unlink(missing_ok=True)


def _join(base: str, *parts: str) -> str:
    """Join path components onto a local path or an rsync ``host:path`` location."""
    joined = base.rstrip("/")
    for part in parts:
        if part:
            joined = f"{joined}/{part.strip('/')}"
    return joined


class Syncer:
    """Builds and runs the rsync transfers of a :class:`SyncRequest`."""

    def __init__(self, request: SyncRequest, filter_file: Optional[Path] = None):
        self.request = request
        self.filter_file = filter_file

    @property
    def local(self) -> str:
        return str(self.request.local_root)

    @property
    def remote(self) -> str:
        return self.request.location

    def _endpoints(self):
        if self.request.direction is Direction.TO:
            return self.local, self.remote
        return self.remote, self.local

    def _scoped_sources(self, source: str) -> List[str]:
        """Sources for the simulation modes, marked for ``--relative``.

        The ``/./`` marker makes rsync recreate the path below it on the
        receiving side.
        """
        scope = _join(self.request.output_root, self.request.directory or "")
        if self.request.direction is Direction.TO and self.request.directory:
            if glob.has_magic(self.request.directory):
                matches = sorted(glob.glob(os.path.join(self.local, scope)))
                if not matches:
                    raise ConfigurationError(f"no local directory matches '{scope}'")
                return [
                    _join(self.local, ".", os.path.relpath(match, self.local))
                    for match in matches
                ]
        return [_join(source, ".", scope)]

    def build_command(self, mode: SyncMode) -> List[str]:
        """Return the rsync argument list for one mode."""
        source, destination = self._endpoints()
        command = ["rsync", *self.request.rsync_options]
        if self.request.dry_run:
            command.append("--dry-run")

        if mode is SyncMode.ALL:
            return command + [source + "/", destination + "/"]

        if mode is SyncMode.ROOT:
            return command + ROOT_FILTERS + [source + "/", destination + "/"]

        command.append("--relative")
        if mode is SyncMode.OUTPUT:
            if self.filter_file is None:
                raise ConfigurationError("no filter list available for --output")
            if not Path(self.filter_file).is_file():
                raise ConfigurationError(f"filter file not found: {self.filter_file}")
            command += output_filters(Path(self.filter_file))
        elif mode is SyncMode.CHECKPOINTS:
            command += CHECKPOINT_FILTERS

        return command + self._scoped_sources(source) + [destination + "/"]

    def run(self) -> int:
        """Run one transfer per requested mode.

        Stops at the first failing transfer.

        Returns:
            0 on success, otherwise the failing rsync's exit code
        """
        modes = SyncMode.ordered(self.request.modes)
        commands = [(mode, self.build_command(mode)) for mode in modes]

        for mode, command in commands:
            logger.info(
                f"Syncing {mode.value} {self.request.direction.value} {self.request.host}"
            )
            result = run_command(command)
            if result.returncode != 0:
                logger.error(f"rsync failed for {mode.value} with exit code {result.returncode}")
                return result.returncode

        return 0
