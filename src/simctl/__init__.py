"""simctl - launch numbered simulation runs and sync them between hosts.

Two independent tools share this package:
- simrun: stage a parameter file into ``<output-root>/<run>/output-NNNN``
  and run the binary under MPI or submit it to Slurm
- simsync: rsync the project, its outputs or its checkpoints to or from
  a host named in the host table
"""

__version__ = "0.1.0"

from .core.errors import SimctlError  # noqa: I001
from .config.settings import SimctlConfig
from .config.hosts import HostTable
from .core.rundir import RunLayout, prepare_continuation, prepare_fresh_run
from .core.sync import Direction, SyncMode, SyncRequest, Syncer
from .core.launcher import Launcher, Parallelism, resolve_parallelism
from .utils.logging import setup_logging

__all__ = [
    "SimctlError",
    "SimctlConfig",
    "HostTable",
    "RunLayout",
    "prepare_fresh_run",
    "prepare_continuation",
    "Direction",
    "SyncMode",
    "SyncRequest",
    "Syncer",
    "Launcher",
    "Parallelism",
    "resolve_parallelism",
    "setup_logging",
]
