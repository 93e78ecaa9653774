"""Core operations: run-directory allocation, launching and syncing."""

from .errors import (
    ConfigurationError,
    LaunchError,
    ParfileError,
    RunDirectoryError,
    SimctlError,
    UnknownHostError,
)

__all__ = [
    "SimctlError",
    "ConfigurationError",
    "UnknownHostError",
    "ParfileError",
    "RunDirectoryError",
    "LaunchError",
]
