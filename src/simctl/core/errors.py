"""Exceptions raised by simctl operations.

Every failure the tools report to the user derives from :class:`SimctlError`.
The CLI layer prints the message and exits with status 1.
"""


class SimctlError(Exception):
    """Base class for all simctl errors."""

    pass


class ConfigurationError(SimctlError):
    """Raised when a configuration file or host table cannot be used."""

    pass


class UnknownHostError(SimctlError):
    """Raised when a host alias is not present in the host table."""

    def __init__(self, alias: str):
        super().__init__(f"unknown host '{alias}'")
        self.alias = alias


class ParfileError(SimctlError):
    """Raised when a parameter file is missing a key or holds an unusable value."""

    pass


class RunDirectoryError(SimctlError):
    """Raised when a run directory cannot be created, reused or continued."""

    pass


class LaunchError(SimctlError):
    """Raised when the environment for a launch cannot be prepared."""

    pass
