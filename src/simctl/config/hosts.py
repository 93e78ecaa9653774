"""Host table: maps short host aliases to rsync locations.

The table is a JSON object stored outside the repository, for example::

    {
        "cluster": "user@login.cluster.org:/scratch/user/project",
        "laptop": "/home/user/project"
    }
"""

import json
import logging
from pathlib import Path
from typing import Dict, List, Optional, Union

from ..core.errors import ConfigurationError, UnknownHostError

logger = logging.getLogger(__name__)


class HostTable:
    """Read-only mapping from host alias to remote path."""

    def __init__(self, hosts: Dict[str, Optional[str]], path: Optional[Path] = None):
        self._hosts = dict(hosts)
        self.path = path

    @classmethod
    def load(cls, path: Union[str, Path]) -> "HostTable":
        """Load the host table from a JSON file.

        Raises:
            ConfigurationError: If the file is missing, malformed, or not an object
                of string values
        """
        path = Path(path).expanduser()
        if not path.exists():
            raise ConfigurationError(f"Host table not found: {path}")

        try:
            with open(path) as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigurationError(f"Failed to read host table {path}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigurationError(f"Host table {path} must be a JSON object")

        for alias, value in data.items():
            if value is not None and not isinstance(value, str):
                raise ConfigurationError(
                    f"Host table {path}: value for '{alias}' must be a string"
                )

        logger.debug(f"Loaded {len(data)} host(s) from {path}")
        return cls(data, path)

    def resolve(self, alias: str) -> str:
        """Return the location registered for ``alias``.

        A JSON ``null`` is treated like a missing key.
        """
        location = self._hosts.get(alias)
        if not location:
            raise UnknownHostError(alias)
        return location

    def aliases(self) -> List[str]:
        return sorted(alias for alias, value in self._hosts.items() if value)
