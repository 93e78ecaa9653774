"""simctl configuration management.

This module provides the defaults both tools fall back on: where the host
table and default filter list live, which launchers to call, and how the
run tool names its log and batch script.
"""

from dataclasses import dataclass, field
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml

from ..core.errors import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_HOSTS_FILE = "~/.config/simctl/hosts.json"
DEFAULT_OUTPUT_ROOT = "simulations"
PACKAGED_FILTER_FILE = Path(__file__).parent.parent / "data" / "include.txt"


@dataclass
class SyncSettings:
    """Defaults for the sync tool."""

    hosts_file: str = DEFAULT_HOSTS_FILE
    filter_file: Optional[str] = None
    rsync_options: List[str] = field(default_factory=lambda: ["-avz"])
    output_root: str = DEFAULT_OUTPUT_ROOT

    def get_hosts_file(self) -> Path:
        """Host table path, honouring the SIMCTL_HOSTS override."""
        return Path(os.environ.get("SIMCTL_HOSTS", self.hosts_file)).expanduser()

    def get_filter_file(self) -> Path:
        """Default include-filter file; the packaged list unless configured."""
        if self.filter_file:
            return Path(self.filter_file).expanduser()
        return PACKAGED_FILTER_FILE

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "hosts_file": self.hosts_file,
            "filter_file": self.filter_file,
            "rsync_options": list(self.rsync_options),
            "output_root": self.output_root,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SyncSettings":
        """Create from dictionary."""
        return cls(
            hosts_file=data.get("hosts_file", DEFAULT_HOSTS_FILE),
            filter_file=data.get("filter_file"),
            rsync_options=list(data.get("rsync_options", ["-avz"])),
            output_root=data.get("output_root", DEFAULT_OUTPUT_ROOT),
        )


@dataclass
class RunSettings:
    """Defaults for the run tool."""

    output_root: str = DEFAULT_OUTPUT_ROOT
    log_file: str = "output.log"
    launcher: str = "mpirun"
    launcher_args: List[str] = field(default_factory=lambda: ["--bind-to", "none"])
    batch_command: str = "sbatch"
    batch_runner: str = "srun"
    batch_runner_args: List[str] = field(default_factory=lambda: ["--cpu-bind=none"])
    script_name: str = "submit.sh"
    env_var: str = "SIMCTL_ENV"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "output_root": self.output_root,
            "log_file": self.log_file,
            "launcher": self.launcher,
            "launcher_args": list(self.launcher_args),
            "batch_command": self.batch_command,
            "batch_runner": self.batch_runner,
            "batch_runner_args": list(self.batch_runner_args),
            "script_name": self.script_name,
            "env_var": self.env_var,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RunSettings":
        """Create from dictionary."""
        defaults = cls()
        return cls(
            output_root=data.get("output_root", defaults.output_root),
            log_file=data.get("log_file", defaults.log_file),
            launcher=data.get("launcher", defaults.launcher),
            launcher_args=list(data.get("launcher_args", defaults.launcher_args)),
            batch_command=data.get("batch_command", defaults.batch_command),
            batch_runner=data.get("batch_runner", defaults.batch_runner),
            batch_runner_args=list(data.get("batch_runner_args", defaults.batch_runner_args)),
            script_name=data.get("script_name", defaults.script_name),
            env_var=data.get("env_var", defaults.env_var),
        )


@dataclass
class LoggingConfig:
    """Logging configuration settings."""

    level: str = "INFO"
    file: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {"level": self.level, "file": self.file}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LoggingConfig":
        """Create from dictionary."""
        return cls(level=data.get("level", "INFO"), file=data.get("file"))


@dataclass
class SimctlConfig:
    """Main simctl configuration class.

    Populated once per invocation, either from ``simctl.yaml`` or from the
    built-in defaults when no file is found.
    """

    sync: SyncSettings = field(default_factory=SyncSettings)
    run: RunSettings = field(default_factory=RunSettings)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    source: Optional[Path] = None

    @staticmethod
    def find_config_file() -> Optional[Path]:
        """Find simctl.yaml in the standard locations."""
        env_path = os.environ.get("SIMCTL_CONFIG")
        if env_path:
            return Path(env_path).expanduser()

        search_paths = [
            Path.cwd() / "simctl.yaml",
            Path.cwd() / ".simctl" / "config.yaml",
            Path.home() / ".config" / "simctl" / "config.yaml",
        ]

        for path in search_paths:
            if path.exists():
                logger.debug(f"Found simctl config at: {path}")
                return path

        logger.debug("No simctl.yaml found in standard locations")
        return None

    @classmethod
    def load(cls, config_path: Optional[Union[str, Path]] = None) -> "SimctlConfig":
        """Load configuration from file.

        Args:
            config_path: Path to simctl.yaml. If None, searches standard locations.

        Returns:
            SimctlConfig instance, with defaults when no file exists

        Raises:
            ConfigurationError: If an explicitly named or discovered file is unusable
        """
        path = Path(config_path).expanduser() if config_path else cls.find_config_file()
        if path is None:
            return cls()

        if not path.exists():
            raise ConfigurationError(f"Configuration file not found: {path}")

        try:
            with open(path) as f:
                config_data = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            raise ConfigurationError(f"Failed to load configuration from {path}: {e}") from e

        if config_data is None:
            config_data = {}
        if not isinstance(config_data, dict):
            raise ConfigurationError(f"Configuration in {path} must be a mapping")

        logger.debug(f"Loaded simctl config from {path}")
        config = cls.from_dict(config_data)
        config.source = path
        return config

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SimctlConfig":
        """Create SimctlConfig from dictionary."""
        return cls(
            sync=SyncSettings.from_dict(data.get("sync") or {}),
            run=RunSettings.from_dict(data.get("run") or {}),
            logging=LoggingConfig.from_dict(data.get("logging") or {}),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "sync": self.sync.to_dict(),
            "run": self.run.to_dict(),
            "logging": self.logging.to_dict(),
        }

    def save(self, output_path: Union[str, Path]) -> None:
        """Save configuration to a YAML file."""
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)

        with open(output_path, "w") as f:
            yaml.dump(self.to_dict(), f, default_flow_style=False, indent=2, sort_keys=False)

        logger.debug(f"Saved simctl config to {output_path}")

    @staticmethod
    def create_default_config(output_path: Union[str, Path]) -> None:
        """Create a default configuration file with comments."""
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)

        config_content = f"""# simctl configuration file

# Sync tool (simsync)
sync:
  hosts_file: "{DEFAULT_HOSTS_FILE}"  # JSON object: host alias -> rsync location
  filter_file: null  # Include patterns for --output (null for the packaged list)
  rsync_options: ["-avz"]
  output_root: "{DEFAULT_OUTPUT_ROOT}"  # Directory holding the run directories

# Run tool (simrun)
run:
  output_root: "{DEFAULT_OUTPUT_ROOT}"
  log_file: "output.log"  # Written inside each output-NNNN directory
  launcher: "mpirun"
  launcher_args: ["--bind-to", "none"]
  batch_command: "sbatch"
  batch_runner: "srun"
  batch_runner_args: ["--cpu-bind=none"]
  script_name: "submit.sh"
  env_var: "SIMCTL_ENV"  # Variable naming a shell file sourced before launching

logging:
  level: "INFO"
  file: null
"""

        with open(output_path, "w") as f:
            f.write(config_content)

        logger.info(f"Created default simctl config at {output_path}")
