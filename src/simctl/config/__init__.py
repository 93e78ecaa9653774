"""Configuration management for simctl."""

from .hosts import HostTable
from .settings import LoggingConfig, RunSettings, SimctlConfig, SyncSettings
from .validation import (
    ValidationError,
    ValidationResult,
    parse_count,
    validate_run_options,
    validate_sync_options,
)

__all__ = [
    "HostTable",
    "SimctlConfig",
    "SyncSettings",
    "RunSettings",
    "LoggingConfig",
    "ValidationError",
    "ValidationResult",
    "parse_count",
    "validate_run_options",
    "validate_sync_options",
]
