"""Utility modules for simctl."""

from .logging import setup_logging
from .process import format_command, run_command, run_with_tee

__all__ = [
    "setup_logging",
    "format_command",
    "run_command",
    "run_with_tee",
]
