"""Command-line option validation for the sync and run tools.

All checks here are pure: they look at the parsed options (and at most at
file existence) and never touch the run tree or start a transfer, so a
failed validation leaves everything as it was.
"""

import logging
from pathlib import Path
from typing import List, Optional, Sequence, Union

logger = logging.getLogger(__name__)

ALL_CORES = "all"

Count = Union[int, str]


class ValidationError:
    """Represents a validation error with severity and context."""

    def __init__(
        self,
        message: str,
        severity: str = "error",
        field: Optional[str] = None,
        suggestion: Optional[str] = None,
    ):
        self.message = message
        self.severity = severity  # "error", "warning"
        self.field = field
        self.suggestion = suggestion

    def __str__(self) -> str:
        prefix = f"[{self.severity.upper()}]"
        if self.field:
            prefix += f" {self.field}:"

        result = f"{prefix} {self.message}"
        if self.suggestion:
            result += f" (Suggestion: {self.suggestion})"

        return result


class ValidationResult:
    """Container for validation results with errors and warnings."""

    def __init__(self):
        self.errors: List[ValidationError] = []
        self.warnings: List[ValidationError] = []

    def add_error(
        self, message: str, field: Optional[str] = None, suggestion: Optional[str] = None
    ):
        """Add an error to the validation result."""
        self.errors.append(ValidationError(message, "error", field, suggestion))

    def add_warning(
        self, message: str, field: Optional[str] = None, suggestion: Optional[str] = None
    ):
        """Add a warning to the validation result."""
        self.warnings.append(ValidationError(message, "warning", field, suggestion))

    @property
    def is_valid(self) -> bool:
        """Check if validation passed (no errors)."""
        return len(self.errors) == 0

    def get_all_messages(self) -> List[str]:
        """Get all validation messages as strings, errors first."""
        return [str(error) for error in self.errors] + [str(w) for w in self.warnings]


def parse_count(value: Optional[str]) -> Optional[Count]:
    """Parse a thread/process count: a positive integer or ``all``.

    Args:
        value: Raw option value, or None when the option was not given

    Returns:
        The integer, the string ``"all"``, or None

    Raises:
        ValueError: If the value is neither
    """
    if value is None:
        return None
    if isinstance(value, int):
        count = value
    else:
        text = str(value).strip().lower()
        if text == ALL_CORES:
            return ALL_CORES
        try:
            count = int(text)
        except ValueError:
            raise ValueError(f"expected a positive integer or '{ALL_CORES}', got '{value}'")
    if count < 1:
        raise ValueError(f"expected a positive integer or '{ALL_CORES}', got '{value}'")
    return count


def validate_sync_options(
    to_host: Optional[str],
    from_host: Optional[str],
    modes: List,
    patterns: Sequence[str] = (),
) -> ValidationResult:
    """Validate direction and mode flags of the sync tool."""
    result = ValidationResult()

    if to_host and from_host:
        result.add_error("--to and --from are mutually exclusive", field="direction")
    elif not to_host and not from_host:
        result.add_error(
            "no direction given", field="direction", suggestion="use --to HOST or --from HOST"
        )

    if not modes:
        result.add_error(
            "no sync mode given",
            field="mode",
            suggestion="use one or more of --all, --root, --simulations, --output, --checkpoints",
        )

    mode_names = {getattr(mode, "value", mode) for mode in modes}
    if patterns and "output" not in mode_names:
        result.add_warning(
            "filter patterns only apply to --output and are ignored", field="patterns"
        )

    return result


def validate_run_options(
    executable: Optional[Path],
    parfile: Optional[Path],
    continue_dir: Optional[Path],
    overwrite: bool,
    append: bool,
    move: bool,
    threads: Optional[str],
    processes: Optional[str],
    sbatch: bool = False,
    extra_args: Sequence[str] = (),
) -> ValidationResult:
    """Validate the run tool's flag combinations before anything is created."""
    result = ValidationResult()

    if executable is None:
        result.add_error("an executable is required", field="--exe")
    elif not executable.is_file():
        result.add_error(f"executable does not exist: {executable}", field="--exe")

    if continue_dir is None and parfile is None:
        result.add_error("a parameter file is required", field="--par")
    if continue_dir is not None and parfile is not None:
        result.add_error("--par and --continue are mutually exclusive", field="--continue")

    if overwrite and append:
        result.add_error("--overwrite and --append are mutually exclusive", field="--overwrite")

    if continue_dir is not None:
        for flag, given in (("--overwrite", overwrite), ("--append", append), ("--move", move)):
            if given:
                result.add_error(f"{flag} cannot be combined with --continue", field=flag)
        if not continue_dir.is_dir():
            result.add_error(f"run directory does not exist: {continue_dir}", field="--continue")

    if parfile is not None and not parfile.is_file():
        result.add_error(f"parameter file does not exist: {parfile}", field="--par")

    for name, value in (("--threads", threads), ("--processes", processes)):
        try:
            parse_count(value)
        except ValueError as e:
            result.add_error(str(e), field=name)

    if extra_args and not sbatch:
        result.add_warning(
            f"arguments after -- are only used with --sbatch and are ignored: "
            f"{' '.join(extra_args)}",
            field="extra_args",
        )

    return result
