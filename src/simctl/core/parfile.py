"""Reading and rewriting the output-directory key of a parameter file.

Only ``IO::out_dir`` is touched. ``IO::checkpoint_dir`` and
``IO::recover_dir`` are expected to point one level up from the numbered
output directory (e.g. ``"../checkpoints"``) and are left alone.
"""

import logging
from pathlib import Path
import re
from typing import Optional, Union

from .errors import ParfileError

logger = logging.getLogger(__name__)

OUT_DIR_KEY = "IO::out_dir"

# Undecodable bytes, e.g. Latin-1 comments, round-trip unchanged
ENCODING = "utf-8"
ENCODING_ERRORS = "surrogateescape"

_OUT_DIR_RE = re.compile(
    r'^(?P<prefix>\s*IO::out_dir\s*=\s*)(?P<value>"[^"]*"|\S+)(?P<suffix>.*)$',
    re.IGNORECASE,
)


def _match_out_dir(line: str) -> Optional["re.Match"]:
    return _OUT_DIR_RE.match(line)


def _read_parfile(parfile: Path) -> str:
    try:
        data = parfile.read_bytes()
    except OSError as e:
        raise ParfileError(f"cannot read parameter file {parfile}: {e}") from e
    return data.decode(ENCODING, errors=ENCODING_ERRORS)


def read_out_dir(parfile: Union[str, Path]) -> str:
    """Return the value of the first ``IO::out_dir`` line, unquoted.

    Raises:
        ParfileError: If the file cannot be read or has no such line
    """
    parfile = Path(parfile)
    text = _read_parfile(parfile)

    for line in text.splitlines():
        match = _match_out_dir(line)
        if match:
            return match.group("value").strip('"')

    raise ParfileError(f"{parfile}: no {OUT_DIR_KEY} setting found")


def run_name(parfile: Union[str, Path]) -> str:
    """Derive the run name from the parameter file's ``IO::out_dir``.

    Raises:
        ParfileError: If the value is empty or still contains a variable
            reference such as ``$parfile``
    """
    value = read_out_dir(parfile)
    if "$" in value:
        raise ParfileError(
            f"{parfile}: {OUT_DIR_KEY} = \"{value}\" contains an unresolved variable"
        )
    name = value.strip().rstrip("/")
    if not name or name == ".":
        raise ParfileError(f"{parfile}: {OUT_DIR_KEY} does not name a run directory")
    return name


def rewrite_out_dir(parfile: Union[str, Path], value: str = ".") -> int:
    """Point every ``IO::out_dir`` line of ``parfile`` at ``value``.

    Returns:
        Number of lines rewritten
    """
    parfile = Path(parfile)
    lines = _read_parfile(parfile).splitlines(keepends=True)
    rewritten = 0

    for i, line in enumerate(lines):
        ending = line[len(line.rstrip("\r\n")) :]
        match = _match_out_dir(line.rstrip("\r\n"))
        if match:
            lines[i] = f'{match.group("prefix")}"{value}"{match.group("suffix")}{ending}'
            rewritten += 1

    try:
        parfile.write_bytes("".join(lines).encode(ENCODING, errors=ENCODING_ERRORS))
    except OSError as e:
        raise ParfileError(f"cannot write parameter file {parfile}: {e}") from e
    logger.debug(f"Rewrote {rewritten} {OUT_DIR_KEY} line(s) in {parfile}")
    return rewritten
