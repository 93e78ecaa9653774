"""
Pytest configuration and shared fixtures for the simctl test suite.
"""

import json
from pathlib import Path
import subprocess

from click.testing import CliRunner
import pytest

PARFILE_TEMPLATE = """\
# Test parameter file
ActiveThorns = "IOUtil CarpetIOBasic"

Cactus::cctk_itlast = 10

IO::out_dir = "{out_dir}"
IO::checkpoint_dir = "../checkpoints"
IO::recover_dir = "../checkpoints"
IO::recover = "autoprobe"
"""


@pytest.fixture(autouse=True)
def isolated_environment(tmp_path, monkeypatch):
    """Run every test in an empty working tree with no user configuration."""
    home = tmp_path / "home"
    home.mkdir()
    work = tmp_path / "work"
    work.mkdir()
    monkeypatch.setenv("HOME", str(home))
    for var in ("SIMCTL_CONFIG", "SIMCTL_HOSTS", "SIMCTL_ENV"):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(work)
    return work


@pytest.fixture
def cli_runner():
    """Provide a Click CLI runner for testing CLI commands."""
    return CliRunner()


@pytest.fixture
def work_dir(isolated_environment):
    """The current working directory of the test."""
    return isolated_environment


@pytest.fixture
def make_parfile(work_dir):
    """Factory writing a parameter file with the given IO::out_dir."""

    def _make(out_dir: str = "sim1", name: str = "sim1.par", directory: Path = None) -> Path:
        directory = directory or work_dir / "par"
        directory.mkdir(parents=True, exist_ok=True)
        parfile = directory / name
        parfile.write_text(PARFILE_TEMPLATE.format(out_dir=out_dir))
        return parfile

    return _make


@pytest.fixture
def parfile(make_parfile):
    return make_parfile()


@pytest.fixture
def executable(work_dir):
    """A stand-in simulation binary."""
    exe_dir = work_dir / "exe"
    exe_dir.mkdir()
    exe = exe_dir / "cactus_sim"
    exe.write_text("#!/bin/sh\necho simulating \"$@\"\n")
    exe.chmod(0o755)
    return exe


@pytest.fixture
def hosts_file(tmp_path):
    """A host table with one real and one null entry."""
    path = tmp_path / "hosts.json"
    path.write_text(
        json.dumps({"cluster": "user@cluster.example.org:/scratch/user/project", "retired": None})
    )
    return path


@pytest.fixture
def completed():
    """Factory for fake subprocess results."""

    def _completed(returncode: int = 0, stdout: str = "", stderr: str = ""):
        return subprocess.CompletedProcess(
            args=[], returncode=returncode, stdout=stdout, stderr=stderr
        )

    return _completed
