"""Unit tests for rsync command construction and dispatch."""

from pathlib import Path
from unittest.mock import patch

import pytest

from simctl.core.errors import ConfigurationError
from simctl.core.sync import Direction, SyncMode, SyncRequest, Syncer, filter_list

pytestmark = pytest.mark.unit

REMOTE = "user@cluster:/scratch/project"


def make_request(direction=Direction.TO, modes=(SyncMode.ROOT,), **kwargs):
    options = dict(
        direction=direction,
        host="cluster",
        location=REMOTE,
        modes=list(modes),
        local_root=Path("/home/me/project"),
    )
    options.update(kwargs)
    return SyncRequest(**options)


@pytest.fixture
def filter_file(tmp_path):
    path = tmp_path / "include.txt"
    path.write_text("*.par\n*.h5\n")
    return path


class TestBuildCommand:
    def test_root_push(self):
        command = Syncer(make_request()).build_command(SyncMode.ROOT)

        assert command == [
            "rsync",
            "-avz",
            "--delete",
            "--include=bin/***",
            "--include=par/***",
            "--exclude=*",
            "/home/me/project/",
            REMOTE + "/",
        ]

    def test_root_pull_swaps_endpoints(self):
        command = Syncer(make_request(Direction.FROM)).build_command(SyncMode.ROOT)
        assert command[-2:] == [REMOTE + "/", "/home/me/project/"]

    def test_all_has_no_filters(self):
        command = Syncer(make_request()).build_command(SyncMode.ALL)
        assert command == ["rsync", "-avz", "/home/me/project/", REMOTE + "/"]

    def test_simulations_is_scoped_and_relative(self):
        command = Syncer(make_request()).build_command(SyncMode.SIMULATIONS)

        assert "--relative" in command
        assert "--delete" not in command
        assert command[-2:] == ["/home/me/project/./simulations", REMOTE + "/"]

    def test_output_filter_order(self, filter_file):
        command = Syncer(make_request(), filter_file).build_command(SyncMode.OUTPUT)

        filters = [arg for arg in command if arg.startswith(("--include", "--exclude"))]
        assert filters == [
            "--exclude=checkpoints/**",
            "--include=*/",
            f"--include-from={filter_file}",
            "--exclude=*",
        ]
        assert "--prune-empty-dirs" in command

    def test_output_needs_filter_file(self, tmp_path):
        syncer = Syncer(make_request(), tmp_path / "missing.txt")
        with pytest.raises(ConfigurationError, match="filter file not found"):
            syncer.build_command(SyncMode.OUTPUT)

    def test_checkpoints_filters(self):
        command = Syncer(make_request()).build_command(SyncMode.CHECKPOINTS)
        assert "--include=checkpoints/**" in command
        assert command.index("--include=*/") < command.index("--exclude=*")

    def test_directory_suffix(self):
        request = make_request(Direction.FROM, directory="sim1")
        command = Syncer(request).build_command(SyncMode.SIMULATIONS)
        assert command[-2:] == [REMOTE + "/./simulations/sim1", "/home/me/project/"]

    def test_remote_glob_left_to_remote_shell(self):
        request = make_request(Direction.FROM, directory="tov_*")
        command = Syncer(request).build_command(SyncMode.CHECKPOINTS)
        assert command[-2] == REMOTE + "/./simulations/tov_*"

    def test_local_glob_is_expanded(self, tmp_path):
        for name in ("tov_a", "tov_b", "other"):
            (tmp_path / "simulations" / name).mkdir(parents=True)
        request = make_request(directory="tov_*", local_root=tmp_path)

        command = Syncer(request).build_command(SyncMode.SIMULATIONS)

        assert command[-3:] == [
            f"{tmp_path}/./simulations/tov_a",
            f"{tmp_path}/./simulations/tov_b",
            REMOTE + "/",
        ]

    def test_local_glob_without_match(self, tmp_path):
        request = make_request(directory="nothing_*", local_root=tmp_path)
        with pytest.raises(ConfigurationError, match="no local directory"):
            Syncer(request).build_command(SyncMode.SIMULATIONS)

    def test_dry_run_and_custom_options(self):
        request = make_request(rsync_options=["-av", "--partial"], dry_run=True)
        command = Syncer(request).build_command(SyncMode.ALL)
        assert command[:4] == ["rsync", "-av", "--partial", "--dry-run"]


class TestRun:
    def test_one_transfer_per_mode_in_order(self, filter_file, completed):
        request = make_request(modes=[SyncMode.OUTPUT, SyncMode.ROOT, SyncMode.ROOT])
        with patch("simctl.core.sync.run_command", return_value=completed(0)) as run:
            assert Syncer(request, filter_file).run() == 0

        assert run.call_count == 2
        first, second = (call.args[0] for call in run.call_args_list)
        assert "--delete" in first
        assert f"--include-from={filter_file}" in second

    def test_stops_at_first_failure(self, completed):
        request = make_request(modes=[SyncMode.ROOT, SyncMode.SIMULATIONS])
        with patch("simctl.core.sync.run_command", return_value=completed(23)) as run:
            assert Syncer(request).run() == 23

        assert run.call_count == 1

    def test_invalid_mode_fails_before_any_transfer(self, tmp_path):
        request = make_request(modes=[SyncMode.ROOT, SyncMode.OUTPUT])
        with patch("simctl.core.sync.run_command") as run:
            with pytest.raises(ConfigurationError):
                Syncer(request, tmp_path / "missing.txt").run()

        run.assert_not_called()


class TestFilterList:
    def test_default_file_without_patterns(self, filter_file):
        with filter_list((), filter_file) as path:
            assert path == filter_file
        assert filter_file.exists()

    def test_patterns_written_to_temporary_file(self):
        with filter_list(["*.h5", "*.asc"]) as path:
            assert path.read_text() == "*.h5\n*.asc\n"
        assert not path.exists()

    def test_temporary_file_removed_on_error(self):
        with pytest.raises(RuntimeError):
            with filter_list(["*.h5"]) as path:
                raise RuntimeError("transfer blew up")
        assert not path.exists()


class TestSyncMode:
    def test_ordered(self):
        modes = [SyncMode.CHECKPOINTS, SyncMode.ALL, SyncMode.CHECKPOINTS]
        assert SyncMode.ordered(modes) == [SyncMode.ALL, SyncMode.CHECKPOINTS]
