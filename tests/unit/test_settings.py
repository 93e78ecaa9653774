"""Unit tests for simctl.yaml loading."""

from pathlib import Path

import pytest
import yaml

from simctl.config.settings import PACKAGED_FILTER_FILE, SimctlConfig
from simctl.core.errors import ConfigurationError

pytestmark = pytest.mark.unit


class TestSimctlConfig:
    def test_defaults_without_file(self):
        config = SimctlConfig.load()

        assert config.source is None
        assert config.run.output_root == "simulations"
        assert config.run.log_file == "output.log"
        assert config.run.launcher == "mpirun"
        assert config.run.batch_runner_args == ["--cpu-bind=none"]
        assert config.sync.rsync_options == ["-avz"]
        assert config.sync.get_filter_file() == PACKAGED_FILTER_FILE
        assert PACKAGED_FILTER_FILE.is_file()

    def test_found_in_working_directory(self, work_dir):
        (work_dir / "simctl.yaml").write_text(
            yaml.dump({"run": {"log_file": "sim.log", "launcher": "srun"}})
        )

        config = SimctlConfig.load()

        assert config.source == work_dir / "simctl.yaml"
        assert config.run.log_file == "sim.log"
        assert config.run.launcher == "srun"
        # Unset keys keep their defaults
        assert config.run.output_root == "simulations"

    def test_env_variable_points_at_config(self, tmp_path, monkeypatch):
        path = tmp_path / "custom.yaml"
        path.write_text(yaml.dump({"sync": {"output_root": "runs"}}))
        monkeypatch.setenv("SIMCTL_CONFIG", str(path))

        assert SimctlConfig.load().sync.output_root == "runs"

    def test_explicit_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError, match="not found"):
            SimctlConfig.load(tmp_path / "absent.yaml")

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("run: [unclosed\n")
        with pytest.raises(ConfigurationError, match="Failed to load"):
            SimctlConfig.load(path)

    def test_non_mapping(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ConfigurationError, match="mapping"):
            SimctlConfig.load(path)

    def test_empty_file_gives_defaults(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert SimctlConfig.load(path).to_dict() == SimctlConfig().to_dict()

    def test_save_and_reload(self, tmp_path):
        config = SimctlConfig()
        config.run.env_var = "MY_ENV"
        config.sync.rsync_options = ["-av", "--partial"]
        path = tmp_path / "saved" / "simctl.yaml"

        config.save(path)
        reloaded = SimctlConfig.load(path)

        assert reloaded.run.env_var == "MY_ENV"
        assert reloaded.sync.rsync_options == ["-av", "--partial"]

    def test_default_config_template_loads(self, tmp_path):
        path = tmp_path / "simctl.yaml"
        SimctlConfig.create_default_config(path)

        assert SimctlConfig.load(path).to_dict() == SimctlConfig().to_dict()

    def test_hosts_file_env_override(self, tmp_path, monkeypatch):
        monkeypatch.setenv("SIMCTL_HOSTS", str(tmp_path / "hosts.json"))
        assert SimctlConfig().sync.get_hosts_file() == tmp_path / "hosts.json"

    def test_hosts_file_expands_home(self):
        assert SimctlConfig().sync.get_hosts_file() == (
            Path.home() / ".config" / "simctl" / "hosts.json"
        )
