"""
Tests for the modbridge CLI.
"""

import json

import pytest
from click.testing import CliRunner

from modbridge.cli import main
from modbridge.config import Config

from conftest import APP_ID, FakeDevice, manifest_dict


@pytest.fixture
def data_dir(tmp_path):
    path = tmp_path / "cli-data"
    Config(app_id=APP_ID, data_dir=path).save()
    return path


def invoke(data_dir, device, *args):
    runner = CliRunner()
    return runner.invoke(main, ["--data-dir", str(data_dir), *args], obj={"port": device})


class TestCli:
    """Smoke tests against an in-memory device."""

    def test_init_writes_config(self, tmp_path):
        runner = CliRunner()
        result = runner.invoke(main, ["--data-dir", str(tmp_path), "init", "--app-id", "com.x", "--serial", "S9"])

        assert result.exit_code == 0
        config = Config.load(tmp_path)
        assert config.app_id == "com.x"
        assert config.device_serial == "S9"

    def test_requires_app_id(self, tmp_path):
        result = invoke(tmp_path, FakeDevice(), "list")
        assert result.exit_code == 1
        assert "init" in result.output

    def test_each_invocation_reads_its_data_dir(self, data_dir, tmp_path):
        """Configuration is not carried over between invocations."""
        assert invoke(data_dir, FakeDevice(), "list").exit_code == 0

        result = invoke(tmp_path / "unconfigured", FakeDevice(), "list")

        assert result.exit_code == 1
        assert "init" in result.output

    def test_list_empty(self, data_dir):
        result = invoke(data_dir, FakeDevice(), "list")
        assert result.exit_code == 0
        assert "No mods installed" in result.output

    def test_install_list_uninstall(self, data_dir, make_archive):
        device = FakeDevice()
        archive = make_archive(manifest_dict("m1", mod_files=["mod.so"], library_files=["lib.so"]))

        result = invoke(data_dir, device, "install", str(archive))
        assert result.exit_code == 0, result.output
        assert "Installed m1" in result.output

        result = invoke(data_dir, device, "list")
        assert result.exit_code == 0
        assert "m1" in result.output

        result = invoke(data_dir, device, "info", "m1")
        assert result.exit_code == 0
        assert "lib.so" in result.output

        result = invoke(data_dir, device, "uninstall", "m1")
        assert result.exit_code == 0, result.output
        assert "Uninstalled m1" in result.output
        assert device.files == {}

    def test_install_failure_exit_code(self, data_dir, make_archive):
        archive = make_archive(manifest_dict("m1", game_id="com.other"))

        result = invoke(data_dir, FakeDevice(), "install", str(archive))

        assert result.exit_code == 1
        assert "com.other" in result.output

    def test_uninstall_unknown(self, data_dir):
        result = invoke(data_dir, FakeDevice(), "uninstall", "ghost")
        assert result.exit_code == 1
        assert "not installed" in result.output

    def test_list_reports_corrupt_manifest(self, data_dir):
        device = FakeDevice()
        layout = Config.load(data_dir).remote_layout()
        device.put(layout.manifest_path("good"), json.dumps(manifest_dict("good")))
        device.put(layout.manifest_path("bad"), "{")

        result = invoke(data_dir, device, "list")

        assert result.exit_code == 0
        assert "good" in result.output
        assert "bad.json" in result.output
