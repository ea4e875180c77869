"""Tests for the command line entry point."""

from pathlib import Path

import pytest

from peragus import cli
from peragus.mcp import config as config_module


@pytest.fixture(autouse=True)
def no_global_config(tmp_path, monkeypatch):
    monkeypatch.setattr(config_module, "GLOBAL_MCP_CONFIG", tmp_path / "absent.json")
    monkeypatch.chdir(tmp_path)


class TestResolveConfig:
    """Tests for layering flags over config files."""

    def test_flags_override_defaults(self, tmp_path):
        args = cli.build_parser().parse_args(
            ["--transport", "stdio", "--port", "9999", "--base-dir", str(tmp_path / "books")]
        )

        config = cli.resolve_config(args)

        assert config.transport == "stdio"
        assert config.port == 9999
        assert config.base_dir == tmp_path / "books"

    def test_log_level_case_insensitive(self):
        args = cli.build_parser().parse_args(["--log-level", "debug"])
        assert cli.resolve_config(args).log_level == "DEBUG"

    def test_unset_flags_keep_file_values(self, tmp_path):
        local = tmp_path / ".peragus" / "mcp-server.json"
        local.parent.mkdir()
        local.write_text('{"port": 4321}')

        config = cli.resolve_config(cli.build_parser().parse_args([]))

        assert config.port == 4321
        assert config.transport == "http"

    def test_bad_transport_rejected(self):
        with pytest.raises(SystemExit):
            cli.build_parser().parse_args(["--transport", "smtp"])

    def test_missing_config_file_is_usage_error(self):
        with pytest.raises(SystemExit):
            cli.main(["--config", str(Path("does-not-exist.json"))])
