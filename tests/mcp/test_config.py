"""Tests for server configuration loading."""

import json
from pathlib import Path

import pytest

from peragus.mcp import config as config_module
from peragus.mcp.config import ServerConfig, load_server_config


@pytest.fixture
def global_config(tmp_path, monkeypatch):
    """Point the global config at a temporary file."""
    path = tmp_path / "home" / "mcp-server.json"
    monkeypatch.setattr(config_module, "GLOBAL_MCP_CONFIG", path)
    return path


def write(path: Path, data) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data))
    return path


class TestServerConfig:
    """Tests for ServerConfig validation."""

    def test_defaults(self):
        config = ServerConfig()
        assert config.transport == "http"
        assert config.port == 2150
        assert config.base_dir.name == "srcbooks"

    def test_log_level_normalized(self):
        assert ServerConfig(log_level="debug").log_level == "DEBUG"

    @pytest.mark.parametrize(
        "kwargs",
        [{"transport": "carrier-pigeon"}, {"log_level": "LOUD"}, {"port": 70000}],
    )
    def test_invalid_values(self, kwargs):
        with pytest.raises(ValueError):
            ServerConfig(**kwargs)

    def test_from_dict_accepts_camel_case(self):
        config = ServerConfig.from_dict({"baseDir": "/tmp/books", "logLevel": "warning", "extra": 1})
        assert config.base_dir == Path("/tmp/books")
        assert config.log_level == "WARNING"

    def test_with_overrides_skips_none(self):
        config = ServerConfig(port=9000).with_overrides(port=None, host="0.0.0.0")
        assert config.port == 9000
        assert config.host == "0.0.0.0"


class TestLoadServerConfig:
    """Tests for layered config loading."""

    def test_nothing_configured(self, tmp_path, global_config):
        assert load_server_config(working_dir=tmp_path) == ServerConfig()

    def test_local_overrides_global(self, tmp_path, global_config):
        write(global_config, {"port": 3000, "host": "0.0.0.0"})
        write(tmp_path / ".peragus" / "mcp-server.json", {"port": 4000})

        config = load_server_config(working_dir=tmp_path)

        assert config.port == 4000
        assert config.host == "0.0.0.0"

    def test_explicit_path_wins(self, tmp_path, global_config):
        write(tmp_path / ".peragus" / "mcp-server.json", {"port": 4000})
        explicit = write(tmp_path / "custom.json", {"server": {"port": 5000}})

        config = load_server_config(working_dir=tmp_path, config_path=explicit)

        assert config.port == 5000

    def test_missing_explicit_path(self, tmp_path, global_config):
        with pytest.raises(FileNotFoundError):
            load_server_config(config_path=tmp_path / "nope.json")

    def test_unreadable_file_skipped(self, tmp_path, global_config):
        global_config.parent.mkdir(parents=True)
        global_config.write_text("{broken")

        assert load_server_config().port == 2150
