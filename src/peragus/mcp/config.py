"""MCP server configuration loading."""

import logging
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any

from peragus.lib import oj

logger = logging.getLogger(__name__)

# Config file locations
MCP_CONFIG_FILENAME = "mcp-server.json"
GLOBAL_MCP_CONFIG = Path.home() / ".peragus" / MCP_CONFIG_FILENAME
LOCAL_MCP_CONFIG_DIR = ".peragus"

TRANSPORTS = ("http", "stdio")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class ServerConfig:
    """Configuration for the notebook MCP server."""

    name: str = "peragus-mcp-server"
    version: str = "0.1.0"
    base_dir: Path = field(default_factory=lambda: Path.home() / ".peragus" / "srcbooks")
    transport: str = "http"
    host: str = "127.0.0.1"
    port: int = 2150
    log_level: str = "INFO"
    instructions: str | None = None

    def __post_init__(self) -> None:
        """Normalize and validate configuration."""
        self.base_dir = Path(self.base_dir).expanduser()
        self.log_level = self.log_level.upper()
        if self.transport not in TRANSPORTS:
            raise ValueError(f"transport must be one of {TRANSPORTS}")
        if self.log_level not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of {LOG_LEVELS}")
        if not 0 < self.port < 65536:
            raise ValueError("port must be between 1 and 65535")

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ServerConfig":
        """
        Create from config dict.

        Accepts camelCase keys as written in mcp-server.json
        (``baseDir``, ``logLevel``). Unknown keys are ignored.
        """
        known = {f.name for f in fields(cls)}
        kwargs: dict[str, Any] = {}
        for key, value in data.items():
            name = _snake_case(key)
            if name in known:
                kwargs[name] = value
            else:
                logger.debug(f"Ignoring unknown config key: {key}")
        return cls(**kwargs)

    def with_overrides(self, **overrides: Any) -> "ServerConfig":
        """Copy with the non-None overrides applied."""
        data = {f.name: getattr(self, f.name) for f in fields(self)}
        data.update({k: v for k, v in overrides.items() if v is not None})
        return ServerConfig(**data)


def _snake_case(key: str) -> str:
    return "".join(f"_{c.lower()}" if c.isupper() else c for c in key)


def _read_config_file(path: Path) -> dict[str, Any]:
    try:
        data = oj.loads(path.read_bytes())
    except (OSError, oj.JSONDecodeError) as e:
        logger.warning(f"Skipping unreadable config {path}: {e}")
        return {}
    if not isinstance(data, dict):
        logger.warning(f"Skipping config {path}: top level must be an object")
        return {}
    return data.get("server", data)


def load_server_config(
    working_dir: Path | None = None,
    config_path: Path | None = None,
) -> ServerConfig:
    """Load server config from global, local and explicit config files.

    Global config (~/.peragus/mcp-server.json) is loaded first.
    Local config ({working_dir}/.peragus/mcp-server.json) overrides global,
    and an explicit config_path overrides both, key by key.

    Returns:
        The merged configuration.
    """
    merged: dict[str, Any] = {}

    if GLOBAL_MCP_CONFIG.exists():
        merged.update(_read_config_file(GLOBAL_MCP_CONFIG))

    if working_dir:
        local_config = working_dir / LOCAL_MCP_CONFIG_DIR / MCP_CONFIG_FILENAME
        if local_config.exists():
            merged.update(_read_config_file(local_config))

    if config_path:
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")
        merged.update(_read_config_file(config_path))

    return ServerConfig.from_dict(merged)
