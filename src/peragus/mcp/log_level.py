"""Client control of server log verbosity (logging/setLevel)."""

from __future__ import annotations

import logging
from enum import Enum

from peragus.mcp.protocol.errors import INVALID_PARAMS, MCPError

logger = logging.getLogger(__name__)

ROOT_LOGGER = "peragus"


class LogLevel(Enum):
    """
    MCP log levels following RFC 5424 severity levels.

    Ordered from least to most severe.
    """

    DEBUG = "debug"
    INFO = "info"
    NOTICE = "notice"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"
    ALERT = "alert"
    EMERGENCY = "emergency"


# Python has no NOTICE, ALERT or EMERGENCY
MCP_TO_PYTHON_LEVEL: dict[LogLevel, int] = {
    LogLevel.DEBUG: logging.DEBUG,
    LogLevel.INFO: logging.INFO,
    LogLevel.NOTICE: logging.INFO,
    LogLevel.WARNING: logging.WARNING,
    LogLevel.ERROR: logging.ERROR,
    LogLevel.CRITICAL: logging.CRITICAL,
    LogLevel.ALERT: logging.CRITICAL,
    LogLevel.EMERGENCY: logging.CRITICAL,
}


def parse_level(value: object) -> LogLevel:
    """
    Convert a wire level name to LogLevel.

    Raises:
        MCPError: INVALID_PARAMS if value is not a known level name.
    """
    try:
        return LogLevel(value)
    except ValueError:
        raise MCPError(
            INVALID_PARAMS,
            f"Invalid log level: {value!r}",
            {"allowed": [level.value for level in LogLevel]},
        ) from None


def apply_level(level: LogLevel, logger_name: str = ROOT_LOGGER) -> int:
    """Set the named logger to the Python equivalent of level and return it."""
    python_level = MCP_TO_PYTHON_LEVEL[level]
    logging.getLogger(logger_name).setLevel(python_level)
    logger.info(f"Log level for {logger_name} set to {level.value}")
    return python_level
