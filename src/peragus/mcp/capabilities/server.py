"""Capabilities this server advertises during initialization."""

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class ServerCapabilities:
    """
    Capabilities sent in the initialize result.

    The tool registry is fixed once the server is READY, so tools never
    announce list changes. Resources follow the open sessions, but the
    server pushes no notifications; clients re-list instead. Resource
    subscriptions are not offered.
    """

    tools: bool = False
    resources: bool = False
    logging: bool = False
    experimental: dict[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        """Capabilities object for the initialize result."""
        caps: dict[str, Any] = {}
        if self.tools:
            caps["tools"] = {"listChanged": False}
        if self.resources:
            caps["resources"] = {"subscribe": False, "listChanged": False}
        if self.logging:
            caps["logging"] = {}
        if self.experimental is not None:
            caps["experimental"] = self.experimental
        return caps

    @property
    def features(self) -> list[str]:
        """Names of the advertised features."""
        return [name for name in ("tools", "resources", "logging") if getattr(self, name)]


DEFAULT_SERVER_CAPABILITIES = ServerCapabilities(tools=True, resources=True, logging=True)
