"""Resource descriptor type."""

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class ResourceDescriptor:
    """A discoverable, readable entity."""

    uri: str
    """Unique resource URI."""

    name: str
    """Human-readable name."""

    mime_type: str = "application/json"
    """MIME type of the resource contents."""

    description: str | None = None
    """Optional description shown to clients."""

    def to_dict(self) -> dict[str, Any]:
        """Convert to the resources/list wire format."""
        result: dict[str, Any] = {
            "uri": self.uri,
            "name": self.name,
            "mimeType": self.mime_type,
        }
        if self.description is not None:
            result["description"] = self.description
        return result
