"""Session and cell data types."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any


class CodeLanguage(Enum):
    """Source dialect used by a session's code cells."""

    JAVASCRIPT = "javascript"
    TYPESCRIPT = "typescript"

    @classmethod
    def from_string(cls, value: str) -> "CodeLanguage":
        """Parse language from its wire value."""
        try:
            return cls(value.lower())
        except ValueError:
            raise ValueError(f"Unsupported language: {value}")

    @property
    def extension(self) -> str:
        """File extension for code cells in this language."""
        return ".ts" if self is CodeLanguage.TYPESCRIPT else ".js"


class CellType(Enum):
    """Kinds of cell a session can hold."""

    TITLE = "title"
    MARKDOWN = "markdown"
    CODE = "code"
    PACKAGE_JSON = "package.json"


def _cell_id() -> str:
    return uuid.uuid4().hex[:12]


@dataclass
class Cell:
    """A single executable or content unit of a session."""

    type: CellType
    text: str
    filename: str | None = None
    id: str = field(default_factory=_cell_id)

    def to_dict(self) -> dict[str, Any]:
        """Convert to wire format."""
        result: dict[str, Any] = {
            "id": self.id,
            "type": self.type.value,
            "text": self.text,
        }
        if self.filename is not None:
            result["filename"] = self.filename
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Cell":
        """Create from wire format."""
        return cls(
            type=CellType(data["type"]),
            text=data.get("text", ""),
            filename=data.get("filename"),
            id=data.get("id") or _cell_id(),
        )


@dataclass
class Session:
    """
    A notebook-like unit of work.

    ``id``, ``directory``, ``language`` and ``opened_at`` are fixed at
    creation. ``cells`` and ``project_config`` change only through the
    SessionStore editing operations. ``opened_at`` records activation,
    not the last modification.
    """

    id: str
    directory: Path
    language: CodeLanguage
    cells: list[Cell] = field(default_factory=list)
    project_config: str | None = None
    opened_at: float = 0.0

    @property
    def title(self) -> str:
        """Text of the title cell, or an empty string."""
        for cell in self.cells:
            if cell.type is CellType.TITLE:
                return cell.text
        return ""

    def to_dict(self, include_cells: bool = True) -> dict[str, Any]:
        """Convert to wire format."""
        result: dict[str, Any] = {
            "id": self.id,
            "title": self.title,
            "directory": str(self.directory),
            "language": self.language.value,
            "openedAt": self.opened_at,
            "cellCount": len(self.cells),
        }
        if include_cells:
            result["cells"] = [cell.to_dict() for cell in self.cells]
            result["tsconfig.json"] = self.project_config
        return result

    def __str__(self) -> str:
        return f"Session({self.id} {self.title!r} [{self.language.value}])"
