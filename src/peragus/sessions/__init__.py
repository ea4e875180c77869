"""Notebook session state backing the MCP endpoint."""

from peragus.sessions.types import Cell, CellType, CodeLanguage, Session
from peragus.sessions.store import SessionStore, SessionNotFound
from peragus.sessions.render import render_markdown

__all__ = [
    "Cell",
    "CellType",
    "CodeLanguage",
    "Session",
    "SessionStore",
    "SessionNotFound",
    "render_markdown",
]
