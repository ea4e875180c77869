"""Notebook tools exposed by the MCP endpoint."""

from __future__ import annotations

import logging
from typing import Any

from peragus.mcp.tools.registry import ToolRegistry
from peragus.sessions.render import render_markdown
from peragus.sessions.store import SessionStore
from peragus.sessions.types import Cell, CellType, CodeLanguage, Session

logger = logging.getLogger(__name__)

NOTEBOOK_ID = {"type": "string", "minLength": 1, "description": "Notebook (session) id"}

UPDATE_OPERATIONS = ["add_cell", "update_cell", "delete_cell", "move_cell"]

SNIPPET_RADIUS = 40


def _summary(session: Session) -> dict[str, Any]:
    return session.to_dict(include_cells=False)


def _snippet(text: str, position: int, length: int) -> str:
    start = max(0, position - SNIPPET_RADIUS)
    end = min(len(text), position + length + SNIPPET_RADIUS)
    prefix = "..." if start > 0 else ""
    suffix = "..." if end < len(text) else ""
    return f"{prefix}{text[start:end]}{suffix}"


def search_sessions(
    sessions: tuple[Session, ...],
    query: str,
    include_content: bool = False,
) -> list[dict[str, Any]]:
    """
    Case-insensitive search over session titles and, optionally, cell text.

    Returns one entry per matching session, in session order.
    """
    needle = query.lower()
    results = []

    for session in sessions:
        title_match = needle in session.title.lower()
        matches = []
        if include_content:
            for index, cell in enumerate(session.cells):
                if cell.type is CellType.TITLE:
                    continue
                position = cell.text.lower().find(needle)
                if position >= 0:
                    matches.append(
                        {
                            "cellIndex": index,
                            "type": cell.type.value,
                            "snippet": _snippet(cell.text, position, len(needle)),
                        }
                    )

        if title_match or matches:
            entry = _summary(session)
            entry["notebookId"] = session.id
            entry["titleMatch"] = title_match
            if include_content:
                entry["matches"] = matches
            results.append(entry)

    return results


def register_notebook_tools(registry: ToolRegistry, store: SessionStore) -> None:
    """
    Register the notebook tool set on registry, backed by store.

    Registration order is the order tools/list reports.
    """

    @registry.tool(
        "create_notebook",
        "Create a new notebook session with a title cell and package.json.",
        {
            "type": "object",
            "properties": {
                "title": {"type": "string", "minLength": 1},
                "language": {
                    "type": "string",
                    "enum": [lang.value for lang in CodeLanguage],
                    "default": CodeLanguage.TYPESCRIPT.value,
                },
            },
            "required": ["title"],
            "additionalProperties": False,
        },
    )
    async def create_notebook(arguments: dict[str, Any]) -> dict[str, Any]:
        language = CodeLanguage.from_string(
            arguments.get("language", CodeLanguage.TYPESCRIPT.value)
        )
        session = store.open_session(arguments["title"], language)
        return {
            "notebookId": session.id,
            "title": session.title,
            "language": session.language.value,
            "directory": str(session.directory),
        }

    @registry.tool(
        "list_notebooks",
        "List all open notebook sessions.",
        {"type": "object", "properties": {}, "additionalProperties": False},
    )
    async def list_notebooks(arguments: dict[str, Any]) -> dict[str, Any]:
        sessions = store.get_open_sessions()
        return {"notebooks": [_summary(s) for s in sessions]}

    @registry.tool(
        "get_notebook",
        "Get a notebook session with all of its cells.",
        {
            "type": "object",
            "properties": {"notebookId": NOTEBOOK_ID},
            "required": ["notebookId"],
            "additionalProperties": False,
        },
    )
    async def get_notebook(arguments: dict[str, Any]) -> dict[str, Any]:
        return store.get(arguments["notebookId"]).to_dict()

    @registry.tool(
        "update_notebook",
        "Add, update, delete or move a cell in a notebook session.",
        {
            "type": "object",
            "properties": {
                "notebookId": NOTEBOOK_ID,
                "operation": {"type": "string", "enum": UPDATE_OPERATIONS},
                "cellType": {"type": "string", "enum": ["markdown", "code"]},
                "content": {"type": "string"},
                "filename": {"type": "string", "minLength": 1},
                "cellIndex": {"type": "integer", "minimum": 0},
                "targetIndex": {"type": "integer", "minimum": 0},
            },
            "required": ["notebookId", "operation"],
            "additionalProperties": False,
            "allOf": [
                {
                    "if": {"properties": {"operation": {"const": "add_cell"}}},
                    "then": {"required": ["cellType", "content"]},
                },
                {
                    "if": {"properties": {"operation": {"const": "update_cell"}}},
                    "then": {"required": ["cellIndex", "content"]},
                },
                {
                    "if": {"properties": {"operation": {"const": "delete_cell"}}},
                    "then": {"required": ["cellIndex"]},
                },
                {
                    "if": {"properties": {"operation": {"const": "move_cell"}}},
                    "then": {"required": ["cellIndex", "targetIndex"]},
                },
            ],
        },
    )
    async def update_notebook(arguments: dict[str, Any]) -> dict[str, Any]:
        session_id = arguments["notebookId"]
        operation = arguments["operation"]

        async with store.lock(session_id):
            if operation == "add_cell":
                cell = Cell(
                    type=CellType(arguments["cellType"]),
                    text=arguments["content"],
                    filename=arguments.get("filename"),
                )
                session = store.add_cell(session_id, cell, arguments.get("cellIndex"))
            elif operation == "update_cell":
                session = store.update_cell(
                    session_id, arguments["cellIndex"], arguments["content"]
                )
            elif operation == "delete_cell":
                session = store.remove_cell(session_id, arguments["cellIndex"])
            else:
                session = store.move_cell(
                    session_id, arguments["cellIndex"], arguments["targetIndex"]
                )

        logger.info(f"{operation} on {session_id}")
        return {
            "notebookId": session.id,
            "operation": operation,
            "cells": [cell.to_dict() for cell in session.cells],
        }

    @registry.tool(
        "update_project_config",
        "Replace the project configuration (tsconfig.json) text of a notebook.",
        {
            "type": "object",
            "properties": {
                "notebookId": NOTEBOOK_ID,
                "config": {"type": ["string", "null"]},
            },
            "required": ["notebookId", "config"],
            "additionalProperties": False,
        },
    )
    async def update_project_config(arguments: dict[str, Any]) -> dict[str, Any]:
        session_id = arguments["notebookId"]
        async with store.lock(session_id):
            session = store.update_project_config(session_id, arguments["config"])
        return {"notebookId": session.id, "tsconfig.json": session.project_config}

    @registry.tool(
        "search_notebooks",
        "Search open notebooks by title and, optionally, cell content.",
        {
            "type": "object",
            "properties": {
                "query": {"type": "string", "minLength": 1},
                "includeContent": {"type": "boolean", "default": False},
            },
            "required": ["query"],
            "additionalProperties": False,
        },
    )
    async def search_notebooks(arguments: dict[str, Any]) -> dict[str, Any]:
        results = search_sessions(
            store.get_open_sessions(),
            arguments["query"],
            arguments.get("includeContent", False),
        )
        return {"query": arguments["query"], "results": results}

    @registry.tool(
        "export_notebook",
        "Export a notebook as markdown. The body is streamed one cell at a time.",
        {
            "type": "object",
            "properties": {"notebookId": NOTEBOOK_ID},
            "required": ["notebookId"],
            "additionalProperties": False,
        },
    )
    async def export_notebook(arguments: dict[str, Any]):
        return render_markdown(store.get(arguments["notebookId"]))

    @registry.tool(
        "close_notebook",
        "Close a notebook session, keeping its files on disk.",
        {
            "type": "object",
            "properties": {"notebookId": NOTEBOOK_ID},
            "required": ["notebookId"],
            "additionalProperties": False,
        },
    )
    async def close_notebook(arguments: dict[str, Any]) -> dict[str, Any]:
        session_id = arguments["notebookId"]
        async with store.lock(session_id):
            store.close_session(session_id)
        return {"notebookId": session_id, "closed": True}

    @registry.tool(
        "delete_notebook",
        "Close a notebook session and delete its directory. Requires confirm=true.",
        {
            "type": "object",
            "properties": {
                "notebookId": NOTEBOOK_ID,
                "confirm": {"const": True},
            },
            "required": ["notebookId", "confirm"],
            "additionalProperties": False,
        },
    )
    async def delete_notebook(arguments: dict[str, Any]) -> dict[str, Any]:
        session_id = arguments["notebookId"]
        async with store.lock(session_id):
            store.delete_session(session_id)
        return {"notebookId": session_id, "deleted": True}
