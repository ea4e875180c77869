"""Ordered registry of tool descriptors."""

from __future__ import annotations

import logging
from typing import Any, Iterator

from jsonschema import Draft202012Validator
from jsonschema.exceptions import SchemaError

from peragus.mcp.protocol.errors import InvalidArguments, NotFound
from peragus.mcp.tools.types import ToolDescriptor, ToolHandler

logger = logging.getLogger(__name__)


class RegistryFrozen(Exception):
    """Tools cannot be added once the registry is frozen."""

    pass


class ToolRegistry:
    """
    Holds the tools a server exposes, in registration order.

    Each tool's input schema is checked when it is registered and a
    validator is compiled for it. After freeze() the registry is
    read-only, so lookups need no locking.
    """

    def __init__(self) -> None:
        self._tools: dict[str, ToolDescriptor] = {}
        self._validators: dict[str, Draft202012Validator] = {}
        self._frozen = False

    def register(self, descriptor: ToolDescriptor) -> None:
        """
        Add a tool.

        Raises:
            RegistryFrozen: If freeze() was called.
            ValueError: If the name is taken or the schema is invalid.
        """
        if self._frozen:
            raise RegistryFrozen(f"Cannot register {descriptor.name}: registry is frozen")
        if descriptor.name in self._tools:
            raise ValueError(f"Tool already registered: {descriptor.name}")

        try:
            Draft202012Validator.check_schema(descriptor.input_schema)
        except SchemaError as e:
            raise ValueError(f"Invalid input schema for {descriptor.name}: {e.message}") from e

        self._tools[descriptor.name] = descriptor
        self._validators[descriptor.name] = Draft202012Validator(descriptor.input_schema)
        logger.debug(f"Registered tool {descriptor.name}")

    def tool(
        self,
        name: str,
        description: str,
        input_schema: dict[str, Any] | None = None,
    ):
        """Decorator registering an async handler as a tool."""

        def decorator(handler: ToolHandler) -> ToolHandler:
            self.register(
                ToolDescriptor(
                    name=name,
                    description=description,
                    input_schema=input_schema or {"type": "object", "properties": {}},
                    handler=handler,
                )
            )
            return handler

        return decorator

    def freeze(self) -> None:
        """Make the registry read-only."""
        self._frozen = True

    def get(self, name: str) -> ToolDescriptor:
        """
        Look up a tool by exact name.

        Raises:
            NotFound: If no tool has this name.
        """
        descriptor = self._tools.get(name)
        if descriptor is None:
            raise NotFound("tool", name)
        return descriptor

    def validate(self, name: str, arguments: Any) -> dict[str, Any]:
        """
        Check arguments against the tool's input schema.

        Returns:
            The arguments, unchanged.

        Raises:
            NotFound: If no tool has this name.
            InvalidArguments: On the first schema violation found.
        """
        self.get(name)
        errors = sorted(
            self._validators[name].iter_errors(arguments),
            key=lambda e: [str(p) for p in e.path],
        )
        if errors:
            first = errors[0]
            location = ".".join(str(p) for p in first.path) or "<root>"
            raise InvalidArguments(name, f"{location}: {first.message}")
        return arguments

    def list(self) -> list[ToolDescriptor]:
        """All tools in registration order."""
        return list(self._tools.values())

    def clear(self) -> None:
        """Drop all tools, leaving the registry empty and frozen."""
        self._tools.clear()
        self._validators.clear()
        self._frozen = True

    def __len__(self) -> int:
        return len(self._tools)

    def __contains__(self, name: str) -> bool:
        return name in self._tools

    def __iter__(self) -> Iterator[ToolDescriptor]:
        return iter(list(self._tools.values()))
