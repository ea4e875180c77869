"""orjson helpers returning the types the rest of the codebase expects."""

from typing import Any

import orjson

JSONDecodeError = orjson.JSONDecodeError


def loads(data: bytes | bytearray | memoryview | str) -> Any:
    """Decode JSON from bytes or str."""
    return orjson.loads(data)


def dumps(obj: Any, *, indent: bool = False) -> bytes:
    """Encode obj as JSON bytes."""
    option = orjson.OPT_INDENT_2 if indent else 0
    return orjson.dumps(obj, option=option)


def dumps_str(obj: Any, *, indent: bool = False) -> str:
    """Encode obj as a JSON string."""
    return dumps(obj, indent=indent).decode("utf-8")
