"""Lazy markdown rendering of sessions."""

from typing import Iterator

from peragus.sessions.types import CellType, Session


def render_markdown(session: Session) -> Iterator[str]:
    """
    Render a session as markdown, one chunk per cell.

    The generator is single-pass. Callers that need the text twice must
    call this again with a fresh snapshot.
    """
    fence_lang = session.language.value

    yield f"<!-- peragus:{{\"language\":\"{fence_lang}\"}} -->\n\n"

    for cell in session.cells:
        if cell.type is CellType.TITLE:
            yield f"# {cell.text}\n\n"
        elif cell.type is CellType.MARKDOWN:
            yield f"{cell.text.rstrip()}\n\n"
        elif cell.type is CellType.PACKAGE_JSON:
            yield f"###### package.json\n\n```json\n{cell.text.rstrip()}\n```\n\n"
        else:
            yield f"###### {cell.filename}\n\n```{fence_lang}\n{cell.text.rstrip()}\n```\n\n"

    if session.project_config:
        yield f"###### tsconfig.json\n\n```json\n{session.project_config.rstrip()}\n```\n"
