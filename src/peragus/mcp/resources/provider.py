"""Resources derived from the session store."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any
from urllib.parse import urlparse

from peragus.lib import oj
from peragus.mcp.protocol.errors import NotFound
from peragus.mcp.resources.types import ResourceDescriptor
from peragus.sessions.store import SessionNotFound, SessionStore
from peragus.sessions.types import Session

logger = logging.getLogger(__name__)

SESSION_SCHEME = "notebook"
INDEX_URI = "notebooks://index"


def session_uri(session_id: str) -> str:
    """Resource URI for a session."""
    return f"{SESSION_SCHEME}://{session_id}"


def _describe(session: Session) -> ResourceDescriptor:
    opened = datetime.fromtimestamp(session.opened_at / 1000, tz=timezone.utc)
    return ResourceDescriptor(
        uri=session_uri(session.id),
        name=session.title or session.id,
        mime_type="application/json",
        description=(
            f"{session.language.value} notebook with {len(session.cells)} cell(s), "
            f"opened {opened.isoformat(timespec='seconds')}"
        ),
    )


class SessionResourceProvider:
    """
    Builds resource descriptors from the live session store.

    Nothing is cached: every list() call reads a fresh snapshot, so a
    closed session disappears from the next listing.
    """

    def __init__(self, store: SessionStore):
        self.store = store

    def list(self) -> list[ResourceDescriptor]:
        """One entry per open session, in open order. Empty when none are open."""
        return [_describe(s) for s in self.store.get_open_sessions()]

    def read(self, uri: str) -> list[dict[str, Any]]:
        """
        Read resource contents.

        Returns:
            List of content items with uri, mimeType and text.

        Raises:
            NotFound: If the URI names no known resource.
        """
        if uri == INDEX_URI:
            sessions = self.store.get_open_sessions()
            payload: Any = {"notebooks": [s.to_dict(include_cells=False) for s in sessions]}
        else:
            parsed = urlparse(uri)
            if parsed.scheme != SESSION_SCHEME or not parsed.netloc:
                raise NotFound("resource", uri)
            try:
                payload = self.store.get(parsed.netloc).to_dict()
            except SessionNotFound:
                raise NotFound("resource", uri)

        logger.debug(f"Read resource {uri}")
        return [
            {
                "uri": uri,
                "mimeType": "application/json",
                "text": oj.dumps_str(payload, indent=True),
            }
        ]
