"""In-process registry of open notebook sessions."""

from __future__ import annotations

import asyncio
import copy
import logging
import shutil
import time
import uuid
from pathlib import Path

from peragus.lib import oj
from peragus.sessions.types import Cell, CellType, CodeLanguage, Session

logger = logging.getLogger(__name__)

DEFAULT_PACKAGE_JSON = {
    "type": "module",
    "dependencies": {},
}

DEFAULT_TSCONFIG = {
    "compilerOptions": {
        "module": "nodenext",
        "moduleResolution": "nodenext",
        "target": "es2022",
        "resolveJsonModule": True,
        "noEmit": True,
        "allowImportingTsExtensions": True,
    },
    "include": ["src/**/*"],
    "exclude": ["node_modules"],
}


class SessionNotFound(Exception):
    """No open session has the given id."""

    def __init__(self, session_id: str):
        self.session_id = session_id
        super().__init__(f"Session not found: {session_id}")


class SessionStore:
    """
    Owns the live notebook sessions of one process.

    Readers always receive deep copies, so a Session handed out by the
    store is a point-in-time snapshot and never changes underneath the
    caller. Mutations go through the editing methods below; callers that
    need to serialize read-modify-write sequences on one session hold
    ``lock(session_id)``.
    """

    def __init__(self, base_dir: Path):
        """
        Initialize the store.

        Args:
            base_dir: Directory under which each session gets its own folder.
        """
        self.base_dir = base_dir
        self._sessions: dict[str, Session] = {}
        self._locks: dict[str, asyncio.Lock] = {}

    def open_session(
        self,
        title: str,
        language: CodeLanguage = CodeLanguage.TYPESCRIPT,
        project_config: str | None = None,
    ) -> Session:
        """
        Create and register a new session.

        Args:
            title: Text of the title cell.
            language: Source dialect for code cells.
            project_config: Raw tsconfig.json text. TypeScript sessions get
                a default config when omitted.

        Returns:
            Snapshot of the new session.
        """
        session_id = uuid.uuid4().hex
        while session_id in self._sessions:
            session_id = uuid.uuid4().hex

        directory = self.base_dir / session_id
        directory.mkdir(parents=True, exist_ok=True)

        if project_config is None and language is CodeLanguage.TYPESCRIPT:
            project_config = oj.dumps_str(DEFAULT_TSCONFIG, indent=True)

        session = Session(
            id=session_id,
            directory=directory,
            language=language,
            cells=[
                Cell(type=CellType.TITLE, text=title),
                Cell(
                    type=CellType.PACKAGE_JSON,
                    text=oj.dumps_str(DEFAULT_PACKAGE_JSON, indent=True),
                    filename="package.json",
                ),
            ],
            project_config=project_config,
            opened_at=time.time() * 1000,
        )
        self._sessions[session_id] = session
        logger.info(f"Opened session {session}")
        return copy.deepcopy(session)

    def get(self, session_id: str) -> Session:
        """
        Get a snapshot of a session.

        Raises:
            SessionNotFound: If no open session has this id.
        """
        return copy.deepcopy(self._require(session_id))

    def get_open_sessions(self) -> tuple[Session, ...]:
        """Snapshot of all open sessions, oldest first."""
        sessions = sorted(self._sessions.values(), key=lambda s: s.opened_at)
        return tuple(copy.deepcopy(s) for s in sessions)

    def close_session(self, session_id: str) -> None:
        """
        Evict a session from the registry.

        The session directory is left in place.

        Raises:
            SessionNotFound: If no open session has this id.
        """
        session = self._require(session_id)
        del self._sessions[session_id]
        self._locks.pop(session_id, None)
        logger.info(f"Closed session {session}")

    def delete_session(self, session_id: str) -> None:
        """
        Evict a session and remove its directory.

        Raises:
            SessionNotFound: If no open session has this id.
        """
        directory = self._require(session_id).directory
        self.close_session(session_id)
        shutil.rmtree(directory, ignore_errors=True)
        logger.info(f"Deleted session directory {directory}")

    def lock(self, session_id: str) -> asyncio.Lock:
        """
        Per-session lock serializing edits of one session.

        Store methods never suspend, so a single call is already atomic
        on the event loop. The lock orders sequences that await between
        store calls, such as a tool handler against a caller that holds
        the session while doing I/O. The notebook tools take it around
        every mutation.

        Raises:
            SessionNotFound: If no open session has this id.
        """
        self._require(session_id)
        lock = self._locks.get(session_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[session_id] = lock
        return lock

    def add_cell(self, session_id: str, cell: Cell, index: int | None = None) -> Session:
        """
        Insert a cell at index (append when index is None).

        Raises:
            SessionNotFound: If no open session has this id.
            ValueError: If index is out of range or the cell is a title cell.
        """
        session = self._require(session_id)
        if cell.type is CellType.TITLE:
            raise ValueError("A session has exactly one title cell")
        if cell.type is CellType.CODE and not cell.filename:
            cell.filename = f"cell-{len(session.cells)}{session.language.extension}"

        if index is None:
            session.cells.append(cell)
        else:
            if index < 1 or index > len(session.cells):
                raise ValueError(
                    f"Cell index {index} out of range 1..{len(session.cells)}"
                )
            session.cells.insert(index, cell)

        logger.debug(f"Added {cell.type.value} cell {cell.id} to {session_id}")
        return copy.deepcopy(session)

    def update_cell(self, session_id: str, index: int, text: str) -> Session:
        """
        Replace the text of the cell at index.

        Raises:
            SessionNotFound: If no open session has this id.
            ValueError: If index is out of range.
        """
        session = self._require(session_id)
        self._check_index(session, index, allow_title=True)
        session.cells[index].text = text
        logger.debug(f"Updated cell {index} of {session_id}")
        return copy.deepcopy(session)

    def remove_cell(self, session_id: str, index: int) -> Session:
        """
        Remove the cell at index.

        Raises:
            SessionNotFound: If no open session has this id.
            ValueError: If index is out of range or points at the title cell.
        """
        session = self._require(session_id)
        self._check_index(session, index, allow_title=False)
        removed = session.cells.pop(index)
        logger.debug(f"Removed cell {removed.id} from {session_id}")
        return copy.deepcopy(session)

    def move_cell(self, session_id: str, from_index: int, to_index: int) -> Session:
        """
        Move a cell to another position, keeping the title cell first.

        Raises:
            SessionNotFound: If no open session has this id.
            ValueError: If either index is out of range or the title cell is involved.
        """
        session = self._require(session_id)
        self._check_index(session, from_index, allow_title=False)
        self._check_index(session, to_index, allow_title=False)
        cell = session.cells.pop(from_index)
        session.cells.insert(to_index, cell)
        return copy.deepcopy(session)

    def update_project_config(self, session_id: str, text: str | None) -> Session:
        """
        Replace the raw project configuration text.

        Raises:
            SessionNotFound: If no open session has this id.
        """
        session = self._require(session_id)
        session.project_config = text
        return copy.deepcopy(session)

    def _require(self, session_id: str) -> Session:
        session = self._sessions.get(session_id)
        if session is None:
            raise SessionNotFound(session_id)
        return session

    @staticmethod
    def _check_index(session: Session, index: int, allow_title: bool) -> None:
        lowest = 0 if allow_title else 1
        if index < lowest or index >= len(session.cells):
            raise ValueError(
                f"Cell index {index} out of range {lowest}..{len(session.cells) - 1}"
            )

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: str) -> bool:
        return session_id in self._sessions
