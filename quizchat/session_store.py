from __future__ import annotations

from uuid import UUID

from quizchat.config import get_default_language
from quizchat.models import Language
from quizchat.session import Session


class SessionStore:
    """In-process registry of live sessions.

    Nothing is persisted; a session lives as long as this store holds it.
    """

    def __init__(self) -> None:
        self._sessions: dict[UUID, Session] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def create_session(self, *, language: Language | None = None) -> Session:
        session = Session(language=language or get_default_language())
        self._sessions[session.session_id] = session
        return session

    def get_session(self, session_id: UUID) -> Session | None:
        return self._sessions.get(session_id)

    def require_session(self, session_id: UUID) -> Session:
        session = self.get_session(session_id)
        if session is None:
            raise ValueError("Session not found")
        return session

    def list_sessions(self) -> list[Session]:
        out = list(self._sessions.values())
        out.sort(key=lambda s: s.created_at, reverse=True)
        return out

    def drop_session(self, session_id: UUID) -> bool:
        return self._sessions.pop(session_id, None) is not None
