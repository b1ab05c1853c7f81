"""In-memory session store."""

import uuid
from typing import Dict, List, Optional

from guidesmith.exceptions import SessionNotFoundError
from guidesmith.schemas import ClarifyingQuestion, OutlineNode, ScopeConfig, SessionState, utcnow_iso


class SessionStore:
    """Holds session records keyed by id.

    Records are frozen; every mutator builds a new record and swaps the stored
    reference, so readers only ever see complete snapshots. No method awaits,
    which makes each operation atomic on the event loop.
    """

    def __init__(self):
        self._sessions: Dict[str, SessionState] = {}

    def create(self, topic: Optional[str] = None) -> SessionState:
        now = utcnow_iso()
        session = SessionState(id=str(uuid.uuid4()), topic=topic or None, created_at=now, updated_at=now)
        self._sessions[session.id] = session
        return session

    def get(self, session_id: str) -> Optional[SessionState]:
        return self._sessions.get(session_id)

    def set_scope(self, session_id: str, scope: ScopeConfig) -> SessionState:
        return self._replace(session_id, scope=scope)

    def set_clarifying_questions(self, session_id: str, questions: List[ClarifyingQuestion]) -> SessionState:
        return self._replace(session_id, clarifying_questions=list(questions))

    def set_outline(self, session_id: str, outline: List[OutlineNode]) -> SessionState:
        return self._replace(session_id, outline=list(outline))

    def __len__(self) -> int:
        return len(self._sessions)

    def _replace(self, session_id: str, **changes) -> SessionState:
        existing = self._sessions.get(session_id)
        if existing is None:
            raise SessionNotFoundError(session_id)
        updated = existing.model_copy(update={**changes, "updated_at": utcnow_iso()})
        self._sessions[session_id] = updated
        return updated
