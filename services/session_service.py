"""Session Service Module

In-memory registry of live chat sessions. Each session owns its own
ConversationState, so sessions for different users never share mutable data.
Nothing is written to disk: abandoning a session simply drops it.
"""
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional

from models.session import ConversationState, SessionPhase

logger = logging.getLogger(__name__)


@dataclass
class Session:
    """Represents one user's conversation with full state."""
    session_id: str
    user_id: str
    created_at: str = field(default_factory=lambda: datetime.now().isoformat())
    updated_at: str = field(default_factory=lambda: datetime.now().isoformat())
    phase: SessionPhase = SessionPhase.IDLE
    state: ConversationState = field(default_factory=ConversationState)

    def touch(self):
        self.updated_at = datetime.now().isoformat()


class InMemorySessionService:
    """
    In-memory session service.

    Features:
    - Create/Get/Delete sessions
    - List sessions per user
    """

    def __init__(self):
        self._sessions: Dict[str, Session] = {}

    def create_session(self, user_id: str, session_id: str = None) -> Session:
        """Create a new session with a fresh, empty profile."""
        if session_id is None:
            session_id = f"session_{user_id}_{uuid.uuid4().hex[:8]}"
        if session_id in self._sessions:
            raise ValueError(f"Session {session_id} already exists")

        session = Session(session_id=session_id, user_id=user_id)
        self._sessions[session_id] = session
        logger.info(f"Created session: {session_id}")
        return session

    def get_session(self, session_id: str) -> Optional[Session]:
        return self._sessions.get(session_id)

    def delete_session(self, session_id: str) -> bool:
        """Drop a session and everything learned in it."""
        if self._sessions.pop(session_id, None) is None:
            return False
        logger.info(f"Deleted session: {session_id}")
        return True

    def list_sessions(self, user_id: str = None) -> List[Session]:
        """List all sessions, optionally filtered by user."""
        sessions = list(self._sessions.values())
        if user_id:
            sessions = [s for s in sessions if s.user_id == user_id]
        return sessions
