"""Session state and its manager.

A session is the key/value store shared by every agent of one workflow
run. Keys prefixed ``temp:`` live in a separate turn-scoped map that is
never persisted.

Concurrent writes from parallel branches to the same key are not
synchronized: the last write wins.
"""

import logging
import time
from typing import Any, Dict, List, Optional, Tuple
from uuid import uuid4

from ..core.models import ResearchStage, SerializedSession, StateKeys
from .base import PersistenceAdapter
from .memory import MemoryPersistenceAdapter

logger = logging.getLogger(__name__)


_ABSENT = object()


def _split_key(key: str) -> Tuple[bool, str]:
    if key.startswith(StateKeys.TEMP_PREFIX):
        return True, key[len(StateKeys.TEMP_PREFIX):]
    return False, key


class SessionState:
    """Live, mutable state of one session."""

    def __init__(self, session_id: str, initial: Optional[SerializedSession] = None):
        self.session_id = session_id
        self.current_stage: ResearchStage = ResearchStage.IDEA_BUILDING
        self.research_topic: str = ""
        self._data: Dict[str, Any] = {}
        self._temp: Dict[str, Any] = {}

        if initial:
            self._restore(initial)

    def get(self, key: str, default: Any = None) -> Any:
        is_temp, actual = _split_key(key)
        store = self._temp if is_temp else self._data
        return store.get(actual, default)

    def set(self, key: str, value: Any) -> None:
        is_temp, actual = _split_key(key)
        store = self._temp if is_temp else self._data
        store[actual] = value

    def has(self, key: str) -> bool:
        is_temp, actual = _split_key(key)
        return actual in (self._temp if is_temp else self._data)

    def delete(self, key: str) -> bool:
        is_temp, actual = _split_key(key)
        store = self._temp if is_temp else self._data
        return store.pop(actual, _ABSENT) is not _ABSENT

    def keys(self) -> List[str]:
        """Persistent keys only."""
        return list(self._data.keys())

    def clear_temp(self) -> None:
        """Wipe turn-scoped data."""
        self._temp.clear()

    def serialize(self) -> SerializedSession:
        return SerializedSession(
            session_id=self.session_id,
            current_stage=self.current_stage,
            research_topic=self.research_topic,
            data=dict(self._data),
            timestamp=int(time.time() * 1000),
        )

    def _restore(self, snapshot: SerializedSession) -> None:
        self.current_stage = snapshot.current_stage
        self.research_topic = snapshot.research_topic
        self._data.update(snapshot.data)

    def __contains__(self, key: str) -> bool:
        return self.has(key)

    def __repr__(self) -> str:
        return f"SessionState(session_id={self.session_id!r}, stage={self.current_stage.value!r})"


class StateManager:
    """Creates, resumes and persists sessions through a persistence adapter."""

    def __init__(self, adapter: Optional[PersistenceAdapter] = None):
        """Initialize the state manager.

        Args:
            adapter: Persistence adapter (in-memory when omitted)
        """
        self.adapter = adapter or MemoryPersistenceAdapter()
        self._sessions: Dict[str, SessionState] = {}

    async def create_session(self, session_id: Optional[str] = None) -> SessionState:
        """Create a session, resuming the persisted snapshot if one exists."""
        session_id = session_id or str(uuid4())

        snapshot = await self.adapter.load(session_id)
        if snapshot:
            logger.info(f"Resuming session {session_id} at stage {snapshot.current_stage.value}")
        session = SessionState(session_id, snapshot)
        self._sessions[session_id] = session
        return session

    def get_session(self, session_id: str) -> Optional[SessionState]:
        return self._sessions.get(session_id)

    async def persist(self, session_id: str) -> None:
        """Write the live session through the adapter."""
        session = self._sessions.get(session_id)
        if session is None:
            logger.warning(f"Cannot persist unknown session: {session_id}")
            return
        await self.adapter.save(session_id, session.serialize())

    async def delete_session(self, session_id: str) -> None:
        self._sessions.pop(session_id, None)
        await self.adapter.delete(session_id)

    async def list_sessions(self) -> List[str]:
        return await self.adapter.list()
