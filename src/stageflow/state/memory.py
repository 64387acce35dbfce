"""In-memory persistence adapter (process lifetime only)."""

from typing import Dict, List, Optional

from ..core.models import SerializedSession
from .base import PersistenceAdapter


class MemoryPersistenceAdapter(PersistenceAdapter):
    """Keeps snapshots in a dict; useful for tests and ephemeral runs."""

    def __init__(self) -> None:
        self._storage: Dict[str, SerializedSession] = {}

    async def save(self, session_id: str, state: SerializedSession) -> None:
        self._storage[session_id] = state.model_copy(deep=True)

    async def load(self, session_id: str) -> Optional[SerializedSession]:
        state = self._storage.get(session_id)
        return state.model_copy(deep=True) if state else None

    async def delete(self, session_id: str) -> None:
        self._storage.pop(session_id, None)

    async def list(self) -> List[str]:
        return list(self._storage.keys())
