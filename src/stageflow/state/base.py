"""Base persistence interface for session state.

This abstract base class defines the contract that all persistence adapters
must follow, so the state manager can swap storage without changing the
engine.
"""

from abc import ABC, abstractmethod
from typing import List, Optional

from ..core.models import SerializedSession


class PersistenceAdapter(ABC):
    """Abstract base class for session persistence adapters."""

    async def initialize(self) -> None:
        """Prepare the backend (create tables, connections, directories)."""

    async def close(self) -> None:
        """Release backend resources."""

    @abstractmethod
    async def save(self, session_id: str, state: SerializedSession) -> None:
        """Save a session snapshot, replacing any previous one."""
        pass

    @abstractmethod
    async def load(self, session_id: str) -> Optional[SerializedSession]:
        """Load a session snapshot, or None when none exists."""
        pass

    @abstractmethod
    async def delete(self, session_id: str) -> None:
        """Delete a session snapshot; missing sessions are ignored."""
        pass

    @abstractmethod
    async def list(self) -> List[str]:
        """List stored session ids."""
        pass
