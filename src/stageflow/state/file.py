"""File-based persistence adapter.

Each session is stored as one pretty-printed JSON document under
``<data_dir>/sessions/<sanitized-id>.json`` so the data directory can be
synced with Git between machines.
"""

import asyncio
import json
import logging
import re
from pathlib import Path
from typing import List, Optional, Union

from ..core.models import SerializedSession
from .base import PersistenceAdapter

logger = logging.getLogger(__name__)

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9_-]")


def sanitize_session_id(session_id: str) -> str:
    """Make a session id safe to use as a file name component."""
    return _UNSAFE_CHARS.sub("_", session_id)


class FilePersistenceAdapter(PersistenceAdapter):
    """JSON-file-per-session persistence."""

    def __init__(self, data_dir: Optional[Union[str, Path]] = None):
        """Initialize file persistence.

        Args:
            data_dir: Root data directory (defaults to ``./data``)
        """
        self.data_dir = Path(data_dir) if data_dir else Path.cwd() / "data"
        self.sessions_dir = self.data_dir / "sessions"

    def _session_path(self, session_id: str) -> Path:
        return self.sessions_dir / f"{sanitize_session_id(session_id)}.json"

    async def initialize(self) -> None:
        await asyncio.to_thread(self.sessions_dir.mkdir, parents=True, exist_ok=True)

    async def save(self, session_id: str, state: SerializedSession) -> None:
        path = self._session_path(session_id)
        content = json.dumps(
            state.model_dump(mode="json", by_alias=True),
            indent=2,
            ensure_ascii=False,
        )

        def _write() -> None:
            self.sessions_dir.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding="utf-8")

        await asyncio.to_thread(_write)
        logger.debug(f"Session {session_id} saved to {path}")

    async def load(self, session_id: str) -> Optional[SerializedSession]:
        path = self._session_path(session_id)
        try:
            content = await asyncio.to_thread(path.read_text, encoding="utf-8")
        except FileNotFoundError:
            return None
        return SerializedSession.model_validate(json.loads(content))

    async def delete(self, session_id: str) -> None:
        path = self._session_path(session_id)
        await asyncio.to_thread(path.unlink, missing_ok=True)

    async def list(self) -> List[str]:
        await self.initialize()
        files = await asyncio.to_thread(lambda: sorted(self.sessions_dir.glob("*.json")))
        return [f.stem for f in files]
