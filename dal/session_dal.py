"""Session store contract and its in-memory implementation."""

from __future__ import annotations

import copy
from abc import ABC, abstractmethod
from typing import Dict, Optional

from models.session_models import ChatSession


class SessionDAL(ABC):
    """Key-value store for the tracked WhatsApp session record."""

    @abstractmethod
    async def put(self, session: ChatSession) -> None:
        """Insert or overwrite the record for ``session.session_id``."""

    @abstractmethod
    async def get(self, session_id: str) -> Optional[ChatSession]:
        """Return the stored record, or None if absent."""

    @abstractmethod
    async def delete(self, session_id: str) -> bool:
        """Remove the record. Returns True if one was removed."""


class InMemorySessionDAL(SessionDAL):
    """Volatile session store.

    Records are copied on the way in and out so callers never hold a
    reference to the stored object.
    """

    def __init__(self) -> None:
        self._sessions: Dict[str, ChatSession] = {}

    async def put(self, session: ChatSession) -> None:
        self._sessions[session.session_id] = copy.copy(session)

    async def get(self, session_id: str) -> Optional[ChatSession]:
        session = self._sessions.get(session_id)
        return copy.copy(session) if session is not None else None

    async def delete(self, session_id: str) -> bool:
        return self._sessions.pop(session_id, None) is not None
