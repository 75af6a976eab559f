"""SQLite-backed session store.

Drop-in replacement for `InMemorySessionDAL` built on
`utils.database_init.AsyncDatabaseInitializer`.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from dal.session_dal import SessionDAL
from models.session_models import AccountIdentity, ChatSession, ConnectionState
from utils.database_init import AsyncDatabaseInitializer


class SQLiteSessionDAL(SessionDAL):
    """Persist the session record in the WHATSAPP_SESSION table."""

    _COLUMNS = (
        "session_id",
        "state",
        "login_token",
        "identity_name",
        "identity_number",
        "connected_at",
    )
    _COLUMN_LIST = ", ".join(_COLUMNS)

    def __init__(self, db_initializer: AsyncDatabaseInitializer) -> None:
        self._db = db_initializer

    async def put(self, session: ChatSession) -> None:
        identity = session.identity
        async with self._db.connection() as conn:
            await conn.execute(
                f"INSERT OR REPLACE INTO WHATSAPP_SESSION ({self._COLUMN_LIST}) VALUES (?, ?, ?, ?, ?, ?)",
                (
                    session.session_id,
                    session.state.value,
                    session.login_token,
                    identity.name if identity else None,
                    identity.number if identity else None,
                    session.connected_at.isoformat() if session.connected_at else None,
                ),
            )
            await conn.commit()

    async def get(self, session_id: str) -> Optional[ChatSession]:
        async with self._db.connection() as conn:
            cur = await conn.execute(
                f"SELECT {self._COLUMN_LIST} FROM WHATSAPP_SESSION WHERE session_id = ?",
                (session_id,),
            )
            row = await cur.fetchone()
            return self._row_to_session(row) if row else None

    async def delete(self, session_id: str) -> bool:
        async with self._db.connection() as conn:
            cur = await conn.execute("DELETE FROM WHATSAPP_SESSION WHERE session_id = ?", (session_id,))
            await conn.commit()
            return cur.rowcount > 0

    @staticmethod
    def _row_to_session(row: Sequence[object]) -> ChatSession:
        """Convert a DB row tuple into a ChatSession."""
        identity = None
        if row[3] is not None or row[4] is not None:
            identity = AccountIdentity(name=row[3] or "", number=row[4] or "")
        return ChatSession(
            session_id=row[0],
            state=ConnectionState(row[1]),
            login_token=row[2],
            identity=identity,
            connected_at=datetime.fromisoformat(row[5]) if row[5] else None,
        )
