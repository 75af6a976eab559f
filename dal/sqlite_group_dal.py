"""SQLite-backed group cache, interchangeable with `InMemoryGroupDAL`."""

from __future__ import annotations

from datetime import datetime
from typing import Iterable, List, Optional, Sequence

from dal.group_dal import GroupDAL
from models.group_record import Group
from utils.database_init import AsyncDatabaseInitializer


class SQLiteGroupDAL(GroupDAL):
    """Store synchronized groups in the WHATSAPP_GROUP table."""

    _COLUMNS = (
        "id",
        "name",
        "description",
        "participant_count",
        "is_admin",
        "created_at",
    )
    _COLUMN_LIST = ", ".join(_COLUMNS)

    def __init__(self, db_initializer: AsyncDatabaseInitializer) -> None:
        self._db = db_initializer

    async def replace_all(self, groups: Iterable[Group]) -> None:
        """Swap the cached set in one transaction."""
        rows = [
            (
                group.id,
                position,
                group.name,
                group.description,
                group.participant_count,
                int(group.is_admin),
                group.created_at.isoformat(),
            )
            for position, group in enumerate(groups)
        ]
        async with self._db.connection() as conn:
            await conn.execute("DELETE FROM WHATSAPP_GROUP")
            await conn.executemany(
                "INSERT OR REPLACE INTO WHATSAPP_GROUP "
                "(id, position, name, description, participant_count, is_admin, created_at) "
                "VALUES (?, ?, ?, ?, ?, ?, ?)",
                rows,
            )
            await conn.commit()

    async def get_all(self) -> List[Group]:
        async with self._db.connection() as conn:
            cur = await conn.execute(f"SELECT {self._COLUMN_LIST} FROM WHATSAPP_GROUP ORDER BY position")
            rows = await cur.fetchall()
            return [self._row_to_group(r) for r in rows]

    async def get_by_id(self, group_id: str) -> Optional[Group]:
        async with self._db.connection() as conn:
            cur = await conn.execute(
                f"SELECT {self._COLUMN_LIST} FROM WHATSAPP_GROUP WHERE id = ?",
                (group_id,),
            )
            row = await cur.fetchone()
            return self._row_to_group(row) if row else None

    async def clear(self) -> None:
        async with self._db.connection() as conn:
            await conn.execute("DELETE FROM WHATSAPP_GROUP")
            await conn.commit()

    @staticmethod
    def _row_to_group(row: Sequence[object]) -> Group:
        return Group(
            id=row[0],
            name=row[1],
            description=row[2] or "",
            participant_count=int(row[3]),
            is_admin=bool(row[4]),
            created_at=datetime.fromisoformat(row[5]),
        )
