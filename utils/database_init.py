import asyncio
import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Tuple

import aiosqlite

LOGGER = logging.getLogger(__name__)

DB_FILENAME = "zapgroups.db"

SCHEMA: Tuple[str, ...] = (
    """
    CREATE TABLE IF NOT EXISTS WHATSAPP_SESSION (
        session_id TEXT PRIMARY KEY,
        state TEXT NOT NULL,
        login_token TEXT,
        identity_name TEXT,
        identity_number TEXT,
        connected_at TEXT
    )
    """,
    # position keeps the order groups were synchronized in
    """
    CREATE TABLE IF NOT EXISTS WHATSAPP_GROUP (
        id TEXT PRIMARY KEY,
        position INTEGER NOT NULL,
        name TEXT NOT NULL,
        description TEXT,
        participant_count INTEGER NOT NULL,
        is_admin INTEGER NOT NULL DEFAULT 0,
        created_at TEXT NOT NULL
    )
    """,
)


def _resolve_database_dir(database_dir: Path | str) -> Path:
    if database_dir is None or not str(database_dir).strip():
        raise RuntimeError("DATABASE_DIR must name a writable directory for the SQLite store")

    db_dir = Path(database_dir).expanduser()
    if db_dir.exists() and not db_dir.is_dir():
        raise RuntimeError(f"DATABASE_DIR={str(database_dir)!r} is a file, expected a directory")

    try:
        db_dir.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise RuntimeError(f"Cannot create database directory {db_dir}") from exc
    return db_dir


class AsyncDatabaseInitializer:
    """
    Own the SQLite file behind the durable session and group stores.

    - The file lives at `<database_dir>/zapgroups.db`; the directory is
      created on construction.
    - The schema is applied once per instance, lazily, by the first
      `connection()` (or an explicit `ensure_database()`).
    - `reset=True` removes an existing file before the schema is applied.
      Otherwise data is kept across restarts.
    """

    def __init__(self, database_dir: Path | str, reset: bool = False) -> None:
        self.db_dir = _resolve_database_dir(database_dir)
        self.db_path = self.db_dir / DB_FILENAME
        self.reset = reset
        self._initialized = False

    async def ensure_database(self) -> None:
        """Apply the schema; a no-op after the first successful call."""
        if self._initialized:
            return

        if self.reset and self.db_path.exists():
            try:
                self.db_path.unlink()
            except OSError as exc:
                raise RuntimeError(f"Failed to remove database at {self.db_path}") from exc

        max_attempts = 3
        for attempt in range(1, max_attempts + 1):
            try:
                async with aiosqlite.connect(self.db_path) as db:
                    for statement in SCHEMA:
                        await db.execute(statement)
                    await db.commit()
                break
            except FileNotFoundError:
                # Transient on some filesystems right after mkdir.
                if attempt >= max_attempts:
                    raise
                await asyncio.sleep(0.1 * attempt)

        LOGGER.info("SQLite store ready at %s", self.db_path)
        self._initialized = True

    @asynccontextmanager
    async def connection(self) -> AsyncIterator[aiosqlite.Connection]:
        """Yield an `aiosqlite.Connection`, creating the schema on first use."""
        await self.ensure_database()
        conn = await aiosqlite.connect(self.db_path)
        try:
            yield conn
        finally:
            await conn.close()
