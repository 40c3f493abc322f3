import os
import asyncio
import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Optional

import aiosqlite

LOGGER = logging.getLogger(__name__)

DB_FILENAME = "lore.db"


class AsyncDatabaseInitializer:
    """
    Manage the async SQLite database holding lore records.

    - The database file is located at: <db_dir>/lore.db, where db_dir is the
      directory passed in or, when omitted, the DATABASE_DIR environment variable.
    - A RuntimeError is raised if neither is set or the path is not a usable
      directory.
    - Existing data is kept: records must survive process restarts, so
      `ensure_database()` only creates what is missing.
    - Subsequent calls to `ensure_database()` on the same instance are no-ops,
      so it is safe for `connection()` to call it.
    """

    def __init__(self, db_dir: Optional[Path | str] = None) -> None:
        raw_dir = str(db_dir) if db_dir is not None else os.getenv("DATABASE_DIR")

        if raw_dir is None or not raw_dir.strip():
            raise RuntimeError(
                "DATABASE_DIR environment variable must be set to a writable "
                "directory path where the SQLite database file will be stored."
            )

        resolved = Path(raw_dir).expanduser()

        # If the path exists but is not a directory, that's a configuration error.
        if resolved.exists() and not resolved.is_dir():
            raise RuntimeError(
                f"DATABASE_DIR={raw_dir!r} points to a file, not a directory "
                f"({resolved}). Please set DATABASE_DIR to a directory path."
            )

        try:
            resolved.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise RuntimeError(
                f"Failed to create or access database directory at {resolved}"
            ) from exc

        self.db_dir = resolved
        self.db_path = self.db_dir / DB_FILENAME

        self._initialized = False

    @property
    def initialized(self) -> bool:
        return self._initialized

    async def ensure_database(self) -> None:
        """
        Ensure the SQLite database at `self.db_path` has the lore schema.

        On first call this will:
            - Create the database file if it does not exist.
            - Switch the journal to WAL mode.
            - Create the LORE_RECORD table and its timestamp index if missing.

        Subsequent calls on the same instance are no-ops.
        """
        if self._initialized:
            return

        max_attempts = 3
        for attempt in range(1, max_attempts + 1):
            try:
                async with aiosqlite.connect(self.db_path) as db:
                    await db.execute("PRAGMA journal_mode=WAL;")
                    await db.execute(
                        """
                        CREATE TABLE IF NOT EXISTS LORE_RECORD (
                            id TEXT PRIMARY KEY,
                            lore_text TEXT NOT NULL,
                            object_name TEXT,
                            image_data BLOB,
                            timestamp REAL NOT NULL
                        )
                        """
                    )
                    await db.execute(
                        "CREATE INDEX IF NOT EXISTS idx_lore_record_timestamp ON LORE_RECORD(timestamp DESC)"
                    )
                    await db.commit()
                break
            except FileNotFoundError:
                # On some platforms a transient missing file error may occur; retry a few times.
                if attempt >= max_attempts:
                    raise
                await asyncio.sleep(0.1 * attempt)

        LOGGER.info("Lore database ready at %s", self.db_path)
        self._initialized = True

    @asynccontextmanager
    async def connection(self) -> AsyncIterator[aiosqlite.Connection]:
        """
        Async context manager yielding an `aiosqlite.Connection`.

        The schema is created on first use via `ensure_database()`.
        """
        await self.ensure_database()
        conn = await aiosqlite.connect(self.db_path)
        try:
            yield conn
        finally:
            await conn.close()
