"""Async Data Access Layer for the LORE_RECORD table.

Provides LoreRecordDAL with the write-once record lifecycle: insert, list by
recency, lookup, and delete. There is deliberately no update method.
"""

from __future__ import annotations

import dataclasses
import logging
import time
import uuid
from typing import List, Optional, Sequence

import aiosqlite

from models.lore_record import LoreRecord
from services.errors import StoreCommitError
from utils.database_init import AsyncDatabaseInitializer

LOGGER = logging.getLogger(__name__)


class LoreRecordDAL:
    """Data access layer for lore records.

    The constructor accepts an `AsyncDatabaseInitializer` (or any object
    exposing an async `connection()` context manager that yields an
    `aiosqlite.Connection`).
    """

    _COLUMNS = (
        "id",
        "lore_text",
        "object_name",
        "image_data",
        "timestamp",
    )
    _COLUMN_LIST = ", ".join(_COLUMNS)

    def __init__(self, db_initializer: AsyncDatabaseInitializer) -> None:
        self._db = db_initializer

    async def insert_record(self, record: LoreRecord) -> LoreRecord:
        """Insert a new record and return it with `id` and `timestamp` filled in.

        Args:
            record: LoreRecord to store. A missing id gets a fresh UUID and a
                missing timestamp gets the current time.

        Returns:
            The record as stored.

        Raises:
            StoreCommitError: If the row cannot be written and committed.
        """
        stored = dataclasses.replace(
            record,
            id=record.id or uuid.uuid4().hex,
            timestamp=record.timestamp if record.timestamp is not None else time.time(),
        )

        try:
            async with self._db.connection() as conn:
                await conn.execute(
                    f"INSERT INTO LORE_RECORD ({self._COLUMN_LIST}) VALUES (?, ?, ?, ?, ?)",
                    (
                        stored.id,
                        stored.lore_text,
                        stored.object_name,
                        stored.image_data,
                        stored.timestamp,
                    ),
                )
                await conn.commit()
        except aiosqlite.Error as exc:
            LOGGER.error("Failed to insert lore record %s: %s", stored.id, exc)
            raise StoreCommitError("save", str(exc)) from exc

        LOGGER.info(
            "Saved lore record %s (name=%r, lore=%d chars, image=%d bytes)",
            stored.id,
            stored.object_name,
            len(stored.lore_text),
            len(stored.image_data or b""),
        )
        return stored

    async def get_record(self, record_id: str) -> Optional[LoreRecord]:
        """Return the LoreRecord for `record_id`, or None if not found."""
        async with self._db.connection() as conn:
            cur = await conn.execute(
                f"SELECT {self._COLUMN_LIST} FROM LORE_RECORD WHERE id = ?",
                (record_id,),
            )
            row = await cur.fetchone()
            return self._row_to_record(row) if row else None

    async def list_records(self, limit: Optional[int] = None) -> List[LoreRecord]:
        """List records newest first.

        Args:
            limit: Maximum number of rows to return; None returns all rows.
        """
        sql = f"SELECT {self._COLUMN_LIST} FROM LORE_RECORD ORDER BY timestamp DESC, rowid DESC"
        params: tuple = ()
        if limit is not None:
            sql += " LIMIT ?"
            params = (limit,)

        async with self._db.connection() as conn:
            cur = await conn.execute(sql, params)
            rows = await cur.fetchall()
            return [self._row_to_record(r) for r in rows]

    async def count_records(self) -> int:
        async with self._db.connection() as conn:
            cur = await conn.execute("SELECT COUNT(*) FROM LORE_RECORD")
            row = await cur.fetchone()
            return int(row[0]) if row else 0

    async def delete_record(self, record_id: str) -> bool:
        """Delete a record by id. Returns True if a row was deleted.

        Deleting an unknown id is a no-op that returns False.

        Raises:
            StoreCommitError: If the delete cannot be committed.
        """
        try:
            async with self._db.connection() as conn:
                cur = await conn.execute("DELETE FROM LORE_RECORD WHERE id = ?", (record_id,))
                await conn.commit()
                deleted = cur.rowcount > 0
        except aiosqlite.Error as exc:
            LOGGER.error("Failed to delete lore record %s: %s", record_id, exc)
            raise StoreCommitError("delete", str(exc)) from exc

        if deleted:
            LOGGER.info("Deleted lore record %s", record_id)
        return deleted

    @staticmethod
    def _row_to_record(row: Sequence[object]) -> LoreRecord:
        """Convert a DB row tuple into a LoreRecord."""
        return LoreRecord(
            id=row[0],
            lore_text=row[1],
            object_name=row[2],
            image_data=row[3],
            timestamp=row[4],
        )
