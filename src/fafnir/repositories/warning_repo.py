"""
Persistent storage for per-user warning records.

Each row is the document ``{username, count, note}`` keyed by ``username``,
the normalized user tag.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

import aiosqlite

from fafnir.util.logger import get_logger

logger = get_logger("warning_storage")


@dataclass(slots=True)
class WarningRecord:
    """A single row from the ``warnings`` table."""
    username: str
    count: int
    note: str = ""

    @property
    def notes(self) -> List[str]:
        """Non-empty note lines, oldest first."""
        return [line.strip() for line in self.note.split("\n") if line.strip()]

    def with_note(self, line: str) -> str:
        """Return the note history with ``line`` appended."""
        line = line.strip()
        if not line:
            return self.note
        return f"{self.note}\n{line}" if self.note else line


class WarningRepo:
    """Low-level CRUD for the ``warnings`` table."""

    @staticmethod
    async def find(conn: aiosqlite.Connection, username: str) -> Optional[WarningRecord]:
        cursor = await conn.execute(
            "SELECT username, count, note FROM warnings WHERE username = ?",
            (username,),
        )
        row = await cursor.fetchone()
        if row is None:
            return None
        return WarningRecord(username=row[0], count=row[1], note=row[2])

    @staticmethod
    async def insert(conn: aiosqlite.Connection, record: WarningRecord) -> None:
        await conn.execute(
            "INSERT INTO warnings (username, count, note) VALUES (?, ?, ?)",
            (record.username, record.count, record.note),
        )

    @staticmethod
    async def update(conn: aiosqlite.Connection, record: WarningRecord) -> None:
        await conn.execute(
            "UPDATE warnings SET count = ?, note = ? WHERE username = ?",
            (record.count, record.note, record.username),
        )

    @staticmethod
    async def delete(conn: aiosqlite.Connection, username: str) -> None:
        await conn.execute("DELETE FROM warnings WHERE username = ?", (username,))

    @staticmethod
    async def list_all(conn: aiosqlite.Connection) -> List[WarningRecord]:
        cursor = await conn.execute("SELECT username, count, note FROM warnings ORDER BY username")
        rows = await cursor.fetchall()
        return [WarningRecord(username=row[0], count=row[1], note=row[2]) for row in rows]
