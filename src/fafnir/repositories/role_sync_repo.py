"""
Outbox of mute role changes that could not be applied.

Only the latest desired change per user is kept: a later grant replaces an
earlier revoke and vice versa.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

import aiosqlite

from fafnir.datatypes.moderation_datatypes import RoleChange


@dataclass(slots=True)
class PendingRoleChange:
    """A single row from the ``role_sync_outbox`` table."""
    username: str
    guild_id: int
    change: RoleChange
    error: str = ""


class RoleSyncRepo:
    """Low-level CRUD for the ``role_sync_outbox`` table."""

    @staticmethod
    async def upsert(conn: aiosqlite.Connection, pending: PendingRoleChange) -> None:
        await conn.execute(
            """
            INSERT INTO role_sync_outbox (username, guild_id, action, error)
            VALUES (?, ?, ?, ?)
            ON CONFLICT(username) DO UPDATE SET
                guild_id   = excluded.guild_id,
                action     = excluded.action,
                error      = excluded.error,
                created_at = CURRENT_TIMESTAMP
            """,
            (pending.username, pending.guild_id, pending.change.value, pending.error),
        )

    @staticmethod
    async def delete(conn: aiosqlite.Connection, username: str) -> None:
        await conn.execute("DELETE FROM role_sync_outbox WHERE username = ?", (username,))

    @staticmethod
    async def list_pending(conn: aiosqlite.Connection) -> List[PendingRoleChange]:
        cursor = await conn.execute(
            "SELECT username, guild_id, action, error FROM role_sync_outbox ORDER BY created_at"
        )
        rows = await cursor.fetchall()
        return [
            PendingRoleChange(
                username=row[0],
                guild_id=row[1],
                change=RoleChange(row[2]),
                error=row[3],
            )
            for row in rows
        ]

    @staticmethod
    async def find(conn: aiosqlite.Connection, username: str) -> Optional[PendingRoleChange]:
        cursor = await conn.execute(
            "SELECT username, guild_id, action, error FROM role_sync_outbox WHERE username = ?",
            (username,),
        )
        row = await cursor.fetchone()
        if row is None:
            return None
        return PendingRoleChange(username=row[0], guild_id=row[1], change=RoleChange(row[2]), error=row[3])
