"""
Applies mute role changes requested by the warning ledger.

Role changes run after the warning record is committed, under the same per-user
lock as the record write, and are best effort: a failure never rolls the record
back. Because a failure leaves the count and the role out of step, it is logged
at ERROR and written to the ``role_sync_outbox`` table.
:meth:`MuteRoleSync.reconcile` retries every pending entry once; it runs when
the bot becomes ready.
"""

from __future__ import annotations

from typing import Callable, Optional

import discord

from fafnir.database.db_connection import ConnectionManager, db_connection
from fafnir.datatypes.discord_datatypes import UserTag
from fafnir.datatypes.moderation_datatypes import RoleChange
from fafnir.moderation.user_locks import UserLocks
from fafnir.repositories.role_sync_repo import PendingRoleChange, RoleSyncRepo
from fafnir.util.logger import get_logger

logger = get_logger("mute_role_sync")


class RoleSyncError(Exception):
    """The mute role could not be applied to a member."""


class MuteRoleSync:
    """Grants and revokes the mute role, tracking failures in an outbox."""

    def __init__(
        self,
        role_name: Callable[[], str],
        connection: ConnectionManager = db_connection,
        user_locks: Optional[UserLocks] = None,
    ) -> None:
        """
        Args:
            role_name: Returns the current mute role name; read on every call so
                runtime setting changes apply immediately.
            connection: Database connection holding the outbox table.
            user_locks: Per-user locks shared with the warning ledger.
                :meth:`apply` expects its caller to hold the user's lock;
                :meth:`reconcile` takes it itself.
        """
        self._role_name = role_name
        self._connection = connection
        self._user_locks = user_locks if user_locks is not None else UserLocks()

    async def _resolve_member(self, guild: discord.Guild, user_id: int) -> discord.Member:
        member = guild.get_member(user_id)
        if member is not None:
            return member
        try:
            return await guild.fetch_member(user_id)
        except discord.NotFound as exc:
            raise RoleSyncError(f"user {user_id} is not a member of {guild.name}") from exc

    async def _mutate(self, guild: discord.Guild, username: str, change: RoleChange) -> None:
        tag = UserTag.from_key(username)
        if tag is None:
            raise RoleSyncError(f"cannot resolve a user id from {username!r}")

        role_name = self._role_name()
        role = discord.utils.get(guild.roles, name=role_name)
        if role is None:
            raise RoleSyncError(f"role {role_name!r} does not exist in {guild.name}")

        member = await self._resolve_member(guild, tag.user_id)
        reason = "Warning threshold reached" if change is RoleChange.GRANT else "Warnings cleared"
        if change is RoleChange.GRANT:
            await member.add_roles(role, reason=reason)
        else:
            await member.remove_roles(role, reason=reason)

    async def apply(self, guild: discord.Guild, username: str, change: RoleChange) -> bool:
        """Apply ``change`` for ``username``.

        Returns:
            True if the role was updated, False if the change was recorded in the
            outbox for later reconciliation.
        """
        try:
            await self._mutate(guild, username, change)
        except (RoleSyncError, discord.HTTPException) as exc:
            logger.error(
                "[MUTE ROLE] Failed to %s mute role for %s: %s. Warning count and role are now inconsistent.",
                change, username, exc,
            )
            await self._record_failure(guild.id, username, change, str(exc))
            return False

        await self._clear_pending(username)
        logger.info("[MUTE ROLE] %s mute role for %s", "Granted" if change is RoleChange.GRANT else "Revoked", username)
        return True

    async def _clear_pending(self, username: str) -> None:
        try:
            async with self._connection.transaction() as conn:
                await RoleSyncRepo.delete(conn, username)
        except Exception:
            logger.exception("[MUTE ROLE] Could not clear pending role change for %s", username)

    async def _record_failure(self, guild_id: int, username: str, change: RoleChange, error: str) -> None:
        try:
            async with self._connection.transaction() as conn:
                await RoleSyncRepo.upsert(conn, PendingRoleChange(username, guild_id, change, error))
        except Exception:
            logger.exception("[MUTE ROLE] Could not record pending %s for %s in the outbox", change, username)

    async def pending(self) -> list[PendingRoleChange]:
        async with self._connection.read() as conn:
            return await RoleSyncRepo.list_pending(conn)

    async def reconcile(self, bot: discord.Client) -> int:
        """Retry every pending role change once.

        Each entry is retried under the user's lock and re-read first, so a
        command that already applied a newer change for the same user wins.

        Returns:
            Number of entries that were applied and removed from the outbox.
        """
        resolved = 0
        for entry in await self.pending():
            async with self._user_locks.hold(entry.username):
                if await self._reconcile_entry(bot, entry.username):
                    resolved += 1
        return resolved

    async def _reconcile_entry(self, bot: discord.Client, username: str) -> bool:
        async with self._connection.read() as conn:
            entry = await RoleSyncRepo.find(conn, username)
        if entry is None:
            return False

        guild = bot.get_guild(entry.guild_id)
        if guild is None:
            logger.warning("[MUTE ROLE] Guild %s unavailable; keeping pending %s for %s",
                           entry.guild_id, entry.change, entry.username)
            return False
        try:
            await self._mutate(guild, entry.username, entry.change)
        except (RoleSyncError, discord.HTTPException) as exc:
            logger.error("[MUTE ROLE] Reconciliation of %s for %s failed again: %s",
                         entry.change, entry.username, exc)
            return False
        await self._clear_pending(entry.username)
        logger.info("[MUTE ROLE] Reconciled %s for %s", entry.change, entry.username)
        return True
