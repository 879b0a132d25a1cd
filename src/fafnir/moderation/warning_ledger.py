"""
Warning ledger: per-user warning counts and the warn -> mute state machine.

States per user:

* Clean        -- no record
* Warned(n)    -- ``1 <= n < max_warnings``
* Muted        -- ``n == max_warnings``

The ledger is the only component that touches the ``warnings`` table. Each
operation runs under a per-user lock and performs its read-modify-write inside
a single write transaction, so concurrent commands for the same user cannot
lose updates. Store errors propagate to the caller unchanged.

Mute role changes are not applied here. Each :class:`LedgerResult` names the
:class:`RoleChange` the caller must apply once the record is committed. Callers
pass that work as ``on_commit``: it runs after the transaction commits but before
the user's lock is released, so role changes happen in the same order as the
record writes.
"""

from __future__ import annotations

from typing import Awaitable, Callable, Optional

from fafnir.database.db_connection import ConnectionManager, db_connection
from fafnir.datatypes.moderation_datatypes import LedgerOutcome, LedgerResult, RoleChange
from fafnir.moderation.user_locks import UserLocks
from fafnir.repositories.warning_repo import WarningRecord, WarningRepo
from fafnir.util.logger import get_logger

logger = get_logger("warning_ledger")

OnCommit = Callable[[LedgerResult], Awaitable[None]]


class WarningLedger:
    """Owns warning records and enforces the warning threshold."""

    def __init__(
        self,
        max_warnings: int,
        connection: ConnectionManager = db_connection,
        user_locks: Optional[UserLocks] = None,
    ) -> None:
        if max_warnings < 1:
            raise ValueError("max_warnings must be at least 1")
        self.max_warnings = max_warnings
        self._connection = connection
        self.user_locks = user_locks if user_locks is not None else UserLocks()

    def is_muted(self, record: WarningRecord | None) -> bool:
        return record is not None and record.count >= self.max_warnings

    async def _serialized(
        self,
        username: str,
        operation: Callable[[], Awaitable[LedgerResult]],
        on_commit: Optional[OnCommit],
    ) -> LedgerResult:
        async with self.user_locks.hold(username):
            result = await operation()
            if on_commit is not None:
                await on_commit(result)
        return result

    async def warn(self, username: str, note: str, issuer: str, on_commit: Optional[OnCommit] = None) -> LedgerResult:
        """Add one warning; the warning that reaches the threshold mutes the user.

        A warn that would push the count past the threshold is rejected and
        changes nothing.
        """
        return await self._serialized(username, lambda: self._warn(username, note, issuer), on_commit)

    async def _warn(self, username: str, note: str, issuer: str) -> LedgerResult:
        line = note.strip() or f"Warned by {issuer}"
        async with self._connection.transaction() as conn:
            existing = await WarningRepo.find(conn, username)
            if existing is None:
                record = WarningRecord(username=username, count=1, note=line)
                await WarningRepo.insert(conn, record)
            else:
                count = existing.count + 1
                if count > self.max_warnings:
                    logger.info("[WARNING LEDGER] Rejected warn for %s: already muted", username)
                    return LedgerResult(LedgerOutcome.ALREADY_MUTED, username, existing)
                record = WarningRecord(username=username, count=count, note=existing.with_note(line))
                await WarningRepo.update(conn, record)

        logger.info("[WARNING LEDGER] %s warned by %s (%d/%d)", username, issuer, record.count, self.max_warnings)
        if record.count == self.max_warnings:
            return LedgerResult(LedgerOutcome.MUTED, username, record, RoleChange.GRANT)
        return LedgerResult(LedgerOutcome.WARNED, username, record)

    async def unwarn(self, username: str, issuer: str, on_commit: Optional[OnCommit] = None) -> LedgerResult:
        """Remove one warning; the last one deletes the record.

        Leaving the muted state requests the mute role to be revoked.
        """
        return await self._serialized(username, lambda: self._unwarn(username, issuer), on_commit)

    async def _unwarn(self, username: str, issuer: str) -> LedgerResult:
        async with self._connection.transaction() as conn:
            existing = await WarningRepo.find(conn, username)
            if existing is None:
                return LedgerResult(LedgerOutcome.NOT_FOUND, username)

            was_muted = self.is_muted(existing)
            count = min(existing.count, self.max_warnings) - 1
            if count <= 0:
                await WarningRepo.delete(conn, username)
                record = None
            else:
                record = WarningRecord(
                    username=username,
                    count=count,
                    note=existing.with_note(f"Unwarned by {issuer}"),
                )
                await WarningRepo.update(conn, record)

        role_change = RoleChange.REVOKE if was_muted else None
        if record is None:
            logger.info("[WARNING LEDGER] %s unwarned by %s; record cleared", username, issuer)
            return LedgerResult(LedgerOutcome.CLEARED, username, None, role_change)

        logger.info("[WARNING LEDGER] %s unwarned by %s (%d/%d)", username, issuer, record.count, self.max_warnings)
        return LedgerResult(LedgerOutcome.UNWARNED, username, record, role_change)

    async def mute(self, username: str, issuer: str, on_commit: Optional[OnCommit] = None) -> LedgerResult:
        """Force the user to the muted state regardless of the current count."""
        return await self._serialized(username, lambda: self._mute(username, issuer), on_commit)

    async def _mute(self, username: str, issuer: str) -> LedgerResult:
        line = f"Manually muted by {issuer}"
        async with self._connection.transaction() as conn:
            existing = await WarningRepo.find(conn, username)
            if existing is None:
                record = WarningRecord(username=username, count=self.max_warnings, note=line)
                await WarningRepo.insert(conn, record)
            else:
                record = WarningRecord(
                    username=username,
                    count=self.max_warnings,
                    note=existing.with_note(line),
                )
                await WarningRepo.update(conn, record)

        logger.info("[WARNING LEDGER] %s manually muted by %s", username, issuer)
        return LedgerResult(LedgerOutcome.MUTED, username, record, RoleChange.GRANT)

    async def unmute(self, username: str, on_commit: Optional[OnCommit] = None) -> LedgerResult:
        """Delete the user's record entirely and request the mute role be revoked."""
        return await self._serialized(username, lambda: self._unmute(username), on_commit)

    async def _unmute(self, username: str) -> LedgerResult:
        async with self._connection.transaction() as conn:
            existing = await WarningRepo.find(conn, username)
            if existing is None:
                return LedgerResult(LedgerOutcome.NOT_FOUND, username)
            await WarningRepo.delete(conn, username)

        logger.info("[WARNING LEDGER] %s unmuted; record deleted", username)
        return LedgerResult(LedgerOutcome.UNMUTED, username, None, RoleChange.REVOKE)

    async def warn_status(self, username: str) -> LedgerResult:
        """Read-only lookup of the user's record."""
        async with self._connection.read() as conn:
            record = await WarningRepo.find(conn, username)
        if record is None:
            return LedgerResult(LedgerOutcome.NOT_FOUND, username)
        return LedgerResult(LedgerOutcome.STATUS, username, record)
