"""
Per-user locks shared by the warning ledger and the mute role sync.

A user's record write and the mute role change that follows it must run under
the same lock, otherwise two commands for one user can apply their role changes
in the opposite order to their record writes. Entries are dropped as soon as no
task holds or waits on them, so the registry only tracks users with commands in
flight.
"""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import AsyncIterator, Dict


@dataclass
class _UserLock:
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    users: int = 0


class UserLocks:
    """Registry of ``asyncio.Lock`` objects keyed by warning record username."""

    def __init__(self) -> None:
        self._per_user_locks: Dict[str, _UserLock] = {}

    def __len__(self) -> int:
        return len(self._per_user_locks)

    def __contains__(self, username: object) -> bool:
        return username in self._per_user_locks

    @asynccontextmanager
    async def hold(self, username: str) -> AsyncIterator[None]:
        """Hold the lock for ``username``. Not reentrant."""
        entry = self._per_user_locks.get(username)
        if entry is None:
            entry = self._per_user_locks[username] = _UserLock()
        entry.users += 1
        try:
            async with entry.lock:
                yield
        finally:
            entry.users -= 1
            if entry.users == 0:
                del self._per_user_locks[username]
