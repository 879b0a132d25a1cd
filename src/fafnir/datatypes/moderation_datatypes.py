"""
Outcome types produced by the warning ledger.

The ledger never talks to Discord. It reports what happened to the record and
which mute role change, if any, the caller must apply.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from fafnir.repositories.warning_repo import WarningRecord


class RoleChange(Enum):
    """Mute role mutation requested by a ledger transition."""

    GRANT = "grant"
    REVOKE = "revoke"

    def __str__(self) -> str:
        return self.value


class LedgerOutcome(Enum):
    """What a ledger operation did to a user's record."""

    WARNED = "warned"              # count went up, still below the threshold
    MUTED = "muted"                # count reached the threshold (warn or manual mute)
    ALREADY_MUTED = "already_muted"  # warn rejected, nothing changed
    UNWARNED = "unwarned"          # count went down, record kept
    CLEARED = "cleared"            # count reached zero, record deleted
    UNMUTED = "unmuted"            # record deleted by unmute
    NOT_FOUND = "not_found"        # no record for the user, nothing changed
    STATUS = "status"              # read-only lookup

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True, slots=True)
class LedgerResult:
    """Result of a single ledger operation.

    Attributes:
        outcome: What happened to the record.
        username: Normalized user tag the operation applied to.
        record: The record after the operation, or None when it does not exist.
        role_change: Mute role change the caller has to apply, if any.
    """
    outcome: LedgerOutcome
    username: str
    record: Optional["WarningRecord"] = None
    role_change: Optional[RoleChange] = None

    @property
    def count(self) -> int:
        return self.record.count if self.record else 0
