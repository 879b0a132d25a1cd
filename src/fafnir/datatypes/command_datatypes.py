"""
Command names, their capability requirements and parsed command payloads.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional


class Capability(Enum):
    """Who may invoke a command."""

    PUBLIC = "public"
    ADMIN = "admin"


class CommandName(Enum):
    """Every text command the bot understands."""

    TEST = "test"
    PING = "ping"
    CARRY = "carry"
    CONFIG = "config"
    RESET = "reset"
    RESTART = "restart"
    WARN = "warn"
    WARNSTATUS = "warnstatus"
    UNWARN = "unwarn"
    MUTE = "mute"
    UNMUTE = "unmute"
    PURGE = "purge"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def lookup(cls, name: str) -> Optional["CommandName"]:
        """Return the command for ``name`` (case-sensitive), or None if unknown."""
        try:
            return cls(name)
        except ValueError:
            return None


COMMAND_CAPABILITIES: Dict[CommandName, Capability] = {
    CommandName.TEST: Capability.PUBLIC,
    CommandName.PING: Capability.PUBLIC,
    CommandName.CARRY: Capability.PUBLIC,
    CommandName.CONFIG: Capability.ADMIN,
    CommandName.RESET: Capability.ADMIN,
    CommandName.RESTART: Capability.ADMIN,
    CommandName.WARN: Capability.ADMIN,
    CommandName.WARNSTATUS: Capability.ADMIN,
    CommandName.UNWARN: Capability.ADMIN,
    CommandName.MUTE: Capability.ADMIN,
    CommandName.UNMUTE: Capability.ADMIN,
    CommandName.PURGE: Capability.ADMIN,
}


@dataclass(frozen=True, slots=True)
class ParsedCommand:
    """A message split into its command name and argument tokens."""

    name: str
    args: List[str] = field(default_factory=list)

    @property
    def command(self) -> Optional[CommandName]:
        return CommandName.lookup(self.name)
