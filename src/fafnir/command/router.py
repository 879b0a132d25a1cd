"""
Command router: prefix detection, tokenizing, admin gating and dispatch.

A message is a command when it starts with the configured prefix. The rest is
split on whitespace; the first token names the command and the remaining tokens
are its arguments. Every :class:`CommandName` has a capability requirement in
:data:`COMMAND_CAPABILITIES`; cogs register the handler for each command.

Unauthorized attempts at admin commands get no reply at all, and unknown
commands are ignored.
"""

from __future__ import annotations

from typing import Awaitable, Callable, Dict, Iterable, List, Mapping, Optional

import discord

from fafnir.datatypes.command_datatypes import (
    COMMAND_CAPABILITIES,
    Capability,
    CommandName,
    ParsedCommand,
)
from fafnir.util.logger import get_logger

logger = get_logger("command_router")

CommandHandler = Callable[[discord.Message, List[str]], Awaitable[None]]


def parse_command(content: str, prefix: str) -> Optional[ParsedCommand]:
    """Split ``content`` into a command name and arguments.

    Returns None when the message does not start with ``prefix`` or carries
    nothing after it.
    """
    if not prefix or not content.startswith(prefix):
        return None
    tokens = content[len(prefix):].split()
    if not tokens:
        return None
    return ParsedCommand(name=tokens[0], args=tokens[1:])


def is_admin(member: object, admin_roles: Iterable[str]) -> bool:
    """Return True if ``member`` holds any role named in ``admin_roles``.

    Users outside a guild have no roles and are never admins.
    """
    allowed = set(admin_roles)
    return any(getattr(role, "name", None) in allowed for role in getattr(member, "roles", None) or [])


class CommandRouter:
    """Classifies messages and dispatches them to registered handlers."""

    def __init__(
        self,
        prefix: Callable[[], str],
        admin_roles: Iterable[str],
        capabilities: Mapping[CommandName, Capability] = COMMAND_CAPABILITIES,
    ) -> None:
        """
        Args:
            prefix: Returns the current command prefix; read on every message so
                a runtime change of the prefix applies immediately.
            admin_roles: Role names that unlock admin commands.
            capabilities: Capability requirement of every command.
        """
        self._prefix = prefix
        self.admin_roles = frozenset(admin_roles)
        self._capabilities = dict(capabilities)
        self._handlers: Dict[CommandName, CommandHandler] = {}

    def register(self, command: CommandName, handler: CommandHandler) -> None:
        if command not in self._capabilities:
            raise KeyError(f"{command} has no capability requirement")
        if command in self._handlers:
            logger.warning("[ROUTER] Replacing handler for %s", command)
        self._handlers[command] = handler

    def missing_handlers(self) -> List[CommandName]:
        """Commands that have a capability entry but no registered handler."""
        return [command for command in self._capabilities if command not in self._handlers]

    def can_invoke(self, command: CommandName, author: object) -> bool:
        if self._capabilities[command] is Capability.PUBLIC:
            return True
        return is_admin(author, self.admin_roles)

    def resolve(self, content: str, author: object) -> Optional[tuple[CommandName, CommandHandler, List[str]]]:
        """Classify and gate a message without running anything.

        Returns the command, its handler and arguments, or None when the message
        must be ignored (no prefix, unknown command, no handler, not allowed).
        """
        parsed = parse_command(content, self._prefix())
        if parsed is None:
            return None

        command = parsed.command
        if command is None:
            logger.debug("[ROUTER] Ignoring unknown command %r", parsed.name)
            return None

        handler = self._handlers.get(command)
        if handler is None:
            logger.debug("[ROUTER] No handler registered for %s", command)
            return None

        if not self.can_invoke(command, author):
            logger.debug("[ROUTER] Dropping %s from %s: not an admin", command, getattr(author, "id", "?"))
            return None

        return command, handler, parsed.args

    async def dispatch(self, message: discord.Message) -> bool:
        """Route one message. Returns True if a handler ran."""
        if getattr(message.author, "bot", False):
            return False

        resolved = self.resolve(message.content or "", message.author)
        if resolved is None:
            return False

        command, handler, args = resolved
        logger.debug("[ROUTER] %s invoked %s with %d argument(s)", message.author, command, len(args))
        await handler(message, args)
        return True
