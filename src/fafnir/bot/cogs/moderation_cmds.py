"""
Moderation cog: warning, mute and purge commands.

Handlers are registered with the command router, which has already checked
that the author holds an admin role. Every handler follows the same steps:

1. Validate the target tag (usage errors are replied inline, nothing changes).
2. Run the warning ledger operation. Store errors abort the command with a
   generic failure reply; the traceback goes to the log.
3. Apply the mute role change the ledger asked for (best effort), before the
   ledger releases the user's lock.
4. Announce the result in the channel.
"""

from __future__ import annotations

from typing import Awaitable, Callable, List, Optional

import discord
from discord.ext import commands

from fafnir.bot.bot_state import BotState
from fafnir.datatypes.command_datatypes import CommandName
from fafnir.datatypes.discord_datatypes import UserTag
from fafnir.datatypes.moderation_datatypes import LedgerOutcome, LedgerResult
from fafnir.moderation import messages
from fafnir.moderation.warning_ledger import OnCommit
from fafnir.util.arguments import parse_positive_int
from fafnir.util.logger import get_logger

logger = get_logger("moderation_cog")


class ModerationCommandsCog(commands.Cog):
    """Cog containing the warning ledger commands and purge."""

    def __init__(self, discord_bot_instance, state: BotState):
        """
        Parameters
        ----------
        discord_bot_instance:
            Active :class:`discord.Bot` instance.
        state:
            Shared services; the cog registers its handlers with ``state.router``.
        """
        self.discord_bot_instance = discord_bot_instance
        self.state = state

        router = state.router
        router.register(CommandName.WARN, self.warn)
        router.register(CommandName.WARNSTATUS, self.warnstatus)
        router.register(CommandName.UNWARN, self.unwarn)
        router.register(CommandName.MUTE, self.mute)
        router.register(CommandName.UNMUTE, self.unmute)
        router.register(CommandName.PURGE, self.purge)
        logger.info("Moderation cog loaded")

    @property
    def max_warnings(self) -> int:
        return self.state.ledger.max_warnings

    async def parse_target(self, message: discord.Message, args: List[str], verb: str) -> Optional[UserTag]:
        """Validate the first argument as a user tag, replying with usage help if it is not."""
        if not args:
            await message.reply(messages.missing_user(verb))
            return None

        tag = UserTag.parse(args[0], self.state.config.user_tag_pattern)
        if tag is None:
            await message.reply(messages.invalid_user(verb))
            return None
        return tag

    async def run_ledger(self, message: discord.Message, operation: Awaitable[LedgerResult]) -> Optional[LedgerResult]:
        """Await a ledger operation, turning store failures into a generic reply."""
        try:
            return await operation
        except Exception:
            logger.exception("[MODERATION] Warning store failure while handling %r", message.content)
            try:
                await message.reply(messages.STORE_FAILURE)
            except discord.HTTPException:
                logger.error("Failed to send error response to user.")
            return None

    async def apply_role_change(self, message: discord.Message, result: LedgerResult) -> bool:
        """Apply the role change a ledger result asks for.

        Runs as the ledger's ``on_commit`` hook, so it still holds the user's
        lock. Returns False only when a requested change could not be applied.
        """
        if result.role_change is None:
            return True
        if message.guild is None:
            logger.error("[MODERATION] Cannot %s mute role for %s outside a guild", result.role_change, result.username)
            return False
        return await self.state.role_sync.apply(message.guild, result.username, result.role_change)

    async def moderate(
        self,
        message: discord.Message,
        tag: UserTag,
        operation: Callable[[OnCommit], Awaitable[LedgerResult]],
        not_found: Optional[str] = None,
    ) -> None:
        """Run a mutating ledger operation with its role change, then announce the result."""
        role_applied = True

        async def on_commit(result: LedgerResult) -> None:
            nonlocal role_applied
            role_applied = await self.apply_role_change(message, result)

        result = await self.run_ledger(message, operation(on_commit))
        if result is None:
            return

        if result.outcome is LedgerOutcome.NOT_FOUND and not_found:
            await message.channel.send(not_found)
            return
        if not role_applied:
            await message.reply(messages.ROLE_SYNC_FAILURE)
        await self.announce(message, result, tag)

    async def announce(self, message: discord.Message, result: LedgerResult, tag: UserTag) -> None:
        for text in messages.ledger_messages(result, tag, self.max_warnings):
            await message.channel.send(text)

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    async def warn(self, message: discord.Message, args: List[str]) -> None:
        """``warn <@user> [note...]``"""
        tag = await self.parse_target(message, args, "warn")
        if tag is None:
            return

        note = " ".join(args[1:])
        issuer = str(message.author)
        await self.moderate(message, tag, lambda on_commit: self.state.ledger.warn(tag.key, note, issuer, on_commit=on_commit))

    async def warnstatus(self, message: discord.Message, args: List[str]) -> None:
        """``warnstatus <@user>``"""
        tag = await self.parse_target(message, args, "check")
        if tag is None:
            return

        result = await self.run_ledger(message, self.state.ledger.warn_status(tag.key))
        if result is None:
            return

        if result.outcome is LedgerOutcome.NOT_FOUND:
            await message.reply(messages.NO_WARNINGS)
            return
        await self.announce(message, result, tag)

    async def unwarn(self, message: discord.Message, args: List[str]) -> None:
        """``unwarn <@user>``"""
        tag = await self.parse_target(message, args, "unwarn")
        if tag is None:
            return

        issuer = str(message.author)
        await self.moderate(
            message, tag,
            lambda on_commit: self.state.ledger.unwarn(tag.key, issuer, on_commit=on_commit),
            not_found=messages.UNWARN_NOT_FOUND,
        )

    async def mute(self, message: discord.Message, args: List[str]) -> None:
        """``mute <@user>``"""
        tag = await self.parse_target(message, args, "mute")
        if tag is None:
            return

        issuer = str(message.author)
        await self.moderate(message, tag, lambda on_commit: self.state.ledger.mute(tag.key, issuer, on_commit=on_commit))

    async def unmute(self, message: discord.Message, args: List[str]) -> None:
        """``unmute <@user>``"""
        tag = await self.parse_target(message, args, "unmute")
        if tag is None:
            return

        await self.moderate(
            message, tag,
            lambda on_commit: self.state.ledger.unmute(tag.key, on_commit=on_commit),
            not_found=messages.UNMUTE_NOT_FOUND,
        )

    async def purge(self, message: discord.Message, args: List[str]) -> None:
        """``purge <n>``: delete the last n messages and the command itself."""
        limit = parse_positive_int(args[0]) if args else None
        if limit is None:
            await message.reply("Please specify the number of messages to purge.")
            return

        try:
            deleted = await message.channel.purge(limit=limit + 1)
        except discord.HTTPException as exc:
            logger.error("[PURGE] Purge of %d messages by %s failed: %s", limit, message.author, exc)
            await message.channel.send("I could not delete those messages.")
            return

        logger.info(
            "[PURGE] %s purged %d message(s) in #%s (%s)",
            message.author, len(deleted), getattr(message.channel, "name", message.channel.id), message.content,
        )


def setup(discord_bot_instance, state: BotState):
    """Cog setup entry point."""
    discord_bot_instance.add_cog(ModerationCommandsCog(discord_bot_instance, state))
