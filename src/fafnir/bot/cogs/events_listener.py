"""Event listener cog: lifecycle, member greetings and message routing.

* ``on_ready`` sets the presence, reports commands without a handler and
  reconciles pending mute role changes.
* ``on_member_join`` / ``on_member_remove`` post the welcome and goodbye messages.
* ``on_message`` hands every message to the command router.
"""

import discord
from discord.ext import commands

from fafnir.bot import greetings
from fafnir.bot.bot_state import BotState
from fafnir.bot.presence import update_presence
from fafnir.util.logger import get_logger

logger = get_logger("events_listener_cog")


class EventsListenerCog(commands.Cog):
    """Cog containing bot lifecycle, member and message handlers."""

    def __init__(self, discord_bot_instance, state: BotState):
        self.bot = discord_bot_instance
        self.state = state
        logger.info("Events listener cog loaded")

    @commands.Cog.listener(name="on_ready")
    async def on_ready(self):
        if self.bot.user:
            await update_presence(self.bot, self.state.settings)
            logger.info(f"Bot connected as {self.bot.user} (ID: {self.bot.user.id})")
        else:
            logger.warning("Bot partially connected, but user information not yet available.")

        missing = self.state.router.missing_handlers()
        if missing:
            logger.warning("[ROUTER] No handler registered for: %s", ", ".join(str(c) for c in missing))

        try:
            resolved = await self.state.role_sync.reconcile(self.bot)
        except Exception:
            logger.exception("[MUTE ROLE] Reconciliation of pending role changes failed")
        else:
            if resolved:
                logger.info("[MUTE ROLE] Reconciled %d pending role change(s)", resolved)

    @commands.Cog.listener(name="on_member_join")
    async def on_member_join(self, member: discord.Member):
        try:
            await greetings.send_welcome(self.bot, self.state, member)
        except discord.HTTPException as exc:
            logger.error("[GREETINGS] Failed to welcome %s: %s", member, exc)

    @commands.Cog.listener(name="on_member_remove")
    async def on_member_remove(self, member: discord.Member):
        try:
            await greetings.send_goodbye(self.bot, self.state, member)
        except discord.HTTPException as exc:
            logger.error("[GREETINGS] Failed to say goodbye to %s: %s", member, exc)

    @commands.Cog.listener(name="on_message")
    async def on_message(self, message: discord.Message):
        try:
            await self.state.router.dispatch(message)
        except Exception:
            logger.exception("Error while handling message %s", message.id)


def setup(discord_bot_instance, state: BotState):
    """Register the EventsListenerCog with the bot."""
    discord_bot_instance.add_cog(EventsListenerCog(discord_bot_instance, state))
