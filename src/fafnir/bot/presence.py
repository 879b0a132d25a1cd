"""
Bot presence (the "Playing ..." activity line).

Set when the bot becomes ready and again whenever ``activity_message`` changes
at runtime.
"""

from __future__ import annotations

import discord

from fafnir.configuration.bot_settings import BotSettings
from fafnir.util.logger import get_logger

logger = get_logger("presence")


async def update_presence(bot: discord.Client, settings: BotSettings) -> bool:
    """Show the current ``activity_message`` as the bot's activity.

    An empty message clears the activity. Returns False if Discord rejected the
    update.
    """
    activity_message = settings.get("activity_message")
    activity = discord.Game(name=activity_message) if activity_message else None
    try:
        await bot.change_presence(status=discord.Status.online, activity=activity)
    except discord.DiscordException as exc:
        logger.error("[PRESENCE] Failed to update presence to %r: %s", activity_message, exc)
        return False
    logger.debug("[PRESENCE] Activity set to %r", activity_message)
    return True
