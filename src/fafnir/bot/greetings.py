"""
Welcome and goodbye announcements.

Used by the member join/leave listeners and by ``test welcome|goodbye``.
"""

from __future__ import annotations

import random
from typing import Optional

import discord

from fafnir.bot.bot_state import BotState
from fafnir.util.embeds import build_welcome_embed
from fafnir.util.logger import get_logger

logger = get_logger("greetings")

DEFAULT_GOODBYE = "We'll miss you!"


def resolve_channel(bot: discord.Client, channel_id: Optional[int], purpose: str):
    """Return the configured channel, or None (logged) when it is unset or unknown."""
    if channel_id is None:
        logger.warning("[GREETINGS] No %s channel configured", purpose)
        return None
    channel = bot.get_channel(channel_id)
    if channel is None:
        logger.warning("[GREETINGS] %s channel %s not found", purpose.capitalize(), channel_id)
    return channel


def pick_goodbye(state: BotState) -> str:
    options = state.config.goodbye_messages
    return random.choice(options) if options else DEFAULT_GOODBYE


async def send_welcome(bot: discord.Client, state: BotState, member) -> bool:
    channel = resolve_channel(bot, state.config.welcome_channel_id, "welcome")
    if channel is None:
        return False

    embed = build_welcome_embed(state.settings.get("welcome_message"), state.settings.get("background_image_url"))
    await channel.send(f"Hi {member.mention}!")
    await channel.send(embed=embed)
    logger.info("[GREETINGS] Welcomed %s", member)
    return True


async def send_goodbye(bot: discord.Client, state: BotState, member) -> bool:
    channel = resolve_channel(bot, state.config.goodbye_channel_id, "goodbye")
    if channel is None:
        return False

    await channel.send(f"{member} ({member.mention}) has left the server. {pick_goodbye(state)}")
    logger.info("[GREETINGS] Said goodbye to %s", member)
    return True
