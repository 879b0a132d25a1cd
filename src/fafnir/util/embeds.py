"""
Embed builders for carry listings and member greetings.
"""

from typing import Dict, List

import discord

from fafnir.carry.boss_sheet import CarryRow

CARRY_COLOR = 3447003
WELCOME_COLOR = 2215814
NO_CARRIES_NEEDED = "No carries needed!"

# Discord rejects embeds with more fields or longer field values than this
MAX_EMBED_FIELDS = 25
MAX_FIELD_VALUE = 1024


def _clip(value: str) -> str:
    return value if len(value) <= MAX_FIELD_VALUE else value[: MAX_FIELD_VALUE - 3] + "..."


def build_carry_list_embed(rows: List[CarryRow]) -> discord.Embed:
    """One field per person, listing the bosses they still need."""
    embed = discord.Embed(color=CARRY_COLOR)
    for row in rows[:MAX_EMBED_FIELDS]:
        embed.add_field(name=row.name, value=_clip(row.bosses_needed), inline=False)
    return embed


def build_carry_by_boss_embed(result: Dict[str, List[str]]) -> discord.Embed:
    """One field per requested boss, listing who needs it."""
    embed = discord.Embed(color=CARRY_COLOR)
    for boss, people in list(result.items())[:MAX_EMBED_FIELDS]:
        embed.add_field(name=boss, value=_clip(", ".join(people) or NO_CARRIES_NEEDED), inline=False)
    return embed


def build_welcome_embed(welcome_message: str, image_url: str) -> discord.Embed:
    embed = discord.Embed(color=WELCOME_COLOR)
    embed.add_field(name="Welcome to Fafnir!", value=welcome_message or "Glad to have you here!", inline=False)
    if image_url:
        embed.set_image(url=image_url)
    return embed
