"""
Boss carry cog: ``carry list|bossnames|sheet|help``.
"""

from typing import List

import aiohttp
import discord
from discord.ext import commands

from fafnir.bot.bot_state import BotState
from fafnir.carry.boss_sheet import carries_by_boss, carries_by_name, split_bosses_and_limit
from fafnir.datatypes.command_datatypes import CommandName
from fafnir.util.arguments import parse_positive_int
from fafnir.util.embeds import build_carry_by_boss_embed, build_carry_list_embed
from fafnir.util.logger import get_logger

logger = get_logger("carry_cog")

SHEET_FAILURE = "I couldn't read the boss carry spreadsheet right now. Please try again later."


def list_reply(bosses: List[str], limit: int | None) -> str:
    """Reply text introducing a by-boss carry listing."""
    which = "each of those bosses" if len(bosses) > 1 else "that boss"
    if limit == 1:
        return f"here is the next person to be carried for {which}:"
    if limit:
        return f"here are the next {limit} people to be carried for {which}:"
    return f"here is the list of carries still needed for {which}:"


class CarryCommandsCog(commands.Cog):
    """Cog rendering read-only views of the boss carry sheet."""

    def __init__(self, discord_bot_instance, state: BotState):
        self.bot = discord_bot_instance
        self.state = state

        state.router.register(CommandName.CARRY, self.carry)
        logger.info("Carry cog loaded")

    @property
    def prefix(self) -> str:
        return self.state.settings.get("command_prefix")

    async def carry(self, message: discord.Message, args: List[str]) -> None:
        subcommand = args[0] if args else ""
        if subcommand in ("", "help"):
            await message.reply(f"usage: {self.prefix}carry list | bossnames | sheet | help")
        elif subcommand == "list":
            await self.show_list(message, args[1:])
        elif subcommand == "bossnames":
            await self.show_boss_names(message)
        elif subcommand == "sheet":
            await self.show_sheet(message)

    async def show_list(self, message: discord.Message, tokens: List[str]) -> None:
        if tokens and tokens[0] == "help":
            await message.reply(f"usage: {self.prefix}carry list <boss name> | <number to show> | help")
            return

        try:
            rows = await self.state.carry_sheet.fetch_rows()
        except (aiohttp.ClientError, RuntimeError, TimeoutError) as exc:
            logger.error("[CARRY] Failed to read boss carry sheet: %s", exc)
            await message.reply(SHEET_FAILURE)
            return

        if tokens and parse_positive_int(tokens[0]) is None:
            bosses, limit = split_bosses_and_limit(tokens)
            await message.reply(list_reply(bosses, limit))
            await message.channel.send(embed=build_carry_by_boss_embed(
                carries_by_boss(rows, bosses, limit, self.state.config.boss_carry.boss_names)
            ))
            return

        limit = parse_positive_int(tokens[0]) if tokens else None
        await message.reply("here is the list of carries still needed:")
        await message.channel.send(embed=build_carry_list_embed(carries_by_name(rows, limit)))

    async def show_boss_names(self, message: discord.Message) -> None:
        names = self.state.config.boss_carry.boss_names
        listing = "".join(f"- {boss} ({aliases})\n" for boss, aliases in names.items())
        await message.channel.send(
            "The current supported boss names are (case insensitive):\n"
            f"```\n{listing}```\n"
            "**Make sure you use these names when entering your information in the spreadsheet!**"
        )

    async def show_sheet(self, message: discord.Message) -> None:
        url = self.state.config.boss_carry.sheet_url
        if not url:
            await message.reply("the boss carry spreadsheet has not been configured.")
            return
        await message.reply(f"the boss carry spreadsheet can be found at:\n{url}")


def setup(discord_bot_instance, state: BotState):
    """Cog setup entry point."""
    discord_bot_instance.add_cog(CarryCommandsCog(discord_bot_instance, state))
