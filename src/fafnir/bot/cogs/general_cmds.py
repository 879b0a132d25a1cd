"""
General commands: ``ping``, ``test welcome|goodbye`` and ``restart``.
"""

from typing import List

import discord
from discord.ext import commands

from fafnir.bot import greetings
from fafnir.bot.bot_state import BotState
from fafnir.datatypes.command_datatypes import CommandName
from fafnir.util.logger import get_logger

logger = get_logger("general_cog")


class GeneralCommandsCog(commands.Cog):
    """Cog for public utility commands and the admin restart command."""

    def __init__(self, discord_bot_instance, state: BotState):
        self.bot = discord_bot_instance
        self.state = state

        state.router.register(CommandName.PING, self.ping)
        state.router.register(CommandName.TEST, self.test)
        state.router.register(CommandName.RESTART, self.restart)
        logger.info("General cog loaded")

    async def ping(self, message: discord.Message, args: List[str]) -> None:
        await message.reply(f"pong! I am currently up and running in {self.state.environment} mode.")

    async def test(self, message: discord.Message, args: List[str]) -> None:
        """Replay the welcome or goodbye announcement for the author."""
        which = args[0] if args else ""
        if which == "welcome":
            await greetings.send_welcome(self.bot, self.state, message.author)
        elif which == "goodbye":
            await greetings.send_goodbye(self.bot, self.state, message.author)

    async def restart(self, message: discord.Message, args: List[str]) -> None:
        logger.info("Restart requested by %s", message.author)
        await message.reply("Restarting...")
        self.state.request_restart()
        await self.bot.close()


def setup(discord_bot_instance, state: BotState):
    """Cog setup entry point."""
    discord_bot_instance.add_cog(GeneralCommandsCog(discord_bot_instance, state))
