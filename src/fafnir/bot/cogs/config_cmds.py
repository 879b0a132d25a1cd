"""
Settings cog: ``config set|reset|get|options`` and ``reset``.

All edits go through the shared :class:`BotSettings` instance; the YAML file on
disk is never rewritten.
"""

from typing import List

import discord
from discord.ext import commands

from fafnir.bot.bot_state import BotState
from fafnir.bot.presence import update_presence
from fafnir.configuration.bot_settings import SettingChange
from fafnir.datatypes.command_datatypes import CommandName
from fafnir.util.logger import get_logger

logger = get_logger("config_cog")


def format_change(change: SettingChange) -> str:
    return f"`{change.key}` changed from `{change.previous}` to `{change.current}` (version {change.version})."


class ConfigCommandsCog(commands.Cog):
    """Cog exposing runtime settings to admins."""

    def __init__(self, discord_bot_instance, state: BotState):
        self.bot = discord_bot_instance
        self.state = state

        state.router.register(CommandName.CONFIG, self.config)
        state.router.register(CommandName.RESET, self.reset)
        logger.info("Config cog loaded")

    @property
    def usage(self) -> str:
        prefix = self.state.settings.get("command_prefix")
        return f"usage: {prefix}config set <key> <value> | reset <key> | get <key> | options"

    async def apply_changes(self, changes: List[SettingChange]) -> None:
        """Push changed settings that are displayed outside of commands."""
        if any(change.key == "activity_message" and change.changed for change in changes):
            await update_presence(self.bot, self.state.settings)

    async def config(self, message: discord.Message, args: List[str]) -> None:
        settings = self.state.settings
        action = args[0] if args else ""

        if action == "options":
            options = "\n".join(f"- {key}" for key in settings.options())
            await message.reply(f"these settings can be changed:\n```\n{options}\n```")
            return

        if action not in ("set", "get", "reset") or len(args) < 2:
            await message.reply(self.usage)
            return

        key = args[1]
        try:
            if action == "get":
                await message.reply(f"`{key}` is currently `{settings.get(key)}`.")
                return
            if action == "reset":
                change = settings.reset(key)
            else:
                if len(args) < 3:
                    await message.reply(self.usage)
                    return
                change = settings.set(key, " ".join(args[2:]))
        except KeyError:
            await message.reply(f"`{key}` is not a setting. Use `config options` to list them.")
            return
        except ValueError as exc:
            await message.reply(f"Invalid value: {exc}")
            return

        logger.info("[CONFIG] %s by %s: %s -> %r", action, message.author, key, change.current)
        await message.reply(format_change(change))
        await self.apply_changes([change])

    async def reset(self, message: discord.Message, args: List[str]) -> None:
        """Restore every runtime setting to its configured value."""
        changes = self.state.settings.reset_all()
        logger.info("[CONFIG] %s reset all settings (%d changed)", message.author, len(changes))
        if not changes:
            await message.reply("All settings already have their default values.")
            return
        await message.reply("Settings reset:\n" + "\n".join(format_change(change) for change in changes))
        await self.apply_changes(changes)


def setup(discord_bot_instance, state: BotState):
    """Cog setup entry point."""
    discord_bot_instance.add_cog(ConfigCommandsCog(discord_bot_instance, state))
