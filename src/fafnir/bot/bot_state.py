"""
Shared runtime state handed to every cog.

One :class:`BotState` is built at startup and passed by reference; cogs never
reach for module-level globals for configuration or services.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field

from fafnir.carry.boss_sheet import BossCarrySheet
from fafnir.command.router import CommandRouter
from fafnir.configuration.app_configuration import AppConfig
from fafnir.configuration.bot_settings import BotSettings
from fafnir.moderation.mute_role_sync import MuteRoleSync
from fafnir.moderation.user_locks import UserLocks
from fafnir.moderation.warning_ledger import WarningLedger


@dataclass
class BotState:
    """Services and settings shared by the cogs."""

    config: AppConfig
    settings: BotSettings
    router: CommandRouter
    ledger: WarningLedger
    role_sync: MuteRoleSync
    carry_sheet: BossCarrySheet
    environment: str = "development"
    restart_event: asyncio.Event = field(default_factory=asyncio.Event)

    def request_restart(self) -> None:
        self.restart_event.set()

    def is_restart_requested(self) -> bool:
        return self.restart_event.is_set()


def build_state(config: AppConfig, environment: str = "development") -> BotState:
    """Wire the services for a bot session from the loaded configuration."""
    settings = BotSettings.from_config(config)
    user_locks = UserLocks()
    return BotState(
        config=config,
        settings=settings,
        router=CommandRouter(prefix=lambda: settings.get("command_prefix"), admin_roles=config.admin_roles),
        ledger=WarningLedger(max_warnings=config.max_warnings, user_locks=user_locks),
        role_sync=MuteRoleSync(role_name=lambda: settings.get("mute_role"), user_locks=user_locks),
        carry_sheet=BossCarrySheet(config.boss_carry),
        environment=environment,
    )
