"""
Pytest configuration and fixtures for the bot tests.
"""

import sys
from pathlib import Path
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
import yaml

# Add src directory to path so imports work
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

from fafnir.bot.bot_state import BotState  # noqa: E402
from fafnir.command.router import CommandRouter  # noqa: E402
from fafnir.configuration.app_configuration import AppConfig  # noqa: E402
from fafnir.configuration.bot_settings import BotSettings  # noqa: E402
from fafnir.database.db_connection import ConnectionManager  # noqa: E402
from fafnir.moderation.warning_ledger import WarningLedger  # noqa: E402


class FakeMember:
    """Stand-in for ``discord.Member`` with named roles."""

    def __init__(self, member_id=1, name="someone", roles=(), bot=False):
        self.id = member_id
        self.name = name
        self.bot = bot
        self.roles = [SimpleNamespace(name=role) for role in roles]
        self.mention = f"<@{member_id}>"
        self.add_roles = AsyncMock()
        self.remove_roles = AsyncMock()

    def __str__(self):
        return self.name


class FakeMessage:
    """Stand-in for ``discord.Message`` recording replies and channel sends."""

    def __init__(self, content="", author=None, guild=None, channel=None, message_id=1):
        self.id = message_id
        self.content = content
        self.author = author or FakeMember()
        self.guild = guild
        self.channel = channel or SimpleNamespace(id=10, name="general", send=AsyncMock(), purge=AsyncMock(return_value=[]))
        self.reply = AsyncMock()

    def sent(self):
        """Texts sent to the channel, in order."""
        return [call.args[0] for call in self.channel.send.await_args_list if call.args]

    def replies(self):
        return [call.args[0] for call in self.reply.await_args_list]


@pytest.fixture
def admin():
    return FakeMember(member_id=100, name="admin", roles=["Fafnir"])


@pytest.fixture
def regular_user():
    return FakeMember(member_id=200, name="member", roles=["Member"])


@pytest_asyncio.fixture
async def db(tmp_path):
    """A ConnectionManager opened on a fresh temporary database."""
    manager = ConnectionManager()
    await manager.open(tmp_path / "test.db")
    yield manager
    await manager.close()


@pytest_asyncio.fixture
async def ledger(db):
    return WarningLedger(max_warnings=5, connection=db)


@pytest.fixture
def fake_guild():
    member = FakeMember(member_id=42, name="alice")
    guild = SimpleNamespace(
        id=7,
        name="Fafnir",
        roles=[SimpleNamespace(name="Muted"), SimpleNamespace(name="Fafnir")],
        get_member=MagicMock(return_value=member),
        fetch_member=AsyncMock(return_value=member),
    )
    guild.member = member
    return guild


TEST_CONFIG = {
    "command_prefix": "!",
    "admin_roles": ["Fafnir", "Discord Admin"],
    "max_warnings": 5,
    "mute_role": "Muted",
    "activity_message": "with the carry sheet",
    "welcome_message": "Read the rules!",
    "background_image_url": "https://example.com/banner.png",
    "goodbye_messages": ["Safe travels!"],
    "welcome_channel_id": 555,
    "goodbye_channel_id": 556,
    "boss_carry": {
        "sheet_id": "abc123",
        "boss_names": {"zakum": "zak", "horntail": "ht"},
    },
}


@pytest.fixture
def app_config(tmp_path):
    path = tmp_path / "app_config.yml"
    path.write_text(yaml.safe_dump(TEST_CONFIG), encoding="utf-8")
    return AppConfig(path)


@pytest_asyncio.fixture
async def state(db, app_config):
    """BotState over a temporary database with fake role sync and sheet services."""
    settings = BotSettings.from_config(app_config)
    return BotState(
        config=app_config,
        settings=settings,
        router=CommandRouter(prefix=lambda: settings.get("command_prefix"), admin_roles=app_config.admin_roles),
        ledger=WarningLedger(max_warnings=app_config.max_warnings, connection=db),
        role_sync=SimpleNamespace(apply=AsyncMock(return_value=True), reconcile=AsyncMock(return_value=0)),
        carry_sheet=SimpleNamespace(fetch_rows=AsyncMock(return_value=[])),
        environment="testing",
    )
