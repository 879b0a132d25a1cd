"""Tests for the runtime settings commands."""

from types import SimpleNamespace
from unittest.mock import AsyncMock

import discord

import pytest

from fafnir.bot.cogs.config_cmds import ConfigCommandsCog
from fafnir.bot.cogs.general_cmds import GeneralCommandsCog

from conftest import FakeMessage


@pytest.fixture
def bot():
    return SimpleNamespace(change_presence=AsyncMock())


@pytest.fixture
def cogs(bot, state):
    return ConfigCommandsCog(bot, state), GeneralCommandsCog(bot, state)


async def run(state, content, author):
    message = FakeMessage(content, author=author)
    await state.router.dispatch(message)
    return message


@pytest.mark.asyncio
async def test_options_lists_editable_settings(cogs, state, admin):
    message = await run(state, "!config options", admin)

    reply = message.replies()[0]
    for key in ("command_prefix", "mute_role", "welcome_message", "activity_message", "background_image_url"):
        assert f"- {key}" in reply
    assert "max_warnings" not in reply


@pytest.mark.asyncio
async def test_set_prefix_changes_command_prefix(cogs, state, admin, regular_user):
    message = await run(state, "!config set command_prefix ?", admin)

    assert message.replies() == ["`command_prefix` changed from `!` to `?` (version 1)."]
    old = await run(state, "!ping", regular_user)
    new = await run(state, "?ping", regular_user)
    old.reply.assert_not_awaited()
    assert new.replies() == ["pong! I am currently up and running in testing mode."]


@pytest.mark.asyncio
async def test_set_joins_multi_word_values(cogs, state, admin):
    await run(state, "!config set welcome_message Welcome aboard, read the rules", admin)

    assert state.settings.get("welcome_message") == "Welcome aboard, read the rules"


@pytest.mark.asyncio
async def test_get_reports_current_value(cogs, state, admin):
    message = await run(state, "!config get mute_role", admin)

    assert message.replies() == ["`mute_role` is currently `Muted`."]


@pytest.mark.asyncio
async def test_unknown_key_is_reported(cogs, state, admin):
    message = await run(state, "!config set max_warnings 1", admin)

    assert message.replies() == ["`max_warnings` is not a setting. Use `config options` to list them."]
    assert state.ledger.max_warnings == 5
    assert state.settings.version == 0


@pytest.mark.asyncio
@pytest.mark.parametrize("content", ["!config", "!config set", "!config set mute_role", "!config frobnicate x"])
async def test_usage(cogs, state, admin, content):
    message = await run(state, content, admin)

    assert message.replies() == ["usage: !config set <key> <value> | reset <key> | get <key> | options"]


@pytest.mark.asyncio
async def test_reset_single_key(cogs, state, admin):
    await run(state, "!config set mute_role Silenced", admin)

    message = await run(state, "!config reset mute_role", admin)

    assert message.replies() == ["`mute_role` changed from `Silenced` to `Muted` (version 2)."]


@pytest.mark.asyncio
async def test_reset_all(cogs, state, admin):
    await run(state, "!config set command_prefix ?", admin)

    message = await run(state, "?reset", admin)

    assert message.replies() == ["Settings reset:\n`command_prefix` changed from `?` to `!` (version 2)."]
    assert state.settings.get("command_prefix") == "!"


@pytest.mark.asyncio
async def test_reset_all_without_changes(cogs, state, admin):
    message = await run(state, "!reset", admin)

    assert message.replies() == ["All settings already have their default values."]


@pytest.mark.asyncio
async def test_non_admin_cannot_change_settings(cogs, state, regular_user):
    message = await run(state, "!config set command_prefix ?", regular_user)

    message.reply.assert_not_awaited()
    assert state.settings.get("command_prefix") == "!"


class FakeHTTPException(discord.HTTPException):
    def __init__(self, text="boom"):
        Exception.__init__(self, text)
        self.text = text
        self.status = 500
        self.code = 0


@pytest.mark.asyncio
async def test_set_activity_message_updates_presence(cogs, bot, state, admin):
    await run(state, "!config set activity_message raiding zakum", admin)

    bot.change_presence.assert_awaited_once()
    activity = bot.change_presence.await_args.kwargs["activity"]
    assert isinstance(activity, discord.Game)
    assert activity.name == "raiding zakum"


@pytest.mark.asyncio
async def test_reset_activity_message_restores_presence(cogs, bot, state, admin):
    await run(state, "!config set activity_message raiding zakum", admin)

    await run(state, "!config reset activity_message", admin)

    assert bot.change_presence.await_count == 2
    assert bot.change_presence.await_args.kwargs["activity"].name == "with the carry sheet"


@pytest.mark.asyncio
async def test_reset_all_restores_presence(cogs, bot, state, admin):
    await run(state, "!config set activity_message raiding zakum", admin)

    await run(state, "!reset", admin)

    assert bot.change_presence.await_count == 2
    assert bot.change_presence.await_args.kwargs["activity"].name == "with the carry sheet"


@pytest.mark.asyncio
async def test_other_settings_leave_presence_alone(cogs, bot, state, admin):
    await run(state, "!config set mute_role Silenced", admin)
    await run(state, "!reset", admin)

    bot.change_presence.assert_not_awaited()


@pytest.mark.asyncio
async def test_presence_failure_keeps_new_setting(cogs, bot, state, admin):
    bot.change_presence.side_effect = FakeHTTPException()

    message = await run(state, "!config set activity_message raiding zakum", admin)

    assert message.replies() == ["`activity_message` changed from `with the carry sheet` to `raiding zakum` (version 1)."]
    assert state.settings.get("activity_message") == "raiding zakum"
