"""Tests for the moderation cog handlers."""

import asyncio
from types import SimpleNamespace
from unittest.mock import AsyncMock

import discord
import pytest

from fafnir.bot.cogs.moderation_cmds import ModerationCommandsCog
from fafnir.database.db_connection import ConnectionManager
from fafnir.datatypes.moderation_datatypes import LedgerOutcome, RoleChange
from fafnir.moderation import messages
from fafnir.moderation.mute_role_sync import MuteRoleSync
from fafnir.moderation.warning_ledger import WarningLedger

from conftest import FakeMessage

GUILD = SimpleNamespace(id=7, name="Fafnir")


class FakeHTTPException(discord.HTTPException):
    def __init__(self, text="boom"):
        Exception.__init__(self, text)
        self.text = text
        self.status = 403
        self.code = 50013


@pytest.fixture
def cog(state):
    return ModerationCommandsCog(SimpleNamespace(), state)


def command(content, author, guild=GUILD):
    return FakeMessage(content, author=author, guild=guild)


async def run(state, content, author):
    message = command(content, author)
    await state.router.dispatch(message)
    return message


class TestWarn:
    @pytest.mark.asyncio
    async def test_first_warning(self, cog, state, admin):
        message = await run(state, "!warn <@42> spamming links", admin)

        assert message.sent() == ["<@42>, you have been warned. You will be muted after 5 warnings."]
        status = await state.ledger.warn_status("<@42>")
        assert status.record.notes == ["spamming links"]
        state.role_sync.apply.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_fifth_warning_mutes_and_sixth_is_rejected(self, cog, state, admin):
        for _ in range(4):
            await run(state, "!warn <@42> spam", admin)

        fifth = await run(state, "!warn <@42> spam", admin)
        sixth = await run(state, "!warn <@42> spam", admin)

        assert fifth.sent() == ["<@42>, you are now muted."]
        state.role_sync.apply.assert_awaited_once_with(GUILD, "<@42>", RoleChange.GRANT)
        assert sixth.sent() == [messages.ALREADY_MUTED]
        assert (await state.ledger.warn_status("<@42>")).count == 5

    @pytest.mark.asyncio
    async def test_second_warning_reports_count(self, cog, state, admin):
        await run(state, "!warn <@42>", admin)
        message = await run(state, "!warn <@!42> again", admin)

        assert message.sent() == ["<@42>, you now have 2 warnings. You will be muted after 5 warnings."]

    @pytest.mark.asyncio
    async def test_missing_user(self, cog, state, admin):
        message = await run(state, "!warn", admin)

        assert message.replies() == ["Please specify a user to warn."]
        message.channel.send.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_invalid_user_changes_nothing(self, cog, state, admin):
        message = await run(state, "!warn alice spam", admin)

        assert message.replies() == ["Please tag the user using @username to warn them."]
        assert (await state.ledger.warn_status("alice")).outcome is LedgerOutcome.NOT_FOUND

    @pytest.mark.asyncio
    async def test_non_admin_gets_no_reply_and_nothing_changes(self, cog, state, regular_user):
        message = await run(state, "!warn <@42> spam", regular_user)

        message.reply.assert_not_awaited()
        message.channel.send.assert_not_awaited()
        assert (await state.ledger.warn_status("<@42>")).outcome is LedgerOutcome.NOT_FOUND

    @pytest.mark.asyncio
    async def test_role_failure_keeps_record_and_reports(self, cog, state, admin):
        state.role_sync.apply.return_value = False

        message = await run(state, "!mute <@42>", admin)

        assert message.replies() == [messages.ROLE_SYNC_FAILURE]
        assert message.sent() == ["<@42>, you are now muted."]
        assert (await state.ledger.warn_status("<@42>")).count == 5


class TestStoreFailure:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("content", ["!warn <@42> spam", "!unwarn <@42>", "!mute <@42>", "!unmute <@42>", "!warnstatus <@42>"])
    async def test_store_error_aborts_with_reply(self, cog, state, admin, content):
        state.ledger = WarningLedger(max_warnings=5, connection=ConnectionManager())

        message = await run(state, content, admin)

        assert message.replies() == [messages.STORE_FAILURE]
        message.channel.send.assert_not_awaited()
        state.role_sync.apply.assert_not_awaited()


class TestWarnStatus:
    @pytest.mark.asyncio
    async def test_no_record(self, cog, state, admin):
        message = await run(state, "!warnstatus <@42>", admin)

        assert message.replies() == [messages.NO_WARNINGS]

    @pytest.mark.asyncio
    async def test_lists_notes(self, cog, state, admin):
        await run(state, "!warn <@42> spam", admin)
        await run(state, "!warn <@42>", admin)

        message = await run(state, "!warnstatus <@42>", admin)

        assert message.sent() == [
            "<@42> has 2 warnings. These are the notes I found:\n```* spam\n* Warned by admin```"
        ]

    @pytest.mark.asyncio
    async def test_missing_user(self, cog, state, admin):
        message = await run(state, "!warnstatus", admin)

        assert message.replies() == ["Please specify a user to check."]


class TestUnwarn:
    @pytest.mark.asyncio
    async def test_not_found(self, cog, state, admin):
        message = await run(state, "!unwarn <@42>", admin)

        assert message.sent() == [messages.UNWARN_NOT_FOUND]

    @pytest.mark.asyncio
    async def test_last_warning_clears(self, cog, state, admin):
        await run(state, "!warn <@42> spam", admin)

        message = await run(state, "!unwarn <@42>", admin)

        assert message.sent() == ["<@42>, you are no longer warned."]
        state.role_sync.apply.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unwarn_from_muted_revokes_role(self, cog, state, admin):
        await run(state, "!mute <@42>", admin)
        state.role_sync.apply.reset_mock()

        message = await run(state, "!unwarn <@42>", admin)

        state.role_sync.apply.assert_awaited_once_with(GUILD, "<@42>", RoleChange.REVOKE)
        assert message.sent() == [
            "<@42>, you have been unmuted.",
            "<@42>, you now have 4 warnings. You will be muted after 5 warnings.",
        ]


class TestMute:
    @pytest.mark.asyncio
    async def test_mute_and_unmute(self, cog, state, admin):
        muted = await run(state, "!mute <@43>", admin)
        unmuted = await run(state, "!unmute <@43>", admin)

        assert muted.sent() == ["<@43>, you are now muted."]
        assert unmuted.sent() == ["<@43>, you have been unmuted."]
        assert [call.args[2] for call in state.role_sync.apply.await_args_list] == [RoleChange.GRANT, RoleChange.REVOKE]
        assert (await state.ledger.warn_status("<@43>")).outcome is LedgerOutcome.NOT_FOUND

    @pytest.mark.asyncio
    async def test_unmute_without_record(self, cog, state, admin):
        message = await run(state, "!unmute <@43>", admin)

        assert message.sent() == [messages.UNMUTE_NOT_FOUND]
        state.role_sync.apply.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_mute_records_issuer(self, cog, state, admin):
        await run(state, "!mute <@43>", admin)

        status = await state.ledger.warn_status("<@43>")
        assert status.record.notes == ["Manually muted by admin"]


class TestConcurrentRoleChanges:
    @pytest.fixture
    def member_roles(self, fake_guild):
        """Role names the fake member holds; granting is slow."""
        held = []

        async def add_roles(role, reason=None):
            await asyncio.sleep(0.05)
            held.append(role.name)

        async def remove_roles(role, reason=None):
            if role.name in held:
                held.remove(role.name)

        fake_guild.member.add_roles.side_effect = add_roles
        fake_guild.member.remove_roles.side_effect = remove_roles
        return held

    @pytest.fixture
    def live_role_sync(self, state, db):
        state.role_sync = MuteRoleSync(lambda: state.settings.get("mute_role"), connection=db,
                                       user_locks=state.ledger.user_locks)
        return state.role_sync

    @pytest.mark.asyncio
    async def test_unmute_during_slow_grant_leaves_member_unmuted(self, cog, state, admin, fake_guild,
                                                                  member_roles, live_role_sync):
        muted = command("!mute <@42>", admin, guild=fake_guild)
        unmuted = command("!unmute <@42>", admin, guild=fake_guild)

        await asyncio.gather(state.router.dispatch(muted), state.router.dispatch(unmuted))

        assert muted.sent() == ["<@42>, you are now muted."]
        assert unmuted.sent() == ["<@42>, you have been unmuted."]
        assert (await state.ledger.warn_status("<@42>")).outcome is LedgerOutcome.NOT_FOUND
        assert member_roles == []
        fake_guild.member.remove_roles.assert_awaited_once()
        assert await live_role_sync.pending() == []
        assert len(state.ledger.user_locks) == 0

    @pytest.mark.asyncio
    async def test_warns_racing_to_threshold_grant_once(self, cog, state, admin, fake_guild,
                                                        member_roles, live_role_sync):
        for _ in range(3):
            await state.router.dispatch(command("!warn <@42> spam", admin, guild=fake_guild))

        await asyncio.gather(*(state.router.dispatch(command("!warn <@42> spam", admin, guild=fake_guild))
                               for _ in range(3)))

        assert (await state.ledger.warn_status("<@42>")).count == 5
        assert member_roles == ["Muted"]
        fake_guild.member.add_roles.assert_awaited_once()


class TestPurge:
    @pytest.mark.asyncio
    async def test_deletes_requested_messages_and_command(self, cog, state, admin):
        message = await run(state, "!purge 10", admin)

        message.channel.purge.assert_awaited_once_with(limit=11)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("content", ["!purge", "!purge many", "!purge 0", "!purge -3"])
    async def test_requires_positive_count(self, cog, state, admin, content):
        message = await run(state, content, admin)

        assert message.replies() == ["Please specify the number of messages to purge."]
        message.channel.purge.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_discord_failure_is_reported(self, cog, state, admin):
        message = command("!purge 2", admin)
        message.channel.purge = AsyncMock(side_effect=FakeHTTPException("Missing Permissions"))

        await state.router.dispatch(message)

        assert message.sent() == ["I could not delete those messages."]
