"""User-facing texts for warning ledger outcomes."""

from __future__ import annotations

from typing import List

from fafnir.datatypes.discord_datatypes import UserTag
from fafnir.datatypes.moderation_datatypes import LedgerOutcome, LedgerResult

ALREADY_MUTED = "This user is already muted and cannot be warned."
NO_WARNINGS = "That user currently has no warnings."
UNWARN_NOT_FOUND = "That user does not have any warnings."
UNMUTE_NOT_FOUND = "That user was not muted."
STORE_FAILURE = "Something went wrong while accessing the warning records. The command was not completed."
ROLE_SYNC_FAILURE = "The warning record was updated, but the mute role could not be changed. It will be retried when the bot restarts."


def mute_limit_text(max_warnings: int) -> str:
    return f"You will be muted after {max_warnings} warnings."


def missing_user(verb: str) -> str:
    return f"Please specify a user to {verb}."


def invalid_user(verb: str) -> str:
    return f"Please tag the user using @username to {verb} them."


def muted(tag: UserTag) -> str:
    return f"{tag}, you are now muted."


def unmuted(tag: UserTag) -> str:
    return f"{tag}, you have been unmuted."


def format_notes(notes: List[str]) -> str:
    lines = "\n".join(f"* {note}" for note in notes)
    return f"```{lines or '* (no notes)'}```"


def ledger_messages(result: LedgerResult, tag: UserTag, max_warnings: int) -> List[str]:
    """Return the channel messages announcing a ledger result, in send order."""
    outcome = result.outcome
    limit = mute_limit_text(max_warnings)

    if outcome is LedgerOutcome.ALREADY_MUTED:
        return [ALREADY_MUTED]
    if outcome is LedgerOutcome.MUTED:
        return [muted(tag)]
    if outcome is LedgerOutcome.WARNED:
        if result.count == 1:
            return [f"{tag}, you have been warned. {limit}"]
        return [f"{tag}, you now have {result.count} warnings. {limit}"]
    if outcome is LedgerOutcome.UNWARNED:
        messages = [f"{tag}, you now have {result.count} warnings. {limit}"]
        if result.role_change is not None:
            messages.insert(0, unmuted(tag))
        return messages
    if outcome is LedgerOutcome.CLEARED:
        messages = [f"{tag}, you are no longer warned."]
        if result.role_change is not None:
            messages.insert(0, unmuted(tag))
        return messages
    if outcome is LedgerOutcome.UNMUTED:
        return [unmuted(tag)]
    if outcome is LedgerOutcome.STATUS and result.record is not None:
        return [
            f"{tag} has {result.count} warnings. These are the notes I found:\n"
            f"{format_notes(result.record.notes)}"
        ]
    raise ValueError(f"no channel message for outcome {outcome}")
