"""
User tag parsing.

Commands take their target as a Discord mention (``<@123>`` or the nickname form
``<@!123>``). Warning records are keyed by the normalized tag, so both mention
forms of the same user map to one record.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True, slots=True)
class UserTag:
    """A validated user mention.

    Attributes:
        raw: The mention exactly as typed.
        user_id: Discord snowflake of the mentioned user.
    """
    raw: str
    user_id: int

    @property
    def key(self) -> str:
        """Normalized, lowercased tag used as the warning record key."""
        return f"<@{self.user_id}>".lower()

    @property
    def mention(self) -> str:
        return f"<@{self.user_id}>"

    def __str__(self) -> str:
        return self.mention

    @classmethod
    def parse(cls, raw: str, pattern: str | re.Pattern[str]) -> Optional["UserTag"]:
        """Validate ``raw`` against the configured tag pattern.

        The pattern's first capture group must be the user id. Returns None when
        the text does not match.
        """
        text = (raw or "").strip()
        match = re.fullmatch(pattern, text)
        if match is None:
            return None
        try:
            user_id = int(match.group(1))
        except (IndexError, ValueError):
            return None
        return cls(raw=text, user_id=user_id)

    @classmethod
    def from_key(cls, key: str) -> Optional["UserTag"]:
        """Rebuild a tag from a stored record key."""
        digits = re.sub(r"\D", "", key)
        return cls(raw=key, user_id=int(digits)) if digits else None
