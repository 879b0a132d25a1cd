"""Helpers for parsing command argument tokens."""

from typing import Optional


def parse_positive_int(token: Optional[str]) -> Optional[int]:
    """Return ``token`` as a positive integer, or None."""
    try:
        value = int(token)
    except (TypeError, ValueError):
        return None
    return value if value > 0 else None
