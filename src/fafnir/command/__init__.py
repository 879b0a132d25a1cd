"""Text command routing: prefix parsing, admin gating and the handler table."""
