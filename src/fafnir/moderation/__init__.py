"""
Moderation core.

- **warning_ledger.py**: per-user warning records and the warn -> mute state machine.
- **mute_role_sync.py**: best-effort mute role updates with an outbox for failures.
- **messages.py**: user-facing texts for ledger outcomes.
"""
