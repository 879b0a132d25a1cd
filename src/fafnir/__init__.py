"""
Fafnir - moderation and utility bot for the Fafnir Discord community

Core Components:

- **Command Router**: turns prefixed chat messages into commands and silently
  drops admin-only commands from users without an admin role
- **Warning Ledger**: per-user warning counts with notes; reaching the warning
  threshold mutes the user, backed by SQLite
- **Mute Role Sync**: grants and revokes the mute role, keeping an outbox of
  failed changes for reconciliation
- **Runtime Settings**: admin-editable settings with reset to the configured values
- **Boss Carries**: read-only listings from the community's carry spreadsheet

Usage:
    from fafnir.main import main
    main()
"""
