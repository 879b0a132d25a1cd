"""
Configuration management for the bot.

- **app_configuration.py**: YAML configuration loader (``config/app_config.yml``)
  exposing typed accessors with defaults for the command prefix, admin roles,
  warning threshold, channels, messages and the boss carry sheet.

- **bot_settings.py**: The owned, versioned store of settings that admins may
  change at runtime with the ``config`` command, with reset to the baseline.
"""
