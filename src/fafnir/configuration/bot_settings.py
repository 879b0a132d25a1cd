"""
Runtime-editable bot settings.

Admins can change a handful of settings from chat with ``config set``. Instead of
mutating the YAML-backed :class:`AppConfig`, those edits go to a single owned
:class:`BotSettings` instance that is handed to the command cogs. The baseline
values are captured once into a read-only snapshot, so ``reset`` always has a
pristine value to restore.
"""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Dict, List, Mapping

from fafnir.configuration.app_configuration import AppConfig
from fafnir.util.logger import get_logger

logger = get_logger("bot_settings")


EDITABLE_KEYS = (
    "command_prefix",
    "activity_message",
    "welcome_message",
    "background_image_url",
    "mute_role",
)


@dataclass(frozen=True, slots=True)
class SettingChange:
    """Result of a settings mutation."""

    key: str
    previous: Any
    current: Any
    version: int

    @property
    def changed(self) -> bool:
        return self.previous != self.current


def baseline_from_config(config: AppConfig) -> Dict[str, Any]:
    """Collect the editable settings from the application configuration."""
    return {key: getattr(config, key) for key in EDITABLE_KEYS}


class BotSettings:
    """Versioned key/value store over a fixed set of editable settings.

    Every mutation bumps :attr:`version` and returns a :class:`SettingChange`.
    Values are coerced to the type of their baseline value; unknown keys raise
    ``KeyError`` and values that cannot be coerced raise ``ValueError``.
    """

    def __init__(self, baseline: Mapping[str, Any]) -> None:
        self._baseline: Mapping[str, Any] = MappingProxyType(dict(baseline))
        self._values: Dict[str, Any] = dict(baseline)
        self._version = 0

    @classmethod
    def from_config(cls, config: AppConfig) -> "BotSettings":
        return cls(baseline_from_config(config))

    @property
    def version(self) -> int:
        return self._version

    @property
    def baseline(self) -> Mapping[str, Any]:
        return self._baseline

    def options(self) -> List[str]:
        """Return the editable setting names in a stable order."""
        return sorted(self._baseline)

    def _require_key(self, key: str) -> None:
        if key not in self._baseline:
            raise KeyError(key)

    def _coerce(self, key: str, value: Any) -> Any:
        expected = type(self._baseline[key])
        if isinstance(value, expected):
            coerced = value
        elif expected is bool:
            text = str(value).strip().lower()
            if text not in ("true", "false", "yes", "no", "on", "off", "1", "0"):
                raise ValueError(f"{key} expects true or false, got {value!r}")
            coerced = text in ("true", "yes", "on", "1")
        else:
            try:
                coerced = expected(value)
            except (TypeError, ValueError) as exc:
                raise ValueError(f"{key} expects a {expected.__name__}, got {value!r}") from exc

        if isinstance(coerced, str) and not coerced.strip():
            raise ValueError(f"{key} cannot be empty")
        return coerced

    def get(self, key: str) -> Any:
        self._require_key(key)
        return self._values[key]

    def __getattr__(self, name: str) -> Any:
        values = self.__dict__.get("_values")
        if values is not None and name in values:
            return values[name]
        raise AttributeError(name)

    def set(self, key: str, value: Any) -> SettingChange:
        self._require_key(key)
        coerced = self._coerce(key, value)
        previous = self._values[key]
        self._values[key] = coerced
        self._version += 1
        logger.info("[BOT SETTINGS] %s changed from %r to %r (version %d)", key, previous, coerced, self._version)
        return SettingChange(key, previous, coerced, self._version)

    def reset(self, key: str) -> SettingChange:
        self._require_key(key)
        previous = self._values[key]
        self._values[key] = self._baseline[key]
        self._version += 1
        logger.info("[BOT SETTINGS] %s reset to %r (version %d)", key, self._baseline[key], self._version)
        return SettingChange(key, previous, self._baseline[key], self._version)

    def reset_all(self) -> List[SettingChange]:
        """Restore every setting to its baseline; returns only the settings that changed."""
        return [self.reset(key) for key in self.options() if self._values[key] != self._baseline[key]]

    def snapshot(self) -> Mapping[str, Any]:
        return MappingProxyType(dict(self._values))
