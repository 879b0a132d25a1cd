from __future__ import annotations
from pathlib import Path
import fcntl
from typing import Any, Dict, List
import yaml

from fafnir.util.logger import get_logger

logger = get_logger("app_configuration")


CONFIG_PATH = Path("./config/app_config.yml").resolve()

DEFAULT_USER_TAG_PATTERN = r"^<@!?(\d+)>$"


class BossCarrySettings:
    """Typed accessors for the ``boss_carry`` section of the configuration."""

    def __init__(self, data: Dict[str, Any] | None = None) -> None:
        self.data: Dict[str, Any] = data or {}

    @property
    def sheet_id(self) -> str:
        return str(self.data.get("sheet_id") or "")

    @property
    def sheet_url(self) -> str:
        value = self.data.get("sheet_url")
        if value:
            return str(value)
        if self.sheet_id:
            return f"https://docs.google.com/spreadsheets/d/{self.sheet_id}"
        return ""

    @property
    def worksheet_gid(self) -> int:
        return int(self.data.get("worksheet_gid", 0))

    @property
    def columns(self) -> Dict[str, str]:
        """Mapping of row field (``name``, ``date``, ``bosses_needed``) to sheet column header."""
        columns = self.data.get("columns", {})
        if not isinstance(columns, dict):
            columns = {}
        return {
            "name": str(columns.get("name", "Name")),
            "date": str(columns.get("date", "Timestamp")),
            "bosses_needed": str(columns.get("bosses_needed", "Bosses Needed")),
        }

    @property
    def boss_names(self) -> Dict[str, str]:
        """Supported boss names mapped to their accepted aliases."""
        names = self.data.get("boss_names", {})
        return {str(k): str(v) for k, v in names.items()} if isinstance(names, dict) else {}


class AppConfig:
    """File-lock based accessor around the YAML-based application configuration.

    The class caches contents of ``./config/app_config.yml`` and exposes typed
    properties with defaults for every setting the bot reads. Uses fcntl file
    locks for safe concurrent access across processes.
    """

    def __init__(self, config_path: Path) -> None:
        self.config_path = config_path
        self._data: Dict[str, Any] = {}
        self.reload()

    # --------------------------
    # Private helpers
    # --------------------------
    def load_from_disk(self) -> Dict[str, Any]:
        try:
            with self.config_path.open("r", encoding="utf-8") as f:
                fcntl.flock(f.fileno(), fcntl.LOCK_SH)
                data = yaml.safe_load(f)
                fcntl.flock(f.fileno(), fcntl.LOCK_UN)
                if not isinstance(data, dict):
                    logger.error("[APP CONFIGURATION] Config %s is not a mapping; ignoring it.", self.config_path)
                    return {}
                return data
        except FileNotFoundError:
            logger.error("[APP CONFIGURATION] Config file %s not found.", self.config_path)
        except Exception as exc:
            logger.error("[APP CONFIGURATION] Failed to load config %s: %s", self.config_path, exc)
        return {}

    # --------------------------
    # Public API
    # --------------------------
    def reload(self) -> Dict[str, Any]:
        """Reload configuration from disk and return the loaded mapping (empty on error)."""
        self._data = self.load_from_disk()
        return self._data

    @property
    def data(self) -> Dict[str, Any]:
        """Return the cached configuration mapping. Callers should not mutate it."""
        return self._data

    def get(self, key: str, default: Any = None) -> Any:
        """Safe lookup for top-level configuration keys."""
        return self._data.get(key, default)

    # --------------------------
    # High-level shortcuts
    # --------------------------
    @property
    def command_prefix(self) -> str:
        return str(self._data.get("command_prefix") or "!")

    @property
    def admin_roles(self) -> frozenset[str]:
        """Role names whose members may run admin commands."""
        roles = self._data.get("admin_roles", ["Fafnir", "Discord Admin"])
        if isinstance(roles, str):
            roles = [roles]
        return frozenset(str(role) for role in roles or [])

    @property
    def max_warnings(self) -> int:
        """Warning count at which a user is muted. Never lower than 1."""
        return max(1, int(self._data.get("max_warnings", 5)))

    @property
    def user_tag_pattern(self) -> str:
        return str(self._data.get("user_tag_pattern") or DEFAULT_USER_TAG_PATTERN)

    @property
    def mute_role(self) -> str:
        return str(self._data.get("mute_role") or "Muted")

    @property
    def activity_message(self) -> str:
        return str(self._data.get("activity_message") or "")

    @property
    def welcome_message(self) -> str:
        return str(self._data.get("welcome_message") or "")

    @property
    def background_image_url(self) -> str:
        return str(self._data.get("background_image_url") or "")

    @property
    def goodbye_messages(self) -> List[str]:
        messages = self._data.get("goodbye_messages") or []
        if isinstance(messages, str):
            messages = [messages]
        return [str(message) for message in messages]

    def _channel_id(self, key: str) -> int | None:
        value = self._data.get(key)
        return int(value) if value else None

    @property
    def welcome_channel_id(self) -> int | None:
        return self._channel_id("welcome_channel_id")

    @property
    def goodbye_channel_id(self) -> int | None:
        return self._channel_id("goodbye_channel_id")

    @property
    def database_path(self) -> Path:
        return Path(str(self._data.get("database_path") or "./data/app.db")).resolve()

    @property
    def boss_carry(self) -> BossCarrySettings:
        section = self._data.get("boss_carry", {})
        return BossCarrySettings(section if isinstance(section, dict) else {})


# Shared application-wide configuration instance
app_config = AppConfig(CONFIG_PATH)
