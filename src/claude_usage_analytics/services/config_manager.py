"""Application configuration manager wrapping QSettings."""

import logging
from pathlib import Path

from PySide6.QtCore import QObject, Signal, Slot, QSettings

from claude_usage_analytics.errors import DataRootError
from claude_usage_analytics.services.pricing import CACHE_FILENAME

logger = logging.getLogger(__name__)

MIN_REFRESH_INTERVAL_S = 2

# Default values
DEFAULTS = {
    "general/claudeDir": "~/.claude",
    "general/refreshIntervalSecs": 5,
    "general/dailyDays": 7,
    "pricing/remoteEnabled": True,
    "pricing/fetchTimeoutSecs": 10,
    "advanced/debugLogging": False,
}


class ConfigManager(QObject):
    """Centralized application settings."""

    settings_changed = Signal(str)  # key

    def __init__(self, parent=None, claude_dir: str | None = None):
        super().__init__(parent)
        self._settings = QSettings()
        # Command-line override, never persisted
        self._claude_dir_override = claude_dir

    @Slot(str, result=str)
    def get_string(self, key: str) -> str:
        return str(self._settings.value(key, DEFAULTS.get(key, "")))

    @Slot(str, result=int)
    def get_int(self, key: str) -> int:
        val = self._settings.value(key, DEFAULTS.get(key, 0))
        try:
            return int(val)
        except (ValueError, TypeError):
            return DEFAULTS.get(key, 0)

    @Slot(str, result=bool)
    def get_bool(self, key: str) -> bool:
        val = self._settings.value(key, DEFAULTS.get(key, False))
        if isinstance(val, bool):
            return val
        if isinstance(val, str):
            return val.lower() in ("true", "1", "yes")
        return bool(val)

    @Slot(str, str)
    def set_string(self, key: str, value: str):
        self._settings.setValue(key, value)
        self.settings_changed.emit(key)

    @Slot(str, int)
    def set_int(self, key: str, value: int):
        self._settings.setValue(key, value)
        self.settings_changed.emit(key)

    @Slot(str, bool)
    def set_bool(self, key: str, value: bool):
        self._settings.setValue(key, value)
        self.settings_changed.emit(key)

    def refresh_interval_ms(self) -> int:
        """Background refresh period, never below two seconds."""
        secs = max(MIN_REFRESH_INTERVAL_S, self.get_int("general/refreshIntervalSecs"))
        return secs * 1000

    def claude_dir(self) -> Path:
        raw = self._claude_dir_override or self.get_string("general/claudeDir")
        try:
            return Path(raw).expanduser()
        except RuntimeError as e:
            raise DataRootError(f"Cannot determine home directory for {raw!r}") from e

    def projects_dir(self) -> Path:
        return self.claude_dir() / "projects"

    def todos_dir(self) -> Path:
        return self.claude_dir() / "todos"

    def pricing_cache_path(self) -> Path:
        return self.claude_dir() / CACHE_FILENAME

    def ensure_data_root(self) -> Path:
        """Make sure the Claude data directory exists."""
        claude_dir = self.claude_dir()
        try:
            claude_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise DataRootError(f"Cannot create data directory {claude_dir}: {e}") from e
        return claude_dir
