"""
Shared access helpers for the settings groups.
"""

from pathlib import Path
from typing import Any, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from PySide6.QtCore import QSettings


class SettingsGroup:
    """Typed reads and write-through writes over one QSettings instance.

    INI storage hands every value back as a string, so booleans and
    paths are converted on read.
    """

    def __init__(self, settings: "QSettings"):
        self.settings = settings

    def _get_str(self, key: str, default: str = "") -> str:
        value = self.settings.value(key, default)
        return str(value) if value is not None else default

    def _get_bool(self, key: str, default: bool = False) -> bool:
        value = self.settings.value(key, default)
        if isinstance(value, bool):
            return value
        if isinstance(value, str):
            return value.lower() in ("true", "1", "yes")
        return bool(value) if value is not None else default

    def _get_path(self, key: str) -> Optional[Path]:
        text = self._get_str(key)
        return Path(text) if text else None

    def _set(self, key: str, value: Any) -> None:
        self.settings.setValue(key, value)
        self.settings.sync()
