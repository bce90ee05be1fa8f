"""
Settings migration for sc_datamine.

Each configuration version lists the keys it renamed and the keys it
dropped; an older file is stepped through every later version in order.
"""

import logging
from typing import Dict, Tuple, TYPE_CHECKING

from .types import ConfigVersion

if TYPE_CHECKING:
    from PySide6.QtCore import QSettings

logger = logging.getLogger(__name__)

RENAMED_KEYS: Dict[str, Tuple[Tuple[str, str], ...]] = {
    # 1.0 kept the variant name ('og'/'oz') as a global
    "1.1": (("app/map_version", "extraction/map_variant"),),
    "1.2": (
        ("logging/console_level", "logging/level"),
        ("logging/console_use_colors", "logging/use_colors"),
    ),
}

# Log records only go to stderr since 1.2
DROPPED_KEYS: Dict[str, Tuple[str, ...]] = {
    "1.2": ("logging/console_enabled", "logging/file_enabled"),
}


class SettingsMigrator:
    """Brings a stored configuration up to ConfigVersion.CURRENT."""

    def __init__(self, settings: "QSettings"):
        self.settings = settings

    def ensure_version(self) -> None:
        stored = str(self.settings.value("app/version", "") or "")
        current = ConfigVersion.CURRENT.value
        if not stored:
            self.settings.setValue("app/version", current)
            self.settings.sync()
            logger.info(f"New configuration, version {current}")
            return
        if stored == current:
            return

        versions = [version.value for version in ConfigVersion]
        if stored not in versions:
            logger.warning(f"Unknown configuration version {stored}, not migrated")
            return

        logger.info(f"Migrating configuration from {stored} to {current}")
        for version in versions[versions.index(stored) + 1:]:
            self._apply(version)
        self.settings.setValue("app/version", current)
        self.settings.setValue("app/migrated_from", stored)
        self.settings.sync()

    def _apply(self, version: str) -> None:
        for old_key, new_key in RENAMED_KEYS.get(version, ()):
            value = self.settings.value(old_key)
            if value is None:
                continue
            if self.settings.value(new_key) is None:
                self.settings.setValue(new_key, value)
            self.settings.remove(old_key)
            logger.debug(f"{version}: moved {old_key} to {new_key}")
        for key in DROPPED_KEYS.get(version, ()):
            self.settings.remove(key)
