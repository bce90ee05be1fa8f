"""
Logging-related settings for sc_datamine.
"""

import logging

from .base import SettingsGroup

logger = logging.getLogger(__name__)

VALID_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class LoggingSettings(SettingsGroup):
    """Level and coloring of the log records written to stderr."""

    @property
    def log_level(self) -> str:
        """Default log level; --log-level overrides it for one run."""
        level = self._get_str("logging/level", "INFO").upper()
        return level if level in VALID_LEVELS else "INFO"

    @log_level.setter
    def log_level(self, value: str) -> None:
        if value.upper() not in VALID_LEVELS:
            logger.warning(f"Invalid log level: {value}, keeping {self.log_level}")
            return
        self._set("logging/level", value.upper())

    @property
    def use_colors(self) -> bool:
        """Color level names when stderr is a terminal."""
        return self._get_bool("logging/use_colors", True)

    @use_colors.setter
    def use_colors(self, value: bool) -> None:
        self._set("logging/use_colors", value)
