"""
Core settings management for sc_datamine.
"""

import logging
from pathlib import Path
from typing import Optional, Union

from PySide6.QtCore import QSettings

from .types import ConfigVersion, MapVariant, ValidationResult
from .migration import SettingsMigrator
from .validation import SettingsValidator
from .paths import PathSettings
from .extraction import ExtractionSettings
from .logging import LoggingSettings

logger = logging.getLogger(__name__)


class AppSettings:
    """
    Configuration management using QSettings.

    Provides type-safe access to extraction settings with cross-platform
    storage, or an INI file when one is given explicitly.
    """

    def __init__(
        self,
        profile: str = "default",
        settings_file: Optional[Union[str, Path]] = None,
    ):
        """Initialize settings with organization, application name, and profile.

        Args:
            profile: Settings profile name (default: "default")
            settings_file: Optional INI file to use instead of native storage
        """
        if settings_file is not None:
            self.settings = QSettings(str(settings_file), QSettings.Format.IniFormat)
        else:
            self.settings = QSettings("sc_datamine", "sc_datamine")
        self.profile = profile

        # Use profile as a group: sc_datamine/sc_datamine/default/...
        self.settings.beginGroup(profile)

        self._migrator = SettingsMigrator(self.settings)
        self._validator = SettingsValidator(self)
        self._paths = PathSettings(self.settings)
        self._extraction = ExtractionSettings(self.settings)
        self._logging = LoggingSettings(self.settings)

        self._migrator.ensure_version()

        logger.debug(
            f"Settings initialized for profile '{profile}', stored at: {self.settings.fileName()}"
        )

    # === SUBSYSTEM ACCESS ===

    @property
    def paths(self) -> PathSettings:
        """Access path settings subsystem."""
        return self._paths

    @property
    def extraction(self) -> ExtractionSettings:
        """Access extraction settings subsystem."""
        return self._extraction

    @property
    def logging(self) -> LoggingSettings:
        """Access logging settings subsystem."""
        return self._logging

    @property
    def version(self) -> str:
        """Get configuration version."""
        value = self.settings.value("app/version", ConfigVersion.CURRENT.value)
        return str(value) if value is not None else ConfigVersion.CURRENT.value

    # === PATH SETTINGS (DELEGATED) ===

    @property
    def data_path(self) -> Optional[Path]:
        """Get the decoded map data directory."""
        return self._paths.data_path

    @data_path.setter
    def data_path(self, value: Optional[Path]) -> None:
        self._paths.data_path = value

    @property
    def variant_data_path(self) -> Optional[Path]:
        """Get the data directory of the active variant (derived from data_path)."""
        if self.data_path:
            return self.data_path / self.map_variant.value
        return None

    @property
    def reference_path(self) -> Optional[Path]:
        """Get the reference tables directory."""
        return self._paths.reference_path

    @reference_path.setter
    def reference_path(self, value: Optional[Path]) -> None:
        self._paths.reference_path = value

    @property
    def output_path(self) -> Optional[Path]:
        """Get the extraction output file."""
        return self._paths.output_path

    @output_path.setter
    def output_path(self, value: Optional[Path]) -> None:
        self._paths.output_path = value

    # === EXTRACTION SETTINGS (DELEGATED) ===

    @property
    def map_variant(self) -> MapVariant:
        """Get the active map variant."""
        return self._extraction.map_variant

    @map_variant.setter
    def map_variant(self, value: MapVariant) -> None:
        self._extraction.map_variant = value

    @property
    def map_version(self) -> str:
        """Get the map version label."""
        return self._extraction.map_version

    @map_version.setter
    def map_version(self, value: str) -> None:
        self._extraction.map_version = value

    @property
    def strict_links(self) -> bool:
        """Whether missing required links abort the run."""
        return self._extraction.strict_links

    @strict_links.setter
    def strict_links(self, value: bool) -> None:
        self._extraction.strict_links = value

    # === LOGGING SETTINGS (DELEGATED) ===

    @property
    def log_level(self) -> str:
        """Get the default log level."""
        return self._logging.log_level

    @log_level.setter
    def log_level(self, value: str) -> None:
        self._logging.log_level = value

    @property
    def use_colors(self) -> bool:
        """Check if level names are colored on a terminal."""
        return self._logging.use_colors

    @use_colors.setter
    def use_colors(self, value: bool) -> None:
        self._logging.use_colors = value

    # === VALIDATION ===

    def validate(self, variant: Optional[MapVariant] = None) -> ValidationResult:
        """Validate current configuration, for `variant` instead of the stored one if given."""
        return self._validator.validate(variant)

    def get_settings_file_path(self) -> str:
        """Get path to the settings storage."""
        return self.settings.fileName()

    def sync(self) -> None:
        """Flush pending changes to storage."""
        self.settings.sync()
