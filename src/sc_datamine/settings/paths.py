"""
Path-related settings for sc_datamine.
"""

from pathlib import Path
from typing import Optional

from .base import SettingsGroup


class PathSettings(SettingsGroup):
    """Input directories and the default output file."""

    @property
    def data_path(self) -> Optional[Path]:
        """Directory holding one decoded-map directory per variant."""
        return self._get_path("paths/data")

    @data_path.setter
    def data_path(self, value: Optional[Path]) -> None:
        self._set("paths/data", str(value) if value else "")

    @property
    def reference_path(self) -> Optional[Path]:
        """Directory with game reference tables (slk, skin and strings files)."""
        return self._get_path("paths/reference")

    @reference_path.setter
    def reference_path(self, value: Optional[Path]) -> None:
        self._set("paths/reference", str(value) if value else "")

    @property
    def output_path(self) -> Optional[Path]:
        """File the extraction result is written to when no --output is given."""
        return self._get_path("paths/output")

    @output_path.setter
    def output_path(self, value: Optional[Path]) -> None:
        self._set("paths/output", str(value) if value else "")
