"""
Extraction-related settings for sc_datamine.
"""

import logging

from .base import SettingsGroup
from .types import MapVariant, ConfigError

logger = logging.getLogger(__name__)


class ExtractionSettings(SettingsGroup):
    """Which map variant is mined, its version label and how strictly links are checked."""

    @property
    def map_variant(self) -> MapVariant:
        """Active map variant; a value that does not parse falls back to OG."""
        raw = self._get_str("extraction/map_variant", MapVariant.OG.value)
        try:
            return MapVariant.parse(raw)
        except ConfigError:
            logger.warning(f"Invalid map variant in settings: {raw}, using og")
            return MapVariant.OG

    @map_variant.setter
    def map_variant(self, value: MapVariant) -> None:
        self._set("extraction/map_variant", value.value)

    @property
    def map_version(self) -> str:
        """Version label of the mined map (e.g. '4.28'), written into the output."""
        return self._get_str("extraction/map_version", "")

    @map_version.setter
    def map_version(self, value: str) -> None:
        self._set("extraction/map_version", value.strip())

    @property
    def strict_links(self) -> bool:
        """Whether a missing required linkage aborts the run."""
        return self._get_bool("extraction/strict_links", True)

    @strict_links.setter
    def strict_links(self, value: bool) -> None:
        self._set("extraction/strict_links", value)
