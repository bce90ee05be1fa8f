"""
Settings package for sc_datamine.

This package provides a modular, type-safe configuration management system
using Qt's QSettings for cross-platform storage.

Usage:
    from sc_datamine.settings import AppSettings, MapVariant

    settings = AppSettings(settings_file="sc_datamine.ini")
    settings.map_variant = MapVariant.OZ
    result = settings.validate()
"""

from .core import AppSettings
from .types import ConfigVersion, ConfigError, MapVariant, ValidationResult
from .extraction import ExtractionSettings
from .paths import PathSettings

__all__ = [
    "AppSettings",
    "ConfigVersion",
    "ConfigError",
    "MapVariant",
    "ValidationResult",
    "ExtractionSettings",
    "PathSettings",
]
