"""
Settings validation system for sc_datamine.
"""

import logging
from typing import List, Optional, TYPE_CHECKING

from .types import MapVariant, ValidationResult

if TYPE_CHECKING:
    from .core import AppSettings

logger = logging.getLogger(__name__)


class SettingsValidator:
    """Validates configuration settings."""

    def __init__(self, settings: "AppSettings"):
        self.settings = settings

    def validate(self, variant: Optional[MapVariant] = None) -> ValidationResult:
        """Validate current configuration for `variant` (default: the stored one)."""
        variant = variant or self.settings.map_variant
        errors: List[str] = []
        warnings: List[str] = []

        data_path = self.settings.data_path
        if data_path:
            if not data_path.exists():
                errors.append(f"Data path does not exist: {data_path}")
            elif not (data_path / variant.value).exists():
                errors.append(f"No '{variant.value}' directory in data path: {data_path}")
        else:
            errors.append("Data path not set")

        reference_path = self.settings.reference_path
        if reference_path is None:
            warnings.append("Reference path not set, side tables will be empty")
        elif not reference_path.exists():
            warnings.append(f"Reference path does not exist: {reference_path}")

        if not self.settings.map_version:
            warnings.append("Map version label not set, output carries no version")

        return ValidationResult(
            is_valid=len(errors) == 0, errors=errors, warnings=warnings
        )
