"""
Configuration type definitions and exceptions for sc_datamine.
"""

from dataclasses import dataclass
from enum import Enum
from typing import List


class ConfigVersion(Enum):
    """Configuration version for migration support."""
    V1_0 = "1.0"
    V1_1 = "1.1"
    V1_2 = "1.2"
    CURRENT = V1_2


class MapVariant(Enum):
    """Map variant whose script layout and data directory are used.

    OG is the classic Sur5al/W3C layout with quoted four character ids,
    OZ is the OZGame edition that stores ids as packed integers.
    """
    OG = "og"
    OZ = "oz"

    @classmethod
    def parse(cls, value: str) -> "MapVariant":
        """Return the variant for a case-insensitive name, raising ConfigError."""
        try:
            return cls(value.strip().lower())
        except ValueError as e:
            raise ConfigError(f"Unknown map variant: {value!r}") from e


class ConfigError(Exception):
    """Raised when configuration is invalid or cannot be accessed."""
    pass


@dataclass
class ValidationResult:
    """Result of configuration validation."""
    is_valid: bool
    errors: List[str]
    warnings: List[str]
