"""
Data models for raw game object tables.

Contains type definitions and simple data structures used throughout
the game_data package. Raw records stay close to the decoder output;
typed domain objects live in `objects`.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, TypeAlias


@dataclass(frozen=True)
class RawField:
    """One decoded field record of an entity.

    Several records may share a key at different levels (progression
    tiers). Level 0 marks a field that is not leveled.
    """
    key: str
    level: int
    value: Any

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "RawField":
        """Create a RawField from a decoder record ({id, level, value, ...})."""
        return cls(
            key=str(data["id"]),
            level=int(data.get("level", 0) or 0),
            value=data.get("value"),
        )


# Type aliases for clarity
RawRecords: TypeAlias = List[RawField]
"""Ordered records of one entity; the first match of a lookup wins."""

EntityRawTable: TypeAlias = Dict[str, RawRecords]
"""Maps a four character entity id to its ordered records."""

SideRow: TypeAlias = Dict[str, Any]
"""A spreadsheet row of named columns."""

LocalizationTable: TypeAlias = Dict[str, str]
"""Maps string-table numbers (as text, without leading zeros) to text."""

SkinTable: TypeAlias = Dict[str, Dict[str, str]]
"""Maps entity id to lower-cased profile keys (art, file, name, ...)."""

PatchTable: TypeAlias = Mapping[str, Mapping[str, Any]]
"""Maps entity id to a partial override of its typed object."""


# Synthetic field appended to a derived entity, naming the entity it was copied from
BACKLINK_KEY = "wc3id"

# Explicit level count field
LEVELS_KEY = "lvl"

# Decoder field ids carry a one character category prefix ('unam' -> 'nam')
FIELD_PREFIX_LENGTH = 1

# Object table file extensions by category
CATEGORY_EXTENSIONS = {
    "units": "w3u",
    "abilities": "w3a",
    "upgrades": "w3q",
    "items": "w3t",
}
