"""
Module for working with Survival Chaos object data.

Provides the raw table store, entity views with their text formatting,
the reference fallbacks, the category parsers and the patch table.
"""

from .models import (
    RawField,
    EntityRawTable,
    LocalizationTable,
    SkinTable,
    CATEGORY_EXTENSIONS,
)
from .store import RawTableStore, merge_tables
from .loaders import MapFileLoader
from .entity import EntityView
from .formatting import TextFormatter
from .fallback import SideTable
from .patches import PatchApplier
from .categories import CategoryParser, Units, Abilities, Upgrades, Items
from .registry import ObjectRegistry, ReferenceData
from .races import RaceAssembler

# Public exports
__all__ = [
    # Raw data
    "RawField",
    "EntityRawTable",
    "LocalizationTable",
    "SkinTable",
    "CATEGORY_EXTENSIONS",
    "RawTableStore",
    "merge_tables",
    "MapFileLoader",
    # Views and formatting
    "EntityView",
    "TextFormatter",
    "SideTable",
    "PatchApplier",
    # Category parsers
    "CategoryParser",
    "Units",
    "Abilities",
    "Upgrades",
    "Items",
    "ObjectRegistry",
    "ReferenceData",
    "RaceAssembler",
]
