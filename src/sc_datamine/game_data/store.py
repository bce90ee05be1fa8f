"""
Raw table store: merges base and variant (skin) object tables per category.
"""

import logging
from pathlib import Path
from typing import Dict, Optional

from ..errors import MissingTableError
from ..settings.types import MapVariant
from .loaders import MapFileLoader
from .models import EntityRawTable, CATEGORY_EXTENSIONS


def merge_tables(base: EntityRawTable, variant: Optional[EntityRawTable]) -> EntityRawTable:
    """Merge a variant table over a base table.

    Variant records are placed ahead of base records of the same id, so
    first-match lookups find the variant value. Neither input is mutated.
    """
    merged: EntityRawTable = {entity_id: list(records) for entity_id, records in base.items()}
    for entity_id, records in (variant or {}).items():
        merged[entity_id] = list(records) + merged.get(entity_id, [])
    return merged


class RawTableStore:
    """Loads the merged raw table of each category for one map variant.

    Files are looked up as <data_path>/<variant>/war3map.<ext>.json and
    war3mapSkin.<ext>.json. Tables are cached; the cache is filled once
    per category and never mutated afterwards.
    """

    def __init__(self, data_path: Path, variant: MapVariant):
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")
        self.data_path = Path(data_path)
        self.variant = variant
        self.loader = MapFileLoader()
        self._tables: Dict[str, EntityRawTable] = {}

    @property
    def variant_path(self) -> Path:
        return self.data_path / self.variant.value

    def table_path(self, category: str, skin: bool = False) -> Path:
        """Path of the base (or skin) table of a category."""
        extension = CATEGORY_EXTENSIONS.get(category, category)
        stem = "war3mapSkin" if skin else "war3map"
        return self.variant_path / f"{stem}.{extension}.json"

    def load(self, category: str) -> EntityRawTable:
        """Return the merged table of a category.

        Raises:
            MissingTableError: if the base table does not exist
        """
        if category in self._tables:
            return self._tables[category]

        base_path = self.table_path(category)
        if not base_path.exists():
            raise MissingTableError(category, str(base_path))

        base = self.loader.read_object_table(base_path)

        skin_path = self.table_path(category, skin=True)
        variant: Optional[EntityRawTable] = None
        if skin_path.exists():
            variant = self.loader.read_object_table(skin_path)
            self.logger.debug(
                f"Merging {len(variant)} skin entities into '{category}' ({len(base)} base)"
            )
        else:
            self.logger.debug(f"No skin table for '{category}'")

        table = merge_tables(base, variant)
        self._tables[category] = table
        self.logger.info(f"Loaded {len(table)} entities for category '{category}'")
        return table
