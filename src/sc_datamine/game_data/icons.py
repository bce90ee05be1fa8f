"""
Icon maps: id -> icon path for every entity an output section shows.

Entities are found by walking the exported objects and then following
each category's cross references, so summoned units and the skills of
units get their icons too.
"""

import logging
from dataclasses import fields, is_dataclass
from typing import Any, Dict, Mapping, Set, Tuple

from .entity import EntityView
from .objects import BaseObject
from .registry import ObjectRegistry

logger = logging.getLogger(__name__)

OBJECT_CATEGORIES: Mapping[str, str] = {
    "unit": "units",
    "hero": "units",
    "bonus": "units",
    "neutral": "units",
    "spell": "abilities",
    "aura": "abilities",
    "neutralSpell": "abilities",
    "ultimate": "abilities",
    "ultiPicker": "abilities",
    "upgrade": "upgrades",
    "artifact": "items",
}


class IconCollector:
    """Collects the icons of objects and of everything they reference.

    Upgrades whose levels use different icons get one entry per level,
    keyed `<id>-<n>`.
    """

    def __init__(self, registry: ObjectRegistry):
        self.registry = registry
        self.icons: Dict[str, str] = {}
        self._seen: Set[Tuple[str, str]] = set()

    def add(self, value: Any) -> None:
        """Collect icons of an exported object, list or mapping of objects."""
        if isinstance(value, BaseObject):
            category = OBJECT_CATEGORIES.get(value.type)
            if category is not None:
                entity = self.registry.parser_for(category).get_by_id(value.id)
                if entity is not None:
                    self.add_entity(entity)
        if is_dataclass(value) and not isinstance(value, type):
            for f in fields(value):
                self.add(getattr(value, f.name))
        elif isinstance(value, (list, tuple)):
            for item in value:
                self.add(item)
        elif isinstance(value, dict):
            for item in value.values():
                self.add(item)

    def add_entity(self, entity: EntityView) -> None:
        parser = entity.parser
        key = (parser.category, entity.id)
        if key in self._seen:
            return
        self._seen.add(key)

        icons = entity.get_icons() if parser.category == "upgrades" else []
        if len(icons) > 1:
            for index, icon in enumerate(icons, 1):
                self.icons[f"{entity.id}-{index}"] = icon
        else:
            icon = entity.get_icon()
            if icon:
                self.icons[entity.id] = icon

        if parser.reference_category is None:
            return
        references = self.registry.parser_for(parser.reference_category)
        for reference_id in parser.get_cross_references(entity):
            reference = references.get_by_id(reference_id)
            if reference is not None:
                self.add_entity(reference)


def collect_icons(registry: ObjectRegistry, *values: Any) -> Dict[str, str]:
    """Icon map of one output section."""
    collector = IconCollector(registry)
    for value in values:
        collector.add(value)
    logger.debug(f"Collected {len(collector.icons)} icons")
    return collector.icons
