"""
Object registry: the four category parsers of one extraction pass.

The registry owns everything the parsers share: the text formatter,
the patch applier, the reference data of the base game and the set of
entities currently under construction.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Set, Tuple, TypeVar

from .categories import ART_KEYS, Abilities, CategoryParser, Items, Units, Upgrades
from .entity import EntityView
from .fallback import SideTable
from .formatting import TextFormatter
from .loaders import MapFileLoader
from .models import EntityRawTable, SkinTable
from .patches import PatchApplier

T = TypeVar("T")

CATEGORIES = ("units", "abilities", "upgrades", "items")

UNIT_SKIN_KEYS = ART_KEYS + ("file", "file:sd", "file:hd")
UNIT_STRING_KEYS = ("name", "propernames")

UNIT_STRING_FILES = (
    "neutralunitstrings.txt",
    "humanunitstrings.txt",
    "nightelfunitstrings.txt",
    "orcunitstrings.txt",
    "undeadunitstrings.txt",
    "unitskinstrings.txt",
)
UPGRADE_SKIN_FILES = (
    "upgradeskin.txt",
    "humanupgradefunc.txt",
    "neutralupgradefunc.txt",
    "nightelfupgradefunc.txt",
    "orcupgradefunc.txt",
    "undeadupgradefunc.txt",
)


def _merge_skins(reference_path: Path, file_names: Iterable[str], keys: Iterable[str]) -> SkinTable:
    """Read several profile files into one table; later files win per id."""
    keys = tuple(keys)
    table: SkinTable = {}
    for name in file_names:
        table.update(MapFileLoader.read_skin_data(reference_path / name, keys))
    return table


@dataclass
class ReferenceData:
    """Base-game tables used as fallbacks for fields a map leaves unset."""
    unit_balance: SideTable = field(default_factory=SideTable)
    unit_weapons: SideTable = field(default_factory=SideTable)
    unit_data: SideTable = field(default_factory=SideTable)
    upgrade_data: SideTable = field(default_factory=SideTable)
    unit_strings: SkinTable = field(default_factory=dict)
    unit_skins: SkinTable = field(default_factory=dict)
    ability_skins: SkinTable = field(default_factory=dict)
    upgrade_skins: SkinTable = field(default_factory=dict)
    item_skins: SkinTable = field(default_factory=dict)

    @classmethod
    def load(cls, reference_path: Optional[Path]) -> "ReferenceData":
        """Load every reference table found under `reference_path`.

        Missing files are logged and leave the matching table empty.
        """
        if reference_path is None:
            logging.getLogger(__name__).warning("No reference path configured, fallbacks disabled")
            return cls()

        path = Path(reference_path)
        return cls(
            unit_balance=SideTable.from_file(path / "unitbalance.slk", "unitBalanceID"),
            unit_weapons=SideTable.from_file(path / "unitweapons.slk", "unitWeapID"),
            unit_data=SideTable.from_file(path / "unitdata.slk", "unitID"),
            upgrade_data=SideTable.from_file(path / "upgradedata.slk", "upgradeid"),
            unit_strings=_merge_skins(path, UNIT_STRING_FILES, UNIT_STRING_KEYS),
            unit_skins=_merge_skins(path, ("unitskin.txt",), UNIT_SKIN_KEYS),
            ability_skins=_merge_skins(path, ("abilityskin.txt",), ART_KEYS),
            upgrade_skins=_merge_skins(path, UPGRADE_SKIN_FILES, ART_KEYS),
            item_skins=_merge_skins(path, ("itemfunc.txt",), ART_KEYS),
        )


class ObjectRegistry:
    """Holds the category parsers and the state they share.

    Attributes:
        units, abilities, upgrades, items: Category parsers
        formatter: Display formatting bound to the map string table
        patcher: Per-variant corrections applied to every built object
        references: Base-game fallback tables
    """

    def __init__(
        self,
        tables: Mapping[str, EntityRawTable],
        formatter: Optional[TextFormatter] = None,
        patcher: Optional[PatchApplier] = None,
        references: Optional[ReferenceData] = None,
    ):
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")
        self.formatter = formatter or TextFormatter()
        self.patcher = patcher or PatchApplier()
        self.references = references or ReferenceData()
        self._in_progress: Set[Tuple[str, str]] = set()

        self.units = Units(self, tables.get("units", {}), self.references.unit_skins)
        self.abilities = Abilities(self, tables.get("abilities", {}), self.references.ability_skins)
        self.upgrades = Upgrades(self, tables.get("upgrades", {}), self.references.upgrade_skins)
        self.items = Items(self, tables.get("items", {}), self.references.item_skins)

        self.logger.debug(
            "Registry ready: "
            + ", ".join(f"{name}={len(self.parser_for(name))}" for name in CATEGORIES)
        )

    def parser_for(self, category: str) -> CategoryParser:
        """Return the parser of a category name."""
        parsers: Dict[str, CategoryParser] = {
            "units": self.units,
            "abilities": self.abilities,
            "upgrades": self.upgrades,
            "items": self.items,
        }
        if category not in parsers:
            raise KeyError(f"Unknown category: {category}")
        return parsers[category]

    def resolve_many(
        self,
        parser: CategoryParser,
        ids: Iterable[Optional[str]],
        build: Callable[[EntityView], T],
    ) -> List[T]:
        """Build objects for a list of referenced ids.

        Unknown ids, repeated ids and entities already under construction
        (reference cycles) are dropped. Order of the first occurrence is kept.
        """
        output: List[T] = []
        seen: Set[str] = set()
        for entity_id in ids:
            if not entity_id or entity_id in seen:
                continue
            seen.add(entity_id)

            key = (parser.category, entity_id)
            if key in self._in_progress:
                self.logger.debug(f"Reference cycle through {parser.category}:{entity_id}, dropped")
                continue

            entity = parser.get_by_id(entity_id)
            if entity is None:
                self.logger.debug(f"Unresolved {parser.category} reference {entity_id}, dropped")
                continue

            output.append(self.build(entity, build))
        return output

    def build(self, entity: EntityView, build: Callable[[EntityView], Any]) -> Any:
        """Run `build` on an entity with the entity marked as under construction."""
        key = (entity.parser.category, entity.id)
        self._in_progress.add(key)
        try:
            return build(entity)
        finally:
            self._in_progress.discard(key)
