"""
Race assembly: resolve the ids a script miner recovered into one race aggregate.
"""

import logging
from typing import Any, Dict, List, Optional, TYPE_CHECKING

from ..errors import MissingLinkageError
from .objects import (
    ArtifactObject,
    BaseObject,
    BonusObject,
    HeroObject,
    RaceData,
    RawRace,
    SpellObject,
    UltimateObject,
    UnitObject,
    UpgradeObject,
)
from .registry import ObjectRegistry

if TYPE_CHECKING:
    from ..script.base import ScriptMiner

# Command card grid, row by row
HOTKEYS = ("Q", "W", "E", "R", "A", "S", "D", "F", "Z", "X", "C", "V")

REQUIRED_BUILDINGS = ("fort", "tower", "barrack")

# Race ultimates sit on the last command card slot
ULTIMATE_HOTKEY = "V"
DEFAULT_ULTIMATE_NAME = "Precision UW"


def grid_hotkey(slot: int) -> Optional[str]:
    """Hotkey of a command card slot, None past the grid."""
    return HOTKEYS[slot] if 0 <= slot < len(HOTKEYS) else None


class RaceAssembler:
    """Builds RaceData from a RawRace.

    Missing optional references are dropped. The fort, tower and barrack
    buildings and every tower upgrade are required: when one is missing a
    MissingLinkageError aborts the run, unless `strict_links` is off, in
    which case the problem is logged and the reference dropped.
    """

    def __init__(self, registry: ObjectRegistry, miner: "ScriptMiner", strict_links: bool = True):
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")
        self.registry = registry
        self.miner = miner
        self.strict_links = strict_links

    def _missing(self, category: str, entity_id: Optional[str], field: str) -> None:
        error = MissingLinkageError(category, entity_id, field)
        if self.strict_links:
            raise error
        self.logger.error(f"{error}, dropped")

    # Single objects

    def get_unit(self, unit_id: Optional[str]) -> Optional[UnitObject]:
        """Unit object with the upgrades the script requires for it."""
        units = self.registry.units
        entity = units.get_by_id(unit_id)
        if entity is None:
            return None
        requires = self.miner.get_unit_requires(entity.id)
        return self.registry.build(entity, lambda e: units.get_unit_object(e, extra_upgrades=requires))

    def get_spell(self, ability_id: Optional[str]) -> Optional[SpellObject]:
        abilities = self.registry.abilities
        entity = abilities.get_by_id(ability_id)
        if entity is None:
            return None
        return self.registry.build(entity, abilities.get_spell_object)

    def get_upgrade(self, upgrade_id: Optional[str], skip_last: bool = False) -> Optional[UpgradeObject]:
        upgrades = self.registry.upgrades
        entity = upgrades.get_by_id(upgrade_id)
        if entity is None:
            return None
        return self.registry.build(entity, lambda e: upgrades.get_upgrade_object(e, skip_last=skip_last))

    def get_hero(
        self, hero_id: Optional[str], slot: int, items: Optional[List[ArtifactObject]] = None
    ) -> Optional[HeroObject]:
        units = self.registry.units
        entity = units.get_by_id(hero_id)
        if entity is None:
            return None
        return self.registry.build(
            entity, lambda e: units.get_hero_object(e, hotkey=grid_hotkey(slot), items=items)
        )

    def get_hero_items(self, hero_id: str) -> Optional[List[ArtifactObject]]:
        """Artifacts a bonus hero is rewarded with, each with its hero level."""
        rewards = self.miner.get_hero_items(hero_id)
        if rewards is None:
            return None
        items = self.registry.items
        output: List[ArtifactObject] = []
        for item_id, level in rewards.items():
            entity = items.get_by_id(item_id)
            if entity is None:
                self.logger.debug(f"Reward {item_id} of hero {hero_id} not found, dropped")
                continue
            output.append(items.get_artifact_object(entity, level=level))
        return output

    def get_bonus(self, bonus_id: str) -> Optional[BonusObject]:
        """Bonus building with the units, spells and upgrades it unlocks."""
        units = self.registry.units
        entity = units.get_by_id(bonus_id)
        if entity is None:
            return None

        replacement = self.get_unit(self.miner.get_bonus_unit(bonus_id))

        spells: Optional[List[SpellObject]] = None
        skill_ids = entity.get_array("abi") or []
        if len([i for i in skill_ids if self.registry.abilities.get_by_id(i) is not None]) > 1:
            spells = self.registry.resolve_many(
                self.registry.abilities, skill_ids, self.registry.abilities.get_spell_object
            )

        research_ids = entity.get_array("res")
        upgrades = (
            self.registry.resolve_many(
                self.registry.upgrades, research_ids, self.registry.upgrades.get_upgrade_object
            )
            if research_ids
            else None
        )

        return units.apply_patch(
            BonusObject(
                id=bonus_id,
                name=entity.get_value("tip"),
                hotkey=entity.get_value("hot"),
                description=entity.get_value("tub"),
                building_id=units.get_model_hash(entity),
                related_id=self.registry.upgrades.get_ids_by_value("req", bonus_id),
                units=[replacement] if replacement else None,
                spells=spells,
                upgrades=upgrades,
            )
        )

    # Race parts

    def _get_auras(self, raw: RawRace) -> List[BaseObject]:
        abilities = self.registry.abilities
        output: List[BaseObject] = []
        for slot, aura_id in enumerate(raw.auras):
            entity = abilities.get_by_id(aura_id)
            if entity is None:
                continue
            output.append(
                abilities.apply_patch(
                    BaseObject(
                        type="aura",
                        id=aura_id,
                        name=entity.get_name(),
                        description=entity.get_value("ub1"),
                        hotkey=grid_hotkey(slot),
                    )
                )
            )
        return output

    def _get_bonus_buildings(self, raw: RawRace) -> List[BaseObject]:
        """One entry per distinct bonus building model."""
        units = self.registry.units
        output: List[BaseObject] = []
        for bonus_id in raw.bonuses:
            entity = units.get_by_id(bonus_id)
            if entity is None:
                continue
            model_hash = units.get_model_hash(entity)
            if any(building.id == model_hash for building in output):
                continue
            output.append(BaseObject(type="building", id=model_hash, name=entity.get_name(), hotkey=""))
        return output

    def _get_tower_upgrades(self, raw: RawRace) -> List[UpgradeObject]:
        """Tower upgrades without their last grade."""
        output: List[UpgradeObject] = []
        for upgrade_id in raw.upgrades:
            upgrade = self.get_upgrade(upgrade_id, skip_last=True)
            if upgrade is None:
                self._missing("upgrades", upgrade_id, f"race {raw.name} tower upgrades")
                continue
            output.append(upgrade)
        return output

    def _get_buildings(self, raw: RawRace) -> Dict[str, UnitObject]:
        output: Dict[str, UnitObject] = {}
        for key, unit_id in raw.buildings.items():
            unit = self.get_unit(unit_id)
            if unit is None:
                if key in REQUIRED_BUILDINGS:
                    self._missing("units", unit_id, f"race {raw.id} buildings.{key}")
                continue
            output[key] = unit
        for key in REQUIRED_BUILDINGS:
            if key not in raw.buildings:
                self._missing("units", None, f"race {raw.id} buildings.{key}")
        return output

    def _get_heroes(self, raw: RawRace) -> List[HeroObject]:
        heroes: List[HeroObject] = []
        for slot, hero_id in enumerate(raw.heroes):
            hero = self.get_hero(hero_id, slot)
            if hero is not None:
                heroes.append(hero)

        for bonus_hero in raw.bonus_heroes:
            hero = self.get_hero(bonus_hero.id, bonus_hero.slot, items=self.get_hero_items(bonus_hero.id))
            if hero is not None:
                heroes.append(hero)
        return heroes

    def _get_magic(self, raw: RawRace) -> List[UpgradeObject]:
        upgrades = self.registry.upgrades
        entity = upgrades.get_by_id(raw.magic)
        if entity is None:
            return []
        return self.registry.build(entity, upgrades.get_level_objects)

    def _get_ulti(self, raw: RawRace) -> Optional[UltimateObject]:
        data = raw.ulti_data
        if data is None:
            return None
        abilities = self.registry.abilities
        entity = abilities.get_by_id(data.id)
        return abilities.apply_patch(
            UltimateObject(
                id=data.id,
                name=(entity.get_name() if entity else None) or DEFAULT_ULTIMATE_NAME,
                hotkey=ULTIMATE_HOTKEY,
                damage_time=data.damage_time,
                steal_interrupt=data.steal_interrupt,
                fake_steal_interrupt=data.fake_steal_interrupt,
            )
        )

    def _resolve_map(self, ids: Dict[str, Optional[str]], resolve: Any) -> Dict[str, Any]:
        output: Dict[str, Any] = {}
        for key, entity_id in ids.items():
            obj = resolve(entity_id)
            if obj is not None:
                output[key] = obj
        return output

    def assemble(self, raw: RawRace, description: Any) -> RaceData:
        """Build the race aggregate.

        Args:
            raw: Ids mined from the script
            description: Race description taken from the picker

        Returns:
            Fully resolved race

        Raises:
            MissingLinkageError: if a required building or tower upgrade is missing
        """
        self.logger.debug(f"Assembling race {raw.id} ({raw.key})")
        return RaceData(
            id=raw.id,
            key=raw.key,
            name=raw.name,
            description=description,
            bonus_buildings=self._get_bonus_buildings(raw),
            auras=self._get_auras(raw),
            bonuses=[bonus for bonus in map(self.get_bonus, raw.bonuses) if bonus is not None],
            tower_upgrades=self._get_tower_upgrades(raw),
            t1spell=self.get_spell(raw.t1spell),
            t2spell=self.get_spell(raw.t2spell),
            buildings=self._get_buildings(raw),
            heroes=self._get_heroes(raw),
            magic=self._get_magic(raw),
            base_upgrades=self._resolve_map(raw.base_upgrades, self.get_upgrade),
            units=self._resolve_map(raw.units, self.get_unit),
            ulti_data=self._get_ulti(raw),
        )
