"""
Map-wide tables: damage bonuses per attack type and race bounties.
"""

import logging
import math
from typing import Dict, Iterable, List, Mapping, Optional, Set

from .entity import stringify
from .objects import BountyData, MiscData, Number, RaceData, RawRace, SpellObject, UnitObject
from .registry import ObjectRegistry

logger = logging.getLogger(__name__)

ATTACK_TYPES = ("chaos", "hero", "magic", "normal", "pierce", "siege", "spells")
ARMOR_TYPES_COUNT = 8

UNIT_KEYS = ("melee", "range", "mage", "siege", "air", "catapult")

# Hero slots whose bounty is listed: the first hero and the super unit
HERO_SLOT = 0
SU_SLOT = 3


def _percent(value: str) -> int:
    """Damage multiplier as a rounded percentage; empty or zero means 100."""
    text = value.strip()
    try:
        number = float(text) if text else 0.0
    except ValueError:
        return 100
    if math.isnan(number):
        return 100
    return int(math.floor((number or 1) * 100 + 0.5))


def get_damage_table(constants: Mapping[str, str]) -> Dict[str, List[int]]:
    """Percent damage of each attack type against each armor type.

    Rows are padded or cut to the eight armor types.
    """
    table: Dict[str, List[int]] = {}
    for attack_type in ATTACK_TYPES:
        values = constants.get(f"DamageBonus{attack_type.capitalize()}", "").split(",")
        values = (values + [""] * ARMOR_TYPES_COUNT)[:ARMOR_TYPES_COUNT]
        table[attack_type] = [_percent(value) for value in values]
    return table


def _split(value: object) -> List[str]:
    return [token.strip() for token in stringify(value).split(",") if token.strip()]


class BountyCollector:
    """Reads the bounty of every unit a race can kill for gold."""

    def __init__(self, registry: ObjectRegistry):
        self.registry = registry

    def get_points(self, unit_id: Optional[str]) -> Number:
        units = self.registry.units
        entity = units.get_by_id(unit_id)
        return units.get_points(entity) if entity else 0

    def _lower_grade(self, barrack_id: str) -> Optional[str]:
        ids = self.registry.units.find_ids_by_key("upt", lambda value: barrack_id in _split(value))
        return ids[0] if ids else None

    def _upper_grade(self, barrack_id: str) -> Optional[str]:
        entity = self.registry.units.get_by_id(barrack_id)
        grades = entity.get_array("upt") if entity else None
        return grades[0] if grades else None

    def get_barracks_chain(self, barrack_id: str) -> List[str]:
        """Barracks grades from the lowest to the highest, through their upgrade fields."""
        chain = [barrack_id]
        lower = self._lower_grade(barrack_id)
        while lower and lower not in chain:
            chain.insert(0, lower)
            lower = self._lower_grade(lower)
        upper = self._upper_grade(barrack_id)
        while upper and upper not in chain:
            chain.append(upper)
            upper = self._upper_grade(upper)
        return chain

    @staticmethod
    def _summons(race: RaceData) -> List[UnitObject]:
        spells: List[Optional[SpellObject]] = [race.t1spell, race.t2spell]
        for upgrade in list(race.magic) + list(race.tower_upgrades):
            spells.extend(upgrade.spells or [])

        output: List[UnitObject] = []
        seen: Set[str] = set()
        for spell in spells:
            for unit in (spell.summon_unit if spell else None) or []:
                if unit.id not in seen:
                    seen.add(unit.id)
                    output.append(unit)
        return output

    def get_bounty(self, race: RaceData, raw: RawRace) -> BountyData:
        barrack = race.buildings.get("barrack")
        tower = race.buildings.get("tower")
        fort = race.buildings.get("fort")

        def hero_points(slot: int) -> Optional[Number]:
            if slot >= len(raw.heroes) or raw.heroes[slot] is None:
                return None
            return self.get_points(raw.heroes[slot])

        barracks = self.get_barracks_chain(barrack.id) if barrack else []
        return BountyData(
            **{key: unit.bounty for key, unit in race.units.items() if key in UNIT_KEYS},
            barracks=[self.get_points(unit_id) for unit_id in barracks],
            hero=hero_points(HERO_SLOT),
            su=hero_points(SU_SLOT),
            tower=tower.bounty if tower else None,
            fort=fort.bounty if fort else None,
            summon=[unit.bounty for unit in self._summons(race)],
        )


def get_misc_data(
    registry: ObjectRegistry,
    races: Iterable[RaceData],
    raw_races: Mapping[str, RawRace],
    constants: Optional[Mapping[str, str]],
) -> MiscData:
    """Damage table and bounties keyed by race id."""
    collector = BountyCollector(registry)
    bounty = {
        race.id: collector.get_bounty(race, raw_races[race.id])
        for race in races
        if race.id in raw_races
    }
    if constants is None:
        logger.warning("No gameplay constants, damage table left out")
    return MiscData(
        damage=get_damage_table(constants) if constants is not None else None,
        bounty=bounty,
    )
