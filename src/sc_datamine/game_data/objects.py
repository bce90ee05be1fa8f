"""
Typed domain objects produced by the category parsers.

Objects are frozen once built. `to_dict()` emits the camelCase field
names and type discriminators that downstream tools depend on, and
leaves out optional fields that were never set.
"""

from dataclasses import dataclass, field, fields, is_dataclass
from typing import Any, Dict, List, Optional, Tuple, Union

Number = Union[int, float]


def _camel_case(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.capitalize() for part in rest)


def _export(value: Any) -> Any:
    if is_dataclass(value) and not isinstance(value, type):
        return value.to_dict()  # type: ignore[union-attr]
    if isinstance(value, (list, tuple)):
        return [_export(item) for item in value]
    if isinstance(value, dict):
        return {key: _export(item) for key, item in value.items()}
    return value


class Exportable:
    """Mixin turning a dataclass into its JSON-ready dict."""

    def to_dict(self) -> Dict[str, Any]:
        output: Dict[str, Any] = {}
        for f in fields(self):  # type: ignore[arg-type]
            value = getattr(self, f.name)
            if value is None:
                continue
            output[f.metadata.get("key", _camel_case(f.name))] = _export(value)
        return output


# =============================================================================
# Entity objects
# =============================================================================

@dataclass(frozen=True)
class BaseObject(Exportable):
    """Fields shared by every object handed to downstream tools."""
    id: str
    name: Any = ""
    hotkey: Optional[str] = None
    description: Optional[str] = None
    icons_count: Optional[int] = None
    type: str = "base"


@dataclass(frozen=True)
class SpellObject(BaseObject):
    type: str = "spell"
    cost: Optional[List[Number]] = None
    cooldown: Optional[List[Number]] = None
    duration: Optional[List[Number]] = None
    area: Optional[List[Number]] = None
    targets: Optional[List[str]] = None
    summon_unit: Optional[List["UnitObject"]] = None

    def is_empty(self) -> bool:
        """A spell without a name or without any numeric/summon data is filler."""
        if not self.name:
            return True
        return not any((self.area, self.cooldown, self.cost, self.duration, self.summon_unit))


@dataclass(frozen=True)
class UnitObject(BaseObject):
    type: str = "unit"
    cost: Number = 0
    hp: Number = 0
    hp_reg: Number = 0
    mp: Number = 0
    mp_reg: Number = 0
    defense: Number = field(default=0, metadata={"key": "def"})
    def_type: Optional[str] = None
    atk: str = "0-0"
    atk_type: Optional[str] = None
    atk_range: Number = 0
    atk_speed: Number = 0
    weapon_type: Optional[str] = None
    skills: Optional[List[SpellObject]] = None
    upgrades: List[str] = field(default_factory=list)
    tags: List[str] = field(default_factory=list)
    bounty: Number = 0


@dataclass(frozen=True)
class ArtifactObject(BaseObject):
    type: str = "artifact"
    level: Optional[int] = None


@dataclass(frozen=True)
class HeroObject(UnitObject):
    type: str = "hero"
    skills: Optional[List[SpellObject]] = field(default_factory=list)
    items: Optional[List[ArtifactObject]] = None
    full_name: str = ""
    stat: str = ""
    strength: Number = field(default=0, metadata={"key": "str"})
    intelligence: Number = field(default=0, metadata={"key": "int"})
    agility: Number = field(default=0, metadata={"key": "agi"})
    strength_per_level: Number = field(default=0, metadata={"key": "strLvl"})
    intelligence_per_level: Number = field(default=0, metadata={"key": "intLvl"})
    agility_per_level: Number = field(default=0, metadata={"key": "agiLvl"})


@dataclass(frozen=True)
class UpgradeObject(BaseObject):
    type: str = "upgrade"
    cost: List[Number] = field(default_factory=list)
    timers: Optional[List[Number]] = None
    spells: Optional[List[SpellObject]] = None
    level: Optional[int] = None


@dataclass(frozen=True)
class BonusObject(BaseObject):
    type: str = "bonus"
    building_id: str = ""
    related_id: List[str] = field(default_factory=list, metadata={"key": "relatedID"})
    units: Optional[List[UnitObject]] = None
    spells: Optional[List[SpellObject]] = None
    upgrades: Optional[List[UpgradeObject]] = None
    heroes: Optional[List[HeroObject]] = None


@dataclass(frozen=True)
class RacePickerObject(BaseObject):
    type: str = "race"
    key: str = ""


@dataclass(frozen=True)
class UltimatePickerObject(BaseObject):
    type: str = "ultiPicker"
    requires: Dict[str, int] = field(default_factory=dict)


@dataclass(frozen=True)
class UltimateObject(BaseObject):
    """Race ultimate with the interrupt behaviour its triggers implement."""
    type: str = "ultimate"
    damage_time: Optional[Number] = None
    steal_interrupt: Optional[bool] = None
    fake_steal_interrupt: Optional[bool] = None


@dataclass(frozen=True)
class NeutralObject(BaseObject):
    type: str = "neutral"
    skills: List[BaseObject] = field(default_factory=list)


# =============================================================================
# Race aggregate
# =============================================================================

@dataclass(frozen=True)
class RaceData(Exportable):
    """Fully resolved race, owning every object it references."""
    id: str
    key: str
    name: str
    description: Any
    auras: List[BaseObject]
    bonuses: List[BonusObject]
    tower_upgrades: List[UpgradeObject]
    magic: List[UpgradeObject]
    base_upgrades: Dict[str, UpgradeObject]
    units: Dict[str, UnitObject]
    buildings: Dict[str, UnitObject]
    t1spell: Optional[SpellObject]
    t2spell: Optional[SpellObject]
    heroes: List[HeroObject]
    bonus_buildings: List[BaseObject]
    ulti_data: Optional[UltimateObject] = None


@dataclass(frozen=True)
class UltimatesData(Exportable):
    """Ultimate pickers, the spells each unlocks and names of required upgrades."""
    pickers: List[UltimatePickerObject] = field(default_factory=list)
    spells: Dict[str, List[SpellObject]] = field(default_factory=dict)
    requires: Dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class ArtifactsData(Exportable):
    items: List[ArtifactObject] = field(default_factory=list)
    combine_map: Dict[str, List[List[str]]] = field(default_factory=dict)


# =============================================================================
# Raw data mined from the script (ids only)
# =============================================================================

@dataclass
class RawBonusHero:
    """Hero that replaces a hero slot when a bonus is picked."""
    id: str
    slot: int


@dataclass
class RawUltiData:
    """Ultimate ability id and the trigger flags mined for it."""
    id: str
    damage_time: Optional[Number] = None
    steal_interrupt: Optional[bool] = None
    fake_steal_interrupt: Optional[bool] = None


@dataclass
class RawRace:
    """Ids describing one race, as recovered from the script."""
    id: str
    name: str
    key: str
    bonuses: List[str] = field(default_factory=list)
    upgrades: List[str] = field(default_factory=list)
    magic: Optional[str] = None
    base_upgrades: Dict[str, Optional[str]] = field(default_factory=dict)
    auras: List[str] = field(default_factory=list)
    t1spell: Optional[str] = None
    t2spell: Optional[str] = None
    heroes: List[Optional[str]] = field(default_factory=list)
    buildings: Dict[str, Optional[str]] = field(default_factory=dict)
    tower_abilities: List[str] = field(default_factory=list)
    units: Dict[str, Optional[str]] = field(default_factory=dict)
    bonus_upgrades: Dict[str, List[Tuple[str, int]]] = field(default_factory=dict)
    bonus_heroes: List[RawBonusHero] = field(default_factory=list)
    ulti_data: Optional[RawUltiData] = None


@dataclass
class RawUltimates:
    pickers: List[str] = field(default_factory=list)
    spells: Dict[str, List[str]] = field(default_factory=dict)


@dataclass
class RawArtifacts:
    combine_map: Dict[str, List[List[str]]] = field(default_factory=dict)
    items: List[str] = field(default_factory=list)


@dataclass
class RawPatchData:
    """Everything a script miner recovers in one pass."""
    pickers: Dict[str, List[str]] = field(default_factory=dict)
    races: List[RawRace] = field(default_factory=list)
    ultimates: RawUltimates = field(default_factory=RawUltimates)
    artifacts: RawArtifacts = field(default_factory=RawArtifacts)
    neutrals: List[str] = field(default_factory=list)
    shrines: Optional[List[str]] = None


# =============================================================================
# Map-wide tables
# =============================================================================

@dataclass(frozen=True)
class BountyData(Exportable):
    """Gold a race's units and buildings give when killed."""
    melee: Optional[Number] = None
    range: Optional[Number] = None
    mage: Optional[Number] = None
    siege: Optional[Number] = None
    air: Optional[Number] = None
    catapult: Optional[Number] = None
    barracks: List[Number] = field(default_factory=list)
    hero: Optional[Number] = None
    su: Optional[Number] = None
    tower: Optional[Number] = None
    fort: Optional[Number] = None
    summon: List[Number] = field(default_factory=list)


@dataclass(frozen=True)
class MiscData(Exportable):
    """Attack/armor damage percentages and per-race bounties."""
    damage: Optional[Dict[str, List[int]]] = None
    bounty: Dict[str, BountyData] = field(default_factory=dict)
