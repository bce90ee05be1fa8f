"""
Category parsers: turn entity views into typed domain objects.

Each category (units, abilities, upgrades, items) knows how to name an
entity, find its icon, list the entities it references, and assemble
its typed object. Cross-references are resolved eagerly through the
shared ObjectRegistry; a reference that cannot be resolved is dropped.
Every returned object has passed through the PatchApplier exactly once.
"""

import hashlib
import logging
import re
from typing import Any, Callable, Dict, Iterator, List, Optional, TYPE_CHECKING

from .entity import EntityView, stringify
from .fallback import SideTable, resolve
from .models import EntityRawTable, SkinTable
from .objects import (
    ArtifactObject,
    HeroObject,
    Number,
    SpellObject,
    UnitObject,
    UpgradeObject,
)

if TYPE_CHECKING:
    from .formatting import TextFormatter
    from .registry import ObjectRegistry

logger = logging.getLogger(__name__)

ART_KEYS = ("art", "art:sd", "art:hd")
MODEL_KEYS = ("file", "file:sd", "file:hd")


def to_number(value: Any, default: Number = 0, context: str = "") -> Number:
    """Coerce a raw value to a number.

    Missing values give `default` silently; malformed values give
    `default` and a warning, since the game data has occasional typos.
    """
    if value is None:
        return default
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, (int, float)):
        return int(value) if isinstance(value, float) and value.is_integer() else value
    text = str(value).strip()
    if not text:
        return default
    try:
        return int(text)
    except ValueError:
        pass
    try:
        number = float(text)
    except ValueError:
        logger.warning(f"Malformed number {text!r} at {context or 'unknown field'}, using {default}")
        return default
    return int(number) if number.is_integer() else number


def format_number(value: Number) -> str:
    """Render a number without a trailing '.0'."""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


class CategoryParser:
    """Shared behavior of the category parsers.

    Subclasses override `get_display_name`, `get_icon` and
    `get_cross_references` where their category differs.
    """

    category = ""
    icon_key = "art"
    # Category the ids from get_cross_references belong to
    reference_category: Optional[str] = None

    def __init__(
        self,
        registry: "ObjectRegistry",
        table: EntityRawTable,
        skins: Optional[SkinTable] = None,
    ):
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")
        self.registry = registry
        self.data = table
        self.skins: SkinTable = skins or {}

    def __contains__(self, entity_id: object) -> bool:
        return entity_id in self.data

    def __len__(self) -> int:
        return len(self.data)

    def __iter__(self) -> Iterator[EntityView]:
        for entity_id in self.data:
            yield EntityView(self.data[entity_id], self, entity_id)

    @property
    def formatter(self) -> "TextFormatter":
        return self.registry.formatter

    # Lookups

    def get_by_id(self, entity_id: Optional[str]) -> Optional[EntityView]:
        """Return a view of the entity, or None when the id is unknown."""
        if not entity_id or entity_id not in self.data:
            return None
        return EntityView(self.data[entity_id], self, entity_id)

    def get_ids_by_value(self, key: str, search: Any, includes: bool = False) -> List[str]:
        """Return ids of entities having a `key` record equal to (or containing) `search`."""
        needle = stringify(search)
        result: List[str] = []
        for entity_id, records in self.data.items():
            for record in records:
                if record.key != key:
                    continue
                text = stringify(record.value)
                if (needle in text) if includes else (text == needle):
                    result.append(entity_id)
                    break
        return result

    def find_ids_by_key(self, key: str, match: Any) -> List[str]:
        """Return ids of entities with a `key` record whose value satisfies `match`.

        `match` is either a predicate over the raw value or a value compared
        for equality.
        """
        check: Callable[[Any], bool] = match if callable(match) else (lambda value: value == match)
        return [
            entity_id
            for entity_id, records in self.data.items()
            if any(record.key == key and check(record.value) for record in records)
        ]

    # Capability set

    def get_display_name(self, entity: EntityView, level: Optional[int] = None) -> Any:
        return entity.get_raw("nam", level) or entity.get_raw("typ")

    def get_icon(self, entity: EntityView, level: Optional[int] = None) -> Optional[str]:
        """Icon from the entity's icon field, else from the profile (skin) data."""
        icon = None
        if level is not None:
            icon = entity.get_raw(self.icon_key, level)
        if icon is None:
            icon = entity.get_raw(self.icon_key)
        if icon:
            return stringify(icon)

        skin = self._get_skin(entity)
        if not skin:
            self.logger.debug(f"No icon for {entity.id}")
            return None
        art = next((skin[key] for key in ART_KEYS if skin.get(key)), "")
        variants = [item.strip() for item in art.split(",")]
        index = (level - 1) if level else 0
        if 0 <= index < len(variants) and variants[index]:
            return variants[index]
        return variants[0] or None

    def get_cross_references(self, entity: EntityView) -> List[str]:
        """Ids of entities (any category) this entity's object embeds."""
        return []

    # Helpers

    def _get_skin(self, entity: EntityView) -> Optional[Dict[str, str]]:
        skin = self.skins.get(entity.id)
        if skin is None and entity.backlink_id:
            skin = self.skins.get(entity.backlink_id)
        return skin

    def with_fallback(self, entity: EntityView, key: str, side_table: SideTable, side_key: str) -> Any:
        return resolve(entity, key, side_table, side_key)

    def number(self, entity: EntityView, value: Any, key: str, default: Number = 0) -> Number:
        return to_number(value, default, f"{self.category}:{entity.id}:{key}")

    def numbers(self, entity: EntityView, key: str) -> Optional[List[Number]]:
        values = entity.get_array(key)
        if values is None:
            return None
        return [self.number(entity, value, key) for value in values]

    def apply_patch(self, obj: Any) -> Any:
        return self.registry.patcher.apply(obj)


class Units(CategoryParser):
    """Units, buildings and heroes."""

    category = "units"
    icon_key = "ico"
    reference_category = "abilities"

    def get_display_name(self, entity: EntityView, level: Optional[int] = None) -> Any:
        name = entity.get_value("nam")
        if name:
            return name
        strings = self.registry.references.unit_strings
        for row_id in (entity.id, entity.backlink_id):
            if row_id and strings.get(row_id, {}).get("name"):
                return strings[row_id]["name"]
        return entity.get_value("tip")

    def get_full_name(self, entity: EntityView) -> str:
        """Hero proper name: explicit field, else the first listed proper name."""
        name = entity.get_value("pro")
        if name:
            return name
        strings = self.registry.references.unit_strings
        for row_id in (entity.id, entity.backlink_id):
            if row_id and row_id in strings and "propernames" in strings[row_id]:
                return strings[row_id]["propernames"].split(",")[0].strip()
        return ""

    def get_attack(self, entity: EntityView) -> str:
        """Damage range 'min-max' computed as base+dice .. base+dice*sides."""
        weapons = self.registry.references.unit_weapons
        base = self.number(entity, self.with_fallback(entity, "a1b", weapons, "dmgplus1"), "a1b")
        dice = self.number(entity, self.with_fallback(entity, "a1d", weapons, "dice1"), "a1d")
        sides = self.number(entity, self.with_fallback(entity, "a1s", weapons, "sides1"), "a1s")
        start = base + dice
        end = base + dice * (sides or 1)
        return f"{format_number(start)}-{format_number(end)}"

    def get_model(self, entity: EntityView) -> Optional[str]:
        model = entity.get_raw("mdl")
        if model:
            return stringify(model)
        skin = self._get_skin(entity)
        if not skin:
            return None
        return next((skin[key] for key in MODEL_KEYS if skin.get(key)), None)

    def get_model_hash(self, entity: EntityView) -> str:
        """Stable short hash of the normalized model path, shared by look-alike buildings."""
        model = (self.get_model(entity) or "").lower()
        model = re.sub(r"\.\w{2,}$", "", model)
        model = re.sub(r"^[\\/]", "", model)
        return hashlib.sha1(model.encode("utf-8")).hexdigest()[:10]

    def get_points(self, entity: EntityView) -> Number:
        points = self.with_fallback(entity, "poi", self.registry.references.unit_data, "points")
        return self.number(entity, points, "poi")

    def get_skill_ids(self, entity: EntityView) -> List[str]:
        return entity.get_array("hab") or entity.get_array("abi") or []

    def get_cross_references(self, entity: EntityView) -> List[str]:
        return self.get_skill_ids(entity)

    def get_tags(self, entity: EntityView) -> List[str]:
        """Lower-cased classification tokens plus an 'air' tag for flyers."""
        references = self.registry.references
        custom_tags: List[str] = []
        if self.with_fallback(entity, "mvt", references.unit_data, "movetp") == "fly":
            custom_tags.append("air")
        raw = stringify(self.with_fallback(entity, "typ", references.unit_balance, "type"))
        tokens = raw.replace("_", "").split(",") + custom_tags
        return [token.strip().lower() for token in tokens if token.strip()]

    def _get_skills(self, entity: EntityView) -> List[SpellObject]:
        abilities = self.registry.abilities
        return self.registry.resolve_many(
            abilities, self.get_skill_ids(entity), abilities.get_spell_object
        )

    def _unit_fields(self, entity: EntityView) -> Dict[str, Any]:
        references = self.registry.references
        balance = references.unit_balance
        weapons = references.unit_weapons

        def balance_number(key: str, column: str) -> Number:
            return self.number(entity, self.with_fallback(entity, key, balance, column), key)

        def weapon_number(key: str, column: str) -> Number:
            return self.number(entity, self.with_fallback(entity, key, weapons, column), key)

        def text(value: Any) -> Optional[str]:
            return stringify(value) if value is not None else None

        return dict(
            id=entity.id,
            name=entity.get_name(),
            hotkey=entity.get_value("hot"),
            description=entity.get_value("tub"),
            cost=self.number(entity, entity.get_value("gol"), "gol"),
            hp=balance_number("hpm", "HP"),
            hp_reg=balance_number("hpr", "regenHP"),
            mp=balance_number("mpm", "realM"),
            mp_reg=balance_number("mpr", "regenMana"),
            defense=balance_number("def", "def"),
            def_type=text(self.with_fallback(entity, "dty", balance, "defType")),
            atk=self.get_attack(entity),
            atk_type=text(self.with_fallback(entity, "a1t", weapons, "atkType1")),
            atk_range=weapon_number("a1r", "rangeN1"),
            atk_speed=weapon_number("a1c", "cool1"),
            weapon_type=text(self.with_fallback(entity, "a1w", weapons, "weapTp1")),
            upgrades=entity.get_array("pgr") or [],
            tags=self.get_tags(entity),
            bounty=self.get_points(entity),
        )

    def get_unit_object(
        self, entity: EntityView, extra_upgrades: Optional[List[str]] = None
    ) -> UnitObject:
        """Build the unit object.

        Args:
            entity: Unit entity
            extra_upgrades: Upgrade ids found outside the object table
                (script requirements), merged after the unit's own
        """
        fields = self._unit_fields(entity)
        for upgrade_id in extra_upgrades or []:
            if upgrade_id not in fields["upgrades"]:
                fields["upgrades"].append(upgrade_id)
        skills = self._get_skills(entity) if self.get_skill_ids(entity) else None
        return self.apply_patch(UnitObject(skills=skills, **fields))

    def get_hero_object(
        self,
        entity: EntityView,
        hotkey: Optional[str] = None,
        items: Optional[List[ArtifactObject]] = None,
    ) -> HeroObject:
        """Build the hero object; skills are limited to non-empty spells.

        Args:
            entity: Hero entity
            hotkey: Slot hotkey replacing the hero's own
            items: Artifacts the hero is rewarded with
        """
        balance = self.registry.references.unit_balance

        def attribute(key: str, column: str) -> Number:
            return self.number(entity, self.with_fallback(entity, key, balance, column), key)

        fields = self._unit_fields(entity)
        if hotkey is not None:
            fields["hotkey"] = hotkey
        skills = [spell for spell in self._get_skills(entity) if not spell.is_empty()]
        stat = stringify(self.with_fallback(entity, "pra", balance, "Primary")).lower()
        return self.apply_patch(
            HeroObject(
                skills=skills,
                items=items,
                full_name=self.get_full_name(entity),
                stat=stat,
                agility=attribute("agi", "AGI"),
                strength=attribute("str", "STR"),
                intelligence=attribute("int", "INT"),
                agility_per_level=attribute("agp", "AGIplus"),
                strength_per_level=attribute("stp", "STRplus"),
                intelligence_per_level=attribute("inp", "INTplus"),
                **fields,
            )
        )


class Abilities(CategoryParser):
    """Abilities, exposed as spells."""

    category = "abilities"
    icon_key = "art"
    reference_category = "units"

    SUMMON_KEYS = ("sf1", "we1", "dp1", "aiu", "ai3")

    def get_display_name(self, entity: EntityView, level: Optional[int] = None) -> Any:
        return entity.get_raw("tp1")

    def get_summon_ids(self, entity: EntityView) -> List[str]:
        """Unit ids summoned at any level, deduplicated in field order."""
        ids: List[str] = []
        for key in self.SUMMON_KEYS:
            for value in entity.get_all_values(key):
                for token in stringify(value).split(","):
                    token = token.strip()
                    if token and token not in ids:
                        ids.append(token)
        return ids

    def get_cross_references(self, entity: EntityView) -> List[str]:
        return self.get_summon_ids(entity)

    def get_spell_object(self, entity: EntityView) -> SpellObject:
        units = self.registry.units
        summons = self.registry.resolve_many(
            units, self.get_summon_ids(entity), units.get_unit_object
        )
        return self.apply_patch(
            SpellObject(
                id=entity.id,
                name=entity.get_name(),
                hotkey=entity.get_value("hky"),
                description=entity.get_value("ub1"),
                area=self.numbers(entity, "are"),
                cooldown=self.numbers(entity, "cdn"),
                cost=self.numbers(entity, "mcs"),
                duration=self.numbers(entity, "dut"),
                targets=entity.get_array("tar"),
                summon_unit=summons,
            )
        )


class Upgrades(CategoryParser):
    """Researchable upgrades with per-level costs and timers."""

    category = "upgrades"
    icon_key = "ar1"
    reference_category = "abilities"

    def _side_number(self, entity: EntityView, key: str, column: str) -> Number:
        data = self.registry.references.upgrade_data
        return self.number(entity, self.with_fallback(entity, key, data, column), key)

    def get_base_cost(self, entity: EntityView) -> Number:
        return self._side_number(entity, "glb", "goldbase")

    def get_modifier_cost(self, entity: EntityView) -> Number:
        return self._side_number(entity, "glm", "goldmod")

    def _progression(self, base: Number, modifier: Number, length: int) -> List[Number]:
        return [base + idx * modifier for idx in range(max(length, 0))]

    def get_cost_array(self, entity: EntityView, skip_last: bool = False) -> List[Number]:
        """Gold cost per level: goldbase + i * goldmod."""
        length = entity.get_max_level() - (1 if skip_last else 0)
        return self._progression(self.get_base_cost(entity), self.get_modifier_cost(entity), length)

    def get_timers_array(self, entity: EntityView, skip_last: bool = False) -> List[Number]:
        """Research time per level: timebase + i * timemod."""
        base = self._side_number(entity, "tib", "timebase")
        modifier = self._side_number(entity, "tim", "timemod")
        length = entity.get_max_level() - (1 if skip_last else 0)
        return self._progression(base, modifier, length)

    def get_dependent_spell_ids(self, entity: EntityView) -> List[str]:
        """Abilities that require this upgrade."""
        return self.registry.abilities.get_ids_by_value("req", entity.id)

    def get_cross_references(self, entity: EntityView) -> List[str]:
        return self.get_dependent_spell_ids(entity)

    def get_dependent_spells(self, entity: EntityView) -> List[SpellObject]:
        abilities = self.registry.abilities
        spells = self.registry.resolve_many(
            abilities, self.get_dependent_spell_ids(entity), abilities.get_spell_object
        )
        return [spell for spell in spells if not spell.is_empty()]

    def _upgrade_fields(self, entity: EntityView, skip_last: bool) -> Dict[str, Any]:
        icons = entity.get_icons()
        return dict(
            id=entity.id,
            name=entity.get_name(),
            hotkey=entity.get_value("hk1"),
            description=entity.get_value("ub1"),
            icons_count=len(icons) if len(icons) > 1 else None,
            spells=self.get_dependent_spells(entity),
            cost=self.get_cost_array(entity, skip_last),
            timers=self.get_timers_array(entity, skip_last),
        )

    def get_upgrade_object(self, entity: EntityView, skip_last: bool = False) -> UpgradeObject:
        """Build the upgrade object.

        Args:
            entity: Upgrade entity
            skip_last: Leave the last grade out of the cost and timer arrays
        """
        return self.apply_patch(UpgradeObject(**self._upgrade_fields(entity, skip_last)))

    def get_level_objects(self, entity: EntityView) -> List[UpgradeObject]:
        """One object per level, each carrying that level's name, text and cost."""
        base = self._upgrade_fields(entity, skip_last=False)
        output: List[UpgradeObject] = []
        for idx in range(entity.get_max_level()):
            level = idx + 1
            fields = dict(
                base,
                name=entity.get_value("tp1", level) or base["name"],
                description=entity.get_value("ub1", level) or base["description"],
                cost=base["cost"][idx:idx + 1],
                timers=base["timers"][idx:idx + 1],
                level=level,
            )
            output.append(self.apply_patch(UpgradeObject(**fields)))
        return output


class Items(CategoryParser):
    """Items, exposed as artifacts."""

    category = "items"
    icon_key = "ico"

    def get_level(self, entity: EntityView) -> Optional[int]:
        value = entity.get_value("lvo")
        if value is None:
            value = entity.get_value("lev")
        if value is None:
            return None
        return int(self.number(entity, value, "lvo"))

    def get_artifact_object(self, entity: EntityView, level: Optional[int] = None) -> ArtifactObject:
        return self.apply_patch(
            ArtifactObject(
                id=entity.id,
                name=entity.get_name(),
                description=entity.get_value("tub"),
                # the raw name doubles as hotkey in the source data
                hotkey=entity.get_raw("nam"),
                level=level if level is not None else self.get_level(entity),
            )
        )
