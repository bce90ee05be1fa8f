"""
Script miner for the classic map layout.

Ids appear in the script as quoted four character literals. Race data
is held in global arrays whose names and slots are fixed by the map's
obfuscator; they are listed below.
"""

import re
from typing import Dict, List, Optional, Tuple, TYPE_CHECKING

from ..game_data.entity import stringify
from ..game_data.objects import (
    RawArtifacts,
    RawBonusHero,
    RawPatchData,
    RawRace,
    RawUltiData,
    RawUltimates,
)
from .base import ScriptMiner, alternation, unique

if TYPE_CHECKING:
    from ..game_data.entity import EntityView
    from ..game_data.registry import ObjectRegistry

# Picker units, one per alliance
ALLIANCES = ("nfh1", "nfr2", "nfr1", "ngnh")

# Ability listing the ultimate pickers
ULTIMATE_PICKER = "A0OA"

# Global arrays holding per-player picker buildings
TOWER_GLOBAL = "O1Q"
BONUS_PICKER_GLOBAL = "O2Q"

RACE_NAME_VAR = "OQ"
RACE_FULL_NAME_SLOT = "30"
RACE_SHORT_NAME_SLOT = "38"

REPLACEABLE_VAR = "I0Q"
AURA_SLOT = "1"
ULTI_SLOT = "5"
DESCRIPTION_SLOT = "38"

# Orders that interrupt channeling when issued by a trigger dummy
INTERRUPT_ORDERS = (
    "thunderbolt",
    "entanglingroots",
    "entangle",
    "freezy",
    "freezyon",
    "silence",
    "stop",
)

# Mana burn given to the decoy ultimate
MANA_BURN = "A0QV"

UPGRADES_VAR = "I2Q"
MAGIC_SLOT = "5"
BASE_UPGRADE_SLOTS = {"armor": "1", "melee": "$D", "range": "17", "wall": "9"}
TOWER_UPGRADE_SLOTS = ("21", "25", "29", "33", "37", "41", "45", "49", "53")
BONUS_UPGRADE_SLOTS = ("61", "65", "69")

FORT_SLOT = "1"
BUILDING_VARS = {"tower": ("I1", "1"), "barrack": ("Q1", "1")}

UNIT_SLOT = "1"
UNIT_VARS = {
    "melee": "QO",
    "mage": "IO",
    "range": "OO",
    "siege": "QI",
    "air": "Q6",
    "catapult": "O6",
}

HERO_VARS = ("Q2", "O2", "I2", "Q3")

# Bonuses granting a hero through triggers the script layout does not expose
KNOWN_BONUS_HEROES = {
    "n02Q": RawBonusHero(id="U00N", slot=4),
    "n00W": RawBonusHero(id="N00T", slot=4),
}

# Bonuses whose only effect is the known hero
HERO_ONLY_BONUSES = ("n00W",)

# Hero rewards not discoverable from the script
KNOWN_HERO_ITEMS: Dict[str, Dict[str, int]] = {
    "U00N": {"mlst": 2, "sbch": 3, "I000": 4, "gvsm": 5, "shhn": 6, "esaz": 7},
    "N00T": {"I000": 2, "stwa": 3, "axas": 4, "shen": 5, "mlst": 6, "esaz": 7},
    "H04G": {"I005": 4, "I006": 8, "I007": 14, "I008": 20},
}

# Picker-owned neutral that is not a creep
IGNORED_NEUTRALS = ("nmoo",)

SET_VALUE_PATTERN = re.compile(
    r"""^set (?P<name>[^\[\n]*?)\[(?P<key>[^\]\n]*?)\].*?['"](?P<value>.*?)['"]$""",
    re.IGNORECASE | re.MULTILINE,
)
SET_ID_PATTERN = re.compile(
    r"""^set (?P<name>[^\[\n]*?)\[(?P<key>[^\]\n]*?)\].*?['"](?P<value>.{4})['"]$""",
    re.IGNORECASE | re.MULTILINE,
)
BUILDINGS_INIT_PATTERN = re.compile(
    r"^function \w{3,5} takes nothing returns nothing\n"
    r"(?P<body>(?:(?!endfunction$).*\n)*?call SetTimeOfDay\(12\.\)\n(?:(?!endfunction$).*\n)*?)"
    r"endfunction$",
    re.IGNORECASE | re.MULTILINE,
)
ARTIFACT_BLOCK_PATTERN = re.compile(
    r"call AddSpecialEffectTargetUnitBJ.+$(?=\n^call RemoveItem\(GetItemOfTypeFromUnitBJ.+$)"
    r"[\S\s]*?call UnitAddItemByIdSwapped.+$",
    re.MULTILINE,
)
HERO_ITEMS_BLOCK_PATTERN = re.compile(
    r"if\(.+?\(\)\)\s?then\n(?:call SelectHeroSkill.+?$\n)+"
    r"(?:^.+$\ncall UnitAddItemByIdSwapped.+\n^.+$\n){1,}",
    re.MULTILINE,
)

VarTable = Dict[str, Dict[str, str]]


def _collect_vars(text: str, pattern: "re.Pattern[str]" = SET_VALUE_PATTERN) -> VarTable:
    """Collect `set name[key]=...'value'` assignments; the first one per slot wins."""
    table: VarTable = {}
    for match in pattern.finditer(text):
        slots = table.setdefault(match.group("name"), {})
        slots.setdefault(match.group("key"), match.group("value"))
    return table


def _split_ids(value: object) -> List[str]:
    return [token.strip() for token in stringify(value).split(",") if token.strip()]


class ClassicScriptMiner(ScriptMiner):
    """Miner for the classic layout (ids as quoted literals)."""

    def __init__(self, script: str, registry: "ObjectRegistry"):
        super().__init__(script, registry)
        self.buildings_map = self._get_buildings_map()
        self.hero_items = self._prepare_hero_items()

    def get_patch_data(self) -> RawPatchData:
        pickers = self.get_race_ids()
        races: List[RawRace] = []
        for race_ids in pickers.values():
            for race_id in race_ids:
                race = self.get_race_data(race_id)
                if race is None:
                    self.logger.warning(f"No race data found for picker {race_id}")
                    continue
                races.append(race)

        self.logger.info(f"Mined {len(races)} races from {len(pickers)} alliances")
        return RawPatchData(
            pickers=pickers,
            races=races,
            ultimates=self.get_ultimates(),
            artifacts=self.get_artifacts(),
            neutrals=self.get_neutrals(),
        )

    # Buildings

    def _get_buildings_map(self) -> VarTable:
        """Per-player building arrays assigned in the map init function."""
        match = BUILDINGS_INIT_PATTERN.search(self.script)
        if match is None:
            self.logger.warning("Buildings init function not found")
            return {}
        return _collect_vars(match.group("body"), SET_ID_PATTERN)

    def _find_fort(self, race_id: str) -> Optional[Tuple[str, str, str]]:
        """Locate the fort a race picker spawns: (fort variable, fort id, player slot)."""
        candidates: List[Tuple[str, str, str]] = []
        sold_pattern = re.compile(
            rf"function (\w*?)\s.*\n.*GetSoldUnit\(\)\)=='{re.escape(race_id)}",
            re.IGNORECASE | re.MULTILINE,
        )
        for check_name in sold_pattern.findall(self.script):
            stored = re.search(
                rf"^if\({re.escape(check_name)}\(\)\)then\n^set (?P<temp>.*?)=(?P<key>.*?)$",
                self.script,
                re.MULTILINE,
            )
            if stored is None:
                continue
            replacer = re.search(
                rf"set (?P<fort_var>.*)=ReplaceUnitBJ\(.*?,(?P<array>.*?)\[{re.escape(stored.group('temp'))}\],"
                r"bj_UNIT_STATE_METHOD_DEFAULTS\)",
                self.script,
                re.MULTILINE,
            )
            if replacer is None:
                continue
            fort_id = self.buildings_map.get(replacer.group("array"), {}).get(stored.group("key"))
            if not fort_id or not stored.group("key"):
                continue
            candidates.append((replacer.group("fort_var"), fort_id, stored.group("key")))

        if not candidates:
            return None
        preferred = [c for c in candidates[1:] if f"[{FORT_SLOT}]" in c[0]]
        return preferred[-1] if preferred else candidates[0]

    # Races

    def get_race_ids(self) -> Dict[str, List[str]]:
        """Race ids sold by each alliance picker."""
        picker_pattern = re.compile(
            rf"^set (?P<var>.*?)=CreateUnit\(.*?,\s?'(?P<unit>{alternation(ALLIANCES)})'.*$",
            re.IGNORECASE | re.MULTILINE,
        )
        picker_vars = {m.group("unit"): m.group("var") for m in picker_pattern.finditer(self.script)}

        output: Dict[str, List[str]] = {}
        for alliance_id in ALLIANCES:
            var = picker_vars.get(alliance_id)
            if var is None:
                self.logger.warning(f"Alliance picker {alliance_id} not created in script")
                output[alliance_id] = []
                continue
            stock_pattern = re.compile(
                rf"^call AddUnitToStockBJ\('(.*)',\s?{re.escape(var)}", re.MULTILINE
            )
            output[alliance_id] = stock_pattern.findall(self.script)
        return output

    def get_race_data(self, race_id: str) -> Optional[RawRace]:
        """Mine the raw data of one race, or None when its layout is not found."""
        fort = self._find_fort(race_id)
        if fort is None:
            return None
        fort_var, fort_id, buildings_key = fort

        check_pattern = re.compile(
            rf"function (.*?)\s.*?\nreturn\(GetUnitTypeId\({re.escape(fort_var)}\)=='{re.escape(fort_id)}'\)",
            re.IGNORECASE | re.MULTILINE,
        )
        check_names = check_pattern.findall(self.script)
        if not check_names:
            return None

        block_match = re.search(
            rf"if\((?:{alternation(check_names)})\(\)\)then\n"
            rf"(?P<block>[\s\S]*?set {RACE_NAME_VAR}\[{RACE_SHORT_NAME_SLOT}\].*$)",
            self.script,
            re.IGNORECASE | re.MULTILINE,
        )
        if block_match is None:
            return None
        race_vars = _collect_vars(block_match.group("block"))

        def var(name: str, slot: str) -> Optional[str]:
            return race_vars.get(name, {}).get(slot)

        def first_value(name: str) -> Optional[str]:
            return next(iter(race_vars.get(name, {}).values()), None)

        aura_id = var(REPLACEABLE_VAR, AURA_SLOT)
        aura = self.registry.abilities.get_by_id(aura_id)
        auras = _split_ids(aura.get_value("pb1")) if aura else []

        t1spell, t2spell = self._get_tier_spells(fort_id)

        bonus_picker = self.registry.units.get_by_id(
            self.buildings_map.get(BONUS_PICKER_GLOBAL, {}).get(buildings_key)
        )
        tower = self.registry.units.get_by_id(
            self.buildings_map.get(TOWER_GLOBAL, {}).get(buildings_key)
        )

        race = RawRace(
            id=race_id,
            name=var(RACE_NAME_VAR, RACE_FULL_NAME_SLOT) or "",
            key=(var(RACE_NAME_VAR, RACE_SHORT_NAME_SLOT) or "").lower(),
            bonuses=_split_ids(bonus_picker.get_value("upt")) if bonus_picker else [],
            upgrades=[var(UPGRADES_VAR, slot) for slot in TOWER_UPGRADE_SLOTS],
            auras=auras,
            t1spell=t1spell,
            t2spell=t2spell,
            magic=var(UPGRADES_VAR, MAGIC_SLOT),
            base_upgrades={key: var(UPGRADES_VAR, slot) for key, slot in BASE_UPGRADE_SLOTS.items()},
            heroes=[first_value(name) for name in HERO_VARS],
            buildings={
                "fort": fort_id,
                **{key: var(name, slot) for key, (name, slot) in BUILDING_VARS.items()},
            },
            tower_abilities=[
                ability_id
                for ability_id in (_split_ids(tower.get_value("upt")) if tower else [])
                if self.is_visible_ability(ability_id)
            ],
            units={key: var(name, UNIT_SLOT) for key, name in UNIT_VARS.items()},
            ulti_data=self.get_ulti_data(
                var(REPLACEABLE_VAR, ULTI_SLOT), var(REPLACEABLE_VAR, DESCRIPTION_SLOT)
            ),
        )
        self._enrich_bonuses(race)
        return race

    def _get_tier_spells(self, fort_id: str) -> Tuple[Optional[str], Optional[str]]:
        """Fort abilities on hotkeys Z and X."""
        fort = self.registry.units.get_by_id(fort_id)
        skills = (fort.get_array("abi") if fort else None) or []

        def with_hotkey(hotkey: str) -> Optional[str]:
            for skill_id in skills:
                ability = self.registry.abilities.get_by_id(skill_id)
                if ability is not None and ability.get_value("hky") == hotkey:
                    return skill_id
            return None

        return with_hotkey("Z"), with_hotkey("X")

    def _enrich_bonuses(self, race: RawRace) -> None:
        """Fill bonus heroes and bonus upgrades from each bonus trigger."""
        for bonus_id in race.bonuses:
            known = KNOWN_BONUS_HEROES.get(bonus_id)
            if known is not None:
                race.bonus_heroes.append(RawBonusHero(id=known.id, slot=known.slot))
                if bonus_id in HERO_ONLY_BONUSES:
                    continue

            condition = re.search(
                rf"(\w+) takes nothing returns boolean\n"
                rf"return\(GetUnitTypeId\(GetTriggerUnit\(\)\)=='{re.escape(bonus_id)}'\)$",
                self.script,
                re.IGNORECASE | re.MULTILINE,
            )
            if condition is None:
                continue
            code_block = self.find_block(
                rf"^if\({re.escape(condition.group(1))}\(\)\)", re.IGNORECASE | re.MULTILINE
            )
            if not code_block:
                continue

            hero_replace = re.search(
                rf"""^set (?P<var>{alternation(HERO_VARS)})\[1\].*?['|"](?P<id>.*?)['|"].*?$""",
                code_block,
                re.IGNORECASE | re.MULTILINE,
            )
            if hero_replace is not None:
                race.bonus_heroes.append(
                    RawBonusHero(id=hero_replace.group("id"), slot=HERO_VARS.index(hero_replace.group("var")))
                )
                continue

            upgrade_ids = re.findall(
                rf"""^set {UPGRADES_VAR}\[(?:{alternation(BONUS_UPGRADE_SLOTS)})\].*?['"](\w+)['"]$""",
                code_block,
                re.IGNORECASE | re.MULTILINE,
            )
            if upgrade_ids:
                race.bonus_upgrades[bonus_id] = [
                    (upgrade_id, self._get_researched_level(upgrade_id)) for upgrade_id in upgrade_ids
                ]

    def _get_researched_level(self, upgrade_id: str) -> int:
        match = re.search(
            rf"SetPlayerTechResearchedSwap\('{re.escape(upgrade_id)}',(\d+)",
            self.script,
            re.IGNORECASE | re.MULTILINE,
        )
        return int(match.group(1)) if match else 0

    # Race ultimate

    def get_ulti_data(self, ulti_id: Optional[str], description_id: Optional[str]) -> Optional[RawUltiData]:
        """Race ultimate with its damage time and the interrupts its triggers issue."""
        if not ulti_id:
            return None
        ulti = RawUltiData(id=ulti_id)
        self._detect_steal_interrupt(ulti)
        if description_id:
            self._detect_fake_steal_interrupt(ulti, description_id)
        return ulti

    def _find_cast_condition(self, ability_id: str) -> Optional[str]:
        match = re.search(
            rf"(\w+)\stakes nothing returns boolean\nreturn\(GetSpellAbilityId\(\)=='{re.escape(ability_id)}'\)",
            self.script,
            re.MULTILINE,
        )
        return match.group(1) if match else None

    def _is_interrupt(self, ability: Optional["EntityView"]) -> bool:
        return ability is not None and stringify(ability.get_value("ord")) in INTERRUPT_ORDERS

    def _detect_steal_interrupt(self, ulti: RawUltiData) -> None:
        """Follow the cast trigger to the dummy ability that damages the caster's target.

        The trigger stores the casting player in a global; a later trigger
        checks that global and gives a dummy the damage ability. Without the
        check function the dummy is created right away and ordered to
        interrupt with thunderbolt.
        """
        condition = self._find_cast_condition(ulti.id)
        if condition is None:
            return
        player_var = re.search(
            rf"if\({re.escape(condition)}\(\).+\nset\s(\w{{2,4}}\[.+\])", self.script, re.MULTILINE
        )
        if player_var is None:
            return
        marker = re.escape(player_var.group(1))
        check = re.search(
            rf"(\w+)\stakes nothing returns boolean\nreturn\({marker}==", self.script, re.MULTILINE
        )

        if check is None:
            damage = re.search(
                rf"CreateNUnitsAtLoc.+{marker}.+\n(?:^.+$\n){{0,3}}call UnitAddAbilityBJ\('(\w+)"
                rf"(?=.+\n(?:^.+$\n){{0,3}}call IssueTargetOrderBJ.+thunderbolt)",
                self.script,
                re.MULTILINE,
            )
            if damage is None:
                return
            ulti.steal_interrupt = True
        else:
            damage = re.search(
                rf"if\({re.escape(check.group(1))}\(\).+\n(?:^.+$\n){{1,10}}call UnitAddAbilityBJ\('(\w+)",
                self.script,
                re.MULTILINE,
            )
            if damage is None:
                return

        abilities = self.registry.abilities
        ability = abilities.get_by_id(damage.group(1))
        if ability is None:
            return
        if ulti.steal_interrupt is None:
            ulti.steal_interrupt = self._is_interrupt(ability)
        damage_time = ability.get_value("dur")
        if damage_time is None:
            damage_time = ability.get_value("bz1")
        if damage_time:
            ulti.damage_time = abilities.number(ability, damage_time, "dur")

    def _detect_fake_steal_interrupt(self, ulti: RawUltiData, description_id: str) -> None:
        """The decoy ultimate replaces the race description ability after mana burn is added."""
        decoy = re.search(
            rf"call UnitAddAbilityBJ\('{MANA_BURN}.+\n(?:^.+$\n){{0,2}}"
            rf"call UnitRemoveAbilityBJ\('{re.escape(description_id)}.+\n"
            rf"call UnitAddAbilityBJ\('(\w+)",
            self.script,
            re.MULTILINE,
        )
        if decoy is None:
            return
        decoy_id = decoy.group(1)

        condition = self._find_cast_condition(decoy_id)
        if condition is not None and re.search(
            rf"if\({re.escape(condition)}.+\n(?:^.+$\n){{1,10}}call IssueTargetOrderBJ.+thunderbolt",
            self.script,
            re.MULTILINE,
        ):
            ulti.fake_steal_interrupt = True
        if ulti.fake_steal_interrupt is None:
            ulti.fake_steal_interrupt = self._is_interrupt(self.registry.abilities.get_by_id(decoy_id))

    # Ultimates, artifacts, neutrals

    def get_ultimates(self) -> RawUltimates:
        picker = self.registry.abilities.get_by_id(ULTIMATE_PICKER)
        pickers = _split_ids(picker.get_value("pb1")) if picker else []

        spells: Dict[str, List[str]] = {}
        for picker_id in pickers:
            condition = re.search(
                rf"function (\w+) takes nothing returns boolean\n"
                rf"return\(GetSpellAbilityId\(\)=='{re.escape(picker_id)}'\)\n",
                self.script,
                re.MULTILINE,
            )
            if condition is None:
                continue
            code_block = self.find_block(
                rf"if\({re.escape(condition.group(1))}\(\)\)then", re.IGNORECASE | re.MULTILINE
            )
            if not code_block:
                continue
            granted = re.findall(
                r"(?:call UnitAddAbilityBJ\('|call BlzUnitHideAbility\(GetTriggerUnit\(\),')(\w+)'",
                code_block,
                re.MULTILINE,
            )
            if granted:
                spells[picker_id] = granted

        return RawUltimates(pickers=pickers, spells=spells)

    def get_artifacts(self) -> RawArtifacts:
        """Artifact recipes: result item -> list of ingredient lists."""
        combine_map: Dict[str, List[List[str]]] = {}
        for code in ARTIFACT_BLOCK_PATTERN.findall(self.script):
            result = re.search(r"call UnitAddItemByIdSwapped\('(\w+)", code)
            needed = re.findall(
                r"call RemoveItem\(GetItemOfTypeFromUnitBJ\(GetTriggerUnit\(\),'(\w+)",
                code,
                re.MULTILINE,
            )
            if result and needed:
                combine_map[result.group(1)] = [needed]

        items: List[str] = []
        for result_id, recipes in combine_map.items():
            items.append(result_id)
            for recipe in recipes:
                items.extend(recipe)
        return RawArtifacts(combine_map=combine_map, items=unique(items))

    def get_neutrals(self) -> List[str]:
        """Creeps spawned for the neutral (color 8) player."""
        variables = re.findall(r"call SetUnitColor\((.+),ConvertPlayerColor\(8\)\)", self.script)
        if not variables:
            return []
        found = re.findall(
            rf"set (?:{alternation(unique(variables))})=CreateUnit\(p,'([\w\d]+)",
            self.script,
        )
        return [unit_id for unit_id in found if unit_id not in IGNORED_NEUTRALS]

    # Heroes

    def _prepare_hero_items(self) -> Dict[str, Dict[str, int]]:
        """Map replacement heroes to the artifacts they receive by hero level."""
        output: Dict[str, Dict[str, int]] = {hero: dict(items) for hero, items in KNOWN_HERO_ITEMS.items()}

        for block in HERO_ITEMS_BLOCK_PATTERN.findall(self.script):
            check = re.search(r"if\((\w+)", block)
            if check is None:
                continue
            hero = re.search(
                rf"function {re.escape(check.group(1))}\s.+\n"
                r"return\s?\(GetUnitTypeId\(GetTriggerUnit\(\)\)=='(\w+)",
                self.script,
                re.MULTILINE,
            )
            if hero is None:
                continue

            items: Dict[str, int] = {}
            for match in re.finditer(
                r"if\((?P<fn>.+)\(.+\ncall UnitAddItemByIdSwapped\('(?P<item>\w+)", block, re.MULTILINE
            ):
                raw_level = re.search(
                    rf"function {re.escape(match.group('fn'))}\s.+\n.+>=((?:\d+)|(?:\$\w+))",
                    self.script,
                )
                if raw_level is None or not match.group("item"):
                    continue
                level = raw_level.group(1)
                items[match.group("item")] = int(level[1:], 16) if level.startswith("$") else int(level)

            output[hero.group(1)] = items
        return output

    def get_hero_items(self, hero_id: str) -> Optional[Dict[str, int]]:
        return self.hero_items.get(hero_id)

    # Units

    def get_bonus_unit(self, bonus_id: str) -> Optional[str]:
        trigger = re.search(
            rf"function (\w+)(?=.+\n.+GetTriggerUnit.+{re.escape(bonus_id)}.{{1,10}}\nendfunction)",
            self.script,
            re.IGNORECASE | re.MULTILINE,
        )
        if trigger is None:
            return None
        code_block = self.find_block(rf"if\({re.escape(trigger.group(1))}\(\)\)", re.IGNORECASE | re.MULTILINE)
        if not code_block:
            return None
        unit = re.search(
            rf"""set (?:{alternation(UNIT_VARS.values())})\[\d\]\s?=\s?['"](\w+)""",
            code_block,
            re.IGNORECASE | re.MULTILINE,
        )
        return unit.group(1) if unit else None

    def get_unit_requires(self, unit_id: str) -> List[str]:
        """Upgrades checked by the triggers that fire when the unit is trained."""
        condition_names = unique(
            re.findall(
                rf"""function (\w+)(?=.+$\n.*?GetUnitTypeId\(GetEnteringUnit\(\)\)==['"]{re.escape(unit_id)})""",
                self.script,
                re.IGNORECASE | re.MULTILINE,
            )
        )

        found: List[Tuple[int, str]] = []
        for name in condition_names:
            call = re.escape(name) + r"\(\)"
            for match in re.finditer(
                rf"""GetPlayerTechCountSimple\(['"](\w+)(?=.*?{call})""", self.script, re.IGNORECASE
            ):
                found.append((match.start(1), match.group(1)))
            for line in re.finditer(rf"{call}(?P<rest>.*)", self.script, re.IGNORECASE):
                for match in re.finditer(r"GetPlayerTechCountSimple\('(\w+)", line.group("rest"), re.IGNORECASE):
                    found.append((line.start("rest") + match.start(1), match.group(1)))

        return unique([upgrade_id for _, upgrade_id in sorted(found)])
