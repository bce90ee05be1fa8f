"""
Script miner for the OZ map layout.

Ids appear in the script as packed integers and are decoded with the
FourCC codec. Race variables are plain globals assigned in one init
block per race.
"""

import re
from typing import Dict, List, Optional

from ..errors import ScriptMiningError
from ..game_data.objects import RawArtifacts, RawBonusHero, RawPatchData, RawRace, RawUltimates
from ..utils import fourcc
from .base import ScriptMiner, alternation, unique

# Abilities listing the races of each alliance
PICKERS = (1346978609, 1346978610, 1346978611, 1346978612, 1346978613)

AURA_VAR = "r"
DESCRIPTION_VAR = "k"
MAGIC_VAR = "N"
BONUS_PICKER_VAR = "I"
HERO_VARS = ("t", "i", "S", "c")
BUILDING_VARS = {"fort": "m", "barrack": "Q", "tower": "U"}
BASE_UPGRADE_VARS = {"melee": "V", "armor": "M", "range": "B", "wall": "ww"}
UNIT_VARS = {
    "melee": "P",
    "range": "A",
    "mage": "D",
    "siege": "H",
    "air": "J",
    "catapult": "K",
}

# Fort research hotkeys of the base upgrades
BASE_UPGRADE_HOTKEYS = {"melee": "A", "armor": "D", "range": "S", "wall": "F"}

# Bonus whose unit is replaced outside any trigger block
KNOWN_BONUS_UNITS = {"n066": "O05N"}

# Recipes are hardcoded in triggers the miner cannot read
COMBINE_MAP: Dict[str, List[List[str]]] = {
    "I034": [["I00E", "I00F", "I00G"]],
    "I70F": [["I00E", "I00F", "I00G", "I034"]],
    "I03H": [["I00H", "I00J"]],
    "I03E": [["I00H", "I00I"]],
    "I03J": [["I00H", "I00K"]],
    "I03G": [["I00J", "I00I"]],
    "I03F": [["I00J", "I00K"]],
    "I03I": [["I00K", "I00I"]],
    "I03V": [["I03E", "I03H"]],
    "I03R": [["I03H", "I03J"]],
    "I03S": [["I03H", "I03I"]],
    "I03Q": [["I03E", "I03J"]],
    "I03T": [["I03E", "I03I"]],
    "I03U": [["I03G", "I03F"]],
    "I03O": [["I03G", "I03I"]],
    "I03M": [["I03G", "I03H"]],
    "I03Y": [["I03H", "I03F"]],
    "I03K": [["I03G", "I03E"]],
    "I03W": [["I03E", "I03F"]],
    "I03L": [["I03G", "I03J"]],
    "I03N": [["I03F", "I03I"]],
    "I03P": [["I03F", "I03J"]],
    "I70B": [["I034"], ["I03N"], ["I03U"]],
    "I70A": [["I034"], ["I03W"], ["I03Q"]],
    "I70C": [["I034"], ["I03T"], ["I03L"]],
    "I70E": [["I034"], ["I03Y"], ["I03R"]],
    "I70D": [["I034"], ["I03S"], ["I03K"]],
    "I03Z": [["I034"], ["I03P"], ["I03O"]],
    "I03X": [["I034"], ["I03M"], ["I03V"]],
}

RACE_VAR_PATTERN = re.compile(
    r"set (?P<name>\w+)(?:\[.+\])?\s?=\s?(?P<value>.*)$", re.IGNORECASE | re.MULTILINE
)
RACE_KEY_VAR_PATTERN = re.compile(
    r"""set (?P<var>.{2,6})\s?=\s?['"](?P<key>.+)['"]\ncall SetPlayerName\(.{2,6},(?P=var)\)""",
    re.IGNORECASE | re.MULTILINE,
)
RACE_KEY_LITERAL_PATTERN = re.compile(
    r"""call SetPlayerName\(.+?,\s?['"](?P<key>\w+)""", re.IGNORECASE | re.MULTILINE
)
HERO_SET_PATTERN = re.compile(
    rf"set (?P<var>{alternation(HERO_VARS)})\[.{{2,5}}\]\s?=\s?(?P<hero>\d{{5,}})"
)
RESEARCH_PATTERN = re.compile(
    r"call SetPlayerTechResearched\(.{3,6},(?P<research>\d+)(?:,(?P<level>\d+))",
    re.IGNORECASE | re.MULTILINE,
)
ULTIMATES_BLOCK_PATTERN = re.compile(
    r"(?:(?:call .{3,6}\(.{2,6},\d+,\d+,.+Ulti.+\n(?:set.+\n)?)+)"
    r"|(?:(?:call .{3,6}\(.{3,6},\d+,\d+\)\n){10,11})",
    re.IGNORECASE | re.MULTILINE,
)
SHRINES_BLOCK_PATTERN = re.compile(
    r"(?:(?:call .{2,6}\(.+?,(?:\d{6,},)+.*Shrine.*\)$\n){3,})"
    r"|(?:(?:call .{2,6}\(.{2,6}(?:,\d{9,11}){4,}\)\n){4,})",
    re.IGNORECASE | re.MULTILINE,
)
NEUTRALS_BLOCK_PATTERN = re.compile(
    r"local integer array (?P<var>.+)\n(?P<body>(?:^.+$\n){0,6}(?:set (?P=var).+\n){9,})",
    re.MULTILINE,
)


def decode_id(value: str) -> str:
    """Decode a packed id taken from script text; non-numeric text decodes to ''."""
    try:
        return fourcc.decode(value.strip())
    except ValueError:
        return ""


class NumericScriptMiner(ScriptMiner):
    """Miner for the OZ layout (ids as packed integers)."""

    def get_patch_data(self) -> RawPatchData:
        pickers = self.get_pickers()
        races = [self.get_race(race_id) for race_ids in pickers.values() for race_id in race_ids]
        self.logger.info(f"Mined {len(races)} races from {len(pickers)} pickers")
        return RawPatchData(
            pickers=pickers,
            races=races,
            ultimates=self.get_ultimates(),
            artifacts=self.get_artifacts(),
            neutrals=self.get_neutrals(),
            shrines=self.get_shrines(),
        )

    def get_pickers(self) -> Dict[str, List[str]]:
        """Race ids listed by each picker ability.

        Raises:
            ScriptMiningError: if a picker ability or its list is missing
        """
        output: Dict[str, List[str]] = {}
        for packed in PICKERS:
            picker_id = fourcc.decode(packed)
            races = self.field_list("abilities", picker_id, "pb1")
            if not races:
                raise ScriptMiningError(f"Picker {picker_id} lists no races")
            output[picker_id] = races
        return output

    # Races

    def _find_race_block(self, race_id: str) -> str:
        packed = fourcc.encode(race_id)
        match = re.search(
            rf"(?:else)?if .{{1,6}}==.{{1,3}}.+\n(^.+$\n){{0,3}}call .{{1,6}}\(.{{1,6}},\s?{packed}\)\n"
            rf"(^.+$\n){{1,20}}call.+UnitRemoveAbility.+{packed}",
            self.script,
            re.MULTILINE,
        )
        if match is None:
            raise ScriptMiningError(f"Race init block of {race_id} not found")
        block = self.block(match.start())
        if not block:
            raise ScriptMiningError(f"Race init block of {race_id} is empty")
        return block

    def _get_race_key(self, race_id: str, block: str) -> str:
        match = RACE_KEY_VAR_PATTERN.search(block) or RACE_KEY_LITERAL_PATTERN.search(block)
        if match is None or not match.group("key"):
            raise ScriptMiningError(f"Race key of {race_id} not found")
        return re.sub(r"[^\w\-]", "_", match.group("key").lower())

    def get_race(self, race_id: str) -> RawRace:
        """Mine the raw data of one race.

        Raises:
            ScriptMiningError: if the race init block, key, aura or bonus list is missing
        """
        block = self._find_race_block(race_id)
        race_vars: Dict[str, str] = {
            match.group("name"): decode_id(match.group("value"))
            for match in RACE_VAR_PATTERN.finditer(block)
        }

        fort_id = race_vars.get(BUILDING_VARS["fort"])
        tower_id = race_vars.get(BUILDING_VARS["tower"])
        aura_id = race_vars.get(AURA_VAR)

        auras = self.field_list("abilities", aura_id, "pb1")
        if not auras:
            raise ScriptMiningError(f"Aura list of race {race_id} not found")

        bonuses = self.field_list("units", race_vars.get(BONUS_PICKER_VAR), "upt")
        if bonuses is None:
            raise ScriptMiningError(f"Bonus list of race {race_id} not found")

        excluded = (aura_id, race_vars.get(DESCRIPTION_VAR))
        tier_spells = [
            skill_id
            for skill_id in self.field_list("units", fort_id, "abi") or []
            if skill_id not in excluded and self.registry.abilities.get_by_id(skill_id) is not None
        ]

        picker = self.registry.abilities.get_by_id(race_id)
        name = str(picker.get_name() or "") if picker else ""
        name = re.sub(r"\[.+\]", "", re.sub(r"^.*?-\s+", "", name)).strip()

        race = RawRace(
            id=race_id,
            name=name,
            key=self._get_race_key(race_id, block),
            auras=auras,
            units={key: race_vars.get(var) for key, var in UNIT_VARS.items()},
            magic=race_vars.get(MAGIC_VAR),
            buildings={key: race_vars.get(var) for key, var in BUILDING_VARS.items()},
            base_upgrades=self._get_base_upgrades(fort_id, race_vars),
            upgrades=self.field_list("units", tower_id, "res") or [],
            heroes=[race_vars.get(var) for var in HERO_VARS],
            bonuses=bonuses,
            t1spell=tier_spells[0] if len(tier_spells) > 0 else None,
            t2spell=tier_spells[1] if len(tier_spells) > 1 else None,
            tower_abilities=[
                ability_id
                for ability_id in self.field_list("units", tower_id, "abi") or []
                if self.is_visible_ability(ability_id)
            ],
        )
        self._enrich_bonuses(race)
        return race

    def _get_base_upgrades(self, fort_id: Optional[str], race_vars: Dict[str, str]) -> Dict[str, Optional[str]]:
        """Base upgrades from race variables, replaced by the fort research on the matching hotkey."""
        output: Dict[str, Optional[str]] = {key: race_vars.get(var) for key, var in BASE_UPGRADE_VARS.items()}
        researches = [
            upgrade
            for upgrade in (
                self.registry.upgrades.get_by_id(upgrade_id)
                for upgrade_id in self.field_list("units", fort_id, "res") or []
            )
            if upgrade is not None
        ]
        for key, hotkey in BASE_UPGRADE_HOTKEYS.items():
            match = next((upgrade for upgrade in researches if upgrade.get_value("hk1") == hotkey), None)
            if match is not None:
                output[key] = match.id
        return output

    def _enrich_bonuses(self, race: RawRace) -> None:
        """Fill bonus heroes and bonus upgrades from each bonus branch."""
        for bonus_id in race.bonuses:
            code_block = self.find_block(
                rf"(?:else)?if .{{3,6}}\s?=={fourcc.encode(bonus_id)}(?!.*\n.+\nendif)",
                re.IGNORECASE | re.MULTILINE,
            )
            if not code_block:
                continue

            for match in HERO_SET_PATTERN.finditer(code_block):
                hero_id = decode_id(match.group("hero"))
                if any(hero.id == hero_id for hero in race.bonus_heroes):
                    continue
                race.bonus_heroes.append(
                    RawBonusHero(id=hero_id, slot=HERO_VARS.index(match.group("var")))
                )

            levels = {
                match.group("research"): int(match.group("level"))
                for match in RESEARCH_PATTERN.finditer(code_block)
            }
            researches = [
                (upgrade_id, levels.get(str(fourcc.encode(upgrade_id)), 0))
                for upgrade_id in self.field_list("units", bonus_id, "res") or []
            ]
            if researches:
                race.bonus_upgrades[bonus_id] = researches

    # Ultimates, artifacts, shrines, neutrals

    def get_ultimates(self) -> RawUltimates:
        """Spells granted by each ultimate picker.

        Raises:
            ScriptMiningError: if the ultimates registration block is missing
        """
        code_block = ULTIMATES_BLOCK_PATTERN.search(self.script)
        if code_block is None:
            raise ScriptMiningError("Ultimates registration block not found")

        spells: Dict[str, List[str]] = {}
        for match in re.finditer(
            r"call .*?(?P<picker>\d{5,}),\s?(?P<spell>\d{5,})", code_block.group(), re.IGNORECASE | re.MULTILINE
        ):
            picker, spell = match.group("picker"), match.group("spell")
            granted: List[str] = []
            ultimate_block = self.find_block(rf"if .{{3,7}}\s?=\s?{picker}", 0)
            if ultimate_block:
                granted = unique(re.findall(r"^set .{3,7}=(\d+)", ultimate_block, re.MULTILINE))

            if len(granted) == 1:
                ids = [spell, granted[0]]
            elif len(granted) == 2:
                ids = granted
            else:
                ids = [spell]
            spells[decode_id(picker)] = [decode_id(value) for value in ids]

        return RawUltimates(pickers=list(spells), spells=spells)

    def get_artifacts(self) -> RawArtifacts:
        items: List[str] = []
        for result_id, recipes in COMBINE_MAP.items():
            items.append(result_id)
            for recipe in recipes:
                items.extend(recipe)
        combine_map = {result_id: [list(recipe) for recipe in recipes] for result_id, recipes in COMBINE_MAP.items()}
        return RawArtifacts(combine_map=combine_map, items=unique(items))

    def get_shrines(self) -> List[str]:
        """Shrine spells, registered in one block of repeated calls.

        Raises:
            ScriptMiningError: if the registration block is missing
        """
        code_block = SHRINES_BLOCK_PATTERN.search(self.script)
        if code_block is None:
            raise ScriptMiningError("Shrine registration block not found")
        return unique([decode_id(value) for value in re.findall(r"\d{6,}", code_block.group())])

    def get_neutrals(self) -> List[str]:
        """Creep ids stored in the neutral unit array.

        Raises:
            ScriptMiningError: if the array initialization is missing
        """
        match = NEUTRALS_BLOCK_PATTERN.search(self.script)
        if match is None:
            raise ScriptMiningError("Neutral units array not found")
        return [decode_id(value) for value in re.findall(r"\d{4,}", match.group("body"))]

    # Heroes

    def get_hero_items(self, hero_id: str) -> Optional[Dict[str, int]]:
        packed = fourcc.encode(hero_id)
        output: Dict[str, int] = self._get_choosable_hero_items(hero_id) or {}

        code_block = self.find_block(
            rf"(?:else)?if .*?.{{2,6}}=={packed} (?:or .{{2,6}}==\d+ )*then(?=\n(?:^.+$\n){{1,20}}call UnitAddItem)",
            re.IGNORECASE | re.MULTILINE,
        )
        if not code_block:
            return output

        previous_level = 0
        for match in re.finditer(
            r"if .{2,40}\s?>=(?P<level>\d{1,2})\s.+\n(?:^.+$\n){0,20}?(?:call UnitAddItemById\(.{2,6},\s?(?P<value>\d+))",
            code_block,
            re.IGNORECASE | re.MULTILINE,
        ):
            level = int(match.group("level"))
            # Rewards are listed by ascending level; anything after a drop belongs to another hero
            if level < previous_level:
                break
            previous_level = level
            output[decode_id(match.group("value"))] = level
        return output

    def _get_choosable_hero_items(self, hero_id: str) -> Optional[Dict[str, int]]:
        """Artifacts granted through level-gated ability choices."""
        packed = fourcc.encode(hero_id)
        code_block = self.find_block(
            rf"if GetUnitTypeId\((?P<var>.{{2,6}})\)=={packed}.+\n.+?GetHeroLevel\((?P=var)\)", 0
        )
        if not code_block:
            return None

        output: Dict[str, int] = {}
        for match in re.finditer(r".+GetHeroLevel\(.{2,6}\)>?=(?P<level>\d{1,2})", code_block):
            if match.start() == 0:
                continue
            level_block = self.find_block(r"\A(?:elseif|if)", 0, text=code_block[match.start():])
            if not level_block:
                continue
            for ability_id in re.findall(r"UnitAddAbility\(.{2,6},(\d+)", level_block):
                item = re.search(
                    rf".{{2,6}}=={ability_id}.+\n(?:^.+$\n){{1,12}}.+UnitAddItemById\(.{{2,6}},(\d+)",
                    self.script,
                    re.MULTILINE,
                )
                if item is not None:
                    output[decode_id(item.group(1))] = int(match.group("level"))
        return output or None

    # Units

    def get_bonus_unit(self, bonus_id: str) -> Optional[str]:
        if bonus_id in KNOWN_BONUS_UNITS:
            return KNOWN_BONUS_UNITS[bonus_id]

        code_block = self.find_block(
            rf"(?:else)?if .{{2,6}}=={fourcc.encode(bonus_id)}", re.IGNORECASE | re.MULTILINE
        )
        if not code_block:
            return None
        found = re.search(
            rf"set (?:{alternation(UNIT_VARS.values())})(?:\[\w+\])?\s?=\s?(\d+)", code_block, re.IGNORECASE | re.MULTILINE
        )
        return decode_id(found.group(1)) if found else None

    def get_unit_requires(self, unit_id: str) -> List[str]:
        """The OZ layout gates units through the object table only."""
        return []
