"""Tests for race assembly."""

from typing import Any, Callable, Dict, List, Optional

import pytest

from sc_datamine.errors import MissingLinkageError
from sc_datamine.game_data.objects import RawBonusHero, RawPatchData, RawRace, RawUltiData
from sc_datamine.game_data.races import RaceAssembler, grid_hotkey
from sc_datamine.game_data.registry import ObjectRegistry
from sc_datamine.script.base import ScriptMiner


class FixedMiner(ScriptMiner):
    """Miner answering from fixed tables instead of a script."""

    def __init__(self, registry: ObjectRegistry, **answers: Any):
        super().__init__("", registry)
        self.bonus_units: Dict[str, str] = answers.get("bonus_units", {})
        self.hero_items: Dict[str, Dict[str, int]] = answers.get("hero_items", {})
        self.unit_requires: Dict[str, List[str]] = answers.get("unit_requires", {})

    def get_patch_data(self) -> RawPatchData:
        return RawPatchData()

    def get_bonus_unit(self, bonus_id: str) -> Optional[str]:
        return self.bonus_units.get(bonus_id)

    def get_hero_items(self, hero_id: str) -> Optional[Dict[str, int]]:
        return self.hero_items.get(hero_id)

    def get_unit_requires(self, unit_id: str) -> List[str]:
        return self.unit_requires.get(unit_id, [])


UNITS = {
    "h0FT": {"nam": "Castle", "mdl": "castle.mdl"},
    "h0TW": {"nam": "Tower", "mdl": "tower.mdl"},
    "h0BR": {"nam": "Barracks", "mdl": "barracks.mdl"},
    "h0ML": {"nam": "Footman"},
    "h0RP": {"nam": "Swordsman"},
    "H0H1": {"nam": "Paladin", "hot": "T"},
    "H0H2": {"nam": "Archmage"},
    "n0B1": {"tip": "Holy Order", "hot": "H", "mdl": "shrine.mdl", "abi": "A0S1,A0S2"},
    "n0B2": {"tip": "Arcane Vault", "mdl": "shrine.mdx"},
}
ABILITIES = {
    "A0U1": {"tp1": "Devotion", "ub1": "Armor aura"},
    "A0U2": {"tp1": "Brilliance"},
    "A0T1": {"tp1": "Tier One", "cdn": {1: "30"}},
    "A0S1": {"tp1": "Smite", "mcs": {1: "50"}},
    "A0S2": {"tp1": "Bless", "dut": {1: "10"}},
    "A0UW": {"tp1": "Wrath of Heaven"},
}
UPGRADES = {
    "R0T1": {"tp1": {1: "Tower 1", 2: "Tower 2", 3: "Tower 3"}, "glb": 100, "glm": 100},
    "R0MG": {"tp1": {1: "Magic 1", 2: "Magic 2"}},
    "R0AR": {"tp1": {1: "Armor"}, "req": "n0B1"},
}
ITEMS = {"I001": {"nam": "Sword"}}


def make_raw(**overrides: Any) -> RawRace:
    values: Dict[str, Any] = dict(
        id="A100",
        name="Humans",
        key="humans",
        bonuses=["n0B1", "n0B2"],
        upgrades=["R0T1"],
        magic="R0MG",
        base_upgrades={"armor": "R0AR", "melee": None},
        auras=["A0U1", "A0U2", "A0XX"],
        t1spell="A0T1",
        heroes=["H0H1", None],
        buildings={"fort": "h0FT", "tower": "h0TW", "barrack": "h0BR"},
        units={"melee": "h0ML", "air": None},
        bonus_heroes=[RawBonusHero(id="H0H2", slot=4)],
    )
    values.update(overrides)
    return RawRace(**values)


@pytest.fixture
def registry(make_registry: Callable[..., ObjectRegistry]) -> ObjectRegistry:
    return make_registry(units=UNITS, abilities=ABILITIES, upgrades=UPGRADES, items=ITEMS)


@pytest.fixture
def assembler(registry: ObjectRegistry) -> RaceAssembler:
    miner = FixedMiner(
        registry,
        bonus_units={"n0B1": "h0RP"},
        hero_items={"H0H2": {"I001": 3, "I999": 5}},
        unit_requires={"h0ML": ["R0AR"]},
    )
    return RaceAssembler(registry, miner)


class TestGridHotkey:
    """Test command card hotkeys."""

    def test_rows(self) -> None:
        """Test slots map row by row onto the grid."""
        assert [grid_hotkey(slot) for slot in (0, 3, 4, 8)] == ["Q", "R", "A", "Z"]
        assert grid_hotkey(12) is None


class TestRaceAssembler:
    """Test the race aggregate."""

    def test_assemble(self, assembler: RaceAssembler) -> None:
        """Test every part of the race is resolved."""
        race = assembler.assemble(make_raw(), "Race description")

        assert race.description == "Race description"
        assert [aura.hotkey for aura in race.auras] == ["Q", "W"]
        assert race.t1spell is not None and race.t1spell.id == "A0T1"
        assert race.t2spell is None
        assert set(race.buildings) == {"fort", "tower", "barrack"}
        assert set(race.units) == {"melee"}
        assert race.units["melee"].upgrades == ["R0AR"]
        assert set(race.base_upgrades) == {"armor"}
        assert [upgrade.level for upgrade in race.magic] == [1, 2]

    def test_tower_upgrades_skip_last_grade(self, assembler: RaceAssembler) -> None:
        """Test tower upgrades lose their last grade."""
        race = assembler.assemble(make_raw(), "")
        assert race.tower_upgrades[0].cost == [100, 200]

    def test_heroes_and_bonus_heroes(self, assembler: RaceAssembler) -> None:
        """Test heroes get slot hotkeys and bonus heroes carry their rewards."""
        race = assembler.assemble(make_raw(), "")
        assert [(hero.id, hero.hotkey) for hero in race.heroes] == [("H0H1", "Q"), ("H0H2", "A")]
        bonus_hero = race.heroes[1]
        assert [(item.id, item.level) for item in bonus_hero.items or []] == [("I001", 3)]

    def test_bonuses(self, assembler: RaceAssembler) -> None:
        """Test bonus objects carry unit, spells and related upgrades."""
        race = assembler.assemble(make_raw(), "")
        holy, vault = race.bonuses

        assert holy.name == "Holy Order"
        assert [unit.id for unit in holy.units or []] == ["h0RP"]
        assert [spell.id for spell in holy.spells or []] == ["A0S1", "A0S2"]
        assert holy.related_id == ["R0AR"]
        assert vault.units is None
        assert vault.spells is None

    def test_bonus_buildings_deduplicated_by_model(self, assembler: RaceAssembler) -> None:
        """Test bonus buildings sharing a model collapse into one entry."""
        race = assembler.assemble(make_raw(), "")
        assert len(race.bonus_buildings) == 1
        assert race.bonus_buildings[0].type == "building"

    def test_missing_required_building_is_fatal(self, assembler: RaceAssembler) -> None:
        """Test a missing barrack aborts the assembly with context."""
        raw = make_raw(buildings={"fort": "h0FT", "tower": "h0TW", "barrack": "h0XX"})
        with pytest.raises(MissingLinkageError) as exc_info:
            assembler.assemble(raw, "")
        assert exc_info.value.entity_id == "h0XX"
        assert "barrack" in str(exc_info.value)

    def test_missing_tower_upgrade_is_fatal(self, assembler: RaceAssembler) -> None:
        """Test a listed tower upgrade must exist."""
        with pytest.raises(MissingLinkageError):
            assembler.assemble(make_raw(upgrades=["R0T1", "R0XX"]), "")

    def test_lenient_mode_drops_missing(self, registry: ObjectRegistry) -> None:
        """Test missing required links are dropped when strict mode is off."""
        assembler = RaceAssembler(registry, FixedMiner(registry), strict_links=False)
        raw = make_raw(buildings={"fort": "h0FT", "tower": "h0TW"}, upgrades=["R0XX"])
        race = assembler.assemble(raw, "")
        assert set(race.buildings) == {"fort", "tower"}
        assert race.tower_upgrades == []

    def test_to_dict(self, assembler: RaceAssembler) -> None:
        """Test the race exports with camelCase keys."""
        exported = assembler.assemble(make_raw(), "").to_dict()
        assert {"towerUpgrades", "baseUpgrades", "bonusBuildings", "t1spell"} <= set(exported)
        assert "t2spell" not in exported

    def test_ultimate(self, assembler: RaceAssembler) -> None:
        """Test the race ultimate takes its name from the ability and sits on V."""
        raw = make_raw(ulti_data=RawUltiData(id="A0UW", damage_time=3, steal_interrupt=True))
        exported = assembler.assemble(raw, "").to_dict()["ultiData"]
        assert exported == {
            "id": "A0UW",
            "name": "Wrath of Heaven",
            "hotkey": "V",
            "type": "ultimate",
            "damageTime": 3,
            "stealInterrupt": True,
        }

    def test_unknown_ultimate_keeps_default_name(self, assembler: RaceAssembler) -> None:
        """Test an ultimate missing from the ability table gets the default name."""
        race = assembler.assemble(make_raw(ulti_data=RawUltiData(id="A0ZZ")), "")
        assert race.ulti_data is not None
        assert race.ulti_data.name == "Precision UW"
        assert assembler.assemble(make_raw(), "").ulti_data is None
