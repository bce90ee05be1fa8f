"""Tests for the category parsers."""

import logging
from typing import Callable

import pytest

from sc_datamine.game_data.categories import to_number
from sc_datamine.game_data.fallback import SideTable
from sc_datamine.game_data.registry import ObjectRegistry, ReferenceData


class TestToNumber:
    """Test lenient numeric coercion."""

    @pytest.mark.parametrize(
        "value,expected",
        [(5, 5), (2.0, 2), (2.5, 2.5), ("12", 12), (" 1.5 ", 1.5), ("3.0", 3), (None, 0), ("", 0), (True, 1)],
    )
    def test_coercion(self, value: object, expected: object) -> None:
        """Test supported inputs coerce to ints where integral."""
        assert to_number(value) == expected

    def test_malformed_value_warns(self, caplog: pytest.LogCaptureFixture) -> None:
        """Test typos give the default and a warning."""
        with caplog.at_level(logging.WARNING):
            assert to_number("12a", default=7, context="upgrades:R001:glb") == 7
        assert "upgrades:R001:glb" in caplog.text


class TestLookups:
    """Test shared lookups."""

    def test_get_by_id_unknown(self, make_registry: Callable[..., ObjectRegistry]) -> None:
        """Test unknown and empty ids give None."""
        registry = make_registry(units={"h001": {}})
        assert registry.units.get_by_id("h999") is None
        assert registry.units.get_by_id(None) is None
        assert "h001" in registry.units

    def test_get_ids_by_value(self, make_registry: Callable[..., ObjectRegistry]) -> None:
        """Test reverse lookup matches on the key only, equal or containing."""
        registry = make_registry(
            abilities={
                "A001": {"req": "R001"},
                "A002": {"req": "R001,R002"},
                "A003": {"tp1": "R001"},
            }
        )
        assert registry.abilities.get_ids_by_value("req", "R001") == ["A001"]
        assert registry.abilities.get_ids_by_value("req", "R001", includes=True) == ["A001", "A002"]

    def test_find_ids_by_key(self, make_registry: Callable[..., ObjectRegistry]) -> None:
        """Test predicate and value matching."""
        registry = make_registry(items={"I001": {"lev": 2}, "I002": {"lev": 5}})
        assert registry.items.find_ids_by_key("lev", 2) == ["I001"]
        assert registry.items.find_ids_by_key("lev", lambda value: value > 1) == ["I001", "I002"]


class TestIcons:
    """Test icon resolution."""

    def test_icon_from_field(self, make_registry: Callable[..., ObjectRegistry]) -> None:
        """Test the category icon field is used first."""
        registry = make_registry(upgrades={"R001": {"ar1": {1: "a.blp", 2: "b.blp"}}})
        entity = registry.upgrades.get_by_id("R001")
        assert entity is not None
        assert entity.get_icon(2) == "b.blp"
        assert entity.get_icons() == ["a.blp", "b.blp"]

    def test_icon_from_skin_by_level(self, make_registry: Callable[..., ObjectRegistry]) -> None:
        """Test skin art lists are indexed by level, first entry otherwise."""
        references = ReferenceData(upgrade_skins={"Rhme": {"art": "one.blp,two.blp,three.blp"}})
        registry = make_registry(upgrades={"R001": {"wc3id": "Rhme"}}, references=references)
        entity = registry.upgrades.get_by_id("R001")
        assert entity is not None
        assert entity.get_icon(2) == "two.blp"
        assert entity.get_icon() == "one.blp"
        assert entity.get_icon(9) == "one.blp"


class TestUnits:
    """Test unit and hero objects."""

    def test_unit_object(self, make_registry: Callable[..., ObjectRegistry]) -> None:
        """Test fields come from the entity and from the side tables."""
        references = ReferenceData(
            unit_balance=SideTable({"hfoo": {"HP": 420, "def": 2, "type": "Melee_Unit"}}),
            unit_weapons=SideTable({"hfoo": {"dmgplus1": 11, "dice1": 1, "sides1": 2}}),
            unit_data=SideTable({"hfoo": {"movetp": "fly", "points": 5}}),
        )
        registry = make_registry(
            units={"h001": {"nam": "Knight", "gol": "135", "hot": "K", "wc3id": "hfoo", "pgr": "R001"}},
            references=references,
        )
        entity = registry.units.get_by_id("h001")
        assert entity is not None
        unit = registry.units.get_unit_object(entity, extra_upgrades=["R002", "R001"])

        assert unit.name == "Knight"
        assert unit.cost == 135
        assert unit.hp == 420
        assert unit.defense == 2
        assert unit.atk == "12-13"
        assert unit.tags == ["meleeunit", "air"]
        assert unit.bounty == 5
        assert unit.upgrades == ["R001", "R002"]
        assert unit.skills is None

    def test_unit_to_dict_keys(self, make_registry: Callable[..., ObjectRegistry]) -> None:
        """Test exported keys use the compatibility names."""
        registry = make_registry(units={"h001": {"nam": "Knight"}})
        entity = registry.units.get_by_id("h001")
        assert entity is not None
        exported = registry.units.get_unit_object(entity).to_dict()
        assert exported["type"] == "unit"
        assert {"hpReg", "mpReg", "def", "atkRange", "atkSpeed"} <= set(exported)
        # unset optional fields are left out
        assert "skills" not in exported
        assert "atkType" not in exported

    def test_display_name_falls_back_to_strings(self, make_registry: Callable[..., ObjectRegistry]) -> None:
        """Test the unit strings supply names of unmodified units."""
        references = ReferenceData(unit_strings={"hfoo": {"name": "Footman"}})
        registry = make_registry(units={"h001": {"wc3id": "hfoo"}}, references=references)
        assert registry.units.get_by_id("h001").get_name() == "Footman"  # type: ignore[union-attr]

    def test_hero_object(self, make_registry: Callable[..., ObjectRegistry]) -> None:
        """Test hero attributes, hotkey override and filtering of empty skills."""
        registry = make_registry(
            units={"H001": {"nam": "Paladin", "pro": "Uther", "hab": "A001,A002", "pra": "STR", "str": 22}},
            abilities={
                "A001": {"tp1": "Holy Light", "cdn": {1: "5"}},
                "A002": {"tp1": "Filler"},
            },
        )
        entity = registry.units.get_by_id("H001")
        assert entity is not None
        hero = registry.units.get_hero_object(entity, hotkey="Q")

        assert hero.hotkey == "Q"
        assert hero.full_name == "Uther"
        assert hero.stat == "str"
        assert hero.strength == 22
        assert [skill.id for skill in hero.skills or []] == ["A001"]
        assert hero.to_dict()["str"] == 22

    def test_model_hash_is_stable(self, make_registry: Callable[..., ObjectRegistry]) -> None:
        """Test look-alike models hash equally regardless of case and extension."""
        registry = make_registry(
            units={
                "n001": {"mdl": "Buildings\\Farm.mdl"},
                "n002": {"mdl": "buildings\\farm.mdx"},
                "n003": {"mdl": "buildings\\tower.mdl"},
            }
        )
        hashes = [registry.units.get_model_hash(registry.units.get_by_id(i)) for i in ("n001", "n002", "n003")]  # type: ignore[arg-type]
        assert hashes[0] == hashes[1]
        assert hashes[0] != hashes[2]
        assert len(hashes[0]) == 10


class TestAbilities:
    """Test spell objects."""

    def test_spell_object(self, make_registry: Callable[..., ObjectRegistry]) -> None:
        """Test numeric lists, targets and resolved summons."""
        registry = make_registry(
            abilities={
                "A001": {
                    "tp1": "Summon Wolves",
                    "hky": "W",
                    "cdn": {1: "20,15"},
                    "tar": "ground, air",
                    "sf1": {1: "n001", 2: "n001,n002"},
                }
            },
            units={"n001": {"nam": "Wolf"}, "n002": {"nam": "Dire Wolf"}},
        )
        entity = registry.abilities.get_by_id("A001")
        assert entity is not None
        spell = registry.abilities.get_spell_object(entity)

        assert spell.name == "Summon Wolves"
        assert spell.cooldown == [20, 15]
        assert spell.targets == ["ground", "air"]
        assert [unit.id for unit in spell.summon_unit or []] == ["n001", "n002"]
        assert not spell.is_empty()

    def test_empty_spell(self, make_registry: Callable[..., ObjectRegistry]) -> None:
        """Test a named spell without numbers or summons is empty."""
        registry = make_registry(abilities={"A001": {"tp1": "Passive"}})
        spell = registry.abilities.get_spell_object(registry.abilities.get_by_id("A001"))  # type: ignore[arg-type]
        assert spell.is_empty()


class TestUpgrades:
    """Test upgrade objects."""

    def test_cost_and_timer_progression(self, make_registry: Callable[..., ObjectRegistry]) -> None:
        """Test per-level cost and timer arrays, with and without the last grade."""
        registry = make_registry(
            upgrades={"R001": {"glb": 100, "glm": 50, "tib": 60, "tim": 10, "tp1": {1: "a", 2: "b", 3: "c"}}}
        )
        entity = registry.upgrades.get_by_id("R001")
        assert entity is not None
        assert registry.upgrades.get_cost_array(entity) == [100, 150, 200]
        assert registry.upgrades.get_timers_array(entity, skip_last=True) == [60, 70]

    def test_malformed_cost_defaults_to_zero(self, make_registry: Callable[..., ObjectRegistry]) -> None:
        """Test a typo in the cost gives zero instead of failing."""
        registry = make_registry(upgrades={"R001": {"glb": "1OO", "glm": 0, "tp1": {1: "a"}}})
        entity = registry.upgrades.get_by_id("R001")
        assert entity is not None
        assert registry.upgrades.get_cost_array(entity) == [0]

    def test_dependent_spells(self, make_registry: Callable[..., ObjectRegistry]) -> None:
        """Test abilities requiring the upgrade are attached, empty ones dropped."""
        registry = make_registry(
            upgrades={"R001": {"tp1": {1: "Research"}}},
            abilities={
                "A001": {"tp1": "Unlocked", "req": "R001", "mcs": {1: "75"}},
                "A002": {"tp1": "Filler", "req": "R001"},
            },
        )
        upgrade = registry.upgrades.get_upgrade_object(registry.upgrades.get_by_id("R001"))  # type: ignore[arg-type]
        assert [spell.id for spell in upgrade.spells or []] == ["A001"]

    def test_level_objects(self, make_registry: Callable[..., ObjectRegistry]) -> None:
        """Test one object per level with that level's text and cost."""
        registry = make_registry(
            upgrades={"R001": {"glb": 10, "glm": 5, "tp1": {1: "Rank 1", 2: "Rank 2"}, "ub1": {1: "x", 2: "y"}}}
        )
        levels = registry.upgrades.get_level_objects(registry.upgrades.get_by_id("R001"))  # type: ignore[arg-type]
        assert [(u.level, u.name, u.description, u.cost) for u in levels] == [
            (1, "Rank 1", "x", [10]),
            (2, "Rank 2", "y", [15]),
        ]


class TestItems:
    """Test artifact objects."""

    def test_artifact_object(self, make_registry: Callable[..., ObjectRegistry]) -> None:
        """Test the level field and the raw-name hotkey."""
        registry = make_registry(items={"I001": {"nam": "Claws", "lev": 3, "tub": "Attack bonus"}})
        artifact = registry.items.get_artifact_object(registry.items.get_by_id("I001"))  # type: ignore[arg-type]
        assert artifact.level == 3
        assert artifact.hotkey == "Claws"
        assert artifact.description == "Attack bonus"

    def test_patch_applied(self, make_registry: Callable[..., ObjectRegistry]) -> None:
        """Test built objects pass through the patch table."""
        registry = make_registry(items={"I034": {"nam": "Orb"}}, patches={"I034": {"level": 2}})
        artifact = registry.items.get_artifact_object(registry.items.get_by_id("I034"))  # type: ignore[arg-type]
        assert artifact.level == 2
