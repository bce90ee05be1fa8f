"""Tests for two-tier field resolution."""

from pathlib import Path
from typing import Callable

from sc_datamine.game_data.fallback import SideTable, resolve
from sc_datamine.game_data.registry import ObjectRegistry


class TestResolve:
    """Test entity first, side table second."""

    def test_entity_value_wins(self, make_registry: Callable[..., ObjectRegistry]) -> None:
        """Test the object table value is used even when the side table has one."""
        registry = make_registry(units={"h001": {"hpm": 700}})
        table = SideTable({"h001": {"HP": 420}})
        entity = registry.units.get_by_id("h001")
        assert entity is not None
        assert resolve(entity, "hpm", table, "HP") == 700

    def test_side_table_by_id(self, make_registry: Callable[..., ObjectRegistry]) -> None:
        """Test the side table supplies a value the entity lacks."""
        registry = make_registry(units={"hfoo": {}})
        table = SideTable({"hfoo": {"HP": 420}})
        entity = registry.units.get_by_id("hfoo")
        assert entity is not None
        assert resolve(entity, "hpm", table, "HP") == 420

    def test_side_table_by_backlink(self, make_registry: Callable[..., ObjectRegistry]) -> None:
        """Test a derived entity falls back to its original's row."""
        registry = make_registry(units={"h001": {"wc3id": "hfoo"}})
        table = SideTable({"hfoo": {"HP": 420}})
        entity = registry.units.get_by_id("h001")
        assert entity is not None
        assert resolve(entity, "hpm", table, "HP") == 420

    def test_neither_source(self, make_registry: Callable[..., ObjectRegistry]) -> None:
        """Test None when no source defines the value."""
        registry = make_registry(units={"h001": {}})
        entity = registry.units.get_by_id("h001")
        assert entity is not None
        assert resolve(entity, "hpm", SideTable(), "HP") is None


class TestSideTable:
    """Test side table loading."""

    def test_missing_file_is_empty(self, tmp_path: Path) -> None:
        """Test a missing file gives an empty table."""
        table = SideTable.from_file(tmp_path / "unitbalance.slk", "unitBalanceID")
        assert len(table) == 0

    def test_from_sylk(self, tmp_path: Path) -> None:
        """Test rows are keyed by the id column of a SYLK file."""
        path = tmp_path / "unitbalance.slk"
        path.write_text(
            "ID;PWXL;N;E\n"
            'C;Y1;X1;K"unitBalanceID"\n'
            'C;X2;K"HP"\n'
            'C;Y2;X1;K"hfoo"\n'
            "C;X2;K420\n"
            "E\n",
            encoding="utf-8",
        )
        table = SideTable.from_file(path, "unitBalanceID")
        assert "hfoo" in table
        assert table.lookup("hfoo", "HP") == 420
        assert table.lookup("hfoo", "missing") is None
        assert table.lookup("hkni", "HP") is None
