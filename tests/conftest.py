"""Shared fixtures: in-memory object tables and registries."""

from pathlib import Path
from typing import Any, Callable, Dict, Mapping, Optional

import pytest

from sc_datamine.game_data.formatting import TextFormatter
from sc_datamine.game_data.models import EntityRawTable, RawField
from sc_datamine.game_data.patches import PatchApplier
from sc_datamine.game_data.registry import ObjectRegistry, ReferenceData
from sc_datamine.settings import AppSettings

FieldSpec = Mapping[str, Any]


def make_table(entities: Mapping[str, FieldSpec]) -> EntityRawTable:
    """Build a raw table from {id: {key: value}}.

    A dict value maps levels to values; anything else is a level 0 record.
    """
    table: EntityRawTable = {}
    for entity_id, fields in entities.items():
        records = []
        for key, value in fields.items():
            if isinstance(value, dict):
                records.extend(RawField(key, level, item) for level, item in value.items())
            else:
                records.append(RawField(key, 0, value))
        table[entity_id] = records
    return table


@pytest.fixture
def make_registry() -> Callable[..., ObjectRegistry]:
    """Factory building an ObjectRegistry over in-memory tables."""

    def factory(
        units: Optional[Mapping[str, FieldSpec]] = None,
        abilities: Optional[Mapping[str, FieldSpec]] = None,
        upgrades: Optional[Mapping[str, FieldSpec]] = None,
        items: Optional[Mapping[str, FieldSpec]] = None,
        strings: Optional[Dict[str, str]] = None,
        patches: Optional[Mapping[str, Mapping[str, Any]]] = None,
        references: Optional[ReferenceData] = None,
    ) -> ObjectRegistry:
        tables = {
            "units": make_table(units or {}),
            "abilities": make_table(abilities or {}),
            "upgrades": make_table(upgrades or {}),
            "items": make_table(items or {}),
        }
        return ObjectRegistry(
            tables,
            formatter=TextFormatter(strings),
            patcher=PatchApplier(patches),
            references=references,
        )

    return factory


@pytest.fixture
def settings_file(tmp_path: Path) -> Path:
    return tmp_path / "sc_datamine.ini"


@pytest.fixture
def app_settings(settings_file: Path) -> AppSettings:
    """AppSettings backed by a throwaway INI file."""
    return AppSettings(settings_file=settings_file)
