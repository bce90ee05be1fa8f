import os
from pathlib import Path

import pytest

from sc_datamine.service import DataMineService
from sc_datamine.settings import AppSettings, MapVariant

SC_DATA_PATH = os.environ.get("SC_DATA_PATH") or ""
SC_REFERENCE_PATH = os.environ.get("SC_REFERENCE_PATH") or ""


def make_settings(tmp_path: Path, variant: MapVariant) -> AppSettings:
    settings = AppSettings(settings_file=tmp_path / "sc_datamine.ini")
    settings.data_path = Path(SC_DATA_PATH)
    settings.map_variant = variant
    if SC_REFERENCE_PATH:
        settings.reference_path = Path(SC_REFERENCE_PATH)
    return settings


@pytest.mark.parametrize("variant", list(MapVariant))
def test_extract_races(tmp_path: Path, variant: MapVariant) -> None:
    if not SC_DATA_PATH or not (Path(SC_DATA_PATH) / variant.value).exists():
        pytest.skip(f"No decoded '{variant.value}' map under SC_DATA_PATH")

    result = DataMineService(make_settings(tmp_path, variant)).extract()
    assert result.races, "no races extracted"
    assert sum(len(entries) for entries in result.pickers.values()) == len(result.races)

    for race in result.races:
        assert race.key, f"race {race.id} has no key"
        assert "fort" in race.buildings, f"race {race.id} has no fort"
    print(f"✓ {variant.value}: {len(result.races)} races, {len(result.artifacts.items)} artifacts")
