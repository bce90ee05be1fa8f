"""Tests for the extraction service and the command line entry point."""

from pathlib import Path
from typing import Any, Dict, Mapping

import orjson
import pytest

from sc_datamine.__main__ import main
from sc_datamine.errors import MissingLinkageError, MissingTableError
from sc_datamine.service import DataMineService, ExtractionResult
from sc_datamine.settings import AppSettings, ConfigError

SCRIPT = """\
set gg_unit_nfh1_0001=CreateUnit(Player(0),'nfh1',0.,0.,270.)
call AddUnitToStockBJ('h001',gg_unit_nfh1_0001,1,1)
set u=CreateUnit(p,'n001',0.,0.,0.)
call SetUnitColor(u,ConvertPlayerColor(8))
"""

UNITS = {
    "nfh1": {"nam": "Alliance"},
    "h001": {"nam": "Humans", "tub": "Knights and towers", "hot": "H"},
    "n001": {"nam": "Wolf", "abi": "A001", "ico": "wolf.blp"},
}

ABILITIES = {
    "A001": {"tp1": "Bite(Neutral)", "hky": "B", "art": "bite.blp", "ub1": {1: "a", 2: "b", 4: "d"}},
}


def table_json(prefix: str, entities: Mapping[str, Mapping[str, Any]]) -> bytes:
    """Encode entities the way the map decoder writes them."""
    original: Dict[str, Any] = {}
    for entity_id, fields in entities.items():
        records = []
        for key, value in fields.items():
            levels = value if isinstance(value, dict) else {0: value}
            records.extend({"id": prefix + key, "level": level, "value": item} for level, item in levels.items())
        original[entity_id] = records
    return orjson.dumps({"original": original, "custom": {}})


def write_map(root: Path, units: Mapping[str, Any] = UNITS) -> Path:
    variant = root / "og"
    variant.mkdir(parents=True)
    (variant / "war3map.w3u.json").write_bytes(table_json("u", units))
    (variant / "war3map.w3a.json").write_bytes(table_json("a", ABILITIES))
    (variant / "war3map.w3q.json").write_bytes(table_json("r", {}))
    (variant / "war3map.w3t.json").write_bytes(table_json("i", {}))
    (variant / "war3map.j").write_text(SCRIPT, encoding="utf-8")
    return root


@pytest.fixture
def configured(app_settings: AppSettings, tmp_path: Path) -> AppSettings:
    app_settings.data_path = write_map(tmp_path / "data")
    return app_settings


class TestDataMineService:
    """Test a full pass over a small decoded map."""

    def test_requires_data_path(self, app_settings: AppSettings) -> None:
        """Test the service refuses to start without a data path."""
        with pytest.raises(ConfigError):
            DataMineService(app_settings)

    def test_missing_table(self, app_settings: AppSettings, tmp_path: Path) -> None:
        """Test a missing base table aborts loading."""
        (tmp_path / "og").mkdir()
        app_settings.data_path = tmp_path
        with pytest.raises(MissingTableError):
            DataMineService(app_settings).load()

    def test_extract(self, configured: AppSettings) -> None:
        """Test pickers are grouped by alliance name and neutrals resolved."""
        result = DataMineService(configured).extract()

        # h001 sells no fort in this script, so no race is assembled
        assert result.races == []
        assert result.pickers["Alliance"] == []
        assert result.shrines is None

        assert [neutral.id for neutral in result.neutrals] == ["n001"]
        skill = result.neutrals[0].skills[0]
        assert skill.type == "neutralSpell"
        assert skill.name == "Bite"
        assert skill.description == "a<hr/>b"
        assert skill.hotkey == "B"

    def test_load_is_idempotent(self, configured: AppSettings) -> None:
        """Test a second load keeps the first registry."""
        service = DataMineService(configured)
        service.load()
        registry = service.registry
        service.load()
        assert service.registry is registry

    def test_missing_picker_strict(self, app_settings: AppSettings, tmp_path: Path) -> None:
        """Test a race picker absent from the tables is fatal in strict mode."""
        units = {key: value for key, value in UNITS.items() if key != "h001"}
        app_settings.data_path = write_map(tmp_path / "data", units)
        with pytest.raises(MissingLinkageError) as excinfo:
            DataMineService(app_settings).extract()
        assert excinfo.value.entity_id == "h001"

    def test_missing_picker_lenient(self, app_settings: AppSettings, tmp_path: Path) -> None:
        """Test lenient mode drops the picker and carries on."""
        units = {key: value for key, value in UNITS.items() if key != "h001"}
        app_settings.data_path = write_map(tmp_path / "data", units)
        app_settings.strict_links = False
        result = DataMineService(app_settings).extract()
        assert result.pickers["Alliance"] == []


class TestExtractionResult:
    """Test the exported document."""

    def test_to_json(self, configured: AppSettings) -> None:
        """Test camel-cased keys and omitted empty sections."""
        document = orjson.loads(DataMineService(configured).extract().to_json())
        assert set(document) == {"races", "pickers", "ultimates", "artifacts", "neutrals", "misc", "icons"}
        assert document["misc"] == {"bounty": {}}
        assert document["artifacts"] == {"items": [], "combineMap": {}}
        assert document["neutrals"][0]["skills"][0]["description"] == "a<hr/>b"

    def test_empty_result(self) -> None:
        """Test an empty result still exports every required section."""
        exported = ExtractionResult().to_dict()
        assert exported["races"] == []
        assert "shrines" not in exported


class TestCommandLine:
    """Test the command line entry point."""

    def test_invalid_config(self, settings_file: Path) -> None:
        """Test validation errors give exit code 1."""
        assert main(["--config", str(settings_file)]) == 1

    def test_writes_output(self, configured: AppSettings, settings_file: Path, tmp_path: Path) -> None:
        """Test a valid run writes the JSON document to the output file."""
        output = tmp_path / "out" / "data.json"
        assert main(["--config", str(settings_file), "--variant", "og", "--output", str(output)]) == 0
        assert orjson.loads(output.read_bytes())["neutrals"][0]["name"] == "Wolf"

    def test_run_overrides_not_stored(
        self,
        configured: AppSettings,
        settings_file: Path,
        tmp_path: Path,
        capsysbinary: pytest.CaptureFixture[bytes],
    ) -> None:
        """Test --variant and --output apply to one run and a later run writes to stdout."""
        output = tmp_path / "data.json"
        assert main(["--config", str(settings_file), "--variant", "og", "--output", str(output)]) == 0
        assert output.exists()
        capsysbinary.readouterr()

        reloaded = AppSettings(settings_file=settings_file)
        assert reloaded.output_path is None
        assert reloaded.settings.value("extraction/map_variant") is None

        assert main(["--config", str(settings_file)]) == 0
        document = orjson.loads(capsysbinary.readouterr().out)
        assert document["neutrals"][0]["name"] == "Wolf"

    def test_lenient_flag(self, app_settings: AppSettings, settings_file: Path, tmp_path: Path) -> None:
        """Test --lenient drops a missing picker without changing the stored mode."""
        units = {key: value for key, value in UNITS.items() if key != "h001"}
        app_settings.data_path = write_map(tmp_path / "data", units)
        output = tmp_path / "data.json"
        assert main(["--config", str(settings_file), "--output", str(output)]) == 1
        assert main(["--config", str(settings_file), "--lenient", "--output", str(output)]) == 0
        assert AppSettings(settings_file=settings_file).strict_links is True


class TestMapWideData:
    """Test the version label, gameplay tables and icon maps of a pass."""

    def test_version_label(self, configured: AppSettings) -> None:
        """Test the configured map version is written into the document."""
        assert "version" not in DataMineService(configured).extract().to_dict()
        configured.map_version = "4.28"
        assert DataMineService(configured).extract().to_dict()["version"] == "4.28"

    def test_damage_table(self, configured: AppSettings) -> None:
        """Test damage percentages come from the gameplay constants file."""
        assert configured.data_path is not None
        (configured.data_path / "og" / "war3mapMisc.txt").write_text(
            "[Misc]\nDamageBonusHero=1.00,0.5,,1.25,x\nDamageBonusSpells=0.70\n", encoding="utf-8"
        )
        damage = DataMineService(configured).extract().misc.damage
        assert damage is not None
        assert damage["hero"] == [100, 50, 100, 125, 100, 100, 100, 100]
        assert damage["spells"] == [70] + [100] * 7
        assert damage["chaos"] == [100] * 8

    def test_icon_maps(self, configured: AppSettings) -> None:
        """Test neutrals and their skills land in the misc icon map."""
        icons = DataMineService(configured).extract().icons
        assert icons["misc"] == {"n001": "wolf.blp", "A001": "bite.blp"}
        assert icons["races"] == {}
        assert icons["artifacts"] == {}
