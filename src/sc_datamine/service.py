"""
Extraction service: runs one full pass over a map variant.

Loads every input up front, then resolves races, pickers, ultimates,
artifacts, neutrals and shrines into typed objects, together with the
damage and bounty tables and one icon map per output section.
"""

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Type

import orjson

from .errors import MissingLinkageError
from .game_data.categories import CategoryParser
from .game_data.formatting import TextFormatter
from .game_data.icons import collect_icons
from .game_data.loaders import MapFileLoader
from .game_data.misc import get_misc_data
from .game_data.objects import (
    ArtifactObject,
    ArtifactsData,
    BaseObject,
    Exportable,
    MiscData,
    NeutralObject,
    RaceData,
    RacePickerObject,
    RawArtifacts,
    RawPatchData,
    RawRace,
    RawUltimates,
    SpellObject,
    UltimatePickerObject,
    UltimatesData,
)
from .game_data.patches import PatchApplier
from .game_data.races import RaceAssembler
from .game_data.registry import CATEGORIES, ObjectRegistry, ReferenceData
from .game_data.store import RawTableStore
from .script import ClassicScriptMiner, NumericScriptMiner, ScriptMiner
from .settings import AppSettings, ConfigError, MapVariant

SCRIPT_FILE = "war3map.j"
STRINGS_FILE = "war3map.wts"
CONSTANTS_FILE = "war3mapMisc.txt"

MINERS: Dict[MapVariant, Type[ScriptMiner]] = {
    MapVariant.OG: ClassicScriptMiner,
    MapVariant.OZ: NumericScriptMiner,
}


@dataclass(frozen=True)
class ExtractionResult(Exportable):
    """Everything one extraction pass produces."""
    version: Optional[str] = None
    races: List[RaceData] = field(default_factory=list)
    pickers: Dict[str, List[RacePickerObject]] = field(default_factory=dict)
    ultimates: UltimatesData = field(default_factory=UltimatesData)
    artifacts: ArtifactsData = field(default_factory=ArtifactsData)
    neutrals: List[NeutralObject] = field(default_factory=list)
    shrines: Optional[List[SpellObject]] = None
    misc: MiscData = field(default_factory=MiscData)
    icons: Dict[str, Any] = field(default_factory=dict)

    def to_json(self) -> bytes:
        return orjson.dumps(self.to_dict(), option=orjson.OPT_INDENT_2)


class DataMineService:
    """Builds every component of a pass from the settings and runs it.

    Example:
        >>> service = DataMineService(AppSettings(settings_file=Path("sc.ini")))
        >>> result = service.extract()
        >>> len(result.races)
        20
    """

    def __init__(
        self,
        settings: AppSettings,
        variant: Optional[MapVariant] = None,
        strict_links: Optional[bool] = None,
    ):
        """
        Args:
            settings: Paths, version label and defaults
            variant: Variant to mine instead of the configured one
            strict_links: Linkage mode to use instead of the configured one

        Raises:
            ConfigError: if no data path is configured
        """
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")
        if settings.data_path is None:
            raise ConfigError("Data path is not configured")
        self.settings = settings
        self.variant: MapVariant = variant or settings.map_variant
        self.strict_links = settings.strict_links if strict_links is None else strict_links
        self.store = RawTableStore(settings.data_path, self.variant)
        self.registry: Optional[ObjectRegistry] = None
        self.miner: Optional[ScriptMiner] = None

    @property
    def variant_path(self) -> Path:
        return self.store.variant_path

    def load(self) -> None:
        """Load tables, strings, reference data and the script.

        Raises:
            MissingTableError: if a base object table is missing
        """
        if self.registry is not None:
            return

        self.logger.info(f"Loading map data for variant '{self.variant.value}' from {self.variant_path}")
        tables = {category: self.store.load(category) for category in CATEGORIES}
        strings = MapFileLoader.read_localization(self.variant_path / STRINGS_FILE)
        self.logger.debug(f"Loaded {len(strings)} localized strings")

        self.registry = ObjectRegistry(
            tables,
            formatter=TextFormatter(strings),
            patcher=PatchApplier.for_variant(self.variant),
            references=ReferenceData.load(self.settings.reference_path),
        )
        self.miner = MINERS[self.variant].from_file(self.variant_path / SCRIPT_FILE, self.registry)

    @property
    def pickers_parser(self) -> CategoryParser:
        """Race pickers are units in the classic layout and abilities in OZ."""
        assert self.registry is not None
        return self.registry.abilities if self.variant == MapVariant.OZ else self.registry.units

    def extract(self) -> ExtractionResult:
        """Run the full pass.

        Raises:
            DataMineError: on any fatal condition
        """
        self.load()
        assert self.registry is not None and self.miner is not None

        data = self.miner.get_patch_data()
        races, pickers = self.extract_races(data)
        ultimates = self.extract_ultimates(data.ultimates)
        artifacts = self.extract_artifacts(data.artifacts)
        neutrals = self.extract_neutrals(data.neutrals)
        shrines = self.extract_shrines(data.shrines)
        result = ExtractionResult(
            version=self.settings.map_version or None,
            races=races,
            pickers=pickers,
            ultimates=ultimates,
            artifacts=artifacts,
            neutrals=neutrals,
            shrines=shrines,
            misc=self.extract_misc(races, data.races),
            icons={
                "races": {race.key: collect_icons(self.registry, race) for race in races},
                "ultimates": collect_icons(self.registry, ultimates),
                "artifacts": collect_icons(self.registry, artifacts),
                "misc": collect_icons(self.registry, neutrals, shrines),
            },
        )
        self.logger.info(
            f"Extracted {len(result.races)} races, {len(result.artifacts.items)} artifacts, "
            f"{len(result.neutrals)} neutrals"
        )
        return result

    # Races

    def _race_description(self, picker: Any) -> Any:
        if self.variant == MapVariant.OZ:
            return f"{picker.get_name()}<br/>{picker.get_value('ub1')}"
        return picker.get_value("tub")

    def extract_races(self, data: RawPatchData):
        """Assemble every race and the picker entries grouped by alliance name.

        Raises:
            MissingLinkageError: if a race picker is missing (strict mode)
        """
        assert self.registry is not None and self.miner is not None
        assembler = RaceAssembler(self.registry, self.miner, self.strict_links)
        parser = self.pickers_parser
        raw_races = {race.id: race for race in data.races}

        races: List[RaceData] = []
        pickers: Dict[str, List[RacePickerObject]] = {}
        for alliance_id, race_ids in data.pickers.items():
            alliance = parser.get_by_id(alliance_id)
            alliance_name = str(alliance.get_name() or alliance_id) if alliance else alliance_id
            entries = pickers.setdefault(alliance_name, [])

            for race_id in race_ids:
                picker = parser.get_by_id(race_id)
                if picker is None:
                    error = MissingLinkageError(parser.category, race_id, "picker")
                    if self.strict_links:
                        raise error
                    self.logger.error(f"{error}, dropped")
                    continue

                raw = raw_races.get(race_id)
                if raw is None:
                    self.logger.warning(f"Race {race_id} has a picker but no mined data")
                    continue

                description = self._race_description(picker)
                race = assembler.assemble(raw, description)
                races.append(race)
                entries.append(
                    parser.apply_patch(
                        RacePickerObject(
                            id=race_id,
                            name=race.name,
                            key=race.key,
                            description=description,
                            hotkey=picker.get_value("hot"),
                        )
                    )
                )
        return races, pickers

    # Other data

    def extract_misc(self, races: List[RaceData], raw_races: List[RawRace]) -> MiscData:
        """Damage table from the gameplay constants and the bounty of every race."""
        assert self.registry is not None
        constants = MapFileLoader.read_misc_data(self.variant_path / CONSTANTS_FILE)
        return get_misc_data(self.registry, races, {race.id: race for race in raw_races}, constants)

    def extract_ultimates(self, raw: RawUltimates) -> UltimatesData:
        """Ultimate pickers with their upgrade requirements, and the spells each grants."""
        assert self.registry is not None
        abilities = self.registry.abilities
        upgrades = self.registry.upgrades
        requires: Dict[str, str] = {}

        def get_requires(entity: Any) -> Dict[str, int]:
            required_ids = entity.get_array("req") or []
            amounts = [abilities.number(entity, value, "rqa") for value in entity.get_array("rqa") or []]
            output: Dict[str, int] = {}
            for idx, upgrade_id in enumerate(required_ids):
                if upgrade_id not in requires:
                    upgrade = upgrades.get_by_id(upgrade_id)
                    name = str(upgrade.get_raw("nam", 1)) if upgrade else "None"
                    name = re.sub(r"lv\d+", "", re.sub(r"\(.*?\)", "", name), flags=re.MULTILINE)
                    requires[upgrade_id] = name.strip()
                output[upgrade_id] = int(amounts[idx]) if idx < len(amounts) else 0
            return output

        pickers: List[UltimatePickerObject] = []
        for picker_id in raw.pickers:
            entity = abilities.get_by_id(picker_id)
            if entity is None:
                self.logger.debug(f"Ultimate picker {picker_id} not found, dropped")
                continue
            pickers.append(
                abilities.apply_patch(
                    UltimatePickerObject(
                        id=picker_id,
                        name=entity.get_value("tp1") or entity.get_name(),
                        description=entity.get_value("ub1"),
                        hotkey=entity.get_value("hky"),
                        requires=get_requires(entity),
                    )
                )
            )

        spells = {
            picker_id: self.registry.resolve_many(abilities, spell_ids, abilities.get_spell_object)
            for picker_id, spell_ids in raw.spells.items()
        }
        return UltimatesData(pickers=pickers, spells=spells, requires=requires)

    def extract_artifacts(self, raw: RawArtifacts) -> ArtifactsData:
        assert self.registry is not None
        items = self.registry.items
        artifacts: List[ArtifactObject] = self.registry.resolve_many(
            items, raw.items, items.get_artifact_object
        )
        return ArtifactsData(items=artifacts, combine_map=raw.combine_map)

    def extract_neutrals(self, neutral_ids: List[str]) -> List[NeutralObject]:
        """Neutral creeps with a short summary of each skill's first three levels."""
        assert self.registry is not None
        units = self.registry.units
        abilities = self.registry.abilities
        output: List[NeutralObject] = []
        for neutral_id in neutral_ids:
            entity = units.get_by_id(neutral_id)
            if entity is None:
                continue
            skills: List[BaseObject] = []
            for skill_id in entity.get_array("abi") or []:
                skill = abilities.get_by_id(skill_id)
                if skill is None:
                    continue
                descriptions = skill.get_all_values("ub1", lambda record: 0 < record.level <= 3)
                skills.append(
                    abilities.apply_patch(
                        BaseObject(
                            type="neutralSpell",
                            id=skill.id,
                            name=re.sub(r"\(\w+\)$", "", str(skill.get_name() or "")),
                            description="<hr/>".join(str(value) for value in descriptions),
                            hotkey=skill.get_value("hky"),
                        )
                    )
                )
            output.append(
                units.apply_patch(
                    NeutralObject(id=entity.id, name=entity.get_name(), hotkey="", skills=skills)
                )
            )
        return output

    def extract_shrines(self, shrine_ids: Optional[List[str]]) -> Optional[List[SpellObject]]:
        if shrine_ids is None:
            return None
        assert self.registry is not None
        abilities = self.registry.abilities
        return self.registry.resolve_many(abilities, shrine_ids, abilities.get_spell_object)
