"""
Base class of the script miners.

A miner recovers entity ids (races, pickers, bonuses, ultimates) from
the decompiled map script. The two map variants lay their script out
differently; each has its own miner implementing the same capabilities.
"""

import logging
import re
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Iterable, List, Optional, TYPE_CHECKING

from ..errors import PreconditionError
from ..game_data.formatting import PLACEHOLDER_PATTERN
from ..game_data.loaders import MapFileLoader, normalize_line_endings
from ..game_data.objects import RawPatchData
from .blocks import extract_conditional_block

if TYPE_CHECKING:
    from ..game_data.registry import ObjectRegistry


def unique(values: List[str]) -> List[str]:
    """Drop repeated and empty values, keeping first occurrences."""
    output: List[str] = []
    for value in values:
        if value and value not in output:
            output.append(value)
    return output


class ScriptMiner(ABC):
    """Holds the normalized script buffer and the block extractor.

    Attributes:
        script: Script text with '\\n' line endings
        registry: Category parsers, used where script ids must be checked
            against the object tables
    """

    def __init__(self, script: str, registry: "ObjectRegistry"):
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")
        self.script = normalize_line_endings(script)
        self.registry = registry

    @classmethod
    def from_file(cls, path: Path, registry: "ObjectRegistry") -> "ScriptMiner":
        return cls(MapFileLoader.read_script(path), registry)

    # Capability set

    @abstractmethod
    def get_patch_data(self) -> RawPatchData:
        """Mine every id list the race assembly needs."""

    @abstractmethod
    def get_bonus_unit(self, bonus_id: str) -> Optional[str]:
        """Unit that replaces a race unit when the bonus is picked."""

    @abstractmethod
    def get_hero_items(self, hero_id: str) -> Optional[Dict[str, int]]:
        """Artifacts a hero is rewarded with, mapped to the hero level granting them."""

    @abstractmethod
    def get_unit_requires(self, unit_id: str) -> List[str]:
        """Upgrade ids the script requires before the unit is trained."""

    # Helpers

    def block(self, start_index: int, text: Optional[str] = None) -> str:
        return extract_conditional_block(self.script if text is None else text, start_index)

    def find_block(self, pattern: str, flags: int = re.MULTILINE, text: Optional[str] = None) -> Optional[str]:
        """Return the conditional block opened at the first match of `pattern`."""
        source = self.script if text is None else text
        match = re.search(pattern, source, flags)
        if match is None:
            return None
        try:
            return extract_conditional_block(source, match.start())
        except PreconditionError:
            self.logger.debug(f"Match for {pattern!r} is not at a conditional keyword")
            return None

    def is_visible_ability(self, ability_id: str) -> bool:
        """Ability exists, has art and is not a placeholder."""
        ability = self.registry.abilities.get_by_id(ability_id)
        if ability is None or not ability.get_value("art"):
            return False
        description = ability.get_raw("ub1")
        return not (isinstance(description, str) and PLACEHOLDER_PATTERN.search(description))

    def field_list(self, category: str, entity_id: Optional[str], key: str) -> Optional[List[str]]:
        """Comma separated id list of an entity field, or None if entity or field is absent."""
        entity = self.registry.parser_for(category).get_by_id(entity_id)
        if entity is None:
            return None
        return entity.get_array(key)


def alternation(names: Iterable[str]) -> str:
    """Regex alternation matching any of `names` literally."""
    return "|".join(f"(?:{re.escape(name)})" for name in names)
