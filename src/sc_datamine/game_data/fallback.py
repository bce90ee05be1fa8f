"""
Two-tier field resolution: entity record first, side table second.

Many numeric attributes are only present in the object table for
entities the map modified; unmodified entities fall back to the
spreadsheet baseline of the game.
"""

import logging
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, TYPE_CHECKING

from .loaders import MapFileLoader
from .models import SideRow

if TYPE_CHECKING:
    from .entity import EntityView

logger = logging.getLogger(__name__)


class SideTable:
    """Read-only spreadsheet rows keyed by entity id."""

    def __init__(self, rows: Optional[Mapping[str, SideRow]] = None, name: str = ""):
        self._rows: Dict[str, SideRow] = dict(rows or {})
        self.name = name

    def __len__(self) -> int:
        return len(self._rows)

    def __contains__(self, entity_id: object) -> bool:
        return entity_id in self._rows

    def row(self, entity_id: str) -> Optional[SideRow]:
        return self._rows.get(entity_id)

    def lookup(self, entity_id: str, column: str) -> Any:
        """Return a column value of a row, or None if row or column is absent."""
        row = self._rows.get(entity_id)
        if row is None:
            return None
        return row.get(column)

    @classmethod
    def from_file(cls, path: Optional[Path], id_column: str) -> "SideTable":
        """Load a side table; a missing file gives an empty table."""
        if path is None or not path.exists():
            logger.warning(f"Side table not found, fallbacks disabled: {path}")
            return cls(name=path.name if path else "")
        return cls(MapFileLoader.read_side_table(path, id_column), name=path.name)


def resolve(entity: "EntityView", key: str, side_table: SideTable, side_key: str) -> Any:
    """Resolve a field from the entity, else from the side table.

    The side table is consulted by the entity's own id first, then by
    its backlink id.

    Args:
        entity: Entity to resolve the field for
        key: Field key in the object table
        side_table: Spreadsheet baseline
        side_key: Column name in the side table

    Returns:
        The resolved value, or None when neither source defines it
    """
    value = entity.get_raw(key)
    if value is not None:
        return value

    for row_id in (entity.id, entity.backlink_id):
        if not row_id:
            continue
        value = side_table.lookup(row_id, side_key)
        if value is not None:
            return value
    return None
