"""
Read-only query surface over one entity's raw records.
"""

from typing import Any, Callable, List, Optional, Sequence, Tuple, TYPE_CHECKING

from .models import RawField, BACKLINK_KEY, LEVELS_KEY

if TYPE_CHECKING:
    from .categories import CategoryParser
    from .formatting import TextFormatter


def stringify(value: Any) -> str:
    """Render a raw value as text; integral floats lose their '.0'."""
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


class EntityView:
    """Thin projection of one entity's records plus its owning parser.

    Lookups scan the records in order and the first match wins, so
    records coming from a variant (skin) table shadow base records.
    The view never copies or mutates the records.
    """

    def __init__(self, records: Sequence[RawField], parser: "CategoryParser", entity_id: str):
        self._records = records
        self.parser = parser
        self.id = entity_id

    def __repr__(self) -> str:
        return f"EntityView({self.parser.category}:{self.id}, {len(self._records)} records)"

    @property
    def records(self) -> Tuple[RawField, ...]:
        """Records in lookup order."""
        return tuple(self._records)

    @property
    def formatter(self) -> "TextFormatter":
        return self.parser.formatter

    @property
    def backlink_id(self) -> Optional[str]:
        """Id of the original entity this one was derived from, if any."""
        value = self.get_raw(BACKLINK_KEY)
        return stringify(value) or None

    def _find(self, key: str, level: Optional[int]) -> Optional[RawField]:
        for record in self._records:
            if record.key == key and (level is None or record.level == level):
                return record
        return None

    def has_key(self, key: str) -> bool:
        """Check whether any record carries the key."""
        return self._find(key, None) is not None

    def get_value(self, key: str, level: Optional[int] = None) -> Any:
        """Return the first matching value passed through the display formatting.

        Args:
            key: Field key (e.g. 'nam', 'ub1')
            level: Exact level to match, or None for any level

        Returns:
            Formatted value, or None when no record matches
        """
        record = self._find(key, level)
        if record is None:
            return None
        return self.formatter.format(record.value)

    def get_raw(self, key: str, level: Optional[int] = None) -> Any:
        """Return the first matching value with control codes stripped."""
        record = self._find(key, level)
        if record is None:
            return None
        return self.formatter.strip(record.value)

    def get_array(self, key: str, level: Optional[int] = None) -> Optional[List[str]]:
        """Split the raw value on commas; None when no token is left."""
        text = stringify(self.get_raw(key, level))
        tokens = [token.strip() for token in text.split(",")]
        tokens = [token for token in tokens if token]
        return tokens or None

    def get_all_values(
        self, key: str, predicate: Optional[Callable[[RawField], bool]] = None
    ) -> List[Any]:
        """Return the formatted values of every record with the key, by ascending level."""
        matching = sorted(
            (record for record in self._records if record.key == key),
            key=lambda record: record.level,
        )
        if predicate is not None:
            matching = [record for record in matching if predicate(record)]
        return [self.formatter.format(record.value) for record in matching]

    def get_max_level(self) -> int:
        """Return the explicit level count, else the highest level seen.

        Level numbering may be sparse or start above 1, so this is the
        literal maximum and not a count of distinct levels.
        """
        value = self.get_value(LEVELS_KEY)
        if isinstance(value, (int, float)) and not isinstance(value, bool) and value:
            return int(value)
        return max((record.level for record in self._records), default=0)

    def get_name(self, level: Optional[int] = None) -> Any:
        """Display name as decided by the owning category."""
        return self.parser.get_display_name(self, level)

    def get_icon(self, level: Optional[int] = None) -> Optional[str]:
        """Icon path as decided by the owning category."""
        return self.parser.get_icon(self, level)

    def get_icons(self) -> List[str]:
        """Distinct icons over all levels, in level order."""
        icons: List[str] = []
        for level in range(1, self.get_max_level() + 1):
            icon = self.get_icon(level)
            if icon and icon not in icons:
                icons.append(icon)
        return icons
