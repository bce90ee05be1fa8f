"""
File loaders for decoded map data.

Reads the decoded object tables, the map string table, INI-style
profile (skin) files, spreadsheet side tables and the script text.
JSON is parsed with orjson.
"""

import configparser
import logging
import re
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

import orjson

from .models import (
    EntityRawTable,
    LocalizationTable,
    RawField,
    SideRow,
    SkinTable,
    BACKLINK_KEY,
    FIELD_PREFIX_LENGTH,
)

logger = logging.getLogger(__name__)

STRING_BLOCK_PATTERN = re.compile(
    r"^STRING\s+(?P<number>\d+)\s*\n(?:\s*//[^\n]*\n)*\s*\{\n?(?P<text>.*?)\n?\}",
    re.MULTILINE | re.DOTALL,
)


def normalize_line_endings(text: str) -> str:
    """Convert \\r\\n and lone \\r to \\n."""
    return re.sub(r"\r\n|\r", "\n", text)


class MapFileLoader:
    """Loads and parses the raw inputs of one extraction pass."""

    @staticmethod
    def read_object_table(path: Path) -> EntityRawTable:
        """Read a decoded object table into an id -> records mapping.

        The decoder emits {"original": {id: [...]}, "custom": {"new:orig": [...]}}
        with records shaped {id, type, level, column, value}. Field ids lose
        their category prefix; a derived entity gets a backlink record
        naming the entity it was copied from.

        Args:
            path: Path to the decoded JSON file

        Returns:
            Mapping of entity id to its ordered records
        """
        with path.open("rb") as f:  # orjson works with bytes
            data = orjson.loads(f.read())

        merged: Dict[str, List[Dict[str, Any]]] = {
            **(data.get("original") or {}),
            **(data.get("custom") or {}),
        }

        table: EntityRawTable = {}
        for key, raw_records in merged.items():
            entity_id, _, original_id = key.partition(":")
            records = [
                RawField.from_dict(
                    {**raw, "id": str(raw["id"])[FIELD_PREFIX_LENGTH:]}
                )
                for raw in raw_records
            ]
            if original_id:
                records.append(RawField(key=BACKLINK_KEY, level=0, value=original_id))
            table[entity_id] = records

        logger.debug(f"Read {len(table)} entities from {path.name}")
        return table

    @staticmethod
    def read_localization(path: Path) -> LocalizationTable:
        """Read the map string table; a missing file yields an empty table."""
        if not path.exists():
            logger.info(f"No string table at {path}, string references resolve to ''")
            return {}

        text = normalize_line_endings(path.read_text(encoding="utf-8-sig", errors="replace"))
        strings: LocalizationTable = {
            str(int(match.group("number"))): match.group("text")
            for match in STRING_BLOCK_PATTERN.finditer(text)
        }
        logger.debug(f"Read {len(strings)} strings from {path.name}")
        return strings

    @staticmethod
    def read_skin_data(path: Path, keys: Optional[Iterable[str]] = None) -> SkinTable:
        """Read an INI-style profile file into id -> {key: value}.

        Keys are lower-cased and, when `keys` is given, filtered to it.
        Unreadable files are logged and yield an empty table.
        """
        if not path.exists():
            logger.warning(f"Profile file not found: {path}")
            return {}

        wanted = {key.lower() for key in keys} if keys is not None else None
        text = normalize_line_endings(path.read_text(encoding="utf-8-sig", errors="replace"))
        # Drop anything before the first section header
        first_section = text.find("[")
        text = text[first_section:] if first_section >= 0 else ""

        parser = configparser.ConfigParser(
            interpolation=None,
            strict=False,
            allow_no_value=True,
            delimiters=("=",),
            comment_prefixes=("//", ";"),
        )
        try:
            parser.read_string(text, source=str(path))
        except configparser.Error as e:
            logger.error(f"Error reading profile file {path}: {e}")
            return {}

        table: SkinTable = {}
        for section in parser.sections():
            entries = {
                key: value
                for key, value in parser.items(section)
                if value is not None and (wanted is None or key in wanted)
            }
            table[section] = entries
        return table

    @staticmethod
    def read_side_table(path: Path, id_column: str) -> Dict[str, SideRow]:
        """Read a spreadsheet side table (SYLK or JSON) keyed by `id_column`."""
        if path.suffix.lower() == ".slk":
            rows = _parse_sylk(path.read_text(encoding="utf-8", errors="replace"))
        else:
            with path.open("rb") as f:
                data = orjson.loads(f.read())
            rows = list(data.values()) if isinstance(data, dict) else list(data)

        table: Dict[str, SideRow] = {}
        for row in rows:
            row_id = row.get(id_column)
            if row_id is None:
                continue
            table[str(row_id)] = row
        logger.debug(f"Read {len(table)} rows from {path.name}")
        return table

    @staticmethod
    def read_misc_data(path: Path) -> Optional[Dict[str, str]]:
        """Read the gameplay constants file as key -> raw value, None when missing."""
        if not path.exists():
            logger.warning(f"Gameplay constants file not found: {path}")
            return None

        text = normalize_line_endings(path.read_text(encoding="utf-8-sig", errors="replace"))
        constants: Dict[str, str] = {}
        for line in text.split("\n"):
            key, separator, value = line.partition("=")
            if separator:
                constants[key.strip()] = value.split("=")[0].strip()
        logger.debug(f"Read {len(constants)} gameplay constants from {path.name}")
        return constants

    @staticmethod
    def read_script(path: Path) -> str:
        """Read the decompiled script with line endings normalized."""
        return normalize_line_endings(path.read_text(encoding="utf-8", errors="replace"))


def _sylk_value(content: str) -> Any:
    if content.startswith('"'):
        return content[1:-1] if content.endswith('"') and len(content) > 1 else content[1:]
    try:
        return int(content)
    except ValueError:
        pass
    try:
        return float(content)
    except ValueError:
        return content


def _split_sylk_record(line: str) -> List[str]:
    """Split a record on `;`, where `;;` stands for a literal semicolon."""
    fields: List[str] = []
    current: List[str] = []
    index = 0
    while index < len(line):
        char = line[index]
        if char == ";" and line.startswith(";;", index):
            current.append(";")
            index += 2
            continue
        if char == ";":
            fields.append("".join(current))
            current = []
        else:
            current.append(char)
        index += 1
    fields.append("".join(current))
    return fields


def _parse_sylk(text: str) -> List[SideRow]:
    """Parse SYLK cell records into header-keyed rows (first row is the header)."""
    cells: Dict[int, Dict[int, Any]] = {}
    x = y = 0
    for line in normalize_line_endings(text).split("\n"):
        parts = _split_sylk_record(line)
        record_type = parts[0]
        if record_type not in ("C", "F"):
            continue
        value = None
        for part in parts[1:]:
            if not part:
                continue
            tag, content = part[0], part[1:]
            if tag == "X":
                x = int(content)
            elif tag == "Y":
                y = int(content)
            elif tag == "K":
                value = _sylk_value(content)
        if record_type == "C" and value is not None:
            cells.setdefault(y, {})[x] = value

    if not cells:
        return []

    header_row = min(cells)
    header = {col: str(name) for col, name in cells[header_row].items()}
    return [
        {header[col]: value for col, value in cells[row].items() if col in header}
        for row in sorted(cells)
        if row != header_row
    ]
