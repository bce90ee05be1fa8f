"""Tests for the map file loaders."""

from pathlib import Path

import orjson

from sc_datamine.game_data.loaders import MapFileLoader, normalize_line_endings
from sc_datamine.game_data.models import BACKLINK_KEY, RawField


class TestObjectTable:
    """Test decoded object table reading."""

    def test_reads_original_and_custom(self, tmp_path: Path) -> None:
        """Test prefixes are stripped and custom entities get a backlink."""
        path = tmp_path / "war3map.w3u.json"
        path.write_bytes(
            orjson.dumps(
                {
                    "original": {"hfoo": [{"id": "unam", "type": "string", "level": 0, "value": "Footman"}]},
                    "custom": {"h001:hfoo": [{"id": "uhpm", "type": "int", "level": 0, "value": 700}]},
                }
            )
        )
        table = MapFileLoader.read_object_table(path)
        assert table["hfoo"] == [RawField("nam", 0, "Footman")]
        assert table["h001"] == [RawField("hpm", 0, 700), RawField(BACKLINK_KEY, 0, "hfoo")]


class TestLocalization:
    """Test map string table reading."""

    def test_reads_string_blocks(self, tmp_path: Path) -> None:
        """Test STRING blocks are keyed by number without leading zeros."""
        path = tmp_path / "war3map.wts"
        path.write_text(
            "STRING 7\r\n// Units: h001\r\n{\r\nFootman\r\n}\r\n\r\nSTRING 012\r\n{\r\nTwo\r\nlines\r\n}\r\n",
            encoding="utf-8",
        )
        strings = MapFileLoader.read_localization(path)
        assert strings == {"7": "Footman", "12": "Two\nlines"}

    def test_missing_file_is_empty(self, tmp_path: Path) -> None:
        """Test a missing string table yields no strings."""
        assert MapFileLoader.read_localization(tmp_path / "war3map.wts") == {}


class TestSkinData:
    """Test INI-style profile reading."""

    def test_keys_lowercased_and_filtered(self, tmp_path: Path) -> None:
        """Test keys are lower-cased and filtered to the requested ones."""
        path = tmp_path / "unitskin.txt"
        path.write_text(
            "// header comment\n[hfoo]\nArt=Icon.blp\nfile=units\\footman.mdl\nSpeed=270\n",
            encoding="utf-8",
        )
        table = MapFileLoader.read_skin_data(path, ("art", "file"))
        assert table == {"hfoo": {"art": "Icon.blp", "file": "units\\footman.mdl"}}


class TestScript:
    """Test script reading."""

    def test_line_endings_normalized(self, tmp_path: Path) -> None:
        """Test CRLF and CR become LF."""
        path = tmp_path / "war3map.j"
        path.write_bytes(b"a\r\nb\rc\n")
        assert MapFileLoader.read_script(path) == "a\nb\nc\n"

    def test_normalize_line_endings(self) -> None:
        """Test normalization leaves LF untouched."""
        assert normalize_line_endings("x\r\ny\n") == "x\ny\n"


class TestSideTableFile:
    """Test SYLK side table reading."""

    def test_escaped_semicolons(self, tmp_path: Path) -> None:
        """Test doubled semicolons inside a cell value stay part of the value."""
        path = tmp_path / "unitweapons.slk"
        path.write_text(
            "ID;PWXL;N;E\n"
            'C;Y1;X1;K"unitWeapID"\n'
            'C;X2;K"comment"\n'
            'C;Y2;X1;K"hfoo"\n'
            'C;X2;K"melee;;ground"\n'
            "E\n",
            encoding="utf-8",
        )
        table = MapFileLoader.read_side_table(path, "unitWeapID")
        assert table == {"hfoo": {"unitWeapID": "hfoo", "comment": "melee;ground"}}


class TestMiscData:
    """Test gameplay constants reading."""

    def test_reads_key_values(self, tmp_path: Path) -> None:
        """Test lines without '=' are skipped and the last assignment wins."""
        path = tmp_path / "war3mapMisc.txt"
        path.write_text(
            "[Misc]\r\nDamageBonusHero=1.00,1.00\r\nDamageBonusHero=0.50\r\nGoldTextHeight=0.024\r\n",
            encoding="utf-8",
        )
        assert MapFileLoader.read_misc_data(path) == {"DamageBonusHero": "0.50", "GoldTextHeight": "0.024"}

    def test_missing_file(self, tmp_path: Path) -> None:
        """Test a missing file is reported as None."""
        assert MapFileLoader.read_misc_data(tmp_path / "war3mapMisc.txt") is None
