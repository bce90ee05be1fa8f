"""Basic unit tests for sc_datamine modules."""

from pathlib import Path


class TestPackage:
    """Test the package surface."""

    def test_public_names(self) -> None:
        """Test the service and errors are importable from the package."""
        import sc_datamine

        assert sc_datamine.__version__
        assert sc_datamine.DataMineService is not None
        assert issubclass(sc_datamine.MissingLinkageError, sc_datamine.DataMineError)


class TestSettingsInitialization:
    """Test settings initialization and basic operations."""

    def test_app_settings_init(self, settings_file: Path) -> None:
        """Test AppSettings can be initialized over an INI file."""
        from sc_datamine.settings import AppSettings

        settings_obj = AppSettings(settings_file=settings_file)
        assert settings_obj is not None
        assert settings_obj.get_settings_file_path().endswith("sc_datamine.ini")

    def test_app_settings_validation(self, settings_file: Path) -> None:
        """Test settings validation returns result."""
        from sc_datamine.settings import AppSettings

        validation = AppSettings(settings_file=settings_file).validate()
        assert validation is not None


class TestGameDataModels:
    """Test game data model creation."""

    def test_raw_field_creation(self) -> None:
        """Test RawField can be created from a decoder record."""
        from sc_datamine.game_data.models import RawField

        field = RawField.from_dict({"id": "nam", "level": 0, "value": "Footman"})
        assert field.key == "nam"
        assert field.value == "Footman"

    def test_base_object_export(self) -> None:
        """Test BaseObject exports to a plain dict."""
        from sc_datamine.game_data.objects import BaseObject

        obj = BaseObject(type="unit", id="h001", name="Knight", description="", hotkey="K")
        exported = obj.to_dict()
        assert exported["id"] == "h001"
        assert exported["hotkey"] == "K"
