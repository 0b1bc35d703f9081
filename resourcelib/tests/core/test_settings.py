"""Tests for settings and configuration loading."""

import json

import pytest
import yaml
from pydantic import ValidationError

from resourcelib.core.settings.settings import ResourcelibSettings, load_settings


class TestResourcelibSettings:
    """Test ResourcelibSettings validation."""

    def test_defaults(self, monkeypatch):
        """Test default values."""
        for var in ("RESOURCELIB_PAGINATE_DEFAULT", "RESOURCELIB_PAGINATE_MAX", "RESOURCELIB_LOG_LEVEL"):
            monkeypatch.delenv(var, raising=False)
        settings = ResourcelibSettings()

        assert settings.paginate_enabled is True
        assert settings.paginate_default == 10
        assert settings.paginate_max == 50
        assert settings.id_field == "id"
        assert settings.log_level == "INFO"

    def test_log_level_normalized(self):
        """Test log level is upper-cased."""
        settings = ResourcelibSettings(log_level="debug")

        assert settings.log_level == "DEBUG"

    def test_invalid_log_level(self):
        """Test unknown log levels are rejected."""
        with pytest.raises(ValidationError):
            ResourcelibSettings(log_level="LOUD")

    def test_non_positive_page_size(self):
        """Test page sizes must be positive."""
        with pytest.raises(ValidationError):
            ResourcelibSettings(paginate_default=0)

    def test_default_exceeding_max(self):
        """Test default page size cannot exceed the maximum."""
        with pytest.raises(ValidationError):
            ResourcelibSettings(paginate_default=100, paginate_max=10)

    def test_environment_variables(self, monkeypatch):
        """Test values are read from prefixed environment variables."""
        monkeypatch.setenv("RESOURCELIB_PAGINATE_DEFAULT", "5")
        monkeypatch.setenv("RESOURCELIB_PAGINATE_MAX", "20")

        settings = ResourcelibSettings()

        assert settings.paginate_default == 5
        assert settings.paginate_max == 20


class TestLoadSettings:
    """Test load_settings with configuration files."""

    def test_no_file(self):
        """Test defaults without a file."""
        settings = load_settings(paginate_default=3)

        assert settings.paginate_default == 3

    def test_missing_file(self, tmp_path):
        """Test a missing file falls back to defaults."""
        settings = load_settings(tmp_path / "missing.yaml", paginate_max=40)

        assert settings.paginate_max == 40

    def test_yaml_section(self, tmp_path):
        """Test reading the resourcelib section of a YAML file."""
        path = tmp_path / "config.yaml"
        path.write_text(yaml.safe_dump({"resourcelib": {"paginate_default": 7, "paginate_max": 30}}))

        settings = load_settings(path)

        assert settings.paginate_default == 7
        assert settings.paginate_max == 30

    def test_json_top_level(self, tmp_path):
        """Test reading top-level fields from a JSON file."""
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"id_field": "_id", "paginate_enabled": False}))

        settings = load_settings(path)

        assert settings.id_field == "_id"
        assert settings.paginate_enabled is False

    def test_overrides_win(self, tmp_path):
        """Test keyword overrides take precedence over the file."""
        path = tmp_path / "config.yml"
        path.write_text(yaml.safe_dump({"paginate_default": 7}))

        settings = load_settings(path, paginate_default=2)

        assert settings.paginate_default == 2

    def test_non_mapping_file(self, tmp_path):
        """Test a file that does not hold a mapping is rejected."""
        path = tmp_path / "config.yaml"
        path.write_text(yaml.safe_dump([1, 2, 3]))

        with pytest.raises(ValueError):
            load_settings(path)
