"""Tests for storage configuration loading.

These tests verify that:
1. StorageConfig rejects unusable data file paths and encodings
2. Environment variables populate the storage configuration
3. JSON configuration files are loaded and validated
"""

import json
import os
from pathlib import Path
from unittest.mock import patch

import pytest
from pydantic import ValidationError as PydanticValidationError

from src.infrastructure.config_manager import (
    DEFAULT_DATA_FILE,
    ConfigManager,
    StorageConfig,
    get_storage_config,
)
from src.infrastructure.settings import APP_NAME, Settings

CR_VARIABLES = ("CR_DATA_FILE", "CR_JSON_INDENT", "CR_FILE_ENCODING", "CR_APP_NAME", "CR_LOG_LEVEL", "CR_LOG_JSON")


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Remove CR_* variables so each test starts from the defaults."""
    for name in CR_VARIABLES:
        monkeypatch.delenv(name, raising=False)


class TestStorageConfig:
    """Test StorageConfig validation."""

    def test_defaults(self):
        config = StorageConfig()
        assert config.data_file == Path(DEFAULT_DATA_FILE)
        assert config.indent == 2
        assert config.encoding == "utf-8"

    def test_string_path_is_converted(self):
        assert StorageConfig(data_file="records/clinic.json").data_file == Path("records/clinic.json")

    @pytest.mark.parametrize("data_file", ["", "patients.csv", "patients"])
    def test_invalid_data_file(self, data_file):
        with pytest.raises(PydanticValidationError):
            StorageConfig(data_file=data_file)

    def test_directory_is_rejected(self, tmp_path):
        directory = tmp_path / "store.json"
        directory.mkdir()
        with pytest.raises(PydanticValidationError) as exc_info:
            StorageConfig(data_file=directory)
        assert "directory" in str(exc_info.value)

    def test_uppercase_suffix_is_accepted(self):
        assert StorageConfig(data_file="PATIENTS.JSON").data_file.name == "PATIENTS.JSON"

    @pytest.mark.parametrize("indent", [-1, 9])
    def test_indent_out_of_range(self, indent):
        with pytest.raises(PydanticValidationError):
            StorageConfig(indent=indent)

    def test_unknown_encoding(self):
        with pytest.raises(PydanticValidationError) as exc_info:
            StorageConfig(encoding="no-such-codec")
        assert "Unknown encoding" in str(exc_info.value)


class TestConfigManagerFromEnvironment:
    """Test loading configuration from environment variables."""

    def test_defaults_without_variables(self):
        config = ConfigManager.from_environment().get_storage_config()
        assert config.data_file == Path(DEFAULT_DATA_FILE)

    def test_variables_populate_storage_config(self, tmp_path):
        with patch.dict(os.environ, {
            "CR_DATA_FILE": str(tmp_path / "clinic.json"),
            "CR_JSON_INDENT": "4",
            "CR_FILE_ENCODING": "utf-16",
        }):
            manager = ConfigManager.from_environment()

        config = manager.get_storage_config()
        assert config.data_file == tmp_path / "clinic.json"
        assert config.indent == 4
        assert config.encoding == "utf-16"
        assert manager.get("storage.indent") == 4

    def test_non_integer_indent(self):
        with patch.dict(os.environ, {"CR_JSON_INDENT": "wide"}):
            with pytest.raises(ValueError) as exc_info:
                ConfigManager.from_environment()
        assert "CR_JSON_INDENT must be an integer" in str(exc_info.value)

    def test_storage_config_is_cached(self):
        manager = ConfigManager.from_environment()
        assert manager.get_storage_config() is manager.get_storage_config()

    def test_convenience_function(self, tmp_path):
        with patch.dict(os.environ, {"CR_DATA_FILE": str(tmp_path / "other.json")}):
            assert get_storage_config().data_file == tmp_path / "other.json"


class TestConfigManagerFromFile:
    """Test loading configuration from a JSON file."""

    def test_load_file(self, tmp_path):
        config_file = tmp_path / "config.json"
        config_file.write_text(json.dumps({"storage": {"data_file": "a/b.json", "indent": 0}}), encoding="utf-8")

        config = ConfigManager.from_file(str(config_file)).get_storage_config()
        assert config.data_file == Path("a/b.json")
        assert config.indent == 0

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            ConfigManager.from_file(str(tmp_path / "missing.json"))

    def test_invalid_json(self, tmp_path):
        config_file = tmp_path / "config.json"
        config_file.write_text("{oops", encoding="utf-8")
        with pytest.raises(ValueError) as exc_info:
            ConfigManager.from_file(str(config_file))
        assert "Invalid JSON" in str(exc_info.value)

    def test_non_object_json(self, tmp_path):
        config_file = tmp_path / "config.json"
        config_file.write_text("[1, 2]", encoding="utf-8")
        with pytest.raises(ValueError):
            ConfigManager.from_file(str(config_file))

    def test_missing_storage_section_uses_defaults(self, tmp_path):
        config_file = tmp_path / "config.json"
        config_file.write_text("{}", encoding="utf-8")
        assert ConfigManager.from_file(str(config_file)).get_storage_config() == StorageConfig()


class TestConfigManagerGet:
    """Test dot-notation lookups."""

    def test_nested_key(self):
        manager = ConfigManager({"storage": {"data_file": "x.json"}})
        assert manager.get("storage.data_file") == "x.json"

    def test_missing_key_returns_default(self):
        manager = ConfigManager({"storage": {}})
        assert manager.get("storage.indent", 2) == 2
        assert manager.get("storage.data_file.name", "none") == "none"


class TestSettings:
    """Test application settings."""

    def test_defaults(self):
        settings = Settings()
        assert settings.app_name == APP_NAME
        assert settings.log_level == "WARNING"
        assert settings.log_json is False

    def test_environment_overrides(self, tmp_path):
        with patch.dict(os.environ, {
            "CR_APP_NAME": "Test Clinic",
            "CR_LOG_LEVEL": "DEBUG",
            "CR_LOG_JSON": "TRUE",
            "CR_DATA_FILE": str(tmp_path / "settings.json"),
        }):
            settings = Settings()
            assert settings.storage_config.data_file == tmp_path / "settings.json"

        assert settings.app_name == "Test Clinic"
        assert settings.log_level == "DEBUG"
        assert settings.log_json is True
