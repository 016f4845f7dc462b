"""Unit tests for configuration management."""

import json
from pathlib import Path

import pytest
from pydantic import ValidationError

from nodelint.config import (
    CONFIG_FILE_NAME,
    ConcurrencyConfig,
    ConfigError,
    NodelintConfig,
    ReportFormat,
    RulesConfig,
    find_config_file,
    load_config,
)


class TestRulesConfig:
    """Test RulesConfig model."""

    def test_defaults(self):
        """Test default rule settings."""
        config = RulesConfig()
        assert config.disabled == []
        assert config.strict is False
        assert config.script_suffixes == [".js", ".mjs", ".cjs"]
        assert config.device_module == "nodered"
        assert config.manifest_include_marker == "moddable_manifest"
        assert config.require_locale is True

    def test_aliases(self):
        """Test camelCase keys from the config file."""
        config = RulesConfig(**{
            "scriptSuffixes": [".js"],
            "deviceModule": " mcu ",
            "requireLocale": False,
        })
        assert config.script_suffixes == [".js"]
        assert config.device_module == "mcu"
        assert config.require_locale is False

    def test_populate_by_name(self):
        """Test snake_case field names are accepted too."""
        config = RulesConfig(device_module="other")
        assert config.device_module == "other"

    def test_suffix_without_dot_rejected(self):
        """Test script suffixes must start with a dot."""
        with pytest.raises(ValidationError, match="must start with"):
            RulesConfig(scriptSuffixes=["js"])

    def test_empty_device_module_rejected(self):
        """Test device module name must not be blank."""
        with pytest.raises(ValidationError, match="deviceModule"):
            RulesConfig(deviceModule="  ")


class TestNodelintConfig:
    """Test complete NodelintConfig model."""

    def test_default_config(self):
        """Test all sections have defaults."""
        config = NodelintConfig()
        assert "node_modules/**" in config.scan.exclude
        assert config.output.format == ReportFormat.TEXT.value
        assert config.concurrency.max_workers == 4
        assert config.logging.level == "warn"

    def test_config_from_dict(self):
        """Test config creation from dictionary."""
        config = NodelintConfig(**{
            "scan": {"exclude": ["fixtures/**"]},
            "rules": {"disabled": ["P2"], "strict": True},
            "output": {"format": "json"},
            "concurrency": {"maxWorkers": 2},
            "logging": {"level": "debug"},
        })
        assert config.scan.exclude == ["fixtures/**"]
        assert config.rules.disabled == ["P2"]
        assert config.rules.strict is True
        assert config.output.format == "json"
        assert config.concurrency.max_workers == 2
        assert config.logging.level == "debug"

    def test_unknown_section_rejected(self):
        """Test unknown top-level keys are rejected."""
        with pytest.raises(ValidationError):
            NodelintConfig(**{"validation": {}})

    def test_invalid_max_workers(self):
        """Test worker count must be positive."""
        with pytest.raises(ValidationError, match="max_workers must be >= 1"):
            ConcurrencyConfig(maxWorkers=0)

    def test_invalid_format(self):
        """Test unknown output format is rejected."""
        with pytest.raises(ValidationError):
            NodelintConfig(**{"output": {"format": "xml"}})


class TestConfigLoading:
    """Test configuration file loading."""

    def test_load_explicit_file(self, tmp_path):
        """Test loading a config file by path."""
        config_file = tmp_path / "custom.json"
        config_file.write_text(json.dumps({"rules": {"disabled": ["R9"]}}), encoding="utf-8")

        config = load_config(config_file)
        assert config.rules.disabled == ["R9"]

    def test_explicit_missing_file(self, tmp_path):
        """Test explicit path that does not exist raises ConfigError."""
        with pytest.raises(ConfigError, match="Config file not found"):
            load_config(tmp_path / "missing.json")

    def test_no_file_found_gives_defaults(self, tmp_path):
        """Test defaults when no config file is found while searching."""
        config = load_config(None, start_dir=tmp_path)
        assert config == NodelintConfig()

    def test_invalid_json(self, tmp_path):
        """Test JSON syntax errors become ConfigError."""
        config_file = tmp_path / CONFIG_FILE_NAME
        config_file.write_text("{not json", encoding="utf-8")

        with pytest.raises(ConfigError, match="Invalid JSON"):
            load_config(config_file)

    def test_non_object_content(self, tmp_path):
        """Test a JSON array at the top level is rejected."""
        config_file = tmp_path / CONFIG_FILE_NAME
        config_file.write_text("[]", encoding="utf-8")

        with pytest.raises(ConfigError, match="must contain a JSON object"):
            load_config(config_file)

    def test_invalid_values(self, tmp_path):
        """Test schema violations become ConfigError."""
        config_file = tmp_path / CONFIG_FILE_NAME
        config_file.write_text(json.dumps({"concurrency": {"maxWorkers": -1}}), encoding="utf-8")

        with pytest.raises(ConfigError, match="Invalid configuration"):
            load_config(config_file)

    def test_config_error_is_value_error(self):
        """Test ConfigError can be caught as ValueError."""
        assert issubclass(ConfigError, ValueError)


class TestFindConfigFile:
    """Test config file search."""

    def test_find_in_start_dir(self, tmp_path):
        """Test finding the config file in the start directory."""
        config_file = tmp_path / CONFIG_FILE_NAME
        config_file.write_text("{}", encoding="utf-8")

        assert find_config_file(tmp_path) == config_file.resolve()

    def test_find_in_parent(self, tmp_path):
        """Test searching walks up parent directories."""
        config_file = tmp_path / CONFIG_FILE_NAME
        config_file.write_text("{}", encoding="utf-8")
        nested = tmp_path / "a" / "b"
        nested.mkdir(parents=True)

        assert find_config_file(nested) == config_file.resolve()

    def test_search_from_nested_package_root(self, tmp_path):
        """Test load_config picks up the file found above start_dir."""
        (tmp_path / CONFIG_FILE_NAME).write_text(
            json.dumps({"rules": {"requireLocale": False}}), encoding="utf-8"
        )
        package_root = tmp_path / "pkg"
        package_root.mkdir()

        config = load_config(None, start_dir=Path(package_root))
        assert config.rules.require_locale is False
