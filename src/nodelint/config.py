"""Configuration management for nodelint using Pydantic models."""

import json
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from nodelint.errors import NodelintError

CONFIG_FILE_NAME = ".nodelint.json"


class ConfigError(NodelintError, ValueError):
    """Raised when a configuration file cannot be loaded or is invalid."""


class ReportFormat(str, Enum):
    """Report format types."""
    TEXT = "text"
    JSON = "json"


class LogLevel(str, Enum):
    """Logging levels."""
    ERROR = "error"
    WARN = "warn"
    INFO = "info"
    DEBUG = "debug"


class ScanConfig(BaseModel):
    """Scanning configuration section."""
    exclude: list[str] = Field(default_factory=lambda: [
        "node_modules/**",
        "test/**",
        "tests/**",
        "examples/**",
    ])

    model_config = ConfigDict(populate_by_name=True)


class RulesConfig(BaseModel):
    """Rule catalog configuration section."""
    disabled: list[str] = Field(default_factory=list)
    strict: bool = False
    script_suffixes: list[str] = Field(alias="scriptSuffixes", default_factory=lambda: [
        ".js", ".mjs", ".cjs"
    ])
    device_module: str = Field(alias="deviceModule", default="nodered")
    manifest_include_marker: str = Field(alias="manifestIncludeMarker", default="moddable_manifest")
    require_locale: bool = Field(alias="requireLocale", default=True)

    @field_validator("script_suffixes")
    @classmethod
    def validate_script_suffixes(cls, v):
        for suffix in v:
            if not suffix.startswith("."):
                raise ValueError(f"script suffix must start with '.', got: {suffix}")
        return v

    @field_validator("device_module")
    @classmethod
    def validate_device_module(cls, v):
        if not v.strip():
            raise ValueError("deviceModule must not be empty")
        return v.strip()

    model_config = ConfigDict(populate_by_name=True)


class OutputConfig(BaseModel):
    """Output configuration section."""
    format: ReportFormat = ReportFormat.TEXT

    model_config = ConfigDict(use_enum_values=True)


class ConcurrencyConfig(BaseModel):
    """Concurrency configuration section."""
    max_workers: int = Field(alias="maxWorkers", default=4)

    @field_validator("max_workers")
    @classmethod
    def validate_max_workers(cls, v):
        if v < 1:
            raise ValueError("max_workers must be >= 1")
        return v

    model_config = ConfigDict(populate_by_name=True)


class LoggingConfig(BaseModel):
    """Logging configuration section."""
    level: LogLevel = LogLevel.WARN

    model_config = ConfigDict(use_enum_values=True)


class NodelintConfig(BaseModel):
    """Complete nodelint configuration model."""
    scan: ScanConfig = Field(default_factory=ScanConfig)
    rules: RulesConfig = Field(default_factory=RulesConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)
    concurrency: ConcurrencyConfig = Field(default_factory=ConcurrencyConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = ConfigDict(extra="forbid")


def load_config(config_path: str | Path | None = None, start_dir: Path | None = None) -> NodelintConfig:
    """Load configuration from file with fallback to defaults.

    Args:
        config_path: Optional path to configuration file. If None, searches
                    start_dir (default: current directory) and parents for .nodelint.json

    Returns:
        NodelintConfig: Loaded and validated configuration

    Raises:
        ConfigError: If the config file is missing, not JSON or invalid
    """
    if config_path is None:
        config_path = find_config_file(start_dir)
        if config_path is None:
            return NodelintConfig()
    else:
        config_path = Path(config_path)
        if not config_path.exists():
            raise ConfigError(f"Config file not found: {config_path}")

    try:
        with open(config_path, encoding="utf-8") as f:
            config_data = json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigError(f"Invalid JSON in config file {config_path}: {e}") from e
    except OSError as e:
        raise ConfigError(f"Failed to read config file {config_path}: {e}") from e

    if not isinstance(config_data, dict):
        raise ConfigError(f"Config file {config_path} must contain a JSON object")

    try:
        return NodelintConfig(**config_data)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration in {config_path}: {e}") from e


def find_config_file(start_dir: Path | None = None) -> Path | None:
    """Find .nodelint.json configuration file by searching up directory tree.

    Args:
        start_dir: Directory to start search from (default: current directory)

    Returns:
        Path to config file if found, None otherwise
    """
    if start_dir is None:
        start_dir = Path.cwd()

    current = Path(start_dir).resolve()

    while True:
        config_file = current / CONFIG_FILE_NAME
        if config_file.is_file():
            return config_file

        parent = current.parent
        if parent == current:  # Reached root directory
            break
        current = parent

    return None
