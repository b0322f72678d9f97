"""Configuration management for Studioplan.

This module defines the configuration schema using Pydantic settings,
supporting TOML files, environment variables, and programmatic overrides.

Configuration loading priority (highest to lowest):
1. Programmatic overrides (passed to StudioplanConfig constructor)
2. Environment variables (STUDIOPLAN_* prefix)
3. TOML configuration file
4. Default values defined in this module

Example TOML configuration:
    [storage]
    data_file = "studio.json"

    [schedule]
    upcoming_window_days = 5

Example environment variable override:
    STUDIOPLAN_STORAGE__DATA_FILE="/srv/studio/data.json"
    STUDIOPLAN_LOGGING__FORMAT=console
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import tomli
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class LoggingConfig(BaseSettings):
    """Logging configuration.

    Attributes:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        format: Log format (json or console)
        file: Optional log file path (None for stdout only)
        rotation_size_mb: Log file rotation size in megabytes
        retention_count: Number of rotated log files to keep
    """

    model_config = SettingsConfigDict(
        env_prefix="STUDIOPLAN_LOGGING__",
        extra="forbid",
    )

    level: str = Field(default="INFO")
    format: str = Field(default="json")
    file: Path | None = Field(default=None)
    rotation_size_mb: int = Field(default=10, ge=1, le=1000)
    retention_count: int = Field(default=5, ge=1, le=100)

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        """Validate log level is recognized."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"Invalid log level: {v}. Must be one of {valid_levels}")
        return v_upper

    @field_validator("format")
    @classmethod
    def validate_format(cls, v: str) -> str:
        """Validate log format is recognized."""
        valid_formats = {"json", "console"}
        v_lower = v.lower()
        if v_lower not in valid_formats:
            raise ValueError(f"Invalid log format: {v}. Must be one of {valid_formats}")
        return v_lower


class StorageConfig(BaseSettings):
    """Persistence configuration.

    Attributes:
        data_file: JSON document holding the whole studio state
    """

    model_config = SettingsConfigDict(
        env_prefix="STUDIOPLAN_STORAGE__",
        extra="forbid",
    )

    data_file: Path = Field(default=Path("studioplan-data.json"))


class ScheduleConfig(BaseSettings):
    """Read-side schedule labelling configuration.

    Attributes:
        upcoming_window_days: A stage due within this many calendar days is
            labelled "upcoming" instead of "on track"
        attention_window_days: Horizon for the dashboard's upcoming
            deadline list
    """

    model_config = SettingsConfigDict(
        env_prefix="STUDIOPLAN_SCHEDULE__",
        extra="forbid",
    )

    upcoming_window_days: int = Field(default=7, ge=0, le=90)
    attention_window_days: int = Field(default=7, ge=0, le=90)


class WebConfig(BaseSettings):
    """HTTP API configuration.

    Attributes:
        host: Bind host address
        port: Bind port number
        cors_origins: Allowed CORS origins
    """

    model_config = SettingsConfigDict(
        env_prefix="STUDIOPLAN_WEB__",
        extra="forbid",
    )

    host: str = Field(default="127.0.0.1")
    port: int = Field(default=8000, ge=1, le=65535)
    cors_origins: list[str] = Field(default_factory=lambda: ["http://localhost:3000"])


class StudioplanConfig(BaseSettings):
    """Root configuration for Studioplan.

    Aggregates all subsystem configurations. Environment variable format
    for nested config:
        STUDIOPLAN_<SECTION>__<KEY>=value
    """

    model_config = SettingsConfigDict(
        env_prefix="STUDIOPLAN_",
        env_nested_delimiter="__",
        extra="forbid",
    )

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    schedule: ScheduleConfig = Field(default_factory=ScheduleConfig)
    web: WebConfig = Field(default_factory=WebConfig)


def load_config(config_path: Path | None = None) -> StudioplanConfig:
    """Load configuration from TOML file with environment variable overrides.

    Configuration search order (first found is used):
    1. config_path if explicitly provided
    2. ./studioplan.toml (current directory)
    3. ~/.config/studioplan/config.toml (user config directory)

    Args:
        config_path: Explicit path to TOML config file. If None, searches
                    default locations.

    Returns:
        StudioplanConfig: Fully resolved configuration instance.

    Raises:
        FileNotFoundError: If config_path is explicitly provided but doesn't exist.
        ValueError: If TOML file contains invalid configuration.
    """
    toml_data: dict[str, Any] = {}

    if config_path is not None:
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")
        selected_path: Path | None = config_path
    else:
        search_paths = [
            Path.cwd() / "studioplan.toml",
            Path.home() / ".config" / "studioplan" / "config.toml",
        ]
        selected_path = None
        for path in search_paths:
            if path.exists():
                selected_path = path
                break

    if selected_path is not None:
        with open(selected_path, "rb") as f:
            toml_data = tomli.load(f)

    # Pydantic overlays environment variables on top of the TOML values
    try:
        return StudioplanConfig(**toml_data)
    except Exception as e:
        if selected_path:
            raise ValueError(
                f"Invalid configuration in {selected_path}: {e}"
            ) from e
        else:
            raise ValueError(f"Invalid configuration: {e}") from e
