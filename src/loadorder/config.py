"""Loader settings.

Settings are read from ``LOADORDER_``-prefixed environment variables
and may be overridden from a YAML file::

    # loadorder.yaml
    host_version: "1.29.1"
    log_level: INFO
    disabled_ids:
      - BrokenPlugin

Usage
-----
::

    from loadorder.config import LoaderSettings

    settings = LoaderSettings.from_yaml("loadorder.yaml")
"""
from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


class LoaderSettings(BaseSettings):
    """Configuration for a resolution run."""

    model_config = SettingsConfigDict(
        env_prefix="LOADORDER_",
        case_sensitive=False,
        extra="ignore",
    )

    # Host version plugins are checked against (``gameVersion``).
    host_version: str | None = None
    log_level: str = "WARNING"

    # Upper bound on feature negotiation passes.
    max_feature_passes: int = Field(default=64, ge=1)
    feature_entrypoint_group: str = "loadorder.features"

    # Identities disabled before the run starts.
    disabled_ids: list[str] = Field(default_factory=list)

    @field_validator("log_level")
    @classmethod
    def _check_log_level(cls, value: str) -> str:
        level = value.upper()
        if level not in _LOG_LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(_LOG_LEVELS)}")
        return level

    @classmethod
    def from_yaml(cls, path: str | Path, **overrides: Any) -> LoaderSettings:
        """Load settings from a YAML file.

        Values from the file take precedence over environment variables;
        keyword ``overrides`` take precedence over both.

        Raises
        ------
        OSError
            If the file cannot be read.
        ValueError
            If the file is not a YAML mapping.
        """
        data = yaml.safe_load(Path(path).read_text(encoding="utf-8")) or {}
        if not isinstance(data, dict):
            raise ValueError(f"{path}: settings file must contain a mapping")
        data.update(overrides)
        return cls(**data)
