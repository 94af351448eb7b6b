"""Application configuration management.

Handles loading and validating configuration from multiple sources:
    - TOML/JSON config files
    - Environment variables (CTX_* prefix)
    - Default values

Key components:
    - ContextConfig: Main configuration model
    - load_config(): Safe config loading with fallback
    - ConfigLoadResult: Metadata about config source
"""

from __future__ import annotations

import json
import os
import tomllib
from collections.abc import Mapping
from contextlib import nullcontext
from dataclasses import dataclass
from pathlib import Path
from typing import Any
from unittest.mock import patch

from pydantic import BaseModel, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

from ctxkit.core.result import ConfigurationError

CONFIG_ENV_VAR = "CTX_CONFIG"
DEFAULT_TOTAL_BUDGET = 4000


class SectionPriorities(BaseModel):
    """Per-kind section priorities. Higher values survive overflow."""

    work_items: int = Field(default=10, description="Daily work focus.")
    pull_requests: int = Field(default=8, description="Code review urgency.")
    projects: int = Field(default=6, description="Project awareness.")


class ContextConfig(BaseSettings):
    """Context assembly configuration."""

    model_config = SettingsConfigDict(
        env_prefix="CTX_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    total_budget: int = Field(
        default=DEFAULT_TOTAL_BUDGET, description="Token capacity for the assembled context."
    )
    model: str = Field(default="claude-opus-4-5", description="Model used for token counting.")
    priorities: SectionPriorities = Field(default_factory=SectionPriorities)
    max_items: int | None = Field(
        default=None, description="Optional per-section item cap applied before rendering."
    )
    log_level: str = Field(default="INFO", description="Log level for ctx output.")

    @field_validator("total_budget")
    @classmethod
    def ensure_non_negative_budget(cls, v: int) -> int:
        if v < 0:
            raise ValueError("total_budget must be non-negative")
        return v

    @field_validator("max_items")
    @classmethod
    def ensure_positive_max_items(cls, v: int | None) -> int | None:
        if v is not None and v <= 0:
            raise ValueError("max_items must be positive when set")
        return v

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[
        PydanticBaseSettingsSource,
        PydanticBaseSettingsSource,
        PydanticBaseSettingsSource,
        PydanticBaseSettingsSource,
    ]:
        # Ensure environment variables override config file entries.
        return (env_settings, init_settings, dotenv_settings, file_secret_settings)


@dataclass
class ConfigLoadResult:
    path: Path
    file_loaded: bool
    env_overrides: set[str]
    error: str | None = None


def _resolve_config_path(config_path: Path | None, env_vars: Mapping[str, str]) -> Path:
    candidate = config_path or env_vars.get(CONFIG_ENV_VAR) or (Path.home() / ".ctxkit.toml")
    return Path(candidate).expanduser()


def _read_config_file(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}

    raw = path.read_text(encoding="utf-8")
    suffix = path.suffix.lower()
    parser = json.loads if suffix == ".json" else tomllib.loads

    try:
        data = parser(raw)
    except (json.JSONDecodeError, tomllib.TOMLDecodeError) as exc:
        raise ConfigurationError(f"Syntax error in {path}: {exc}") from exc

    if not isinstance(data, dict):
        raise ConfigurationError(f"Config root in {path} must be a mapping.")

    return data


def _detect_env_overrides(env_vars: Mapping[str, str]) -> set[str]:
    """Detect which fields are overridden by environment variables.

    Nested priorities are detected as CTX_PRIORITIES__WORK_ITEMS and friends.
    """
    prefix = ContextConfig.model_config.get("env_prefix", "")
    delimiter = ContextConfig.model_config.get("env_nested_delimiter", "__")
    overrides: set[str] = set()

    for name in ContextConfig.model_fields:
        if name == "priorities":
            continue
        if f"{prefix}{name}".upper() in env_vars:
            overrides.add(name)

    for name in SectionPriorities.model_fields:
        env_key = f"{prefix}priorities{delimiter}{name}".upper()
        if env_key in env_vars:
            overrides.add(f"priorities.{name}")

    return overrides


def load_config(
    config_path: Path | None = None,
    env: Mapping[str, str] | None = None,
) -> tuple[ContextConfig, ConfigLoadResult]:
    """
    Load configuration with Safe Mode fallback.
    If the file is invalid, returns default config + error message.
    """
    env_vars: Mapping[str, str] = os.environ if env is None else {**os.environ, **env}
    resolved_path = _resolve_config_path(config_path, env_vars)
    env_overrides = _detect_env_overrides(env_vars)

    error: str | None = None
    file_loaded = False
    file_data: dict[str, Any] = {}

    try:
        file_data = _read_config_file(resolved_path)
        file_loaded = resolved_path.exists()
    except ConfigurationError as exc:
        error = str(exc)

    context_manager = (
        patch.dict(os.environ, env_vars, clear=False) if env is not None else nullcontext()
    )

    try:
        with context_manager:
            config = ContextConfig(**file_data)
    except ValidationError as exc:
        error = str(exc)
        config = ContextConfig.model_construct()

    load_result = ConfigLoadResult(
        path=resolved_path,
        file_loaded=file_loaded,
        env_overrides=env_overrides,
        error=error,
    )

    return config, load_result
