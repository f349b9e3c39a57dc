"""
settings.yaml under the system root.

Sections:
    settings   general values (default backend/model, sampling, context, media)
    models     aliases usable in @model, each bound to a provider
    providers  backends a block can name with @backend
    tools      names usable in @tools, each pointing at a BaseTool module
    presets    bundles of request defaults selected with @preset

The file is seeded from the packaged template on first use and parsed once
per path; refresh_settings_cache() forces a re-read after edits.
"""

from __future__ import annotations

import shutil
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from chatblocks.runtime.paths import get_system_root


SETTINGS_TEMPLATE = Path(__file__).parent / "settings.template.yaml"
SECTIONS = ("settings", "models", "providers", "tools", "presets")


class SettingsEntry(BaseModel):
    value: Any
    description: str | None = None
    restart_required: bool = False


class ToolConfig(BaseModel):
    """A tool name bound to the module defining its BaseTool subclass."""

    module: str
    description: str | None = None
    requires_secrets: list[str] = Field(default_factory=list)


class ProviderConfig(BaseModel):
    """A backend. api_key/base_url name a secret or hold a literal."""

    api_key: str | None = None
    base_url: str | None = None
    description: str | None = None


class ModelConfig(BaseModel):
    """A model alias: @model <alias> sends model_string to provider."""

    provider: str
    model_string: str
    description: str | None = None

    @field_validator("provider")
    @classmethod
    def _lowercase_provider(cls, value: str) -> str:
        return value.strip().lower()


class PresetConfig(BaseModel):
    """Request defaults applied by @preset; unset fields leave defaults alone."""

    description: str | None = None
    backend: Optional[str] = None
    model: Optional[str] = None
    temperature: Optional[float] = None
    max_tokens: Optional[int] = None
    system: Optional[str] = None
    tools: Optional[list[str]] = None
    context: Optional[list[str]] = None
    media: Optional[bool] = None

    def overrides(self) -> Dict[str, Any]:
        return self.model_dump(exclude={"description"}, exclude_none=True)


class SettingsFile(BaseModel):
    settings: Dict[str, SettingsEntry] = Field(default_factory=dict)
    models: Dict[str, ModelConfig] = Field(default_factory=dict)
    providers: Dict[str, ProviderConfig] = Field(default_factory=dict)
    tools: Dict[str, ToolConfig] = Field(default_factory=dict)
    presets: Dict[str, PresetConfig] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def _empty_sections(cls, data: Any) -> Any:
        # "models:" with nothing under it parses as None
        if isinstance(data, dict):
            return {**data, **{section: data.get(section) or {} for section in SECTIONS}}
        return data


def get_active_settings_path() -> Path:
    """settings.yaml of the active system root, seeded from the template if missing."""
    path = get_system_root() / "settings.yaml"
    if not path.exists():
        path.parent.mkdir(parents=True, exist_ok=True)
        shutil.copyfile(SETTINGS_TEMPLATE, path)
    return path


@lru_cache(maxsize=4)
def _load_settings_at(path: Path) -> SettingsFile:
    try:
        raw_data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
        return SettingsFile.model_validate(raw_data)
    except (yaml.YAMLError, ValidationError) as exc:
        raise ValueError(f"Invalid settings.yaml configuration: {exc}") from exc


def load_settings() -> SettingsFile:
    """
    Raises:
        ValueError: If settings.yaml is not valid YAML or fails validation
    """
    return _load_settings_at(get_active_settings_path())


def refresh_settings_cache() -> None:
    _load_settings_at.cache_clear()


def get_general_setting_value(name: str, default: Any = None) -> Any:
    """Value of a general setting; default when absent or null."""
    entry = load_settings().settings.get(name)
    if entry is None or entry.value is None:
        return default
    return entry.value


def get_tools_config() -> Dict[str, ToolConfig]:
    return load_settings().tools


def get_models_config() -> Dict[str, ModelConfig]:
    return load_settings().models


def get_providers_config() -> Dict[str, ProviderConfig]:
    return load_settings().providers


def get_presets_config() -> Dict[str, PresetConfig]:
    return load_settings().presets
