"""
Settings health checks.

validate_settings() cross-checks settings.yaml before any block runs: every
name a block could resolve (default backend, model alias providers, preset
backends and tools, tool modules) must exist. Missing credentials only warn,
since blocks on other backends still work.
"""

import importlib.util
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, Field

from chatblocks.constants import DEFAULT_API_TIMEOUT, TEST_BACKEND_NAME
from chatblocks.settings.store import (
    ModelConfig,
    PresetConfig,
    ProviderConfig,
    ToolConfig,
    get_general_setting_value,
    get_models_config,
    get_presets_config,
    get_providers_config,
    get_tools_config,
)
from chatblocks.settings.secrets_store import resolve_secret_reference, secret_has_value


class ConfigurationIssue(BaseModel):
    name: str
    message: str
    severity: Literal["error", "warning"] = "error"


class ConfigurationStatus(BaseModel):
    """Issues found plus which tools and backends are usable right now."""

    issues: List[ConfigurationIssue] = Field(default_factory=list)
    tool_availability: Dict[str, bool] = Field(default_factory=dict)
    backend_availability: Dict[str, bool] = Field(default_factory=dict)

    @property
    def errors(self) -> List[ConfigurationIssue]:
        return [issue for issue in self.issues if issue.severity == "error"]

    @property
    def warnings(self) -> List[ConfigurationIssue]:
        return [issue for issue in self.issues if issue.severity == "warning"]

    @property
    def is_healthy(self) -> bool:
        return not self.errors

    def add_issue(self, name: str, message: str, severity: str = "error") -> None:
        self.issues.append(ConfigurationIssue(name=name, message=message, severity=severity))


def _backend_known(name: str, providers: Dict[str, ProviderConfig]) -> bool:
    return name.lower() in {provider.lower() for provider in providers} or name.lower() == TEST_BACKEND_NAME


def _check_tools(status: ConfigurationStatus, tools: Dict[str, ToolConfig]) -> None:
    for tool_name, tool_config in tools.items():
        try:
            importable = importlib.util.find_spec(tool_config.module) is not None
        except ModuleNotFoundError:
            importable = False
        missing_secrets = [key for key in tool_config.requires_secrets if not secret_has_value(key)]
        status.tool_availability[tool_name] = importable and not missing_secrets

        if not importable:
            status.add_issue(f"tool:{tool_name}", f"@tools {tool_name}: module '{tool_config.module}' cannot be imported.")
        elif missing_secrets:
            status.add_issue(
                f"tool:{tool_name}",
                f"@tools {tool_name} is unavailable until secrets {missing_secrets} are configured.",
                severity="warning",
            )


def _check_credentials(status: ConfigurationStatus, providers: Dict[str, ProviderConfig]) -> None:
    for provider_name, provider_config in providers.items():
        key_reference = provider_config.api_key
        needs_key = bool(key_reference) and key_reference.lower() != "null"
        usable = not needs_key or resolve_secret_reference(key_reference) is not None
        status.backend_availability[provider_name] = usable
        if not usable:
            status.add_issue(
                f"backend:{provider_name}",
                f"Blocks using @backend {provider_name} fail until {key_reference} is configured.",
                severity="warning",
            )


def _check_references(
    status: ConfigurationStatus,
    providers: Dict[str, ProviderConfig],
    models: Dict[str, ModelConfig],
    presets: Dict[str, PresetConfig],
    tools: Dict[str, ToolConfig],
) -> None:
    default_backend = get_general_setting_value("default_backend")
    if default_backend and not _backend_known(str(default_backend), providers):
        status.add_issue("default_backend", f"Default backend '{default_backend}' is not a configured provider.")

    for model_name, model_config in models.items():
        if not _backend_known(model_config.provider, providers):
            status.add_issue(
                f"model:{model_name}",
                f"@model {model_name} points at unknown provider '{model_config.provider}'.",
            )

    for preset_name, preset_config in presets.items():
        if preset_config.backend and not _backend_known(preset_config.backend, providers):
            status.add_issue(
                f"preset:{preset_name}",
                f"@preset {preset_name} names unknown backend '{preset_config.backend}'.",
            )
        unknown_tools = [name for name in preset_config.tools or [] if name not in tools]
        if unknown_tools:
            status.add_issue(f"preset:{preset_name}", f"@preset {preset_name} names unknown tools {unknown_tools}.")


def validate_settings(
    tools_config: Optional[Dict[str, ToolConfig]] = None,
    models_config: Optional[Dict[str, ModelConfig]] = None,
    providers_config: Optional[Dict[str, ProviderConfig]] = None,
    presets_config: Optional[Dict[str, PresetConfig]] = None,
) -> ConfigurationStatus:
    """Check settings.yaml; sections not passed in are read from disk."""
    tools = tools_config if tools_config is not None else get_tools_config()
    providers = providers_config if providers_config is not None else get_providers_config()
    models = models_config if models_config is not None else get_models_config()
    presets = presets_config if presets_config is not None else get_presets_config()

    status = ConfigurationStatus()
    _check_tools(status, tools)
    _check_credentials(status, providers)
    _check_references(status, providers, models, presets, tools)
    return status


def get_default_api_timeout() -> float:
    """Request timeout in seconds (`default_api_timeout`)."""
    value = get_general_setting_value("default_api_timeout")
    try:
        return float(value)
    except (TypeError, ValueError):
        return DEFAULT_API_TIMEOUT
