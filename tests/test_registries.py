from __future__ import annotations

import pytest
from pydantic_ai.models.openai import OpenAIChatModel
from pydantic_ai.models.test import TestModel as _TestModel

from chatblocks.errors import BackendConfigurationError, BackendNotFoundError, ToolLoadError, ToolNotFoundError
from chatblocks.llm.backends import (
    AnthropicBackend,
    BackendRegistry,
    OpenAICompatibleBackend,
    build_backend,
    get_backend_registry,
)
from chatblocks.llm.model_utils import resolve_model_alias
from chatblocks.llm.presets import get_preset_registry
from chatblocks.parameters.config import RequestDefaults
from chatblocks.settings.store import ModelConfig, ProviderConfig, ToolConfig
from chatblocks.tools.registry import ToolRegistry, get_tool_registry


def test_backend_registry_from_settings_template() -> None:
    registry = get_backend_registry()

    assert {"anthropic", "openai", "google", "mistral", "grok", "test"} <= set(registry.names())
    assert isinstance(registry.get("Anthropic"), AnthropicBackend)
    with pytest.raises(BackendNotFoundError):
        registry.get("nowhere")


def test_test_backend_needs_no_key() -> None:
    model = get_backend_registry().get("test").create_model("anything")

    assert isinstance(model, _TestModel)


def test_missing_api_key_raises(monkeypatch) -> None:
    backend = build_backend("anthropic", ProviderConfig(api_key="ANTHROPIC_API_KEY"))

    with pytest.raises(BackendConfigurationError):
        backend.create_model("claude-sonnet-4-5")


def test_unknown_provider_is_openai_compatible() -> None:
    backend = build_backend("ollama", ProviderConfig(base_url="http://localhost:11434/v1"))

    assert isinstance(backend, OpenAICompatibleBackend)
    assert isinstance(backend.create_model("llama3"), OpenAIChatModel)

    with pytest.raises(BackendConfigurationError):
        build_backend("lmstudio", ProviderConfig()).create_model("x")


def test_backend_registry_register_overrides() -> None:
    registry = BackendRegistry()
    registry.register(build_backend("Local", ProviderConfig(base_url="http://x")))

    assert registry.names() == ["local"]
    assert registry.has("LOCAL")


def test_model_alias_resolution_is_case_insensitive() -> None:
    models = {"Sonnet": ModelConfig(provider="anthropic", model_string="claude-sonnet-4-5")}

    resolved = resolve_model_alias("sonnet", models)
    assert (resolved.provider, resolved.model_string, resolved.alias) == ("anthropic", "claude-sonnet-4-5", "Sonnet")

    raw = resolve_model_alias("gpt-4", models)
    assert raw.provider is None
    assert raw.model_string == "gpt-4"


def test_tool_registry_loads_configured_modules() -> None:
    registry = get_tool_registry()

    tool = registry.get("file_ops_safe")
    assert tool.tool_class.__name__ == "FileOpsSafe"
    assert "file_operations" in tool.get_instructions()

    with pytest.raises(ToolNotFoundError):
        registry.get("laser")


def test_tool_registry_reports_bad_modules() -> None:
    registry = ToolRegistry({
        "broken": ToolConfig(module="chatblocks.tools.does_not_exist"),
        "empty": ToolConfig(module="chatblocks.constants"),
    })

    with pytest.raises(ToolLoadError):
        registry.get("broken")
    with pytest.raises(ToolLoadError):
        registry.get("empty")


def test_preset_apply_returns_new_defaults() -> None:
    registry = get_preset_registry()
    defaults = RequestDefaults(model="sonnet", temperature=0.9, tools=[])

    applied = registry.apply("researcher", defaults)

    assert applied.tools == ["web_search_duckduckgo"]
    assert applied.preset == "researcher"
    assert applied.temperature == 0.9
    assert defaults.tools == []
    assert defaults.preset is None


def test_web_search_tool_carries_security_notice() -> None:
    tool = get_tool_registry().get("web_search_duckduckgo")

    assert "SECURITY NOTICE" in tool.get_instructions()
    assert tool.get_tool().name == "search_web_duckduckgo"
