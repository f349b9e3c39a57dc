from __future__ import annotations

import json

import pytest

from chatblocks.logger import UnifiedLogger
from chatblocks.parameters.config import load_request_defaults
from chatblocks.runtime.bootstrap import bootstrap_runtime
from chatblocks.runtime.config import RuntimeConfig, RuntimeConfigError
from chatblocks.runtime.state import RuntimeStateError, get_runtime_context, has_runtime_context
from chatblocks.settings import validate_settings
from chatblocks.settings.secrets_store import get_secret_value, resolve_secret_reference, set_secret_value
from chatblocks.settings.store import (
    ModelConfig,
    PresetConfig,
    get_active_settings_path,
    get_general_setting_value,
    load_settings,
    refresh_settings_cache,
)


def test_settings_seeded_from_template(isolated_roots) -> None:
    path = get_active_settings_path()

    assert path == isolated_roots / "system" / "settings.yaml"
    assert path.exists()
    assert get_general_setting_value("default_backend") == "anthropic"
    assert "sonnet" in load_settings().models


def test_request_defaults_come_from_settings() -> None:
    defaults = load_request_defaults()

    assert defaults.model == "sonnet"
    assert defaults.backend == "anthropic"
    assert defaults.media is True
    assert defaults.dry_run is False
    assert defaults.context == []


def test_validate_settings_flags_bad_references() -> None:
    status = validate_settings(
        models_config={"odd": ModelConfig(provider="nowhere", model_string="x")},
        presets_config={"p": PresetConfig(backend="nowhere", tools=["laser"])},
    )

    error_names = {issue.name for issue in status.errors}
    assert "model:odd" in error_names
    assert "preset:p" in error_names
    assert not status.is_healthy
    assert any(issue.name == "backend:anthropic" for issue in status.warnings)


def test_secret_store_falls_back_to_environment(monkeypatch) -> None:
    assert get_secret_value("OPENAI_API_KEY") is None

    monkeypatch.setenv("OPENAI_API_KEY", "from-env")
    assert get_secret_value("OPENAI_API_KEY") == "from-env"

    set_secret_value("OPENAI_API_KEY", "stored")
    assert get_secret_value("OPENAI_API_KEY") == "stored"


def test_provider_values_name_a_secret_or_hold_a_literal(monkeypatch) -> None:
    assert resolve_secret_reference("MISTRAL_API_KEY") is None
    assert resolve_secret_reference("sk-literal") == "sk-literal"
    assert resolve_secret_reference("http://localhost:11434/v1") == "http://localhost:11434/v1"
    assert resolve_secret_reference("null") is None

    monkeypatch.setenv("MISTRAL_API_KEY", "from-env")
    assert resolve_secret_reference("MISTRAL_API_KEY") == "from-env"


def test_malformed_secrets_file_is_reported(isolated_roots, monkeypatch) -> None:
    path = isolated_roots / "broken-secrets.yaml"
    path.write_text("- just\n- a list\n", encoding="utf-8")
    monkeypatch.setenv("SECRETS_PATH", str(path))

    with pytest.raises(ValueError, match="Invalid secrets file"):
        get_secret_value("OPENAI_API_KEY")


def test_activity_log_writes_json_lines(isolated_roots) -> None:
    UnifiedLogger(tag="test").activity("Something happened", metadata={"n": 1}, block="b1", token="t")

    lines = (isolated_roots / "system" / "activity.log").read_text(encoding="utf-8").splitlines()
    entry = json.loads(lines[-1])
    assert entry["message"] == "Something happened"
    assert entry["tag"] == "test"
    assert entry["document"] == "system"
    assert entry["metadata"] == {"n": 1}
    assert entry["block"] == "b1"
    assert entry["context"] == {"token": "t"}


def test_activity_entries_name_documents_relative_to_data_root(isolated_roots) -> None:
    UnifiedLogger(tag="test").activity("Response spliced", path=isolated_roots / "data" / "notes" / "chat.md", block=0)

    lines = (isolated_roots / "system" / "activity.log").read_text(encoding="utf-8").splitlines()
    entry = json.loads(lines[-1])
    assert entry["document"] == "notes/chat.md"
    assert entry["block"] == 0


@pytest.mark.asyncio
async def test_bootstrap_registers_and_shuts_down(tmp_path) -> None:
    config = RuntimeConfig.for_testing(tmp_path / "run")

    runtime = await bootstrap_runtime(config)

    assert get_runtime_context() is runtime
    summary = runtime.get_runtime_summary()
    assert summary["data_root"] == str(config.data_root)
    assert ("test", "TestBackend") in [(entry["name"], entry["type"]) for entry in summary["backends"]]
    assert (config.system_root / "settings.yaml").exists()

    await runtime.shutdown()
    assert not has_runtime_context()


@pytest.mark.asyncio
async def test_second_bootstrap_is_rejected_while_runtime_active(tmp_path) -> None:
    runtime = await bootstrap_runtime(RuntimeConfig.for_testing(tmp_path / "one"))

    with pytest.raises(RuntimeStateError, match="still active"):
        await bootstrap_runtime(RuntimeConfig.for_testing(tmp_path / "two"))

    assert get_runtime_context() is runtime
    await runtime.shutdown()


@pytest.mark.asyncio
async def test_bootstrap_rejects_broken_settings(tmp_path) -> None:
    config = RuntimeConfig.for_testing(tmp_path / "run")
    config.system_root.mkdir(parents=True, exist_ok=True)
    (config.system_root / "settings.yaml").write_text(
        "settings:\n  default_backend:\n    value: nowhere\n", encoding="utf-8"
    )

    with pytest.raises(RuntimeConfigError):
        await bootstrap_runtime(config)

    assert not has_runtime_context()
    refresh_settings_cache()


def test_runtime_config_rejects_bad_log_level(tmp_path) -> None:
    with pytest.raises(RuntimeConfigError):
        RuntimeConfig(data_root=tmp_path / "d", system_root=tmp_path / "s", log_level="LOUD")
