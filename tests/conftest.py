from __future__ import annotations

from pathlib import Path
from typing import Callable

import pytest
from pydantic_ai.messages import ModelMessage, ModelResponse, TextPart
from pydantic_ai.models import Model
from pydantic_ai.models.function import AgentInfo, FunctionModel

from chatblocks.llm.backends import Backend, BackendRegistry, TestBackend
from chatblocks.llm.presets import PresetRegistry
from chatblocks.parameters.config import RequestDefaults
from chatblocks.runtime.state import clear_runtime_context, has_runtime_context
from chatblocks.settings.environment import refresh_app_settings_cache
from chatblocks.settings.store import PresetConfig, refresh_settings_cache
from chatblocks.tools.registry import ToolRegistry
from chatblocks.tools.file_ops_safe import FileOpsSafe

PROVIDER_KEYS = (
    "ANTHROPIC_API_KEY",
    "OPENAI_API_KEY",
    "GEMINI_API_KEY",
    "MISTRAL_API_KEY",
    "GROK_API_KEY",
    "LOGFIRE_TOKEN",
)


def _refresh_caches() -> None:
    refresh_app_settings_cache()
    refresh_settings_cache()


@pytest.fixture(autouse=True)
def isolated_roots(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point data and system roots at a temporary directory."""
    data_root = tmp_path / "data"
    system_root = tmp_path / "system"
    data_root.mkdir()
    system_root.mkdir()

    monkeypatch.setenv("CHATBLOCKS_DATA_ROOT", str(data_root))
    monkeypatch.setenv("CHATBLOCKS_SYSTEM_ROOT", str(system_root))
    monkeypatch.delenv("SECRETS_PATH", raising=False)
    for key in PROVIDER_KEYS:
        monkeypatch.delenv(key, raising=False)

    _refresh_caches()
    yield tmp_path

    if has_runtime_context():
        clear_runtime_context()
    _refresh_caches()


@pytest.fixture
def data_root(isolated_roots: Path) -> Path:
    return isolated_roots / "data"


@pytest.fixture
def write_doc(data_root: Path) -> Callable[[str, str], Path]:
    def _write(name: str, text: str) -> Path:
        path = data_root / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
        return path

    return _write


class FunctionBackend(Backend):
    """Backend answering through a pydantic-ai FunctionModel; records what it was sent."""

    def __init__(self, name: str = "fake", reply: str = "Hello from fake"):
        super().__init__(name)
        self.reply = reply
        self.received: list[list[ModelMessage]] = []
        self.models: list[str] = []

    def create_model(self, model_string: str) -> Model:
        self.models.append(model_string)

        def respond(messages: list[ModelMessage], info: AgentInfo) -> ModelResponse:
            self.received.append(messages)
            return ModelResponse(parts=[TextPart(self.reply)])

        return FunctionModel(respond)


@pytest.fixture
def fake_backend() -> FunctionBackend:
    return FunctionBackend()


@pytest.fixture
def backends(fake_backend: FunctionBackend) -> BackendRegistry:
    registry = BackendRegistry()
    registry.register(fake_backend)
    registry.register(TestBackend("test"))
    registry.register(FunctionBackend("openai"))
    return registry


@pytest.fixture
def tools() -> ToolRegistry:
    registry = ToolRegistry()
    registry.register("file_ops_safe", FileOpsSafe)
    return registry


@pytest.fixture
def presets() -> PresetRegistry:
    return PresetRegistry(
        {
            "concise": PresetConfig(temperature=0.1, system="Be brief.", max_tokens=50),
            "offline": PresetConfig(backend="test", context=["preset.md"]),
        }
    )


@pytest.fixture
def defaults() -> RequestDefaults:
    return RequestDefaults(
        backend="fake",
        model="default-model",
        temperature=0.7,
        max_tokens=1000,
        system="You are helpful.",
        context=["base.md"],
        tools=[],
        media=True,
        dry_run=False,
    )
