"""
Backend registry.

A backend is a configured provider from the `providers:` section of
settings.yaml. The provider name selects the implementation; any name
without a dedicated implementation is treated as an OpenAI-compatible
endpoint (Ollama, LM Studio, vLLM, etc.) and must configure base_url.
"""

from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Type

from pydantic_ai.models import Model
from pydantic_ai.models.anthropic import AnthropicModel
from pydantic_ai.models.google import GoogleModel
from pydantic_ai.models.mistral import MistralModel
from pydantic_ai.models.openai import OpenAIChatModel, OpenAIResponsesModel
from pydantic_ai.models.test import TestModel
from pydantic_ai.providers.anthropic import AnthropicProvider
from pydantic_ai.providers.google import GoogleProvider
from pydantic_ai.providers.grok import GrokProvider
from pydantic_ai.providers.mistral import MistralProvider
from pydantic_ai.providers.openai import OpenAIProvider

from chatblocks.constants import TEST_BACKEND_NAME
from chatblocks.errors import BackendConfigurationError, BackendNotFoundError
from chatblocks.settings.secrets_store import resolve_secret_reference
from chatblocks.settings.store import ProviderConfig, get_providers_config


class Backend(ABC):
    """A provider able to build pydantic-ai models for a model identifier."""

    def __init__(self, name: str, config: Optional[ProviderConfig] = None):
        self.name = name
        self.config = config or ProviderConfig()

    @abstractmethod
    def create_model(self, model_string: str) -> Model:
        """Build a pydantic-ai model for the provider model identifier."""
        pass

    def _require_api_key(self) -> str:
        key_name = self.config.api_key
        api_key = resolve_secret_reference(key_name)
        if not api_key:
            raise BackendConfigurationError(
                f"Backend '{self.name}' requires secret '{key_name}' to be configured. "
                f"Add it to secrets.yaml or the environment before using this backend."
            )
        return api_key

    def describe(self) -> Dict[str, Optional[str]]:
        return {
            "name": self.name,
            "type": type(self).__name__,
            "description": self.config.description,
        }

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"


class AnthropicBackend(Backend):
    def create_model(self, model_string: str) -> Model:
        return AnthropicModel(model_string, provider=AnthropicProvider(api_key=self._require_api_key()))


class OpenAIBackend(Backend):
    def create_model(self, model_string: str) -> Model:
        base_url = resolve_secret_reference(self.config.base_url)
        return OpenAIResponsesModel(
            model_string,
            provider=OpenAIProvider(api_key=self._require_api_key(), base_url=base_url),
        )


class GoogleBackend(Backend):
    def create_model(self, model_string: str) -> Model:
        return GoogleModel(model_string, provider=GoogleProvider(api_key=self._require_api_key()))


class MistralBackend(Backend):
    def create_model(self, model_string: str) -> Model:
        return MistralModel(model_string, provider=MistralProvider(api_key=self._require_api_key()))


class GrokBackend(Backend):
    def create_model(self, model_string: str) -> Model:
        return OpenAIChatModel(model_string, provider=GrokProvider(api_key=self._require_api_key()))


class TestBackend(Backend):
    """Offline backend built on pydantic-ai's TestModel; never calls tools."""

    __test__ = False

    def create_model(self, model_string: str) -> Model:
        return TestModel(call_tools=[])


class OpenAICompatibleBackend(Backend):
    """Any other provider: an OpenAI-compatible endpoint at base_url."""

    def create_model(self, model_string: str) -> Model:
        base_url = resolve_secret_reference(self.config.base_url)
        if not base_url:
            raise BackendConfigurationError(
                f"Provider '{self.name}' requires 'base_url' to be configured in settings.yaml. "
                f"Set providers.{self.name}.base_url to a literal URL or the name of a stored secret."
            )

        # Local servers usually accept any key
        api_key = resolve_secret_reference(self.config.api_key) or "not-needed"
        return OpenAIChatModel(
            model_string,
            provider=OpenAIProvider(api_key=api_key, base_url=base_url),
        )


BACKEND_TYPES: Dict[str, Type[Backend]] = {
    "anthropic": AnthropicBackend,
    "openai": OpenAIBackend,
    "google": GoogleBackend,
    "mistral": MistralBackend,
    "grok": GrokBackend,
    TEST_BACKEND_NAME: TestBackend,
}


def build_backend(name: str, config: Optional[ProviderConfig] = None) -> Backend:
    """Instantiate the backend implementation matching a provider name."""
    backend_cls = BACKEND_TYPES.get(name.lower(), OpenAICompatibleBackend)
    return backend_cls(name.lower(), config)


class BackendRegistry:
    """Name -> backend lookup."""

    def __init__(self, backends: Optional[Dict[str, Backend]] = None):
        self._backends: Dict[str, Backend] = {}
        for backend in (backends or {}).values():
            self.register(backend)

    @classmethod
    def from_providers(cls, providers: Dict[str, ProviderConfig]) -> "BackendRegistry":
        registry = cls()
        for name, config in providers.items():
            registry.register(build_backend(name, config))
        return registry

    def register(self, backend: Backend) -> None:
        self._backends[backend.name.lower()] = backend

    def names(self) -> List[str]:
        return sorted(self._backends)

    def has(self, name: str) -> bool:
        return name.lower() in self._backends

    def get(self, name: str) -> Backend:
        """Return the backend registered under name.

        Raises:
            BackendNotFoundError: If no backend is configured under the name
        """
        backend = self._backends.get(name.lower())
        if backend is None:
            raise BackendNotFoundError(name, self.names())
        return backend


def get_backend_registry() -> BackendRegistry:
    """Backend registry built from the current settings.yaml providers."""
    return BackendRegistry.from_providers(get_providers_config())
