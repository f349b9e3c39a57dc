"""
Model and backend parameter processors.

Handles @model and @backend. Alias resolution and the registry lookup for
the backend happen when the effective configuration is built, so defaults
coming from settings.yaml or a preset are checked the same way.
"""

from .base import ParameterProcessor
from .parser import ParameterValueParser


class ModelParameter(ParameterProcessor):
    """@model: a model alias from settings.yaml or a provider model identifier."""

    def get_parameter_name(self) -> str:
        return "model"

    def get_field_name(self) -> str:
        return "model"

    def process_value(self, value, defaults):
        return ParameterValueParser.normalize_string(value, to_lower=False)


class BackendParameter(ParameterProcessor):
    """@backend: name of a configured provider."""

    def get_parameter_name(self) -> str:
        return "backend"

    def get_field_name(self) -> str:
        return "backend"

    def process_value(self, value, defaults):
        return ParameterValueParser.normalize_string(value, to_lower=True)
