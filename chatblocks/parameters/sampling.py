"""Sampling parameter processors: @temperature and @max-tokens."""

from .base import ParameterProcessor
from .parser import ParameterValueParser


class TemperatureParameter(ParameterProcessor):
    """@temperature: float; an unparseable value keeps the default."""

    def get_parameter_name(self) -> str:
        return "temperature"

    def get_field_name(self) -> str:
        return "temperature"

    def validate_value(self, value: str) -> bool:
        return ParameterValueParser.parse_float(value) is not None

    def process_value(self, value, defaults):
        return ParameterValueParser.parse_float(value)


class MaxTokensParameter(ParameterProcessor):
    """@max-tokens: integer output limit; an unparseable value keeps the default."""

    def get_parameter_name(self) -> str:
        return "max-tokens"

    def get_field_name(self) -> str:
        return "max_tokens"

    def validate_value(self, value: str) -> bool:
        return ParameterValueParser.parse_int(value) is not None

    def process_value(self, value, defaults):
        return ParameterValueParser.parse_int(value)
