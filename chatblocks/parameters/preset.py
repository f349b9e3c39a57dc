"""Preset parameter processor."""

from .base import ParameterProcessor
from .parser import ParameterValueParser


class PresetParameter(ParameterProcessor):
    """@preset: name of a preset whose values are layered onto the defaults first."""

    def get_parameter_name(self) -> str:
        return "preset"

    def get_field_name(self) -> str:
        return "preset"

    def process_value(self, value, defaults):
        return ParameterValueParser.normalize_string(value, to_lower=False)
