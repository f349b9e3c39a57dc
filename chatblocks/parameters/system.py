"""System message parameter processor."""

from .base import ParameterProcessor


class SystemParameter(ParameterProcessor):
    """@system: literal system message replacing the default one."""

    def get_parameter_name(self) -> str:
        return "system"

    def get_field_name(self) -> str:
        return "system"

    def process_value(self, value, defaults):
        return value.strip()
