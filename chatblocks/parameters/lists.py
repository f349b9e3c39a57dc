"""
List parameter processors: @context and @tools.

@context is additive: its entries are appended to the default context list.
@tools replaces the default tool list; every name must exist in the tool
registry, which is checked when the effective configuration is built.
"""

from .base import ParameterProcessor
from .parser import ParameterValueParser


class ContextParameter(ParameterProcessor):
    """@context: whitespace-separated file paths added to the request context."""

    def get_parameter_name(self) -> str:
        return "context"

    def get_field_name(self) -> str:
        return "context"

    def process_value(self, value, defaults):
        additions = ParameterValueParser.parse_list(value)
        return [*defaults.context, *additions]


class ToolsParameter(ParameterProcessor):
    """@tools: whitespace-separated tool names."""

    def get_parameter_name(self) -> str:
        return "tools"

    def get_field_name(self) -> str:
        return "tools"

    def process_value(self, value, defaults):
        return ParameterValueParser.parse_list(value, to_lower=True)
