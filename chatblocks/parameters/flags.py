"""
Boolean flag parameter processors.

@media defaults to on (settings `include_media`), @dry-run defaults to off.
When present, both are on unless the value is "no" or "nil"; a bare key
turns the flag on.
"""

from .base import ParameterProcessor
from .parser import ParameterValueParser


class MediaParameter(ParameterProcessor):
    """@media: attach images listed as context files."""

    accepts_bare = True

    def get_parameter_name(self) -> str:
        return "media"

    def get_field_name(self) -> str:
        return "media"

    def process_value(self, value, defaults):
        return ParameterValueParser.parse_flag(value)


class DryRunParameter(ParameterProcessor):
    """@dry-run: render the request payload instead of sending it."""

    accepts_bare = True

    def get_parameter_name(self) -> str:
        return "dry-run"

    def get_field_name(self) -> str:
        return "dry_run"

    def process_value(self, value, defaults):
        return ParameterValueParser.parse_flag(value)
