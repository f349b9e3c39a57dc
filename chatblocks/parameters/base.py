"""
Base class for block parameter processing.

Each request parameter a block can carry (@model, @temperature, @tools, ...)
is handled by one ParameterProcessor that knows how to read its value and
which request field it overrides.
"""

from abc import ABC, abstractmethod
from typing import Any, TYPE_CHECKING

if TYPE_CHECKING:
    from .config import RequestDefaults


class ParameterProcessor(ABC):
    """Base class for parameter processors."""

    @abstractmethod
    def get_parameter_name(self) -> str:
        """Return the block key this processor handles (e.g. "max-tokens")."""
        pass

    @abstractmethod
    def get_field_name(self) -> str:
        """Return the RequestDefaults field this parameter overrides (e.g. "max_tokens")."""
        pass

    # A bare key (@dry-run with no value) still reaches process_value when set
    accepts_bare = False

    def validate_value(self, value: str) -> bool:
        """Return True when the value can be processed. Empty values are never valid."""
        return bool(value and value.strip())

    @abstractmethod
    def process_value(self, value: str, defaults: "RequestDefaults") -> Any:
        """Turn a parameter value into the field value.

        Args:
            value: Stripped parameter value, empty only for bare keys of processors
                that accept them
            defaults: Defaults in effect (after any preset) for additive fields

        Returns:
            The override, or None to inherit the default
        """
        pass
