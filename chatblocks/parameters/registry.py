"""
Parameter registry system for extensible block parameter processing.

Manages parameter processors so new block keys can be added without
changing the overlay logic.
"""

from typing import Dict, List

from chatblocks.logger import UnifiedLogger
from .base import ParameterProcessor

# Create module logger
logger = UnifiedLogger(tag="parameter-registry")


#######################################################################
## Exception Classes
#######################################################################

class ParameterRegistryError(Exception):
    """Base exception for parameter registry errors."""
    pass


class InvalidParameterError(ParameterRegistryError):
    """Raised when attempting to process an unregistered parameter."""
    pass


class DuplicateParameterError(ParameterRegistryError):
    """Raised when attempting to register a parameter that already exists."""
    pass


#######################################################################
## Registry Implementation
#######################################################################

class ParameterRegistry:
    """Registry for parameter processors."""

    def __init__(self):
        """Initialize an empty parameter registry."""
        self._processors: Dict[str, ParameterProcessor] = {}

    def register_parameter(self, processor: ParameterProcessor) -> None:
        """Register a parameter processor.

        Raises:
            DuplicateParameterError: If a processor for this key is already registered
        """
        parameter_name = processor.get_parameter_name()

        if parameter_name in self._processors:
            raise DuplicateParameterError(
                f"Parameter '{parameter_name}' is already registered"
            )

        self._processors[parameter_name] = processor

    def is_parameter_registered(self, parameter_name: str) -> bool:
        """Check if a parameter is registered."""
        return parameter_name in self._processors

    def get_processor(self, parameter_name: str) -> ParameterProcessor:
        """Get the processor for a parameter.

        Raises:
            InvalidParameterError: If the parameter is not registered
        """
        if parameter_name not in self._processors:
            raise InvalidParameterError(
                f"Unknown parameter: '{parameter_name}'. "
                f"Registered parameters: {list(self._processors.keys())}"
            )

        return self._processors[parameter_name]

    def get_registered_parameters(self) -> List[str]:
        """Get a list of all registered parameter names, in registration order."""
        return list(self._processors.keys())


#######################################################################
## Global Registry Instance
#######################################################################

_global_registry = ParameterRegistry()


def get_global_registry() -> ParameterRegistry:
    """Get the global parameter registry instance.

    Built-in processors are added by
    chatblocks.parameters.bootstrap.ensure_builtin_parameters_registered().
    """
    return _global_registry


def register_parameter(processor: ParameterProcessor) -> None:
    """Register a parameter processor with the global registry."""
    _global_registry.register_parameter(processor)
