"""
Helpers for registering built-in parameter processors.

Provides an explicit entry point for wiring the default parameter set into
the global registry without relying on package import side effects.
"""

from __future__ import annotations

from typing import Type

from chatblocks.logger import UnifiedLogger

from .base import ParameterProcessor
from .flags import DryRunParameter, MediaParameter
from .lists import ContextParameter, ToolsParameter
from .model import BackendParameter, ModelParameter
from .preset import PresetParameter
from .registry import ParameterRegistry, get_global_registry
from .sampling import MaxTokensParameter, TemperatureParameter
from .system import SystemParameter

logger = UnifiedLogger(tag="parameter-bootstrap")

_BUILTIN_PARAMETERS: tuple[Type[ParameterProcessor], ...] = (
    PresetParameter,
    BackendParameter,
    ModelParameter,
    TemperatureParameter,
    MaxTokensParameter,
    SystemParameter,
    MediaParameter,
    ContextParameter,
    ToolsParameter,
    DryRunParameter,
)

_builtins_registered: bool = False


def register_builtin_parameters(registry: ParameterRegistry) -> ParameterRegistry:
    """Register every built-in processor not yet present in the registry."""
    for parameter_cls in _BUILTIN_PARAMETERS:
        parameter = parameter_cls()
        parameter_name = parameter.get_parameter_name()

        if registry.is_parameter_registered(parameter_name):
            continue

        try:
            registry.register_parameter(parameter)
        except Exception as exc:
            logger.error(
                "Failed to register parameter",
                parameter=parameter_name,
                error=str(exc),
                error_type=type(exc).__name__,
            )
            raise

    return registry


def ensure_builtin_parameters_registered(force: bool = False) -> ParameterRegistry:
    """Register the built-in parameter processors with the global registry.

    Args:
        force: Re-check registration even if it already ran.
    """
    global _builtins_registered

    registry = get_global_registry()

    if _builtins_registered and not force:
        return registry

    register_builtin_parameters(registry)
    _builtins_registered = True
    return registry
