"""
Configuration overlay.

Turns a block's parameters into the effective RequestConfig for one
execution. Present, non-empty parameters override and a bare flag counts as
present; everything else is inherited from the process-wide defaults.
Presets are layered first. Every registry lookup happens here, so an unknown
backend, tool or preset fails before anything is sent or written.
"""

from typing import Any, Dict, Mapping, Optional

from chatblocks.errors import BackendConfigurationError
from chatblocks.llm.backends import BackendRegistry, get_backend_registry
from chatblocks.llm.model_utils import resolve_model_alias
from chatblocks.llm.presets import PresetRegistry, get_preset_registry
from chatblocks.logger import UnifiedLogger
from chatblocks.settings.store import ModelConfig
from chatblocks.tools.registry import ToolRegistry, get_tool_registry

from .bootstrap import ensure_builtin_parameters_registered
from .config import RequestConfig, RequestDefaults, load_request_defaults
from .registry import ParameterRegistry

logger = UnifiedLogger(tag="parameter-overlay")

PRESET_PARAMETER = "preset"
BACKEND_FIELD = "backend"


def _process(registry: ParameterRegistry, key: str, value: Optional[str], defaults: RequestDefaults) -> Any:
    """Run one parameter through its processor; None means inherit."""
    processor = registry.get_processor(key)
    if value is None or not value.strip():
        return processor.process_value("", defaults) if processor.accepts_bare else None

    if not processor.validate_value(value):
        logger.debug("Parameter ignored, default applies", parameter=key, value=value)
        return None

    return processor.process_value(value.strip(), defaults)


def overlay_defaults(
    parameters: Mapping[str, Optional[str]],
    defaults: RequestDefaults,
    *,
    registry: ParameterRegistry,
    presets: PresetRegistry,
) -> tuple[RequestDefaults, Optional[str]]:
    """Apply preset and block parameters to defaults, without resolving names.

    Returns:
        (effective defaults, backend named explicitly by the block or preset)
    """
    explicit_backend = None

    preset_name = None
    if PRESET_PARAMETER in parameters:
        preset_name = _process(registry, PRESET_PARAMETER, parameters[PRESET_PARAMETER], defaults)
    if preset_name:
        preset = presets.get(preset_name)
        explicit_backend = preset.backend
        defaults = presets.apply(preset_name, defaults)

    overrides: Dict[str, Any] = {}
    for key in registry.get_registered_parameters():
        if key == PRESET_PARAMETER or key not in parameters:
            continue
        processed = _process(registry, key, parameters[key], defaults)
        if processed is not None:
            overrides[registry.get_processor(key).get_field_name()] = processed

    if overrides.get(BACKEND_FIELD):
        explicit_backend = overrides[BACKEND_FIELD]

    return defaults.model_copy(update=overrides), explicit_backend


def build_request_config(
    parameters: Mapping[str, Optional[str]],
    defaults: Optional[RequestDefaults] = None,
    *,
    registry: Optional[ParameterRegistry] = None,
    backends: Optional[BackendRegistry] = None,
    tools: Optional[ToolRegistry] = None,
    presets: Optional[PresetRegistry] = None,
    models: Optional[Dict[str, ModelConfig]] = None,
) -> RequestConfig:
    """
    Build the effective configuration for one block execution.

    Backend choice: a backend named by the block or its preset wins, then
    the provider of a model alias, then the default backend.

    Args:
        parameters: Block parameters (unknown keys are ignored)
        defaults: Process-wide defaults (loaded from settings.yaml when omitted)
        registry: Parameter processors (built-ins when omitted)
        backends: Backend registry (from settings.yaml when omitted)
        tools: Tool registry (from settings.yaml when omitted)
        presets: Preset registry (from settings.yaml when omitted)
        models: Model aliases (from settings.yaml when omitted)

    Raises:
        BackendNotFoundError: Unknown backend
        ToolNotFoundError: Unknown tool
        PresetNotFoundError: Unknown preset
        BackendConfigurationError: No model configured anywhere
    """
    registry = registry or ensure_builtin_parameters_registered()
    defaults = defaults if defaults is not None else load_request_defaults()
    backends = backends or get_backend_registry()
    tools = tools or get_tool_registry()
    presets = presets or get_preset_registry()

    effective, explicit_backend = overlay_defaults(
        parameters, defaults, registry=registry, presets=presets
    )

    if not effective.model:
        raise BackendConfigurationError(
            "No model configured. Add @model to the block or set 'default_model' in settings.yaml."
        )

    resolved_model = resolve_model_alias(effective.model, models)
    backend_name = explicit_backend or resolved_model.provider or effective.backend
    if not backend_name:
        raise BackendConfigurationError(
            "No backend configured. Add @backend to the block or set 'default_backend' in settings.yaml."
        )

    backend = backends.get(backend_name)
    resolved_tools = tuple(tools.get(name) for name in effective.tools)

    return RequestConfig(
        backend_name=backend.name,
        backend=backend,
        model=resolved_model.model_string,
        temperature=effective.temperature,
        max_tokens=effective.max_tokens,
        system=effective.system,
        context=tuple(effective.context),
        tools=resolved_tools,
        media=effective.media,
        dry_run=effective.dry_run,
        preset=effective.preset,
    )
