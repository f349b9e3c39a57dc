"""
Request configuration models.

RequestDefaults holds the process-wide defaults (from settings.yaml, possibly
layered with a preset). RequestConfig is the effective, resolved configuration
for one execution. Both are immutable: overlays produce new instances and the
shared defaults are never touched.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from chatblocks.settings.store import get_general_setting_value

if TYPE_CHECKING:
    from chatblocks.llm.backends import Backend
    from chatblocks.tools.registry import RegisteredTool


class RequestDefaults(BaseModel):
    """Unresolved request settings: names rather than registry objects."""

    model_config = ConfigDict(frozen=True)

    backend: Optional[str] = None
    model: Optional[str] = None
    temperature: Optional[float] = None
    max_tokens: Optional[int] = None
    system: Optional[str] = None
    context: List[str] = Field(default_factory=list)
    tools: List[str] = Field(default_factory=list)
    media: bool = True
    dry_run: bool = False
    preset: Optional[str] = None


def load_request_defaults() -> RequestDefaults:
    """Build the process-wide defaults from the general section of settings.yaml."""
    context = get_general_setting_value("default_context", []) or []
    if isinstance(context, str):
        context = context.split()

    return RequestDefaults(
        backend=get_general_setting_value("default_backend"),
        model=get_general_setting_value("default_model"),
        temperature=get_general_setting_value("default_temperature"),
        max_tokens=get_general_setting_value("default_max_tokens"),
        system=get_general_setting_value("default_system_message"),
        context=list(context),
        media=bool(get_general_setting_value("include_media", True)),
    )


@dataclass(frozen=True)
class RequestConfig:
    """Effective configuration for one block execution.

    Attributes:
        backend_name: Name the backend was resolved from
        backend: Backend object from the backend registry
        model: Provider model identifier (aliases already resolved)
        temperature: Sampling temperature, None for the provider default
        max_tokens: Output token limit, None for the provider default
        system: System message, None for none
        context: Context file paths, defaults first then block additions
        tools: Tools resolved through the tool registry
        media: Whether image context files are attached
        dry_run: Render the payload instead of sending it
        preset: Preset applied before the block parameters, if any
    """

    backend_name: str
    backend: "Backend"
    model: str
    temperature: Optional[float] = None
    max_tokens: Optional[int] = None
    system: Optional[str] = None
    context: Tuple[str, ...] = ()
    tools: Tuple["RegisteredTool", ...] = ()
    media: bool = True
    dry_run: bool = False
    preset: Optional[str] = None

    @property
    def tool_names(self) -> List[str]:
        return [tool.name for tool in self.tools]
