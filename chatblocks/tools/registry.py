"""
Tool registry.

Maps tool names from the `tools:` section of settings.yaml to BaseTool
subclasses. Unknown names are a hard error for the execution that asks for
them; nothing is skipped silently.
"""

import importlib
import inspect
from dataclasses import dataclass
from typing import Dict, List, Optional, Type

from chatblocks.errors import ToolNotFoundError, ToolLoadError
from chatblocks.settings.store import ToolConfig, get_tools_config
from .base import BaseTool, ToolScope


@dataclass(frozen=True)
class RegisteredTool:
    """A tool name resolved to its implementation class."""
    name: str
    tool_class: Type[BaseTool]

    def get_tool(self, scope: Optional[ToolScope] = None):
        return self.tool_class.get_tool(scope)

    def get_instructions(self) -> str:
        return self.tool_class.get_instructions()


class ToolRegistry:
    """Name -> tool lookup over tool configurations or explicit classes."""

    def __init__(self, configs: Optional[Dict[str, ToolConfig]] = None):
        self._configs: Dict[str, ToolConfig] = dict(configs or {})
        self._classes: Dict[str, Type[BaseTool]] = {}

    def register(self, name: str, tool_class: Type[BaseTool]) -> None:
        """Register a tool class directly, bypassing module loading."""
        self._classes[name.lower()] = tool_class

    def names(self) -> List[str]:
        return sorted(set(self._configs) | set(self._classes))

    def has(self, name: str) -> bool:
        return name.lower() in self._classes or name.lower() in self._configs

    def get(self, name: str) -> RegisteredTool:
        """Resolve a tool name.

        Raises:
            ToolNotFoundError: If no tool is configured under the name
            ToolLoadError: If the configured module has no usable BaseTool subclass
        """
        key = name.lower()
        if key not in self._classes:
            if key not in self._configs:
                raise ToolNotFoundError(name, self.names())
            self._classes[key] = self._load_tool_class(key, self._configs[key])
        return RegisteredTool(name=key, tool_class=self._classes[key])

    @staticmethod
    def _load_tool_class(tool_name: str, config: ToolConfig) -> Type[BaseTool]:
        """Dynamically load a tool class by name using introspection."""
        module_path = config.module

        try:
            module = importlib.import_module(module_path)
        except ImportError as e:
            raise ToolLoadError(f"Could not import module '{module_path}' for tool '{tool_name}': {e}") from e

        # Find the BaseTool subclass defined in the module
        for _, obj in inspect.getmembers(module, inspect.isclass):
            if obj is not BaseTool and issubclass(obj, BaseTool) and obj.__module__ == module.__name__:
                return obj

        raise ToolLoadError(f"No BaseTool subclass found in module '{module_path}' for tool '{tool_name}'")


def get_tool_registry() -> ToolRegistry:
    """Tool registry built from the current settings.yaml."""
    return ToolRegistry(get_tools_config())
