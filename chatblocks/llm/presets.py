"""
Preset registry.

A preset is a named bundle of request defaults from the `presets:` section
of settings.yaml. Applying one layers its values over the current defaults
and returns a new RequestDefaults; the input is left as it was.
"""

from typing import Dict, List, Optional

from chatblocks.errors import PresetNotFoundError
from chatblocks.parameters.config import RequestDefaults
from chatblocks.settings.store import PresetConfig, get_presets_config


class PresetRegistry:
    """Name -> preset lookup."""

    def __init__(self, presets: Optional[Dict[str, PresetConfig]] = None):
        self._presets: Dict[str, PresetConfig] = {
            name.lower(): preset for name, preset in (presets or {}).items()
        }

    def register(self, name: str, preset: PresetConfig) -> None:
        self._presets[name.lower()] = preset

    def names(self) -> List[str]:
        return sorted(self._presets)

    def has(self, name: str) -> bool:
        return name.lower() in self._presets

    def get(self, name: str) -> PresetConfig:
        """Return the preset registered under name.

        Raises:
            PresetNotFoundError: If no preset is configured under the name
        """
        preset = self._presets.get(name.lower())
        if preset is None:
            raise PresetNotFoundError(name, self.names())
        return preset

    def apply(self, name: str, defaults: RequestDefaults) -> RequestDefaults:
        """Layer the named preset over defaults."""
        overrides = self.get(name).overrides()
        overrides["preset"] = name.lower()
        return defaults.model_copy(update=overrides)


def get_preset_registry() -> PresetRegistry:
    """Preset registry built from the current settings.yaml."""
    return PresetRegistry(get_presets_config())
