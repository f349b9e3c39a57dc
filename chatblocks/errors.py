"""
Exception hierarchy for chat block execution.

Registry misses are fatal for a single execution and are raised before any
network call or document mutation. Resolution misses (a named prompt or a
session that matches nothing) are not errors and never raise.
"""


class ChatBlocksError(Exception):
    """Base exception for chat block errors."""
    pass


class DocumentError(ChatBlocksError):
    """Raised when a document cannot be read, written or located."""
    pass


class BlockNotFoundError(ChatBlocksError):
    """Raised when no chat block exists at the requested position or name."""
    pass


class RegistryLookupError(ChatBlocksError):
    """Base exception for unknown names in a capability registry."""

    registry_name = "registry"

    def __init__(self, name: str, available: list[str] | None = None):
        self.name = name
        self.available = sorted(available or [])
        message = f"Unknown {self.registry_name} '{name}'"
        if self.available:
            message += f". Available: {', '.join(self.available)}"
        super().__init__(message)


class BackendNotFoundError(RegistryLookupError):
    """Raised when a block names a backend that is not configured."""

    registry_name = "backend"


class ToolNotFoundError(RegistryLookupError):
    """Raised when a block names a tool that is not configured."""

    registry_name = "tool"


class PresetNotFoundError(RegistryLookupError):
    """Raised when a block names a preset that is not configured."""

    registry_name = "preset"


class ToolLoadError(ChatBlocksError):
    """Raised when a configured tool module cannot be loaded."""
    pass


class BackendConfigurationError(ChatBlocksError):
    """Raised when a backend is known but cannot build a model (missing key or base_url)."""
    pass
