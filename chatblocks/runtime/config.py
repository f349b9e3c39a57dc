"""
Where a ChatBlocks instance keeps its documents and its own state.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict

from chatblocks.errors import ChatBlocksError
from chatblocks.settings.environment import get_app_settings


LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class RuntimeConfigError(ChatBlocksError):
    """Roots cannot be created, log level unknown, or settings.yaml broken."""


@dataclass
class RuntimeConfig:
    """
    Attributes:
        data_root: Vault whose markdown documents hold chat blocks
        system_root: settings.yaml, secrets.yaml and activity.log live here
        log_level: One of LOG_LEVELS
        features: Free-form flags echoed in the runtime summary
    """

    data_root: Path
    system_root: Path
    log_level: str = "INFO"
    features: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        self.data_root = Path(self.data_root)
        self.system_root = Path(self.system_root)
        self.log_level = self.log_level.upper()
        if self.log_level not in LOG_LEVELS:
            raise RuntimeConfigError(f"Unknown log level '{self.log_level}', expected one of {', '.join(LOG_LEVELS)}")

        for root in (self.data_root, self.system_root):
            try:
                root.mkdir(parents=True, exist_ok=True)
            except OSError as exc:
                raise RuntimeConfigError(f"Cannot create {root}: {exc}") from exc

    @classmethod
    def from_environment(cls) -> "RuntimeConfig":
        """Roots and log level from CHATBLOCKS_* variables."""
        env = get_app_settings()
        return cls(data_root=env.data_root, system_root=env.system_root, log_level=env.log_level or "INFO")

    @classmethod
    def for_testing(cls, run_path: Path) -> "RuntimeConfig":
        return cls(
            data_root=run_path / "data",
            system_root=run_path / "system",
            log_level="DEBUG",
            features={"testing": True},
        )
