"""
Infrastructure settings loaded from environment variables.

Only infrastructure-level values (filesystem roots) live in the environment.
Secrets are handled by the secrets store; everything else is in settings.yaml.
"""

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field, ValidationInfo, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Container defaults. Kept here to discourage direct import elsewhere.
_DEFAULT_DATA_ROOT = Path("/app/data")
_DEFAULT_SYSTEM_ROOT = Path("/app/system")


class AppSettings(BaseSettings):
    """Filesystem roots for documents (data) and settings/secrets/logs (system)."""

    model_config = SettingsConfigDict(env_file=None, extra="ignore", case_sensitive=True)

    data_root: Path = Field(default=_DEFAULT_DATA_ROOT, alias="CHATBLOCKS_DATA_ROOT")
    system_root: Path = Field(default=_DEFAULT_SYSTEM_ROOT, alias="CHATBLOCKS_SYSTEM_ROOT")
    log_level: Optional[str] = Field(default=None, alias="CHATBLOCKS_LOG_LEVEL")

    @field_validator("data_root", "system_root", mode="before")
    @classmethod
    def _expand_path(cls, value, info: ValidationInfo):
        """Expand user paths; an empty variable keeps the container default."""
        if value in (None, ""):
            return cls.model_fields[info.field_name].default
        if isinstance(value, Path):
            return value.expanduser()
        return Path(value).expanduser()


@lru_cache(maxsize=1)
def get_app_settings() -> AppSettings:
    """Load application settings from environment variables."""
    return AppSettings()


def refresh_app_settings_cache() -> None:
    """Clear cached settings so future calls reload from environment."""
    get_app_settings.cache_clear()  # type: ignore[attr-defined]
