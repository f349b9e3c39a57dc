"""
Data and system roots.

The active runtime's roots win; without one (tests, tooling) the
environment settings apply.
"""

from pathlib import Path

from chatblocks.runtime.state import get_active_runtime
from chatblocks.settings.environment import get_app_settings


def get_data_root() -> Path:
    """Root holding the markdown documents."""
    runtime = get_active_runtime()
    if runtime is not None:
        return Path(runtime.config.data_root)
    return get_app_settings().data_root


def get_system_root() -> Path:
    """Root holding settings.yaml, secrets.yaml and activity.log."""
    runtime = get_active_runtime()
    if runtime is not None:
        return Path(runtime.config.system_root)
    return get_app_settings().system_root
