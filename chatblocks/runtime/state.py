"""
The process-wide runtime.

Bootstrap installs exactly one RuntimeContext here; path resolution, the API
and shutdown look it up. Shutdown and test teardown clear it again.
"""

from itertools import count
from threading import Lock
from typing import TYPE_CHECKING, Optional

from chatblocks.errors import ChatBlocksError

if TYPE_CHECKING:
    from .context import RuntimeContext


class RuntimeStateError(ChatBlocksError):
    """Raised when no runtime is active, or a second one is installed."""


_lock = Lock()
_active: Optional["RuntimeContext"] = None
_boot_ids = count(1)


def set_runtime_context(context: Optional["RuntimeContext"]) -> None:
    """Install the active runtime; None clears it.

    Raises:
        RuntimeStateError: If another runtime is still active
    """
    global _active

    with _lock:
        if context is not None and _active is not None:
            raise RuntimeStateError(
                f"Runtime boot {_active.boot_id} is still active. "
                "Shut it down before bootstrapping again."
            )
        _active = context


def get_active_runtime() -> Optional["RuntimeContext"]:
    return _active


def get_runtime_context() -> "RuntimeContext":
    """
    Raises:
        RuntimeStateError: If bootstrap_runtime() has not run yet
    """
    runtime = _active
    if runtime is None:
        raise RuntimeStateError("No runtime is active; chat blocks run only after bootstrap_runtime().")
    return runtime


def has_runtime_context() -> bool:
    return _active is not None


def clear_runtime_context() -> None:
    set_runtime_context(None)


def next_boot_id() -> int:
    return next(_boot_ids)
