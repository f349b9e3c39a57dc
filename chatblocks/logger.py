"""
Logging for chatblocks.

Technical logs and spans go to logfire. Block lifecycle events (executed,
spliced, failed, bootstrap) are additionally appended as JSON lines to
`<system_root>/activity.log`, keyed by document and block, so a vault owner
can follow what happened to a block without a logfire project.
"""

from __future__ import annotations

import json
import logging
from contextlib import contextmanager
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from threading import Lock
from typing import Any, Dict, Optional, Tuple, Union

import logfire

from chatblocks.runtime.paths import get_data_root, get_system_root
from chatblocks.settings.secrets_store import get_secret_value
from chatblocks.settings.store import get_general_setting_value


ACTIVITY_LOG_NAME = "activity.log"
SYSTEM_DOCUMENT = "system"

_logfire_lock = Lock()
_logfire_state: Optional[Tuple[bool, Optional[str]]] = None
_pydantic_ai_instrumented = False

_activity_lock = Lock()
_activity_log: Optional["ActivityLog"] = None

_internal = logging.getLogger(__name__)


def refresh_logfire_configuration(force: bool = False) -> None:
    """Apply the `logfire` general setting and the LOGFIRE_TOKEN secret.

    Data is only sent when the setting is on and a token is present.
    Reconfigures only when either changed, unless force is set.
    """
    global _logfire_state, _pydantic_ai_instrumented

    try:
        enabled = bool(get_general_setting_value("logfire", False))
    except (OSError, ValueError) as exc:
        _internal.error("Cannot read logfire setting, sending disabled: %s", exc)
        enabled = False

    token = get_secret_value("LOGFIRE_TOKEN") if enabled else None
    state = (enabled, token)

    with _logfire_lock:
        if _logfire_state == state and not force:
            return

        logfire.configure(
            send_to_logfire="if-token-present" if enabled else False,
            token=token,
            scrubbing=False,
        )
        if not _pydantic_ai_instrumented:
            logfire.instrument_pydantic_ai()
            _pydantic_ai_instrumented = True
        _logfire_state = state


def _ensure_logfire() -> None:
    if _logfire_state is None:
        refresh_logfire_configuration()


class ActivityLog:
    """Rotating JSON-lines file of block lifecycle events."""

    max_bytes = 1_048_576
    backup_count = 5

    def __init__(self, path: Path):
        self.path = path
        path.parent.mkdir(parents=True, exist_ok=True)
        self._handler = RotatingFileHandler(path, maxBytes=self.max_bytes, backupCount=self.backup_count, encoding="utf-8")
        self._handler.setFormatter(logging.Formatter("%(message)s"))

    def write(self, entry: Dict[str, Any]) -> None:
        line = json.dumps(entry, ensure_ascii=False, default=str)
        self._handler.handle(logging.makeLogRecord({"msg": line, "levelno": logging.INFO, "levelname": "INFO"}))

    def close(self) -> None:
        self._handler.close()


def get_activity_log() -> ActivityLog:
    """Activity log of the active system root, reopened when the root changes."""
    global _activity_log

    path = get_system_root() / ACTIVITY_LOG_NAME
    with _activity_lock:
        if _activity_log is None or _activity_log.path != path:
            if _activity_log is not None:
                _activity_log.close()
            _activity_log = ActivityLog(path)
        return _activity_log


def document_label(path: Union[str, Path, None]) -> str:
    """Document path relative to the data root; "system" for events without one."""
    if path is None:
        return SYSTEM_DOCUMENT
    candidate = Path(str(path))
    try:
        return candidate.resolve().relative_to(get_data_root().resolve()).as_posix()
    except ValueError:
        return candidate.as_posix()


class UnifiedLogger:
    """Tagged logger writing to logfire and, for activity(), the activity log."""

    def __init__(self, tag: str):
        self.tag = tag

    def _emit(self, level: str, message: str, **extra: Any) -> None:
        _ensure_logfire()
        getattr(logfire, level)(message, tag=self.tag, **extra)

    def info(self, message: str, **extra: Any) -> None:
        self._emit("info", message, **extra)

    def warning(self, message: str, **extra: Any) -> None:
        self._emit("warning", message, **extra)

    def error(self, message: str, **extra: Any) -> None:
        self._emit("error", message, **extra)

    def debug(self, message: str, **extra: Any) -> None:
        self._emit("debug", message, **extra)

    @contextmanager
    def span(self, operation: str, **span_data: Any):
        """logfire span named `<tag>:<operation>`."""
        _ensure_logfire()
        with logfire.span(f"{self.tag}:{operation}", **span_data):
            yield

    def activity(
        self,
        message: str,
        *,
        path: Union[str, Path, None] = None,
        block: Union[str, int, None] = None,
        level: str = "info",
        metadata: Optional[Dict[str, Any]] = None,
        **context: Any,
    ) -> None:
        """Record a block lifecycle event and mirror it to logfire.

        Args:
            message: Human-readable description of the event
            path: Document the event concerns; omitted for system events
            block: Block name, or its start offset when unnamed
            level: info, warning or error
            metadata: Structured payload stored as-is
            **context: Extra fields, stored as strings
        """
        entry: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(timespec="seconds"),
            "level": level,
            "tag": self.tag,
            "document": document_label(path),
            "message": message,
        }
        if block is not None:
            entry["block"] = block
        if metadata:
            entry["metadata"] = metadata
        if context:
            entry["context"] = {key: str(value) for key, value in context.items()}

        get_activity_log().write(entry)
        self._emit(
            level if level in ("debug", "info", "warning", "error") else "info",
            message,
            document=entry["document"],
            block=block,
            metadata=metadata,
        )

    def setup_instrumentation(self, app=None) -> None:
        """Instrument the FastAPI app and route stdlib logging into logfire."""
        _ensure_logfire()
        if app is not None:
            logfire.instrument_fastapi(app)
        logging.basicConfig(handlers=[logfire.LogfireLoggingHandler()], level=logging.INFO)
