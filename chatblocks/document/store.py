"""
Document storage.

Reads and writes markdown documents under the data root. Every
read-modify-write runs under a per-path lock and ends in an atomic replace,
so completion callbacks from any thread can splice responses safely.
"""

from __future__ import annotations

import os
import threading
from pathlib import Path
from typing import Dict, Optional

from chatblocks.constants import DOCUMENT_EXTENSION
from chatblocks.errors import BlockNotFoundError, DocumentError
from chatblocks.runtime.paths import get_data_root

from .model import ChatDocument


_locks_guard = threading.Lock()
_path_locks: Dict[Path, threading.Lock] = {}


def _lock_for(path: Path) -> threading.Lock:
    with _locks_guard:
        lock = _path_locks.get(path)
        if lock is None:
            lock = threading.Lock()
            _path_locks[path] = lock
        return lock


def resolve_document_path(path: str | Path, data_root: Optional[Path] = None) -> Path:
    """Validate a document path and resolve it within data root boundaries.

    Args:
        path: Document path, relative to the data root or absolute inside it
        data_root: Root override (defaults to the active data root)

    Returns:
        Absolute resolved path

    Raises:
        DocumentError: If the path is not markdown or escapes the data root
    """
    root = Path(data_root or get_data_root()).resolve()
    candidate = Path(path)

    if candidate.suffix != DOCUMENT_EXTENSION:
        raise DocumentError(f"Only {DOCUMENT_EXTENSION} documents can hold chat blocks: '{path}'")

    resolved = (candidate if candidate.is_absolute() else root / candidate).resolve()

    if resolved != root and root not in resolved.parents:
        raise DocumentError(f"Document path escapes data root: '{path}'")

    return resolved


def read_document_text(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except FileNotFoundError:
        raise DocumentError(f"Document not found: {path}")
    except OSError as exc:
        raise DocumentError(f"Cannot read document {path}: {exc}") from exc


def write_document_text(path: Path, text: str) -> None:
    """Persist document text using an atomic write."""
    tmp_path = path.with_name(f".{path.name}.tmp")
    with open(tmp_path, "w", encoding="utf-8") as handle:
        handle.write(text)
    os.replace(tmp_path, path)


def load_document(path: Path) -> ChatDocument:
    """Read and parse a document."""
    return ChatDocument(text=read_document_text(path), path=path)


def write_block_result(path: Path, block_start: int, result_text: str) -> ChatDocument:
    """Set the result region of the block starting at block_start.

    The document is re-read under the path lock so edits made since the
    caller's snapshot are preserved.

    Returns:
        The document as written

    Raises:
        BlockNotFoundError: If no block starts at block_start any more
    """
    with _lock_for(path):
        document = load_document(path)
        block = document.block_starting_at(block_start)
        if block is None:
            raise BlockNotFoundError(f"No chat block starts at offset {block_start} in {path}")

        updated = document.with_result(block, result_text)
        write_document_text(path, updated)

    return ChatDocument(text=updated, path=path)


def splice_token(path: Path, token: str, replacement: str) -> bool:
    """Replace the first literal occurrence of token with replacement.

    Returns:
        True when the token was found and replaced, False when it is gone
        (placeholder edited away or document deleted)
    """
    with _lock_for(path):
        try:
            text = read_document_text(path)
        except DocumentError:
            return False

        index = text.find(token)
        if index < 0:
            return False

        updated = text[:index] + replacement + text[index + len(token):]
        write_document_text(path, updated)

    return True
