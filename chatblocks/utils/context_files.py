"""
Context file injection for chat requests.

Text files named by @context are appended to the system instructions under
a Context section. Images are attached to the user prompt when media is
enabled. Anything that cannot be used leaves a marker in its place so the
model (and a dry-run reader) can see what was left out.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence

from pydantic_ai import BinaryContent

from chatblocks.constants import CONTEXT_SECTION_HEADING
from chatblocks.llm.transport import Attachment, PromptPayload
from chatblocks.logger import UnifiedLogger

logger = UnifiedLogger(tag="context-files")


_EXT_TO_MIME = {
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".gif": "image/gif",
    ".webp": "image/webp",
}


def format_missing_context_marker(path: str) -> str:
    return f"[MISSING CONTEXT: {path}]"


def format_image_skipped_marker(reason: str, name: str) -> str:
    return f"[IMAGE SKIPPED ({reason}): {name}]"


def format_image_attached_marker(name: str) -> str:
    return f"[IMAGE: {name}]"


def is_image_path(path: Path) -> bool:
    return path.suffix.lower() in _EXT_TO_MIME


def resolve_context_path(entry: str, base_dir: Path, data_root: Path) -> Optional[Path]:
    """Resolve a context entry against the document directory.

    Returns:
        The resolved path, or None when it escapes the data root
    """
    candidate = Path(entry)
    resolved = (candidate if candidate.is_absolute() else base_dir / candidate).resolve()
    root = data_root.resolve()
    if resolved != root and root not in resolved.parents:
        return None
    return resolved


@dataclass(frozen=True)
class ContextFilesTransform:
    """Payload transform injecting @context files.

    Attributes:
        entries: Context paths, in order
        base_dir: Directory of the document running the block
        data_root: Boundary no context path may escape
        media: Attach images; when False they are replaced by a marker
    """
    entries: Sequence[str]
    base_dir: Path
    data_root: Path
    media: bool = True

    def __call__(self, payload: PromptPayload) -> PromptPayload:
        if not self.entries:
            return payload

        sections: List[str] = []
        attachments: List[Attachment] = []

        for entry in self.entries:
            path = resolve_context_path(entry, self.base_dir, self.data_root)
            if path is None:
                logger.warning("Context path escapes data root", entry=entry)
                sections.append(format_missing_context_marker(entry))
                continue

            if not path.is_file():
                logger.warning("Context file not found", entry=entry, path=str(path))
                sections.append(format_missing_context_marker(entry))
                continue

            if is_image_path(path):
                if not self.media:
                    sections.append(format_image_skipped_marker("media disabled", path.name))
                    continue
                attachments.append(
                    Attachment(
                        name=entry,
                        content=BinaryContent(data=path.read_bytes(), media_type=_EXT_TO_MIME[path.suffix.lower()]),
                    )
                )
                sections.append(format_image_attached_marker(entry))
                continue

            try:
                text = path.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as exc:
                logger.warning("Context file unreadable", entry=entry, error=str(exc))
                sections.append(format_missing_context_marker(entry))
                continue

            sections.append(f"### {entry}\n\n{text.strip()}")

        context_block = CONTEXT_SECTION_HEADING + "\n\n" + "\n\n".join(sections)
        system = f"{payload.system}\n\n{context_block}" if payload.system else context_block
        return payload.with_system(system).with_attachments(attachments)
