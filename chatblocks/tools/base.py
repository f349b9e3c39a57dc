"""
Tool interface.

A tool is built per request for a ToolScope: the vault the block's document
lives in and the document itself. Paths the model passes to a tool are
resolved against the vault and may never leave it.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from chatblocks.constants import DOCUMENT_EXTENSION


@dataclass(frozen=True)
class ToolScope:
    """Vault root plus the document running the block."""
    vault_root: Path
    document: Optional[Path] = None

    @property
    def document_label(self) -> Optional[str]:
        if self.document is None:
            return None
        return self.relative(self.document)

    def relative(self, path: Path) -> str:
        return path.resolve().relative_to(self.vault_root.resolve()).as_posix()

    def resolve(self, path: str, *, markdown_only: bool = True) -> Path:
        """Resolve a vault-relative path.

        Raises:
            ValueError: If the path is absolute, escapes the vault, or names
                a non-markdown file while markdown_only is set
        """
        candidate = Path(path)
        if candidate.is_absolute():
            raise ValueError(f"Absolute paths not allowed: '{path}'")
        if ".." in candidate.parts:
            raise ValueError(f"Path traversal not allowed: '{path}'")
        if markdown_only and candidate.suffix and candidate.suffix != DOCUMENT_EXTENSION:
            raise ValueError(f"Only {DOCUMENT_EXTENSION} files can be read: '{path}'")

        root = self.vault_root.resolve()
        resolved = (root / candidate).resolve()
        if resolved != root and root not in resolved.parents:
            raise ValueError(f"Path escapes the vault: '{path}'")
        return resolved


class BaseTool(ABC):
    """Base class for tools a block can enable with @tools."""

    @classmethod
    @abstractmethod
    def get_tool(cls, scope: Optional[ToolScope] = None):
        """Build the pydantic-ai tool for one request."""

    @classmethod
    @abstractmethod
    def get_instructions(cls) -> str:
        """Usage text appended to the instructions when the tool is enabled."""
