"""
Read-only vault access for chat blocks.

The model can list, read and search markdown notes of the vault the block's
document lives in. Nothing is ever written.
"""

import subprocess
from typing import List, Optional

from chatblocks.logger import UnifiedLogger
from .base import BaseTool, ToolScope


logger = UnifiedLogger(tag="file-ops-safe-tool")

MAX_SEARCH_RESULTS = 100
SEARCH_TIMEOUT_SECONDS = 10
OPERATIONS = ("read", "list", "search")


class FileOpsSafe(BaseTool):
    """list/read/search over markdown files inside the vault."""

    @classmethod
    def get_tool(cls, scope: Optional[ToolScope] = None):
        def file_operations(operation: str, path: str = "", pattern: str = "") -> str:
            """Read-only operations on markdown notes in the vault.

            Args:
                operation: One of read, list, search
                path: Note path relative to the vault (the search term for 'search')
                pattern: Glob for list/search, e.g. '*.md' or 'projects/**/*.md'

            Returns:
                Operation result, or a message describing why it failed
            """
            logger.debug("tool_invoked", tool="file_ops_safe", operation=operation)
            if scope is None:
                return "File operations are unavailable: no vault is attached to this block."
            if operation not in OPERATIONS:
                return f"Unknown operation '{operation}'. Available: {', '.join(OPERATIONS)}"

            try:
                if operation == "read":
                    return cls._read(scope, path)
                if operation == "list":
                    return cls._list(scope, pattern or path or "*")
                return cls._search(scope, path, pattern or "*.md")
            except (OSError, ValueError) as exc:
                return f"Error performing '{operation}' operation: {exc}"

        return file_operations

    @classmethod
    def get_instructions(cls) -> str:
        return """READ-ONLY access to the markdown notes of this vault:

- file_operations('list', pattern='*'): top-level files and folders (start here)
- file_operations('list', pattern='projects/*.md'): notes of one folder
- file_operations('read', 'projects/plan.md'): one note's content
- file_operations('search', path='term', pattern='*.md'): matching lines as
  file:line:text, at most 100 results

Paths are relative to the vault root. Read only notes relevant to the request.
"""

    @staticmethod
    def _read(scope: ToolScope, path: str) -> str:
        target = scope.resolve(path)
        if target.is_dir():
            return f"'{path}' is a folder. Use file_operations('list', pattern='{path}/*.md') to see its notes."
        if not target.exists():
            return f"'{path}' does not exist. Use file_operations('list', pattern='*.md') to see available notes."

        content = target.read_text(encoding="utf-8")
        return f"Read '{path}' ({len(content)} characters)\n\n{content}"

    @staticmethod
    def _list(scope: ToolScope, pattern: str) -> str:
        if pattern.startswith("/") or ".." in pattern.split("/"):
            raise ValueError("Pattern must stay inside the vault (no leading '/' or '..')")

        root = scope.vault_root.resolve()
        folders: List[str] = []
        notes: List[str] = []
        for match in sorted(root.glob(pattern)):
            if root not in match.resolve().parents:
                continue
            relative = scope.relative(match)
            if match.is_dir():
                folders.append(f"  {relative}/")
            else:
                notes.append(f"  {relative}")

        if not folders and not notes:
            return f"Nothing matches '{pattern}'"

        sections = []
        if folders:
            sections.append(f"Directories ({len(folders)}):\n" + "\n".join(folders))
        if notes:
            sections.append(f"Files ({len(notes)}):\n" + "\n".join(notes))
        return "\n\n".join(sections)

    @staticmethod
    def _search(scope: ToolScope, term: str, pattern: str) -> str:
        if not term:
            return "Search needs a term in the 'path' argument"

        command = ["rg", "--no-heading", "--line-number", "--color", "never", "--glob", pattern, term, "."]
        try:
            completed = subprocess.run(
                command,
                cwd=scope.vault_root,
                capture_output=True,
                text=True,
                timeout=SEARCH_TIMEOUT_SECONDS,
            )
        except FileNotFoundError:
            return "Search is unavailable: ripgrep (rg) is not installed."
        except subprocess.TimeoutExpired:
            return f"Search took longer than {SEARCH_TIMEOUT_SECONDS} seconds; narrow it with a pattern."

        if completed.returncode == 1:
            return f"No matches for '{term}' in notes matching '{pattern}'"
        if completed.returncode != 0:
            return f"Search error: {completed.stderr.strip() or 'unknown error'}"

        lines = [line.removeprefix("./") for line in completed.stdout.splitlines()]
        shown = "\n".join(lines[:MAX_SEARCH_RESULTS])
        if len(lines) > MAX_SEARCH_RESULTS:
            return (
                f"Found {len(lines)} matches (showing first {MAX_SEARCH_RESULTS}):\n\n{shown}"
                f"\n\n... {len(lines) - MAX_SEARCH_RESULTS} more matches truncated"
            )
        return f"Found {len(lines)} matches:\n\n{shown}"
