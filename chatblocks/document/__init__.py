"""
Document package.

Markdown documents holding executable chat blocks:
- `chatblocks.document.parser` parses fenced chat blocks and their result regions
- `chatblocks.document.model` exposes Block and ChatDocument (the block accessor)
- `chatblocks.document.tokens` generates and recognizes pending-response tokens
- `chatblocks.document.store` reads, writes and splices documents on disk
"""

__all__: list[str] = []
