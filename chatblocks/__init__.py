"""
ChatBlocks: executable conversation blocks inside markdown documents.

Import specific components from their dedicated modules, e.g.:
- `chatblocks.document.model`
- `chatblocks.conversation.session`
- `chatblocks.llm.block_executor`
"""

__version__ = "0.1.0"

__all__: list[str] = []
