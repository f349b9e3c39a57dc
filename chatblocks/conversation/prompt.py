"""Named prompt resolution."""

from typing import Optional, Tuple

from chatblocks.document.model import BlockAccessor
from chatblocks.document.tokens import without_pending_token


PromptPair = Tuple[Optional[str], Optional[str]]


def resolve_prompt(document: BlockAccessor, block_name: str) -> Optional[PromptPair]:
    """Resolve a named block into a (user, assistant) turn pair.

    The lookup covers the whole document, unlike session history which only
    looks backwards. Returns None when no block carries the name; callers
    omit the reference silently.
    """
    block = document.find_named(block_name)
    if block is None:
        return None
    return block.body, without_pending_token(block.result)
