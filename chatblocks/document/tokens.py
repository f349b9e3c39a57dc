"""
Pending-response tokens.

A token is written into a block's result region when a request is dispatched
and later replaced by the response text. The token text itself is the only
correlation between an in-flight request and its document location.
"""

import re
import uuid
from typing import Optional

from chatblocks.constants import (
    PENDING_TOKEN_PATTERN,
    PENDING_TOKEN_PREFIX,
    PENDING_TOKEN_SUFFIX,
)


PENDING_TOKEN_RE = re.compile(PENDING_TOKEN_PATTERN)


def new_token() -> str:
    """Return a fresh, globally unique pending-response token."""
    return f"{PENDING_TOKEN_PREFIX}{uuid.uuid4().hex}{PENDING_TOKEN_SUFFIX}"


def is_pending_token(text: Optional[str]) -> bool:
    """Return True when the text is exactly one unresolved token."""
    if not text:
        return False
    return PENDING_TOKEN_RE.fullmatch(text.strip()) is not None


def without_pending_token(text: Optional[str]) -> Optional[str]:
    """Map an unresolved token to None; other text passes through."""
    return None if is_pending_token(text) else text
