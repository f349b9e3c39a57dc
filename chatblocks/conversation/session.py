"""
Session history reconstruction.

A session is the set of blocks sharing a `@session` value. Their bodies and
results, in document order, form an alternating user/assistant history.
"""

from typing import List, Optional

from chatblocks.constants import SESSION_KEY
from chatblocks.document.model import BlockAccessor
from chatblocks.document.tokens import without_pending_token


def build_session_history(
    document: BlockAccessor,
    session_id: str,
    up_to_position: int,
) -> List[Optional[str]]:
    """Collect the turns of a session that precede a position.

    Only blocks starting strictly before up_to_position whose session
    parameter equals session_id are used. Each contributes exactly two
    entries, body then result, even when either is None, so even indexes are
    always user turns and odd indexes assistant turns.

    A result that is still an unresolved pending-response token counts as
    None. The history reflects the document at scan time: a sibling whose
    response has not landed yet contributes no assistant text.

    Returns:
        Alternating list of turns, empty when no block matches
    """
    blocks = sorted(document.blocks_before(up_to_position), key=lambda block: block.start)

    history: List[Optional[str]] = []
    for block in blocks:
        if block.parameters.get(SESSION_KEY) != session_id:
            continue
        history.append(block.body)
        history.append(without_pending_token(block.result))

    return history
