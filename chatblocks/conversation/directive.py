"""
Directive assembly.

A Directive is the full conversation handed to the backend: a system slot
followed by alternating user/assistant turns.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from .prompt import PromptPair


@dataclass(frozen=True)
class Directive:
    """System message plus ordered turns.

    The system slot is kept even when None so callers can tell "no system
    message" apart from a missing argument. Turns alternate user/assistant
    starting with user; None entries keep their position.
    """

    system: Optional[str]
    messages: List[Optional[str]] = field(default_factory=list, hash=False)

    def as_list(self) -> List[Optional[str]]:
        """Flat form: [system, user, assistant, user, assistant, ...]."""
        return [self.system, *self.messages]


def assemble(
    system_message: Optional[str],
    session_history: Sequence[Optional[str]],
    prompt_pair: Optional[PromptPair] = None,
) -> Directive:
    """Concatenate system slot, session history and the prompt pair.

    No deduplication, truncation or token budgeting happens here.
    """
    messages: List[Optional[str]] = list(session_history)
    if prompt_pair is not None:
        user_text, assistant_text = prompt_pair
        messages.extend([user_text, assistant_text])
    return Directive(system=system_message, messages=messages)
