"""
Document model for chat blocks.

ChatDocument is the block accessor used by the conversation engine: it
enumerates blocks before a position, finds a named block anywhere in the
document, and renders a new document text with a block's result replaced.
Blocks are read-only views; all mutation goes through new document text.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Protocol, Sequence, Tuple

from .parser import parse_block_parameters, render_result_region, scan_blocks


@dataclass(frozen=True)
class Block:
    """One executable chat block.

    Attributes:
        start: Offset of the opening fence; identifies the block within its document
        end: Offset after the result region, or after the closing fence when there is none
        fence_end: Offset right after the closing fence line
        name: Value of the block's @name line
        parameters: @key value lines other than @name
        body: Block text after the parameter lines, stripped (None when empty)
        result: Text inside the result region, stripped (None when absent or empty)
        result_span: (start, end) of the result region including its markers
    """

    start: int
    end: int
    fence_end: int
    name: Optional[str] = None
    parameters: Dict[str, Optional[str]] = field(default_factory=dict, hash=False)
    body: Optional[str] = None
    result: Optional[str] = None
    result_span: Optional[Tuple[int, int]] = None

    def get(self, key: str) -> Optional[str]:
        """Return a parameter value, None when absent or bare."""
        return self.parameters.get(key)


class BlockAccessor(Protocol):
    """What the conversation engine needs from a document."""

    def blocks_before(self, position: int) -> Sequence[Block]:
        ...

    def find_named(self, name: str) -> Optional[Block]:
        ...


def parse_blocks(text: str) -> List[Block]:
    """Parse all chat blocks of a document, in document order."""
    blocks = []
    for raw in scan_blocks(text):
        parsed = parse_block_parameters(raw.content)
        blocks.append(
            Block(
                start=raw.start,
                end=raw.end,
                fence_end=raw.fence_end,
                name=parsed.name,
                parameters=parsed.parameters,
                body=parsed.body,
                result=raw.result,
                result_span=raw.result_span,
            )
        )
    return blocks


@dataclass
class ChatDocument:
    """Parsed snapshot of a markdown document and its chat blocks."""

    text: str
    path: Optional[Path] = None
    blocks: Tuple[Block, ...] = field(init=False, repr=False)

    def __post_init__(self):
        self.blocks = tuple(parse_blocks(self.text))

    def blocks_before(self, position: int) -> List[Block]:
        """Blocks whose opening fence lies strictly before the position."""
        return [block for block in self.blocks if block.start < position]

    def find_named(self, name: str) -> Optional[Block]:
        """First block carrying the given @name, anywhere in the document."""
        for block in self.blocks:
            if block.name == name:
                return block
        return None

    def block_at(self, position: int) -> Optional[Block]:
        """Block whose span (fence through result region) contains the position."""
        for block in self.blocks:
            if block.start <= position < block.end:
                return block
        return None

    def block_starting_at(self, start: int) -> Optional[Block]:
        for block in self.blocks:
            if block.start == start:
                return block
        return None

    def with_result(self, block: Block, result_text: str) -> str:
        """Return the document text with the block's result region set to result_text."""
        region = render_result_region(result_text)

        if block.result_span is not None:
            region_start, region_end = block.result_span
            return self.text[:region_start] + region + self.text[region_end:]

        insert_at = block.fence_end
        prefix = "" if self.text[:insert_at].endswith("\n") else "\n"
        return self.text[:insert_at] + prefix + region + "\n" + self.text[insert_at:]
