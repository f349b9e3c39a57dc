"""
Chat block parser.

Finds fenced code blocks tagged `chat` in a markdown document, extracts the
@parameter lines at the top of each block and the result region that follows
the closing fence.

Example:

    ```chat
    @session planning
    @model sonnet

    What should I do first?
    ```
    <!-- result -->
    Start with the backlog.
    <!-- /result -->
"""

import re
from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional, Tuple

from chatblocks.constants import (
    CHAT_BLOCK_LANGUAGE,
    NAME_KEY,
    RESULT_CLOSE_MARKER,
    RESULT_OPEN_MARKER,
)


#######################################################################
## Data Classes
#######################################################################

@dataclass
class ParsedParameters:
    """Result of parsing @parameter lines from block content."""
    parameters: Dict[str, Optional[str]]
    name: Optional[str]
    body: Optional[str]


@dataclass
class RawBlock:
    """Offsets and content of one chat block, before conversion to a Block."""
    start: int
    fence_end: int
    end: int
    content: str
    result: Optional[str]
    result_span: Optional[Tuple[int, int]]


#######################################################################
## Parsing Logic
#######################################################################

# Matches: @key value, @key: value, @key
# Groups: (key, value-or-None)
PARAMETER_PATTERN = re.compile(r'^@([a-zA-Z][a-zA-Z0-9\-_]*):?(?:\s+(.*))?$')

# Opening fence: up to three spaces of indent, 3+ backticks or tildes, info string
FENCE_OPEN_PATTERN = re.compile(r'^ {0,3}(?P<fence>`{3,}|~{3,})[ \t]*(?P<info>[^\r\n]*)$')

RESULT_REGION_PATTERN = re.compile(
    r'[ \t]*\r?\n?(?:[ \t]*\r?\n)*(?P<region>'
    + re.escape(RESULT_OPEN_MARKER)
    + r'(?P<content>.*?)'
    + re.escape(RESULT_CLOSE_MARKER)
    + r')',
    re.DOTALL,
)


def parse_block_parameters(content: str) -> ParsedParameters:
    """Parse @parameter lines from the beginning of block content.

    Parameter lines may be separated by empty lines; the first other line
    starts the body. Repeated keys keep the last value. `@name` is pulled out
    as the block name rather than kept as a request parameter.

    Examples:
        >>> parsed = parse_block_parameters("@session s1\\n@dry-run\\n\\nHi")
        >>> parsed.parameters
        {'session': 's1', 'dry-run': None}
        >>> parsed.body
        'Hi'
    """
    parameters: Dict[str, Optional[str]] = {}
    lines = content.split('\n')
    body_start = len(lines)

    for i, line in enumerate(lines):
        stripped_line = line.strip()
        if not stripped_line:
            continue

        match = PARAMETER_PATTERN.match(stripped_line)
        if not match:
            body_start = i
            break

        value = match.group(2)
        value = value.strip() if value is not None else None
        parameters[match.group(1)] = value or None

    name = parameters.pop(NAME_KEY, None)
    body = '\n'.join(lines[body_start:]).strip()

    return ParsedParameters(parameters=parameters, name=name, body=body or None)


def _iter_lines(text: str) -> Iterator[Tuple[int, str]]:
    """Yield (offset, line) pairs, lines keep their line endings."""
    offset = 0
    for line in text.splitlines(keepends=True):
        yield offset, line
        offset += len(line)


def _is_closing_fence(line: str, fence: str) -> bool:
    stripped = line.strip()
    return (
        len(stripped) >= len(fence)
        and set(stripped) == {fence[0]}
        and len(line) - len(line.lstrip(' ')) <= 3
    )


def _match_result_region(text: str, position: int) -> Optional[re.Match]:
    return RESULT_REGION_PATTERN.match(text, position)


def scan_blocks(text: str) -> List[RawBlock]:
    """Locate every chat block in document order.

    Fenced blocks with other info strings are skipped whole, so a chat fence
    quoted inside another code block is not executable. An unclosed fence
    ends scanning.
    """
    blocks: List[RawBlock] = []
    lines = list(_iter_lines(text))
    resume_at = 0
    i = 0

    while i < len(lines):
        offset, line = lines[i]
        if offset < resume_at:
            i += 1
            continue

        opening = FENCE_OPEN_PATTERN.match(line.rstrip('\r\n'))
        if not opening:
            i += 1
            continue

        fence = opening.group('fence')
        info = opening.group('info').split()
        language = info[0] if info else ''

        close_index = None
        for j in range(i + 1, len(lines)):
            if _is_closing_fence(lines[j][1], fence):
                close_index = j
                break

        if close_index is None:
            break

        close_offset, close_line = lines[close_index]
        fence_end = close_offset + len(close_line)

        if language != CHAT_BLOCK_LANGUAGE:
            resume_at = fence_end
            i = close_index + 1
            continue

        content = ''.join(inner for _, inner in lines[i + 1:close_index])
        region = _match_result_region(text, fence_end)
        if region:
            result_span = (region.start('region'), region.end('region'))
            result = region.group('content').strip() or None
            end = region.end('region')
        else:
            result_span = None
            result = None
            end = fence_end

        blocks.append(
            RawBlock(
                start=offset,
                fence_end=fence_end,
                end=end,
                content=content,
                result=result,
                result_span=result_span,
            )
        )
        resume_at = end
        i = close_index + 1

    return blocks


def escape_result_markers(text: str) -> str:
    """Make result markers inside response text inert.

    A literal closing marker in a response would end the region early and
    expose the rest (including any ```chat fence) as document content. The
    markers are HTML-escaped, so they still render as the same text.
    """
    for marker in (RESULT_CLOSE_MARKER, RESULT_OPEN_MARKER):
        text = text.replace(marker, marker.replace("<", "&lt;").replace(">", "&gt;"))
    return text


def render_result_region(result_text: str) -> str:
    """Render a result region holding the given text."""
    return f"{RESULT_OPEN_MARKER}\n{escape_result_markers(result_text.strip())}\n{RESULT_CLOSE_MARKER}"
