"""
Chat block execution.

Runs one block end to end: locate it in its document, build the effective
configuration, reconstruct the conversation, and hand everything to the
dispatcher. Live runs return the pending token; dry runs write the rendered
payload into the block's result region and return it.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from chatblocks.constants import PROMPT_KEY, SESSION_KEY
from chatblocks.conversation.directive import Directive, assemble
from chatblocks.conversation.prompt import resolve_prompt
from chatblocks.conversation.session import build_session_history
from chatblocks.dispatch.dispatcher import RequestDispatcher
from chatblocks.document.model import Block, ChatDocument
from chatblocks.document.store import load_document, resolve_document_path, write_block_result
from chatblocks.errors import BlockNotFoundError
from chatblocks.llm.backends import BackendRegistry
from chatblocks.llm.presets import PresetRegistry
from chatblocks.logger import UnifiedLogger
from chatblocks.parameters.config import RequestConfig, RequestDefaults
from chatblocks.parameters.overlay import build_request_config
from chatblocks.runtime.paths import get_data_root
from chatblocks.tools.registry import ToolRegistry
from chatblocks.utils.context_files import ContextFilesTransform

logger = UnifiedLogger(tag="block-executor")


@dataclass(frozen=True)
class BlockExecutionResult:
    """Outcome of running one block.

    Attributes:
        path: Document path relative to the data root
        block_start: Offset of the block's opening fence
        result: Pending token for live runs, rendered payload for dry runs
        token: Pending token, None for dry runs
        dry_run: Whether the payload was rendered instead of sent
    """
    path: str
    block_start: int
    result: str
    token: Optional[str]
    dry_run: bool


def locate_block(document: ChatDocument, position: Optional[int] = None, name: Optional[str] = None) -> Block:
    """Find the block to run, by @name or by a position inside it.

    Raises:
        BlockNotFoundError: If nothing matches or neither selector is given
    """
    if name:
        block = document.find_named(name)
        if block is None:
            raise BlockNotFoundError(f"No chat block named '{name}' in {document.path}")
        return block

    if position is not None:
        block = document.block_at(position)
        if block is None:
            raise BlockNotFoundError(f"No chat block at offset {position} in {document.path}")
        return block

    raise BlockNotFoundError("Select a chat block by position or name")


def build_directive(document: ChatDocument, block: Block, system: Optional[str]) -> Directive:
    """Reconstruct the conversation preceding a block."""
    history: List[Optional[str]] = []
    session_id = block.get(SESSION_KEY)
    if session_id:
        history = build_session_history(document, session_id, block.start)

    prompt_pair = None
    prompt_name = block.get(PROMPT_KEY)
    if prompt_name:
        prompt_pair = resolve_prompt(document, prompt_name)
        if prompt_pair is None:
            logger.debug("Prompt block not found, reference omitted", prompt=prompt_name)

    return assemble(system, history, prompt_pair)


class BlockExecutor:
    """Executes chat blocks stored under the data root.

    Registries and defaults left as None are rebuilt from settings.yaml on
    every execution, so settings edits apply without a restart.
    """

    def __init__(
        self,
        dispatcher: RequestDispatcher,
        data_root: Optional[Path] = None,
        *,
        defaults: Optional[RequestDefaults] = None,
        backends: Optional[BackendRegistry] = None,
        tools: Optional[ToolRegistry] = None,
        presets: Optional[PresetRegistry] = None,
    ):
        self.dispatcher = dispatcher
        self._data_root = data_root
        self.defaults = defaults
        self.backends = backends
        self.tools = tools
        self.presets = presets

    @property
    def data_root(self) -> Path:
        return Path(self._data_root or get_data_root())

    def load(self, path: str) -> ChatDocument:
        return load_document(resolve_document_path(path, self.data_root))

    def build_config(self, block: Block) -> RequestConfig:
        return build_request_config(
            block.parameters,
            self.defaults,
            backends=self.backends,
            tools=self.tools,
            presets=self.presets,
        )

    async def execute(
        self,
        path: str,
        position: Optional[int] = None,
        name: Optional[str] = None,
    ) -> BlockExecutionResult:
        """Run the selected block of the document at path.

        Raises:
            DocumentError: Document missing or outside the data root
            BlockNotFoundError: No block matches the selector
            RegistryLookupError: Unknown backend, tool or preset
            BackendConfigurationError: Backend cannot build a model
        """
        document = self.load(path)
        block = locate_block(document, position, name)
        relative_path = document.path.relative_to(self.data_root.resolve()).as_posix()

        with logger.span("execute_block", path=relative_path, block_start=block.start):
            config = self.build_config(block)
            directive = build_directive(document, block, config.system)
            transforms = [
                ContextFilesTransform(
                    entries=config.context,
                    base_dir=document.path.parent,
                    data_root=self.data_root,
                    media=config.media,
                )
            ]

            outcome = self.dispatcher.dispatch(document, block, block.body, config, directive, transforms)

            if outcome.dry_run:
                write_block_result(document.path, block.start, outcome.text)

        logger.activity(
            "Chat block executed",
            path=document.path,
            block=block.name or block.start,
            backend=config.backend_name,
            model=config.model,
            dry_run=outcome.dry_run,
        )

        return BlockExecutionResult(
            path=relative_path,
            block_start=block.start,
            result=outcome.text,
            token=outcome.token,
            dry_run=outcome.dry_run,
        )

    def preview_history(self, path: str, session_id: str, position: int) -> List[Optional[str]]:
        """Session history a block at position would receive."""
        return build_session_history(self.load(path), session_id, position)
