"""
Request dispatcher.

A live dispatch writes a unique pending-response token into the block's
result region and returns immediately. When the backend answers, the token
is found again by its literal text and replaced with the response. The
token is the only correlation between request and document: if the user
edits the placeholder away, the response is dropped.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Sequence

import yaml

from chatblocks.conversation.directive import Directive
from chatblocks.document.model import Block, ChatDocument
from chatblocks.document.parser import escape_result_markers
from chatblocks.document.store import splice_token, write_block_result
from chatblocks.document.tokens import new_token
from chatblocks.llm.transport import ChatTransport, PayloadTransform, ResponseCallback
from chatblocks.logger import UnifiedLogger
from chatblocks.parameters.config import RequestConfig
from chatblocks.tools.base import ToolScope

logger = UnifiedLogger(tag="dispatcher")


@dataclass(frozen=True)
class DispatchOutcome:
    """What a dispatch handed back to the caller.

    Attributes:
        text: The pending token (live) or the rendered payload (dry run)
        token: The pending token, None for dry runs
        dry_run: Whether the payload was rendered instead of sent
    """
    text: str
    token: Optional[str]
    dry_run: bool


def render_dry_run(payload: Dict[str, Any]) -> str:
    """Render a payload as a fenced YAML block for the result region."""
    rendered = yaml.safe_dump(payload, sort_keys=False, allow_unicode=True, default_flow_style=False)
    return f"```yaml\n{rendered.rstrip()}\n```"


class RequestDispatcher:
    """Sends block requests and splices responses back into their documents."""

    def __init__(self, transport: ChatTransport, vault_root: Optional[Path] = None):
        self.transport = transport
        self.vault_root = vault_root

    def dispatch(
        self,
        document: ChatDocument,
        block: Block,
        body: Optional[str],
        config: RequestConfig,
        directive: Directive,
        transforms: Sequence[PayloadTransform] = (),
    ) -> DispatchOutcome:
        """Dispatch one block request.

        Dry runs return the rendered payload and touch nothing. Live runs
        need a running event loop; everything that can fail is checked
        before the token is written.

        Raises:
            RuntimeError: Live dispatch without a running event loop
            ChatBlocksError: Backend cannot build a model, or the block vanished
        """
        scope = None
        if document.path is not None:
            scope = ToolScope(vault_root=Path(self.vault_root or document.path.parent), document=document.path)
        label = f"{document.path}@{block.start}" if document.path else None

        prepared = self.transport.prepare(
            body or "",
            config,
            directive,
            transforms,
            scope=scope,
            label=label,
        )

        if config.dry_run:
            return DispatchOutcome(
                text=render_dry_run(self.transport.render_payload(prepared)),
                token=None,
                dry_run=True,
            )

        if document.path is None:
            raise ValueError("Live dispatch needs a document stored on disk")

        # Fail before touching the document when there is no loop to run on
        asyncio.get_running_loop()

        token = new_token()
        write_block_result(document.path, block.start, token)
        self.transport.send(prepared, self.completion_callback(document.path, token, block.name or block.start))
        return DispatchOutcome(text=token, token=token, dry_run=False)

    def completion_callback(self, path: Path, token: str, block: Any = None) -> ResponseCallback:
        """Callback splicing a response over token in the document at path.

        Result markers inside the response are escaped so the text cannot
        close the result region early.
        """

        def on_response(response: Optional[str], info: Dict[str, Any]) -> None:
            if response is None or info.get("status") != "ok":
                logger.activity(
                    "Chat request failed; placeholder left in place",
                    level="error",
                    path=path,
                    block=block,
                    token=token,
                    error=info.get("error"),
                )
                return

            if splice_token(path, token, escape_result_markers(response.strip())):
                logger.activity(
                    "Response spliced",
                    path=path,
                    block=block,
                    backend=info.get("backend"),
                    model=info.get("model"),
                )
            else:
                logger.debug("Pending token no longer in document, response dropped", path=str(path), token=token)

        return on_response
