"""
Backend transport built on pydantic-ai.

prepare() does everything that can fail synchronously (payload transforms,
model construction, agent assembly) so callers can bail out before touching
the document. send() schedules the request as an asyncio task and reports
the outcome through a callback; errors never propagate to the caller.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Dict, List, Optional, Sequence, Set, Tuple

from pydantic_ai import BinaryContent
from pydantic_ai.agent import Agent
from pydantic_ai.messages import (
    ModelMessage,
    ModelRequest,
    ModelResponse,
    TextPart,
    UserPromptPart,
)
from pydantic_ai.settings import ModelSettings

from chatblocks.constants import DEFAULT_TOOL_RETRIES
from chatblocks.conversation.directive import Directive
from chatblocks.logger import UnifiedLogger
from chatblocks.parameters.config import RequestConfig
from chatblocks.settings import get_default_api_timeout
from chatblocks.tools.base import ToolScope
from chatblocks.tools.utils import get_tool_instructions

logger = UnifiedLogger(tag="chat-transport")

USER_ROLE = "user"
ASSISTANT_ROLE = "assistant"

ResponseCallback = Callable[[Optional[str], Dict[str, Any]], None]


@dataclass(frozen=True)
class Attachment:
    """Binary content sent alongside the user prompt."""
    name: str
    content: BinaryContent


@dataclass(frozen=True)
class PromptPayload:
    """Everything sent to the model for one request, before model-specific encoding.

    Attributes:
        prompt: The block body (current user turn)
        system: System instructions, None for none
        history: Alternating user/assistant turns; None entries are skipped
        attachments: Binary content attached to the user prompt
    """
    prompt: str
    system: Optional[str] = None
    history: Tuple[Optional[str], ...] = ()
    attachments: Tuple[Attachment, ...] = ()

    def with_system(self, system: Optional[str]) -> "PromptPayload":
        return replace(self, system=system)

    def with_attachments(self, attachments: Sequence[Attachment]) -> "PromptPayload":
        return replace(self, attachments=(*self.attachments, *attachments))


PayloadTransform = Callable[[PromptPayload], PromptPayload]


@dataclass
class PreparedRequest:
    """A request ready to send: payload, configuration and (when live) the agent."""
    payload: PromptPayload
    config: RequestConfig
    agent: Optional[Agent] = None
    model_settings: Optional[ModelSettings] = None
    message_history: List[ModelMessage] = field(default_factory=list)
    label: Optional[str] = None

    @property
    def user_prompt(self) -> Any:
        if not self.payload.attachments:
            return self.payload.prompt
        return [self.payload.prompt, *(attachment.content for attachment in self.payload.attachments)]


def message_role(index: int) -> str:
    """Role of a history entry: even positions are user turns."""
    return USER_ROLE if index % 2 == 0 else ASSISTANT_ROLE


def to_model_messages(history: Sequence[Optional[str]]) -> List[ModelMessage]:
    """Convert alternating history turns into pydantic-ai messages.

    None entries are skipped. Consecutive turns of one role (left behind by
    a skipped entry) are merged into a single message.
    """
    messages: List[ModelMessage] = []

    for index, text in enumerate(history):
        if text is None:
            continue

        if message_role(index) == USER_ROLE:
            part = UserPromptPart(content=text)
            if messages and isinstance(messages[-1], ModelRequest):
                messages[-1] = ModelRequest(parts=[*messages[-1].parts, part])
            else:
                messages.append(ModelRequest(parts=[part]))
        else:
            part = TextPart(content=text)
            if messages and isinstance(messages[-1], ModelResponse):
                messages[-1] = ModelResponse(parts=[*messages[-1].parts, part])
            else:
                messages.append(ModelResponse(parts=[part]))

    return messages


def build_model_settings(config: RequestConfig) -> ModelSettings:
    settings_kwargs: Dict[str, Any] = {"timeout": get_default_api_timeout()}
    if config.temperature is not None:
        settings_kwargs["temperature"] = config.temperature
    if config.max_tokens is not None:
        settings_kwargs["max_tokens"] = config.max_tokens
    return ModelSettings(**settings_kwargs)


def compose_instructions(
    system: Optional[str], config: RequestConfig, scope: Optional[ToolScope] = None
) -> Optional[str]:
    """System message followed by the usage instructions of every enabled tool."""
    sections = [system] if system else []
    tool_instructions = get_tool_instructions([tool.tool_class for tool in config.tools], scope)
    if tool_instructions:
        sections.append(tool_instructions)
    return "\n\n".join(sections) or None


class ChatTransport:
    """Sends prepared requests through pydantic-ai agents."""

    def __init__(self, retries: int = DEFAULT_TOOL_RETRIES):
        self.retries = retries
        self._tasks: Set[asyncio.Task] = set()

    def prepare(
        self,
        prompt: str,
        config: RequestConfig,
        directive: Directive,
        transforms: Sequence[PayloadTransform] = (),
        *,
        scope: Optional[ToolScope] = None,
        label: Optional[str] = None,
    ) -> PreparedRequest:
        """Build the payload and, for live requests, the model and agent.

        Raises:
            ChatBlocksError: If the backend cannot build a model (missing key, base_url)
        """
        payload = PromptPayload(
            prompt=prompt,
            system=directive.system,
            history=tuple(directive.messages),
        )
        for transform in transforms:
            payload = transform(payload)

        prepared = PreparedRequest(payload=payload, config=config, label=label)
        if config.dry_run:
            return prepared

        model = config.backend.create_model(config.model)
        agent_kwargs: Dict[str, Any] = {
            "model": model,
            "retries": self.retries,
            "instructions": compose_instructions(payload.system, config, scope),
        }
        if config.tools:
            agent_kwargs["tools"] = [tool.get_tool(scope) for tool in config.tools]

        prepared.agent = Agent(**agent_kwargs)
        prepared.model_settings = build_model_settings(config)
        prepared.message_history = to_model_messages(payload.history)
        return prepared

    def send(self, prepared: PreparedRequest, callback: ResponseCallback) -> asyncio.Task:
        """Schedule the request on the running event loop.

        Raises:
            RuntimeError: If called without a running event loop
            ValueError: If the request was prepared for a dry run
        """
        if prepared.agent is None:
            raise ValueError("Dry-run requests cannot be sent")

        task = asyncio.get_running_loop().create_task(self._run(prepared, callback))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _run(self, prepared: PreparedRequest, callback: ResponseCallback) -> None:
        config = prepared.config
        context = {
            "backend": config.backend_name,
            "model": config.model,
            "label": prepared.label,
        }

        try:
            with logger.span("chat_request", **context):
                result = await prepared.agent.run(
                    prepared.user_prompt,
                    message_history=prepared.message_history or None,
                    model_settings=prepared.model_settings,
                )
        except Exception as exc:
            logger.error("Chat request failed", error=str(exc), error_type=type(exc).__name__, **context)
            self._notify(callback, None, {"status": "error", "error": str(exc), **context})
            return

        output = result.output
        if not isinstance(output, str) or not output.strip():
            logger.warning("Chat request returned no text", output_type=type(output).__name__, **context)
            self._notify(callback, None, {"status": "error", "error": "Response contained no text", **context})
            return

        usage = result.usage()
        self._notify(
            callback,
            output,
            {
                "status": "ok",
                "input_tokens": usage.input_tokens,
                "output_tokens": usage.output_tokens,
                **context,
            },
        )

    @staticmethod
    def _notify(callback: ResponseCallback, response: Optional[str], info: Dict[str, Any]) -> None:
        try:
            callback(response, info)
        except Exception as exc:
            logger.error("Response callback failed", error=str(exc), error_type=type(exc).__name__)

    @property
    def pending(self) -> int:
        return len(self._tasks)

    async def drain(self) -> None:
        """Wait for every scheduled request to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def render_payload(self, prepared: PreparedRequest) -> Dict[str, Any]:
        """Plain-data view of a prepared request, used for dry runs."""
        payload = prepared.payload
        config = prepared.config
        return {
            "backend": config.backend_name,
            "model": config.model,
            "system": payload.system,
            "messages": [
                {"role": message_role(index), "content": text}
                for index, text in enumerate(payload.history)
            ],
            "prompt": payload.prompt,
            "parameters": {
                "temperature": config.temperature,
                "max_tokens": config.max_tokens,
                "media": config.media,
                "preset": config.preset,
            },
            "tools": config.tool_names,
            "context": list(config.context),
            "attachments": [attachment.name for attachment in payload.attachments],
        }
