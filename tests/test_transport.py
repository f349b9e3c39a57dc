from __future__ import annotations

import pytest
from pydantic_ai import BinaryContent
from pydantic_ai.messages import ModelRequest, ModelResponse, TextPart, UserPromptPart

from chatblocks.conversation.directive import assemble
from chatblocks.llm.transport import (
    Attachment,
    ChatTransport,
    PromptPayload,
    compose_instructions,
    to_model_messages,
)
from chatblocks.parameters.overlay import build_request_config


@pytest.fixture
def make_config(defaults, backends, tools, presets):
    def _make(parameters=None):
        return build_request_config(
            parameters or {}, defaults, backends=backends, tools=tools, presets=presets, models={}
        )

    return _make


def test_history_alternates_roles_and_skips_none() -> None:
    messages = to_model_messages(["Hi", "Hello", "Bye", None])

    assert len(messages) == 3
    assert isinstance(messages[0], ModelRequest)
    assert messages[0].parts[0].content == "Hi"
    assert isinstance(messages[1], ModelResponse)
    assert messages[1].parts[0].content == "Hello"
    assert isinstance(messages[2], ModelRequest)


def test_consecutive_turns_of_one_role_are_merged() -> None:
    messages = to_model_messages(["Hi", None, "Again", "Answer"])

    assert len(messages) == 2
    assert [part.content for part in messages[0].parts] == ["Hi", "Again"]
    assert all(isinstance(part, UserPromptPart) for part in messages[0].parts)
    assert isinstance(messages[1].parts[0], TextPart)


def test_compose_instructions_appends_tool_usage(make_config) -> None:
    config = make_config({"tools": "file_ops_safe"})

    instructions = compose_instructions("Be helpful.", config)

    assert instructions.startswith("Be helpful.\n\nYou have access to the following capabilities:")
    assert "file_operations" in instructions
    assert compose_instructions(None, make_config()) is None


def test_prepare_applies_transforms_in_order(make_config) -> None:
    transport = ChatTransport()
    seen = []

    def first(payload: PromptPayload) -> PromptPayload:
        seen.append("first")
        return payload.with_system((payload.system or "") + " +first")

    def second(payload: PromptPayload) -> PromptPayload:
        seen.append("second")
        return payload.with_system(payload.system + " +second")

    prepared = transport.prepare("Hi", make_config({"dry-run": "yes"}), assemble("sys", []), [first, second])

    assert seen == ["first", "second"]
    assert prepared.payload.system == "sys +first +second"
    assert prepared.agent is None


def test_user_prompt_carries_attachments(make_config) -> None:
    transport = ChatTransport()
    image = BinaryContent(data=b"\x89PNG", media_type="image/png")

    def attach(payload: PromptPayload) -> PromptPayload:
        return payload.with_attachments([Attachment(name="pic.png", content=image)])

    prepared = transport.prepare("Look", make_config(), assemble(None, []), [attach])

    assert prepared.user_prompt == ["Look", image]
    assert transport.render_payload(prepared)["attachments"] == ["pic.png"]


def test_send_rejects_dry_run(make_config) -> None:
    transport = ChatTransport()
    prepared = transport.prepare("Hi", make_config({"dry-run": ""}), assemble(None, []))
    dry = transport.prepare("Hi", make_config({"dry-run": "on"}), assemble(None, []))

    assert prepared.agent is not None
    with pytest.raises(ValueError):
        transport.send(dry, lambda response, info: None)


@pytest.mark.asyncio
async def test_send_reports_response_and_history(make_config, fake_backend) -> None:
    transport = ChatTransport()
    prepared = transport.prepare(
        "Bye", make_config({"temperature": "0.3"}), assemble("sys", ["Hi", "Hello"])
    )
    received = []

    transport.send(prepared, lambda response, info: received.append((response, info)))
    await transport.drain()

    ((response, info),) = received
    assert response == "Hello from fake"
    assert info["status"] == "ok"
    assert info["backend"] == "fake"
    assert prepared.model_settings["temperature"] == 0.3

    (messages,) = fake_backend.received
    user_texts = [
        part.content
        for message in messages
        if isinstance(message, ModelRequest)
        for part in message.parts
        if isinstance(part, UserPromptPart)
    ]
    assert user_texts == ["Hi", "Bye"]
    assert messages[-1].instructions == "sys"


@pytest.mark.asyncio
async def test_callback_errors_are_contained(make_config) -> None:
    transport = ChatTransport()
    prepared = transport.prepare("Hi", make_config(), assemble(None, []))

    def explode(response, info):
        raise ValueError("callback bug")

    transport.send(prepared, explode)
    await transport.drain()

    assert transport.pending == 0
