from __future__ import annotations

import pytest
import yaml

from chatblocks.dispatch.dispatcher import RequestDispatcher
from chatblocks.document.store import load_document
from chatblocks.document.tokens import new_token
from chatblocks.errors import BlockNotFoundError, DocumentError
from chatblocks.llm.block_executor import BlockExecutor
from chatblocks.llm.transport import ChatTransport

IN_FLIGHT = new_token()

SCENARIO = f"""# Trip planning

```chat
@session s1
Hi
```
<!-- result -->
Hello
<!-- /result -->

```chat
@session s1
Bye
```
<!-- result -->
{IN_FLIGHT}
<!-- /result -->

```chat
@name current
@session s1
@prompt style
@context facts.md
@dry-run
What next?
```

```chat
@name style
Write tersely.
```
<!-- result -->
Understood.
<!-- /result -->
"""


@pytest.fixture
def transport() -> ChatTransport:
    return ChatTransport()


@pytest.fixture
def executor(transport, data_root, defaults, backends, tools, presets) -> BlockExecutor:
    return BlockExecutor(
        RequestDispatcher(transport, vault_root=data_root),
        data_root,
        defaults=defaults,
        backends=backends,
        tools=tools,
        presets=presets,
    )


def _rendered(result: str) -> dict:
    return yaml.safe_load(result.removeprefix("```yaml\n").removesuffix("\n```"))


@pytest.mark.asyncio
async def test_dry_run_reconstructs_conversation(executor, write_doc) -> None:
    path = write_doc("trips/plan.md", SCENARIO)
    write_doc("trips/facts.md", "Budget is 500 EUR.")

    outcome = await executor.execute("trips/plan.md", name="current")

    assert outcome.dry_run is True
    assert outcome.token is None
    assert outcome.path == "trips/plan.md"

    rendered = _rendered(outcome.result)
    assert [message["content"] for message in rendered["messages"]] == [
        "Hi", "Hello", "Bye", None, "Write tersely.", "Understood.",
    ]
    assert rendered["prompt"] == "What next?"
    assert rendered["context"] == ["base.md", "facts.md"]
    assert "Budget is 500 EUR." in rendered["system"]
    assert "[MISSING CONTEXT: base.md]" in rendered["system"]

    written = load_document(path).find_named("current")
    assert written.result == outcome.result.strip()


@pytest.mark.asyncio
async def test_live_execution_splices_response(executor, write_doc, transport, fake_backend) -> None:
    path = write_doc("chat.md", "```chat\n@session s1\nHi\n```\n")

    outcome = await executor.execute("chat.md", position=0)

    assert outcome.dry_run is False
    assert load_document(path).blocks[0].result == outcome.token

    await transport.drain()

    assert load_document(path).blocks[0].result == "Hello from fake"
    assert len(fake_backend.received) == 1


@pytest.mark.asyncio
async def test_missing_prompt_reference_is_omitted(executor, write_doc) -> None:
    write_doc("chat.md", "```chat\n@prompt nowhere\n@dry-run\nHi\n```\n")

    outcome = await executor.execute("chat.md", position=3)

    assert _rendered(outcome.result)["messages"] == []


@pytest.mark.asyncio
async def test_block_selection_errors(executor, write_doc) -> None:
    write_doc("chat.md", "intro\n\n```chat\nHi\n```\n")

    with pytest.raises(BlockNotFoundError):
        await executor.execute("chat.md", position=0)
    with pytest.raises(BlockNotFoundError):
        await executor.execute("chat.md", name="missing")
    with pytest.raises(BlockNotFoundError):
        await executor.execute("chat.md")


@pytest.mark.asyncio
async def test_document_path_is_confined(executor, write_doc) -> None:
    write_doc("notes.txt", "```chat\nHi\n```\n")

    with pytest.raises(DocumentError):
        await executor.execute("../outside.md", position=0)
    with pytest.raises(DocumentError):
        await executor.execute("notes.txt", position=0)
    with pytest.raises(DocumentError):
        await executor.execute("missing.md", position=0)


def test_preview_history(executor, write_doc) -> None:
    write_doc("trips/plan.md", SCENARIO)
    current = load_document(executor.data_root / "trips/plan.md").find_named("current")

    assert executor.preview_history("trips/plan.md", "s1", current.start) == ["Hi", "Hello", "Bye", None]
