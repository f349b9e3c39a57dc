from __future__ import annotations

import pytest

from chatblocks.tools.base import ToolScope
from chatblocks.tools.file_ops_safe import FileOpsSafe
from chatblocks.tools.utils import get_tool_instructions
from chatblocks.tools.web_search_duckduckgo import WebSearchDuckDuckGo, format_results


def test_file_ops_reads_and_lists_inside_vault(data_root, write_doc) -> None:
    write_doc("notes/a.md", "alpha")
    write_doc("b.md", "beta")
    file_operations = FileOpsSafe.get_tool(ToolScope(vault_root=data_root))

    assert file_operations("read", "notes/a.md").endswith("alpha")
    listing = file_operations("list", pattern="*")
    assert "notes/" in listing
    assert "b.md" in listing


def test_file_ops_refuses_to_escape(data_root) -> None:
    file_operations = FileOpsSafe.get_tool(ToolScope(vault_root=data_root))

    assert file_operations("read", "../secret.md").startswith("Error performing 'read'")
    assert file_operations("read", "image.png").startswith("Error performing 'read'")
    assert file_operations("list", pattern="../*").startswith("Error performing 'list'")
    assert file_operations("delete", "b.md").startswith("Unknown operation")


def test_file_ops_without_scope_reports_unavailable() -> None:
    assert "no vault" in FileOpsSafe.get_tool()("read", "a.md")


def test_scope_resolves_inside_vault_only(data_root) -> None:
    scope = ToolScope(vault_root=data_root, document=data_root / "notes" / "chat.md")

    assert scope.resolve("notes/a.md") == (data_root / "notes" / "a.md").resolve()
    assert scope.document_label == "notes/chat.md"
    with pytest.raises(ValueError, match="traversal"):
        scope.resolve("notes/../../x.md")
    with pytest.raises(ValueError, match="Absolute"):
        scope.resolve(str(data_root / "a.md"))


def test_tool_instructions_name_the_running_document(data_root) -> None:
    scope = ToolScope(vault_root=data_root, document=data_root / "notes" / "chat.md")

    instructions = get_tool_instructions([FileOpsSafe], scope)

    assert instructions.startswith("You have access to the following capabilities:")
    assert "'notes/chat.md'" in instructions
    assert get_tool_instructions([], scope) == ""


def test_web_search_formats_results_for_citation() -> None:
    text = format_results("postgres", [{"title": "Release", "body": "17 is out", "href": "https://example.org"}])

    assert text.startswith("Search results for 'postgres':")
    assert "**Release**\n17 is out\nURL: https://example.org" in text
    assert format_results("nothing", []) == "No search results found for: nothing"


def test_web_search_uses_configured_result_count(monkeypatch) -> None:
    calls = []

    class _FakeDDGS:
        def __init__(self, timeout):
            pass

        def text(self, query, **kwargs):
            calls.append(kwargs["max_results"])
            return []

    monkeypatch.setattr("chatblocks.tools.web_search_duckduckgo.DDGS", _FakeDDGS)

    tool = WebSearchDuckDuckGo.get_tool()
    assert tool.function("anything") == "No search results found for: anything"
    assert calls == [3]
