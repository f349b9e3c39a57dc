"""Instruction text for the tools enabled on a block."""

from typing import Iterable, Optional, Type

from .base import BaseTool, ToolScope


def get_tool_instructions(tool_classes: Iterable[Type[BaseTool]], scope: Optional[ToolScope] = None) -> str:
    """Capability summary for the enabled tools; empty when none are enabled.

    With a scope, the model is also told which document it is answering
    from, since vault-relative tool paths are easier to pick with that known.
    """
    sections = [f"## {tool_class.get_instructions()}" for tool_class in tool_classes]
    if not sections:
        return ""

    header = "You have access to the following capabilities:"
    if scope is not None and scope.document_label:
        header += f"\nThe conversation lives in the vault document '{scope.document_label}'."
    return "\n\n".join([header, *sections])
