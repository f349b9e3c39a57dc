"""
Conversation reconstruction.

- `chatblocks.conversation.session`: session history from earlier blocks
- `chatblocks.conversation.prompt`: one named block as a turn pair
- `chatblocks.conversation.directive`: system slot + turns sent to the backend
"""

__all__: list[str] = []
