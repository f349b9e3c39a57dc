"""
Block parameter package.

Import specific processors or helpers from their dedicated modules, e.g.:
- `chatblocks.parameters.parser`
- `chatblocks.parameters.registry`
- `chatblocks.parameters.bootstrap`
- `chatblocks.parameters.overlay`
"""

__all__: list[str] = []
