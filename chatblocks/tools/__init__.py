"""
Tools package.

Import concrete tool classes or helpers from specific modules, e.g.:
- `chatblocks.tools.file_ops_safe`
- `chatblocks.tools.web_search_duckduckgo`
- `chatblocks.tools.registry`
- `chatblocks.tools.base`
"""

__all__: list[str] = []
