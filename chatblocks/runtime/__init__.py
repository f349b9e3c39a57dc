"""
ChatBlocks runtime package.

Import concrete functionality from explicit submodules:
- `chatblocks.runtime.config` for configuration dataclasses
- `chatblocks.runtime.bootstrap` for startup helpers
- `chatblocks.runtime.context` for runtime context definitions
- `chatblocks.runtime.state` for global context accessors
- `chatblocks.runtime.paths` for data/system root resolution
"""

__all__: list[str] = []
