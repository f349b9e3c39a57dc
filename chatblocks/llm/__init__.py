"""LLM integration: backends, presets, transport and block execution."""
