"""
Model alias resolution.

Maps the user-friendly names from the `models:` section of settings.yaml
(e.g. 'sonnet', 'gpt-4o') to a provider and provider model string. Names
that are not aliases are passed through untouched so a block can name any
provider model directly.
"""

from dataclasses import dataclass
from typing import Dict, Optional

from chatblocks.settings.store import ModelConfig, get_models_config


@dataclass(frozen=True)
class ResolvedModel:
    """A model reference after alias lookup.

    Attributes:
        model_string: Identifier sent to the provider
        provider: Provider the alias is configured for, None for raw identifiers
        alias: Alias the model came from, None for raw identifiers
    """
    model_string: str
    provider: Optional[str] = None
    alias: Optional[str] = None


def resolve_model_alias(
    model_name: str,
    models_config: Optional[Dict[str, ModelConfig]] = None,
) -> ResolvedModel:
    """
    Resolve a model name against the configured aliases.

    Args:
        model_name: Alias (case-insensitive) or provider model identifier
        models_config: Model aliases (defaults to settings.yaml)

    Returns:
        ResolvedModel with provider set when the name is an alias
    """
    models = models_config if models_config is not None else get_models_config()
    model_key = model_name.lower().strip()

    for alias, model_config in models.items():
        if alias.lower() == model_key:
            return ResolvedModel(
                model_string=model_config.model_string,
                provider=model_config.provider,
                alias=alias,
            )

    return ResolvedModel(model_string=model_name.strip())
