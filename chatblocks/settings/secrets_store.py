"""
Secrets for provider API keys and tool credentials.

`secrets.yaml` under the system root maps secret names to values; an empty
value falls back to the process environment, so keys exported in the shell
keep working. Provider `api_key`/`base_url` settings either name a secret
(UPPER_SNAKE_CASE) or hold a literal value; resolve_secret_reference() tells
the two apart.
"""

from __future__ import annotations

import os
import re
import shutil
from pathlib import Path
from typing import Dict, Optional

import yaml
from pydantic import RootModel, ValidationError, field_validator

from chatblocks.runtime.paths import get_system_root


SECRETS_PATH_ENV = "SECRETS_PATH"
SECRETS_TEMPLATE = Path(__file__).parent / "secrets.template.yaml"
SECRET_NAME_RE = re.compile(r"^[A-Z][A-Z0-9_]*$")


class SecretsFile(RootModel[Dict[str, Optional[str]]]):
    """Validated contents of secrets.yaml; blank values are stored as None."""

    @field_validator("root", mode="before")
    @classmethod
    def _blank_to_none(cls, value):
        if value is None:
            return {}
        if not isinstance(value, dict):
            raise ValueError("secrets.yaml must be a mapping of NAME: value")
        return {
            key: (str(item).strip() or None) if item is not None else None
            for key, item in value.items()
        }


def get_secrets_path() -> Path:
    """secrets.yaml of the active system root, unless SECRETS_PATH points elsewhere."""
    override = os.environ.get(SECRETS_PATH_ENV)
    path = Path(override) if override else get_system_root() / "secrets.yaml"
    if not path.exists():
        path.parent.mkdir(parents=True, exist_ok=True)
        shutil.copyfile(SECRETS_TEMPLATE, path)
    return path


def load_secrets_file(path: Optional[Path] = None) -> SecretsFile:
    """
    Raises:
        ValueError: If secrets.yaml is not a mapping of strings
    """
    path = path or get_secrets_path()
    try:
        return SecretsFile.model_validate(yaml.safe_load(path.read_text(encoding="utf-8")))
    except (yaml.YAMLError, ValidationError) as exc:
        raise ValueError(f"Invalid secrets file {path}: {exc}") from exc


def get_secret_value(name: str) -> Optional[str]:
    """Stored value of a secret, else the environment variable of that name."""
    if not name:
        return None
    stored = load_secrets_file().root.get(name)
    if stored:
        return stored
    return (os.environ.get(name) or "").strip() or None


def set_secret_value(name: str, value: Optional[str]) -> None:
    """Store (or, with an empty value, blank) a secret. Writes atomically."""
    if not name:
        raise ValueError("Secret name cannot be empty.")

    path = get_secrets_path()
    secrets = dict(load_secrets_file(path).root)
    secrets[name] = (value or "").strip() or None

    tmp_path = path.with_name(f".{path.name}.tmp")
    tmp_path.write_text(yaml.safe_dump(secrets, sort_keys=False), encoding="utf-8")
    os.replace(tmp_path, path)


def secret_has_value(name: str) -> bool:
    return get_secret_value(name) is not None


def is_secret_name(value: str) -> bool:
    return SECRET_NAME_RE.match(value) is not None


def resolve_secret_reference(raw_value: Optional[str]) -> Optional[str]:
    """Resolve a settings value that names a secret or holds a literal.

    Returns:
        The secret's value when raw_value names a configured secret, None when
        it names an unset secret or is empty/"null", otherwise the literal
    """
    value = (raw_value or "").strip()
    if not value or value.lower() == "null":
        return None

    secret = get_secret_value(value)
    if secret is not None:
        return secret
    return None if is_secret_name(value) else value
