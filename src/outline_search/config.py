"""Configuration constants for outline-search."""

import os
from dataclasses import dataclass
from pathlib import Path

VAULT_ENV_VAR = "OUTLINE_SEARCH_VAULT"
CASE_SENSITIVE_ENV_VAR = "OUTLINE_SEARCH_CASE_SENSITIVE"
OPERATORS_ENV_VAR = "OUTLINE_SEARCH_OPERATORS"

# Directories with notes. First directory which is found is used.
VAULT_DIRECTORIES: list[Path] = [
    *([Path(os.environ[VAULT_ENV_VAR]).expanduser()] if os.environ.get(VAULT_ENV_VAR) else []),
    Path("~/Documents/Obsidian").expanduser(),
    Path("~/notes").expanduser(),
]

MARKDOWN_EXTENSIONS: tuple[str, ...] = (".md",)

DEFAULT_RESULT_LIMIT = 20
MAX_RESULT_LIMIT = 100

_TRUTHY = frozenset({"1", "true", "yes", "on"})


@dataclass(frozen=True)
class SearchSettings:
    """Search defaults; queries can still override case per term."""

    case_sensitive: bool = False
    enable_operators: bool = True


def _env_flag(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in _TRUTHY


def load_settings() -> SearchSettings:
    """Build settings from the environment, falling back to the defaults."""
    defaults = SearchSettings()
    return SearchSettings(
        case_sensitive=_env_flag(CASE_SENSITIVE_ENV_VAR, defaults.case_sensitive),
        enable_operators=_env_flag(OPERATORS_ENV_VAR, defaults.enable_operators),
    )


def resolve_vault_directory() -> Path:
    """Return the first existing vault directory, or the first candidate."""
    for candidate in VAULT_DIRECTORIES:
        if candidate.is_dir():
            return candidate
    return VAULT_DIRECTORIES[0]
