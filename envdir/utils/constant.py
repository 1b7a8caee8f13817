"""Project-wide constants and configuration."""

from __future__ import annotations

from .env_loader import load_project_env

# Load once (single source of truth)
_ENV = load_project_env()

EXIT_CODE_OK: int = 0
EXIT_CODE_FATAL: int = 111

USAGE: str = "usage: envdir dir command"

DUPLICATE_POLICY_APPEND: str = "append"
DUPLICATE_POLICY_REPLACE: str = "replace"
DUPLICATE_POLICIES = frozenset({DUPLICATE_POLICY_APPEND, DUPLICATE_POLICY_REPLACE})

# Exposed settings (typed, with sensible defaults)
LOG_LEVEL: str = _ENV.get("ENVDIR_LOG_LEVEL", "WARNING").upper()
DUPLICATE_POLICY: str = _ENV.get("ENVDIR_DUPLICATE_POLICY", DUPLICATE_POLICY_APPEND).lower()
