"""Environment variable loading utilities."""

from __future__ import annotations

import os


def load_project_env() -> dict[str, str]:
    """Load environment variables from the system.

    Returns:
        A dictionary containing the current environment variables.
    """
    return dict(os.environ)


def load_seed_environment() -> list[str]:
    """Load the invoking process environment as ``NAME=VALUE`` entries.

    The result is a fresh list in ``os.environ`` order; callers own it.

    Returns:
        The current environment as an ordered list of entries.
    """
    return [f"{name}={value}" for name, value in os.environ.items()]
