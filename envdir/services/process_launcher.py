"""Exec-replace launching of the child command.

Resolves the child executable and replaces the current process image
with it. The child keeps this process's PID, open descriptors and
process group; nothing here runs after a successful launch.
"""

from __future__ import annotations

import logging
import os
import shutil
import sys
from collections.abc import Iterable, Mapping, Sequence
from typing import Protocol

from envdir.services.result import Failure, FailureKind
from envdir.utils.log_format import flush_handlers

logger = logging.getLogger(__name__)


class ExecPrimitive(Protocol):
    """Callable replacing the process image (``os.execve`` signature)."""

    def __call__(
        self,
        path: str,
        argv: Sequence[str],
        env: Mapping[str, str],
    ) -> None:
        """Replace the current process image.

        Args:
            path: Resolved executable path.
            argv: Argument vector, argument zero included.
            env: Complete process environment.
        """
        ...


class PathResolver(Protocol):
    """Callable resolving a command name (``shutil.which`` signature)."""

    def __call__(self, cmd: str, path: str | None = None) -> str | None:
        """Resolve ``cmd`` to an executable path.

        Args:
            cmd: Command name or path.
            path: Search path override.

        Returns:
            The executable path, or None if not found.
        """
        ...


def environment_to_mapping(environment: Iterable[str]) -> dict[str, str]:
    """Convert ``NAME=VALUE`` entries to the mapping ``os.execve`` expects.

    Entries are applied in order, so the last occurrence of a duplicated
    name wins. Entries without ``=`` carry no value and are dropped.

    Args:
        environment: Ordered environment entries.

    Returns:
        Name to value mapping.
    """
    mapping: dict[str, str] = {}
    for entry in environment:
        name, sep, value = entry.partition("=")
        if not sep or not name:
            logger.debug("Dropping malformed environment entry %r", entry)
            continue
        mapping[name] = value
    return mapping


class ProcessLauncher:
    """Hand execution over to a child command via exec-replace.

    Lookup follows shell rules: a name containing a path separator is
    used as given, otherwise each ``PATH`` directory is searched.
    """

    def __init__(
        self,
        *,
        exec_primitive: ExecPrimitive | None = None,
        resolver: PathResolver | None = None,
        search_path: str | None = None,
    ) -> None:
        """Initialize the launcher.

        Args:
            exec_primitive: Image replacement call (defaults to ``os.execve``).
            resolver: Command lookup call (defaults to ``shutil.which``).
            search_path: ``PATH`` to search; None uses the invoking
                process's own ``PATH``.
        """
        self._exec = exec_primitive or os.execve
        self._resolve = resolver or shutil.which
        self._search_path = search_path

    def resolve(self, child_name: str) -> str | None:
        """Resolve a command name to an executable path.

        Args:
            child_name: Command name or path.

        Returns:
            The executable path, or None if it cannot be found.
        """
        return self._resolve(child_name, path=self._search_path)

    def launch(
        self,
        child_name: str,
        child_args: Sequence[str],
        environment: Sequence[str],
    ) -> Failure | None:
        """Replace the current process with ``child_name``.

        Args:
            child_name: Command to run; also used as argument zero.
            child_args: Remaining arguments, passed through unchanged.
            environment: Complete ``NAME=VALUE`` environment for the child.

        Returns:
            A failure if lookup or exec fails. On success the real
            primitive never returns.
        """
        binary = self.resolve(child_name)
        if binary is None:
            return Failure(
                FailureKind.RESOLUTION,
                f"Cannot find '{child_name}': executable file not found in $PATH",
            )

        argv = [child_name, *child_args]
        logger.debug("Executing %s as %s", binary, " ".join(argv))
        self._flush_streams()

        try:
            self._exec(binary, argv, environment_to_mapping(environment))
        except (OSError, ValueError) as exc:
            return Failure(FailureKind.LAUNCH, f"Cannot start '{child_name}': {exc}")

        return None

    @staticmethod
    def _flush_streams() -> None:
        """Flush buffered output that would be lost on image replacement."""
        flush_handlers()
        for stream in (sys.stdout, sys.stderr):
            try:
                stream.flush()
            except (AttributeError, ValueError):
                logger.debug("Could not flush %r before exec", stream)
