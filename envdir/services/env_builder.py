"""Directory-to-environment transformation.

Scans an envdir-style directory and folds each regular file into an
ordered ``NAME=VALUE`` environment, starting from a seed environment.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from envdir.services.result import BuildResult, FailureKind
from envdir.utils.constant import (
    DUPLICATE_POLICIES,
    DUPLICATE_POLICY,
    DUPLICATE_POLICY_APPEND,
    DUPLICATE_POLICY_REPLACE,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DirectoryEntry:
    """A direct child of the source directory.

    Attributes:
        name: Entry name, used verbatim as the variable name.
        path: Full path to the entry.
        is_dir: Whether the entry is (or points to) a directory.
        size: Size in bytes reported at listing time.
    """

    name: str
    path: Path
    is_dir: bool
    size: int

    @property
    def is_hidden(self) -> bool:
        """Return True for dot-prefixed names."""
        return self.name.startswith(".")


def parse_value(data: bytes) -> str:
    """Derive a variable value from raw file content.

    Only the first line is used. NUL bytes in it become newlines, then
    trailing spaces and tabs are stripped.

    Args:
        data: Full file content.

    Returns:
        The decoded value.
    """
    first_line = data.split(b"\n", 1)[0]
    first_line = first_line.replace(b"\x00", b"\n")
    return os.fsdecode(first_line.rstrip(b" \t"))


def remove_variable(environment: list[str], name: str) -> bool:
    """Remove the first ``name=`` entry from ``environment`` in place.

    Args:
        environment: Working environment.
        name: Variable name to remove.

    Returns:
        True if an entry was removed.
    """
    prefix = name + "="
    for index, entry in enumerate(environment):
        if entry.startswith(prefix):
            del environment[index]
            return True
    return False


def replace_variable(environment: list[str], name: str, value: str) -> None:
    """Overwrite the first ``name=`` entry in place, or append one.

    Args:
        environment: Working environment.
        name: Variable name.
        value: New value.
    """
    prefix = name + "="
    for index, entry in enumerate(environment):
        if entry.startswith(prefix):
            environment[index] = prefix + value
            return
    environment.append(prefix + value)


def list_directory(directory: str | Path) -> list[DirectoryEntry]:
    """List the direct children of ``directory`` sorted by name.

    Hidden entries are listed without being stat'ed, so a dangling
    hidden symlink never fails the scan.

    Args:
        directory: Directory to scan.

    Returns:
        Entries in lexicographic name order.

    Note:
        May raise OSError if the directory or an entry cannot be read.
    """
    with os.scandir(directory) as it:
        raw_entries = sorted(it, key=lambda e: e.name)

    entries = []
    for raw in raw_entries:
        if raw.name.startswith("."):
            entries.append(DirectoryEntry(raw.name, Path(raw.path), is_dir=False, size=0))
            continue
        is_dir = raw.is_dir()
        size = 0 if is_dir else raw.stat().st_size
        entries.append(DirectoryEntry(raw.name, Path(raw.path), is_dir=is_dir, size=size))
    return entries


def read_entry(entry: DirectoryEntry) -> bytes:
    """Read a directory entry's full content.

    Args:
        entry: The entry to read.

    Returns:
        File content as bytes.

    Note:
        May raise OSError on any read error.
    """
    with entry.path.open("rb") as handle:
        return handle.read()


class EnvironmentBuilderProtocol(Protocol):
    """Protocol for environment builder implementations."""

    def build(
        self,
        seed_environment: Sequence[str],
        directory_path: str | Path,
    ) -> BuildResult:
        """Build an environment from a seed and a directory.

        Args:
            seed_environment: Starting ``NAME=VALUE`` entries.
            directory_path: Envdir-style directory.

        Returns:
            The finished environment or the failure that aborted it.
        """
        ...


class EnvironmentBuilder:
    """Build a process environment from an envdir-style directory.

    Each non-hidden regular file becomes one variable. Zero-byte files
    delete a variable of the same name. Any subdirectory or read problem
    aborts the whole build.
    """

    def __init__(self, *, duplicate_policy: str = DUPLICATE_POLICY) -> None:
        """Initialize the builder.

        Args:
            duplicate_policy: ``append`` adds a second entry when a name
                already exists; ``replace`` overwrites it in place.
        """
        if duplicate_policy not in DUPLICATE_POLICIES:
            logger.warning(
                "Unknown duplicate policy %r, falling back to %r",
                duplicate_policy,
                DUPLICATE_POLICY_APPEND,
            )
            duplicate_policy = DUPLICATE_POLICY_APPEND
        self._duplicate_policy = duplicate_policy

    @property
    def duplicate_policy(self) -> str:
        """Get the duplicate policy in effect.

        Returns:
            Either ``append`` or ``replace``.
        """
        return self._duplicate_policy

    def build(
        self,
        seed_environment: Sequence[str],
        directory_path: str | Path,
    ) -> BuildResult:
        """Build an environment from a seed and a directory.

        The seed is copied; the caller's sequence is never modified.

        Args:
            seed_environment: Starting ``NAME=VALUE`` entries.
            directory_path: Envdir-style directory.

        Returns:
            The finished environment or the failure that aborted it.
        """
        environment = list(seed_environment)

        try:
            entries = list_directory(directory_path)
        except OSError as exc:
            return BuildResult.fail(FailureKind.CONFIGURATION, str(exc))

        for entry in entries:
            if entry.is_hidden:
                logger.debug("Skipping hidden entry %s", entry.name)
                continue

            if entry.is_dir:
                return BuildResult.fail(
                    FailureKind.CONFIGURATION,
                    f"{entry.name} is not a file, but a directory",
                )

            try:
                data = read_entry(entry)
            except OSError as exc:
                return BuildResult.fail(FailureKind.IO, str(exc))

            if len(data) != entry.size:
                return BuildResult.fail(
                    FailureKind.IO,
                    f"invalid file read size, got: {len(data)}, expected: {entry.size}",
                )

            if entry.size == 0:
                if remove_variable(environment, entry.name):
                    logger.debug("Removed %s", entry.name)
                continue

            self._add(environment, entry.name, parse_value(data))

        return BuildResult.success(environment)

    def _add(self, environment: list[str], name: str, value: str) -> None:
        """Fold one variable into the working environment.

        Args:
            environment: Working environment.
            name: Variable name.
            value: Variable value.
        """
        if self._duplicate_policy == DUPLICATE_POLICY_REPLACE:
            replace_variable(environment, name, value)
        else:
            environment.append(f"{name}={value}")
        logger.debug("Set %s", name)
