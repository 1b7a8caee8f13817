"""Failure values shared by the envdir services.

Every failure is terminal with a single handling policy (log and exit),
so services return these values instead of raising.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class FailureKind(Enum):
    """Category of a fatal condition."""

    USAGE = "usage"
    CONFIGURATION = "configuration"
    IO = "io"
    RESOLUTION = "resolution"
    LAUNCH = "launch"


@dataclass(frozen=True)
class Failure:
    """A tagged, fatal failure.

    Attributes:
        kind: The failure category.
        message: Single-line, human-readable description.
    """

    kind: FailureKind
    message: str


@dataclass(frozen=True)
class BuildResult:
    """Outcome of an environment build: an environment or a failure.

    Attributes:
        environment: Ordered ``NAME=VALUE`` entries (empty on failure).
        failure: The failure that aborted the build, if any.
    """

    environment: list[str] = field(default_factory=list)
    failure: Failure | None = None

    @property
    def ok(self) -> bool:
        """Return True if the build completed without failure."""
        return self.failure is None

    @classmethod
    def success(cls, environment: list[str]) -> BuildResult:
        """Build a successful result.

        Args:
            environment: The finished environment.

        Returns:
            A result carrying ``environment``.
        """
        return cls(environment=list(environment))

    @classmethod
    def fail(cls, kind: FailureKind, message: str) -> BuildResult:
        """Build a failed result with no environment.

        Args:
            kind: The failure category.
            message: Human-readable description.

        Returns:
            A result carrying only the failure.
        """
        return cls(failure=Failure(kind=kind, message=message))
