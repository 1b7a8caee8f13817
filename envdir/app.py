"""Command-line entry point for envdir.

Usage: ``envdir <dir> <command> [args...]``

This module provides a thin CLI layer over the environment builder and
process launcher services. Every failure is logged as a single line and
mapped to the fatal exit code.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Sequence
from typing import IO

from envdir.services.env_builder import EnvironmentBuilder, EnvironmentBuilderProtocol
from envdir.services.process_launcher import ProcessLauncher
from envdir.services.result import Failure, FailureKind
from envdir.utils.constant import EXIT_CODE_FATAL, EXIT_CODE_OK, LOG_LEVEL, USAGE
from envdir.utils.env_loader import load_seed_environment
from envdir.utils.log_format import LOGGER_NAME, configure_logging

logger = logging.getLogger(LOGGER_NAME)


def fatal(failure: Failure) -> int:
    """Report a failure and return the fatal exit code.

    Args:
        failure: The failure to report.

    Returns:
        ``EXIT_CODE_FATAL``.
    """
    logger.error("%s", failure.message)
    return EXIT_CODE_FATAL


def run(
    argv: Sequence[str],
    *,
    seed_environment: Sequence[str] | None = None,
    builder: EnvironmentBuilderProtocol | None = None,
    launcher: ProcessLauncher | None = None,
) -> int:
    """Build the environment from ``argv[1]`` and exec ``argv[2:]``.

    Args:
        argv: Full argument vector, program name included.
        seed_environment: Starting environment (defaults to this process's).
        builder: Environment builder (created with defaults if not provided).
        launcher: Process launcher (created with defaults if not provided).

    Returns:
        An exit code. With the real launcher a successful run never returns.
    """
    if len(argv) < 3:
        return fatal(Failure(FailureKind.USAGE, USAGE))

    directory = argv[1]
    child = argv[2]
    child_args = list(argv[3:])

    seed = load_seed_environment() if seed_environment is None else seed_environment
    builder = builder or EnvironmentBuilder()
    result = builder.build(seed, directory)
    if result.failure is not None:
        return fatal(result.failure)

    launcher = launcher or ProcessLauncher()
    failure = launcher.launch(child, child_args, result.environment)
    if failure is not None:
        return fatal(failure)

    return EXIT_CODE_OK


def main(argv: Sequence[str] | None = None, *, stream: IO[str] | None = None) -> int:
    """Console script entry point.

    Args:
        argv: Argument vector (defaults to ``sys.argv``).
        stream: Diagnostic stream (defaults to ``sys.stderr``).

    Returns:
        The process exit code.
    """
    configure_logging(stream or sys.stderr, LOG_LEVEL)
    return run(sys.argv if argv is None else argv)


if __name__ == "__main__":
    sys.exit(main())
