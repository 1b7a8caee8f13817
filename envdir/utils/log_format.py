"""Diagnostic log line formatting for the envdir CLI.

Every message goes to the error stream as a single line shaped like a
server log entry::

    2019-09-08 10:47:42.000 MSK [X] ENVDIR:<TAB>message

Sub-second precision is not tracked, so the milliseconds are always
rendered as ``.000``.
"""

from __future__ import annotations

import logging
from typing import IO

LOGGER_NAME = "envdir"
LOG_FORMAT = "%(asctime)s [X] ENVDIR:\t%(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S.000 %Z"

_HANDLER: logging.Handler | None = None


class EnvdirFormatter(logging.Formatter):
    """Formatter producing the envdir diagnostic line layout."""

    def __init__(self) -> None:
        """Initialize the formatter with the fixed line and date layouts."""
        super().__init__(fmt=LOG_FORMAT, datefmt=LOG_DATEFMT)


def configure_logging(stream: IO[str], level: int | str = logging.WARNING) -> logging.Logger:
    """Attach a single stream handler to the ``envdir`` logger.

    Calling this again replaces the previous handler, so the CLI entry
    point can be invoked repeatedly (e.g. from tests) with fresh streams.

    Args:
        stream: Text stream receiving diagnostic lines.
        level: Minimum level to emit, as a number or level name. Unknown
            names fall back to WARNING.

    Returns:
        The configured ``envdir`` logger.
    """
    global _HANDLER
    if isinstance(level, str):
        resolved = logging.getLevelName(level.upper())
        level = resolved if isinstance(resolved, int) else logging.WARNING

    logger = logging.getLogger(LOGGER_NAME)
    if _HANDLER is not None:
        logger.removeHandler(_HANDLER)

    _HANDLER = logging.StreamHandler(stream)
    _HANDLER.setFormatter(EnvdirFormatter())
    logger.addHandler(_HANDLER)
    logger.setLevel(level)
    logger.propagate = False
    return logger


def flush_handlers(logger: logging.Logger | None = None) -> None:
    """Flush every handler attached to the ``envdir`` logger."""
    logger = logger or logging.getLogger(LOGGER_NAME)
    for handler in logger.handlers:
        handler.flush()
