"""Logging configuration for the validgen pipeline.

Usage in library modules:
    from validgen.log import get_logger
    logger = get_logger(__name__)

The root logger name is "validgen". Levels are controlled by the CLI.
"""

from __future__ import annotations

import logging
import sys

_LOGGER_NAME = "validgen"


def get_logger(name: str | None = None) -> logging.Logger:
    """Return a child logger under the validgen hierarchy.

    "validgen.extractor" and "extractor" both map to "validgen.extractor".
    """
    if name is None or name == _LOGGER_NAME:
        return logging.getLogger(_LOGGER_NAME)
    short = name.rsplit(".", 1)[-1]
    return logging.getLogger(f"{_LOGGER_NAME}.{short}")


def configure_logging(verbose: bool = False, quiet: bool = False) -> None:
    """Configure the validgen logger hierarchy.

    Levels:
        --verbose / -v  -> DEBUG
        (default)       -> INFO
        --quiet / -q    -> WARNING
    """
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.WARNING
    else:
        level = logging.INFO

    root_logger = logging.getLogger(_LOGGER_NAME)
    root_logger.setLevel(level)

    # Replace our handler so it writes to the current sys.stderr
    for handler in list(root_logger.handlers):
        if getattr(handler, "_validgen", False):
            root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler._validgen = True
    handler.setLevel(level)
    handler.setFormatter(_PlainFormatter())
    root_logger.addHandler(handler)
    root_logger.propagate = False


class _PlainFormatter(logging.Formatter):
    """Emit the message only; warnings and errors get a level prefix."""

    def format(self, record: logging.LogRecord) -> str:
        message = record.getMessage()
        if record.levelno >= logging.WARNING:
            return f"[{record.levelname.lower()}] {message}"
        return message
