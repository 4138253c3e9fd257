"""Logging setup for the command line.

Status lines go to stderr in Homebrew's ``==>`` style so stdout can carry the
generated formula.
"""

from __future__ import annotations

import logging
import sys
from typing import TextIO


class BrewFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        message = record.getMessage()
        if record.levelno >= logging.ERROR:
            return f"==> Error: {message}"
        if record.levelno >= logging.WARNING:
            return f"==> Warning: {message}"
        return f"==> {message}"


def configure_logging(verbose: bool = False, stream: TextIO | None = None) -> logging.Logger:
    """Attach a single stderr handler to the package logger."""
    logger = logging.getLogger("node_formulator")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(BrewFormatter())
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    logger.propagate = False
    return logger
