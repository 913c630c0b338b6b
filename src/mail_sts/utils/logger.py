"""Logging configuration for the command-line interface.

Log records always go to stderr so that ``lookup --format json`` keeps
stdout a single valid JSON document.
"""

import logging
import sys
from enum import Enum


class VerbosityLevel(Enum):
    """Output verbosity levels."""

    QUIET = "quiet"
    NORMAL = "normal"
    VERBOSE = "verbose"
    DEBUG = "debug"

    def __ge__(self, other):
        """Allow >= comparison for verbosity filtering."""
        if not isinstance(other, VerbosityLevel):
            return NotImplemented
        levels = list(VerbosityLevel)
        return levels.index(self) >= levels.index(other)

    @property
    def log_level(self) -> int:
        """Logging level shown at this verbosity."""
        return {
            VerbosityLevel.QUIET: logging.ERROR,
            VerbosityLevel.NORMAL: logging.WARNING,
            VerbosityLevel.VERBOSE: logging.INFO,
            VerbosityLevel.DEBUG: logging.DEBUG,
        }[self]


def setup_logger(
    name: str = "mail_sts",
    level: VerbosityLevel = VerbosityLevel.NORMAL,
) -> logging.Logger:
    """
    Route the library's log records to stderr.

    Calling it again replaces the previous handler, so repeated CLI
    invocations in one process do not duplicate output.

    Args:
        name: Logger name
        level: Verbosity level enum

    Returns:
        Configured logger
    """
    logger = logging.getLogger(name)
    logger.handlers.clear()
    logger.setLevel(level.log_level)
    logger.propagate = False

    handler = logging.StreamHandler(sys.stderr)
    if level == VerbosityLevel.DEBUG:
        fmt = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    else:
        fmt = "mail-sts: %(levelname)s: %(message)s"
    handler.setFormatter(logging.Formatter(fmt, datefmt="%Y-%m-%d %H:%M:%S"))
    logger.addHandler(handler)

    return logger
