"""Logging setup for flowershop."""

import logging
import sys

LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"

_configured = False


def configure_logging(level: str | int = "INFO", stream=None) -> None:
    """
    Attach a single stream handler to the flowershop logger.

    Safe to call more than once; later calls only change the level.
    """
    global _configured

    logger = logging.getLogger("flowershop")
    logger.setLevel(level)

    if _configured:
        return

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(handler)
    _configured = True


def reset_logging() -> None:
    """Remove handlers installed by configure_logging. Mainly for testing."""
    global _configured

    logger = logging.getLogger("flowershop")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)
    _configured = False
