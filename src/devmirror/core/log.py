from __future__ import annotations

import logging
import sys
from typing import Optional, TextIO

LOGGER_NAME = "devmirror"

_INSTALLED_HANDLER: logging.Handler | None = None


def configure_logging(*, verbose: bool = False, stream: Optional[TextIO] = None) -> logging.Logger:
    """Route devmirror log records to stderr (or ``stream``).

    Idempotent per-process: calling again swaps the previously installed
    handler instead of stacking a second one.
    """
    global _INSTALLED_HANDLER

    level = logging.DEBUG if verbose else logging.INFO
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)

    if _INSTALLED_HANDLER is not None:
        logger.removeHandler(_INSTALLED_HANDLER)
        _INSTALLED_HANDLER.close()
        _INSTALLED_HANDLER = None

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setLevel(level)
    fmt = "%(asctime)s %(levelname)s %(name)s: %(message)s" if verbose else "[devmirror] %(message)s"
    handler.setFormatter(logging.Formatter(fmt))
    logger.addHandler(handler)
    # Keep records out of the root logger's handlers (no double printing).
    logger.propagate = False

    _INSTALLED_HANDLER = handler
    return logger


def reset_logging_for_tests() -> None:
    """Test-only: remove the installed handler and restore propagation."""
    global _INSTALLED_HANDLER
    logger = logging.getLogger(LOGGER_NAME)
    if _INSTALLED_HANDLER is not None:
        logger.removeHandler(_INSTALLED_HANDLER)
        _INSTALLED_HANDLER.close()
    _INSTALLED_HANDLER = None
    logger.setLevel(logging.NOTSET)
    logger.propagate = True


__all__ = ["LOGGER_NAME", "configure_logging", "reset_logging_for_tests"]
