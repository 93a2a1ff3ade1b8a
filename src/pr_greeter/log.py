"""Logging setup shared by all pr-greeter modules."""
from __future__ import annotations

import logging

from rich.logging import RichHandler

ROOT_LOGGER = "pr_greeter"


def configure_logging(level: str | int = "INFO") -> logging.Logger:
    """Attach a RichHandler to the package logger.

    Safe to call more than once; only the level changes on later calls.
    """
    logger = logging.getLogger(ROOT_LOGGER)
    if not any(isinstance(h, RichHandler) for h in logger.handlers):
        handler = RichHandler(rich_tracebacks=True, show_path=False)
        handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))
        logger.addHandler(handler)
    logger.setLevel(level.upper() if isinstance(level, str) else level)
    return logger


def get_logger(name: str | None = None) -> logging.Logger:
    """Return a logger under the ``pr_greeter`` namespace."""
    if not name or name == ROOT_LOGGER:
        return logging.getLogger(ROOT_LOGGER)
    if not name.startswith(ROOT_LOGGER + "."):
        name = f"{ROOT_LOGGER}.{name}"
    return logging.getLogger(name)
