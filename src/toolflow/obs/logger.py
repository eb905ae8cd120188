"""Logger factory giving every ToolFlow module the same output format."""

from __future__ import annotations

import logging
import sys

_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
_ROOT = "toolflow"


def configure_logging(level: str | int = "INFO") -> None:
    """Attach the console handler to the package root logger once.

    Module loggers propagate to it, so calling this again only changes the
    level.
    """

    root = logging.getLogger(_ROOT)
    root.setLevel(level)
    if not root.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(fmt=_FORMAT, datefmt=_DATE_FORMAT))
        root.addHandler(handler)
        root.propagate = False


def get_logger(name: str) -> logging.Logger:
    """Return a module logger, usually called with `__name__`."""
    return logging.getLogger(name)
