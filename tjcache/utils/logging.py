"""Simple logging utilities for tjcache."""

import logging
import sys

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def configure_logging(level: str = "WARNING") -> logging.Logger:
    """Attach a stderr handler to the package logger at the given level.

    Library modules only create loggers; the CLI calls this once at startup.
    """
    root = logging.getLogger("tjcache")
    numeric = getattr(logging, level.upper(), logging.WARNING)

    if not root.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
        root.addHandler(handler)

    root.setLevel(numeric)
    for handler in root.handlers:
        handler.setLevel(numeric)
    return root
