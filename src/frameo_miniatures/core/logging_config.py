"""Logger setup for frameo-miniatures; LOG_LEVEL and LOG_FORMAT override the defaults."""

import os
import sys
import logging
from typing import Optional

STRUCTURED_FORMAT = (
    "%(asctime)s | %(name)s | %(levelname)-8s | "
    "%(filename)s:%(lineno)d | %(funcName)s() | %(message)s"
)
SIMPLE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def _resolve_level(level: Optional[str], debug: bool) -> int:
    if debug:
        return logging.DEBUG
    name = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    return getattr(logging, name, logging.INFO)


def setup_logger(
    name: str = "frameo-miniatures",
    level: Optional[str] = None,
    format_type: str = "structured",
    debug: bool = False,
) -> logging.Logger:
    """
    Configure a logger that writes to stderr.

    ``debug`` (the CLI's ``--debug``) wins over ``level``, which wins over
    ``LOG_LEVEL``. Calling it again for the same name only updates the level.
    """
    logger = logging.getLogger(name)
    log_level = _resolve_level(level, debug)
    logger.setLevel(log_level)

    if not logger.handlers:
        # stdout is reserved for the progress bar and the run summary
        handler = logging.StreamHandler(sys.stderr)
        if os.getenv("LOG_FORMAT", format_type).lower() == "structured":
            handler.setFormatter(
                logging.Formatter(STRUCTURED_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")
            )
        else:
            handler.setFormatter(logging.Formatter(SIMPLE_FORMAT))
        logger.addHandler(handler)

    for handler in logger.handlers:
        handler.setLevel(log_level)

    logger.propagate = False
    return logger


def get_logger(name: str = "frameo-miniatures") -> logging.Logger:
    return setup_logger(name)
