"""Core logging implementation for sitegen."""

import logging
import sys
from typing import Optional

__all__ = ["get_logger", "setup_logging"]

DEFAULT_LOGGER_NAME = "sitegen"


def setup_logging(level: int = logging.INFO, stream=sys.stderr) -> None:
    """Configure basic logging.

    Args:
        level: Logging level.
        stream: Output stream.
    """
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=stream,
    )
    # Transport loggers stay at WARNING or above
    for noisy in ("httpx", "httpcore"):
        logging.getLogger(noisy).setLevel(max(level, logging.WARNING))


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Get a logger instance.

    Module loggers are nested under the package logger so a single
    level applies to the whole pipeline.

    Args:
        name: Name of the logger. Names outside the package namespace
            are prefixed with ``sitegen.``.

    Returns:
        Logger instance.
    """
    if not name:
        return logging.getLogger(DEFAULT_LOGGER_NAME)
    if name != DEFAULT_LOGGER_NAME and not name.startswith(DEFAULT_LOGGER_NAME + "."):
        name = f"{DEFAULT_LOGGER_NAME}.{name}"
    return logging.getLogger(name)
