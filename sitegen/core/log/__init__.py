"""Logging micro API for sitegen."""

from .lib import get_logger, setup_logging

__all__ = ["get_logger", "setup_logging"]
