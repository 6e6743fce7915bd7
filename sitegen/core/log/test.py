"""Tests for core logging module."""

import logging
from io import StringIO

from .lib import get_logger, setup_logging


class TestLogging:
    """Test core logging API."""

    def test_get_logger_default_name(self) -> None:
        """Verify default logger name."""
        logger = get_logger()
        assert logger.name == "sitegen"

    def test_get_logger_nested_under_package(self) -> None:
        """Foreign names are nested under the package logger."""
        logger = get_logger("pipeline")
        assert logger.name == "sitegen.pipeline"
        assert isinstance(logger, logging.Logger)

    def test_get_logger_keeps_package_names(self) -> None:
        """Module names already in the namespace are kept as-is."""
        assert get_logger("sitegen.retry.lib").name == "sitegen.retry.lib"

    def test_setup_logging_quiets_transport(self) -> None:
        """Transport loggers are raised to at least WARNING."""
        stream = StringIO()
        setup_logging(level=logging.DEBUG, stream=stream)
        assert logging.getLogger("httpx").level == logging.WARNING
