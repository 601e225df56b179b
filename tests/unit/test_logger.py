"""Tests for logging setup."""

from __future__ import annotations

import logging

import pytest
import structlog

from deploybundle.logger import get_logger, log_context, setup_logging


@pytest.fixture
def restore_logging():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
    structlog.reset_defaults()


class TestSetupLogging:
    def test_debug_level(self, restore_logging) -> None:
        setup_logging(debug=True)
        assert logging.getLogger().level == logging.DEBUG

    def test_info_level(self, restore_logging) -> None:
        setup_logging()
        assert logging.getLogger().level == logging.INFO

    def test_json_renderer(self, restore_logging) -> None:
        setup_logging(json_output=True)
        processors = structlog.get_config()["processors"]
        assert isinstance(processors[-1], structlog.processors.JSONRenderer)


class TestGetLogger:
    def test_returns_usable_logger(self) -> None:
        logger = get_logger("deploybundle.test")
        assert hasattr(logger, "info")
        assert hasattr(logger, "warning")


class TestLogContext:
    def test_binds_and_clears(self) -> None:
        with log_context(root="/srv/app"):
            assert structlog.contextvars.get_contextvars()["root"] == "/srv/app"
        assert "root" not in structlog.contextvars.get_contextvars()
