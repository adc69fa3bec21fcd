"""Tests for structlog-backed logging setup."""

from __future__ import annotations

import logging

import pytest
import structlog

from docchat.core.config import ObservabilityConfig
from docchat.core.logging_config import setup_logging


@pytest.fixture
def restore_root_logging():
    root = logging.getLogger()
    pkg = logging.getLogger("docchat")
    handlers, level, pkg_level = list(root.handlers), root.level, pkg.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
    pkg.setLevel(pkg_level)
    structlog.reset_defaults()


class TestSetupLogging:
    def test_routes_root_through_processor_formatter(self, restore_root_logging) -> None:
        setup_logging(ObservabilityConfig(log_level="DEBUG"))
        root = logging.getLogger()
        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0].formatter, structlog.stdlib.ProcessorFormatter)
        assert logging.getLogger("docchat").level == logging.DEBUG

    def test_unknown_level_falls_back_to_info(self, restore_root_logging) -> None:
        setup_logging(ObservabilityConfig(log_level="chatty"))
        assert logging.getLogger().level == logging.INFO
