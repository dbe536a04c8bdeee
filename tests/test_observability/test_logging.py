"""
Tests for the structlog setup.
"""

import json
import logging

import pytest
import structlog

from intake.config import settings
from intake.observability.logging import setup_logging


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield root
    root.handlers[:] = handlers
    root.setLevel(level)
    structlog.reset_defaults()


class TestSetupLogging:

    def test_level_and_json_lines_from_settings(self, monkeypatch, capsys, restore_root_logger):
        monkeypatch.setattr(settings, "LOG_LEVEL", "debug")
        monkeypatch.setattr(settings, "DEBUG", False)

        setup_logging()
        structlog.get_logger("intake.test").info("submission_created", submission_id=7)

        assert restore_root_logger.level == logging.DEBUG
        line = capsys.readouterr().out.strip().splitlines()[-1]
        record = json.loads(line)
        assert record["event"] == "submission_created"
        assert record["submission_id"] == 7
        assert record["level"] == "info"

    def test_unknown_level_falls_back_to_info(self, monkeypatch, restore_root_logger):
        monkeypatch.setattr(settings, "LOG_LEVEL", "chatty")
        setup_logging()
        assert restore_root_logger.level == logging.INFO
