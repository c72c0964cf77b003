"""Tests for the logging bootstrap."""

import json
import logging

import pytest

from reelchat.configs.system import LoggingConfig
from reelchat.infra.logging import setup_logging


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers, root.level = handlers, level


class TestSetupLogging:
    def test_json_lines(self, restore_root_logger, capsys):
        setup_logging(LoggingConfig(level="debug", json_output=True))

        logging.getLogger("reelchat.test").info("hello %s", "world")

        record = json.loads(capsys.readouterr().out.strip().splitlines()[-1])
        assert record["message"] == "hello world"
        assert record["level"] == "INFO"
        assert record["logger"] == "reelchat.test"
        assert record["trace_id"] == ""

    def test_quiets_noisy_libraries(self, restore_root_logger):
        setup_logging(LoggingConfig(level="DEBUG", json_output=False))
        assert logging.getLogger("httpx").level == logging.WARNING
        assert logging.getLogger().level == logging.DEBUG
