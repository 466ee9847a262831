"""Tests for structured logging configuration."""

import json
import logging

import pytest

from notion_mirror.logging_config import LOGGING_CONFIG, configure_logging


@pytest.fixture(autouse=True)
def _restore_logging():
    """Put back root and notion_client handlers replaced by dictConfig."""
    root = logging.getLogger()
    notion_logger = logging.getLogger("notion_client")
    saved = (root.handlers[:], root.level, notion_logger.handlers[:], notion_logger.level, notion_logger.propagate)
    yield
    root.handlers[:], notion_logger.handlers[:] = saved[0], saved[2]
    root.setLevel(saved[1])
    notion_logger.setLevel(saved[3])
    notion_logger.propagate = saved[4]


def test_configure_logging_emits_json(capsys):
    """Records are written to stdout as JSON with renamed fields and extras."""
    configure_logging("debug")
    logging.getLogger("notion_mirror.test").info("fetched", extra={"path": "pages/p1"})

    record = json.loads(capsys.readouterr().out.strip().splitlines()[-1])
    assert record["severity"] == "INFO"
    assert record["logger"] == "notion_mirror.test"
    assert record["service"] == "notion-mirror"
    assert record["path"] == "pages/p1"
    assert logging.getLogger().level == logging.DEBUG


def test_configure_logging_does_not_mutate_template():
    configure_logging("warning")
    assert LOGGING_CONFIG["root"]["level"] == "INFO"


def test_notion_client_logger_is_quiet():
    configure_logging()
    assert logging.getLogger("notion_client").level == logging.WARNING
