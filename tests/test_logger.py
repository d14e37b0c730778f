"""Tests for the structured JSON logger."""

import json
import logging
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from core.logger import PollbotLogger, _JsonFormatter


def _record(msg: str = "hello", **extra: object) -> logging.LogRecord:
    record = logging.LogRecord(
        name="pollbot.test", level=logging.INFO, pathname=__file__, lineno=1,
        msg=msg, args=(), exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestJsonFormatter:
    def test_standard_fields(self) -> None:
        entry = json.loads(_JsonFormatter().format(_record()))
        assert entry["level"] == "INFO"
        assert entry["logger"] == "pollbot.test"
        assert entry["message"] == "hello"
        assert {"timestamp", "module", "func_name"} <= set(entry)

    def test_extra_fields_merged(self) -> None:
        entry = json.loads(_JsonFormatter().format(_record(update_id=7, offset=8)))
        assert entry["update_id"] == 7
        assert entry["offset"] == 8

    def test_exception_included(self) -> None:
        try:
            raise RuntimeError("boom")
        except RuntimeError:
            record = _record()
            record.exc_info = sys.exc_info()
        entry = json.loads(_JsonFormatter().format(record))
        assert "RuntimeError: boom" in entry["exception"]


class TestPollbotLogger:
    def test_singleton_root(self) -> None:
        assert PollbotLogger.get_logger() is PollbotLogger.get_logger()
        assert PollbotLogger.get_logger().name == "pollbot"

    def test_child_logger(self) -> None:
        child = PollbotLogger.get_logger("sdk.client")
        assert child.name == "pollbot.sdk.client"
        assert child.parent is PollbotLogger.get_logger()
