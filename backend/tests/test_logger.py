"""Logging setup and correlation fields on JSON records."""

from __future__ import annotations

import json
import logging

import pytest

from authgate.utils.logger import (
    CorrelationJsonFormatter,
    ctx_request_id,
    ctx_user_id,
    setup_logger,
)


def _record(msg: str = "hello") -> logging.LogRecord:
    return logging.LogRecord("authgate.test", logging.INFO, __file__, 1, msg, None, None)


def _formatter() -> CorrelationJsonFormatter:
    return CorrelationJsonFormatter(
        "%(asctime)s %(levelname)s %(name)s %(message)s",
        rename_fields={"levelname": "level", "asctime": "timestamp"},
    )


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield root
    root.handlers[:] = handlers
    root.setLevel(level)


class TestCorrelationJsonFormatter:
    def test_context_ids_are_attached(self):
        rid = ctx_request_id.set("req-42")
        uid = ctx_user_id.set("user-7")
        try:
            payload = json.loads(_formatter().format(_record()))
        finally:
            ctx_user_id.reset(uid)
            ctx_request_id.reset(rid)
        assert payload["message"] == "hello"
        assert payload["level"] == "INFO"
        assert payload["request_id"] == "req-42"
        assert payload["user_id"] == "user-7"

    def test_unset_context_ids_are_omitted(self):
        payload = json.loads(_formatter().format(_record()))
        assert "request_id" not in payload
        assert "user_id" not in payload


class TestSetupLogger:
    def test_json_format_installs_single_handler(self, restore_root_logger):
        root = setup_logger("json", "debug")
        assert root is restore_root_logger
        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0].formatter, CorrelationJsonFormatter)
        assert root.level == logging.DEBUG
        assert logging.getLogger("httpx").level == logging.WARNING

    def test_text_format_and_unknown_level(self, restore_root_logger):
        root = setup_logger("text", "chatty")
        assert not isinstance(root.handlers[0].formatter, CorrelationJsonFormatter)
        assert root.level == logging.INFO
