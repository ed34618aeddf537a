"""Tests for logging setup and structured events."""

from __future__ import annotations

import json
import logging

from xfeed.config import LoggingConfig
from xfeed.logging_utils import log_event, setup_logging, truncate_text


def test_jsonl_file_logging_records_event_fields(tmp_path):
    cfg = LoggingConfig(level="INFO", console=False, file=True, format="jsonl", filename="run.jsonl")
    logger = setup_logging(cfg, log_dir=tmp_path)

    log_event(logging.getLogger("xfeed.fetch.executor"), "Request failed", event="request_failed", operation="Likes")
    for handler in logger.handlers:
        handler.flush()

    lines = (tmp_path / "run.jsonl").read_text(encoding="utf-8").splitlines()
    record = json.loads(lines[-1])
    assert record["message"] == "Request failed"
    assert record["event"] == "request_failed"
    assert record["operation"] == "Likes"
    assert record["logger"] == "xfeed.fetch.executor"

    for handler in logger.handlers:
        handler.close()
    logger.handlers = []


def test_level_filters_debug_events(tmp_path):
    cfg = LoggingConfig(level="WARNING", console=False, file=True, format="plain", filename="run.log")
    logger = setup_logging(cfg, log_dir=tmp_path)

    log_event(logging.getLogger("xfeed.fetch.paginate"), "Fetched page", level=logging.DEBUG, event="page_fetched")
    log_event(logging.getLogger("xfeed.fetch.paginate"), "Stopped", level=logging.WARNING, event="pagination_stop")
    for handler in logger.handlers:
        handler.close()
    logger.handlers = []

    content = (tmp_path / "run.log").read_text(encoding="utf-8")
    assert "Stopped" in content
    assert "Fetched page" not in content


def test_log_event_without_logger_is_a_no_op():
    log_event(None, "ignored", event="x")


def test_truncate_text():
    assert truncate_text("short", 10) == "short"
    assert truncate_text("abcdefghij", 4, suffix="...") == "abcd..."
