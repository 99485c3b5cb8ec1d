"""Tests for logging configuration."""

from __future__ import annotations

import json
import logging
import sys

from clue_play.logging_utils import JsonLogFormatter, setup_logging


def _flush_root_handlers() -> None:
    for handler in logging.getLogger().handlers:
        flush = getattr(handler, "flush", None)
        if callable(flush):
            flush()


def test_setup_logging_default_path_writes_json_log(tmp_path) -> None:
    root = logging.getLogger()
    original_handlers = list(root.handlers)
    original_level = root.level
    try:
        setup_logging(log_dir=tmp_path, level="INFO", console=False)
        logging.getLogger("clue_play.test").info("default-log-path", extra={"n": 3})
        _flush_root_handlers()
        log_path = tmp_path / "clue-play.log"
        payload = json.loads(log_path.read_text(encoding="utf-8").splitlines()[-1])
        assert payload["message"] == "default-log-path"
        assert payload["level"] == "INFO"
        assert payload["context"] == {"n": 3}
        assert len(root.handlers) == 1
    finally:
        root.handlers.clear()
        for handler in original_handlers:
            root.addHandler(handler)
        root.setLevel(original_level)


def test_setup_logging_custom_log_file_and_console(tmp_path) -> None:
    root = logging.getLogger()
    original_handlers = list(root.handlers)
    original_level = root.level
    custom_path = tmp_path / "custom" / "daemon.log"
    try:
        setup_logging(log_dir=tmp_path, level="DEBUG", log_file=custom_path)
        logging.getLogger("clue_play.test").debug("custom-log-path")
        _flush_root_handlers()
        assert "custom-log-path" in custom_path.read_text(encoding="utf-8")
        assert root.level == logging.DEBUG
        assert len(root.handlers) == 2
    finally:
        root.handlers.clear()
        for handler in original_handlers:
            root.addHandler(handler)
        root.setLevel(original_level)


def test_json_formatter_includes_exception() -> None:
    try:
        raise RuntimeError("boom")
    except RuntimeError:
        record = logging.getLogger("x").makeRecord(
            "x", logging.ERROR, __file__, 1, "failed", None, sys.exc_info()
        )
    payload = json.loads(JsonLogFormatter().format(record))
    assert payload["message"] == "failed"
    assert "RuntimeError: boom" in payload["exception"]
