import json
import logging

from config import Config
from observability.logging import (
    ContextFilter,
    JsonFormatter,
    TextFormatter,
    clear_context,
    set_request_context,
    setup_logging,
)
from observability.tracing import trace_operation


def make_record(msg="Digest saved | id=%d", args=(3,), level=logging.INFO) -> logging.LogRecord:
    record = logging.LogRecord("signalboard.test", level, __file__, 10, msg, args, None)
    ContextFilter().filter(record)
    return record


def test_json_formatter_includes_context():
    set_request_context("abc123", command="digest")
    try:
        data = json.loads(JsonFormatter().format(make_record()))
    finally:
        clear_context()

    assert data["message"] == "Digest saved | id=3"
    assert data["level"] == "INFO"
    assert data["request_id"] == "abc123"
    assert data["command"] == "digest"
    assert "source" not in data


def test_json_formatter_adds_source_and_extras():
    record = make_record("Unparseable digest JSON", (), logging.WARNING)
    record.cadence = "weekly"
    record.path = object()

    data = json.loads(JsonFormatter().format(record))

    assert data["request_id"] == "-"
    assert data["source"]["line"] == 10
    assert data["cadence"] == "weekly"
    assert isinstance(data["path"], str)


def test_text_formatter():
    set_request_context("abc123", command="submit")
    try:
        line = TextFormatter().format(make_record())
    finally:
        clear_context()

    assert "[INFO] [abc123 submit] signalboard.test: Digest saved | id=3" in line


def test_setup_logging_writes_file(tmp_path):
    root = logging.getLogger()
    saved_handlers, saved_level = root.handlers[:], root.level
    config = Config(log_dir=tmp_path / "log", log_format="json")

    try:
        assert setup_logging(config) is True
        logging.getLogger("signalboard.test").debug("Written to file | id=%d", 1)
        for handler in root.handlers:
            handler.flush()
        lines = (tmp_path / "log" / "signalboard.log").read_text(encoding="utf-8").splitlines()
    finally:
        for handler in root.handlers[:]:
            root.removeHandler(handler)
            handler.close()
        for handler in saved_handlers:
            root.addHandler(handler)
        root.setLevel(saved_level)

    assert json.loads(lines[-1])["message"] == "Written to file | id=1"


def test_trace_operation_is_noop_when_disabled():
    with trace_operation("classify_feedback", {"chars": 10}) as attrs:
        attrs["fallback"] = "empty"
    assert attrs == {"fallback": "empty"}
