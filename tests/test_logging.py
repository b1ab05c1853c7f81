"""Tests for structured logging."""

import json
import logging

from guidesmith.utils.logging import JSONFormatter, setup_logging


def _record(**extra):
    record = logging.LogRecord("guidesmith.test", logging.INFO, __file__, 10, "Section %s done", ("intro",), None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_json_formatter_includes_extra_fields():
    output = json.loads(JSONFormatter().format(_record(session_id="s1", duration_ms=12.5)))

    assert output["message"] == "Section intro done"
    assert output["level"] == "INFO"
    assert output["logger"] == "guidesmith.test"
    assert output["session_id"] == "s1"
    assert output["duration_ms"] == 12.5
    assert "args" not in output
    assert "msg" not in output


def test_json_formatter_serializes_unknown_types():
    output = json.loads(JSONFormatter().format(_record(path=object())))

    assert isinstance(output["path"], str)


def test_setup_logging_writes_json_to_file(tmp_path):
    log_file = tmp_path / "app.log"
    root = logging.getLogger()
    previous_handlers, previous_level = root.handlers[:], root.level
    try:
        setup_logging("debug", json_format=True, log_file=str(log_file))
        logging.getLogger("guidesmith.test").info("hello", extra={"job_id": "j1"})
        for handler in root.handlers:
            handler.flush()
    finally:
        for handler in root.handlers:
            handler.close()
        root.handlers[:] = previous_handlers
        root.setLevel(previous_level)

    entry = json.loads(log_file.read_text(encoding="utf-8").strip().splitlines()[-1])
    assert entry["message"] == "hello"
    assert entry["job_id"] == "j1"
