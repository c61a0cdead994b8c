# src/crudkit/tests/test_logging/test_formatters.py
import json
import logging

from crudkit.core.logging.formatters import ColorFormatter, JsonFormatter


def make_record():
    return logging.LogRecord("crudkit", logging.INFO, __file__, 10, "hello %s", ("tester",), None)


def test_json_formatter_basic_fields():
    rec = make_record()
    rec.model = "User"
    rec.correlation_id = "req-1"
    out = JsonFormatter(env="testing", service="svc").format(rec)
    data = json.loads(out)

    assert data["message"] == "hello tester"
    assert data["level"] == "INFO"
    assert data["service"] == "svc"
    assert data["env"] == "testing"
    assert "timestamp" in data
    assert data["correlation_id"] == "req-1"
    assert data["model"] == "User"
    assert "version" in data
    # standard LogRecord attributes are not repeated as extras
    assert "args" not in data
    assert "msecs" not in data


def test_json_formatter_non_serializable_extra():
    rec = make_record()

    class X:
        def __repr__(self):
            return "<X>"

    rec.obj = X()
    data = json.loads(JsonFormatter(env="dev", service="svc").format(rec))
    assert data["obj"] == "<X>"


def test_json_formatter_includes_exception():
    try:
        raise ValueError("bad")
    except ValueError:
        import sys
        rec = logging.LogRecord("crudkit", logging.ERROR, __file__, 1, "failed", (), sys.exc_info())

    data = json.loads(JsonFormatter().format(rec))
    assert "ValueError: bad" in data["exc_info"]


def test_color_formatter_appends_extras():
    rec = make_record()
    rec.correlation_id = "cid-1"
    rec.rows_affected = 3
    out = ColorFormatter().format(rec)

    assert "hello tester" in out
    assert "cid-1" in out
    assert "rows_affected=3" in out
    assert ColorFormatter.COLOR_CODES["INFO"] in out
