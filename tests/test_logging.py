import json
import logging
import os
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("DATA_DIR", str(ROOT / "data"))

from babytracker.core.logging import JsonLogFormatter
from babytracker.middlewares import request_id_ctx_var


def _record(message, **extra):
    record = logging.LogRecord("babytracker.test", logging.WARNING, __file__, 1, message, (), None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_formatter_emits_json_with_request_id_and_extra():
    token = request_id_ctx_var.set("req-42")
    try:
        line = JsonLogFormatter().format(_record("Error refreshing activities", extra_data={"baby_id": "baby-1"}))
    finally:
        request_id_ctx_var.reset(token)

    payload = json.loads(line)
    assert payload["level"] == "WARNING"
    assert payload["logger"] == "babytracker.test"
    assert payload["message"] == "Error refreshing activities"
    assert payload["request_id"] == "req-42"
    assert payload["baby_id"] == "baby-1"
    assert payload["timestamp"].endswith("Z")


def test_formatter_without_context():
    payload = json.loads(JsonLogFormatter().format(_record("plain")))

    assert "request_id" not in payload
    assert "principal" not in payload
