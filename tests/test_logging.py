"""Tests for the JSON log formatter."""

import json
import logging

from app.core.logging import JSONFormatter


def _record(**extra) -> logging.LogRecord:
    record = logging.LogRecord("app.test", logging.WARNING, __file__, 1, "Check failed: %s", ("HTTP 503",), None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestJSONFormatter:
    def test_basic_fields(self):
        data = json.loads(JSONFormatter().format(_record()))
        assert data["level"] == "WARNING"
        assert data["logger"] == "app.test"
        assert data["message"] == "Check failed: HTTP 503"
        assert "business_id" not in data

    def test_context_fields_included(self):
        record = _record(request_id="req-1", business_id="b-1", prompt_id="p-1", backend="perplexity")
        data = json.loads(JSONFormatter().format(record))
        assert data["request_id"] == "req-1"
        assert data["business_id"] == "b-1"
        assert data["prompt_id"] == "p-1"
        assert data["backend"] == "perplexity"
