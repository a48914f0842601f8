"""Tests for log redaction."""

import logging

from config.logging_config import APIKeyRedactionFilter

GEMINI_KEY = "AIza" + "x" * 35


def make_record(msg, args=None):
    return logging.LogRecord("test", logging.INFO, __file__, 1, msg, args, None)


class TestAPIKeyRedactionFilter:
    """Test that caller keys never reach the logs."""

    def test_bare_key(self):
        record = make_record(f"calling with {GEMINI_KEY}")
        APIKeyRedactionFilter().filter(record)
        assert GEMINI_KEY not in record.getMessage()
        assert "[GEMINI_KEY_REDACTED]" in record.getMessage()

    def test_query_parameter(self):
        record = make_record("GET https://example.test/v1/models?key=secret123&alt=json")
        APIKeyRedactionFilter().filter(record)
        assert record.getMessage() == "GET https://example.test/v1/models?key=[REDACTED]&alt=json"

    def test_tuple_args(self):
        record = make_record("request %s", (f"key {GEMINI_KEY}",))
        APIKeyRedactionFilter().filter(record)
        assert GEMINI_KEY not in record.getMessage()

    def test_dict_args(self):
        record = make_record("request %(url)s", ({"url": f"?key={GEMINI_KEY}"},))
        APIKeyRedactionFilter().filter(record)
        assert GEMINI_KEY not in record.getMessage()

    def test_plain_message_untouched(self):
        record = make_record("Created 3 questions for lesson Physics")
        assert APIKeyRedactionFilter().filter(record) is True
        assert record.getMessage() == "Created 3 questions for lesson Physics"
