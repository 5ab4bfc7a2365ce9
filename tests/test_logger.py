"""Unit tests for logging setup."""
import sys
from pathlib import Path

# Add backend to path
sys.path.insert(0, str(Path(__file__).parent.parent / "backend"))

import json
import logging
import pytest
from logger import JSONFormatter, setup_logging


def _record(msg="Ingested brosur.pdf", level=logging.INFO, exc_info=None, **extra):
    record = logging.LogRecord("services.ingestion_pipeline", level, __file__, 10, msg, (), exc_info)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestJSONFormatter:

    def test_basic_fields(self):
        payload = json.loads(JSONFormatter().format(_record()))

        assert payload["level"] == "INFO"
        assert payload["logger"] == "services.ingestion_pipeline"
        assert payload["message"] == "Ingested brosur.pdf"
        assert payload["timestamp"].endswith("Z")
        assert "exception" not in payload

    def test_extra_fields_are_included(self):
        payload = json.loads(JSONFormatter().format(_record(source="brosur.pdf", chunks=4)))

        assert payload["source"] == "brosur.pdf"
        assert payload["chunks"] == 4
        assert "lineno" not in payload

    def test_exception_is_included(self):
        try:
            raise RuntimeError("boom")
        except RuntimeError:
            record = _record(level=logging.ERROR, exc_info=sys.exc_info())

        payload = json.loads(JSONFormatter().format(record))

        assert "RuntimeError: boom" in payload["exception"]


class TestSetupLogging:

    @pytest.fixture(autouse=True)
    def restore_root(self):
        root = logging.getLogger()
        handlers, level = list(root.handlers), root.level
        yield
        root.handlers = handlers
        root.setLevel(level)

    def test_json_handler_installed(self):
        handler = setup_logging("DEBUG", "json")

        assert isinstance(handler.formatter, JSONFormatter)
        assert handler in logging.getLogger().handlers
        assert logging.getLogger().level == logging.DEBUG

    def test_text_format(self):
        handler = setup_logging("warning", "text")

        assert not isinstance(handler.formatter, JSONFormatter)
        assert logging.getLogger().level == logging.WARNING

    def test_repeated_setup_does_not_stack_handlers(self):
        first = setup_logging()
        second = setup_logging()

        handlers = logging.getLogger().handlers
        assert second in handlers
        assert first not in handlers
