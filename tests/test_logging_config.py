"""
Tests for logging configuration.
"""
import logging

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from burger_bot.logging_config import (
    LOG_FORMAT,
    RequestIDFilter,
    clear_request_id,
    get_request_id,
    set_request_id,
    setup_logging,
)
from burger_bot.middleware import RequestIDMiddleware


@pytest.fixture(autouse=True)
def restore_levels():
    names = ["burger_bot", "twilio", "twilio.http_client", "urllib3"]
    saved = {name: logging.getLogger(name).level for name in names}
    yield
    for name, level in saved.items():
        logging.getLogger(name).setLevel(level)


class TestLoggingConfiguration:
    """Test logging setup and configuration."""

    def test_setup_logging_default_level(self, monkeypatch):
        """Test that setup_logging defaults to INFO level."""
        monkeypatch.delenv("LOG_LEVEL", raising=False)
        setup_logging()
        assert logging.getLogger("burger_bot").level == logging.INFO

    def test_setup_logging_respects_env_var(self, monkeypatch):
        """Test that LOG_LEVEL env var is respected."""
        monkeypatch.setenv("LOG_LEVEL", "warning")
        setup_logging()
        assert logging.getLogger("burger_bot").level == logging.WARNING

    def test_setup_logging_explicit_level(self):
        setup_logging(level="ERROR")
        assert logging.getLogger("burger_bot").level == logging.ERROR

    def test_setup_logging_invalid_level_defaults_to_info(self):
        """Test that invalid level falls back to INFO."""
        setup_logging(level="INVALID_LEVEL")
        assert logging.getLogger("burger_bot").level == logging.INFO


class TestNoSensitiveDataInLogs:
    """Customer phone numbers must not leak through third-party loggers."""

    def test_twilio_quiet_outside_debug(self):
        setup_logging(level="INFO")
        assert logging.getLogger("twilio.http_client").level == logging.WARNING
        assert logging.getLogger("urllib3").level == logging.WARNING

    def test_twilio_verbose_in_debug(self):
        logging.getLogger("twilio").setLevel(logging.NOTSET)
        setup_logging(level="DEBUG")
        assert logging.getLogger("twilio").level == logging.NOTSET


class TestRequestIDLogging:
    """Log records carry the id of the request they were written under."""

    def _record(self):
        return logging.LogRecord("burger_bot.test", logging.INFO, __file__, 1, "hello", None, None)

    def test_outside_a_request(self):
        record = self._record()
        assert RequestIDFilter().filter(record)
        assert record.request_id == "-"

    def test_inside_a_request(self):
        set_request_id("abc-123")
        try:
            record = self._record()
            RequestIDFilter().filter(record)
        finally:
            clear_request_id()
        assert record.request_id == "abc-123"
        assert get_request_id() == "-"

    def test_format_includes_request_id(self):
        record = self._record()
        RequestIDFilter().filter(record)
        assert "[-] hello" in logging.Formatter(LOG_FORMAT).format(record)

    def test_setup_logging_installs_filter_once(self):
        root = logging.getLogger()
        handler = logging.StreamHandler()
        root.addHandler(handler)
        try:
            setup_logging(level="INFO")
            setup_logging(level="INFO")
            assert sum(isinstance(f, RequestIDFilter) for f in handler.filters) == 1
        finally:
            root.removeHandler(handler)

    def test_middleware_sets_id_for_the_request(self):
        app = FastAPI()
        app.add_middleware(RequestIDMiddleware)

        @app.get("/request-id")
        def current_request_id():
            return {"request_id": get_request_id()}

        with TestClient(app) as client:
            resp = client.get("/request-id", headers={"X-Request-ID": "abc-123"})
        assert resp.json() == {"request_id": "abc-123"}
        assert resp.headers["X-Request-ID"] == "abc-123"
