"""Unit tests for telemetry module."""

import asyncio
import json
import logging
import sys

import pytest

from chronos.commons.telemetry.decorators import LogContext, timed
from chronos.commons.telemetry.logger import (
    JsonFormatter,
    TextFormatter,
    clear_log_context,
    configure_logging,
    get_correlation_id,
    get_log_context,
    set_correlation_id,
    set_log_context,
)


def _record(msg: str = "Test", level: int = logging.INFO, **extra) -> logging.LogRecord:
    record = logging.LogRecord(
        name="test",
        level=level,
        pathname="/test/file.py",
        lineno=42,
        msg=msg,
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class _ListHandler(logging.Handler):
    def __init__(self) -> None:
        super().__init__(level=logging.DEBUG)
        self.records: list[logging.LogRecord] = []

    def emit(self, record: logging.LogRecord) -> None:
        self.records.append(record)


@pytest.fixture
def captured():
    logger = logging.getLogger("chronos.tests.timed")
    logger.setLevel(logging.DEBUG)
    logger.propagate = False
    handler = _ListHandler()
    logger.addHandler(handler)
    yield logger, handler.records
    logger.removeHandler(handler)


class TestCorrelationId:
    """Tests for correlation ID management."""

    def test_set_and_get_correlation_id(self):
        cid = set_correlation_id("test-123")
        assert cid == "test-123"
        assert get_correlation_id() == "test-123"

    def test_auto_generate_correlation_id(self):
        cid = set_correlation_id()
        assert len(cid) == 32
        int(cid, 16)

    def test_correlation_id_isolation(self):
        set_correlation_id("main-context")

        async def async_task():
            set_correlation_id("async-context")
            return get_correlation_id()

        assert asyncio.run(async_task()) == "async-context"
        assert get_correlation_id() == "main-context"


class TestLogContextFields:
    """Tests for per-task logging context."""

    def setup_method(self):
        clear_log_context()

    def teardown_method(self):
        clear_log_context()

    def test_set_and_get_context(self):
        set_log_context(video_id="v1", stage="embedding")
        assert get_log_context() == {"video_id": "v1", "stage": "embedding"}

    def test_clear_context(self):
        set_log_context(key="value")
        clear_log_context()
        assert get_log_context() == {}

    def test_context_is_copied(self):
        set_log_context(key="value")
        ctx = get_log_context()
        ctx["new_key"] = "new_value"
        assert "new_key" not in get_log_context()


class TestJsonFormatter:
    """Tests for JSON log formatter."""

    def setup_method(self):
        clear_log_context()

    def teardown_method(self):
        clear_log_context()

    def test_basic_format(self):
        data = json.loads(JsonFormatter().format(_record("Test message")))

        assert data["level"] == "INFO"
        assert data["logger"] == "test"
        assert data["message"] == "Test message"
        assert "timestamp" in data
        assert data["path"] == "/test/file.py:42"

    def test_path_can_be_omitted(self):
        data = json.loads(JsonFormatter(include_path=False).format(_record()))
        assert "path" not in data

    def test_extra_fields_are_flattened(self):
        record = _record(video_id="v1", recovery_attempt=2)
        data = json.loads(JsonFormatter().format(record))
        assert data["video_id"] == "v1"
        assert data["recovery_attempt"] == 2

    def test_format_with_correlation_id(self):
        set_correlation_id("test-cid")
        data = json.loads(JsonFormatter().format(_record()))
        assert data["correlation_id"] == "test-cid"

    def test_format_with_context(self):
        set_log_context(request_id="req-123")
        data = json.loads(JsonFormatter().format(_record()))
        assert data["context"]["request_id"] == "req-123"

    def test_format_with_exception(self):
        try:
            raise ValueError("Test error")
        except ValueError:
            record = _record("Error occurred", logging.ERROR)
            record.exc_info = sys.exc_info()

        data = json.loads(JsonFormatter().format(record))
        assert "ValueError" in data["exception"]


class TestTextFormatter:
    """Tests for text log formatter."""

    def test_basic_format(self):
        set_correlation_id("abcdef0123456789")
        output = TextFormatter().format(_record("Test message", video_id="v1"))

        assert "INFO" in output
        assert "[test]" in output
        assert "[abcdef01]" in output
        assert "Test message" in output
        assert "video_id=v1" in output


class TestConfigureLogging:
    """Tests for logger configuration."""

    def test_configure_json_logger(self):
        logger = configure_logging(level="DEBUG", format_type="json", logger_name="test.json")
        assert logger.level == logging.DEBUG
        assert len(logger.handlers) == 1
        assert isinstance(logger.handlers[0].formatter, JsonFormatter)
        assert logger.propagate is False

    def test_configure_text_logger(self):
        logger = configure_logging(level="INFO", format_type="text", logger_name="test.text")
        assert isinstance(logger.handlers[0].formatter, TextFormatter)

    def test_reconfigure_replaces_handler(self):
        configure_logging(logger_name="test.twice")
        logger = configure_logging(logger_name="test.twice")
        assert len(logger.handlers) == 1


class TestTimedDecorator:
    """Tests for @timed decorator."""

    def test_timed_sync_function(self, captured):
        logger, records = captured

        @timed(logger=logger)
        def add(x, y):
            return x + y

        assert add(1, 2) == 3
        assert len(records) == 1
        assert records[0].getMessage().endswith("add completed")
        assert records[0].duration_ms >= 0

    async def test_timed_async_function(self, captured):
        logger, records = captured

        @timed(logger=logger, level=logging.INFO)
        async def double(x):
            await asyncio.sleep(0)
            return x * 2

        assert await double(5) == 10
        assert records[0].levelno == logging.INFO

    def test_timed_logs_on_exception(self, captured):
        logger, records = captured

        @timed(logger=logger)
        def failing():
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError):
            failing()
        assert len(records) == 1

    def test_timed_with_threshold(self, captured):
        logger, records = captured

        @timed(logger=logger, threshold_ms=10_000)
        def fast():
            return "fast"

        assert fast() == "fast"
        assert records == []

    def test_bare_decorator(self):
        @timed
        def identity(x):
            return x

        assert identity(3) == 3
        assert identity.__name__ == "identity"


class TestLogContextManager:
    """Tests for LogContext context manager."""

    def setup_method(self):
        clear_log_context()

    def teardown_method(self):
        clear_log_context()

    def test_context_manager_restores_context(self):
        set_log_context(existing="value")

        with LogContext(temporary="data"):
            ctx = get_log_context()
            assert ctx["existing"] == "value"
            assert ctx["temporary"] == "data"

        ctx = get_log_context()
        assert ctx["existing"] == "value"
        assert "temporary" not in ctx

    def test_nested_context_managers(self):
        with LogContext(level1="a"):
            with LogContext(level2="b"):
                assert get_log_context() == {"level1": "a", "level2": "b"}
            assert get_log_context() == {"level1": "a"}
