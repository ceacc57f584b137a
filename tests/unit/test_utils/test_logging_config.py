"""Tests for utils/logging_config.py."""

import logging
import threading
from logging.handlers import RotatingFileHandler

import pytest

from opentimeline.utils.logging_config import (
    ContextFilter,
    current_correlation_id,
    log_context,
    log_performance,
    setup_logging,
)


def make_record() -> logging.LogRecord:
    return logging.LogRecord(
        name="test",
        level=logging.INFO,
        pathname="test.py",
        lineno=1,
        msg="Test message",
        args=(),
        exc_info=None,
    )


@pytest.fixture
def restore_root_logger():
    """Restore root logger handlers and level after a test."""
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    yield root
    for handler in root.handlers[:]:
        if handler not in handlers:
            handler.close()
        root.removeHandler(handler)
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(level)


class TestContextFilter:
    """Tests for ContextFilter class."""

    def test_filter_with_correlation_id(self):
        """Test filter adds the active correlation ID."""
        record = make_record()

        with log_context("test-123"):
            assert ContextFilter().filter(record) is True
        assert record.correlation_id == "test-123"  # type: ignore[attr-defined]

    def test_filter_without_correlation_id(self):
        """Test filter uses dash when no correlation ID set."""
        record = make_record()

        assert ContextFilter().filter(record) is True
        assert record.correlation_id == "-"  # type: ignore[attr-defined]


class TestLogContext:
    """Tests for log_context."""

    def test_sets_and_restores(self):
        """Test the correlation ID is scoped to the block."""
        before = current_correlation_id()
        with log_context("timeline-1") as correlation_id:
            assert correlation_id == "timeline-1"
            assert current_correlation_id() == "timeline-1"
        assert current_correlation_id() == before

    def test_generates_id(self):
        """Test an ID is generated when none is given."""
        with log_context() as correlation_id:
            assert len(correlation_id) == 8

    def test_restores_on_error(self):
        """Test the previous ID comes back after an exception."""
        before = current_correlation_id()
        with pytest.raises(RuntimeError):
            with log_context("boom"):
                raise RuntimeError("fail")
        assert current_correlation_id() == before

    def test_nested_blocks(self):
        """Test an inner block restores the outer ID on exit."""
        with log_context("outer"):
            with log_context("inner"):
                assert current_correlation_id() == "inner"
            assert current_correlation_id() == "outer"

    def test_threads_keep_their_own_id(self):
        """Test overlapping blocks in two threads do not see each other's ID."""
        a_entered = threading.Event()
        b_entered = threading.Event()
        a_done = threading.Event()
        seen: dict[str, str | None] = {}

        def thread_a():
            with log_context("timeline-A"):
                a_entered.set()
                b_entered.wait(timeout=5)
                record = make_record()
                ContextFilter().filter(record)
                seen["a"] = record.correlation_id  # type: ignore[attr-defined]
            a_done.set()
            seen["a_after"] = current_correlation_id()

        def thread_b():
            a_entered.wait(timeout=5)
            with log_context("timeline-B"):
                b_entered.set()
                a_done.wait(timeout=5)
                seen["b"] = current_correlation_id()
            seen["b_after"] = current_correlation_id()

        threads = [threading.Thread(target=thread_a), threading.Thread(target=thread_b)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=10)

        assert seen == {
            "a": "timeline-A",
            "a_after": None,
            "b": "timeline-B",
            "b_after": None,
        }
        assert current_correlation_id() is None


class TestLogPerformance:
    """Tests for log_performance."""

    def test_logs_completion(self, caplog):
        """Test a successful block logs its duration."""
        logger = logging.getLogger("test.performance")
        with caplog.at_level(logging.INFO, logger="test.performance"):
            with log_performance(logger, "resolve"):
                pass
        assert "resolve: done in" in caplog.text

    def test_logs_and_reraises_failure(self, caplog):
        """Test a failing block is logged and the error propagates."""
        logger = logging.getLogger("test.performance")
        with caplog.at_level(logging.ERROR, logger="test.performance"):
            with pytest.raises(ValueError):
                with log_performance(logger, "resolve"):
                    raise ValueError("bad")
        assert "resolve: failed after" in caplog.text


class TestSetupLogging:
    """Tests for setup_logging."""

    def test_console_only(self, restore_root_logger):
        """Test no file handler is added without a log file."""
        setup_logging(level="DEBUG", log_file=None)

        assert restore_root_logger.level == logging.DEBUG
        assert len(restore_root_logger.handlers) == 1
        assert not isinstance(restore_root_logger.handlers[0], RotatingFileHandler)

    def test_file_handler(self, tmp_path, restore_root_logger):
        """Test a rotating file handler is added for a log path."""
        log_path = tmp_path / "logs" / "test.log"
        setup_logging(level="INFO", log_file=str(log_path))

        file_handlers = [
            h for h in restore_root_logger.handlers if isinstance(h, RotatingFileHandler)
        ]
        assert len(file_handlers) == 1
        assert log_path.parent.exists()

    def test_unknown_level_falls_back_to_info(self, restore_root_logger):
        """Test an unknown level name means INFO."""
        setup_logging(level="chatty", log_file=None)
        assert restore_root_logger.level == logging.INFO
