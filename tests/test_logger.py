"""
Tests for logger functionality.
"""

from founderfeed.logger import StructuredLogger, get_logger, reset_logger


class TestStructuredLogger:
    """Test structured logging functionality."""

    def test_logger_creation(self, tmp_path):
        """Logger should be created with default settings."""
        logger = StructuredLogger(
            name="test",
            level="INFO",
            log_dir=tmp_path,
            enable_console=False,
        )

        assert logger.logger.name == "test"
        assert logger.metrics["api_calls"] == 0

    def test_log_file_written(self, tmp_path):
        logger = StructuredLogger(name="test-file", log_dir=tmp_path, enable_console=False)
        logger.warning("Append failed", offset=20, error="boom")
        for handler in logger.logger.handlers:
            handler.flush()

        files = list(tmp_path.glob("founderfeed_*.log"))
        assert len(files) == 1
        content = files[0].read_text(encoding="utf-8")
        assert "Append failed" in content
        assert '"offset": 20' in content

    def test_log_methods(self, tmp_path):
        """All log level methods should work."""
        logger = StructuredLogger(name="test", log_dir=tmp_path, enable_console=False)

        logger.debug("Debug message")
        logger.info("Info message", epoch=3)
        logger.warning("Warning message")
        logger.error("Error message", error=ValueError("not json serializable"))

    def test_metrics_tracking(self):
        """Metrics should be tracked correctly."""
        logger = StructuredLogger(name="test", enable_file=False, enable_console=False)

        logger.record_api_call()
        logger.record_api_call()
        logger.record_fetch_attempt()
        logger.record_fetch_success()
        logger.record_fetch_attempt()
        logger.record_fetch_failure("NetworkError")
        logger.record_swipe()
        logger.record_swipe(match_created=True)

        metrics = logger.get_metrics()
        assert metrics["api_calls"] == 2
        assert metrics["fetches_attempted"] == 2
        assert metrics["fetches_failed"] == 1
        assert metrics["fetch_success_rate"] == 0.5
        assert metrics["swipes_recorded"] == 2
        assert metrics["matches"] == 1
        assert metrics["errors_by_type"] == {"NetworkError": 1}

    def test_metrics_copy_is_detached(self):
        logger = StructuredLogger(name="test", enable_file=False, enable_console=False)
        logger.record_error("ServerError")
        metrics = logger.get_metrics()
        metrics["errors_by_type"]["ServerError"] = 99
        assert logger.metrics["errors_by_type"]["ServerError"] == 1

    def test_metrics_summary(self):
        logger = StructuredLogger(name="test", enable_file=False, enable_console=False)
        logger.record_fetch_failure("AuthError")
        logger.log_metrics_summary()


class TestGlobalLogger:
    """Test global logger singleton."""

    def test_get_logger_returns_singleton(self):
        reset_logger()
        first = get_logger(enable_console=False)
        assert get_logger() is first

    def test_file_logging_follows_env(self, tmp_path, monkeypatch):
        reset_logger()
        monkeypatch.setenv("FOUNDERFEED_LOG_DIR", str(tmp_path / "logs"))
        logger = get_logger(enable_console=False)
        logger.info("hello")
        assert (tmp_path / "logs").is_dir()

    def test_reset_logger(self):
        first = get_logger(enable_console=False)
        reset_logger()
        assert get_logger(enable_console=False) is not first
