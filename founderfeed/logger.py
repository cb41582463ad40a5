"""
Structured logging system for founderfeed.

Provides centralized logging with console and optional file output, plus
counters for monitoring discovery fetches and swipe outcomes.
"""

import logging
import os
import sys
from pathlib import Path
from typing import Optional
from datetime import datetime
import json


class StructuredLogger:
    """
    Centralized logger with support for console and file outputs.
    Tracks metrics for monitoring feed and swipe health.
    """

    def __init__(
        self,
        name: str = "founderfeed",
        level: str = "INFO",
        log_dir: Optional[Path] = None,
        enable_file: bool = True,
        enable_console: bool = True,
    ):
        """
        Initialize the structured logger.

        Args:
            name: Logger name
            level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
            log_dir: Directory for log files (default: logs/)
            enable_file: Write logs to file
            enable_console: Output logs to console
        """
        self.logger = logging.getLogger(name)
        self.logger.setLevel(getattr(logging, level.upper()))
        self.logger.handlers.clear()
        self.logger.propagate = False

        self.metrics = {
            "api_calls": 0,
            "fetches_attempted": 0,
            "fetches_successful": 0,
            "fetches_failed": 0,
            "swipes_recorded": 0,
            "matches": 0,
            "errors_by_type": {},
        }

        if enable_console:
            console_handler = logging.StreamHandler(sys.stderr)
            console_handler.setLevel(getattr(logging, level.upper()))
            console_formatter = logging.Formatter(
                fmt='%(asctime)s | %(levelname)-8s | %(name)s | %(message)s',
                datefmt='%Y-%m-%d %H:%M:%S'
            )
            console_handler.setFormatter(console_formatter)
            self.logger.addHandler(console_handler)

        if enable_file:
            if log_dir is None:
                log_dir = Path("logs")
            log_dir.mkdir(parents=True, exist_ok=True)

            log_file = log_dir / f"founderfeed_{datetime.now().strftime('%Y%m%d')}.log"
            file_handler = logging.FileHandler(log_file, encoding='utf-8')
            file_handler.setLevel(logging.DEBUG)  # file gets everything
            file_formatter = logging.Formatter(
                fmt='%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s',
                datefmt='%Y-%m-%d %H:%M:%S'
            )
            file_handler.setFormatter(file_formatter)
            self.logger.addHandler(file_handler)

    def debug(self, message: str, **kwargs):
        """Log debug message with optional context."""
        self._log(logging.DEBUG, message, kwargs)

    def info(self, message: str, **kwargs):
        """Log info message with optional context."""
        self._log(logging.INFO, message, kwargs)

    def warning(self, message: str, **kwargs):
        """Log warning message with optional context."""
        self._log(logging.WARNING, message, kwargs)

    def error(self, message: str, **kwargs):
        """Log error message with optional context."""
        self._log(logging.ERROR, message, kwargs)

    def _log(self, level: int, message: str, context: dict):
        if context:
            message = f"{message} | Context: {json.dumps(context, default=str)}"
        self.logger.log(level, message)

    # Metric tracking methods

    def record_api_call(self):
        self.metrics["api_calls"] += 1

    def record_fetch_attempt(self):
        self.metrics["fetches_attempted"] += 1

    def record_fetch_success(self):
        self.metrics["fetches_successful"] += 1

    def record_fetch_failure(self, error_type: str):
        self.metrics["fetches_failed"] += 1
        self.record_error(error_type)

    def record_swipe(self, match_created: bool = False):
        self.metrics["swipes_recorded"] += 1
        if match_created:
            self.metrics["matches"] += 1

    def record_error(self, error_type: str):
        errors = self.metrics["errors_by_type"]
        errors[error_type] = errors.get(error_type, 0) + 1

    def get_metrics(self) -> dict:
        """Return a copy of current metrics with the fetch success rate."""
        metrics_copy = dict(self.metrics)
        metrics_copy["errors_by_type"] = dict(self.metrics["errors_by_type"])
        attempts = metrics_copy["fetches_attempted"]
        metrics_copy["fetch_success_rate"] = (
            round(metrics_copy["fetches_successful"] / attempts, 3) if attempts else 0.0
        )
        return metrics_copy

    def log_metrics_summary(self):
        """Log a summary of current metrics."""
        metrics = self.get_metrics()

        self.info("=== Discovery Session Metrics ===")
        self.info(f"API Calls: {metrics['api_calls']}")
        self.info(
            f"Fetches: {metrics['fetches_successful']}/{metrics['fetches_attempted']} "
            f"({metrics['fetch_success_rate'] * 100:.1f}% success)"
        )
        self.info(f"Swipes: {metrics['swipes_recorded']} ({metrics['matches']} matches)")

        if metrics["errors_by_type"]:
            self.info("Error Types:")
            for error_type, count in metrics["errors_by_type"].items():
                self.info(f"  {error_type}: {count}")


# Global logger instance
_global_logger: Optional[StructuredLogger] = None


def get_logger(
    name: str = "founderfeed",
    level: Optional[str] = None,
    **kwargs
) -> StructuredLogger:
    """
    Get or create the global logger instance.

    Level and file output default to FOUNDERFEED_LOG_LEVEL and
    FOUNDERFEED_LOG_DIR; file logging stays off unless a directory is set.

    Returns:
        StructuredLogger instance
    """
    global _global_logger

    if _global_logger is None:
        log_dir = os.getenv("FOUNDERFEED_LOG_DIR")
        kwargs.setdefault("enable_file", bool(log_dir))
        if log_dir:
            kwargs.setdefault("log_dir", Path(log_dir))
        _global_logger = StructuredLogger(
            name=name,
            level=level or os.getenv("FOUNDERFEED_LOG_LEVEL", "INFO"),
            **kwargs,
        )

    return _global_logger


def reset_logger():
    """Reset the global logger (useful for testing)."""
    global _global_logger
    _global_logger = None
