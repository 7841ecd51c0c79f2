"""
Structured logging for jobtracker.

Wraps the standard library logger with console and daily-file outputs,
keyword context rendered as JSON, and counters describing what the job
store and the board sources did during a run.
"""

import json
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

CONSOLE_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
FILE_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _level(name: str) -> int:
    return getattr(logging, str(name).upper(), logging.INFO)


class StructuredLogger:
    """
    Named logger with optional console and file handlers.
    Keeps counters for store mutations and board scraping.
    """

    def __init__(
        self,
        name: str = "jobtracker",
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
            enable_file: Write logs to a daily file
            enable_console: Output logs to stdout
        """
        self.logger = logging.getLogger(name)
        self.log_file: Optional[Path] = None
        self.metrics: Dict[str, Any] = {}
        self.reset_metrics()
        self.configure(
            level=level,
            log_dir=log_dir,
            enable_file=enable_file,
            enable_console=enable_console,
        )

    def configure(
        self,
        level: str = "INFO",
        log_dir: Optional[Path] = None,
        enable_file: bool = True,
        enable_console: bool = True,
    ) -> None:
        """Replace the handlers of the underlying logger. Metrics are kept."""
        for handler in list(self.logger.handlers):
            self.logger.removeHandler(handler)
            handler.close()
        self.logger.setLevel(_level(level))
        self.log_file = None

        if enable_console:
            console_handler = logging.StreamHandler(sys.stdout)
            console_handler.setLevel(_level(level))
            console_handler.setFormatter(logging.Formatter(fmt=CONSOLE_FORMAT, datefmt=DATE_FORMAT))
            self.logger.addHandler(console_handler)

        if enable_file:
            log_dir = Path(log_dir) if log_dir is not None else Path("logs")
            log_dir.mkdir(parents=True, exist_ok=True)

            self.log_file = log_dir / f"jobtracker_{datetime.now().strftime('%Y%m%d')}.log"
            file_handler = logging.FileHandler(self.log_file, encoding="utf-8")
            file_handler.setLevel(logging.DEBUG)  # file always gets everything the logger passes
            file_handler.setFormatter(logging.Formatter(fmt=FILE_FORMAT, datefmt=DATE_FORMAT))
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

    def critical(self, message: str, **kwargs):
        self._log(logging.CRITICAL, message, kwargs)

    def separator(self, char: str = "=", length: int = 60):
        self._log(logging.INFO, char * length, {})

    def _log(self, level: int, message: str, context: dict):
        if context:
            message = f"{message} | Context: {json.dumps(context, default=str, ensure_ascii=False)}"
        self.logger.log(level, message)

    # Store metrics

    def reset_metrics(self):
        self.metrics = {
            "jobs_added": 0,
            "duplicates_skipped": 0,
            "status_updates": 0,
            "notes_added": 0,
            "write_failures": 0,
            "api_calls": 0,
            "scrapes_attempted": 0,
            "scrapes_successful": 0,
            "scrapes_failed": 0,
            "errors_by_type": {},
            "platform_success_rate": {},
        }

    def record_job_added(self):
        self.metrics["jobs_added"] += 1

    def record_duplicate(self):
        self.metrics["duplicates_skipped"] += 1

    def record_status_update(self):
        self.metrics["status_updates"] += 1

    def record_note_added(self):
        self.metrics["notes_added"] += 1

    def record_write_failure(self, error_type: str):
        self.metrics["write_failures"] += 1
        self._count_error(error_type)

    # Source metrics

    def record_api_call(self):
        """Increment API call counter."""
        self.metrics["api_calls"] += 1

    def record_scrape_attempt(self, platform: str):
        """Record scraping attempt for a platform."""
        self.metrics["scrapes_attempted"] += 1
        stats = self.metrics["platform_success_rate"].setdefault(
            platform, {"attempts": 0, "successes": 0}
        )
        stats["attempts"] += 1

    def record_scrape_success(self, platform: str):
        """Record successful scrape."""
        self.metrics["scrapes_successful"] += 1
        if platform in self.metrics["platform_success_rate"]:
            self.metrics["platform_success_rate"][platform]["successes"] += 1

    def record_scrape_failure(self, platform: str, error_type: str):
        """Record scraping failure."""
        self.metrics["scrapes_failed"] += 1
        self._count_error(error_type)

    def _count_error(self, error_type: str):
        errors = self.metrics["errors_by_type"]
        errors[error_type] = errors.get(error_type, 0) + 1

    def get_metrics(self) -> dict:
        """Return a copy of the metrics with per-platform success rates filled in."""
        metrics_copy = json.loads(json.dumps(self.metrics))
        for stats in metrics_copy["platform_success_rate"].values():
            if stats["attempts"] > 0:
                stats["success_rate"] = round(stats["successes"] / stats["attempts"], 3)
        return metrics_copy

    def log_metrics_summary(self):
        """Log a summary of current metrics."""
        metrics = self.get_metrics()

        self.info("=== Job Tracker Session Metrics ===")
        self.info(
            f"Jobs added: {metrics['jobs_added']}, "
            f"duplicates skipped: {metrics['duplicates_skipped']}"
        )
        self.info(
            f"Status updates: {metrics['status_updates']}, "
            f"notes added: {metrics['notes_added']}"
        )
        if metrics["write_failures"]:
            self.warning(f"Write failures: {metrics['write_failures']}")

        total_attempts = metrics["scrapes_attempted"]
        if total_attempts:
            total_successes = metrics["scrapes_successful"]
            overall_rate = round(total_successes / total_attempts * 100, 1)
            self.info(f"Scrapes: {total_successes}/{total_attempts} ({overall_rate}% success)")
            for platform, stats in metrics["platform_success_rate"].items():
                rate = stats.get("success_rate", 0) * 100
                self.info(f"  {platform}: {stats['successes']}/{stats['attempts']} ({rate:.1f}%)")

        if metrics["errors_by_type"]:
            self.info("Error Types:")
            for error_type, count in metrics["errors_by_type"].items():
                self.info(f"  {error_type}: {count}")


# Global logger instance
_global_logger: Optional[StructuredLogger] = None


def get_logger(
    name: str = "jobtracker",
    level: str = "INFO",
    **kwargs
) -> StructuredLogger:
    """
    Get or create the global logger instance.

    File output stays off until the CLI turns it on from settings, so
    importing the package never creates a logs/ directory.

    Args:
        name: Logger name
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        **kwargs: Additional arguments passed to StructuredLogger

    Returns:
        StructuredLogger instance
    """
    global _global_logger

    if _global_logger is None:
        kwargs.setdefault("enable_file", False)
        _global_logger = StructuredLogger(name=name, level=level, **kwargs)

    return _global_logger


def reset_logger():
    """Reset the global logger (useful for testing)."""
    global _global_logger
    _global_logger = None
