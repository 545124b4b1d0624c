"""
Standardized logging configuration for TLS Host Checker.
"""

import logging
import logging.handlers
import sys
from pathlib import Path
from typing import Optional

from tls_host_checker.config import Config


class CustomFormatter(logging.Formatter):
    """Custom formatter with colored output for console."""

    # Color codes
    COLORS = {
        "DEBUG": "\033[36m",  # Cyan
        "INFO": "\033[32m",  # Green
        "WARNING": "\033[33m",  # Yellow
        "ERROR": "\033[31m",  # Red
        "CRITICAL": "\033[35m",  # Magenta
        "RESET": "\033[0m",  # Reset
    }

    def __init__(self, use_color: bool = True) -> None:
        self.use_color = use_color
        super().__init__()

    def format(self, record: logging.LogRecord) -> str:
        """Format log record, tagging it with the host it concerns."""
        level_name = f"{record.levelname:<8}"
        if self.use_color and record.levelname in self.COLORS:
            level_name = f"{self.COLORS[record.levelname]}{level_name}{self.COLORS['RESET']}"

        timestamp = self.formatTime(record, "%Y-%m-%d %H:%M:%S")
        message = record.getMessage()

        hostname = getattr(record, "hostname", None)
        if hostname:
            message = f"[{hostname}] {message}"

        if record.exc_info:
            message = f"{message.rstrip()}\n{self.formatException(record.exc_info)}"

        # Logger names share the tls_host_checker. prefix
        name = record.name.rpartition(".")[2]
        return f"{timestamp} | {level_name} | {name:<10} | {message}"


class StructuredFormatter(logging.Formatter):
    """JSON formatter for structured logging."""

    EXTRA_FIELDS = (
        "hostname",
        "host_count",
        "attempt",
        "max_attempts",
        "error_type",
        "duration",
        "status",
    )

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        import json
        from datetime import datetime

        log_data = {
            "timestamp": datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        for field in self.EXTRA_FIELDS:
            if hasattr(record, field):
                log_data[field] = getattr(record, field)

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, ensure_ascii=False)


def setup_logging(config: Config) -> None:
    """
    Setup logging configuration.

    Console output goes to stderr; stdout is reserved for check results.

    Args:
        config: Configuration object
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, config.log_level))
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(getattr(logging, config.log_level))

    use_color = hasattr(sys.stderr, "isatty") and sys.stderr.isatty()
    console_handler.setFormatter(CustomFormatter(use_color=use_color))
    root_logger.addHandler(console_handler)

    if config.log_file:
        log_path = Path(config.log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        # Rotating file handler (10MB max, 5 backups)
        file_handler = logging.handlers.RotatingFileHandler(
            config.log_file, maxBytes=10 * 1024 * 1024, backupCount=5, encoding="utf-8"
        )
        file_handler.setLevel(getattr(logging, config.log_level))
        file_handler.setFormatter(StructuredFormatter())
        root_logger.addHandler(file_handler)

    # dnspython and asyncio are chatty at DEBUG
    logging.getLogger("asyncio").setLevel(logging.WARNING)
    logging.getLogger("dns").setLevel(logging.WARNING)

    app_logger = logging.getLogger("tls_host_checker")
    app_logger.debug(f"Logging initialized - Level: {config.log_level}")

    if config.log_file:
        app_logger.info(f"Log file: {config.log_file}")


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance.

    Args:
        name: Logger name

    Returns:
        Logger instance
    """
    return logging.getLogger(f"tls_host_checker.{name}")


# Logging helpers for probe operations
def log_batch_start(logger: logging.Logger, host_count: int, concurrency: int) -> None:
    """Log the start of a batch run."""
    logger.info(
        f"Checking {host_count} host(s) - Concurrency: {concurrency}",
        extra={"host_count": host_count},
    )


def log_attempt_failed(
    logger: logging.Logger, hostname: str, attempt: int, max_attempts: int, error: Exception
) -> None:
    """Log a failed probe attempt."""
    level = logging.WARNING if attempt >= max_attempts else logging.DEBUG
    logger.log(
        level,
        f"Attempt {attempt}/{max_attempts} failed: {error}",
        extra={
            "hostname": hostname,
            "attempt": attempt,
            "max_attempts": max_attempts,
            "error_type": type(error).__name__,
        },
    )


def log_probe_complete(
    logger: logging.Logger, hostname: str, status: str, duration: float
) -> None:
    """Log the final outcome for a host."""
    logger.debug(
        f"Probe finished: {status} ({duration:.3f}s)",
        extra={"hostname": hostname, "status": status, "duration": duration},
    )


def log_batch_complete(
    logger: logging.Logger,
    duration: float,
    successful: int,
    failed: int,
    max_in_flight: Optional[int] = None,
) -> None:
    """Log batch completion."""
    message = (
        f"Check completed - Duration: {duration:.2f}s, "
        f"Successful: {successful}, Failed: {failed}"
    )
    if max_in_flight is not None:
        message += f", Peak concurrency: {max_in_flight}"
    logger.info(message, extra={"duration": duration})
