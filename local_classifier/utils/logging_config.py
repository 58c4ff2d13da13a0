"""
Logging Configuration
=====================

Structured logging for the classifier: colored console output, JSON lines
for log files, and per-thread correlation IDs so concurrent classification
calls can be told apart in a shared log.
"""

import json
import logging
import logging.handlers
import sys
import threading
import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

ROOT_LOGGER_NAME = "local_classifier"

# Thread-local storage for correlation IDs
_thread_local = threading.local()

# Record attributes copied into JSON output when present
_EXTRA_FIELDS = ("file_path", "category", "confidence", "stage", "operation", "duration_ms")


def get_correlation_id() -> str:
    """Get the current correlation ID for the thread."""
    if not hasattr(_thread_local, 'correlation_id'):
        _thread_local.correlation_id = str(uuid.uuid4())[:8]
    return _thread_local.correlation_id


def set_correlation_id(correlation_id: str) -> None:
    """Set a correlation ID for the current thread."""
    _thread_local.correlation_id = correlation_id


class JSONFormatter(logging.Formatter):
    """Formats log records as JSON for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "correlation_id": get_correlation_id(),
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        for name in _EXTRA_FIELDS:
            if hasattr(record, name):
                log_data[name] = getattr(record, name)

        return json.dumps(log_data, default=str)


class ConsoleFormatter(logging.Formatter):
    """Human-readable colored console formatter."""

    COLORS = {
        'DEBUG': '\033[36m',     # Cyan
        'INFO': '\033[32m',      # Green
        'WARNING': '\033[33m',   # Yellow
        'ERROR': '\033[31m',     # Red
        'CRITICAL': '\033[35m',  # Magenta
    }
    RESET = '\033[0m'

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname, '')
        timestamp = datetime.now().strftime('%H:%M:%S')

        msg = f"{color}[{timestamp}] {record.levelname:8}{self.RESET} "
        msg += f"[{get_correlation_id()}] "
        msg += f"{record.name}: {record.getMessage()}"

        if hasattr(record, 'duration_ms'):
            msg += f" ({record.duration_ms} ms)"

        if record.exc_info:
            msg += "\n" + self.formatException(record.exc_info)

        return msg


@dataclass
class LoggingConfig:
    """Configuration for the logging system."""
    level: str = "INFO"
    log_dir: Path = field(default_factory=lambda: Path.home() / ".local_classifier" / "logs")
    console_output: bool = True
    file_output: bool = False
    json_format: bool = False  # Use JSON for console
    max_file_size: int = 5 * 1024 * 1024  # 5MB
    backup_count: int = 3


def setup_logging(config: Optional[LoggingConfig] = None) -> logging.Logger:
    """Set up the logging system.

    Args:
        config: Logging configuration. Uses defaults if not provided.

    Returns:
        The package root logger.
    """
    if config is None:
        config = LoggingConfig()

    root_logger = logging.getLogger(ROOT_LOGGER_NAME)
    root_logger.setLevel(getattr(logging, config.level.upper(), logging.INFO))
    root_logger.handlers.clear()

    if config.console_output:
        console_handler = logging.StreamHandler(sys.stdout)
        if config.json_format:
            console_handler.setFormatter(JSONFormatter())
        else:
            console_handler.setFormatter(ConsoleFormatter())
        root_logger.addHandler(console_handler)

    if config.file_output:
        config.log_dir.mkdir(parents=True, exist_ok=True)
        log_file = config.log_dir / "local_classifier.log"

        file_handler = logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=config.max_file_size,
            backupCount=config.backup_count,
            encoding='utf-8'
        )
        file_handler.setFormatter(JSONFormatter())
        root_logger.addHandler(file_handler)

    root_logger.propagate = False
    return root_logger


def get_logger(name: str) -> logging.Logger:
    """Get a logger for a specific module.

    Args:
        name: Name of the module (typically __name__).

    Returns:
        Logger instance under the package root logger.
    """
    if name == ROOT_LOGGER_NAME or name.startswith(ROOT_LOGGER_NAME + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")


class Timer:
    """Context manager that times an operation and logs it at debug level."""

    def __init__(self, logger: logging.Logger, operation: str):
        """Initialize timer.

        Args:
            logger: Logger to log the duration to.
            operation: Name of the operation being timed.
        """
        self.logger = logger
        self.operation = operation
        self.start_time = None
        self.duration_ms = None

    def __enter__(self):
        self.start_time = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.duration_ms = round((time.perf_counter() - self.start_time) * 1000, 2)
        if exc_type is None:
            self.logger.debug(
                "Operation completed: %s",
                self.operation,
                extra={"operation": self.operation, "duration_ms": self.duration_ms},
            )
        return False
