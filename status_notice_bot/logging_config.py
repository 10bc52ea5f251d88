"""Structured logging configuration for Status Notice Bot."""

import json
import logging
import sys
from datetime import UTC, datetime
from typing import Any

# Attributes every LogRecord has; anything else on a record came from ``extra``
STANDARD_ATTRIBUTES = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", (), None))
) | {"message", "asctime", "taskName"}

# Frames between the component code and Logger.log: the public method and
# _log_with_context
CALLER_STACKLEVEL = 3


class StructuredFormatter(logging.Formatter):
    """Formats log records as one JSON object per line.

    Keyword context passed through ``ExecutionLogger`` (entry links, dedup
    keys, HTTP status codes, errors) is emitted alongside the fixed fields.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.now(UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        for key, value in vars(record).items():
            if key not in STANDARD_ATTRIBUTES and key not in log_entry:
                log_entry[key] = value

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry, ensure_ascii=False, default=str)


class ExecutionLogger:
    """Logger bound to one execution and one pipeline component."""

    def __init__(self, execution_id: str, component: str = "main"):
        """Initialize execution logger.

        Args:
            execution_id: Unique identifier for this execution
            component: Component name (e.g., 'feed_processor', 'publisher')
        """
        self.execution_id = execution_id
        self.component = component
        self.logger = logging.getLogger(f"status_notice_bot.{component}")
        self.start_time: datetime | None = None
        self.end_time: datetime | None = None

    def _log_with_context(
        self, level: int, message: str, context: dict[str, Any]
    ) -> None:
        extra = {
            "execution_id": self.execution_id,
            "component": self.component,
            **context,
        }
        self.logger.log(level, message, extra=extra, stacklevel=CALLER_STACKLEVEL)

    def info(self, message: str, **kwargs) -> None:
        self._log_with_context(logging.INFO, message, kwargs)

    def warning(self, message: str, **kwargs) -> None:
        self._log_with_context(logging.WARNING, message, kwargs)

    def error(self, message: str, **kwargs) -> None:
        self._log_with_context(logging.ERROR, message, kwargs)

    def debug(self, message: str, **kwargs) -> None:
        self._log_with_context(logging.DEBUG, message, kwargs)

    def log_execution_start(self, **kwargs) -> None:
        """Log execution start with timestamp."""
        self.start_time = datetime.now(UTC)
        self._log_with_context(
            logging.INFO,
            f"Starting {self.component} execution",
            {"execution_start": self.start_time.isoformat(), **kwargs},
        )

    def log_execution_end(self, success: bool = True, **kwargs) -> None:
        """Log execution end with timestamp and duration."""
        self.end_time = datetime.now(UTC)

        duration_seconds = None
        if self.start_time:
            duration_seconds = (self.end_time - self.start_time).total_seconds()

        self._log_with_context(
            logging.INFO,
            f"Completed {self.component} execution",
            {
                "execution_end": self.end_time.isoformat(),
                "execution_duration_seconds": duration_seconds,
                "execution_success": success,
                **kwargs,
            },
        )

    def log_entry_decision(self, entry_title: str, action: str, **kwargs) -> None:
        """Log what the filter pipeline decided for one feed entry."""
        self._log_with_context(
            logging.DEBUG,
            f"Entry {action}: {entry_title}",
            {"entry_title": entry_title, "action": action, **kwargs},
        )

    def log_metrics(self, metrics: dict[str, Any]) -> None:
        """Log execution metrics."""
        self._log_with_context(logging.INFO, "Execution metrics", {"metrics": metrics})


def setup_structured_logging(log_level: str = "INFO") -> None:
    """Setup structured logging for the application.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
    """
    level = getattr(logging, log_level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(StructuredFormatter())
    root_logger.addHandler(console_handler)

    package_logger = logging.getLogger("status_notice_bot")
    package_logger.setLevel(level)
    package_logger.propagate = True


def create_execution_logger(
    component: str, execution_id: str | None = None
) -> ExecutionLogger:
    """Create an execution logger for a component.

    Args:
        component: Component name
        execution_id: Optional execution ID (will generate one if not provided)

    Returns:
        ExecutionLogger instance
    """
    if not execution_id:
        execution_id = f"exec_{datetime.now(UTC).strftime('%Y%m%d_%H%M%S_%f')}"

    return ExecutionLogger(execution_id, component)
