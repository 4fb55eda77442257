"""Structured logging utilities for the xlsx schema compiler.

This module provides:
- Parse ID tracking using contextvars for correlation across worksheets
- Structured logging with consistent format and metadata
- Performance metrics logging helpers
- Progress tracking for multi-sheet workbooks

Usage:
    from xlsx_schema_compiler.utils.logging import (
        get_logger,
        set_parse_id,
        LogContext,
    )

    logger = get_logger(__name__)

    # Set parse ID for correlation
    set_parse_id("abc-123")

    # Log with context
    with LogContext(worksheet="Sensor"):
        logger.info("Reading fields")

    # Time an operation
    with timed_operation(logger, "parse") as metrics:
        metrics.sheets_processed += 1
"""

import logging
import time
from collections.abc import Generator
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

# Context variables for parse tracking
_parse_id_var: ContextVar[str | None] = ContextVar("parse_id", default=None)
_extra_context_var: ContextVar[dict[str, Any] | None] = ContextVar(
    "extra_context", default=None
)


def get_parse_id() -> str | None:
    """Get the current parse ID from context.

    Returns:
        The current parse ID or None if not set.
    """
    return _parse_id_var.get()


def set_parse_id(parse_id: str | None) -> None:
    """Set the parse ID in context.

    Args:
        parse_id: The parse ID to set, or None to clear.
    """
    _parse_id_var.set(parse_id)


def get_extra_context() -> dict[str, Any]:
    """Get additional context from context vars.

    Returns:
        Dictionary of extra context values.
    """
    ctx = _extra_context_var.get()
    return ctx if ctx is not None else {}


def set_extra_context(context: dict[str, Any]) -> None:
    """Set additional context in context vars.

    Args:
        context: Dictionary of extra context values.
    """
    _extra_context_var.set(context)


def clear_context() -> None:
    """Clear all context variables."""
    _parse_id_var.set(None)
    _extra_context_var.set(None)


@dataclass
class PerformanceMetrics:
    """Container for performance metrics of a workbook parse.

    Attributes:
        operation: Name of the operation being measured.
        start_time: When the operation started.
        end_time: When the operation ended.
        duration_seconds: Duration in seconds.
        sheets_processed: Number of worksheets parsed.
        schemas_built: Number of policy schemas produced.
        tools_found: Number of tool stubs produced.
        errors_recorded: Number of errors collected.
        custom_metrics: Additional custom metrics.
    """

    operation: str
    start_time: datetime = field(default_factory=lambda: datetime.now(UTC))
    end_time: datetime | None = None
    duration_seconds: float = 0.0
    sheets_processed: int = 0
    schemas_built: int = 0
    tools_found: int = 0
    errors_recorded: int = 0
    custom_metrics: dict[str, Any] = field(default_factory=dict)

    def finish(self) -> None:
        """Mark the operation as complete and calculate duration."""
        self.end_time = datetime.now(UTC)
        self.duration_seconds = (self.end_time - self.start_time).total_seconds()

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging.

        Returns:
            Dictionary with all non-zero metrics.
        """
        result: dict[str, Any] = {
            "operation": self.operation,
            "duration_seconds": self.duration_seconds,
        }
        if self.sheets_processed > 0:
            result["sheets_processed"] = self.sheets_processed
        if self.schemas_built > 0:
            result["schemas_built"] = self.schemas_built
        if self.tools_found > 0:
            result["tools_found"] = self.tools_found
        if self.errors_recorded > 0:
            result["errors_recorded"] = self.errors_recorded
        if self.custom_metrics:
            result["custom_metrics"] = self.custom_metrics
        return result


class StructuredLogFormatter(logging.Formatter):
    """Log formatter that prefixes messages with context variables."""

    def format(self, record: logging.LogRecord) -> str:
        """Format the log record with context information.

        Args:
            record: The log record to format.

        Returns:
            Formatted log message string.
        """
        prefix_parts = []
        parse_id = get_parse_id()
        if parse_id:
            prefix_parts.append(f"parse_id={parse_id}")

        for key, value in get_extra_context().items():
            prefix_parts.append(f"{key}={value}")

        prefix = f"[{' '.join(prefix_parts)}] " if prefix_parts else ""

        original_msg = record.msg
        record.msg = f"{prefix}{original_msg}"
        result = super().format(record)
        record.msg = original_msg

        return result


class StructuredLogger:
    """Thin wrapper over a standard logger that appends ``key=value`` data."""

    def __init__(self, name: str) -> None:
        """Initialize the structured logger.

        Args:
            name: Logger name (typically __name__ of the module).
        """
        self._logger = logging.getLogger(name)
        self._name = name

    @property
    def logger(self) -> logging.Logger:
        """Access the underlying Python logger."""
        return self._logger

    def _build_message(
        self,
        message: str,
        **kwargs: Any,
    ) -> str:
        """Build a message with structured key-value pairs.

        Args:
            message: Base message.
            **kwargs: Additional key-value pairs to include.

        Returns:
            Formatted message string.
        """
        if not kwargs:
            return message

        parts = [f"{k}={v}" for k, v in kwargs.items()]
        return f"{message} | {', '.join(parts)}"

    def debug(self, message: str, **kwargs: Any) -> None:
        self._logger.debug(self._build_message(message, **kwargs))

    def info(self, message: str, **kwargs: Any) -> None:
        self._logger.info(self._build_message(message, **kwargs))

    def warning(self, message: str, **kwargs: Any) -> None:
        self._logger.warning(self._build_message(message, **kwargs))

    def error(self, message: str, exc_info: bool = False, **kwargs: Any) -> None:
        self._logger.error(self._build_message(message, **kwargs), exc_info=exc_info)

    def exception(self, message: str, **kwargs: Any) -> None:
        """Log an exception with traceback.

        Args:
            message: Log message.
            **kwargs: Additional structured data.
        """
        self._logger.exception(self._build_message(message, **kwargs))

    def log_performance(self, metrics: PerformanceMetrics) -> None:
        """Log performance metrics.

        Args:
            metrics: Performance metrics to log.
        """
        self.info(
            f"Performance: {metrics.operation}",
            **metrics.to_dict(),
        )

    def log_progress(
        self,
        stage: str,
        current: int,
        total: int,
        details: str | None = None,
    ) -> None:
        """Log progress for multi-step operations.

        Args:
            stage: Current processing stage.
            current: Current progress count.
            total: Total items to process.
            details: Optional additional details.
        """
        percentage = (current / total * 100) if total > 0 else 0
        kwargs: dict[str, Any] = {
            "current": current,
            "total": total,
            "percentage": f"{percentage:.1f}%",
        }
        if details:
            kwargs["details"] = details
        self.info(f"Progress: {stage}", **kwargs)

    def log_parse_result(
        self,
        schemas: int,
        tools: int,
        errors: int,
        duration_seconds: float,
    ) -> None:
        """Log the outcome of a workbook parse.

        A parse with recorded errors is logged at WARNING level; the parse
        itself still counts as completed.

        Args:
            schemas: Number of schemas produced.
            tools: Number of tool stubs produced.
            errors: Number of errors recorded.
            duration_seconds: Total processing time.
        """
        kwargs: dict[str, Any] = {
            "schemas": schemas,
            "tools": tools,
            "errors": errors,
            "duration_seconds": f"{duration_seconds:.3f}",
        }
        level = logging.WARNING if errors else logging.INFO
        self._logger.log(level, self._build_message("Parse completed", **kwargs))


class LogContext:
    """Context manager for adding temporary context to logs.

    Usage:
        with LogContext(worksheet="Sensor", row=12):
            logger.info("Reading field")  # Includes worksheet and row
    """

    def __init__(self, **kwargs: Any) -> None:
        """Initialize with context values.

        Args:
            **kwargs: Key-value pairs to add to log context.
        """
        self._new_context = kwargs
        self._old_context: dict[str, Any] = {}
        self._old_parse_id: str | None = None

    def __enter__(self) -> "LogContext":
        """Enter the context, saving old values and setting new ones."""
        self._old_context = get_extra_context().copy()
        self._old_parse_id = get_parse_id()

        new_context = dict(self._new_context)
        parse_id = new_context.pop("parse_id", None)
        if parse_id is not None:
            set_parse_id(parse_id)

        merged = self._old_context.copy()
        merged.update(new_context)
        set_extra_context(merged)

        return self

    def __exit__(self, *args: Any) -> None:
        """Exit the context, restoring old values."""
        set_extra_context(self._old_context)
        set_parse_id(self._old_parse_id)


@contextmanager
def timed_operation(
    logger: StructuredLogger,
    operation: str,
) -> Generator[PerformanceMetrics, None, None]:
    """Context manager for timing operations.

    Usage:
        with timed_operation(logger, "parse") as metrics:
            metrics.sheets_processed = 3

        # Automatically logs: "Performance: parse | duration_seconds=..."

    Args:
        logger: Logger to use for output.
        operation: Name of the operation.

    Yields:
        PerformanceMetrics instance for tracking.
    """
    metrics = PerformanceMetrics(operation=operation)
    try:
        yield metrics
    finally:
        metrics.finish()
        logger.log_performance(metrics)


def configure_logging(
    level: int | str = logging.INFO,
    format_string: str | None = None,
    use_structured_formatter: bool = True,
) -> None:
    """Configure root logging for command-line use.

    Args:
        level: Log level (int or string like "INFO").
        format_string: Custom format string (uses default if None).
        use_structured_formatter: Whether to use the structured formatter.
    """
    if isinstance(level, str):
        level = getattr(logging, level.upper())

    if format_string is None:
        format_string = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler()
    handler.setLevel(level)

    formatter: logging.Formatter
    if use_structured_formatter:
        formatter = StructuredLogFormatter(format_string)
    else:
        formatter = logging.Formatter(format_string)

    handler.setFormatter(formatter)
    root_logger.addHandler(handler)


def get_logger(name: str) -> StructuredLogger:
    """Get a structured logger for a module.

    Args:
        name: Logger name (typically __name__).

    Returns:
        StructuredLogger instance.

    Example:
        logger = get_logger(__name__)
        logger.info("Parsed worksheet", worksheet="Sensor", fields=10)
    """
    return StructuredLogger(name)


class ProgressTracker:
    """Helper for tracking and logging progress over a workbook's sheets.

    Usage:
        tracker = ProgressTracker(logger, "Parsing worksheets", total=4)
        for worksheet in worksheets:
            parse(worksheet)
            tracker.update(details=worksheet.name)
        tracker.complete()
    """

    def __init__(
        self,
        logger: StructuredLogger,
        stage: str,
        total: int,
        log_interval: int = 1,
    ) -> None:
        """Initialize the progress tracker.

        Args:
            logger: Logger to use.
            stage: Description of the stage being tracked.
            total: Total number of items.
            log_interval: Log every N updates (1 = every update).
        """
        self._logger = logger
        self._stage = stage
        self._total = total
        self._current = 0
        self._log_interval = log_interval
        self._start_time = time.time()

    @property
    def current(self) -> int:
        return self._current

    def update(
        self,
        increment: int = 1,
        details: str | None = None,
    ) -> None:
        """Update progress.

        Args:
            increment: Number of items completed.
            details: Optional details about current item.
        """
        self._current += increment
        if self._current % self._log_interval == 0 or self._current == self._total:
            self._logger.log_progress(
                self._stage,
                self._current,
                self._total,
                details,
            )

    def complete(self) -> float:
        """Mark progress as complete.

        Returns:
            Total duration in seconds.
        """
        duration = time.time() - self._start_time
        self._logger.info(
            f"Completed: {self._stage}",
            total_items=self._total,
            duration_seconds=f"{duration:.2f}",
        )
        return duration
