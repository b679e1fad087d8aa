"""Structured logging utilities for apislice."""

import logging
import sys
import time
from datetime import datetime
from typing import Any, Dict, Optional

import structlog
from rich.console import Console


def _stderr_logger_factory(*args: Any) -> structlog.PrintLogger:
    """Bind to whatever sys.stderr is when the logger is created."""
    return structlog.PrintLogger(file=sys.stderr)


def configure_logging(
    log_level: str = "INFO",
    structured: bool = True
) -> None:
    """Configure structured logging for apislice.

    Log records are written to stderr so that documents printed to stdout
    stay machine readable.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        structured: Use structured (JSON) logging format
    """
    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="ISO"),
    ]

    if structured:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=False))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, log_level.upper(), logging.INFO)
        ),
        logger_factory=_stderr_logger_factory,
        cache_logger_on_first_use=False,
    )


def get_logger(name: str = "apislice") -> structlog.BoundLogger:
    """Get a structured logger instance.

    Args:
        name: Logger name

    Returns:
        Configured logger instance
    """
    return structlog.get_logger(name)


class SliceLogger:
    """Logger that mirrors important messages to a rich console."""

    def __init__(
        self,
        name: str = "apislice",
        console: Optional[Console] = None,
        verbose: bool = False,
        quiet: bool = False
    ):
        """Initialize apislice logger.

        Args:
            name: Logger name
            console: Rich console for output
            verbose: Echo debug messages to the console
            quiet: Suppress progress and success messages on the console
        """
        self.name = name
        self.logger = get_logger(name)
        self.console = console or Console(stderr=True)
        self.verbose = verbose
        self.quiet = quiet
        self._context: Dict[str, Any] = {}

    def bind(self, **kwargs) -> "SliceLogger":
        """Bind context variables to logger.

        Args:
            **kwargs: Context variables to bind

        Returns:
            New logger instance with bound context
        """
        new_logger = SliceLogger(
            name=self.name,
            console=self.console,
            verbose=self.verbose,
            quiet=self.quiet
        )
        new_logger.logger = self.logger.bind(**kwargs)
        new_logger._context = {**self._context, **kwargs}
        return new_logger

    def debug(self, message: str, **kwargs) -> None:
        """Log debug message."""
        if self.verbose:
            self.console.print(f"[dim]DEBUG: {message}[/dim]")
        self.logger.debug(message, **kwargs)

    def info(self, message: str, **kwargs) -> None:
        """Log info message."""
        self.logger.info(message, **kwargs)

    def warning(self, message: str, **kwargs) -> None:
        """Log warning message."""
        self.console.print(f"[yellow]WARNING: {message}[/yellow]")
        self.logger.warning(message, **kwargs)

    def error(self, message: str, **kwargs) -> None:
        """Log error message."""
        self.console.print(f"[red]ERROR: {message}[/red]")
        self.logger.error(message, **kwargs)

    def success(self, message: str, **kwargs) -> None:
        if not self.quiet:
            self.console.print(f"[green]✓ {message}[/green]")
        self.logger.info(f"SUCCESS: {message}", **kwargs)

    def progress(self, message: str, **kwargs) -> None:
        if not self.quiet:
            self.console.print(f"[blue]→ {message}[/blue]")
        self.logger.info(f"PROGRESS: {message}", **kwargs)

    def log_operation_start(self, operation: str, **context) -> "SliceLogger":
        """Log operation start with context.

        Args:
            operation: Operation name
            **context: Additional context

        Returns:
            Logger bound with operation context
        """
        operation_logger = self.bind(
            operation=operation,
            operation_start=datetime.now().isoformat(),
            **context
        )
        operation_logger.info(f"Starting {operation}")
        return operation_logger

    def log_operation_end(
        self,
        operation: str,
        success: bool = True,
        duration: Optional[float] = None,
        **context
    ) -> None:
        """Log operation completion.

        Args:
            operation: Operation name
            success: Whether operation succeeded
            duration: Operation duration in seconds
            **context: Additional context
        """
        status = "completed" if success else "failed"
        message = f"Operation {operation} {status}"

        log_context = {
            "success": success,
            "operation_end": datetime.now().isoformat(),
            **context
        }

        if duration is not None:
            log_context["duration_seconds"] = duration
            message += f" in {duration:.2f}s"

        if success:
            self.success(message, **log_context)
        else:
            self.error(message, **log_context)


class LoggingContext:
    """Context manager for logging timed operations."""

    def __init__(
        self,
        logger: SliceLogger,
        operation: str,
        **context
    ):
        """Initialize logging context.

        Args:
            logger: Logger instance
            operation: Operation name
            **context: Additional context
        """
        self.logger = logger
        self.operation = operation
        self.context = context
        self.start_time: Optional[float] = None
        self.operation_logger: Optional[SliceLogger] = None

    def __enter__(self) -> SliceLogger:
        """Enter context and start logging."""
        self.start_time = time.time()
        self.operation_logger = self.logger.log_operation_start(
            self.operation, **self.context
        )
        return self.operation_logger

    def __exit__(self, exc_type, exc_value, traceback):
        """Exit context and log completion."""
        duration = time.time() - self.start_time if self.start_time is not None else None

        if self.operation_logger:
            self.operation_logger.log_operation_end(
                self.operation,
                success=exc_type is None,
                duration=duration
            )

        # Don't suppress exceptions
        return False
