"""Exception handling utilities for apislice."""

from typing import Any, Dict, Optional

from rich.console import Console
from rich.panel import Panel
from rich.table import Table


class SliceError(Exception):
    """Base exception for apislice errors."""

    status_code = 500

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        suggestion: Optional[str] = None,
        error_code: Optional[str] = None
    ):
        """Initialize apislice error.

        Args:
            message: Error message
            details: Additional error details
            suggestion: Suggestion for fixing the error
            error_code: Error code for categorization
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.suggestion = suggestion
        self.error_code = error_code

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary.

        Returns:
            Error dictionary representation
        """
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
            "suggestion": self.suggestion,
            "error_code": self.error_code,
            "status_code": self.status_code
        }


class ConfigurationError(SliceError):
    """Invalid combination or value of caller-supplied parameters."""

    status_code = 400


class NotFoundError(SliceError):
    """Nothing in the source document matched the request."""

    status_code = 404


class ReferenceResolutionError(SliceError):
    """A reference could not be resolved while computing the reference closure.

    Indicates malformed source data; it is never retried.
    """

    status_code = 500


class DocumentLoadError(SliceError):
    """Source document could not be read or parsed."""

    status_code = 422


class ErrorHandler:
    """Centralized error reporting for the command line."""

    def __init__(self, console: Optional[Console] = None, verbose: bool = False):
        """Initialize error handler.

        Args:
            console: Rich console for output
            verbose: Enable verbose error reporting
        """
        self.console = console or Console(stderr=True)
        self.verbose = verbose
        self.error_counts: Dict[str, int] = {}

    def handle_error(
        self,
        error: Exception,
        context: Optional[Dict[str, Any]] = None,
        show_traceback: Optional[bool] = None
    ) -> None:
        """Handle and display error.

        Args:
            error: Exception to handle
            context: Additional context information
            show_traceback: Whether to show traceback (defaults to verbose setting)
        """
        error_type = type(error).__name__
        self.error_counts[error_type] = self.error_counts.get(error_type, 0) + 1

        if show_traceback is None:
            show_traceback = self.verbose

        error_content = []
        if isinstance(error, SliceError):
            error_content.append(f"[red]{error.message}[/red]")
            if error.details:
                error_content.append("")
                error_content.append("[bold]Details:[/bold]")
                for key, value in error.details.items():
                    error_content.append(f"  {key}: {value}")
        else:
            error_content.append(f"[red]{str(error)}[/red]")

        if context:
            error_content.append("")
            error_content.append("[bold]Context:[/bold]")
            for key, value in context.items():
                error_content.append(f"  {key}: {value}")

        panel_title = error_type
        if isinstance(error, SliceError):
            if error.suggestion:
                error_content.append("")
                error_content.append(f"[yellow]Suggestion: {error.suggestion}[/yellow]")
            if error.error_code:
                panel_title += f" ({error.error_code})"

        self.console.print(Panel(
            "\n".join(error_content),
            title=panel_title,
            border_style="red"
        ))

        if show_traceback:
            self.console.print("\n[dim]Traceback:[/dim]")
            self.console.print_exception(show_locals=False)

    def get_error_summary(self) -> Dict[str, int]:
        """Get summary of handled errors.

        Returns:
            Dictionary mapping error types to counts
        """
        return self.error_counts.copy()

    def show_error_summary(self) -> None:
        """Display error summary table."""
        if not self.error_counts:
            return

        table = Table(title="Error Summary", show_header=True, header_style="bold magenta")
        table.add_column("Error Type", style="cyan")
        table.add_column("Count", justify="right", style="red")

        for error_type, count in sorted(self.error_counts.items()):
            table.add_row(error_type, str(count))

        self.console.print(table)
