"""Tests for error handling utilities."""

import io

from rich.console import Console

from apislice.utils.exceptions import (
    ConfigurationError, DocumentLoadError, ErrorHandler, NotFoundError, ReferenceResolutionError, SliceError
)


def _console():
    return Console(file=io.StringIO(), width=120, force_terminal=False)


class TestSliceError:
    """Test apislice error classes."""

    def test_basic_error(self):
        """Test basic error creation."""
        error = SliceError("Test error")

        assert str(error) == "Test error"
        assert error.message == "Test error"
        assert error.details == {}
        assert error.suggestion is None
        assert error.error_code is None

    def test_error_with_details(self):
        """Test error with additional details."""
        error = SliceError(
            "Test error",
            details={"key": "value", "count": 42},
            suggestion="Try fixing this",
            error_code="AS001"
        )

        assert error.details["count"] == 42
        assert error.suggestion == "Try fixing this"
        assert error.error_code == "AS001"

    def test_error_to_dict(self):
        """Test error serialization to dictionary."""
        error = NotFoundError("The url supplied could not be found.", details={"url": "/nope"})

        error_dict = error.to_dict()

        assert error_dict["error_type"] == "NotFoundError"
        assert error_dict["message"] == "The url supplied could not be found."
        assert error_dict["details"]["url"] == "/nope"
        assert error_dict["status_code"] == 404

    def test_status_codes(self):
        """Test each error kind maps to a status code."""
        assert ConfigurationError("x").status_code == 400
        assert NotFoundError("x").status_code == 404
        assert DocumentLoadError("x").status_code == 422
        assert ReferenceResolutionError("x").status_code == 500

    def test_hierarchy(self):
        """Test every error derives from SliceError."""
        for error_class in (ConfigurationError, NotFoundError, DocumentLoadError, ReferenceResolutionError):
            assert issubclass(error_class, SliceError)


class TestErrorHandler:
    """Test error handler functionality."""

    def test_handle_slice_error(self):
        """Test message, details and suggestion are printed."""
        console = _console()
        handler = ErrorHandler(console=console)

        handler.handle_error(ConfigurationError(
            "Cannot filter by operationIds and tags at the same time.",
            details={"tags": "users.*"},
            suggestion="Pass one filter",
            error_code="CONFLICTING_FILTERS"
        ))

        output = console.file.getvalue()
        assert "Cannot filter by operationIds and tags" in output
        assert "tags: users.*" in output
        assert "Suggestion: Pass one filter" in output
        assert "CONFLICTING_FILTERS" in output

    def test_handle_generic_error(self):
        """Test plain exceptions are printed too."""
        console = _console()
        handler = ErrorHandler(console=console)

        handler.handle_error(ValueError("bad value"), context={"source": "graph.yaml"})

        output = console.file.getvalue()
        assert "bad value" in output
        assert "source: graph.yaml" in output

    def test_error_summary(self):
        """Test handled errors are counted by type."""
        console = _console()
        handler = ErrorHandler(console=console)

        handler.handle_error(NotFoundError("a"))
        handler.handle_error(NotFoundError("b"))
        handler.handle_error(ConfigurationError("c"))
        handler.show_error_summary()

        assert handler.get_error_summary() == {"NotFoundError": 2, "ConfigurationError": 1}
        assert "Error Summary" in console.file.getvalue()

    def test_empty_summary(self):
        """Test nothing is printed without errors."""
        console = _console()

        ErrorHandler(console=console).show_error_summary()

        assert console.file.getvalue() == ""
