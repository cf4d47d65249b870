"""Error types for transcript-reconcile.

Provides a small exception hierarchy with:
- Error categories for handling decisions
- Context dictionaries carried alongside the message
- Display formatting for the CLI
"""

from __future__ import annotations

from enum import Enum


class ErrorCategory(str, Enum):
    """Categories of errors for handling decisions."""

    VALIDATION = "validation"  # Bad caller input or payload shape
    STORAGE = "storage"  # Unreadable or unwritable persisted data
    CONFIGURATION = "configuration"  # Bad config file or settings
    INTERNAL = "internal"  # Bug in code


class ReconcileError(Exception):
    """Base exception for transcript-reconcile errors.

    Attributes:
        message: Human-readable error message
        category: Error category for handling
        context: Additional context information
    """

    category: ErrorCategory = ErrorCategory.INTERNAL

    def __init__(self, message: str, context: dict | None = None):
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def __str__(self) -> str:
        if self.context:
            return f"{self.message} (context: {self.context})"
        return self.message


class ValidationError(ReconcileError):
    """Input validation error.

    Examples: imported dictionary that is not a list, entry without a
    correct value.
    """

    category = ErrorCategory.VALIDATION


class StorageError(ReconcileError):
    """Persisted data could not be read, parsed or written."""

    category = ErrorCategory.STORAGE


class NotFoundError(StorageError):
    """Raised when a requested file does not exist."""


class ConfigurationError(ReconcileError):
    """Configuration error.

    Examples: malformed config file, unknown log level.
    """

    category = ErrorCategory.CONFIGURATION


def format_error_for_display(error: Exception) -> str:
    """Format an error message for user display.

    Args:
        error: Error to format

    Returns:
        Human-readable error message
    """
    if isinstance(error, ReconcileError):
        category = error.category.value
        base_message = error.message

        if error.context:
            context_str = ", ".join(f"{k}={v}" for k, v in error.context.items())
            return f"[{category}] {base_message} ({context_str})"

        return f"[{category}] {base_message}"

    return f"[error] {type(error).__name__}: {error}"
