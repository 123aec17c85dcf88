"""
Custom exception classes and error handling utilities.
"""

from typing import Optional, Dict, Any
import traceback


class NGramRankerError(Exception):
    """Base exception for all site n-gram ranker errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class FetchError(NGramRankerError):
    """Exception raised when a single page cannot be fetched or parsed.

    Covers timeouts, connection failures, non-success responses, malformed
    URLs and unsupported content. A FetchError only ever fails its own page.
    """
    pass


class EngineError(NGramRankerError):
    """Exception raised when a whole crawl run cannot complete."""
    pass


class ConfigurationError(NGramRankerError):
    """Exception raised for configuration-related issues."""
    pass


class ValidationError(NGramRankerError):
    """Exception raised for invalid parameters or budgets."""
    pass


def handle_error(
    error: Exception,
    logger,
    context: Optional[Dict[str, Any]] = None,
    reraise: bool = True
) -> None:
    """
    Handle and log errors with context information.

    Args:
        error: The exception that occurred
        logger: Logger instance to use for logging
        context: Additional context information
        reraise: Whether to reraise the exception after logging
    """
    error_context = {
        "error_type": type(error).__name__,
        "error_message": str(error),
        **(context or {})
    }

    if isinstance(error, NGramRankerError):
        error_context.update(error.details)

    logger.error(
        f"Error occurred: {error_context['error_type']}: {error_context['error_message']}",
        extra={"error_context": error_context}
    )
    logger.debug(traceback.format_exc())

    if reraise:
        raise error
