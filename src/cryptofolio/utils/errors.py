"""Error types and classification for cryptofolio."""

import functools
import logging
from enum import Enum
from typing import Any, Callable, Optional, TypeVar

import httpx
import openai

from cryptofolio.ui.console import console, print_error

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ErrorCategory(Enum):
    """Categories of errors for user-friendly messages."""

    CONFIG = "configuration"
    AUTH = "authentication"
    NETWORK = "network"
    PROVIDER = "provider"
    UNKNOWN = "unknown"


class CryptofolioError(Exception):
    """Base exception for cryptofolio errors."""

    def __init__(
        self,
        message: str,
        category: ErrorCategory = ErrorCategory.UNKNOWN,
        suggestion: Optional[str] = None,
        original: Optional[Exception] = None,
    ):
        self.message = message
        self.category = category
        self.suggestion = suggestion
        self.original = original
        super().__init__(message)

    def display(self) -> None:
        """Display the error to the user."""
        print_error(self.message)
        if self.suggestion:
            console.print(f"[muted]Suggestion: {self.suggestion}[/muted]")


class ConfigurationError(CryptofolioError):
    """Missing or invalid configuration, e.g. no API key for a provider."""

    def __init__(
        self, message: str, suggestion: Optional[str] = None, original: Optional[Exception] = None
    ):
        super().__init__(
            message,
            category=ErrorCategory.CONFIG,
            suggestion=suggestion or "Run 'cryptofolio setup' or edit ~/.cryptofolio/config.yml",
            original=original,
        )


class NetworkError(CryptofolioError):
    """Network-related errors."""

    def __init__(
        self, message: str, suggestion: Optional[str] = None, original: Optional[Exception] = None
    ):
        super().__init__(
            message,
            category=ErrorCategory.NETWORK,
            suggestion=suggestion or "Check your internet connection and try again",
            original=original,
        )


class AuthenticationError(CryptofolioError):
    """Authentication-related errors."""

    def __init__(
        self, message: str, suggestion: Optional[str] = None, original: Optional[Exception] = None
    ):
        super().__init__(
            message,
            category=ErrorCategory.AUTH,
            suggestion=suggestion or "Run 'cryptofolio setup' to configure API keys",
            original=original,
        )


class ProviderError(CryptofolioError):
    """A model provider returned something unusable."""

    def __init__(
        self, message: str, suggestion: Optional[str] = None, original: Optional[Exception] = None
    ):
        super().__init__(
            message,
            category=ErrorCategory.PROVIDER,
            suggestion=suggestion,
            original=original,
        )


def classify_error(error: Exception) -> CryptofolioError:
    """Classify an exception into a CryptofolioError category.

    Args:
        error: The original exception

    Returns:
        A CryptofolioError with appropriate category and suggestion
    """
    if isinstance(error, CryptofolioError):
        return error

    # openai wraps its transport errors, check its types first
    if isinstance(error, openai.APITimeoutError):
        return NetworkError("Request timed out", original=error)

    if isinstance(error, openai.APIConnectionError):
        return NetworkError("Unable to reach the model API", original=error)

    if isinstance(error, openai.APIStatusError):
        return _classify_status(error.status_code, error)

    if isinstance(error, httpx.TimeoutException):
        return NetworkError(
            "Request timed out",
            suggestion="The server may be slow. Try again.",
            original=error,
        )

    if isinstance(error, (httpx.ConnectError, ConnectionError)):
        return NetworkError(
            "Unable to connect",
            suggestion="Is the service running?",
            original=error,
        )

    if isinstance(error, httpx.HTTPStatusError):
        return _classify_status(error.response.status_code, error)

    if isinstance(error, ValueError):
        return ProviderError(f"Malformed response: {error}", original=error)

    return CryptofolioError(
        str(error),
        category=ErrorCategory.UNKNOWN,
        original=error,
    )


def _classify_status(status: int, error: Exception) -> CryptofolioError:
    if status in (401, 403):
        return AuthenticationError("API authentication failed", original=error)
    if status == 429:
        return NetworkError(
            "Rate limit exceeded",
            suggestion="Wait a moment and try again",
            original=error,
        )
    if status >= 500:
        return NetworkError(
            f"Server error (HTTP {status})",
            suggestion="The service may be experiencing issues",
            original=error,
        )
    return ProviderError(f"Request rejected (HTTP {status})", original=error)


def handle_errors(
    fallback: Optional[T] = None,
    show_error: bool = True,
    reraise: bool = False,
) -> Callable:
    """Decorator to handle errors gracefully in CLI commands.

    Args:
        fallback: Value to return on error (default None)
        show_error: Whether to display error to user
        reraise: Whether to re-raise the error after handling

    Returns:
        Decorated function
    """

    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> T:
            try:
                return func(*args, **kwargs)
            except CryptofolioError as e:
                logger.error(f"{e.category.value} error: {e.message}", exc_info=True)
                if show_error:
                    e.display()
                if reraise:
                    raise
                return fallback
            except Exception as e:
                error = classify_error(e)
                logger.error(f"Unexpected error: {e}", exc_info=True)
                if show_error:
                    error.display()
                if reraise:
                    raise error from e
                return fallback

        return wrapper

    return decorator
