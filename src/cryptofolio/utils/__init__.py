"""Utility modules for cryptofolio."""

from cryptofolio.utils.errors import (
    AuthenticationError,
    ConfigurationError,
    CryptofolioError,
    ErrorCategory,
    NetworkError,
    ProviderError,
    classify_error,
    handle_errors,
)

__all__ = [
    "CryptofolioError",
    "ConfigurationError",
    "NetworkError",
    "AuthenticationError",
    "ProviderError",
    "ErrorCategory",
    "classify_error",
    "handle_errors",
]
