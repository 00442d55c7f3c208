"""Security utilities for cryptofolio - credential storage and log redaction."""

from cryptofolio.security.credentials import CredentialManager, setup_secure_logging

__all__ = ["CredentialManager", "setup_secure_logging"]
