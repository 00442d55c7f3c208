"""Credential management using system keyring."""

import logging
import os
from pathlib import Path
from typing import Optional

import keyring
from keyring.errors import KeyringError

logger = logging.getLogger(__name__)


def _fallback_file() -> Path:
    """File used where the keyring is broken (e.g. WSL, headless CI)."""
    return Path.home() / ".cryptofolio" / ".credentials"


class SensitiveDataFilter(logging.Filter):
    """Filter to prevent logging of sensitive data."""

    SENSITIVE_KEYWORDS = [
        "api_key",
        "api-key",
        "x-api-key",
        "secret",
        "token",
        "password",
        "sk-ant-",
    ]

    def filter(self, record: logging.LogRecord) -> bool:
        """Redact log records containing sensitive data."""
        msg = str(record.msg).lower()
        args = str(record.args).lower() if record.args else ""
        combined = msg + args

        if any(keyword in combined for keyword in self.SENSITIVE_KEYWORDS):
            record.msg = "[REDACTED - sensitive data]"
            record.args = None
        return True


class CredentialManager:
    """Manages secure storage and retrieval of credentials using system keyring."""

    SERVICE_NAME = "cryptofolio"

    # Known credential keys
    ANTHROPIC_API_KEY = "anthropic_api_key"

    # Track whether keyring is known-broken so we only warn once
    _keyring_broken = False
    _keyring_warned = False

    @classmethod
    def _mark_broken(cls, error: Exception) -> None:
        cls._keyring_broken = True
        if not cls._keyring_warned:
            cls._keyring_warned = True
            logger.debug(f"System keyring unavailable ({type(error).__name__}), using file storage")

    @classmethod
    def _fallback_get(cls, key_name: str) -> Optional[str]:
        """Read a credential from the environment or the fallback file."""
        # CRYPTOFOLIO_ANTHROPIC_API_KEY, etc.
        env_val = os.environ.get(f"CRYPTOFOLIO_{key_name.upper()}")
        if env_val:
            return env_val

        path = _fallback_file()
        if path.exists():
            try:
                for line in path.read_text().splitlines():
                    if "=" in line:
                        k, v = line.split("=", 1)
                        if k.strip() == key_name:
                            return v.strip()
            except OSError as e:
                logger.debug(f"Could not read credentials file: {e}")
        return None

    @classmethod
    def _fallback_store(cls, key_name: str, value: str) -> bool:
        """Write a credential to the fallback file."""
        path = _fallback_file()
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            entries: dict[str, str] = {}
            if path.exists():
                for line in path.read_text().splitlines():
                    if "=" in line:
                        k, v = line.split("=", 1)
                        entries[k.strip()] = v.strip()
            entries[key_name] = value
            path.write_text("\n".join(f"{k}={v}" for k, v in entries.items()) + "\n")
            path.chmod(0o600)
            return True
        except OSError as e:
            logger.error(f"Fallback store failed for {key_name}: {e}")
            return False

    @classmethod
    def store(cls, key_name: str, value: str) -> bool:
        """Store a credential in the system keyring (with fallback).

        Args:
            key_name: Name/identifier for the credential
            value: The credential value to store

        Returns:
            True if successful, False otherwise
        """
        if cls._keyring_broken:
            return cls._fallback_store(key_name, value)
        try:
            keyring.set_password(cls.SERVICE_NAME, key_name, value)
            return True
        except (KeyringError, RuntimeError) as e:
            cls._mark_broken(e)
            return cls._fallback_store(key_name, value)

    @classmethod
    def get(cls, key_name: str) -> Optional[str]:
        """Retrieve a credential from the system keyring (with fallback).

        Args:
            key_name: Name/identifier for the credential

        Returns:
            The credential value or None if not found
        """
        if cls._keyring_broken:
            return cls._fallback_get(key_name)
        try:
            value = keyring.get_password(cls.SERVICE_NAME, key_name)
            if value is not None:
                return value
        except (KeyringError, RuntimeError) as e:
            cls._mark_broken(e)
        return cls._fallback_get(key_name)

    @classmethod
    def get_anthropic_key(cls) -> Optional[str]:
        """Get the Anthropic API key (keyring, then ANTHROPIC_API_KEY)."""
        return cls.get(cls.ANTHROPIC_API_KEY) or os.environ.get("ANTHROPIC_API_KEY") or None

    @classmethod
    def set_anthropic_key(cls, key: str) -> bool:
        """Set the Anthropic API key."""
        return cls.store(cls.ANTHROPIC_API_KEY, key)


def setup_secure_logging() -> None:
    """Configure logging to filter sensitive data."""
    sensitive_filter = SensitiveDataFilter()

    root_logger = logging.getLogger()
    root_logger.addFilter(sensitive_filter)

    app_logger = logging.getLogger("cryptofolio")
    app_logger.addFilter(sensitive_filter)
