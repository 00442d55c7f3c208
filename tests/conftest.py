"""Pytest configuration and fixtures for cryptofolio tests."""

import os
from typing import Optional
from unittest.mock import MagicMock

import pytest

from cryptofolio.ai.conversation import ConversationManager, ConversationState
from cryptofolio.ai.extractor import extract
from cryptofolio.ai.intents import ParseResult
from cryptofolio.ai.providers.base import Provider
from cryptofolio.config.settings import reset_settings_cache
from cryptofolio.security.credentials import CredentialManager


@pytest.fixture(autouse=True)
def isolated_environment(tmp_path, monkeypatch):
    """Keep tests away from the real home directory, keyring and API keys."""
    monkeypatch.setenv("HOME", str(tmp_path))
    for name in list(os.environ):
        if name.startswith("CRYPTOFOLIO_") or name in ("ANTHROPIC_API_KEY", "OLLAMA_HOST"):
            monkeypatch.delenv(name, raising=False)

    # Route credentials to the file fallback under the temporary home
    monkeypatch.setattr(CredentialManager, "_keyring_broken", True)
    monkeypatch.setattr(CredentialManager, "_keyring_warned", True)

    reset_settings_cache()
    yield tmp_path
    reset_settings_cache()


class StubProvider(Provider):
    """Provider returning canned results, or the rule-based parse when none is set."""

    name = "stub"

    def __init__(self, result: Optional[ParseResult] = None, healthy: bool = True):
        super().__init__(model="stub-model")
        self.result = result
        self.healthy = healthy
        self.calls: list[str] = []

    def parse(self, text: str, context: Optional[ConversationState] = None) -> ParseResult:
        self.calls.append(text)
        if not self.healthy:
            return self.fallback(text, "stub offline")
        if self.result is not None:
            return self.result
        return extract(text)

    def health(self) -> bool:
        return self.healthy


@pytest.fixture
def manager():
    """A conversation manager with no prior context."""
    return ConversationManager()


@pytest.fixture
def stub_provider():
    """A healthy provider that parses with the rule-based extractor."""
    return StubProvider()


@pytest.fixture
def mock_httpx_client():
    """Mock httpx.Client for the local provider."""
    return MagicMock()
