"""Tests for the command-line interface."""

import json
from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from cryptofolio import __version__
from cryptofolio.cli import app
from cryptofolio.config.settings import get_config_path, reset_settings_cache
from cryptofolio.security.credentials import CredentialManager

runner = CliRunner()


@pytest.fixture
def local_offline(monkeypatch):
    """Local-only mode with Ollama unreachable, so parsing uses the rules."""
    monkeypatch.setenv("CRYPTOFOLIO_AI__MODE", "local")
    reset_settings_cache()
    with patch("cryptofolio.ai.providers.local.LocalProvider.health", return_value=False):
        yield


class TestVersion:
    """Test the version option."""

    def test_version(self):
        """Test --version prints the version."""
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.stdout


class TestParseCommand:
    """Test one-shot parsing."""

    def test_parse_json(self, local_offline):
        """Test the JSON output of a complete buy."""
        result = runner.invoke(app, ["parse", "I bought 0.1 btc at 95000 on Binance", "--json"])

        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["intent"] == "tx.buy"
        assert data["entities"]["quantity"] == 0.1
        assert data["entities"]["account"] == "Binance"
        assert data["missing"] == []
        assert data["command"] == 'tx buy BTC 0.1 --account "Binance" --price 95000'

    def test_parse_incomplete(self, local_offline):
        """Test that incomplete input lists missing fields and no command."""
        result = runner.invoke(app, ["parse", "sold 2 eth on kraken", "--json"])

        data = json.loads(result.stdout)
        assert data["intent"] == "tx.sell"
        assert data["missing"] == ["price"]
        assert data["command"] is None

    def test_parse_text(self, local_offline):
        """Test the human-readable output."""
        result = runner.invoke(app, ["parse", "what's the price of bitcoin"])

        assert result.exit_code == 0
        assert "price.check" in result.stdout
        assert "price BTC" in result.stdout

    def test_creates_default_config(self, local_offline):
        """Test that running any command writes the default config file."""
        runner.invoke(app, ["parse", "help"])
        assert get_config_path().exists()


class TestChatCommand:
    """Test the interactive loop."""

    def test_buy_conversation(self, local_offline):
        """Test a buy typed over several lines and confirmed."""
        lines = "I bought 0.1 btc at 95000\nBinance\ny\nquit\n"
        result = runner.invoke(app, ["chat"], input=lines)

        assert result.exit_code == 0
        assert "Which account did you buy on?" in result.stdout
        assert "Transaction: BUY" in result.stdout
        assert 'tx buy BTC 0.1 --account "Binance" --price 95000' in result.stdout
        assert "Goodbye!" in result.stdout

    def test_fallback_notice_once(self, local_offline):
        """Test the pattern-matching notice appears once per chat."""
        result = runner.invoke(app, ["chat"], input="show my portfolio\nsync\nquit\n")

        assert result.stdout.count("Using pattern-based parsing") == 1

    def test_quit_ignored_mid_operation(self, local_offline):
        """Test that 'quit' is treated as an answer while collecting."""
        result = runner.invoke(app, ["chat"], input="I want to sell some eth\nquit\n")

        # quit becomes an invalid quantity; input then ends
        assert "Goodbye!" not in result.stdout
        assert result.stdout.count("How much did you sell?") == 2

    def test_initial_message(self, local_offline):
        """Test a message passed on the command line."""
        result = runner.invoke(app, ["chat", "show my portfolio"], input="quit\n")
        assert "cryptofolio portfolio" in result.stdout

    def test_account_option_seeds_context(self, local_offline):
        """Test --account is used when the sentence has no account."""
        result = runner.invoke(
            app, ["chat", "--account", "Ledger"], input="I bought 0.1 btc at 95000\ny\nquit\n"
        )
        assert '--account "Ledger"' in result.stdout


class TestAiStatusCommand:
    """Test provider diagnostics."""

    def test_status_table(self, local_offline):
        """Test that both providers are listed."""
        result = runner.invoke(app, ["ai-status"])

        assert result.exit_code == 0
        assert "claude" in result.stdout
        assert "ollama" in result.stdout
        assert "local" in result.stdout


class TestSetupCommand:
    """Test storing the API key."""

    def test_store_key(self):
        """Test that an entered key is saved."""
        result = runner.invoke(app, ["setup"], input="sk-ant-new-key\n")

        assert result.exit_code == 0
        assert CredentialManager.get_anthropic_key() == "sk-ant-new-key"

    def test_skip(self):
        """Test pressing Enter skips."""
        result = runner.invoke(app, ["setup"], input="\n")

        assert result.exit_code == 0
        assert CredentialManager.get_anthropic_key() is None
