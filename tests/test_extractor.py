"""Tests for the rule-based extractor."""

import pytest

from cryptofolio.ai.extractor import RuleBasedExtractor, extract
from cryptofolio.ai.intents import (
    ACCOUNT,
    ASSET,
    FROM_ACCOUNT,
    PRICE,
    QUANTITY,
    SYMBOLS,
    TO_ACCOUNT,
    IntentType,
)


class TestIntentRules:
    """Test keyword rule selection."""

    def test_price_check_with_symbols(self):
        """Test a price question lists every mentioned symbol."""
        result = extract("What's the price of bitcoin and solana?")
        assert result.intent == IntentType.PRICE_CHECK
        assert result.entities[SYMBOLS].as_symbols() == ["BTC", "SOL"]
        assert result.confidence == 0.6

    def test_how_much_is_price_check(self):
        """Test that 'how much' questions are price checks."""
        assert extract("how much is eth").intent == IntentType.PRICE_CHECK

    def test_price_check_without_symbols(self):
        """Test that a price question without a known symbol has no entities."""
        result = extract("price please")
        assert result.intent == IntentType.PRICE_CHECK
        assert result.entities == {}

    def test_price_wins_over_buy(self):
        """Test that earlier rules take precedence."""
        assert extract("what price did I buy at").intent == IntentType.PRICE_CHECK

    def test_portfolio(self):
        """Test portfolio phrases."""
        result = extract("show my holdings")
        assert result.intent == IntentType.PORTFOLIO_VIEW
        assert result.confidence == 0.7

    def test_move_reports_all_fields_missing(self):
        """Test that transfers are recognized but every field is left to ask for."""
        result = extract("move my coins to the ledger")
        assert result.intent == IntentType.HOLDINGS_MOVE
        assert result.entities == {}
        assert result.missing == [ASSET, QUANTITY, FROM_ACCOUNT, TO_ACCOUNT]
        assert result.confidence == 0.5

    def test_sync(self):
        """Test sync phrases."""
        assert extract("sync my exchanges").intent == IntentType.SYNC

    def test_help(self):
        """Test help phrases."""
        assert extract("help").intent == IntentType.HELP
        assert extract("?").intent == IntentType.HELP
        assert extract("What can you do").confidence == 0.9

    def test_unclear(self):
        """Test that unmatched input is UNCLEAR with zero confidence."""
        result = extract("hello there")
        assert result.intent == IntentType.UNCLEAR
        assert result.confidence == 0.0
        assert result.raw_input == "hello there"

    def test_deterministic(self):
        """Test that the same text always yields the same result."""
        text = "I bought 0.1 btc at 95000 on Binance"
        assert extract(text) == extract(text)


class TestTradeExtraction:
    """Test buy and sell field extraction."""

    def test_complete_buy(self):
        """Test a buy with every field present."""
        result = extract("I bought 0.1 btc at 95000 on Binance")
        assert result.intent == IntentType.TX_BUY
        assert result.entities[ASSET].as_string() == "BTC"
        assert result.entities[QUANTITY].as_number() == 0.1
        assert result.entities[PRICE].as_number() == 95000.0
        assert result.entities[ACCOUNT].as_string() == "Binance"
        assert result.missing == []
        assert result.confidence == 0.6

    def test_sell_without_price(self):
        """Test that a missing price is reported, not guessed."""
        result = extract("sold 2 eth on kraken")
        assert result.intent == IntentType.TX_SELL
        assert result.entities[ASSET].as_string() == "ETH"
        assert result.entities[QUANTITY].as_number() == 2.0
        assert result.entities[ACCOUNT].as_string() == "Kraken"
        assert result.missing == [PRICE]

    def test_buy_missing_everything(self):
        """Test missing fields are listed in asset, quantity, price, account order."""
        result = extract("I want to buy")
        assert result.missing == [ASSET, QUANTITY, PRICE, ACCOUNT]


class TestFieldExtractors:
    """Test the individual field extractors."""

    def test_symbols_deduplicated(self):
        """Test that name and ticker of the same coin yield one symbol."""
        assert RuleBasedExtractor.extract_symbols("bitcoin btc BTC") == ["BTC"]

    def test_quantity_near_unit(self):
        """Test quantities attached to a unit."""
        assert RuleBasedExtractor.extract_quantity("got 1.5 ETH today") == 1.5

    def test_quantity_bare_number(self):
        """Test the bare-number fallback."""
        assert RuleBasedExtractor.extract_quantity("add 250 to it") == 250.0

    def test_quantity_rejects_out_of_range(self):
        """Test that bare numbers outside (0, 1e6) are ignored."""
        assert RuleBasedExtractor.extract_quantity("add 0 and 5000000") is None

    @pytest.mark.parametrize(
        "text,expected",
        [
            ("at 95000", 95000.0),
            ("at $95,000", 95000.0),
            ("for 95k", 95000.0),
            ("@ 3.5", 3.5),
            ("3000 usd", 3000.0),
            ("paid 20 dollars", 20.0),
        ],
    )
    def test_price(self, text, expected):
        """Test price phrases."""
        assert RuleBasedExtractor.extract_price(text) == expected

    def test_k_only_applies_directly_after_number(self):
        """Test that a 'k' elsewhere in the text does not scale the price."""
        assert RuleBasedExtractor.extract_price("at 95 on kraken") == 95.0

    def test_k_not_applied_to_large_prices(self):
        """Test that the multiplier is skipped for values already in the thousands."""
        assert RuleBasedExtractor.extract_price("at 1500k") == 1500.0

    def test_no_price(self):
        """Test text without a price."""
        assert RuleBasedExtractor.extract_price("bought some btc") is None

    def test_known_account_capitalized(self):
        """Test that known venues are capitalized."""
        assert RuleBasedExtractor.extract_account("moved it to my ledger") == "Ledger"

    def test_account_after_on(self):
        """Test that the word after ' on ' is used for unknown venues."""
        assert RuleBasedExtractor.extract_account("bought on Bitstamp yesterday") == "Bitstamp"

    def test_short_word_after_on_ignored(self):
        """Test that words of two characters or fewer are not accounts."""
        assert RuleBasedExtractor.extract_account("bought on it") is None


class TestWholeWordMatching:
    """Test that names are only recognized as whole words."""

    def test_sold_is_not_solana(self):
        """Test that 'sold' does not mention SOL."""
        result = extract("I sold 100 doge at 0.3 on kraken")
        assert result.intent == IntentType.TX_SELL
        assert result.entities[ASSET].as_string() == "DOGE"
        assert result.entities[QUANTITY].as_number() == 100.0
        assert result.entities[PRICE].as_number() == 0.3

    def test_no_asset_inside_other_words(self):
        """Test that 'something' does not yield ETH."""
        result = extract("I bought something on binance")
        assert ASSET not in result.entities
        assert result.missing == [ASSET, QUANTITY, PRICE]
        assert result.entities[ACCOUNT].as_string() == "Binance"

    def test_ticker_attached_to_number(self):
        """Test that '0.5btc' still names the asset."""
        result = extract("bought 0.5btc at 60000 on coinbase")
        assert result.entities[ASSET].as_string() == "BTC"
        assert result.entities[QUANTITY].as_number() == 0.5

    def test_plural_and_punctuation(self):
        """Test plural names and trailing punctuation."""
        assert RuleBasedExtractor.extract_symbols("my bitcoins and eth.") == ["BTC", "ETH"]

    def test_account_inside_other_word(self):
        """Test that a known venue inside a longer word is not an account."""
        assert RuleBasedExtractor.extract_account("my ledgerless setup") is None


class TestDollarPrices:
    """Test prices written with a dollar sign."""

    def test_dollar_prefix_without_keyword(self):
        """Test a '$' price with no 'at'/'for' before it."""
        assert RuleBasedExtractor.extract_price("paid $3,000 each") == 3000.0

    def test_dollar_prefix_with_k(self):
        """Test the thousands suffix after a '$' price."""
        assert RuleBasedExtractor.extract_price("bought 1 eth $3.5k") == 3500.0
