"""Rule-based intent extraction.

Used whenever no language model is available or a model's output cannot be
used. Keyword rules are checked in order and the first match wins; fields
that cannot be found are reported as missing instead of guessed.
"""

import re
from typing import Optional

from cryptofolio.ai.intents import (
    ACCOUNT,
    ASSET,
    FROM_ACCOUNT,
    PRICE,
    QUANTITY,
    SYMBOLS,
    TO_ACCOUNT,
    Entity,
    IntentType,
    ParseResult,
)

# Name or ticker -> symbol, checked in this order
SYMBOL_ALIASES: list[tuple[str, str]] = [
    ("bitcoin", "BTC"),
    ("btc", "BTC"),
    ("ethereum", "ETH"),
    ("eth", "ETH"),
    ("solana", "SOL"),
    ("sol", "SOL"),
    ("cardano", "ADA"),
    ("ada", "ADA"),
    ("dogecoin", "DOGE"),
    ("doge", "DOGE"),
    ("xrp", "XRP"),
    ("ripple", "XRP"),
    ("polkadot", "DOT"),
    ("dot", "DOT"),
    ("avalanche", "AVAX"),
    ("avax", "AVAX"),
    ("matic", "MATIC"),
    ("polygon", "MATIC"),
    ("litecoin", "LTC"),
    ("ltc", "LTC"),
    ("chainlink", "LINK"),
    ("link", "LINK"),
]

KNOWN_ACCOUNTS = [
    "binance",
    "coinbase",
    "kraken",
    "ledger",
    "trezor",
    "metamask",
    "phantom",
]

QUANTITY_PATTERNS = [
    r"(\d+\.?\d*)\s*(?:btc|eth|sol|ada|doge|xrp|dot|avax|matic|ltc|link)",
    r"(\d+\.?\d*)\s+(?:bitcoin|ethereum|solana)",
    r"bought\s+(\d+\.?\d*)",
    r"sold\s+(\d+\.?\d*)",
]

# Second group captures a trailing "k" (thousands)
PRICE_PATTERNS = [
    r"(?:at|for|@)\s*\$?(\d+\.?\d*)(k)?",
    r"\$(\d+\.?\d*)(k)?",
    r"(\d+\.?\d*)(k)?\s*(?:dollars?|usd|per)",
]

# Bare-number quantity fallback only accepts values in this open range
MAX_BARE_QUANTITY = 1_000_000.0

def _mentions(name: str, lower: str) -> bool:
    """True if name appears as its own word (a plural "s" or an attached number is fine)."""
    return re.search(rf"(?<![a-z]){re.escape(name)}s?(?![a-z])", lower) is not None


TRADE_FIELDS = (ASSET, QUANTITY, PRICE, ACCOUNT)
MOVE_FIELDS = (ASSET, QUANTITY, FROM_ACCOUNT, TO_ACCOUNT)


class RuleBasedExtractor:
    """Keyword and regex intent parser.

    Stateless: every method is a pure function of its input, so the same
    text always yields an identical ParseResult.
    """

    # Keyword rules (ORDER MATTERS - first match wins)
    PRICE_WORDS = ("price", "worth")
    PORTFOLIO_WORDS = ("portfolio", "holdings", "what do i have")
    BUY_WORDS = ("bought", "buy", "purchased")
    SELL_WORDS = ("sold", "sell")
    MOVE_WORDS = ("transfer", "move", "send")
    SYNC_WORDS = ("sync", "refresh", "update")

    @classmethod
    def parse(cls, text: str) -> ParseResult:
        """Parse raw user text into a ParseResult.

        Args:
            text: Raw user input

        Returns:
            ParseResult; UNCLEAR with confidence 0.0 when no rule matches
        """
        lower = text.lower()

        if any(word in lower for word in cls.PRICE_WORDS) or lower.startswith("how much"):
            symbols = cls.extract_symbols(text)
            entities = {SYMBOLS: Entity.of_symbols(symbols)} if symbols else {}
            return ParseResult(
                intent=IntentType.PRICE_CHECK,
                entities=entities,
                confidence=0.6,
                raw_input=text,
            )

        if any(word in lower for word in cls.PORTFOLIO_WORDS):
            return ParseResult(intent=IntentType.PORTFOLIO_VIEW, confidence=0.7, raw_input=text)

        if any(word in lower for word in cls.BUY_WORDS):
            return cls._parse_trade(IntentType.TX_BUY, text)

        if any(word in lower for word in cls.SELL_WORDS):
            return cls._parse_trade(IntentType.TX_SELL, text)

        if any(word in lower for word in cls.MOVE_WORDS):
            return ParseResult(
                intent=IntentType.HOLDINGS_MOVE,
                missing=list(MOVE_FIELDS),
                confidence=0.5,
                raw_input=text,
            )

        if any(word in lower for word in cls.SYNC_WORDS):
            return ParseResult(intent=IntentType.SYNC, confidence=0.6, raw_input=text)

        stripped = lower.strip()
        if stripped in ("help", "?") or "what can you" in lower:
            return ParseResult(intent=IntentType.HELP, confidence=0.9, raw_input=text)

        return ParseResult.unclear(text)

    @classmethod
    def _parse_trade(cls, intent: IntentType, text: str) -> ParseResult:
        """Extract asset, quantity, price and account for a buy or sell."""
        found = {
            ASSET: cls.extract_single_symbol(text),
            QUANTITY: cls.extract_quantity(text),
            PRICE: cls.extract_price(text),
            ACCOUNT: cls.extract_account(text),
        }

        entities: dict[str, Entity] = {}
        missing: list[str] = []
        for name in TRADE_FIELDS:
            value = found[name]
            if value is None:
                missing.append(name)
            elif isinstance(value, str):
                entities[name] = Entity.of_string(value)
            else:
                entities[name] = Entity.of_number(value)

        return ParseResult(
            intent=intent,
            entities=entities,
            missing=missing,
            confidence=0.6,
            raw_input=text,
        )

    @staticmethod
    def extract_symbols(text: str) -> list[str]:
        """Find every known ticker mentioned in the text, deduplicated, in table order."""
        lower = text.lower()
        symbols: list[str] = []
        for name, symbol in SYMBOL_ALIASES:
            if symbol not in symbols and _mentions(name, lower):
                symbols.append(symbol)
        return symbols

    @classmethod
    def extract_single_symbol(cls, text: str) -> Optional[str]:
        symbols = cls.extract_symbols(text)
        return symbols[0] if symbols else None

    @staticmethod
    def extract_quantity(text: str) -> Optional[float]:
        """Find a quantity near a unit symbol, else the first plausible bare number."""
        lower = text.lower()
        for pattern in QUANTITY_PATTERNS:
            match = re.search(pattern, lower)
            if match:
                try:
                    return float(match.group(1))
                except ValueError:
                    continue

        for word in text.split():
            candidate = word.replace(",", "")
            if "_" in candidate:
                continue
            try:
                number = float(candidate)
            except ValueError:
                continue
            if 0.0 < number < MAX_BARE_QUANTITY:
                return number

        return None

    @staticmethod
    def extract_price(text: str) -> Optional[float]:
        """Find a unit price such as "at 95000", "for 95k" or "3000 usd"."""
        lower = text.replace(",", "").lower()
        for pattern in PRICE_PATTERNS:
            match = re.search(pattern, lower)
            if not match:
                continue
            try:
                price = float(match.group(1))
            except ValueError:
                continue
            if match.group(2) and price < 1000.0:
                return price * 1000.0
            return price
        return None

    @staticmethod
    def extract_account(text: str) -> Optional[str]:
        """Find a known exchange/wallet name, else the word after " on "."""
        lower = text.lower()
        for account in KNOWN_ACCOUNTS:
            if _mentions(account, lower):
                return account.capitalize()

        idx = lower.find(" on ")
        if idx != -1:
            words = text[idx + 4 :].split()
            if words and len(words[0]) > 2:
                return words[0]

        return None


def extract(text: str) -> ParseResult:
    """Parse text with the rule-based extractor."""
    return RuleBasedExtractor.parse(text)
