"""Intent and entity schema for natural-language commands.

The intent vocabulary is closed: every intent knows its required entities,
whether it needs explicit confirmation, and which CLI command it maps to.
Entity names are module-level constants shared by the extractor, the
conversation manager and the command synthesizer.
"""

import math
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

# =============================================================================
# Entity Names
# =============================================================================

ASSET = "asset"
QUANTITY = "quantity"
ACCOUNT = "account"
FROM_ACCOUNT = "from_account"
TO_ACCOUNT = "to_account"
PRICE = "price"
COST_BASIS = "cost_basis"
FEE = "fee"
SYMBOL = "symbol"
SYMBOLS = "symbols"
SHOW_24H = "show_24h"
FROM_ASSET = "from_asset"
FROM_QUANTITY = "from_quantity"
TO_ASSET = "to_asset"
TO_QUANTITY = "to_quantity"
NAME = "name"
ACCOUNT_TYPE = "account_type"
CATEGORY = "category"
BY_ACCOUNT = "by_account"
BY_CATEGORY = "by_category"
CONFIG_KEY = "key"
CONFIG_VALUE = "value"

# Fields whose answers are parsed as numbers during slot-filling
NUMERIC_FIELDS = frozenset({QUANTITY, PRICE, COST_BASIS, FEE, FROM_QUANTITY, TO_QUANTITY})


# =============================================================================
# Intent Types
# =============================================================================


class IntentType(str, Enum):
    """Actions a user can ask for in natural language."""

    # Market data
    PRICE_CHECK = "price.check"
    MARKET_VIEW = "market.view"

    # Transactions (require confirmation)
    TX_BUY = "tx.buy"
    TX_SELL = "tx.sell"
    TX_TRANSFER = "tx.transfer"
    TX_SWAP = "tx.swap"

    # Portfolio and holdings
    PORTFOLIO_VIEW = "portfolio.view"
    HOLDINGS_LIST = "holdings.list"
    HOLDINGS_ADD = "holdings.add"
    HOLDINGS_REMOVE = "holdings.remove"
    HOLDINGS_MOVE = "holdings.move"

    # Accounts
    ACCOUNT_LIST = "account.list"
    ACCOUNT_ADD = "account.add"
    ACCOUNT_SHOW = "account.show"

    # Exchange sync and config
    SYNC = "sync"
    CONFIG_SHOW = "config.show"
    CONFIG_SET = "config.set"

    # Meta
    HELP = "help"
    UNCLEAR = "unclear"  # Nothing recognizable
    AMBIGUOUS = "ambiguous"  # Several plausible interpretations
    OUT_OF_SCOPE = "out_of_scope"  # Not about portfolio management

    def required_entities(self) -> tuple[str, ...]:
        """Ordered entity names that must be collected before execution."""
        return REQUIRED_ENTITIES.get(self, ())

    def requires_confirmation(self) -> bool:
        """Whether the intent mutates state and must be confirmed."""
        return self in CONFIRMATION_INTENTS

    def to_command(self) -> Optional[str]:
        """Base CLI command for the intent, or None for control intents."""
        return COMMANDS.get(self)

    @property
    def is_control(self) -> bool:
        """Whether the intent is handled by the conversation itself."""
        return self in CONTROL_INTENTS


REQUIRED_ENTITIES: dict[IntentType, tuple[str, ...]] = {
    IntentType.PRICE_CHECK: (SYMBOLS,),
    IntentType.MARKET_VIEW: (SYMBOL,),
    IntentType.TX_BUY: (ASSET, QUANTITY, ACCOUNT, PRICE),
    IntentType.TX_SELL: (ASSET, QUANTITY, ACCOUNT, PRICE),
    IntentType.TX_TRANSFER: (ASSET, QUANTITY, FROM_ACCOUNT, TO_ACCOUNT),
    IntentType.TX_SWAP: (FROM_ASSET, FROM_QUANTITY, TO_ASSET, TO_QUANTITY, ACCOUNT),
    IntentType.HOLDINGS_ADD: (ASSET, QUANTITY, ACCOUNT),
    IntentType.HOLDINGS_REMOVE: (ASSET, QUANTITY, ACCOUNT),
    IntentType.HOLDINGS_MOVE: (ASSET, QUANTITY, FROM_ACCOUNT, TO_ACCOUNT),
    IntentType.ACCOUNT_ADD: (NAME, ACCOUNT_TYPE, CATEGORY),
    IntentType.ACCOUNT_SHOW: (NAME,),
}

CONFIRMATION_INTENTS = frozenset(
    {
        IntentType.TX_BUY,
        IntentType.TX_SELL,
        IntentType.TX_TRANSFER,
        IntentType.TX_SWAP,
        IntentType.HOLDINGS_ADD,
        IntentType.HOLDINGS_REMOVE,
        IntentType.HOLDINGS_MOVE,
        IntentType.ACCOUNT_ADD,
    }
)

CONTROL_INTENTS = frozenset(
    {
        IntentType.HELP,
        IntentType.UNCLEAR,
        IntentType.AMBIGUOUS,
        IntentType.OUT_OF_SCOPE,
    }
)

COMMANDS: dict[IntentType, str] = {
    IntentType.PRICE_CHECK: "price",
    IntentType.MARKET_VIEW: "market",
    IntentType.TX_BUY: "tx buy",
    IntentType.TX_SELL: "tx sell",
    IntentType.TX_TRANSFER: "tx transfer",
    IntentType.TX_SWAP: "tx swap",
    IntentType.PORTFOLIO_VIEW: "portfolio",
    IntentType.HOLDINGS_LIST: "holdings list",
    IntentType.HOLDINGS_ADD: "holdings add",
    IntentType.HOLDINGS_REMOVE: "holdings remove",
    IntentType.HOLDINGS_MOVE: "holdings move",
    IntentType.ACCOUNT_LIST: "account list",
    IntentType.ACCOUNT_ADD: "account add",
    IntentType.ACCOUNT_SHOW: "account show",
    IntentType.SYNC: "sync",
    IntentType.CONFIG_SHOW: "config show",
    IntentType.CONFIG_SET: "config set",
}

# Labels a model may emit, mapped onto the canonical intent.
# Canonical dotted values are accepted as-is by map_intent().
INTENT_ALIASES: dict[str, IntentType] = {
    "price_check": IntentType.PRICE_CHECK,
    "check_price": IntentType.PRICE_CHECK,
    "price": IntentType.PRICE_CHECK,
    "market_view": IntentType.MARKET_VIEW,
    "market": IntentType.MARKET_VIEW,
    "tx_buy": IntentType.TX_BUY,
    "buy": IntentType.TX_BUY,
    "record_buy": IntentType.TX_BUY,
    "tx_sell": IntentType.TX_SELL,
    "sell": IntentType.TX_SELL,
    "record_sell": IntentType.TX_SELL,
    "tx_transfer": IntentType.TX_TRANSFER,
    "transfer": IntentType.TX_TRANSFER,
    "tx_swap": IntentType.TX_SWAP,
    "swap": IntentType.TX_SWAP,
    "portfolio_view": IntentType.PORTFOLIO_VIEW,
    "view_portfolio": IntentType.PORTFOLIO_VIEW,
    "portfolio": IntentType.PORTFOLIO_VIEW,
    "holdings_list": IntentType.HOLDINGS_LIST,
    "list_holdings": IntentType.HOLDINGS_LIST,
    "holdings": IntentType.HOLDINGS_LIST,
    "holdings_add": IntentType.HOLDINGS_ADD,
    "add_holdings": IntentType.HOLDINGS_ADD,
    "holdings_remove": IntentType.HOLDINGS_REMOVE,
    "holdings_move": IntentType.HOLDINGS_MOVE,
    "move_holdings": IntentType.HOLDINGS_MOVE,
    "account_list": IntentType.ACCOUNT_LIST,
    "list_accounts": IntentType.ACCOUNT_LIST,
    "account_add": IntentType.ACCOUNT_ADD,
    "add_account": IntentType.ACCOUNT_ADD,
    "account_show": IntentType.ACCOUNT_SHOW,
    "show_account": IntentType.ACCOUNT_SHOW,
    "sync_exchange": IntentType.SYNC,
    "config_show": IntentType.CONFIG_SHOW,
    "config_set": IntentType.CONFIG_SET,
    "out-of-scope": IntentType.OUT_OF_SCOPE,
}


def map_intent(label: str) -> IntentType:
    """Map a model-produced intent label onto the closed vocabulary.

    Unknown labels become UNCLEAR rather than raising.
    """
    key = label.strip().lower()
    try:
        return IntentType(key)
    except ValueError:
        return INTENT_ALIASES.get(key, IntentType.UNCLEAR)


def format_number(value: float) -> str:
    """Render a number the way the ledger CLI expects it.

    Whole numbers drop the fractional part (95000.0 -> "95000"), other values
    use the shortest round-tripping decimal form without an exponent.
    """
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "inf" if value > 0 else "-inf"
    value = float(value)
    if value.is_integer():
        return str(int(value))
    text = repr(value)
    if "e" in text or "E" in text:
        text = format(Decimal(text), "f")
    return text


# =============================================================================
# Entities
# =============================================================================


class EntityKind(str, Enum):
    """Value types an entity can carry."""

    STRING = "string"
    NUMBER = "number"
    SYMBOLS = "symbols"
    BOOLEAN = "boolean"


class Entity(BaseModel):
    """A typed value extracted from an utterance."""

    model_config = ConfigDict(frozen=True)

    kind: EntityKind
    text: Optional[str] = None
    number: Optional[float] = None
    symbols: tuple[str, ...] = ()
    flag: Optional[bool] = None

    @classmethod
    def of_string(cls, value: str) -> "Entity":
        return cls(kind=EntityKind.STRING, text=value)

    @classmethod
    def of_number(cls, value: float) -> "Entity":
        return cls(kind=EntityKind.NUMBER, number=float(value))

    @classmethod
    def of_symbols(cls, values) -> "Entity":
        return cls(kind=EntityKind.SYMBOLS, symbols=tuple(values))

    @classmethod
    def of_bool(cls, value: bool) -> "Entity":
        return cls(kind=EntityKind.BOOLEAN, flag=bool(value))

    def as_string(self) -> Optional[str]:
        """String value, or None for non-string entities."""
        if self.kind == EntityKind.STRING:
            return self.text
        return None

    def as_number(self) -> Optional[float]:
        """Numeric value. String entities are parsed if they look numeric."""
        if self.kind == EntityKind.NUMBER:
            return self.number
        if self.kind == EntityKind.STRING and self.text is not None:
            try:
                return float(self.text.strip())
            except ValueError:
                return None
        return None

    def as_symbols(self) -> Optional[list[str]]:
        if self.kind == EntityKind.SYMBOLS:
            return list(self.symbols)
        return None

    def as_bool(self) -> Optional[bool]:
        if self.kind == EntityKind.BOOLEAN:
            return self.flag
        return None

    def __str__(self) -> str:
        if self.kind == EntityKind.NUMBER:
            return format_number(self.number)
        if self.kind == EntityKind.SYMBOLS:
            return ", ".join(self.symbols)
        if self.kind == EntityKind.BOOLEAN:
            return "true" if self.flag else "false"
        return self.text or ""


# =============================================================================
# Parse Result
# =============================================================================


class ParseResult(BaseModel):
    """Structured output of a single provider call. Never mutated."""

    model_config = ConfigDict(frozen=True)

    intent: IntentType
    entities: dict[str, Entity] = Field(default_factory=dict)
    missing: list[str] = Field(default_factory=list)
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    raw_input: str = ""

    @classmethod
    def unclear(cls, raw_input: str) -> "ParseResult":
        """Result used when nothing could be understood."""
        return cls(intent=IntentType.UNCLEAR, confidence=0.0, raw_input=raw_input)

    def __str__(self) -> str:
        parts = [f"ParseResult({self.intent.value}"]
        for key, value in self.entities.items():
            parts.append(f", {key}={value}")
        if self.missing:
            parts.append(f", missing={','.join(self.missing)}")
        parts.append(f", confidence={self.confidence:.2f})")
        return "".join(parts)
