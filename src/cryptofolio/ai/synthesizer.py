"""Render a resolved intent and its entities as a CLI command string."""

from typing import Mapping, Optional

from cryptofolio.ai.intents import (
    ACCOUNT,
    ACCOUNT_TYPE,
    ASSET,
    BY_ACCOUNT,
    BY_CATEGORY,
    CATEGORY,
    CONFIG_KEY,
    CONFIG_VALUE,
    COST_BASIS,
    FROM_ACCOUNT,
    FROM_ASSET,
    FROM_QUANTITY,
    NAME,
    PRICE,
    QUANTITY,
    SHOW_24H,
    SYMBOL,
    SYMBOLS,
    TO_ACCOUNT,
    TO_ASSET,
    TO_QUANTITY,
    Entity,
    IntentType,
    format_number,
)


def _text(entities: Mapping[str, Entity], key: str) -> Optional[str]:
    entity = entities.get(key)
    if entity is None:
        return None
    value = str(entity)
    return value or None


def _number(entities: Mapping[str, Entity], key: str) -> Optional[str]:
    entity = entities.get(key)
    if entity is None:
        return None
    number = entity.as_number()
    if number is None:
        return str(entity) or None
    return format_number(number)


def _flag(entities: Mapping[str, Entity], key: str) -> bool:
    entity = entities.get(key)
    return entity is not None and entity.as_bool() is True


class CommandBuilder:
    """Accumulates positional arguments and flags for one command."""

    def __init__(self, base: str):
        self.parts = [base]

    def arg(self, value: Optional[str]) -> "CommandBuilder":
        if value:
            self.parts.append(value)
        return self

    def option(self, flag: str, value: Optional[str], quote: bool = False) -> "CommandBuilder":
        if value:
            self.parts.append(f'{flag} "{value}"' if quote else f"{flag} {value}")
        return self

    def switch(self, flag: str, enabled: bool) -> "CommandBuilder":
        if enabled:
            self.parts.append(flag)
        return self

    def build(self) -> str:
        return " ".join(self.parts)


def synthesize(intent: IntentType, entities: Mapping[str, Entity]) -> str:
    """Build the command string for a fully-resolved intent.

    Args:
        intent: The resolved intent (control intents render as "help")
        entities: Collected entities keyed by entity name

    Returns:
        Command string, e.g. 'tx buy BTC 0.1 --account "Binance" --price 95000'
    """
    base = intent.to_command()
    if base is None:
        return "help"

    cmd = CommandBuilder(base)

    if intent == IntentType.PRICE_CHECK:
        symbols = entities.get(SYMBOLS)
        if symbols is not None:
            values = symbols.as_symbols()
            if values is None:
                values = [str(symbols)]
            for symbol in values:
                cmd.arg(symbol)

    elif intent == IntentType.MARKET_VIEW:
        cmd.arg(_text(entities, SYMBOL))
        cmd.switch("--24h", _flag(entities, SHOW_24H))

    elif intent in (IntentType.TX_BUY, IntentType.TX_SELL):
        cmd.arg(_text(entities, ASSET)).arg(_number(entities, QUANTITY))
        cmd.option("--account", _text(entities, ACCOUNT), quote=True)
        cmd.option("--price", _number(entities, PRICE))

    elif intent in (IntentType.TX_TRANSFER, IntentType.HOLDINGS_MOVE):
        cmd.arg(_text(entities, ASSET)).arg(_number(entities, QUANTITY))
        cmd.option("--from", _text(entities, FROM_ACCOUNT), quote=True)
        cmd.option("--to", _text(entities, TO_ACCOUNT), quote=True)

    elif intent == IntentType.TX_SWAP:
        cmd.arg(_text(entities, FROM_ASSET)).arg(_number(entities, FROM_QUANTITY))
        cmd.arg(_text(entities, TO_ASSET)).arg(_number(entities, TO_QUANTITY))
        cmd.option("--account", _text(entities, ACCOUNT), quote=True)

    elif intent in (IntentType.HOLDINGS_ADD, IntentType.HOLDINGS_REMOVE):
        cmd.arg(_text(entities, ASSET)).arg(_number(entities, QUANTITY))
        cmd.option("--account", _text(entities, ACCOUNT), quote=True)
        if intent == IntentType.HOLDINGS_ADD:
            cmd.option("--cost", _number(entities, COST_BASIS))

    elif intent == IntentType.PORTFOLIO_VIEW:
        cmd.option("--account", _text(entities, ACCOUNT), quote=True)
        cmd.option("--category", _text(entities, CATEGORY), quote=True)
        cmd.switch("--by-account", _flag(entities, BY_ACCOUNT))
        cmd.switch("--by-category", _flag(entities, BY_CATEGORY))

    elif intent in (IntentType.HOLDINGS_LIST, IntentType.SYNC):
        cmd.option("--account", _text(entities, ACCOUNT), quote=True)

    elif intent == IntentType.ACCOUNT_ADD:
        name = _text(entities, NAME)
        if name:
            cmd.arg(f'"{name}"')
        cmd.option("--type", _text(entities, ACCOUNT_TYPE))
        cmd.option("--category", _text(entities, CATEGORY))

    elif intent == IntentType.ACCOUNT_SHOW:
        name = _text(entities, NAME)
        if name:
            cmd.arg(f'"{name}"')

    elif intent == IntentType.CONFIG_SET:
        cmd.arg(_text(entities, CONFIG_KEY)).arg(_text(entities, CONFIG_VALUE))

    return cmd.build()
