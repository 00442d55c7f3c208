"""Slot-filling conversation manager.

This module owns the per-session dialogue state and decides what the host
should do after each turn:
- Merges parsed entities into the current operation
- Asks for the first missing required entity
- Requires explicit confirmation before state-changing commands
- Remembers the last account and asset mentioned as defaults
"""

import logging
import math
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Mapping, Optional

from cryptofolio.ai.actions import (
    Action,
    Cancel,
    Clarify,
    Confirm,
    Disambiguate,
    Execute,
    OutOfScope,
    Respond,
)
from cryptofolio.ai.intents import (
    ACCOUNT,
    ACCOUNT_TYPE,
    ASSET,
    CATEGORY,
    FROM_ACCOUNT,
    NAME,
    NUMERIC_FIELDS,
    PRICE,
    QUANTITY,
    SYMBOL,
    SYMBOLS,
    TO_ACCOUNT,
    Entity,
    IntentType,
    ParseResult,
    format_number,
)
from cryptofolio.ai.synthesizer import synthesize

logger = logging.getLogger(__name__)

MAX_HISTORY_TURNS = 10

YES_ANSWERS = ("y", "yes", "")
NO_ANSWERS = ("n", "no", "cancel", "abort")

HELP_MESSAGE = (
    "I can help you manage your crypto portfolio. Try things like:\n"
    '  - "What\'s the price of Bitcoin?"\n'
    '  - "I bought 0.1 BTC on Binance"\n'
    '  - "Show my portfolio"\n'
    '  - "Sync my exchanges"'
)

CONFIRMATION_LABELS = {
    IntentType.TX_BUY: "BUY",
    IntentType.TX_SELL: "SELL",
    IntentType.TX_TRANSFER: "TRANSFER",
    IntentType.TX_SWAP: "SWAP",
    IntentType.HOLDINGS_ADD: "ADD HOLDINGS",
    IntentType.HOLDINGS_REMOVE: "REMOVE HOLDINGS",
    IntentType.HOLDINGS_MOVE: "MOVE HOLDINGS",
    IntentType.ACCOUNT_ADD: "ADD ACCOUNT",
}

SYMBOL_SUGGESTIONS = ["BTC", "ETH", "SOL"]
FIELD_SUGGESTIONS: dict[str, list[str]] = {
    ASSET: SYMBOL_SUGGESTIONS,
    SYMBOL: SYMBOL_SUGGESTIONS,
    ACCOUNT_TYPE: ["exchange", "hardware_wallet", "software_wallet"],
    CATEGORY: ["trading", "cold-storage", "hot-wallets"],
}

# Questions that depend on the intent, keyed by (field, intent)
INTENT_QUESTIONS: dict[tuple[str, IntentType], str] = {
    (QUANTITY, IntentType.TX_BUY): "How much did you buy?",
    (QUANTITY, IntentType.TX_SELL): "How much did you sell?",
    (PRICE, IntentType.TX_BUY): "What price did you pay per unit?",
    (PRICE, IntentType.TX_SELL): "What price did you sell at?",
    (ACCOUNT, IntentType.TX_BUY): "Which account did you buy on?",
    (ACCOUNT, IntentType.TX_SELL): "Which account did you sell from?",
    (NAME, IntentType.ACCOUNT_ADD): "What name for the account?",
}

FIELD_QUESTIONS: dict[str, str] = {
    QUANTITY: "What quantity?",
    ACCOUNT: "Which account?",
    FROM_ACCOUNT: "Which account to transfer from?",
    TO_ACCOUNT: "Which account to transfer to?",
    ASSET: "Which cryptocurrency?",
    SYMBOL: "Which cryptocurrency?",
    SYMBOLS: "Which cryptocurrency(s)?",
    ACCOUNT_TYPE: "What type? (exchange, hardware_wallet, software_wallet)",
    CATEGORY: "Which category? (trading, cold-storage, hot-wallets)",
}

FALLBACK_QUESTION = "Please provide the missing information."


# =============================================================================
# Dialogue State
# =============================================================================


class DialoguePhase(str, Enum):
    """Where the current operation stands."""

    IDLE = "idle"  # No operation in progress
    COLLECTING = "collecting"  # Waiting for a required entity
    CONFIRMING = "confirming"  # Waiting for y/n


class Role(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"


@dataclass
class ConversationTurn:
    """A single line of the conversation."""

    role: Role
    content: str
    timestamp: datetime = field(default_factory=datetime.now)


@dataclass
class ConversationState:
    """Per-session dialogue state.

    Operation fields (intent, entities, confirmation flag) are cleared after
    every execute or cancel. The short-term context (last account and asset)
    and the turn history survive until the session ends.
    """

    current_intent: Optional[IntentType] = None
    collected_entities: dict[str, Entity] = field(default_factory=dict)
    confirmation_pending: bool = False
    last_account: Optional[str] = None
    last_asset: Optional[str] = None
    history: list[ConversationTurn] = field(default_factory=list)

    @classmethod
    def from_shell_context(
        cls, last_account: Optional[str] = None, last_asset: Optional[str] = None
    ) -> "ConversationState":
        """Create a state seeded with context inherited from the host."""
        return cls(last_account=last_account, last_asset=last_asset)

    @property
    def missing_entities(self) -> list[str]:
        """Required entities of the current intent not yet collected, in order."""
        if self.current_intent is None:
            return []
        return [
            name
            for name in self.current_intent.required_entities()
            if name not in self.collected_entities
        ]

    @property
    def phase(self) -> DialoguePhase:
        if self.current_intent is None:
            return DialoguePhase.IDLE
        if self.confirmation_pending:
            return DialoguePhase.CONFIRMING
        return DialoguePhase.COLLECTING

    def add_turn(self, role: Role, content: str) -> None:
        """Record a turn, keeping only the most recent ones."""
        self.history.append(ConversationTurn(role=role, content=content))
        if len(self.history) > MAX_HISTORY_TURNS:
            del self.history[: len(self.history) - MAX_HISTORY_TURNS]

    def clear_operation(self) -> None:
        """Forget the current operation after completion or cancellation."""
        self.current_intent = None
        self.collected_entities.clear()
        self.confirmation_pending = False

    def update_context(self, entities: Mapping[str, Entity]) -> None:
        """Remember the account and asset mentioned in these entities."""
        for key in (ACCOUNT, FROM_ACCOUNT):
            entity = entities.get(key)
            if entity is not None and entity.as_string():
                self.last_account = entity.as_string()

        asset = entities.get(ASSET)
        if asset is not None and asset.as_string():
            self.last_asset = asset.as_string()

    def context_summary(self) -> Optional[str]:
        """Short description of the operation in progress, if any."""
        parts = []
        if self.current_intent is not None:
            parts.append(f"intent: {self.current_intent.value}")
        if self.collected_entities:
            collected = ", ".join(f"{k}={v}" for k, v in self.collected_entities.items())
            parts.append(f"collected: {collected}")
        return "; ".join(parts) if parts else None


# =============================================================================
# Conversation Manager
# =============================================================================


class ConversationManager:
    """Drives slot-filling and confirmation for one session."""

    def __init__(self, state: Optional[ConversationState] = None):
        self.state = state or ConversationState()

    @classmethod
    def with_context(
        cls, last_account: Optional[str] = None, last_asset: Optional[str] = None
    ) -> "ConversationManager":
        return cls(ConversationState.from_shell_context(last_account, last_asset))

    @property
    def phase(self) -> DialoguePhase:
        return self.state.phase

    def process(self, parsed: ParseResult) -> Action:
        """Decide the next action for a freshly parsed utterance.

        Args:
            parsed: Provider output for the user's latest line

        Returns:
            Clarify, Confirm, Execute, Disambiguate, Respond or OutOfScope
        """
        state = self.state
        state.add_turn(Role.USER, parsed.raw_input)
        state.update_context(parsed.entities)
        logger.debug(f"Processing {parsed}")

        if parsed.intent == IntentType.UNCLEAR:
            return self._reply(
                Clarify(
                    question="I'm not sure what you'd like to do. Could you rephrase that?",
                    field="intent",
                    suggestions=["check prices", "view portfolio", "record a transaction"],
                )
            )
        if parsed.intent == IntentType.AMBIGUOUS:
            return self._reply(
                Disambiguate(
                    message="I could help with a few things here.",
                    options=["Check price", "View holdings"],
                )
            )
        if parsed.intent == IntentType.OUT_OF_SCOPE:
            return self._reply(
                OutOfScope(message="I can only help with cryptocurrency portfolio management.")
            )
        if parsed.intent == IntentType.HELP:
            return self._reply(Respond(message=HELP_MESSAGE))

        # A different intent starts a new operation
        if state.current_intent is not None and state.current_intent != parsed.intent:
            state.clear_operation()

        state.current_intent = parsed.intent
        state.confirmation_pending = False
        state.collected_entities.update(parsed.entities)
        self._apply_context_defaults()

        return self._advance()

    def handle_confirmation(self, text: str) -> Action:
        """Resolve a pending confirmation with the user's answer.

        Only y/yes/empty and n/no/cancel/abort are accepted; anything else
        re-asks without touching the state.
        """
        state = self.state
        answer = text.strip().lower()
        state.add_turn(Role.USER, text)

        if state.current_intent is None:
            return self._reply(Cancel(message="No pending operation."))
        if not state.confirmation_pending:
            return self._advance()

        if answer in YES_ANSWERS:
            command = synthesize(state.current_intent, state.collected_entities)
            logger.info(f"Confirmed: {command}")
            state.clear_operation()
            return self._reply(Execute(command=command))

        if answer in NO_ANSWERS:
            state.clear_operation()
            return self._reply(Cancel(message="Operation cancelled."))

        return self._reply(
            Clarify(
                question="Please confirm with 'y' or cancel with 'n'.",
                field="confirmation",
                suggestions=["y", "n"],
            )
        )

    def handle_entity_input(self, text: str, expected_field: str) -> Optional[Entity]:
        """Parse a raw answer to a clarification question.

        Args:
            text: What the user typed
            expected_field: Entity name that was asked for

        Returns:
            The parsed Entity, or None if the value is unusable (caller re-asks)
        """
        value = text.strip()

        if expected_field in NUMERIC_FIELDS:
            number = parse_amount(value)
            return Entity.of_number(number) if number is not None else None

        if expected_field == SYMBOLS:
            tokens = value.replace(",", " ").split()
            if tokens:
                return Entity.of_symbols(token.upper() for token in tokens)
            return None

        if value:
            return Entity.of_string(value)
        return None

    def provide_entity(self, field_name: str, entity: Entity) -> Action:
        """Store an answered entity and move the operation forward."""
        state = self.state
        if state.current_intent is None:
            return self._reply(Cancel(message="No pending operation."))

        state.add_turn(Role.USER, str(entity))
        state.collected_entities[field_name] = entity
        state.update_context({field_name: entity})
        return self._advance()

    def current_question(self) -> Optional[Clarify]:
        """The clarification for the first missing entity, if collecting."""
        state = self.state
        if state.current_intent is None or state.confirmation_pending:
            return None
        missing = state.missing_entities
        if not missing:
            return None
        return self._clarification(missing[0], state.current_intent)

    def interrupt(self) -> Cancel:
        """Abandon the current operation without a parse round-trip."""
        had_operation = self.state.current_intent is not None
        self.state.clear_operation()
        if had_operation:
            return self._reply(Cancel(message="Operation cancelled."))
        return Cancel(message="No pending operation.")

    # -------------------------------------------------------------------------

    def _apply_context_defaults(self) -> None:
        """Fill "account" from the last account mentioned, when it is needed."""
        state = self.state
        intent = state.current_intent
        if (
            intent is not None
            and ACCOUNT in intent.required_entities()
            and ACCOUNT not in state.collected_entities
            and state.last_account
        ):
            logger.debug(f"Using last account {state.last_account!r} as default")
            state.collected_entities[ACCOUNT] = Entity.of_string(state.last_account)

    def _advance(self) -> Action:
        """Ask for the next missing entity, confirm, or execute."""
        state = self.state
        intent = state.current_intent
        missing = state.missing_entities

        if missing:
            return self._reply(self._clarification(missing[0], intent))

        if intent.requires_confirmation():
            state.confirmation_pending = True
            summary, details = self._confirmation_summary(intent)
            command = synthesize(intent, state.collected_entities)
            return self._reply(Confirm(summary=summary, command=command, details=details))

        command = synthesize(intent, state.collected_entities)
        state.clear_operation()
        return self._reply(Execute(command=command))

    @staticmethod
    def _clarification(field_name: str, intent: IntentType) -> Clarify:
        question = INTENT_QUESTIONS.get(
            (field_name, intent), FIELD_QUESTIONS.get(field_name, FALLBACK_QUESTION)
        )
        return Clarify(
            question=question,
            field=field_name,
            suggestions=list(FIELD_SUGGESTIONS.get(field_name, [])),
        )

    def _confirmation_summary(self, intent: IntentType) -> tuple[str, list[tuple[str, str]]]:
        """Build the summary line and ordered details for a confirmation."""
        entities = self.state.collected_entities
        details: list[tuple[str, str]] = []

        asset = entities.get(ASSET)
        quantity = entities.get(QUANTITY)
        price = entities.get(PRICE)
        qty_value = quantity.as_number() if quantity is not None else None
        price_value = price.as_number() if price is not None else None

        if asset is not None:
            details.append(("Asset", str(asset)))
        if qty_value is not None:
            details.append(("Quantity", format_number(qty_value)))
        if price_value is not None:
            details.append(("Price", f"${price_value:.2f}"))
        for key, label in ((ACCOUNT, "Account"), (FROM_ACCOUNT, "From"), (TO_ACCOUNT, "To")):
            if key in entities:
                details.append((label, str(entities[key])))

        if intent in (IntentType.TX_BUY, IntentType.TX_SELL):
            if qty_value is not None and price_value is not None:
                details.append(("Total", f"${qty_value * price_value:.2f}"))

        label = CONFIRMATION_LABELS.get(intent, "EXECUTE")
        return f"Transaction: {label}", details

    def _reply(self, action: Action) -> Action:
        """Record the assistant side of the turn and pass the action through."""
        text = getattr(action, "question", None) or getattr(action, "message", None)
        if text is None:
            text = getattr(action, "summary", None) or getattr(action, "command", "")
        self.state.add_turn(Role.ASSISTANT, text)
        return action


def parse_amount(text: str) -> Optional[float]:
    """Parse a typed number such as "1,250", "$95000" or "95k".

    Returns None for anything that is not a finite number.
    """
    cleaned = text.strip().replace(",", "").replace("$", "")
    multiplier = 1.0
    if cleaned[-1:] in ("k", "K"):
        cleaned = cleaned[:-1]
        multiplier = 1000.0
    if not cleaned or "_" in cleaned:
        return None
    try:
        number = float(cleaned)
    except ValueError:
        return None
    if not math.isfinite(number):
        return None
    return number * multiplier
