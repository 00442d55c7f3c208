"""Tests for the slot-filling conversation manager."""

import pytest

from cryptofolio.ai.actions import (
    ActionKind,
    Cancel,
    Clarify,
    Confirm,
    Disambiguate,
    Execute,
    OutOfScope,
    Respond,
)
from cryptofolio.ai.conversation import (
    MAX_HISTORY_TURNS,
    ConversationManager,
    ConversationState,
    DialoguePhase,
    Role,
    parse_amount,
)
from cryptofolio.ai.extractor import extract
from cryptofolio.ai.intents import (
    ACCOUNT,
    ASSET,
    FROM_ACCOUNT,
    PRICE,
    QUANTITY,
    SYMBOLS,
    Entity,
    IntentType,
    ParseResult,
)


def answer(manager: ConversationManager, text: str):
    """Feed a clarification answer the way the chat session does."""
    question = manager.current_question()
    entity = manager.handle_entity_input(text, question.field)
    assert entity is not None
    return manager.provide_entity(question.field, entity)


# =============================================================================
# End-to-end dialogues
# =============================================================================


class TestDialogues:
    """Test complete conversations driven by the rule-based extractor."""

    def test_price_check_executes_immediately(self, manager):
        """Test that read-only intents never ask for confirmation."""
        parsed = extract("what's the price of bitcoin")
        assert parsed.entities[SYMBOLS].as_symbols() == ["BTC"]

        action = manager.process(parsed)

        assert isinstance(action, Execute)
        assert action.command == "price BTC"
        assert manager.phase == DialoguePhase.IDLE

    def test_complete_buy_confirms_then_executes(self, manager):
        """Test a one-turn buy goes through confirmation before execution."""
        action = manager.process(extract("I bought 0.1 btc at 95000 on Binance"))

        assert isinstance(action, Confirm)
        assert action.summary == "Transaction: BUY"
        assert action.details == [
            ("Asset", "BTC"),
            ("Quantity", "0.1"),
            ("Price", "$95000.00"),
            ("Account", "Binance"),
            ("Total", "$9500.00"),
        ]
        assert manager.phase == DialoguePhase.CONFIRMING

        action = manager.handle_confirmation("y")

        assert isinstance(action, Execute)
        assert action.command == 'tx buy BTC 0.1 --account "Binance" --price 95000'
        assert manager.phase == DialoguePhase.IDLE
        assert manager.state.collected_entities == {}

    def test_sell_collects_missing_fields_then_cancels(self, manager):
        """Test slot-filling asks one field at a time and 'n' clears the operation."""
        parsed = extract("I want to sell some eth")
        assert parsed.missing == [QUANTITY, PRICE, ACCOUNT]

        action = manager.process(parsed)
        assert isinstance(action, Clarify)
        assert action.field == QUANTITY
        assert action.question == "How much did you sell?"

        action = answer(manager, "2")
        assert isinstance(action, Clarify)
        assert action.field == ACCOUNT
        assert action.question == "Which account did you sell from?"

        action = answer(manager, "Kraken")
        assert isinstance(action, Clarify)
        assert action.field == PRICE

        action = answer(manager, "3,000")
        assert isinstance(action, Confirm)
        assert ("Total", "$6000.00") in action.details
        assert action.command == 'tx sell ETH 2 --account "Kraken" --price 3000'

        action = manager.handle_confirmation("n")
        assert isinstance(action, Cancel)
        assert action.message == "Operation cancelled."
        assert manager.state.current_intent is None
        assert manager.state.collected_entities == {}

    def test_gibberish_stays_idle(self, manager):
        """Test that UNCLEAR asks to rephrase without starting an operation."""
        parsed = extract("asdlkj qweh")
        assert parsed.confidence == 0.0

        action = manager.process(parsed)

        assert isinstance(action, Clarify)
        assert action.suggestions
        assert manager.state.current_intent is None
        assert manager.phase == DialoguePhase.IDLE

    def test_transfer_does_not_fill_from_account(self):
        """Test that the remembered account only fills the plain account field."""
        manager = ConversationManager.with_context(last_account="Ledger")

        action = manager.process(extract("transfer"))

        assert isinstance(action, Clarify)
        assert action.field == ASSET
        assert FROM_ACCOUNT not in manager.state.collected_entities
        assert manager.state.missing_entities[0] == ASSET

    def test_context_carries_account_to_next_operation(self, manager):
        """Test that a later trade reuses the account without asking for it."""
        manager.process(extract("I bought 0.1 btc at 95000 on Binance"))
        manager.handle_confirmation("yes")

        action = manager.process(extract("I sold 1 btc at 100000"))

        assert isinstance(action, Confirm)
        assert ("Account", "Binance") in action.details

    def test_slot_filling_converges(self, manager):
        """Test that each valid answer removes one missing entity."""
        manager.process(ParseResult(intent=IntentType.HOLDINGS_MOVE, confidence=0.5))
        answers = ["BTC", "0.5", "Binance", "Ledger"]

        for turn, value in enumerate(answers):
            assert len(manager.state.missing_entities) == len(answers) - turn
            action = answer(manager, value)

        assert isinstance(action, Confirm)
        assert action.command == 'holdings move BTC 0.5 --from "Binance" --to "Ledger"'


# =============================================================================
# Control intents
# =============================================================================


class TestControlIntents:
    """Test intents handled by the conversation itself."""

    def test_help(self, manager):
        """Test help returns static text."""
        action = manager.process(ParseResult(intent=IntentType.HELP, confidence=0.9))
        assert isinstance(action, Respond)
        assert "portfolio" in action.message

    def test_ambiguous(self, manager):
        """Test ambiguous input offers choices."""
        action = manager.process(ParseResult(intent=IntentType.AMBIGUOUS, confidence=0.5))
        assert isinstance(action, Disambiguate)
        assert action.options

    def test_out_of_scope(self, manager):
        """Test off-topic requests are rejected."""
        action = manager.process(ParseResult(intent=IntentType.OUT_OF_SCOPE, confidence=0.9))
        assert isinstance(action, OutOfScope)
        assert action.kind == ActionKind.OUT_OF_SCOPE

    def test_control_intent_keeps_operation(self, manager):
        """Test that asking for help mid-operation does not lose collected values."""
        manager.process(extract("I want to sell some eth"))
        manager.process(ParseResult(intent=IntentType.HELP, confidence=0.9))

        assert manager.state.current_intent == IntentType.TX_SELL
        assert ASSET in manager.state.collected_entities


# =============================================================================
# Confirmation handling
# =============================================================================


class TestConfirmation:
    """Test y/n handling."""

    @pytest.fixture
    def confirming(self, manager):
        manager.process(extract("I bought 0.1 btc at 95000 on Binance"))
        assert manager.phase == DialoguePhase.CONFIRMING
        return manager

    @pytest.mark.parametrize("text", ["y", "YES", "", "  "])
    def test_yes_answers(self, confirming, text):
        """Test accepted affirmative answers, including an empty line."""
        assert isinstance(confirming.handle_confirmation(text), Execute)

    @pytest.mark.parametrize("text", ["n", "No", "cancel", "abort"])
    def test_no_answers(self, confirming, text):
        """Test accepted negative answers."""
        assert isinstance(confirming.handle_confirmation(text), Cancel)
        assert confirming.phase == DialoguePhase.IDLE

    def test_other_text_reasks(self, confirming):
        """Test that anything else re-asks and keeps the pending operation."""
        action = confirming.handle_confirmation("maybe later")

        assert isinstance(action, Clarify)
        assert action.field == "confirmation"
        assert confirming.phase == DialoguePhase.CONFIRMING

    def test_no_pending_operation(self, manager):
        """Test confirming with nothing in progress."""
        action = manager.handle_confirmation("y")
        assert isinstance(action, Cancel)
        assert action.message == "No pending operation."

    def test_confirmation_while_collecting_reasks_field(self, manager):
        """Test that a y/n outside the confirming phase re-asks the missing field."""
        manager.process(extract("I want to sell some eth"))

        action = manager.handle_confirmation("y")

        assert isinstance(action, Clarify)
        assert action.field == QUANTITY

    def test_execute_unreachable_without_confirm(self, manager):
        """Test that completing the last field of a buy yields Confirm, not Execute."""
        manager.process(extract("I bought 0.1 btc on Binance"))
        action = answer(manager, "95k")

        assert isinstance(action, Confirm)
        assert "--price 95000" in action.command


# =============================================================================
# State handling
# =============================================================================


class TestState:
    """Test the dialogue state bookkeeping."""

    def test_new_intent_replaces_operation(self, manager):
        """Test that switching intent drops values from the previous one."""
        manager.process(extract("I want to sell some eth"))
        manager.process(ParseResult(intent=IntentType.HOLDINGS_MOVE, confidence=0.5))

        assert manager.state.current_intent == IntentType.HOLDINGS_MOVE
        assert manager.state.collected_entities == {}

    def test_same_intent_merges_entities(self, manager):
        """Test that newer values overwrite older ones for the same key."""
        manager.process(extract("I want to sell some eth"))
        manager.process(
            ParseResult(
                intent=IntentType.TX_SELL,
                entities={ASSET: Entity.of_string("BTC"), QUANTITY: Entity.of_number(1)},
                confidence=0.8,
            )
        )

        assert manager.state.collected_entities[ASSET].as_string() == "BTC"
        assert manager.state.collected_entities[QUANTITY].as_number() == 1.0

    def test_context_updated_from_entities(self, manager):
        """Test last account and asset tracking."""
        manager.process(extract("sold 2 eth on kraken"))
        assert manager.state.last_account == "Kraken"
        assert manager.state.last_asset == "ETH"

    def test_history_is_capped(self, manager):
        """Test that only the most recent turns are kept."""
        for _ in range(MAX_HISTORY_TURNS):
            manager.process(extract("help"))

        assert len(manager.state.history) == MAX_HISTORY_TURNS
        assert manager.state.history[-1].role == Role.ASSISTANT

    def test_interrupt_clears_operation(self, manager):
        """Test that an interrupt cancels without parsing."""
        manager.process(extract("I want to sell some eth"))
        action = manager.interrupt()

        assert isinstance(action, Cancel)
        assert action.message == "Operation cancelled."
        assert manager.phase == DialoguePhase.IDLE

    def test_interrupt_when_idle(self, manager):
        """Test interrupting with nothing in progress."""
        assert manager.interrupt().message == "No pending operation."

    def test_context_summary(self):
        """Test the operation description used in prompts."""
        state = ConversationState(current_intent=IntentType.TX_BUY)
        state.collected_entities[ASSET] = Entity.of_string("BTC")
        assert state.context_summary() == "intent: tx.buy; collected: asset=BTC"
        assert ConversationState().context_summary() is None

    def test_provide_entity_without_operation(self, manager):
        """Test answering when nothing was asked."""
        action = manager.provide_entity(ASSET, Entity.of_string("BTC"))
        assert isinstance(action, Cancel)


# =============================================================================
# Raw value parsing
# =============================================================================


class TestEntityInput:
    """Test parsing of typed answers."""

    def test_numeric_field(self, manager):
        """Test numeric fields accept separators and a k suffix."""
        assert manager.handle_entity_input("1,250.5", QUANTITY).as_number() == 1250.5
        assert manager.handle_entity_input("1.5k", PRICE).as_number() == 1500.0

    def test_numeric_field_rejects_text(self, manager):
        """Test unparseable numbers return None."""
        assert manager.handle_entity_input("lots", QUANTITY) is None
        assert manager.handle_entity_input("", PRICE) is None

    def test_symbols_field(self, manager):
        """Test symbol lists are split and upper-cased."""
        entity = manager.handle_entity_input("btc, eth sol", SYMBOLS)
        assert entity.as_symbols() == ["BTC", "ETH", "SOL"]

    def test_text_field_verbatim(self, manager):
        """Test other fields keep the text as typed."""
        assert manager.handle_entity_input("  Cold Storage ", ACCOUNT).as_string() == "Cold Storage"
        assert manager.handle_entity_input("   ", ACCOUNT) is None

    def test_handle_entity_input_does_not_change_state(self, manager):
        """Test that parsing an answer leaves the dialogue untouched."""
        manager.process(extract("I want to sell some eth"))
        before = dict(manager.state.collected_entities)

        manager.handle_entity_input("2", QUANTITY)

        assert manager.state.collected_entities == before


class TestParseAmount:
    """Test the typed-number parser."""

    @pytest.mark.parametrize(
        "text,expected",
        [
            ("2", 2.0),
            ("$95,000", 95000.0),
            ("95k", 95000.0),
            ("0.25K", 250.0),
        ],
    )
    def test_valid(self, text, expected):
        """Test accepted number formats."""
        assert parse_amount(text) == expected

    @pytest.mark.parametrize("text", ["", "k", "abc", "1_000", "nan", "inf"])
    def test_invalid(self, text):
        """Test rejected input."""
        assert parse_amount(text) is None
