"""Conversational intent resolution for cryptofolio."""

from cryptofolio.ai.conversation import ConversationManager, ConversationState, DialoguePhase
from cryptofolio.ai.extractor import RuleBasedExtractor, extract
from cryptofolio.ai.intents import Entity, IntentType, ParseResult
from cryptofolio.ai.synthesizer import synthesize

__all__ = [
    "ConversationManager",
    "ConversationState",
    "DialoguePhase",
    "Entity",
    "IntentType",
    "ParseResult",
    "RuleBasedExtractor",
    "extract",
    "synthesize",
]
