"""Provider contract and shared model-output parsing."""

import json
import logging
import math
import re
from abc import ABC, abstractmethod
from typing import Any, Callable, Optional

from cryptofolio.ai.conversation import ConversationState
from cryptofolio.ai.extractor import extract
from cryptofolio.ai.intents import Entity, ParseResult, map_intent
from cryptofolio.utils.errors import ProviderError

logger = logging.getLogger(__name__)

# Called with a human-readable reason whenever a provider degrades to rules
FallbackNotifier = Callable[[str], None]


class Provider(ABC):
    """A natural-language interpreter.

    parse() never raises: network errors, timeouts and unusable model output
    all degrade to the rule-based extractor within the same call.
    """

    name: str = "provider"

    def __init__(self, model: str = "", on_fallback: Optional[FallbackNotifier] = None):
        self.model = model
        self.on_fallback = on_fallback

    @abstractmethod
    def parse(self, text: str, context: Optional[ConversationState] = None) -> ParseResult:
        """Interpret text in the given dialogue context."""

    @abstractmethod
    def health(self) -> bool:
        """Whether the provider can currently be used."""

    def fallback(self, text: str, reason: str) -> ParseResult:
        """Parse with the rule-based extractor after a provider failure."""
        logger.info(f"{self.name} unavailable, falling back to pattern matching: {reason}")
        if self.on_fallback is not None:
            self.on_fallback(reason)
        return extract(text)


def extract_json(content: str) -> str:
    """Cut the JSON object out of a model reply.

    Handles markdown code fences and chatter around the object.

    Raises:
        ProviderError: if the reply contains no object
    """
    if "```" in content:
        match = re.search(r"```(?:json)?\s*([\s\S]*?)```", content)
        if match:
            content = match.group(1)

    start = content.find("{")
    end = content.rfind("}")
    if start == -1 or end <= start:
        raise ProviderError(f"No JSON object in model output: {content[:80]!r}")
    return content[start : end + 1]


def convert_entities(raw: Any) -> dict[str, Entity]:
    """Convert JSON entity values to Entities, dropping unsupported types."""
    entities: dict[str, Entity] = {}
    if not isinstance(raw, dict):
        return entities

    for key, value in raw.items():
        # bool is an int subclass, check it first
        if isinstance(value, bool):
            entities[key] = Entity.of_bool(value)
        elif isinstance(value, (int, float)):
            try:
                entities[key] = Entity.of_number(float(value))
            except OverflowError:
                continue
        elif isinstance(value, str):
            if value.strip():
                entities[key] = Entity.of_string(value)
        elif isinstance(value, list):
            entities[key] = Entity.of_symbols(str(v) for v in value if isinstance(v, str))
    return entities


def parse_model_output(content: str, raw_input: str, default_confidence: float) -> ParseResult:
    """Turn a model's JSON reply into a ParseResult.

    Args:
        content: Model reply text
        raw_input: The user's original text
        default_confidence: Used when the model omits a confidence

    Raises:
        ProviderError: if the reply is not a usable JSON object
    """
    try:
        data = json.loads(extract_json(content))
    except json.JSONDecodeError as e:
        raise ProviderError(f"Invalid JSON from model: {e}", original=e) from e

    if not isinstance(data, dict) or not isinstance(data.get("intent"), str):
        raise ProviderError("Model output has no intent")

    missing = data.get("missing") or []
    if not isinstance(missing, list):
        missing = []

    confidence = data.get("confidence")
    if (
        isinstance(confidence, bool)
        or not isinstance(confidence, (int, float))
        or not math.isfinite(confidence)
    ):
        confidence = default_confidence
    confidence = min(max(float(confidence), 0.0), 1.0)

    result = ParseResult(
        intent=map_intent(data["intent"]),
        entities=convert_entities(data.get("entities")),
        missing=[str(m) for m in missing if isinstance(m, str)],
        confidence=confidence,
        raw_input=raw_input,
    )
    logger.debug(f"Model parse: {result}")
    return result
