"""Provider routing: pick a provider per utterance and fall back predictably.

The operating mode decides which providers exist at all; a cheap complexity
estimate decides which one to try first in hybrid mode. Parsing never raises:
the worst outcome is an UNCLEAR result with confidence 0.0.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from cryptofolio.ai.conversation import ConversationState
from cryptofolio.ai.intents import ParseResult
from cryptofolio.ai.providers.base import FallbackNotifier, Provider
from cryptofolio.ai.providers.cloud import CloudProvider
from cryptofolio.ai.providers.local import LocalProvider
from cryptofolio.config.settings import Settings, get_settings
from cryptofolio.utils.errors import ConfigurationError

logger = logging.getLogger(__name__)


class AiMode(str, Enum):
    """Which providers may be used."""

    CLOUD = "cloud"
    LOCAL = "local"
    HYBRID = "hybrid"
    DISABLED = "disabled"

    @classmethod
    def parse(cls, value: str) -> "AiMode":
        """Parse a configured mode string, accepting the usual aliases."""
        key = (value or "").strip().lower()
        mode = MODE_ALIASES.get(key)
        if mode is None:
            logger.warning(f"Unknown AI mode {value!r}, using hybrid")
            return cls.HYBRID
        return mode

    @property
    def allows_cloud(self) -> bool:
        return self in (AiMode.CLOUD, AiMode.HYBRID)

    @property
    def allows_local(self) -> bool:
        return self in (AiMode.LOCAL, AiMode.HYBRID)


MODE_ALIASES: dict[str, AiMode] = {
    "cloud": AiMode.CLOUD,
    "online": AiMode.CLOUD,
    "claude": AiMode.CLOUD,
    "local": AiMode.LOCAL,
    "offline": AiMode.LOCAL,
    "ollama": AiMode.LOCAL,
    "hybrid": AiMode.HYBRID,
    "auto": AiMode.HYBRID,
    "disabled": AiMode.DISABLED,
    "off": AiMode.DISABLED,
    "none": AiMode.DISABLED,
}


class Complexity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


# Phrases that suggest several clauses or conditional requests
HIGH_COMPLEXITY_MARKERS = [
    "and then",
    "after that",
    "also",
    "but first",
    "if",
    "when",
    "multiple",
    "all my",
    "everything",
]


def assess_complexity(text: str) -> Complexity:
    """Estimate how much reasoning an utterance needs.

    Three words or fewer is LOW; any multi-clause marker is HIGH; anything
    else is MEDIUM. Markers are matched as substrings.
    """
    if len(text.split()) <= 3:
        return Complexity.LOW
    lower = text.lower()
    if any(marker in lower for marker in HIGH_COMPLEXITY_MARKERS):
        return Complexity.HIGH
    return Complexity.MEDIUM


@dataclass
class ProviderStatus:
    """Diagnostic view of one provider."""

    name: str
    configured: bool
    available: bool
    model: Optional[str] = None
    reason: Optional[str] = None


class AiService:
    """Routes user text to the right provider with a fixed fallback order."""

    def __init__(
        self,
        mode: AiMode = AiMode.HYBRID,
        cloud: Optional[Provider] = None,
        local: Optional[Provider] = None,
        unconfigured: Optional[dict[str, str]] = None,
    ):
        self.mode = mode
        self.cloud = cloud if mode.allows_cloud else None
        self.local = local if mode.allows_local else None
        # provider name -> reason it could not be built
        self.unconfigured = dict(unconfigured or {})

    @classmethod
    def from_settings(
        cls,
        settings: Optional[Settings] = None,
        on_fallback: Optional[FallbackNotifier] = None,
    ) -> "AiService":
        """Build the service, constructing only the providers the mode allows.

        Missing configuration is recorded, not raised, so the host can report
        it once at session start.
        """
        settings = settings or get_settings()
        mode = AiMode.parse(settings.ai.mode)
        cloud: Optional[Provider] = None
        local: Optional[Provider] = None
        unconfigured: dict[str, str] = {}

        if mode.allows_cloud:
            try:
                cloud = CloudProvider.from_settings(settings, on_fallback=on_fallback)
            except ConfigurationError as e:
                logger.info(f"Cloud provider not configured: {e.message}")
                unconfigured[CloudProvider.name] = e.message

        if mode.allows_local:
            local = LocalProvider.from_settings(settings, on_fallback=on_fallback)

        return cls(mode=mode, cloud=cloud, local=local, unconfigured=unconfigured)

    def set_fallback_notifier(self, notifier: Optional[FallbackNotifier]) -> None:
        """Route provider fallback notices to the given callback."""
        for provider in (self.cloud, self.local):
            if provider is not None:
                provider.on_fallback = notifier

    def select_provider(self, complexity: Complexity) -> Optional[Provider]:
        """Pick the preferred provider for this complexity, if any is configured."""
        if self.mode == AiMode.DISABLED:
            return None
        if self.mode == AiMode.CLOUD:
            return self.cloud
        if self.mode == AiMode.LOCAL:
            return self.local

        # Hybrid: local is cheaper and faster, cloud reasons better
        if complexity == Complexity.HIGH:
            return self.cloud or self.local
        return self.local or self.cloud

    def parse_input(self, text: str, context: Optional[ConversationState] = None) -> ParseResult:
        """Parse user text with the best available provider.

        Args:
            text: What the user typed
            context: Current dialogue state

        Returns:
            ParseResult; UNCLEAR with confidence 0.0 if no provider is configured
        """
        if self.mode == AiMode.DISABLED:
            logger.debug("AI disabled, not parsing natural language")
            return ParseResult.unclear(text)

        complexity = assess_complexity(text)
        provider = self.select_provider(complexity)
        if provider is None:
            # Fixed fallback order
            provider = self.local or self.cloud
        if provider is None:
            logger.debug("No AI provider configured")
            return ParseResult.unclear(text)

        logger.debug(f"Routing {complexity.value} complexity input to {provider.name}")
        result = provider.parse(text, context)
        logger.debug(f"{provider.name} -> {result.intent.value} ({result.confidence:.2f})")
        return result

    @property
    def active_label(self) -> str:
        """Label of the provider used for ordinary requests."""
        provider = self.select_provider(Complexity.MEDIUM) or self.local or self.cloud
        if self.mode == AiMode.DISABLED:
            return "disabled"
        if provider is None:
            return "none"
        return f"{provider.name} ({provider.model})"

    def status(self) -> list[ProviderStatus]:
        """Report every provider and whether it can be used right now."""
        statuses = []
        for name, provider, allowed in (
            (CloudProvider.name, self.cloud, self.mode.allows_cloud),
            (LocalProvider.name, self.local, self.mode.allows_local),
        ):
            if provider is not None:
                available = provider.health()
                statuses.append(
                    ProviderStatus(
                        name=name,
                        configured=True,
                        available=available,
                        model=provider.model,
                        reason=None if available else "health check failed",
                    )
                )
            else:
                reason = self.unconfigured.get(name) or (
                    "disabled by mode" if not allowed else "not configured"
                )
                statuses.append(
                    ProviderStatus(name=name, configured=False, available=False, reason=reason)
                )
        return statuses
