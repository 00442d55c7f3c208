"""Cloud model provider (Claude through the OpenAI-compatible API)."""

import logging
from typing import Optional

from openai import OpenAI, OpenAIError

from cryptofolio.ai.conversation import ConversationState
from cryptofolio.ai.intents import ParseResult
from cryptofolio.ai.prompts import build_system_prompt
from cryptofolio.ai.providers.base import FallbackNotifier, Provider, parse_model_output
from cryptofolio.config.settings import Settings
from cryptofolio.security.credentials import CredentialManager
from cryptofolio.utils.errors import ConfigurationError, ProviderError, classify_error

logger = logging.getLogger(__name__)

# Used when the model leaves out "confidence"
DEFAULT_CONFIDENCE = 0.8


class CloudProvider(Provider):
    """Parses input with a hosted Claude model."""

    name = "claude"

    def __init__(
        self,
        api_key: Optional[str],
        model: str = "claude-sonnet-4-20250514",
        base_url: str = "https://api.anthropic.com/v1/",
        timeout: float = 15.0,
        max_tokens: int = 512,
        temperature: float = 0.1,
        on_fallback: Optional[FallbackNotifier] = None,
        client: Optional[OpenAI] = None,
    ):
        super().__init__(model=model, on_fallback=on_fallback)
        self.api_key = api_key
        self.base_url = base_url
        self.timeout = timeout
        self.max_tokens = max_tokens
        self.temperature = temperature
        self._client = client

    @classmethod
    def from_settings(
        cls, settings: Settings, on_fallback: Optional[FallbackNotifier] = None
    ) -> "CloudProvider":
        """Build the provider from settings.

        Raises:
            ConfigurationError: if no API key is configured anywhere
        """
        ai = settings.ai
        api_key = ai.claude_api_key or CredentialManager.get_anthropic_key()
        if not api_key:
            raise ConfigurationError(
                "No Anthropic API key configured",
                suggestion="Run 'cryptofolio setup' or set ANTHROPIC_API_KEY",
            )
        return cls(
            api_key=api_key,
            model=ai.claude_model,
            base_url=ai.cloud_base_url,
            timeout=ai.cloud_timeout,
            max_tokens=ai.cloud_max_tokens,
            temperature=ai.temperature,
            on_fallback=on_fallback,
        )

    def _get_client(self) -> OpenAI:
        """Get or create the API client."""
        if self._client is None:
            # Failures degrade to rules on this turn; no retries
            self._client = OpenAI(
                api_key=self.api_key,
                base_url=self.base_url,
                timeout=self.timeout,
                max_retries=0,
            )
        return self._client

    def health(self) -> bool:
        return bool(self.api_key)

    def parse(self, text: str, context: Optional[ConversationState] = None) -> ParseResult:
        """Interpret text with Claude, degrading to rules on any failure.

        Args:
            text: What the user typed
            context: Current dialogue state, used for short-term context

        Returns:
            ParseResult from the model, or from the rule-based extractor
        """
        if not self.health():
            return self.fallback(text, "Claude API key not configured")

        try:
            response = self._get_client().chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": build_system_prompt(context)},
                    {"role": "user", "content": text},
                ],
                temperature=self.temperature,
                max_tokens=self.max_tokens,
            )
            if not response.choices:
                raise ProviderError("Claude returned no choices")
            content = response.choices[0].message.content
            if not content or not content.strip():
                raise ProviderError("Claude returned empty content")

            logger.debug(f"Claude raw response (first 300 chars): {content[:300]}")
            return parse_model_output(content, text, DEFAULT_CONFIDENCE)

        except (OpenAIError, ProviderError, ValueError) as e:
            error = classify_error(e)
            return self.fallback(text, f"Claude request failed: {error.message}")
