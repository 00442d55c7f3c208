"""Local model provider (Ollama HTTP API)."""

import logging
import os
from typing import Optional

import httpx

from cryptofolio.ai.conversation import ConversationState
from cryptofolio.ai.intents import ParseResult
from cryptofolio.ai.prompts import build_local_prompt
from cryptofolio.ai.providers.base import FallbackNotifier, Provider, parse_model_output
from cryptofolio.config.settings import Settings
from cryptofolio.utils.errors import ProviderError, classify_error

logger = logging.getLogger(__name__)

# Used when the model leaves out "confidence"
DEFAULT_CONFIDENCE = 0.7

# Health probes should fail fast even if generation may take longer
HEALTH_TIMEOUT = 2.0


class LocalProvider(Provider):
    """Parses input with a model served by a local Ollama instance."""

    name = "ollama"

    def __init__(
        self,
        base_url: str = "http://localhost:11434",
        model: str = "llama3.2:3b",
        timeout: float = 8.0,
        max_tokens: int = 256,
        temperature: float = 0.1,
        on_fallback: Optional[FallbackNotifier] = None,
        client: Optional[httpx.Client] = None,
    ):
        super().__init__(model=model, on_fallback=on_fallback)
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.max_tokens = max_tokens
        self.temperature = temperature
        self._client = client

    @classmethod
    def from_settings(
        cls, settings: Settings, on_fallback: Optional[FallbackNotifier] = None
    ) -> "LocalProvider":
        """Build the provider from settings; OLLAMA_HOST overrides the configured URL."""
        ai = settings.ai
        return cls(
            base_url=os.environ.get("OLLAMA_HOST") or ai.ollama_url,
            model=ai.local_model,
            timeout=ai.local_timeout,
            max_tokens=ai.local_max_tokens,
            temperature=ai.temperature,
            on_fallback=on_fallback,
        )

    @property
    def client(self) -> httpx.Client:
        """Get or create the HTTP client."""
        if self._client is None:
            self._client = httpx.Client(timeout=self.timeout)
        return self._client

    def health(self) -> bool:
        """Check that Ollama answers on /api/tags."""
        try:
            response = self.client.get(f"{self.base_url}/api/tags", timeout=HEALTH_TIMEOUT)
            return response.status_code == 200
        except httpx.HTTPError as e:
            logger.debug(f"Ollama health check failed: {type(e).__name__}: {e}")
            return False

    def parse(self, text: str, context: Optional[ConversationState] = None) -> ParseResult:
        """Interpret text with the local model, degrading to rules on any failure."""
        if not self.health():
            return self.fallback(text, f"Ollama not running at {self.base_url}")

        payload = {
            "model": self.model,
            "prompt": build_local_prompt(text, context),
            "stream": False,
            "options": {
                "temperature": self.temperature,
                "num_predict": self.max_tokens,
            },
        }

        try:
            response = self.client.post(f"{self.base_url}/api/generate", json=payload)
            response.raise_for_status()
            data = response.json()
            content = data.get("response", "") if isinstance(data, dict) else ""
            if not content or not content.strip():
                raise ProviderError("Ollama returned an empty response")

            logger.debug(f"Ollama raw response (first 300 chars): {content[:300]}")
            return parse_model_output(content, text, DEFAULT_CONFIDENCE)

        except (httpx.HTTPError, ProviderError, ValueError) as e:
            error = classify_error(e)
            return self.fallback(text, f"Ollama request failed: {error.message}")
