"""Natural-language providers: cloud model, local model, and their shared contract."""

from cryptofolio.ai.providers.base import FallbackNotifier, Provider
from cryptofolio.ai.providers.cloud import CloudProvider
from cryptofolio.ai.providers.local import LocalProvider

__all__ = ["Provider", "FallbackNotifier", "CloudProvider", "LocalProvider"]
