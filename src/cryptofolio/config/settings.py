"""Configuration management for cryptofolio using Pydantic Settings."""

from functools import lru_cache
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field
from pydantic.fields import FieldInfo
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)


class AISettings(BaseModel):
    """Natural-language provider configuration."""

    model_config = ConfigDict(extra="ignore")

    mode: str = "hybrid"  # cloud | local | hybrid | disabled (aliases accepted)
    temperature: float = 0.1

    # Cloud model (Claude via OpenAI-compatible endpoint)
    claude_api_key: Optional[str] = None
    claude_model: str = "claude-sonnet-4-20250514"
    cloud_base_url: str = "https://api.anthropic.com/v1/"
    cloud_timeout: float = 15.0
    cloud_max_tokens: int = 512

    # Local model (Ollama)
    ollama_url: str = "http://localhost:11434"
    local_model: str = "llama3.2:3b"
    local_timeout: float = 8.0
    local_max_tokens: int = 256


class UISettings(BaseModel):
    """UI configuration."""

    model_config = ConfigDict(extra="ignore")

    show_confidence: bool = False


class Settings(BaseSettings):
    """Main cryptofolio configuration.

    Configuration is loaded from:
    1. Environment variables (CRYPTOFOLIO_* prefix)
    2. Config file (~/.cryptofolio/config.yml)
    3. Default values
    """

    model_config = SettingsConfigDict(
        env_prefix="CRYPTOFOLIO_",
        env_nested_delimiter="__",
        extra="ignore",  # Ignore extra fields in config file
    )

    default_account: Optional[str] = Field(
        default=None, description="Account assumed when none is mentioned"
    )

    # Nested settings
    ai: AISettings = Field(default_factory=AISettings)
    ui: UISettings = Field(default_factory=UISettings)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        # Environment outranks the config file
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            ConfigFileSettingsSource(settings_cls),
            file_secret_settings,
        )


def get_config_path() -> Path:
    """Get the config file path."""
    return Path.home() / ".cryptofolio" / "config.yml"


def load_config_file() -> dict:
    """Load configuration from YAML file if it exists."""
    config_path = get_config_path()
    if config_path.exists():
        with open(config_path) as f:
            return yaml.safe_load(f) or {}
    return {}


class ConfigFileSettingsSource(PydanticBaseSettingsSource):
    """Settings source backed by ~/.cryptofolio/config.yml."""

    def get_field_value(self, field: FieldInfo, field_name: str) -> tuple[Any, str, bool]:
        return load_config_file().get(field_name), field_name, False

    def __call__(self) -> dict[str, Any]:
        return load_config_file()


def save_config_file(config: dict) -> None:
    """Save configuration to YAML file."""
    config_path = get_config_path()
    config_path.parent.mkdir(parents=True, exist_ok=True)
    with open(config_path, "w") as f:
        yaml.safe_dump(config, f, default_flow_style=False)


def create_default_config() -> None:
    """Create a default config file if it doesn't exist."""
    config_path = get_config_path()
    if not config_path.exists():
        default_config = {
            "ai": {
                "mode": "hybrid",
                "claude_model": "claude-sonnet-4-20250514",
                "ollama_url": "http://localhost:11434",
                "local_model": "llama3.2:3b",
                "local_timeout": 8.0,
                "cloud_timeout": 15.0,
            },
            "ui": {
                "show_confidence": False,
            },
        }
        save_config_file(default_config)


@lru_cache
def get_settings() -> Settings:
    """Get the application settings (cached).

    Loads from environment variables and config file.
    """
    return Settings()


def reset_settings_cache() -> None:
    """Clear the settings cache to reload configuration."""
    get_settings.cache_clear()
