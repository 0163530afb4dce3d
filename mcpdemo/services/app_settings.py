"""
User-facing settings: which LLM provider to use and the API key for each.
Keys come from the environment (or are set at runtime) and are never written to disk;
only the provider preference is persisted.
"""

import json
import logging
from pathlib import Path
from typing import Optional

from mcpdemo.config import Settings, settings as default_settings
from mcpdemo.services.llm_service import LLMProvider, LLMService, create_llm_service

logger = logging.getLogger(__name__)

PROVIDER_KEY = "currentProvider"


class AppSettingsError(Exception):
    """Raised when preferences cannot be read or written"""
    pass


class AppSettings:
    """Provider choice and API keys"""

    def __init__(self, config: Optional[Settings] = None, preferences_path: Optional[str] = None):
        self.config = config or default_settings
        self.preferences_path = Path(preferences_path or self.config.preferences_path)
        self.current_provider = self._parse_provider(self.config.llm_provider) or LLMProvider.ANTHROPIC
        self.anthropic_api_key = self.config.anthropic_api_key or ""
        self.openai_api_key = self.config.openai_api_key or ""
        self.load_settings()

    @staticmethod
    def _parse_provider(value: Optional[str]) -> Optional[LLMProvider]:
        try:
            return LLMProvider(value)
        except ValueError:
            return None

    def load_settings(self) -> None:
        """Restore the provider preference, keeping the current one when nothing valid is stored"""
        if not self.preferences_path.exists():
            logger.debug(f"No preferences file at {self.preferences_path}, using default: {self.current_provider.value}")
            return

        try:
            with open(self.preferences_path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Could not read preferences from {self.preferences_path}: {e}")
            return

        provider = self._parse_provider(data.get(PROVIDER_KEY)) if isinstance(data, dict) else None
        if provider:
            self.current_provider = provider
            logger.info(f"Loaded provider preference: {provider.value}")
        else:
            logger.info(f"No provider preference found, using default: {self.current_provider.value}")

    def save_settings(self) -> None:
        """Persist the provider preference"""
        try:
            self.preferences_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.preferences_path, 'w', encoding='utf-8') as f:
                json.dump({PROVIDER_KEY: self.current_provider.value}, f, indent=2)
        except OSError as e:
            raise AppSettingsError(f"Failed to save preferences to {self.preferences_path}: {e}")
        logger.info(f"Saved provider preference: {self.current_provider.value}")

    def get_api_key(self, provider: LLMProvider) -> Optional[str]:
        key = self.anthropic_api_key if provider == LLMProvider.ANTHROPIC else self.openai_api_key
        return key or None

    def set_api_key(self, provider: LLMProvider, api_key: str) -> None:
        api_key = (api_key or "").strip()
        if provider == LLMProvider.ANTHROPIC:
            self.anthropic_api_key = api_key
        else:
            self.openai_api_key = api_key
        logger.info(f"Updated {provider.value} API key (length {len(api_key)})")

    def has_api_key(self, provider: LLMProvider) -> bool:
        return bool(self.get_api_key(provider))

    def get_current_llm_service(self) -> Optional[LLMService]:
        """Service for the selected provider, or None when its key is not set"""
        provider = self.current_provider
        api_key = self.get_api_key(provider)
        if not api_key:
            logger.warning(f"{provider.value} API key not set")
            return None

        model = self.config.anthropic_model if provider == LLMProvider.ANTHROPIC else self.config.openai_model
        return create_llm_service(
            provider,
            api_key,
            model=model,
            max_tokens=self.config.llm_max_tokens,
            timeout=self.config.llm_timeout,
            fallback_key=lambda: self.get_api_key(provider),
        )

    def to_dict(self) -> dict:
        return {
            "provider": self.current_provider.value,
            "anthropic_api_key_set": self.has_api_key(LLMProvider.ANTHROPIC),
            "openai_api_key_set": self.has_api_key(LLMProvider.OPENAI),
        }

    def __repr__(self) -> str:
        return f"AppSettings(provider='{self.current_provider.value}', preferences='{self.preferences_path}')"
