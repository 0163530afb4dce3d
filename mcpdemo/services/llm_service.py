"""
LLM Service for sending prompts to a hosted language model.
Supports Anthropic (default) and OpenAI providers behind one small interface.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Callable, Optional
import anthropic
import openai

from mcpdemo.config import settings

logger = logging.getLogger(__name__)

KeyLookup = Callable[[], Optional[str]]


class LLMProvider(Enum):
    ANTHROPIC = "anthropic"
    OPENAI = "openai"


class LLMError(Exception):
    """Base exception for LLM service errors"""
    user_message = "An unexpected error occurred."


class LLMAPIError(LLMError):
    """The provider answered with a non-success status"""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    @property
    def user_message(self) -> str:
        return f"API Error: {self.message}"


class LLMNetworkError(LLMError):
    """The provider could not be reached"""
    user_message = "Network error. Please check your connection."


class LLMDecodingError(LLMError):
    """The provider response did not contain usable text"""
    user_message = "Error parsing the response. Please try again."


class InvalidAPIKeyError(LLMError):
    """Missing or rejected API key"""
    user_message = "Invalid API key. Please check your settings."


class LLMService(ABC):
    """A provider that turns a prompt into a reply"""

    provider: LLMProvider

    def __init__(self,
                 api_key: str,
                 model: str,
                 max_tokens: Optional[int] = None,
                 timeout: Optional[int] = None,
                 fallback_key: Optional[KeyLookup] = None):
        self.api_key = api_key or ""
        self.model = model
        self.max_tokens = max_tokens or settings.llm_max_tokens
        self.timeout = timeout or settings.llm_timeout
        self.fallback_key = fallback_key
        self._client = None
        self._client_key: Optional[str] = None

    def resolve_api_key(self) -> str:
        """Return the configured key, falling back to the settings store when empty"""
        if self.api_key:
            return self.api_key

        logger.error(f"API key is empty for {self.provider.value} - trying app settings")
        if self.fallback_key:
            key = self.fallback_key()
            if key:
                logger.info("Got API key from app settings")
                return key

        logger.error("No API key available")
        raise InvalidAPIKeyError("No API key configured")

    def _get_client(self, api_key: str):
        if self._client is None or self._client_key != api_key:
            self._client = self._create_client(api_key)
            self._client_key = api_key
        return self._client

    async def generate_response(self, prompt: str) -> str:
        """
        Send a single user prompt to the provider and return the reply text.

        Raises:
            InvalidAPIKeyError: no key, or the provider rejected it
            LLMAPIError: any other non-success HTTP status
            LLMNetworkError: transport failure or timeout
            LLMDecodingError: reply without text
        """
        logger.info(f"Generating response with {self.provider.value}")
        logger.info(f"Using model: {self.model}")

        api_key = self.resolve_api_key()
        logger.info(f"API key length: {len(api_key)}")

        client = self._get_client(api_key)
        try:
            response = await asyncio.wait_for(self._send(client, prompt), timeout=self.timeout)
        except LLMError:
            raise
        except asyncio.TimeoutError:
            logger.error(f"LLM request timed out after {self.timeout} seconds")
            raise LLMNetworkError(f"Request timed out after {self.timeout} seconds")
        except Exception as e:
            raise self._translate_error(e) from e

        return self._extract_text(response)

    @staticmethod
    def _status_error(error) -> LLMAPIError:
        """Non-success status with the raw response body, as the provider sent it"""
        return LLMAPIError(f"HTTP {error.status_code}: {error.response.text}")

    @abstractmethod
    def _create_client(self, api_key: str):
        ...

    @abstractmethod
    async def _send(self, client, prompt: str) -> Any:
        ...

    @abstractmethod
    def _extract_text(self, response: Any) -> str:
        ...

    @abstractmethod
    def _translate_error(self, error: Exception) -> LLMError:
        ...

    def __str__(self) -> str:
        return f"{type(self).__name__}(model={self.model})"


class AnthropicService(LLMService):
    """Anthropic Messages API"""

    provider = LLMProvider.ANTHROPIC

    def __init__(self, api_key: str, model: Optional[str] = None, **kwargs):
        super().__init__(api_key, model or settings.anthropic_model, **kwargs)

    def _create_client(self, api_key: str):
        return anthropic.AsyncAnthropic(api_key=api_key, timeout=self.timeout, max_retries=0)

    async def _send(self, client, prompt: str):
        return await client.messages.create(
            model=self.model,
            max_tokens=self.max_tokens,
            messages=[{"role": "user", "content": prompt}]
        )

    def _extract_text(self, response) -> str:
        for block in getattr(response, "content", None) or []:
            text = getattr(block, "text", None)
            if isinstance(text, str):
                return text
        logger.error(f"Unexpected response format: {response}")
        raise LLMDecodingError("Response contained no text content")

    def _translate_error(self, error: Exception) -> LLMError:
        if isinstance(error, anthropic.AuthenticationError):
            return InvalidAPIKeyError(str(error))
        if isinstance(error, anthropic.APIStatusError):
            return self._status_error(error)
        logger.error(f"Request error: {error}")
        return LLMNetworkError(str(error))


class OpenAIService(LLMService):
    """OpenAI Chat Completions API"""

    provider = LLMProvider.OPENAI

    def __init__(self, api_key: str, model: Optional[str] = None, **kwargs):
        super().__init__(api_key, model or settings.openai_model, **kwargs)

    def _create_client(self, api_key: str):
        return openai.AsyncOpenAI(api_key=api_key, timeout=self.timeout, max_retries=0)

    async def _send(self, client, prompt: str):
        return await client.chat.completions.create(
            model=self.model,
            max_tokens=self.max_tokens,
            messages=[{"role": "user", "content": prompt}]
        )

    def _extract_text(self, response) -> str:
        choices = getattr(response, "choices", None) or []
        if choices:
            content = getattr(choices[0].message, "content", None)
            if isinstance(content, str):
                return content
        logger.error(f"Unexpected response format: {response}")
        raise LLMDecodingError("Response contained no message content")

    def _translate_error(self, error: Exception) -> LLMError:
        if isinstance(error, openai.AuthenticationError):
            return InvalidAPIKeyError(str(error))
        if isinstance(error, openai.APIStatusError):
            return self._status_error(error)
        logger.error(f"Request error: {error}")
        return LLMNetworkError(str(error))


def create_llm_service(provider: LLMProvider,
                       api_key: str,
                       model: Optional[str] = None,
                       **kwargs) -> LLMService:
    """Build the service for a provider"""
    if provider == LLMProvider.ANTHROPIC:
        return AnthropicService(api_key, model=model, **kwargs)
    elif provider == LLMProvider.OPENAI:
        return OpenAIService(api_key, model=model, **kwargs)
    raise ValueError(f"Unsupported provider: {provider}")
