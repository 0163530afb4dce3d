"""
Chat Service - holds the transcript and sends plain user messages to the selected LLM
"""

import logging
from typing import List, Optional

from mcpdemo.models.message import ChatMessage
from mcpdemo.services.app_settings import AppSettings
from mcpdemo.services.error_service import log_error, create_error_context, ErrorCategory, ErrorSeverity
from mcpdemo.services.llm_service import LLMError, InvalidAPIKeyError

logger = logging.getLogger(__name__)

NO_API_KEY_MESSAGE = "No API key set. Please configure in Settings."


class ChatService:
    """
    Chat transcript plus the send-message flow.

    Failures never raise out of send_message; they are reported through `error`
    the way the chat window shows them.
    """

    def __init__(self, app_settings: Optional[AppSettings] = None):
        self.app_settings = app_settings or AppSettings()
        self.messages: List[ChatMessage] = []
        self.is_processing = False
        self.error: Optional[str] = None

    async def send_message(self, text: str) -> Optional[ChatMessage]:
        """
        Append the user's message and the LLM reply.

        Returns the assistant message, or None when the input was blank or the call failed.
        """
        if not text or not text.strip():
            return None

        logger.debug(f"User sending message: \"{text[:20]}...\"")
        self.messages.append(ChatMessage.user(text))
        return await self._send_to_llm(text)

    async def _send_to_llm(self, prompt: str) -> Optional[ChatMessage]:
        self.is_processing = True
        self.error = None

        try:
            llm_service = self.app_settings.get_current_llm_service()
            if llm_service is None:
                self.error = NO_API_KEY_MESSAGE
                logger.warning("No API key configured for LLM service")
                return None

            response = await llm_service.generate_response(prompt)
            logger.debug("Received response from LLM")
            return self.add_assistant_message(response)

        except LLMError as e:
            category = ErrorCategory.AUTHENTICATION if isinstance(e, InvalidAPIKeyError) else ErrorCategory.LLM_SERVICE
            log_error(e, category, ErrorSeverity.MEDIUM,
                      create_error_context(provider=self.app_settings.current_provider.value))
            self.error = e.user_message
            return None
        except Exception as e:
            log_error(e, ErrorCategory.SYSTEM, ErrorSeverity.HIGH)
            self.error = f"An unexpected error occurred: {e}"
            return None
        finally:
            self.is_processing = False

    def add_assistant_message(self, content: str) -> ChatMessage:
        message = ChatMessage.assistant(content)
        self.messages.append(message)
        return message

    def add_system_message(self, content: str) -> ChatMessage:
        message = ChatMessage.system(content)
        self.messages.append(message)
        return message

    def add_user_message(self, content: str) -> ChatMessage:
        message = ChatMessage.user(content)
        self.messages.append(message)
        return message

    def clear(self) -> None:
        self.messages = []
        self.error = None

    def snapshot(self) -> dict:
        return {
            "messages": [message.model_dump(mode="json") for message in self.messages],
            "error": self.error,
            "is_processing": self.is_processing
        }
