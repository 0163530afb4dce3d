"""
Test data helpers shared by several test modules
"""

from types import SimpleNamespace
from unittest.mock import AsyncMock, Mock


DOC_SERVER_URL = "http://localhost:3000"
DB_SERVER_URL = "http://localhost:3001"


def make_llm_service(*replies):
    """Fake LLM service answering with the given replies (or raising given exceptions) in order"""
    service = Mock()
    service.generate_response = AsyncMock(side_effect=list(replies))
    return service


def anthropic_message(text):
    return SimpleNamespace(content=[SimpleNamespace(type="text", text=text)], stop_reason="end_turn")


def openai_completion(text):
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=text), finish_reason="stop")])


def employee_rows():
    return [
        {"id": 1, "name": "John Smith", "department": "Engineering"},
        {"id": 9, "name": "Thomas Anderson", "department": "Engineering"},
    ]
