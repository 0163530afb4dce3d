from datetime import datetime, timezone
from pydantic import BaseModel, Field, field_validator
import uuid


VALID_ROLES = ("user", "assistant", "system")


class ChatMessage(BaseModel):
    """A single line of the chat transcript"""
    id: str = Field(default_factory=lambda: str(uuid.uuid4()), description="Unique message identifier")
    content: str = Field(..., description="Message content")
    role: str = Field(default="assistant", description="Message role: 'user', 'assistant' or 'system'")
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc), description="Message timestamp")

    @field_validator('role')
    @classmethod
    def validate_role(cls, v):
        if v not in VALID_ROLES:
            raise ValueError(f'role must be one of: {list(VALID_ROLES)}')
        return v

    @property
    def is_user(self) -> bool:
        return self.role == "user"

    @property
    def is_system(self) -> bool:
        return self.role == "system"

    @classmethod
    def user(cls, content: str) -> "ChatMessage":
        return cls(content=content, role="user")

    @classmethod
    def assistant(cls, content: str) -> "ChatMessage":
        return cls(content=content, role="assistant")

    @classmethod
    def system(cls, content: str) -> "ChatMessage":
        return cls(content=content, role="system")

    class Config:
        json_schema_extra = {
            "example": {
                "id": "123e4567-e89b-12d3-a456-426614174000",
                "content": "Executing tool: executeQuery",
                "role": "system",
                "timestamp": "2025-05-11T12:00:00Z"
            }
        }
