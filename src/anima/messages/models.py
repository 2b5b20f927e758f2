"""Data models for committed conversation messages."""

from datetime import datetime, timezone
from enum import Enum
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field


class MessageRole(str, Enum):
    """Author of a committed message."""

    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM_ERROR = "system-error"


class Message(BaseModel):
    """A finalized message. Immutable once committed."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: uuid4().hex, description="Opaque identifier")
    role: MessageRole = Field(description="Who produced the message")
    text: str = Field(description="Full message text")
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def is_error(self) -> bool:
        return self.role is MessageRole.SYSTEM_ERROR
