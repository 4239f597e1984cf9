"""AI message schemas."""

from datetime import datetime
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class MessageRole(str, Enum):
    """Author of a conversation message."""

    USER = "user"
    ASSISTANT = "assistant"


class MessageCreate(BaseModel):
    """Schema for storing a message."""

    user_id: UUID
    role: MessageRole
    content: str = Field(..., min_length=1)
    conversation_id: str = Field(..., min_length=1, max_length=100)


class MessageResponse(BaseModel):
    """Stored message."""

    id: UUID
    user_id: UUID
    role: MessageRole
    content: str
    conversation_id: str
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class DeletedMessagesResponse(BaseModel):
    """Result of a bulk delete."""

    message: str
    deleted_count: int
