"""Chat and message schemas for the gateway API and store."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

Role = Literal["user", "assistant", "system"]


class Source(BaseModel):
    """Citation fields persisted with an assistant message."""

    title: str
    url: str = ""


class Chat(BaseModel):
    """A conversation owned by one user."""

    id: str
    user_id: str
    title: str
    created_at: datetime
    updated_at: datetime


class Message(BaseModel):
    """A persisted chat message."""

    id: str
    chat_id: str
    role: Role
    content: str
    sources: list[Source] | None = None
    created_at: datetime


class ChatSummary(BaseModel):
    """Chat list entry with a preview of the latest message."""

    id: str
    title: str
    created_at: datetime
    updated_at: datetime
    last_message: str | None = None


class ChatDetail(Chat):
    """A chat with its full message history."""

    messages: list[Message] = Field(default_factory=list)


class CreateChatRequest(BaseModel):
    """Request to create a chat."""

    title: str = Field(..., max_length=255)


class SendMessageRequest(BaseModel):
    """Request to run one chat turn."""

    content: str = Field(..., min_length=1, description="The user's prompt")
    title: str | None = Field(default=None, max_length=255, description="New chat title")
    language: str | None = Field(default=None, description="Explicit language")
    domain: str | None = Field(default=None, description="Explicit domain")
    demo: bool = Field(default=False, description="Serve the turn from the demo provider")


class ErrorResponse(BaseModel):
    """Error response from the gateway."""

    error: str = Field(..., description="Error type")
    message: str = Field(..., description="Error message")
    details: dict | None = Field(default=None, description="Additional error details")
