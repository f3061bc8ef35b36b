"""Schemas package - wire, event and chat models for the gateway."""

from gateway.schemas.chat import (
    Chat,
    ChatDetail,
    ChatSummary,
    CreateChatRequest,
    ErrorResponse,
    Message,
    SendMessageRequest,
    Source,
)
from gateway.schemas.events import ContentEvent, StatusCode, StatusEvent, StreamEvent
from gateway.schemas.rag import (
    CapabilityInfo,
    CapabilityList,
    CapabilityMode,
    Citation,
    ConfigureRequest,
    HistoryMessage,
    PredictRequest,
    RagChunk,
)

__all__ = [
    # RAG wire protocol
    "CapabilityMode",
    "CapabilityList",
    "CapabilityInfo",
    "Citation",
    "HistoryMessage",
    "RagChunk",
    "ConfigureRequest",
    "PredictRequest",
    # Stream events
    "StatusCode",
    "StatusEvent",
    "ContentEvent",
    "StreamEvent",
    # Chats
    "Chat",
    "ChatDetail",
    "ChatSummary",
    "CreateChatRequest",
    "SendMessageRequest",
    "Message",
    "Source",
    "ErrorResponse",
]
