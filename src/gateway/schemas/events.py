"""Stream events relayed to callers during a chat turn."""

from enum import Enum
from typing import Literal

from pydantic import BaseModel, Field

from gateway.schemas.rag import Citation


class StatusCode(str, Enum):
    """Connection status reported inside a chat-turn stream."""

    RETRYING = "RETRYING"
    SUCCESS = "SUCCESS"
    ERROR = "ERROR"


class StatusEvent(BaseModel):
    """Progress of the backend connection."""

    type: Literal["status"] = "status"
    code: StatusCode
    attempt: int | None = Field(default=None, description="Failed attempt number (RETRYING)")
    message: str | None = Field(default=None, description="Error description (ERROR)")

    @classmethod
    def retrying(cls, attempt: int) -> "StatusEvent":
        return cls(code=StatusCode.RETRYING, attempt=attempt)

    @classmethod
    def success(cls) -> "StatusEvent":
        return cls(code=StatusCode.SUCCESS)

    @classmethod
    def error(cls, message: str) -> "StatusEvent":
        return cls(code=StatusCode.ERROR, message=message)

    def to_json(self) -> str:
        return self.model_dump_json(exclude_none=True)


class ContentEvent(BaseModel):
    """An incremental piece of the assistant answer."""

    type: Literal["content"] = "content"
    delta: str = ""
    citations: list[Citation] | None = None

    def to_json(self) -> str:
        return self.model_dump_json()


StreamEvent = StatusEvent | ContentEvent
