"""Chat endpoints for the gateway API."""

from collections.abc import AsyncIterator
from typing import Annotated

from fastapi import APIRouter, Depends, Response, status
from fastapi.responses import StreamingResponse

from gateway.api.dependencies import get_current_user, get_orchestrator, get_store
from gateway.core.errors import NotFoundError
from gateway.observability import get_logger
from gateway.observability.constants import LogEvents
from gateway.schemas import (
    Chat,
    ChatDetail,
    ChatSummary,
    CreateChatRequest,
    ErrorResponse,
    SendMessageRequest,
    StatusEvent,
    StreamEvent,
)
from gateway.services import ChatOrchestrator
from gateway.store import ChatStore

logger = get_logger(__name__)

router = APIRouter(
    prefix="/chats",
    tags=["chats"],
    responses={401: {"model": ErrorResponse, "description": "Not authenticated"}},
)


def _sse_event(event: StreamEvent) -> str:
    """Format a stream event as one SSE frame."""
    return f"data: {event.to_json()}\n\n"


@router.get("", response_model=list[ChatSummary])
async def list_chats(
    user_id: Annotated[str, Depends(get_current_user)],
    store: Annotated[ChatStore, Depends(get_store)],
) -> list[ChatSummary]:
    """List the caller's chats, newest first."""
    return await store.list_chats(user_id)


@router.post("", response_model=Chat, status_code=status.HTTP_201_CREATED)
async def create_chat(
    request: CreateChatRequest,
    user_id: Annotated[str, Depends(get_current_user)],
    store: Annotated[ChatStore, Depends(get_store)],
) -> Chat:
    return await store.create_chat(user_id, request.title)


@router.get(
    "/{chat_id}",
    response_model=ChatDetail,
    responses={404: {"model": ErrorResponse, "description": "Chat not found"}},
)
async def get_chat(
    chat_id: str,
    user_id: Annotated[str, Depends(get_current_user)],
    store: Annotated[ChatStore, Depends(get_store)],
) -> ChatDetail:
    """Get one chat with its full message history."""
    chat = await store.find_chat(chat_id, user_id)
    if chat is None:
        raise NotFoundError("Chat not found", detail={"chat_id": chat_id})

    messages = await store.list_history(chat_id)
    return ChatDetail(**chat.model_dump(), messages=messages)


@router.delete(
    "/{chat_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={404: {"model": ErrorResponse, "description": "Chat not found"}},
)
async def delete_chat(
    chat_id: str,
    user_id: Annotated[str, Depends(get_current_user)],
    store: Annotated[ChatStore, Depends(get_store)],
) -> Response:
    if not await store.delete_chat(chat_id, user_id):
        raise NotFoundError("Chat not found", detail={"chat_id": chat_id})
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{chat_id}/messages")
async def send_message(
    chat_id: str,
    request: SendMessageRequest,
    user_id: Annotated[str, Depends(get_current_user)],
    orchestrator: Annotated[ChatOrchestrator, Depends(get_orchestrator)],
) -> StreamingResponse:
    """
    Run one chat turn and stream it as Server-Sent Events.

    Every frame is ``data: <json>\\n\\n`` carrying one of:

    - `{"type": "status", "code": "RETRYING", "attempt": N}` - attempt N failed
    - `{"type": "status", "code": "SUCCESS"}` - the backend stream is open
    - `{"type": "status", "code": "ERROR", "message": "..."}` - terminal failure
    - `{"type": "content", "delta": "...", "citations": [...] | null}` - answer text
    """

    async def event_stream() -> AsyncIterator[str]:
        try:
            async for event in orchestrator.send_message(
                user_id=user_id,
                chat_id=chat_id,
                content=request.content,
                language=request.language,
                domain=request.domain,
                demo=request.demo,
                title=request.title,
            ):
                yield _sse_event(event)
        except Exception as e:
            logger.exception(LogEvents.ERROR_UNHANDLED, chat_id=chat_id, error=str(e))
            yield _sse_event(StatusEvent.error("Internal server error"))

    return StreamingResponse(
        event_stream(),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",  # Disable nginx buffering
        },
    )
