"""In-memory chat store.

Suitable for development, demos and tests; state lives for the lifetime of
the process.
"""

import asyncio
import itertools
import logging
import uuid
from collections.abc import Mapping, Sequence
from datetime import datetime, timezone

from gateway.schemas.chat import Chat, ChatSummary, Message, Role, Source
from gateway.store.base import ROLE_ORDER

logger = logging.getLogger(__name__)


def _now() -> datetime:
    return datetime.now(timezone.utc)


class InMemoryChatStore:
    """Dictionary-backed implementation of ``ChatStore``."""

    def __init__(self, sessions: Mapping[str, str] | None = None) -> None:
        self._chats: dict[str, Chat] = {}
        self._messages: dict[str, list[tuple[int, Message]]] = {}
        self._sessions: dict[str, str] = dict(sessions or {})
        self._sequence = itertools.count()
        self._lock = asyncio.Lock()

    def register_session(self, token: str, user_id: str) -> None:
        """Make ``token`` authenticate as ``user_id``."""
        self._sessions[token] = user_id

    async def get_session_user(self, token: str) -> str | None:
        return self._sessions.get(token)

    async def create_chat(self, user_id: str, title: str) -> Chat:
        now = _now()
        chat = Chat(
            id=str(uuid.uuid4()),
            user_id=user_id,
            title=title,
            created_at=now,
            updated_at=now,
        )
        async with self._lock:
            self._chats[chat.id] = chat
            self._messages[chat.id] = []
        logger.info(f"Chat created: {chat.id} user={user_id}")
        return chat

    async def list_chats(self, user_id: str) -> list[ChatSummary]:
        chats = [c for c in self._chats.values() if c.user_id == user_id]
        chats.sort(key=lambda c: c.created_at, reverse=True)

        summaries = []
        for chat in chats:
            history = self._sorted(chat.id)
            summaries.append(
                ChatSummary(
                    id=chat.id,
                    title=chat.title,
                    created_at=chat.created_at,
                    updated_at=chat.updated_at,
                    last_message=history[-1].content if history else None,
                )
            )
        return summaries

    async def find_chat(self, chat_id: str, user_id: str) -> Chat | None:
        chat = self._chats.get(chat_id)
        if chat is None or chat.user_id != user_id:
            return None
        return chat

    async def update_title(self, chat_id: str, title: str) -> None:
        async with self._lock:
            chat = self._chats.get(chat_id)
            if chat is not None:
                self._chats[chat_id] = chat.model_copy(
                    update={"title": title, "updated_at": _now()}
                )

    async def delete_chat(self, chat_id: str, user_id: str) -> bool:
        async with self._lock:
            chat = self._chats.get(chat_id)
            if chat is None or chat.user_id != user_id:
                return False
            del self._chats[chat_id]
            self._messages.pop(chat_id, None)
        logger.info(f"Chat deleted: {chat_id}")
        return True

    async def append_message(
        self,
        chat_id: str,
        role: Role,
        content: str,
        sources: Sequence[Source] | None = None,
    ) -> Message:
        message = Message(
            id=str(uuid.uuid4()),
            chat_id=chat_id,
            role=role,
            content=content,
            sources=list(sources) if sources is not None else None,
            created_at=_now(),
        )
        async with self._lock:
            if chat_id not in self._chats:
                raise KeyError(f"Unknown chat: {chat_id}")
            self._messages[chat_id].append((next(self._sequence), message))
            chat = self._chats[chat_id]
            self._chats[chat_id] = chat.model_copy(update={"updated_at": message.created_at})
        return message

    async def list_history(self, chat_id: str) -> list[Message]:
        return self._sorted(chat_id)

    def _sorted(self, chat_id: str) -> list[Message]:
        entries = sorted(
            self._messages.get(chat_id, []),
            key=lambda e: (e[1].created_at, ROLE_ORDER[e[1].role], e[0]),
        )
        return [message for _, message in entries]
