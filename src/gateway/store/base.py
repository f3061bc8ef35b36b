"""Contract for chat/message persistence and session lookup."""

from collections.abc import Sequence
from typing import Protocol

from gateway.schemas.chat import Chat, ChatSummary, Message, Role, Source

# Messages created in the same instant are ordered by role
ROLE_ORDER: dict[str, int] = {"user": 0, "assistant": 1, "system": 2}


class ChatStore(Protocol):
    """Persistence used by the chat routes and the chat-turn orchestrator."""

    async def create_chat(self, user_id: str, title: str) -> Chat: ...

    async def list_chats(self, user_id: str) -> list[ChatSummary]: ...

    async def find_chat(self, chat_id: str, user_id: str) -> Chat | None:
        """Return the chat only if it exists and belongs to ``user_id``."""
        ...

    async def update_title(self, chat_id: str, title: str) -> None: ...

    async def delete_chat(self, chat_id: str, user_id: str) -> bool: ...

    async def append_message(
        self,
        chat_id: str,
        role: Role,
        content: str,
        sources: Sequence[Source] | None = None,
    ) -> Message: ...

    async def list_history(self, chat_id: str) -> list[Message]:
        """Messages oldest first; ties broken user < assistant < system."""
        ...

    async def get_session_user(self, token: str) -> str | None:
        """Resolve a session token to a user id, or None if unauthenticated."""
        ...
