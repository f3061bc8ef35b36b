"""Tests for the in-memory chat store."""

from datetime import datetime, timezone
from unittest.mock import patch

import pytest

from gateway.schemas import Source
from gateway.store import InMemoryChatStore

FIXED_NOW = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


class TestChats:
    """Chat ownership and listing."""

    @pytest.mark.asyncio
    async def test_list_newest_first_with_preview(self):
        store = InMemoryChatStore()
        instants = [FIXED_NOW.replace(minute=m) for m in range(4)]
        with patch("gateway.store.memory._now", side_effect=instants):
            first = await store.create_chat("alice", "First")
            second = await store.create_chat("alice", "Second")
            await store.create_chat("bob", "Not alice's")
            await store.append_message(first.id, "user", "hello")

        summaries = await store.list_chats("alice")

        assert [s.id for s in summaries] == [second.id, first.id]
        assert summaries[0].last_message is None
        assert summaries[1].last_message == "hello"

    @pytest.mark.asyncio
    async def test_find_requires_ownership(self):
        store = InMemoryChatStore()
        chat = await store.create_chat("alice", "Mine")

        assert await store.find_chat(chat.id, "alice") == chat
        assert await store.find_chat(chat.id, "bob") is None
        assert await store.find_chat("missing", "alice") is None

    @pytest.mark.asyncio
    async def test_delete_requires_ownership(self):
        store = InMemoryChatStore()
        chat = await store.create_chat("alice", "Mine")

        assert not await store.delete_chat(chat.id, "bob")
        assert await store.delete_chat(chat.id, "alice")
        assert await store.find_chat(chat.id, "alice") is None
        assert await store.list_history(chat.id) == []

    @pytest.mark.asyncio
    async def test_update_title(self):
        store = InMemoryChatStore()
        chat = await store.create_chat("alice", "Old")

        await store.update_title(chat.id, "New")

        assert (await store.find_chat(chat.id, "alice")).title == "New"


class TestMessages:
    """Message persistence and ordering."""

    @pytest.mark.asyncio
    async def test_sources_persisted(self):
        store = InMemoryChatStore()
        chat = await store.create_chat("alice", "Chat")

        message = await store.append_message(
            chat.id, "assistant", "answer", [Source(title="Doc", url="https://doc")]
        )

        assert message.sources == [Source(title="Doc", url="https://doc")]
        assert (await store.list_history(chat.id))[0].sources == message.sources

    @pytest.mark.asyncio
    async def test_same_instant_ordered_by_role(self):
        store = InMemoryChatStore()
        chat = await store.create_chat("alice", "Chat")

        with patch("gateway.store.memory._now", return_value=FIXED_NOW):
            await store.append_message(chat.id, "assistant", "answer")
            await store.append_message(chat.id, "user", "question")

        history = await store.list_history(chat.id)
        assert [m.role for m in history] == ["user", "assistant"]

    @pytest.mark.asyncio
    async def test_unknown_chat_rejected(self):
        with pytest.raises(KeyError):
            await InMemoryChatStore().append_message("missing", "user", "hello")


class TestSessions:
    @pytest.mark.asyncio
    async def test_session_lookup(self):
        store = InMemoryChatStore(sessions={"token-1": "alice"})
        store.register_session("token-2", "bob")

        assert await store.get_session_user("token-1") == "alice"
        assert await store.get_session_user("token-2") == "bob"
        assert await store.get_session_user("nope") is None
