"""
Unit tests for MessageService

Tests:
- Listing is owner-scoped and in insertion order
- Branching via parent_message_id
- Node position and content updates
- Tree building for the mind-map view
"""

import pytest
import pytest_asyncio
from bson import ObjectId
from datetime import datetime, timezone

from app.core.exceptions import (
    NotAuthenticatedError,
    NotAuthorizedError,
    InvalidParentMessageError,
)
from app.models.chat import Position
from app.schemas.chat import ChatCreate, MessageCreate
from app.services.chat import ChatService
from app.services.message import MessageService


@pytest.mark.unit
class TestMessageService:

    @pytest.fixture
    def service(self, fake_db):
        return MessageService(fake_db)

    @pytest_asyncio.fixture
    async def chat(self, fake_db):
        return await ChatService(fake_db).create_chat("user_a", ChatCreate(view_mode="mindmap"))

    @pytest.mark.asyncio
    async def test_send_and_list_in_order(self, service, chat):
        for text in ["first", "second", "third"]:
            await service.send_message(chat["id"], "user_a", MessageCreate(content=text))

        messages = await service.list_messages(chat["id"], "user_a")

        assert [m["content"] for m in messages] == ["first", "second", "third"]
        assert all(m["chat_id"] == chat["id"] for m in messages)
        assert messages[0]["role"] == "user"

    @pytest.mark.asyncio
    async def test_list_messages_hidden_from_other_users(self, service, chat):
        await service.send_message(chat["id"], "user_a", MessageCreate(content="secret"))

        assert await service.list_messages(chat["id"], "user_b") == []
        assert await service.list_messages(chat["id"], None) == []

    @pytest.mark.asyncio
    async def test_send_message_unauthenticated(self, service, chat):
        with pytest.raises(NotAuthenticatedError):
            await service.send_message(chat["id"], None, MessageCreate(content="hi"))

    @pytest.mark.asyncio
    async def test_send_message_to_other_users_chat(self, service, chat):
        with pytest.raises(NotAuthorizedError):
            await service.send_message(chat["id"], "user_b", MessageCreate(content="hi"))

    @pytest.mark.asyncio
    async def test_send_message_missing_chat(self, service):
        result = await service.send_message("0123456789abcdef01234567", "user_a", MessageCreate(content="hi"))

        assert result is None

    @pytest.mark.asyncio
    async def test_send_branch_message(self, service, chat):
        root = await service.send_message(chat["id"], "user_a", MessageCreate(content="root"))

        branch = await service.send_message(
            chat["id"],
            "user_a",
            MessageCreate(
                content="a branch",
                parent_message_id=root["id"],
                highlighted_text="root",
                node_style="branch",
                position=Position(x=100, y=200),
            ),
        )

        assert branch["parent_message_id"] == root["id"]
        assert branch["highlighted_text"] == "root"
        assert branch["node_style"] == "branch"
        assert branch["position"] == {"x": 100, "y": 200}

    @pytest.mark.asyncio
    async def test_parent_must_exist(self, service, chat):
        with pytest.raises(InvalidParentMessageError):
            await service.send_message(
                chat["id"], "user_a",
                MessageCreate(content="orphan", parent_message_id="0123456789abcdef01234567"),
            )

    @pytest.mark.asyncio
    async def test_parent_must_be_in_same_chat(self, service, chat, fake_db):
        other_chat = await ChatService(fake_db).create_chat("user_a", ChatCreate())
        foreign = await service.send_message(other_chat["id"], "user_a", MessageCreate(content="elsewhere"))

        with pytest.raises(InvalidParentMessageError):
            await service.send_message(
                chat["id"], "user_a",
                MessageCreate(content="cross-chat", parent_message_id=foreign["id"]),
            )

    @pytest.mark.asyncio
    async def test_malformed_parent_id(self, service, chat):
        with pytest.raises(InvalidParentMessageError):
            await service.send_message(
                chat["id"], "user_a",
                MessageCreate(content="bad", parent_message_id="not-an-id"),
            )

    @pytest.mark.asyncio
    async def test_upper_case_chat_id_stored_canonically(self, service, fake_db):
        chat_id = "6ad4e98e1128e6e0359d42d6"
        await fake_db.chats.insert_one({
            "_id": ObjectId(chat_id),
            "user_id": "user_a",
            "title": "New Chat",
            "view_mode": "chat",
            "created_at": datetime.now(timezone.utc),
            "updated_at": datetime.now(timezone.utc),
        })

        root = await service.send_message(chat_id.upper(), "user_a", MessageCreate(content="root"))
        await service.send_message(
            chat_id, "user_a",
            MessageCreate(content="branch", parent_message_id=root["id"]),
        )

        assert root["chat_id"] == chat_id
        listed = await service.list_messages(chat_id, "user_a")
        assert [m["content"] for m in listed] == ["root", "branch"]
        assert len(await service.list_messages(chat_id.upper(), "user_a")) == 2

        await ChatService(fake_db).delete_chat(chat_id, "user_a")

        assert fake_db.messages.documents == []

    @pytest.mark.asyncio
    async def test_send_message_touches_chat(self, service, chat, fake_db):
        before = (await fake_db.chats.find_one({}))["updated_at"]

        await service.send_message(chat["id"], "user_a", MessageCreate(content="hi"))

        after = (await fake_db.chats.find_one({}))["updated_at"]
        assert after >= before

    @pytest.mark.asyncio
    async def test_update_node_position(self, service, chat):
        message = await service.send_message(chat["id"], "user_a", MessageCreate(content="node"))

        updated = await service.update_node_position(message["id"], "user_a", Position(x=42.5, y=-3))

        assert updated["position"] == {"x": 42.5, "y": -3}
        listed = await service.list_messages(chat["id"], "user_a")
        assert listed[0]["position"] == {"x": 42.5, "y": -3}

    @pytest.mark.asyncio
    async def test_update_node_position_not_owner(self, service, chat):
        message = await service.send_message(chat["id"], "user_a", MessageCreate(content="node"))

        with pytest.raises(NotAuthorizedError):
            await service.update_node_position(message["id"], "user_b", Position(x=0, y=0))

    @pytest.mark.asyncio
    async def test_update_missing_message(self, service):
        assert await service.update_node_position("0123456789abcdef01234567", "user_a", Position(x=0, y=0)) is None
        assert await service.update_message_content("bad-id", "user_a", "text") is None

    @pytest.mark.asyncio
    async def test_update_message_content(self, service, chat):
        message = await service.send_message(chat["id"], "user_a", MessageCreate(content="draft"))

        updated = await service.update_message_content(message["id"], "user_a", "final")

        assert updated["content"] == "final"


@pytest.mark.unit
class TestBuildMessageTree:

    def test_nests_children_under_parents(self):
        messages = [
            {"id": "a", "parent_message_id": None, "content": "root"},
            {"id": "b", "parent_message_id": "a", "content": "child 1"},
            {"id": "c", "parent_message_id": "a", "content": "child 2"},
            {"id": "d", "parent_message_id": "b", "content": "grandchild"},
            {"id": "e", "parent_message_id": None, "content": "second root"},
        ]

        tree = MessageService.build_message_tree(messages)

        assert [node["id"] for node in tree] == ["a", "e"]
        assert [child["id"] for child in tree[0]["children"]] == ["b", "c"]
        assert tree[0]["children"][0]["children"][0]["id"] == "d"
        assert tree[1]["children"] == []

    def test_missing_parent_becomes_root(self):
        messages = [{"id": "x", "parent_message_id": "gone", "content": "orphan"}]

        tree = MessageService.build_message_tree(messages)

        assert [node["id"] for node in tree] == ["x"]

    def test_empty(self):
        assert MessageService.build_message_tree([]) == []
