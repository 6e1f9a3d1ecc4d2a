from datetime import datetime, timezone
from typing import Dict, List, Optional
import logging
from app.core.exceptions import (
    NotAuthenticatedError,
    NotAuthorizedError,
    InvalidParentMessageError,
)
from app.models.chat import Message, Position
from app.schemas.chat import MessageCreate
from app.services.chat import ChatService, parse_object_id, serialize_document

logger = logging.getLogger(__name__)

class MessageService:
    def __init__(self, db):
        self.db = db
        self.chat_service = ChatService(db)

    async def list_messages(self, chat_id: str, user_id: Optional[str]) -> List[dict]:
        """Messages of a chat in insertion order; empty unless the caller owns the chat"""
        chat = await self.chat_service.get_chat(chat_id, user_id)
        if chat is None:
            return []

        cursor = self.db.messages.find({"chat_id": chat["id"]})
        cursor.sort([("created_at", 1), ("_id", 1)])

        messages = []
        async for message in cursor:
            messages.append(serialize_document(message))
        return messages

    async def send_message(self, chat_id: str, user_id: Optional[str], message_data: MessageCreate) -> Optional[dict]:
        """
        Append a message to a chat.

        When parent_message_id is given the new message becomes a branch of that
        message in the mind map. The parent has to exist in the same chat, so
        parent links always point at older messages and can never form a cycle.
        Returns None if the chat does not exist.
        """
        if not user_id:
            raise NotAuthenticatedError()

        chat = await self.chat_service.get_chat(chat_id, user_id)
        if chat is None:
            if await self._chat_exists(chat_id):
                raise NotAuthorizedError("send messages to")
            return None

        # Messages reference the canonical id, not the spelling in the request
        chat_id = chat["id"]

        if message_data.parent_message_id:
            parent_id = parse_object_id(message_data.parent_message_id)
            parent = None
            if parent_id is not None:
                parent = await self.db.messages.find_one({"_id": parent_id, "chat_id": chat_id})
            if parent is None:
                raise InvalidParentMessageError()

        message_dict = Message(
            chat_id=chat_id,
            user_id=user_id,
            **message_data.model_dump(),
        ).model_dump()

        result = await self.db.messages.insert_one(message_dict)
        message_dict.pop("_id", None)
        message_dict["id"] = str(result.inserted_id)

        await self.chat_service.touch_chat(chat_id)
        return message_dict

    async def _chat_exists(self, chat_id: str) -> bool:
        object_id = parse_object_id(chat_id)
        if object_id is None:
            return False
        return await self.db.chats.find_one({"_id": object_id}) is not None

    async def _get_owned_message(self, message_id: str, user_id: Optional[str]) -> Optional[dict]:
        if not user_id:
            raise NotAuthenticatedError()

        object_id = parse_object_id(message_id)
        if object_id is None:
            return None

        message = await self.db.messages.find_one({"_id": object_id})
        if not message:
            return None
        if message["user_id"] != user_id:
            raise NotAuthorizedError("update", "message")
        return message

    async def _update_message(self, message_id: str, user_id: Optional[str], changes: dict) -> Optional[dict]:
        message = await self._get_owned_message(message_id, user_id)
        if message is None:
            return None

        changes["updated_at"] = datetime.now(timezone.utc)
        await self.db.messages.update_one({"_id": message["_id"]}, {"$set": changes})

        updated = await self.db.messages.find_one({"_id": message["_id"]})
        return serialize_document(updated)

    async def update_node_position(self, message_id: str, user_id: Optional[str], position: Position) -> Optional[dict]:
        """Move a mind-map node on the canvas"""
        return await self._update_message(message_id, user_id, {"position": position.model_dump()})

    async def update_message_content(self, message_id: str, user_id: Optional[str], content: str) -> Optional[dict]:
        return await self._update_message(message_id, user_id, {"content": content})

    @staticmethod
    def build_message_tree(messages: List[dict]) -> List[dict]:
        """
        Nest messages under their parents.

        Input order is kept among siblings. Messages whose parent is missing
        from the list are treated as roots.
        """
        nodes: Dict[str, dict] = {message["id"]: {**message, "children": []} for message in messages}
        roots = []
        for message in messages:
            node = nodes[message["id"]]
            parent = nodes.get(message.get("parent_message_id") or "")
            if parent is not None and parent is not node:
                parent["children"].append(node)
            else:
                roots.append(node)
        return roots
