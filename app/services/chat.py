from datetime import datetime, timezone
from typing import List, Optional
import logging
from bson import ObjectId
from app.core.exceptions import NotAuthenticatedError, NotAuthorizedError
from app.models.chat import Chat, ViewMode, Viewport, DEFAULT_CHAT_TITLE, DEFAULT_MINDMAP_TITLE
from app.schemas.chat import ChatCreate, ChatUpdate

logger = logging.getLogger(__name__)

def parse_object_id(value: str) -> Optional[ObjectId]:
    """ObjectId for a client-supplied id, or None when it is malformed"""
    if isinstance(value, ObjectId):
        return value
    if not value or not ObjectId.is_valid(value):
        return None
    return ObjectId(value)

def serialize_document(document: dict) -> dict:
    document["id"] = str(document.pop("_id"))
    return document

class ChatService:
    def __init__(self, db):
        self.db = db

    async def list_chats(self, user_id: Optional[str], skip: int = 0, limit: int = 100) -> List[dict]:
        """List the caller's chats, most recently updated first. Never raises for anonymous callers."""
        if not user_id:
            return []

        cursor = self.db.chats.find({"user_id": user_id})
        cursor.sort("updated_at", -1).skip(skip).limit(limit)

        chats = []
        async for chat in cursor:
            chats.append(serialize_document(chat))
        return chats

    async def get_chat(self, chat_id: str, user_id: Optional[str]) -> Optional[dict]:
        """Get a chat by ID, hidden from everyone but its owner"""
        if not user_id:
            return None

        object_id = parse_object_id(chat_id)
        if object_id is None:
            return None

        chat = await self.db.chats.find_one({"_id": object_id})
        if not chat or chat["user_id"] != user_id:
            return None
        return serialize_document(chat)

    async def create_chat(self, user_id: Optional[str], chat_data: ChatCreate) -> dict:
        """Create a new chat"""
        if not user_id:
            raise NotAuthenticatedError()

        view_mode = chat_data.view_mode or ViewMode.CHAT
        default_title = DEFAULT_MINDMAP_TITLE if view_mode == ViewMode.MINDMAP else DEFAULT_CHAT_TITLE

        chat_dict = Chat(
            user_id=user_id,
            title=chat_data.title or default_title,
            view_mode=view_mode,
        ).model_dump()

        result = await self.db.chats.insert_one(chat_dict)
        chat_dict.pop("_id", None)
        chat_dict["id"] = str(result.inserted_id)
        logger.info(f"Created chat {chat_dict['id']} for user {user_id}")
        return chat_dict

    async def _get_owned_chat(self, chat_id: str, user_id: Optional[str], action: str) -> Optional[dict]:
        """Raw chat document for an owner-only mutation; None when it does not exist"""
        if not user_id:
            raise NotAuthenticatedError()

        object_id = parse_object_id(chat_id)
        if object_id is None:
            return None

        chat = await self.db.chats.find_one({"_id": object_id})
        if not chat:
            return None
        if chat["user_id"] != user_id:
            logger.warning(f"User {user_id} attempted to {action} chat {chat_id} owned by another user")
            raise NotAuthorizedError(action)
        return chat

    async def update_chat(self, chat_id: str, user_id: Optional[str], chat_data: ChatUpdate) -> Optional[dict]:
        """Rename a chat"""
        chat = await self._get_owned_chat(chat_id, user_id, "update")
        if chat is None:
            return None

        await self.db.chats.update_one(
            {"_id": chat["_id"]},
            {"$set": {"title": chat_data.title, "updated_at": datetime.now(timezone.utc)}}
        )
        return await self.get_chat(chat_id, user_id)

    async def update_viewport(self, chat_id: str, user_id: Optional[str], viewport: Viewport) -> dict:
        """Store the mind-map canvas viewport"""
        chat = await self._get_owned_chat(chat_id, user_id, "update")
        if chat is None:
            raise NotAuthorizedError("update")

        await self.db.chats.update_one(
            {"_id": chat["_id"]},
            {"$set": {"viewport": viewport.model_dump()}}
        )
        return await self.get_chat(chat_id, user_id)

    async def touch_chat(self, chat_id: str) -> None:
        object_id = parse_object_id(chat_id)
        if object_id is not None:
            await self.db.chats.update_one(
                {"_id": object_id},
                {"$set": {"updated_at": datetime.now(timezone.utc)}}
            )

    async def delete_chat(self, chat_id: str, user_id: Optional[str]) -> bool:
        """Delete a chat and all of its messages"""
        chat = await self._get_owned_chat(chat_id, user_id, "delete")
        if chat is None:
            return False

        canonical_id = str(chat["_id"])
        messages = await self.db.messages.delete_many({"chat_id": canonical_id})
        result = await self.db.chats.delete_one({"_id": chat["_id"]})
        logger.info(f"Deleted chat {canonical_id} and {messages.deleted_count} messages")
        return result.deleted_count > 0
