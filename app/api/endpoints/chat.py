from fastapi import APIRouter, Depends
from typing import List, Optional
from app.api.deps import get_optional_user_id, require_user_id, get_chat_service, get_message_service
from app.core.exceptions import ChatNotFoundError
from app.schemas.chat import (
    ChatCreate,
    ChatUpdate,
    ChatResponse,
    ViewportUpdate,
    MessageCreate,
    MessageResponse,
    MessageTreeNode,
)
from app.services.chat import ChatService
from app.services.message import MessageService

router = APIRouter(tags=["Chat"])

@router.get("/",
    response_model=List[ChatResponse],
    description="List the caller's chats",
    responses={
        200: {"description": "List of chats, empty for anonymous callers"}
    })
async def list_chats(
    skip: int = 0,
    limit: int = 100,
    user_id: Optional[str] = Depends(get_optional_user_id),
    chat_service: ChatService = Depends(get_chat_service)
) -> List[ChatResponse]:
    """
    List all chats for the current user, most recently updated first.
    Anonymous callers get an empty list instead of an error.
    """
    chats = await chat_service.list_chats(user_id, skip, limit)
    return [ChatResponse(**chat) for chat in chats]

@router.post("/",
    response_model=ChatResponse,
    status_code=201,
    description="Create a new chat",
    responses={
        201: {"description": "Chat created successfully"},
        401: {"description": "Not authenticated"}
    })
async def create_chat(
    chat_data: ChatCreate,
    user_id: str = Depends(require_user_id),
    chat_service: ChatService = Depends(get_chat_service)
) -> ChatResponse:
    """
    Create a new chat for the current user.
    The title defaults to "New Chat", or "New Mind Map" for the mind-map view.
    """
    chat = await chat_service.create_chat(user_id, chat_data)
    return ChatResponse(**chat)

@router.get("/{chat_id}",
    response_model=ChatResponse,
    description="Get chat details",
    responses={
        200: {"description": "Chat details"},
        404: {"description": "Chat not found"}
    })
async def get_chat(
    chat_id: str,
    user_id: Optional[str] = Depends(get_optional_user_id),
    chat_service: ChatService = Depends(get_chat_service)
) -> ChatResponse:
    chat = await chat_service.get_chat(chat_id, user_id)
    if not chat:
        raise ChatNotFoundError()
    return ChatResponse(**chat)

@router.patch("/{chat_id}",
    response_model=ChatResponse,
    description="Rename a chat",
    responses={
        200: {"description": "Chat updated"},
        401: {"description": "Not authenticated"},
        403: {"description": "Chat belongs to another user"},
        404: {"description": "Chat not found"}
    })
async def update_chat(
    chat_id: str,
    chat_data: ChatUpdate,
    user_id: str = Depends(require_user_id),
    chat_service: ChatService = Depends(get_chat_service)
) -> ChatResponse:
    chat = await chat_service.update_chat(chat_id, user_id, chat_data)
    if not chat:
        raise ChatNotFoundError()
    return ChatResponse(**chat)

@router.put("/{chat_id}/viewport",
    response_model=ChatResponse,
    description="Save the mind-map viewport",
    responses={
        200: {"description": "Viewport saved"},
        401: {"description": "Not authenticated"},
        403: {"description": "Not authorized to update this chat"}
    })
async def update_viewport(
    chat_id: str,
    viewport_data: ViewportUpdate,
    user_id: str = Depends(require_user_id),
    chat_service: ChatService = Depends(get_chat_service)
) -> ChatResponse:
    chat = await chat_service.update_viewport(chat_id, user_id, viewport_data.viewport)
    return ChatResponse(**chat)

@router.delete("/{chat_id}",
    description="Delete a chat",
    responses={
        200: {"description": "Chat deleted"},
        401: {"description": "Not authenticated"},
        403: {"description": "Chat belongs to another user"},
        404: {"description": "Chat not found"}
    })
async def delete_chat(
    chat_id: str,
    user_id: str = Depends(require_user_id),
    chat_service: ChatService = Depends(get_chat_service)
):
    """
    Delete a chat and all its messages.
    """
    success = await chat_service.delete_chat(chat_id, user_id)
    if not success:
        raise ChatNotFoundError()
    return {"detail": "Chat deleted successfully"}

@router.get("/{chat_id}/messages",
    response_model=List[MessageResponse],
    description="List messages of a chat",
    responses={
        200: {"description": "Messages in insertion order, empty if the chat is not visible"}
    })
async def list_messages(
    chat_id: str,
    user_id: Optional[str] = Depends(get_optional_user_id),
    message_service: MessageService = Depends(get_message_service)
) -> List[MessageResponse]:
    messages = await message_service.list_messages(chat_id, user_id)
    return [MessageResponse(**message) for message in messages]

@router.get("/{chat_id}/messages/tree",
    response_model=List[MessageTreeNode],
    description="Messages nested by branch for the mind-map view")
async def message_tree(
    chat_id: str,
    user_id: Optional[str] = Depends(get_optional_user_id),
    message_service: MessageService = Depends(get_message_service)
) -> List[MessageTreeNode]:
    messages = await message_service.list_messages(chat_id, user_id)
    return [MessageTreeNode(**node) for node in message_service.build_message_tree(messages)]

@router.post("/{chat_id}/messages",
    response_model=MessageResponse,
    status_code=201,
    description="Send a message",
    responses={
        201: {"description": "Message stored"},
        400: {"description": "Parent message is not in this chat"},
        401: {"description": "Not authenticated"},
        403: {"description": "Chat belongs to another user"},
        404: {"description": "Chat not found"}
    })
async def send_message(
    chat_id: str,
    message_data: MessageCreate,
    user_id: str = Depends(require_user_id),
    message_service: MessageService = Depends(get_message_service)
) -> MessageResponse:
    """
    Append a message to the chat.
    Pass parent_message_id to branch from an existing message in the mind map.
    """
    message = await message_service.send_message(chat_id, user_id, message_data)
    if not message:
        raise ChatNotFoundError()
    return MessageResponse(**message)
