from fastapi import APIRouter, Depends
from app.api.deps import require_user_id, get_message_service
from app.core.exceptions import MessageNotFoundError
from app.schemas.chat import MessageResponse, MessageUpdate, PositionUpdate
from app.services.message import MessageService

router = APIRouter(tags=["Messages"])

@router.put("/{message_id}/position",
    response_model=MessageResponse,
    description="Move a mind-map node",
    responses={
        200: {"description": "Position saved"},
        401: {"description": "Not authenticated"},
        403: {"description": "Message belongs to another user"},
        404: {"description": "Message not found"}
    })
async def update_node_position(
    message_id: str,
    position_data: PositionUpdate,
    user_id: str = Depends(require_user_id),
    message_service: MessageService = Depends(get_message_service)
) -> MessageResponse:
    message = await message_service.update_node_position(message_id, user_id, position_data.position)
    if not message:
        raise MessageNotFoundError()
    return MessageResponse(**message)

@router.patch("/{message_id}",
    response_model=MessageResponse,
    description="Edit message content",
    responses={
        200: {"description": "Message updated"},
        401: {"description": "Not authenticated"},
        403: {"description": "Message belongs to another user"},
        404: {"description": "Message not found"}
    })
async def update_message(
    message_id: str,
    message_data: MessageUpdate,
    user_id: str = Depends(require_user_id),
    message_service: MessageService = Depends(get_message_service)
) -> MessageResponse:
    message = await message_service.update_message_content(message_id, user_id, message_data.content)
    if not message:
        raise MessageNotFoundError()
    return MessageResponse(**message)
