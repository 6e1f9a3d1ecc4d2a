from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime
from app.models.chat import MessageRole, ViewMode, Viewport, Position

class ChatCreate(BaseModel):
    title: Optional[str] = None
    view_mode: Optional[ViewMode] = None

class ChatUpdate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)

class ViewportUpdate(BaseModel):
    viewport: Viewport

class ChatResponse(BaseModel):
    id: str
    user_id: str
    title: str
    view_mode: ViewMode = ViewMode.CHAT
    viewport: Optional[Viewport] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        json_schema_extra = {
            "example": {
                "id": "66f1c0d2e4b0a1b2c3d4e5f6",
                "user_id": "user_2abc",
                "title": "New Chat",
                "view_mode": "chat",
                "viewport": None,
                "created_at": "2025-10-15T10:30:00Z",
                "updated_at": "2025-10-15T10:30:00Z"
            }
        }

class MessageCreate(BaseModel):
    role: MessageRole = MessageRole.USER
    content: str
    parent_message_id: Optional[str] = Field(None, description="Message this one branches from")
    position: Optional[Position] = None
    node_style: Optional[str] = None
    highlighted_text: Optional[str] = None
    model: Optional[str] = None

class MessageUpdate(BaseModel):
    content: str

class PositionUpdate(BaseModel):
    position: Position

class MessageResponse(BaseModel):
    id: str
    chat_id: str
    user_id: str
    role: MessageRole
    content: str
    parent_message_id: Optional[str] = None
    position: Optional[Position] = None
    node_style: Optional[str] = None
    highlighted_text: Optional[str] = None
    model: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

class MessageTreeNode(MessageResponse):
    children: List["MessageTreeNode"] = Field(default_factory=list)
