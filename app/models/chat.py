from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime, timezone
from enum import Enum

DEFAULT_CHAT_TITLE = "New Chat"
DEFAULT_MINDMAP_TITLE = "New Mind Map"

class MessageRole(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"

class ViewMode(str, Enum):
    CHAT = "chat"
    MINDMAP = "mindmap"

class Viewport(BaseModel):
    x: float
    y: float
    zoom: float

class Position(BaseModel):
    x: float
    y: float

class Chat(BaseModel):
    """Document stored in the `chats` collection"""
    user_id: str
    title: str = DEFAULT_CHAT_TITLE
    view_mode: ViewMode = ViewMode.CHAT
    viewport: Optional[Viewport] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    class Config:
        use_enum_values = True

class Message(BaseModel):
    """Document stored in the `messages` collection"""
    chat_id: str
    user_id: str
    role: MessageRole
    content: str
    # Mind-map branching: the message this one was branched from
    parent_message_id: Optional[str] = None
    position: Optional[Position] = None
    node_style: Optional[str] = None
    highlighted_text: Optional[str] = None
    model: Optional[str] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    class Config:
        use_enum_values = True
