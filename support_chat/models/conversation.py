from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import Field

from support_chat.models.base import BaseModel


class ConversationStatus(str, Enum):
    ACTIVE = "active"
    CLOSED = "closed"


class MessageRole(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


class Attachment(BaseModel):
    """File sent inline with a chat message"""
    type: str
    data: Optional[str] = None


class ConversationCreate(BaseModel):
    customer_id: str
    status: Optional[ConversationStatus] = None
    language: Optional[str] = None
    settings: Optional[Dict[str, Any]] = None


class Conversation(BaseModel):
    """Core conversation domain model"""
    id: int
    customer_id: str
    status: ConversationStatus = ConversationStatus.ACTIVE
    language: str = "en"
    summary: Optional[str] = None
    context_memory: Dict[str, Any] = Field(default_factory=dict)
    # personality label and voiceEnabled flag
    settings: Dict[str, Any] = Field(default_factory=dict)


class MessageCreate(BaseModel):
    conversation_id: int
    content: str
    role: MessageRole
    attachment: Optional[Attachment] = None
    language: Optional[str] = None
    suggestions: Optional[List[str]] = None
    needs_human_review: Optional[bool] = None


class Message(BaseModel):
    """Core message domain model"""
    id: int
    conversation_id: int
    content: str
    role: MessageRole
    timestamp: datetime
    attachment: Optional[Attachment] = None
    language: str = "en"
    sentiment: Optional[str] = None
    suggestions: Optional[List[str]] = None
    needs_human_review: bool = False
