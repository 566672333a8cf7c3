from typing import Any, Dict, Optional

from pydantic import Field

from support_chat.models.base import BaseModel
from support_chat.models.conversation import Attachment


class FAQCreate(BaseModel):
    """Request model for creating a FAQ"""

    question: str = Field(..., description="Question as customers would ask it")
    answer: str = Field(..., description="Answer sent back when the question matches")
    language: Optional[str] = Field(default=None, description="ISO 639-1 code, defaults to en")
    category: Optional[str] = Field(default=None, description="Optional grouping label")


class FAQUpdate(BaseModel):
    """Request model for a partial FAQ update"""

    question: Optional[str] = None
    answer: Optional[str] = None
    language: Optional[str] = None
    category: Optional[str] = None


class SearchTrack(BaseModel):
    """Request model for recording a search"""

    query: str = Field(..., min_length=1)


# Chat channel payloads

class StartConversationPayload(BaseModel):
    customer_id: str
    settings: Optional[Dict[str, Any]] = None


class MessagePayload(BaseModel):
    content: str = ""
    attachment: Optional[Attachment] = None


class UpdateSettingsPayload(BaseModel):
    settings: Dict[str, Any]
