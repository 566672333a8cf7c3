from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import Field

from support_chat.models.base import BaseModel


class FAQ(BaseModel):
    id: int
    question: str
    answer: str
    enabled: bool = True
    language: Optional[str] = "en"
    category: Optional[str] = None


class CrmDataCreate(BaseModel):
    customer_id: str
    name: str
    email: str
    details: Dict[str, Any] = Field(default_factory=dict)
    preferred_language: Optional[str] = None


class CrmData(BaseModel):
    """Mock CRM record, looked up by customer id"""
    id: int
    customer_id: str
    name: str
    email: str
    details: Dict[str, Any] = Field(default_factory=dict)
    preferred_language: str = "en"


class PopularSearch(BaseModel):
    query: str
    count: int = 1
    timestamp: datetime
