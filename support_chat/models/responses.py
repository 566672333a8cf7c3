from typing import Optional

from support_chat.models.base import BaseModel


class PopularSearchResponse(BaseModel):
    """Response model for one ranked search"""
    query: str
    count: int


class HealthResponse(BaseModel):
    status: str
    message: str
    version: Optional[str] = None
