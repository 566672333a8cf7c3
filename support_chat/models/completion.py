from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field


class ModelConfig(BaseModel):
    """Sampling parameters sent with a chat completion request"""
    temperature: Optional[float] = None
    top_p: Optional[float] = None
    frequency_penalty: Optional[float] = None
    presence_penalty: Optional[float] = None
    max_tokens: Optional[int] = None
    stop: Optional[List[str]] = None

    def merged(self, **overrides) -> "ModelConfig":
        """Copy with every non-None override applied."""
        update = {key: value for key, value in overrides.items() if value is not None}
        return self.model_copy(update=update)

    def to_request(self) -> Dict[str, Any]:
        return self.model_dump(exclude_none=True)


class FaqMatch(BaseModel):
    answer: str
    confidence: float
    suggestions: List[str] = Field(default_factory=list)
    needs_human_review: bool = False


class ChatReply(BaseModel):
    content: str
    source: Literal["faq", "ai"]
    confidence: Optional[float] = None
    language: str = "en"
    suggestions: List[str] = Field(default_factory=list)
    needs_human_review: bool = False
