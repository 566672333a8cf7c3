import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Optional

from support_chat.config.settings import settings
from support_chat.core.interfaces.storage import IStorage
from support_chat.errors import NotFoundError
from support_chat.models.conversation import (
    Conversation,
    ConversationCreate,
    ConversationStatus,
    Message,
    MessageCreate,
)
from support_chat.models.requests import FAQCreate
from support_chat.models.support import FAQ, CrmData, CrmDataCreate, PopularSearch

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class MemoryStorage(IStorage):
    """
    Process-local storage backed by dictionaries.
    Dict iteration order is insertion order, which is also creation order.
    """

    def __init__(
            self,
            clock: Optional[Callable[[], datetime]] = None,
            search_window_hours: Optional[int] = None
    ):
        self._clock = clock or utcnow
        if search_window_hours is None:
            search_window_hours = settings.store.POPULAR_SEARCH_WINDOW_HOURS
        self._search_window = timedelta(hours=search_window_hours)

        self._conversations: Dict[int, Conversation] = {}
        self._messages: Dict[int, Message] = {}
        self._faqs: Dict[int, FAQ] = {}
        self._crm_data: Dict[str, CrmData] = {}
        self._popular_searches: List[PopularSearch] = []
        self._last_message_at: Dict[int, datetime] = {}
        self._current_ids = {
            "conversation": 1,
            "message": 1,
            "faq": 1,
            "crm": 1,
        }

    def _next_id(self, kind: str) -> int:
        _id = self._current_ids[kind]
        self._current_ids[kind] += 1
        return _id

    async def create_conversation(self, data: ConversationCreate) -> Conversation:
        conversation = Conversation(
            id=self._next_id("conversation"),
            customer_id=data.customer_id,
            status=data.status or ConversationStatus.ACTIVE,
            language=data.language or settings.conversation.DEFAULT_LANGUAGE,
            summary=None,
            context_memory={},
            settings=data.settings or {},
        )
        self._conversations[conversation.id] = conversation
        logger.info(f"Created conversation {conversation.id} for customer {conversation.customer_id}")
        return conversation.model_copy(deep=True)

    async def get_conversation(self, conversation_id: int) -> Optional[Conversation]:
        conversation = self._conversations.get(conversation_id)
        return conversation.model_copy(deep=True) if conversation else None

    async def update_conversation(self, conversation_id: int, data: Dict[str, Any]) -> Conversation:
        conversation = self._conversations.get(conversation_id)
        if not conversation:
            raise NotFoundError("Conversation not found")

        # Validate the merged record before replacing the stored one
        updated = Conversation.model_validate({**conversation.model_dump(), **data})
        self._conversations[conversation_id] = updated
        return updated.model_copy(deep=True)

    async def create_message(self, data: MessageCreate) -> Message:
        timestamp = self._clock()
        previous = self._last_message_at.get(data.conversation_id)
        if previous and timestamp < previous:
            timestamp = previous

        message = Message(
            id=self._next_id("message"),
            conversation_id=data.conversation_id,
            content=data.content,
            role=data.role,
            timestamp=timestamp,
            attachment=data.attachment,
            language=data.language or settings.conversation.DEFAULT_LANGUAGE,
            sentiment=None,
            suggestions=data.suggestions,
            needs_human_review=data.needs_human_review or False,
        )
        self._messages[message.id] = message
        self._last_message_at[data.conversation_id] = timestamp
        return message.model_copy(deep=True)

    async def get_messages(self, conversation_id: int) -> List[Message]:
        return [
            message.model_copy(deep=True)
            for message in self._messages.values()
            if message.conversation_id == conversation_id
        ]

    async def create_faq(self, data: FAQCreate) -> FAQ:
        faq = FAQ(
            id=self._next_id("faq"),
            question=data.question,
            answer=data.answer,
            enabled=True,
            language=data.language or settings.conversation.DEFAULT_LANGUAGE,
            category=data.category or None,
        )
        self._faqs[faq.id] = faq
        return faq.model_copy(deep=True)

    async def get_faqs(self, language: Optional[str] = None) -> List[FAQ]:
        faqs = list(self._faqs.values())
        if language:
            faqs = [faq for faq in faqs if not faq.language or faq.language == language]
        return [faq.model_copy(deep=True) for faq in faqs]

    async def update_faq(self, faq_id: int, data: Dict[str, Any]) -> FAQ:
        faq = self._faqs.get(faq_id)
        if not faq:
            raise NotFoundError("FAQ not found")

        updated = FAQ.model_validate({**faq.model_dump(), **data})
        self._faqs[faq_id] = updated
        return updated.model_copy(deep=True)

    async def delete_faq(self, faq_id: int) -> None:
        self._faqs.pop(faq_id, None)

    async def get_crm_data(self, customer_id: str) -> Optional[CrmData]:
        record = self._crm_data.get(customer_id)
        return record.model_copy(deep=True) if record else None

    async def create_crm_data(self, data: CrmDataCreate) -> CrmData:
        record = CrmData(
            id=self._next_id("crm"),
            customer_id=data.customer_id,
            name=data.name,
            email=data.email,
            details=data.details,
            preferred_language=data.preferred_language or settings.conversation.DEFAULT_LANGUAGE,
        )
        self._crm_data[data.customer_id] = record
        return record.model_copy(deep=True)

    async def track_search(self, query: str) -> None:
        now = self._clock()
        lowered = query.lower()
        existing = next((s for s in self._popular_searches if s.query.lower() == lowered), None)

        if existing:
            existing.count += 1
            existing.timestamp = now
        else:
            self._popular_searches.append(PopularSearch(query=query, count=1, timestamp=now))

        cutoff = now - self._search_window
        self._popular_searches = [s for s in self._popular_searches if s.timestamp > cutoff]

    async def get_popular_searches(self, limit: Optional[int] = None) -> List[PopularSearch]:
        if limit is None:
            limit = settings.store.POPULAR_SEARCH_DEFAULT_LIMIT
        # sorted() is stable, so equal counts keep insertion order
        ranked = sorted(self._popular_searches, key=lambda s: s.count, reverse=True)
        return [search.model_copy() for search in ranked[:limit]]
