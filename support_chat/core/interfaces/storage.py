from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from support_chat.models.conversation import Conversation, ConversationCreate, Message, MessageCreate
from support_chat.models.requests import FAQCreate
from support_chat.models.support import FAQ, CrmData, CrmDataCreate, PopularSearch


class IStorage(ABC):
    """Storage interface for conversations, messages, FAQs, CRM records and searches."""

    # Conversations

    @abstractmethod
    async def create_conversation(self, data: ConversationCreate) -> Conversation:
        """
        Create a new conversation.

        Args:
            data: Conversation data; status, language and settings are defaulted

        Returns:
            Created conversation with its assigned identifier
        """
        pass

    @abstractmethod
    async def get_conversation(self, conversation_id: int) -> Optional[Conversation]:
        """
        Get conversation by identifier.

        Args:
            conversation_id: The conversation identifier

        Returns:
            Conversation if found or None
        """
        pass

    @abstractmethod
    async def update_conversation(self, conversation_id: int, data: Dict[str, Any]) -> Conversation:
        """
        Merge fields into an existing conversation.

        Args:
            conversation_id: The conversation identifier
            data: Fields to overwrite

        Returns:
            Merged conversation

        Raises:
            NotFoundError: If the conversation does not exist
        """
        pass

    # Messages

    @abstractmethod
    async def create_message(self, data: MessageCreate) -> Message:
        """
        Create a message stamped with the current time.

        Args:
            data: Message data

        Returns:
            Created message
        """
        pass

    @abstractmethod
    async def get_messages(self, conversation_id: int) -> List[Message]:
        """
        Get messages for a conversation in creation order.

        Args:
            conversation_id: The conversation identifier

        Returns:
            List of messages
        """
        pass

    # FAQs

    @abstractmethod
    async def create_faq(self, data: FAQCreate) -> FAQ:
        """Create an enabled FAQ."""
        pass

    @abstractmethod
    async def get_faqs(self, language: Optional[str] = None) -> List[FAQ]:
        """
        List FAQs, optionally restricted to a language.

        Args:
            language: ISO code; FAQs without a language match every code

        Returns:
            List of FAQs
        """
        pass

    @abstractmethod
    async def update_faq(self, faq_id: int, data: Dict[str, Any]) -> FAQ:
        """
        Merge fields into an existing FAQ.

        Raises:
            NotFoundError: If the FAQ does not exist
        """
        pass

    @abstractmethod
    async def delete_faq(self, faq_id: int) -> None:
        """Delete a FAQ. Unknown identifiers are ignored."""
        pass

    # CRM

    @abstractmethod
    async def get_crm_data(self, customer_id: str) -> Optional[CrmData]:
        """Get the CRM record of a customer or None."""
        pass

    @abstractmethod
    async def create_crm_data(self, data: CrmDataCreate) -> CrmData:
        """Create or replace the CRM record of a customer."""
        pass

    # Popular searches

    @abstractmethod
    async def track_search(self, query: str) -> None:
        """
        Count a search query and evict entries older than the search window.

        Args:
            query: Search text, matched case-insensitively
        """
        pass

    @abstractmethod
    async def get_popular_searches(self, limit: Optional[int] = None) -> List[PopularSearch]:
        """
        Get searches ranked by descending count.

        Args:
            limit: Max to return

        Returns:
            Ranked searches
        """
        pass
