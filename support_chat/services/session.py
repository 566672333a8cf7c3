import json
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional, Union

from pydantic import ValidationError

from support_chat.config.settings import settings
from support_chat.core.interfaces.storage import IStorage
from support_chat.errors import ProtocolError
from support_chat.models.conversation import (
    Attachment,
    ConversationCreate,
    ConversationStatus,
    Message,
    MessageCreate,
    MessageRole,
)
from support_chat.models.requests import MessagePayload, StartConversationPayload, UpdateSettingsPayload
from support_chat.services.completion import CompletionService

logger = logging.getLogger(__name__)

Sender = Callable[[Dict[str, Any]], Awaitable[None]]


def annotate_attachment(attachment: Optional[Attachment]) -> str:
    """Inline marker appended to the message text so the model knows a file was sent."""
    if not attachment:
        return ""
    if attachment.type.startswith("image/"):
        return "\n[Image attached]"
    if attachment.type == "application/pdf":
        return "\n[PDF document attached]"
    return ""


class ChatSession:
    """
    Server side of one chat channel.

    A session starts unbound and becomes bound to a conversation on start_conversation.
    Events are handled one at a time; every failure is reported to the client as a single
    error event and the channel stays open.
    """

    def __init__(self, storage: IStorage, completion_service: CompletionService, send: Sender):
        self.storage = storage
        self.completion_service = completion_service
        self._send = send
        self.conversation_id: Optional[int] = None
        self.context_memory: Optional[Dict[str, Any]] = None

        self._handlers = {
            "start_conversation": self._start_conversation,
            "message": self._message,
            "update_settings": self._update_settings,
            "refresh_conversation": self._refresh_conversation,
            "typing": self._typing,
            "stop_typing": self._stop_typing,
        }

    @property
    def bound(self) -> bool:
        return self.conversation_id is not None

    async def emit(self, event_type: str, payload: Optional[Dict[str, Any]] = None) -> None:
        await self._send({"type": event_type, "payload": payload or {}})

    async def handle_raw(self, data: Union[str, bytes]) -> None:
        """Parse a JSON envelope {type, payload} and dispatch it. Bytes must be UTF-8."""
        try:
            if isinstance(data, bytes):
                data = data.decode("utf-8")
            envelope = json.loads(data)
            if not isinstance(envelope, dict) or not isinstance(envelope.get("type"), str):
                raise ProtocolError("Invalid message format")
        except (ValueError, ProtocolError) as e:
            logger.warning(f"Rejected chat envelope: {str(e)}")
            await self._report_error("Invalid message format")
            return

        await self.handle(envelope["type"], envelope.get("payload"))

    async def handle(self, event_type: str, payload: Optional[Dict[str, Any]] = None) -> None:
        logger.info(f"Received chat event: {event_type}")
        try:
            handler = self._handlers.get(event_type)
            if handler is None:
                raise ProtocolError(f"Unknown message type: {event_type}")
            await handler(payload or {})
        except ValidationError as e:
            error = e.errors()[0]
            location = ".".join(str(part) for part in error.get("loc", ()))
            detail = f"{location}: {error.get('msg')}" if location else error.get("msg")
            logger.warning(f"Invalid {event_type} payload: {e}")
            await self._report_error(f"Invalid {event_type} payload: {detail}")
        except Exception as e:
            logger.error(f"Error handling {event_type} event: {str(e)}", exc_info=True)
            await self._report_error(str(e) or "Unknown error occurred")

    async def _report_error(self, message: str) -> None:
        try:
            await self.emit("error", {"message": message})
        except Exception as send_error:
            logger.error(f"Failed to send error message to client: {str(send_error)}")

    def _require_conversation(self) -> int:
        if self.conversation_id is None:
            raise ProtocolError("No active conversation")
        return self.conversation_id

    async def _start_conversation(self, payload: Dict[str, Any]) -> None:
        data = StartConversationPayload.model_validate(payload)

        if self.bound:
            # No guard: the previous conversation is left behind and the channel rebinds
            logger.warning(
                f"start_conversation on a channel bound to conversation {self.conversation_id}; rebinding"
            )

        crm_data = await self.storage.get_crm_data(data.customer_id)
        language = crm_data.preferred_language if crm_data else settings.conversation.DEFAULT_LANGUAGE

        conversation = await self.storage.create_conversation(
            ConversationCreate(
                customer_id=data.customer_id,
                status=ConversationStatus.ACTIVE,
                language=language,
                settings=data.settings or {},
            )
        )
        self.conversation_id = conversation.id
        self.context_memory = None

        welcome_message = await self.storage.create_message(
            MessageCreate(
                conversation_id=conversation.id,
                content=settings.conversation.WELCOME_MESSAGE,
                role=MessageRole.ASSISTANT,
                language=language,
            )
        )

        await self._send_conversation(conversation.id, [welcome_message], conversation.settings)

    async def _refresh_conversation(self, payload: Dict[str, Any]) -> None:
        conversation_id = self._require_conversation()
        conversation = await self.storage.get_conversation(conversation_id)
        messages = await self.storage.get_messages(conversation_id)
        await self._send_conversation(conversation_id, messages, conversation.settings if conversation else {})

    async def _send_conversation(
            self,
            conversation_id: int,
            messages: List[Message],
            conversation_settings: Dict[str, Any]
    ) -> None:
        await self.emit("conversation_started", {
            "conversationId": conversation_id,
            "messages": [message.to_wire() for message in messages],
            "settings": conversation_settings,
        })

    async def _message(self, payload: Dict[str, Any]) -> None:
        conversation_id = self._require_conversation()
        data = MessagePayload.model_validate(payload)

        content = data.content + annotate_attachment(data.attachment)
        user_message = await self.storage.create_message(
            MessageCreate(
                conversation_id=conversation_id,
                content=content,
                role=MessageRole.USER,
                attachment=data.attachment,
            )
        )

        await self.emit("message", {"message": user_message.to_wire()})
        await self.emit("typing")

        messages = await self.storage.get_messages(conversation_id)
        faqs = await self.storage.get_faqs()
        history = [{"role": message.role.value, "content": message.content} for message in messages]

        self.context_memory = await self.completion_service.update_conversation_context(history)
        reply = await self.completion_service.generate_response(history, faqs, self.context_memory)

        ai_message = await self.storage.create_message(
            MessageCreate(
                conversation_id=conversation_id,
                content=reply.content,
                role=MessageRole.ASSISTANT,
                language=reply.language,
                suggestions=reply.suggestions,
                needs_human_review=reply.needs_human_review,
            )
        )

        await self.storage.update_conversation(conversation_id, {
            "summary": self.context_memory.get("summary"),
            "context_memory": self.context_memory,
        })

        await self.emit("message", {
            "message": ai_message.to_wire(),
            "source": reply.source,
            "confidence": reply.confidence,
            "suggestions": reply.suggestions,
            "needsHumanReview": reply.needs_human_review,
        })

    async def _update_settings(self, payload: Dict[str, Any]) -> None:
        conversation_id = self._require_conversation()
        data = UpdateSettingsPayload.model_validate(payload)

        # The new settings replace the stored ones; omitted keys are dropped
        updated = await self.storage.update_conversation(conversation_id, {"settings": data.settings})

        await self.emit("settings_updated", {"settings": updated.settings})

    async def _typing(self, payload: Dict[str, Any]) -> None:
        await self.emit("typing")

    async def _stop_typing(self, payload: Dict[str, Any]) -> None:
        await self.emit("stop_typing")
