"""Tests for the chat channel state machine."""

import json

import pytest

from support_chat.errors import ExternalServiceAPIError
from support_chat.services.completion import CompletionService
from support_chat.services.session import ChatSession, annotate_attachment
from support_chat.models.conversation import Attachment

from tests.helpers import PASSWORD_ANSWER, FakeCompletionClient, faq_match


class Recorder:
    def __init__(self):
        self.events = []

    async def __call__(self, event):
        self.events.append(event)

    def types(self):
        return [event["type"] for event in self.events]

    def clear(self):
        self.events = []


def make_session(storage, client=None, timeout=5):
    recorder = Recorder()
    service = CompletionService(client=client or FakeCompletionClient(), timeout=timeout)
    return ChatSession(storage=storage, completion_service=service, send=recorder), recorder


class TestAttachmentAnnotation:
    """Test inline attachment markers."""

    def test_markers(self):
        assert annotate_attachment(Attachment(type="image/png", data="x")) == "\n[Image attached]"
        assert annotate_attachment(Attachment(type="application/pdf", data="x")) == "\n[PDF document attached]"
        assert annotate_attachment(Attachment(type="text/plain", data="x")) == ""
        assert annotate_attachment(None) == ""


class TestStartConversation:
    """Test session binding."""

    @pytest.mark.asyncio
    async def test_welcome_message_in_preferred_language(self, seeded_storage):
        session, recorder = make_session(seeded_storage)

        await session.handle("start_conversation", {"customerId": "CUST001"})

        assert recorder.types() == ["conversation_started"]
        payload = recorder.events[0]["payload"]
        assert payload["conversationId"] == session.conversation_id
        assert len(payload["messages"]) == 1
        welcome = payload["messages"][0]
        assert welcome["role"] == "assistant"
        assert welcome["language"] == "en"
        assert payload["settings"] == {}

        conversation = await seeded_storage.get_conversation(session.conversation_id)
        assert conversation.customer_id == "CUST001"
        assert conversation.language == "en"

    @pytest.mark.asyncio
    async def test_unknown_customer_defaults_to_english(self, storage):
        session, recorder = make_session(storage)

        await session.handle("start_conversation", {"customerId": "NOBODY", "settings": {"personality": "casual"}})

        payload = recorder.events[0]["payload"]
        assert payload["settings"] == {"personality": "casual"}
        assert payload["messages"][0]["language"] == "en"

    @pytest.mark.asyncio
    async def test_restart_rebinds_to_new_conversation(self, seeded_storage):
        session, recorder = make_session(seeded_storage)

        await session.handle("start_conversation", {"customerId": "CUST001"})
        first = session.conversation_id
        await session.handle("start_conversation", {"customerId": "CUST001"})

        assert session.conversation_id == first + 1
        assert recorder.types() == ["conversation_started", "conversation_started"]
        assert await seeded_storage.get_conversation(first) is not None

    @pytest.mark.asyncio
    async def test_missing_customer_id_is_reported(self, storage):
        session, recorder = make_session(storage)

        await session.handle("start_conversation", {})

        assert recorder.types() == ["error"]
        assert "customerId" in recorder.events[0]["payload"]["message"]
        assert not session.bound


class TestMessages:
    """Test the message event pipeline."""

    @pytest.mark.asyncio
    async def test_message_before_start_is_rejected(self, storage):
        session, recorder = make_session(storage)

        await session.handle("message", {"content": "Hello?"})

        assert recorder.events == [{"type": "error", "payload": {"message": "No active conversation"}}]
        assert await storage.get_messages(1) == []

    @pytest.mark.asyncio
    async def test_faq_sourced_reply(self, seeded_storage):
        client = FakeCompletionClient(faq=faq_match())
        session, recorder = make_session(seeded_storage, client)
        await session.handle("start_conversation", {"customerId": "CUST001"})
        recorder.clear()

        await session.handle("message", {"content": "How do I reset my password?"})

        assert recorder.types() == ["message", "typing", "message"]
        echo = recorder.events[0]["payload"]["message"]
        assert echo["role"] == "user"
        assert echo["content"] == "How do I reset my password?"

        final = recorder.events[2]["payload"]
        assert final["source"] == "faq"
        assert final["confidence"] > 0.8
        assert final["message"]["content"] == PASSWORD_ANSWER
        assert final["suggestions"] == ["How do I change my email?"]
        assert final["needsHumanReview"] is False

    @pytest.mark.asyncio
    async def test_reply_persisted_and_context_refreshed(self, seeded_storage):
        session, recorder = make_session(seeded_storage)
        await session.handle("start_conversation", {"customerId": "CUST001"})

        await session.handle("message", {"content": "Where is my parcel?"})

        messages = await seeded_storage.get_messages(session.conversation_id)
        assert [m.role.value for m in messages] == ["assistant", "user", "assistant"]
        assert messages[-1].content == "Happy to help with that."
        assert messages[-1].suggestions == ["Anything else?", "Track my order", "Talk to billing"]

        conversation = await seeded_storage.get_conversation(session.conversation_id)
        assert conversation.summary == "Customer asked for help."
        assert conversation.context_memory == {"summary": "Customer asked for help."}
        assert session.context_memory == {"summary": "Customer asked for help."}
        assert recorder.events[-1]["payload"]["source"] == "ai"

    @pytest.mark.asyncio
    async def test_attachment_annotated_and_kept(self, seeded_storage):
        session, recorder = make_session(seeded_storage)
        await session.handle("start_conversation", {"customerId": "CUST001"})
        recorder.clear()

        await session.handle("message", {
            "content": "See screenshot",
            "attachment": {"type": "image/png", "data": "data:image/png;base64,AAAA"},
        })

        echo = recorder.events[0]["payload"]["message"]
        assert echo["content"] == "See screenshot\n[Image attached]"
        assert echo["attachment"] == {"type": "image/png", "data": "data:image/png;base64,AAAA"}

    @pytest.mark.asyncio
    async def test_generation_failure_reported_once(self, seeded_storage):
        client = FakeCompletionClient(reply=ExternalServiceAPIError(500, "Azure OpenAI is down"))
        session, recorder = make_session(seeded_storage, client)
        await session.handle("start_conversation", {"customerId": "CUST001"})
        recorder.clear()

        await session.handle("message", {"content": "Where is my parcel?"})

        assert recorder.types() == ["message", "typing", "error"]
        assert recorder.events[-1]["payload"]["message"] == "Azure OpenAI is down"

    @pytest.mark.asyncio
    async def test_generation_timeout_reported(self, seeded_storage):
        client = FakeCompletionClient()
        client.delays["reply"] = 0.5
        session, recorder = make_session(seeded_storage, client, timeout=0.05)
        await session.handle("start_conversation", {"customerId": "CUST001"})
        recorder.clear()

        await session.handle("message", {"content": "Where is my parcel?"})

        assert recorder.types()[-1] == "error"
        assert "timed out" in recorder.events[-1]["payload"]["message"]


class TestOtherEvents:
    """Test settings, typing, refresh and unknown events."""

    @pytest.mark.asyncio
    async def test_update_settings_replaces(self, storage):
        session, recorder = make_session(storage)
        await session.handle("start_conversation", {
            "customerId": "C",
            "settings": {"personality": "professional", "voiceEnabled": True},
        })
        recorder.clear()

        await session.handle("update_settings", {"settings": {"personality": "casual"}})

        assert recorder.events == [{
            "type": "settings_updated",
            "payload": {"settings": {"personality": "casual"}},
        }]
        conversation = await storage.get_conversation(session.conversation_id)
        assert conversation.settings == {"personality": "casual"}

    @pytest.mark.asyncio
    async def test_update_settings_requires_conversation(self, storage):
        session, recorder = make_session(storage)

        await session.handle("update_settings", {"settings": {"voiceEnabled": True}})

        assert recorder.events[0]["payload"]["message"] == "No active conversation"

    @pytest.mark.asyncio
    async def test_typing_echo_works_unbound(self, storage):
        session, recorder = make_session(storage)

        await session.handle("typing", {})
        await session.handle("stop_typing")

        assert recorder.events == [{"type": "typing", "payload": {}}, {"type": "stop_typing", "payload": {}}]
        assert await storage.get_conversation(1) is None

    @pytest.mark.asyncio
    async def test_refresh_replays_history(self, seeded_storage):
        session, recorder = make_session(seeded_storage)
        await session.handle("start_conversation", {"customerId": "CUST001"})
        await session.handle("message", {"content": "Where is my parcel?"})
        recorder.clear()

        await session.handle("refresh_conversation", {})

        payload = recorder.events[0]["payload"]
        assert recorder.types() == ["conversation_started"]
        assert len(payload["messages"]) == 3

    @pytest.mark.asyncio
    async def test_unknown_type(self, storage):
        session, recorder = make_session(storage)

        await session.handle("refund_now", {})

        assert recorder.events == [{"type": "error", "payload": {"message": "Unknown message type: refund_now"}}]

    @pytest.mark.asyncio
    async def test_malformed_envelope(self, storage):
        session, recorder = make_session(storage)

        await session.handle_raw("{not json")
        await session.handle_raw(json.dumps(["message"]))

        assert recorder.types() == ["error", "error"]
        assert recorder.events[0]["payload"]["message"] == "Invalid message format"

    @pytest.mark.asyncio
    async def test_raw_envelope_dispatch(self, storage):
        session, recorder = make_session(storage)

        await session.handle_raw(json.dumps({"type": "typing"}))

        assert recorder.types() == ["typing"]

    @pytest.mark.asyncio
    async def test_bytes_envelope(self, storage):
        session, recorder = make_session(storage)

        await session.handle_raw(json.dumps({"type": "stop_typing"}).encode("utf-8"))
        await session.handle_raw(b"\x80\x81not utf-8")

        assert recorder.types() == ["stop_typing", "error"]
        assert recorder.events[1]["payload"]["message"] == "Invalid message format"
