import asyncio
import json
import logging
from typing import Any, Dict, List, Optional

from support_chat.config.settings import settings
from support_chat.core.interfaces.service import IChatCompletionClient
from support_chat.errors import CompletionTimeoutError
from support_chat.models.completion import ChatReply, FaqMatch, ModelConfig
from support_chat.models.support import FAQ

logger = logging.getLogger(__name__)

LANGUAGE_DETECTION_PROMPT = "You are a language detector. Respond with only the ISO 639-1 language code."
SUMMARY_PROMPT = "Summarize the following conversation in a concise paragraph:"
SUGGESTIONS_PROMPT = (
    "Generate 3 short, relevant follow-up questions or responses based on this message. "
    'Return a JSON object of the form {"suggestions": [string, string, string]}.'
)
FAQ_MATCH_PROMPT = (
    "You are a FAQ matcher. Given the following FAQs and a user question, determine if any FAQ "
    "matches. Return your response as a JSON object with the following structure: "
    '{"matches": boolean, "answer": string, "confidence": number, '
    '"suggestions": string[], "needsHumanReview": boolean}'
)


def default_model_config() -> ModelConfig:
    completion = settings.completion
    return ModelConfig(
        temperature=completion.COMPLETION_TEMPERATURE,
        top_p=completion.COMPLETION_TOP_P,
        frequency_penalty=completion.COMPLETION_FREQUENCY_PENALTY,
        presence_penalty=completion.COMPLETION_PRESENCE_PENALTY,
        max_tokens=completion.COMPLETION_MAX_TOKENS,
    )


def _string_list(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, str)]


class CompletionService:
    """
    Runs the generation tasks of a support conversation against one chat-completion client.

    Language detection, FAQ matching, suggestions and summaries are best effort and fall back
    to a default on any failure. Reply generation failures propagate to the caller.
    """

    def __init__(
            self,
            client: IChatCompletionClient,
            base_config: Optional[ModelConfig] = None,
            timeout: Optional[float] = None,
            faq_confidence_threshold: Optional[float] = None
    ):
        self.client = client
        self.base_config = base_config or default_model_config()
        if timeout is None:
            timeout = settings.azure.AZURE_OPENAI_TIMEOUT_SECONDS
        self.timeout = timeout
        if faq_confidence_threshold is None:
            faq_confidence_threshold = settings.completion.FAQ_CONFIDENCE_THRESHOLD
        self.faq_confidence_threshold = faq_confidence_threshold

        completion = settings.completion
        self.faq_config = self.base_config.merged(
            temperature=completion.FAQ_TEMPERATURE,
            max_tokens=completion.FAQ_MAX_TOKENS,
        )
        self.summary_config = self.base_config.merged(
            temperature=completion.SUMMARY_TEMPERATURE,
            max_tokens=completion.SUMMARY_MAX_TOKENS,
        )
        self.suggestions_config = self.base_config.merged(
            temperature=completion.SUGGESTIONS_TEMPERATURE,
        )

    async def _complete(
            self,
            messages: List[Dict[str, str]],
            config: ModelConfig,
            response_format: Optional[str] = None
    ) -> str:
        try:
            return await asyncio.wait_for(
                asyncio.to_thread(
                    self.client.chat_completion,
                    messages=messages,
                    config=config,
                    response_format=response_format,
                ),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError:
            raise CompletionTimeoutError(self.timeout)

    async def detect_language(self, text: str, config: Optional[ModelConfig] = None) -> str:
        messages = [
            {"role": "system", "content": LANGUAGE_DETECTION_PROMPT},
            {"role": "user", "content": text},
        ]
        try:
            content = await self._complete(messages, config or self.base_config)
            return content.strip().lower() or settings.conversation.DEFAULT_LANGUAGE
        except Exception as e:
            logger.error(f"Error detecting language: {str(e)}")
            return settings.conversation.DEFAULT_LANGUAGE

    async def match_faq(self, user_message: str, faqs: List[FAQ]) -> Optional[FaqMatch]:
        """
        Ask the model whether one of the FAQs answers the message.

        Returns:
            The match when the model reports one above the confidence threshold, else None
        """
        if not faqs:
            return None

        faq_text = "\n\n".join(f"Q: {faq.question}\nA: {faq.answer}" for faq in faqs)
        messages = [
            {"role": "system", "content": f"{FAQ_MATCH_PROMPT}\n\nFAQs:\n{faq_text}"},
            {"role": "user", "content": user_message},
        ]
        try:
            content = await self._complete(messages, self.faq_config, response_format="json_object")
            result = json.loads(content)
            if not isinstance(result, dict):
                raise ValueError("FAQ match result is not a JSON object")

            confidence = float(result.get("confidence") or 0)
            answer = result.get("answer")
            if not (result.get("matches") and confidence > self.faq_confidence_threshold and answer):
                logger.info(f"No FAQ match above threshold (confidence={confidence})")
                return None

            return FaqMatch(
                answer=str(answer),
                confidence=confidence,
                suggestions=_string_list(result.get("suggestions")),
                needs_human_review=bool(result.get("needsHumanReview", False)),
            )
        except Exception as e:
            logger.error(f"Error matching FAQs: {str(e)}")
            return None

    async def generate_reply(
            self,
            history: List[Dict[str, str]],
            context_summary: Optional[str],
            language: str,
            config: Optional[ModelConfig] = None
    ) -> str:
        system_prompt = settings.conversation.REPLY_SYSTEM_PROMPT.format(
            language=language,
            context=context_summary or "No previous context",
        )
        messages = [{"role": "system", "content": system_prompt}] + history
        return await self._complete(messages, config or self.base_config)

    async def generate_suggestions(self, reply_text: str) -> List[str]:
        messages = [
            {"role": "system", "content": SUGGESTIONS_PROMPT},
            {"role": "user", "content": reply_text},
        ]
        try:
            content = await self._complete(messages, self.suggestions_config, response_format="json_object")
            result = json.loads(content)
        except Exception as e:
            logger.error(f"Error generating suggestions: {str(e)}")
            return []

        if isinstance(result, dict):
            result = result.get("suggestions")
        return _string_list(result)[:settings.completion.SUGGESTIONS_COUNT]

    async def summarize(self, history: List[Dict[str, str]]) -> str:
        messages = [{"role": "system", "content": SUMMARY_PROMPT}] + history
        try:
            return await self._complete(messages, self.summary_config)
        except Exception as e:
            logger.error(f"Error summarizing conversation: {str(e)}")
            return ""

    async def update_conversation_context(self, history: List[Dict[str, str]]) -> Dict[str, Any]:
        summary = await self.summarize(history)
        return {"summary": summary}

    async def generate_response(
            self,
            history: List[Dict[str, str]],
            faqs: List[FAQ],
            context_memory: Optional[Dict[str, Any]] = None
    ) -> ChatReply:
        """
        Answer the last message of the history, from a FAQ when one matches confidently.

        Args:
            history: Conversation messages with role and content, oldest first
            faqs: Candidate FAQs in any language
            context_memory: Latest context blob carrying the conversation summary

        Returns:
            Reply with its source, language and follow-up suggestions
        """
        last_message = history[-1] if history else {"role": "user", "content": ""}
        language = await self.detect_language(last_message["content"])

        if last_message["role"] == "user":
            candidates = [
                faq for faq in faqs
                if faq.enabled and (not faq.language or faq.language == language)
            ]
            match = await self.match_faq(last_message["content"], candidates)
            if match:
                return ChatReply(
                    content=match.answer,
                    source="faq",
                    confidence=match.confidence,
                    language=language,
                    suggestions=match.suggestions,
                    needs_human_review=match.needs_human_review,
                )

        context_summary = (context_memory or {}).get("summary")
        content = await self.generate_reply(history, context_summary, language)
        suggestions = await self.generate_suggestions(content)

        return ChatReply(
            content=content,
            source="ai",
            language=language,
            suggestions=suggestions,
            needs_human_review="human" in content.lower(),
        )
