"""Scripted completion client and canned model output shared by the tests."""

import json
import time
from typing import Any, Dict, List, Optional

from support_chat.core.interfaces.service import IChatCompletionClient
from support_chat.models.completion import ModelConfig
from support_chat.services.completion import (
    FAQ_MATCH_PROMPT,
    LANGUAGE_DETECTION_PROMPT,
    SUGGESTIONS_PROMPT,
    SUMMARY_PROMPT,
)

PASSWORD_ANSWER = (
    "You can reset your password by clicking the 'Forgot Password' link on the "
    "login page and following the instructions sent to your email."
)


class FakeCompletionClient(IChatCompletionClient):
    """
    Answers each completion task with a scripted response.
    A response that is an exception instance is raised instead of returned.
    """

    def __init__(self, **responses):
        self.responses: Dict[str, Any] = {
            "language": "en",
            "faq": json.dumps({"matches": False, "confidence": 0.0}),
            "summary": "Customer asked for help.",
            "reply": "Happy to help with that.",
            "suggestions": json.dumps({"suggestions": ["Anything else?", "Track my order", "Talk to billing"]}),
        }
        self.responses.update(responses)
        self.delays: Dict[str, float] = {}
        self.calls: List[Dict[str, Any]] = []

    @staticmethod
    def task_of(messages: List[Dict[str, str]]) -> str:
        system = messages[0]["content"]
        if system == LANGUAGE_DETECTION_PROMPT:
            return "language"
        if system.startswith(FAQ_MATCH_PROMPT):
            return "faq"
        if system == SUMMARY_PROMPT:
            return "summary"
        if system == SUGGESTIONS_PROMPT:
            return "suggestions"
        return "reply"

    def chat_completion(
            self,
            messages: List[Dict[str, str]],
            config: ModelConfig,
            response_format: Optional[str] = None
    ) -> str:
        task = self.task_of(messages)
        self.calls.append({
            "task": task,
            "messages": messages,
            "config": config,
            "response_format": response_format,
        })
        if task in self.delays:
            time.sleep(self.delays[task])
        response = self.responses[task]
        if isinstance(response, Exception):
            raise response
        return response

    def tasks(self) -> List[str]:
        return [call["task"] for call in self.calls]


def faq_match(answer: str = PASSWORD_ANSWER, confidence: float = 0.95, **extra) -> str:
    result = {
        "matches": True,
        "answer": answer,
        "confidence": confidence,
        "suggestions": ["How do I change my email?"],
        "needsHumanReview": False,
    }
    result.update(extra)
    return json.dumps(result)
