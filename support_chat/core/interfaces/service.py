from abc import ABC, abstractmethod
from typing import Dict, List, Optional

from support_chat.models.completion import ModelConfig


class IChatCompletionClient(ABC):
    """Interface for the hosted chat-completion endpoint"""

    @abstractmethod
    def chat_completion(
            self,
            messages: List[Dict[str, str]],
            config: ModelConfig,
            response_format: Optional[str] = None
    ) -> str:
        """
        Run one chat completion request. Blocking; callers run it in a worker thread.

        Args:
            messages: List of message objects with role and content
            config: Sampling parameters for this call
            response_format: Optional response format type, e.g. "json_object"

        Returns:
            Content of the first choice

        Raises:
            ExternalServiceAPIError: On transport, HTTP or parse failures
        """
        pass
