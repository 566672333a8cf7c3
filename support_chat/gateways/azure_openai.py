import logging
from typing import Optional, Dict, Any, List
from urllib.parse import urlparse

import requests
from requests.exceptions import RequestException, HTTPError, Timeout

from support_chat.config.settings import settings
from support_chat.core.interfaces.service import IChatCompletionClient
from support_chat.errors import ExternalServiceAPIError, ImproperlyConfigured
from support_chat.models.completion import ModelConfig

logger = logging.getLogger(__name__)


def normalize_endpoint(endpoint: str) -> str:
    """Force an https scheme and drop the trailing slash."""
    if not endpoint.startswith("https://"):
        endpoint = f"https://{endpoint}"
    return endpoint.rstrip("/")


class AzureOpenAIGatewayClient(IChatCompletionClient):
    """Client for interacting with an Azure OpenAI chat deployment"""

    def __init__(
            self,
            api_key: Optional[str] = None,
            endpoint: Optional[str] = None,
            deployment: Optional[str] = None,
            api_version: Optional[str] = None,
            read_timeout: Optional[float] = None
    ):
        azure = settings.azure
        self._api_key = api_key or azure.AZURE_OPENAI_API_KEY
        endpoint = endpoint or azure.AZURE_OPENAI_ENDPOINT
        self._deployment = deployment or azure.AZURE_OPENAI_DEPLOYMENT
        self._api_version = api_version or azure.AZURE_OPENAI_API_VERSION
        self._timeout = (
            azure.AZURE_OPENAI_CONNECT_TIMEOUT_SECONDS,
            read_timeout or azure.AZURE_OPENAI_TIMEOUT_SECONDS,
        )

        missing = [
            name for name, value in (
                ("AZURE_OPENAI_API_KEY", self._api_key),
                ("AZURE_OPENAI_ENDPOINT", endpoint),
                ("AZURE_OPENAI_DEPLOYMENT", self._deployment),
            ) if not value
        ]
        if missing:
            raise ImproperlyConfigured(f"Missing required environment variables: {', '.join(missing)}")

        self._endpoint = normalize_endpoint(endpoint)
        self._base_url = f"{self._endpoint}/openai/deployments/{self._deployment}"

        logger.info(
            f"Azure OpenAI configuration: endpoint={self.endpoint_host}, "
            f"deployment={self._deployment}, api_version={self._api_version}"
        )

    @property
    def deployment(self) -> str:
        return self._deployment

    @property
    def endpoint_host(self) -> str:
        return urlparse(self._endpoint).hostname or self._endpoint

    def _make_request(
            self,
            path: str,
            method: str = 'POST',
            data: Optional[Dict[Any, Any]] = None,
            headers: Optional[Dict[Any, str]] = None,
            params: Optional[Dict[Any, str]] = None
    ):
        default_headers = {"api-key": self._api_key, "Content-Type": "application/json"}
        if headers:
            default_headers.update(headers)

        default_params = {"api-version": self._api_version}
        if params:
            default_params.update(params)

        context = f"deployment={self._deployment}, endpoint={self.endpoint_host}"
        try:
            response = requests.request(
                url=f'{self._base_url}/{path}',
                method=method,
                json=data,
                headers=default_headers,
                params=default_params,
                timeout=self._timeout
            )
            response.raise_for_status()
        except HTTPError as e:
            status_code = e.response.status_code if e.response is not None else 502
            logger.error(f"Azure OpenAI returned HTTP {status_code} ({context}): {e}")
            if status_code == 401:
                raise ExternalServiceAPIError(401, "Invalid Azure OpenAI API key")
            if status_code == 404:
                raise ExternalServiceAPIError(
                    404,
                    "Azure OpenAI deployment configuration error. Please verify deployment settings."
                )
            raise ExternalServiceAPIError(status_code, str(e))
        except Timeout:
            logger.error(f"Azure OpenAI request timed out ({context})")
            raise ExternalServiceAPIError(504, "Azure OpenAI request timed out")
        except (RequestException, ConnectionError) as e:
            logger.error(f"Azure OpenAI unreachable ({context}): {e}")
            raise ExternalServiceAPIError(503, "Service Unavailable")

        try:
            return response.json()
        except ValueError:
            logger.error(f"Azure OpenAI returned a non-JSON body ({context})")
            raise ExternalServiceAPIError(502, "Malformed response from Azure OpenAI")

    def chat_completion(
            self,
            messages: List[Dict[str, str]],
            config: ModelConfig,
            response_format: Optional[str] = None
    ) -> str:
        payload: Dict[str, Any] = {"messages": messages, **config.to_request()}
        if response_format:
            payload["response_format"] = {"type": response_format}

        result = self._make_request(path="chat/completions", method="POST", data=payload)

        try:
            content = result["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError):
            raise ExternalServiceAPIError(502, "Malformed response from Azure OpenAI")

        if not content:
            raise ExternalServiceAPIError(502, "Azure OpenAI returned empty response")
        return content
