import logging
from abc import ABC, abstractmethod
from typing import Any, Dict

import requests
from pydantic import ValidationError

from config import Settings
from errors import ParseError, UpstreamError
from models import UpstreamResponse, upstream_response_adapter

logger = logging.getLogger(__name__)

ANTHROPIC_VERSION = "2023-06-01"


class UpstreamClient(ABC):
    """One completion call per prompt, no retries."""

    provider: str = ""

    def __init__(
        self,
        api_key: str,
        base_url: str,
        model: str,
        max_tokens: int = 1000,
        timeout: float = 30.0,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.max_tokens = max_tokens
        self.timeout = timeout

    @property
    @abstractmethod
    def url(self) -> str: ...

    @abstractmethod
    def headers(self) -> Dict[str, str]: ...

    def payload(self, prompt: str) -> Dict[str, Any]:
        return {
            "model": self.model,
            "max_tokens": self.max_tokens,
            "messages": [{"role": "user", "content": prompt}],
        }

    def complete(self, prompt: str) -> UpstreamResponse:
        try:
            response = requests.post(
                self.url,
                headers=self.headers(),
                json=self.payload(prompt),
                timeout=self.timeout,
            )
        except requests.Timeout:
            logger.error(f"{self.provider} request timed out after {self.timeout}s")
            raise UpstreamError(f"Upstream timed out after {self.timeout:g}s")
        except requests.RequestException as e:
            logger.error(f"{self.provider} request failed: {e}")
            raise UpstreamError("Could not reach the AI provider")

        if not response.ok:
            raise UpstreamError(self._error_detail(response))

        try:
            data = response.json()
        except ValueError:
            logger.error(f"{self.provider} returned a non-JSON body")
            raise ParseError()

        try:
            return upstream_response_adapter.validate_python(
                {**data, "provider": self.provider}
            )
        except (TypeError, ValidationError) as e:
            logger.error(f"Unexpected {self.provider} response shape: {e}")
            raise ParseError()

    def _error_detail(self, response: requests.Response) -> str:
        try:
            err_data = response.json()
        except ValueError:
            err_data = {}
        logger.error(f"{self.provider} API error ({response.status_code}): {err_data}")

        error = err_data.get("error") if isinstance(err_data, dict) else None
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
        return f"HTTP {response.status_code}"


class AnthropicClient(UpstreamClient):
    provider = "anthropic"

    @property
    def url(self) -> str:
        return f"{self.base_url}/v1/messages"

    def headers(self) -> Dict[str, str]:
        return {
            "Content-Type": "application/json",
            "x-api-key": self.api_key,
            "anthropic-version": ANTHROPIC_VERSION,
        }


class OpenAIClient(UpstreamClient):
    provider = "openai"

    @property
    def url(self) -> str:
        return f"{self.base_url}/v1/chat/completions"

    def headers(self) -> Dict[str, str]:
        return {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.api_key}",
        }


CLIENTS = {
    AnthropicClient.provider: AnthropicClient,
    OpenAIClient.provider: OpenAIClient,
}


def get_upstream_client(settings: Settings) -> UpstreamClient:
    client_cls = CLIENTS[settings.provider]
    return client_cls(
        api_key=settings.api_key,
        base_url=settings.base_url,
        model=settings.model,
        max_tokens=settings.max_tokens,
        timeout=settings.upstream_timeout,
    )
