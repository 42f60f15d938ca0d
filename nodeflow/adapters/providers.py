"""
Text Generation Providers

Clients for the external text-generation service used by completion nodes.
Every failure (transport, status, quota, malformed payload) surfaces as
ProviderError.

Usage:
    provider = HttpTextProvider(base_url="https://api.openai.com/v1", api_key="...")
    text = await provider.complete("Say hi", CompletionOptions(temperature=0.2))
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Optional
import logging

import httpx

from ..errors import ProviderError

logger = logging.getLogger(__name__)

DEFAULT_SYSTEM_PROMPT = "You are a helpful assistant."


@dataclass
class CompletionOptions:
    """Per-call generation options"""
    temperature: float = 0.7
    system_prompt: str = DEFAULT_SYSTEM_PROMPT
    max_tokens: Optional[int] = None
    model: Optional[str] = None


class TextProvider(ABC):
    """Abstract text-generation backend"""

    @abstractmethod
    async def complete(self, prompt: str, options: Optional[CompletionOptions] = None) -> str:
        """
        Generate text for a prompt.

        Raises:
            ProviderError: On transport, quota or response failures
        """


class StaticTextProvider(TextProvider):
    """Returns canned text; records every call for inspection"""

    def __init__(self, text: str = "", error: Optional[ProviderError] = None):
        self.text = text
        self.error = error
        self.calls: list[dict[str, Any]] = []

    async def complete(self, prompt: str, options: Optional[CompletionOptions] = None) -> str:
        self.calls.append({"prompt": prompt, "options": options or CompletionOptions()})
        if self.error is not None:
            raise self.error
        return self.text


class HttpTextProvider(TextProvider):
    """
    Client for an OpenAI-compatible chat completions endpoint.

    A new AsyncClient is opened per call, so one provider may be shared by
    concurrent runs.
    """

    def __init__(
        self,
        base_url: str,
        api_key: Optional[str] = None,
        model: str = "gpt-4o-mini",
        timeout: float = 60.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._base_url = base_url.rstrip("/")
        self._model = model
        self._timeout = timeout
        self._transport = transport
        self._headers = {"Content-Type": "application/json"}
        if api_key:
            self._headers["Authorization"] = f"Bearer {api_key}"

    async def complete(self, prompt: str, options: Optional[CompletionOptions] = None) -> str:
        options = options or CompletionOptions()
        payload: dict[str, Any] = {
            "model": options.model or self._model,
            "messages": [
                {"role": "system", "content": options.system_prompt},
                {"role": "user", "content": prompt},
            ],
            "temperature": options.temperature,
        }
        if options.max_tokens is not None:
            payload["max_tokens"] = options.max_tokens

        try:
            async with httpx.AsyncClient(transport=self._transport, timeout=self._timeout) as client:
                response = await client.post(
                    f"{self._base_url}/chat/completions",
                    json=payload,
                    headers=self._headers,
                )
                response.raise_for_status()
                data = response.json()

        except httpx.TimeoutException as e:
            msg = f"Provider request timed out after {self._timeout}s"
            logger.error(msg)
            raise ProviderError(msg, cause=e) from e
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            if status == 429:
                msg = "Provider quota or rate limit exceeded"
            else:
                msg = f"Provider API error: {status}"
            logger.error(msg)
            raise ProviderError(msg, status_code=status, cause=e) from e
        except httpx.HTTPError as e:
            msg = f"Failed to reach provider at {self._base_url}: {e}"
            logger.error(msg)
            raise ProviderError(msg, cause=e) from e
        except ValueError as e:
            raise ProviderError(f"Provider returned invalid JSON: {e}", cause=e) from e

        try:
            text = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as e:
            raise ProviderError("Provider response has no completion text", cause=e) from e

        if not isinstance(text, str):
            raise ProviderError("Provider completion text is not a string")

        logger.debug(f"Provider returned {len(text)} characters")
        return text
